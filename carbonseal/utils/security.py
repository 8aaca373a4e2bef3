"""
Security utilities for masking addresses in logs.
"""


def mask_address(address: str | None) -> str:
    """
    Mask wallet address for logging: 0x1234...5678

    Args:
        address: Wallet address to mask

    Returns:
        Masked address showing first 6 and last 4 characters

    Examples:
        >>> mask_address("0x1234567890abcdef1234567890abcdef12345678")
        '0x1234...5678'
        >>> mask_address(None)
        '***'
        >>> mask_address("short")
        '***'
    """
    if not address or len(address) < 10:
        return "***"
    return f"{address[:6]}...{address[-4:]}"


def mask_url(url: str | None, keep: int = 30) -> str:
    """Truncate an RPC URL so API keys in the path stay out of logs."""
    if not url:
        return "***"
    if len(url) <= keep:
        return url
    return f"{url[:keep]}..."
