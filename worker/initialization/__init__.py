"""
Worker Initialization Module.

- logging: Logger configuration
- services: Component construction and wiring
- shutdown: Graceful shutdown sequence
"""

__all__ = []
