"""
Contract ABIs.

Minimal ABI fragments for the registry, token and oracle contracts:
only the view functions and events the indexer reads.
"""

_FARM_COMPONENTS = [
    {"internalType": "uint256", "name": "farmId", "type": "uint256"},
    {"internalType": "address", "name": "farmer", "type": "address"},
    {"internalType": "string", "name": "name", "type": "string"},
    {"internalType": "uint256", "name": "area", "type": "uint256"},
    {"internalType": "string", "name": "location", "type": "string"},
    {"internalType": "string", "name": "soilType", "type": "string"},
    {"internalType": "uint256", "name": "totalCarbon", "type": "uint256"},
    {"internalType": "uint256", "name": "carbonDebt", "type": "uint256"},
    {"internalType": "uint256", "name": "lastReadingTimestamp", "type": "uint256"},
    {"internalType": "bool", "name": "isActive", "type": "bool"},
    {"internalType": "uint256", "name": "createdAt", "type": "uint256"},
]

_READING_COMPONENTS = [
    {"internalType": "uint256", "name": "readingId", "type": "uint256"},
    {"internalType": "uint256", "name": "farmId", "type": "uint256"},
    {"internalType": "uint256", "name": "amount", "type": "uint256"},
    {"internalType": "string", "name": "source", "type": "string"},
    {"internalType": "string", "name": "verificationHash", "type": "string"},
    {"internalType": "uint256", "name": "timestamp", "type": "uint256"},
    {"internalType": "address", "name": "verifiedBy", "type": "address"},
]

_CREDIT_COMPONENTS = [
    {"internalType": "uint256", "name": "tokenId", "type": "uint256"},
    {"internalType": "uint256", "name": "farmId", "type": "uint256"},
    {"internalType": "address", "name": "farmer", "type": "address"},
    {"internalType": "uint256", "name": "carbonAmount", "type": "uint256"},
    {"internalType": "string", "name": "methodology", "type": "string"},
    {"internalType": "uint256", "name": "vintage", "type": "uint256"},
    {"internalType": "uint256", "name": "mintedAt", "type": "uint256"},
    {"internalType": "bool", "name": "isRetired", "type": "bool"},
    {"internalType": "uint256", "name": "retiredAt", "type": "uint256"},
    {"internalType": "string", "name": "retirementReason", "type": "string"},
]


def _uint_view(name: str, inputs: list[dict] | None = None) -> dict:
    return {
        "inputs": inputs or [],
        "name": name,
        "outputs": [{"internalType": "uint256", "name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function",
    }


REGISTRY_ABI = [
    {
        "anonymous": False,
        "inputs": [
            {"indexed": True, "internalType": "address", "name": "farmer", "type": "address"},
            {"indexed": True, "internalType": "uint256", "name": "farmId", "type": "uint256"},
            {"indexed": False, "internalType": "string", "name": "name", "type": "string"},
            {"indexed": False, "internalType": "uint256", "name": "area", "type": "uint256"},
            {"indexed": False, "internalType": "string", "name": "location", "type": "string"},
        ],
        "name": "FarmRegistered",
        "type": "event",
    },
    {
        "anonymous": False,
        "inputs": [
            {"indexed": True, "internalType": "uint256", "name": "farmId", "type": "uint256"},
            {"indexed": True, "internalType": "uint256", "name": "readingId", "type": "uint256"},
            {"indexed": False, "internalType": "uint256", "name": "amount", "type": "uint256"},
            {"indexed": False, "internalType": "string", "name": "source", "type": "string"},
            {"indexed": False, "internalType": "string", "name": "verificationHash", "type": "string"},
        ],
        "name": "CarbonAdded",
        "type": "event",
    },
    _uint_view("farmCounter"),
    {
        "inputs": [{"internalType": "uint256", "name": "", "type": "uint256"}],
        "name": "farms",
        "outputs": _FARM_COMPONENTS,
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [{"internalType": "address", "name": "_farmer", "type": "address"}],
        "name": "getFarmByAddress",
        "outputs": [
            {
                "components": _FARM_COMPONENTS,
                "internalType": "struct CarbonSealRegistry.Farm",
                "name": "",
                "type": "tuple",
            }
        ],
        "stateMutability": "view",
        "type": "function",
    },
    _uint_view(
        "getAvailableCarbon",
        [{"internalType": "uint256", "name": "_farmId", "type": "uint256"}],
    ),
    {
        "inputs": [{"internalType": "uint256", "name": "_farmId", "type": "uint256"}],
        "name": "getFarmStats",
        "outputs": [
            {"internalType": "uint256", "name": "totalCarbon", "type": "uint256"},
            {"internalType": "uint256", "name": "carbonDebt", "type": "uint256"},
            {"internalType": "uint256", "name": "availableCarbon", "type": "uint256"},
            {"internalType": "uint256", "name": "readingCount", "type": "uint256"},
            {"internalType": "uint256", "name": "creditCount", "type": "uint256"},
            {"internalType": "uint256", "name": "lastUpdate", "type": "uint256"},
        ],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [
            {"internalType": "uint256", "name": "_farmId", "type": "uint256"},
            {"internalType": "uint256", "name": "_count", "type": "uint256"},
        ],
        "name": "getRecentReadings",
        "outputs": [
            {
                "components": _READING_COMPONENTS,
                "internalType": "struct CarbonSealRegistry.CarbonReading[]",
                "name": "",
                "type": "tuple[]",
            }
        ],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [],
        "name": "getActiveFarmers",
        "outputs": [{"internalType": "address[]", "name": "", "type": "address[]"}],
        "stateMutability": "view",
        "type": "function",
    },
]

TOKEN_ABI = [
    {
        "anonymous": False,
        "inputs": [
            {"indexed": True, "internalType": "uint256", "name": "tokenId", "type": "uint256"},
            {"indexed": True, "internalType": "address", "name": "farmer", "type": "address"},
            {"indexed": True, "internalType": "uint256", "name": "farmId", "type": "uint256"},
            {"indexed": False, "internalType": "uint256", "name": "carbonAmount", "type": "uint256"},
            {"indexed": False, "internalType": "string", "name": "methodology", "type": "string"},
        ],
        "name": "CreditMinted",
        "type": "event",
    },
    {
        "anonymous": False,
        "inputs": [
            {"indexed": True, "internalType": "uint256", "name": "tokenId", "type": "uint256"},
            {"indexed": True, "internalType": "address", "name": "retiredBy", "type": "address"},
            {"indexed": False, "internalType": "string", "name": "reason", "type": "string"},
        ],
        "name": "CreditRetired",
        "type": "event",
    },
    {
        "inputs": [{"internalType": "uint256", "name": "_tokenId", "type": "uint256"}],
        "name": "getCreditDetails",
        "outputs": [
            {
                "components": _CREDIT_COMPONENTS,
                "internalType": "struct CarbonSealToken.CarbonCredit",
                "name": "",
                "type": "tuple",
            }
        ],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [{"internalType": "uint256", "name": "_farmId", "type": "uint256"}],
        "name": "getFarmCredits",
        "outputs": [{"internalType": "uint256[]", "name": "", "type": "uint256[]"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [{"internalType": "address", "name": "_owner", "type": "address"}],
        "name": "getOwnerCredits",
        "outputs": [{"internalType": "uint256[]", "name": "", "type": "uint256[]"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [{"internalType": "uint256", "name": "tokenId", "type": "uint256"}],
        "name": "ownerOf",
        "outputs": [{"internalType": "address", "name": "", "type": "address"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [{"internalType": "uint256", "name": "tokenId", "type": "uint256"}],
        "name": "tokenURI",
        "outputs": [{"internalType": "string", "name": "", "type": "string"}],
        "stateMutability": "view",
        "type": "function",
    },
    _uint_view("totalSupply"),
]

ORACLE_ABI = [
    {
        "inputs": [{"internalType": "bytes32", "name": "_proofHash", "type": "bytes32"}],
        "name": "isProofVerified",
        "outputs": [{"internalType": "bool", "name": "", "type": "bool"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [],
        "name": "getCarbonPrice",
        "outputs": [{"internalType": "int256", "name": "", "type": "int256"}],
        "stateMutability": "view",
        "type": "function",
    },
]
