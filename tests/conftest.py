"""Pytest configuration and shared fixtures for all tests."""

import os
import sys
from pathlib import Path

# Minimal environment so Settings() validates in tests
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("RPC_URL", "http://localhost:8545")
os.environ.setdefault("REGISTRY_ADDRESS", "0x5FbDB2315678afecb367f032d93F642f64180aa3")
os.environ.setdefault("TOKEN_ADDRESS", "0xe7f1725E7734CE288F8367e1Bb143E90bb3F0512")
os.environ.setdefault("ORACLE_ADDRESS", "0x9fE46736679d2D9a65F0992F2272dE9f3c7fa6e0")
os.environ.setdefault("ENVIRONMENT", "test")

# Add project root to PYTHONPATH
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import pytest  # noqa: E402


@pytest.fixture
def farmer_address():
    """Sample farmer address (checksummed)."""
    return "0x70997970C51812dc3A010C7d01b50e0d17dc79C8"


@pytest.fixture
def buyer_address():
    """Sample credit holder address (checksummed)."""
    return "0x3C44CdDdB6a900fa2b585dd299e03d12FA4293BC"


@pytest.fixture
def oracle_signer_address():
    """Sample reading verifier address (checksummed)."""
    return "0x90F79bf6EB2c4f870365E785982E1f101E93b906"
