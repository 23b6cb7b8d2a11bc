"""Pytest configuration and fixtures for DRIP tests."""

import os
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest
from web3 import Web3

from drip.faucet.claims import ClaimStore

# Fresh, well-formed address used across tests
FRESH_ADDRESS = "0x742d35cc6634c0532925a3b844bc9e7595f8fe00"
OTHER_ADDRESS = "0x1234567890123456789012345678901234567890"
TX_HASH = "0x" + "ab" * 32


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Clear DRIP-related environment variables before each test."""
    env_prefixes = ("DRIP_", "REDIS_")
    for key in list(os.environ.keys()):
        if key.startswith(env_prefixes):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def claims():
    """In-memory claim store."""
    return ClaimStore()


@pytest.fixture
def fusion_client():
    """Mock Fusion client reporting a fresh, empty address."""
    client = MagicMock()
    client.is_address.side_effect = Web3.is_address
    client.get_transaction_count = AsyncMock(return_value=0)
    client.get_balance = AsyncMock(return_value=Decimal("0"))
    client.transfer_native = AsyncMock(return_value=TX_HASH)
    return client
