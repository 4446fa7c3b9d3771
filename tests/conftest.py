"""Pytest fixtures for market_sync tests."""

import pytest

from market_sync.core.models import ExchangeName
from market_sync.orderbook.engine import levels_from_pairs
from market_sync.store.patch_store import PatchStore

# Well-known development key (Hardhat/Anvil account #0), never funded on mainnet
TEST_PRIVATE_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
TEST_ADDRESS = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"


@pytest.fixture
def store() -> PatchStore:
    """Store with every exchange subtree."""
    return PatchStore()


@pytest.fixture
def bybit_store() -> PatchStore:
    """Store with only the bybit subtree."""
    return PatchStore(exchanges=[ExchangeName.BYBIT])


@pytest.fixture
def unsorted_asks() -> list[dict]:
    """Asks as they arrive from a feed, out of order."""
    return levels_from_pairs([(200, 5), (100, 10), (150, 7)])


@pytest.fixture
def unsorted_bids() -> list[dict]:
    """Bids as they arrive from a feed, out of order."""
    return levels_from_pairs([(80, 8), (95, 3), (90, 12)])


@pytest.fixture
def private_key() -> str:
    return TEST_PRIVATE_KEY


@pytest.fixture
def order_action() -> dict:
    """Limit order action in the exchange's wire key order."""
    return {
        "type": "order",
        "orders": [
            {
                "a": 0,
                "b": True,
                "p": "30000",
                "s": "0.1",
                "r": False,
                "t": {"limit": {"tif": "Gtc"}},
            }
        ],
        "grouping": "na",
    }


@pytest.fixture
def cancel_action() -> dict:
    return {"type": "cancel", "cancels": [{"a": 0, "o": 123456}]}


@pytest.fixture
def signer_address() -> str:
    """Checksummed address of the test private key."""
    return TEST_ADDRESS
