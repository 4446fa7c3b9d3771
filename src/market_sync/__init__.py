"""Market Sync - market-state synchronization, order book maintenance and action signing."""

from market_sync.core.errors import KeyFormatError, MarketSyncError, PathError
from market_sync.core.models import BookSide, ExchangeName, PriceLevel
from market_sync.orderbook.engine import aggregate_by_tick, normalize, to_quote_currency
from market_sync.signing.action_signer import ActionSigner, generate_action_hash, sign_action
from market_sync.store.commands import RemoveArrayElement, Update
from market_sync.store.patch_store import PatchStore

__version__ = "0.1.0"

__all__ = [
    "PatchStore",
    "Update",
    "RemoveArrayElement",
    "normalize",
    "aggregate_by_tick",
    "to_quote_currency",
    "ActionSigner",
    "generate_action_hash",
    "sign_action",
    "BookSide",
    "ExchangeName",
    "PriceLevel",
    "MarketSyncError",
    "PathError",
    "KeyFormatError",
]
