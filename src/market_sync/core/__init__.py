"""Core module - state schema models, decimal-safe arithmetic and errors."""

from market_sync.core.errors import KeyFormatError, MarketSyncError, PathError
from market_sync.core.models import (
    BookSide,
    ExchangeAccountMemory,
    ExchangeMemory,
    ExchangeName,
    OrderBook,
    PriceLevel,
    default_store_state,
)
from market_sync.core.safe_math import (
    add,
    digits_after_point,
    divide,
    floor_to_step,
    multiply,
    round_half_up,
    round_to_step,
    subtract,
    to_usd,
)

__all__ = [
    # Errors
    "MarketSyncError",
    "PathError",
    "KeyFormatError",
    # Models
    "BookSide",
    "ExchangeName",
    "ExchangeMemory",
    "ExchangeAccountMemory",
    "OrderBook",
    "PriceLevel",
    "default_store_state",
    # Arithmetic
    "digits_after_point",
    "round_half_up",
    "add",
    "subtract",
    "multiply",
    "divide",
    "round_to_step",
    "floor_to_step",
    "to_usd",
]
