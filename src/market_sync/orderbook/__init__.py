"""Order book module - keeps book sides sorted and totaled, derives display views."""

from market_sync.orderbook.deltas import (
    Delta,
    apply_book_deltas,
    apply_level_delta,
    level_delta_commands,
    snapshot_commands,
)
from market_sync.orderbook.engine import (
    Level,
    Side,
    aggregate_by_tick,
    best_price,
    calc_totals,
    copy_side,
    levels_from_pairs,
    mid_price,
    normalize,
    normalize_book,
    sort_side,
    spread,
    to_quote_currency,
)

__all__ = [
    # Engine
    "Level",
    "Side",
    "normalize",
    "normalize_book",
    "sort_side",
    "calc_totals",
    "aggregate_by_tick",
    "to_quote_currency",
    "copy_side",
    "levels_from_pairs",
    "best_price",
    "spread",
    "mid_price",
    # Deltas
    "Delta",
    "apply_level_delta",
    "level_delta_commands",
    "snapshot_commands",
    "apply_book_deltas",
]
