"""Order book side maintenance: sorting, cumulative totals and display views.

A side is a list of plain level dicts, `{"price", "amount", "total"}`, as
stored in the state tree. Asks are kept ascending by price and bids
descending, and `total` is the running sum of `amount` from the best level
outwards:

    asks: [(100, 10, 10), (150, 7, 17), (200, 5, 22)]
    bids: [( 95,  3,  3), ( 90, 12, 15), ( 80, 8, 23)]

`normalize` re-establishes both properties in place and must run after every
batch that touches a side. The display transforms (`aggregate_by_tick`,
`to_quote_currency`) work on copies and never on canonical state.

All arithmetic goes through safe_math so totals carry exchange precision.
"""

from collections.abc import Iterable, MutableMapping, Sequence
from typing import Any

from market_sync.core.models import BookSide, PriceLevel
from market_sync.core.safe_math import (
    add,
    floor_to_step,
    multiply,
    round_half_up,
    subtract,
)

Level = MutableMapping[str, Any]
Side = list[Level]

DEFAULT_QUOTE_DECIMALS = 2


def sort_side(side: Side, direction: BookSide | str) -> Side:
    """Sort in place: ascending price for asks, descending for bids."""
    side.sort(key=lambda level: level["price"], reverse=BookSide(direction).descending)
    return side


def calc_totals(side: Side) -> Side:
    """Recompute cumulative totals in place, in the side's current order."""
    previous: float | None = None
    for level in side:
        level["total"] = level["amount"] if previous is None else add(level["amount"], previous)
        previous = level["total"]
    return side


def normalize(side: Side, direction: BookSide | str) -> Side:
    """Sort a side and recompute its cumulative totals, in place.

    Idempotent: normalizing an already normalized side leaves it unchanged.
    An empty side is valid and stays empty.

    Args:
        side: Level dicts, mutated in place
        direction: BookSide.ASKS or BookSide.BIDS

    Returns:
        The same list, for chaining
    """
    return calc_totals(sort_side(side, direction))


def normalize_book(book: MutableMapping[str, Side]) -> MutableMapping[str, Side]:
    """Normalize whichever of "bids" / "asks" the book has."""
    for direction in BookSide:
        if direction.value in book:
            normalize(book[direction.value], direction)
    return book


def levels_from_pairs(pairs: Iterable[Sequence[float]]) -> Side:
    """Build level dicts from (price, amount) pairs, totals left at zero."""
    return [PriceLevel(price=price, amount=amount).model_dump() for price, amount in pairs]


def copy_side(side: Iterable[Level]) -> Side:
    """Copy a side so display transforms can't reach canonical state."""
    return [dict(level) for level in side]


def aggregate_by_tick(tick_size: float | str, levels: Iterable[Level]) -> Side:
    """Group levels into price buckets of width `tick_size`.

    Each level lands in the bucket `floor(price / tick_size) * tick_size`.
    A bucket's amount is the sum of its members' amounts, and its total is
    the total of the LAST member seen, which keeps the feed's deepest
    cumulative liquidity instead of re-deriving it.

    Buckets come out in first-appearance order; pass a normalized side to get
    sorted buckets.

    Example (tick 10):
        [(101, 2, 5), (109, 3, 8), (115, 1, 1)] -> [(100, 5, 8), (110, 1, 1)]

    Raises:
        ValueError: If tick_size is not positive
    """
    if float(tick_size) <= 0:
        raise ValueError(f"Tick size must be positive, got {tick_size}")

    buckets: dict[float, Level] = {}
    for level in levels:
        price = floor_to_step(level["price"], tick_size)
        bucket = buckets.get(price)
        if bucket is None:
            buckets[price] = {
                "price": price,
                "amount": level["amount"],
                "total": level.get("total", 0.0),
            }
        else:
            bucket["amount"] = add(bucket["amount"], level["amount"])
            bucket["total"] = level.get("total", 0.0)

    return list(buckets.values())


def to_quote_currency(levels: Side, decimals: int = DEFAULT_QUOTE_DECIMALS) -> Side:
    """Replace each amount with its quote-currency value (amount x price).

    Display-only and irreversible: mutates `levels` in place, so pass a copy
    (see copy_side). Price and total are left untouched.
    """
    for level in levels:
        level["amount"] = round_half_up(multiply(level["amount"], level["price"]), decimals)
    return levels


# =============================================================================
# TOP OF BOOK
# =============================================================================


def best_price(side: Sequence[Level]) -> float | None:
    """Price of the first level of a normalized side."""
    return side[0]["price"] if side else None


def spread(book: MutableMapping[str, Side]) -> float | None:
    """Best ask minus best bid, None if either side is empty."""
    bid = best_price(book.get(BookSide.BIDS.value, []))
    ask = best_price(book.get(BookSide.ASKS.value, []))
    if bid is None or ask is None:
        return None
    return subtract(ask, bid)


def mid_price(book: MutableMapping[str, Side]) -> float | None:
    bid = best_price(book.get(BookSide.BIDS.value, []))
    ask = best_price(book.get(BookSide.ASKS.value, []))
    if bid is None or ask is None:
        return None
    # x 0.5 rather than / 2 so the extra half-tick digit survives rounding
    return multiply(add(bid, ask), 0.5)
