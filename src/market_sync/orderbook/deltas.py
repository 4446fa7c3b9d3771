"""Turn price-level deltas into state tree changes.

Depth feeds send a snapshot, then deltas of the form (side, price, amount):
- amount == 0 removes the level at that price
- an unknown price with amount > 0 adds a level
- a known price gets its amount replaced

This module holds the exchange-agnostic part of that handling; parsing the
exchange's wire format into deltas belongs to the feed layer.
"""

from collections.abc import Iterable, Sequence
from typing import Any

from market_sync.core.models import BookSide, ExchangeName, PriceLevel
from market_sync.orderbook.engine import Level, Side, copy_side, levels_from_pairs, normalize
from market_sync.store.commands import RemoveArrayElement, Update
from market_sync.store.patch_store import PatchStore
from market_sync.store.paths import Index, Key, PathLike, coerce_path, order_book_path

Delta = tuple[BookSide | str, float, float]


def _find_level(levels: Sequence[Level], price: float) -> int | None:
    for index, level in enumerate(levels):
        if level["price"] == price:
            return index
    return None


def apply_level_delta(levels: Side, price: float, amount: float) -> Side:
    """Apply one delta to a side held locally (not in the store).

    Totals and ordering are stale afterwards; normalize before use.
    """
    index = _find_level(levels, price)
    if index is None:
        if amount > 0:
            levels.append(PriceLevel(price=price, amount=amount).model_dump())
    elif amount == 0:
        del levels[index]
    else:
        levels[index]["amount"] = amount
    return levels


def level_delta_commands(
    path: PathLike,
    levels: Sequence[Level],
    price: float,
    amount: float,
) -> list[Update | RemoveArrayElement]:
    """Commands applying one delta to the side stored at `path`.

    Args:
        path: Path of the side list in the state tree
        levels: Current contents of that side (used to locate the price)
        price: Level price
        amount: New amount at that price, 0 to remove

    Returns:
        Zero or one command
    """
    side_path = coerce_path(path)
    index = _find_level(levels, price)

    if index is None:
        if amount <= 0:
            return []
        return [
            Update(
                path=side_path + (Index(len(levels)),),
                value=PriceLevel(price=price, amount=amount).model_dump(),
            )
        ]
    if amount == 0:
        return [RemoveArrayElement(path=side_path, index=index)]
    return [Update(path=side_path + (Index(index), Key("amount")), value=amount)]


def snapshot_commands(
    path: PathLike,
    bids: Iterable[Sequence[float]],
    asks: Iterable[Sequence[float]],
) -> list[Update]:
    """Commands replacing a whole book with normalized (price, amount) pairs."""
    book_path = coerce_path(path)
    return [
        Update(
            path=book_path + (Key(BookSide.BIDS.value),),
            value=normalize(levels_from_pairs(bids), BookSide.BIDS),
        ),
        Update(
            path=book_path + (Key(BookSide.ASKS.value),),
            value=normalize(levels_from_pairs(asks), BookSide.ASKS),
        ),
    ]


def apply_book_deltas(
    store: PatchStore,
    exchange: ExchangeName | str,
    symbol: str,
    deltas: Iterable[Delta],
) -> dict[str, Any]:
    """Apply a batch of deltas to one book and renormalize it.

    The deltas are applied to copies of both sides, which are normalized and
    written back in a single batch, so observers see one consistent book.

    Returns:
        The book as stored after the batch
    """
    book_path = order_book_path(exchange, symbol)
    current = store.get(book_path) or {}
    sides = {side: copy_side(current.get(side.value, [])) for side in BookSide}

    for side, price, amount in deltas:
        apply_level_delta(sides[BookSide(side)], price, amount)

    store.apply_changes(
        Update(path=book_path + (Key(side.value),), value=normalize(levels, side))
        for side, levels in sides.items()
    )
    return store.get(book_path)
