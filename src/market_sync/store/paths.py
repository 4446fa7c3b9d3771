"""Typed addressing into the state tree.

A path is a tuple of segments, each either a named field (`Key`) or a
position in a sequence (`Index`):

    ("bybit", "public", "order_books", "BTCUSDT", "asks", 0)
    -> (Key("bybit"), Key("public"), Key("order_books"), Key("BTCUSDT"),
        Key("asks"), Index(0))

The schema-aware builders at the bottom cover every fixed location in the
tree. Dotted strings ("bybit.public.tickers.BTCUSDT") are accepted as a
generic fallback; there every all-digit segment becomes an `Index`, so
numeric-looking dict keys (e.g. Polymarket token ids) must be addressed with
tuples or the builders instead.
"""

from collections.abc import Sequence
from dataclasses import dataclass

from market_sync.core.models import BookSide, ExchangeName


@dataclass(frozen=True)
class Key:
    """Named field in a dict container."""

    name: str

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class Index:
    """Position in a list container."""

    position: int

    def __post_init__(self) -> None:
        if self.position < 0:
            raise ValueError(f"Sequence index must be non-negative, got {self.position}")

    def __str__(self) -> str:
        return str(self.position)


PathSegment = Key | Index
Path = tuple[PathSegment, ...]
PathLike = str | Sequence[PathSegment | str | int]


def parse_path(dotted: str) -> Path:
    """Parse a dotted path string, turning all-digit segments into indices."""
    if not dotted:
        raise ValueError("Path must not be empty")
    return tuple(
        Index(int(part)) if part.isdecimal() else Key(part) for part in dotted.split(".")
    )


def coerce_path(path: PathLike) -> Path:
    """Normalize any accepted path form into a tuple of segments.

    Args:
        path: Dotted string, or a sequence of Key/Index/str/int. Raw `str`
            items are always field names and raw `int` items always indices.

    Returns:
        Tuple of Key/Index segments
    """
    if isinstance(path, str):
        return parse_path(path)

    segments: list[PathSegment] = []
    for part in path:
        if isinstance(part, (Key, Index)):
            segments.append(part)
        elif isinstance(part, bool):
            raise TypeError(f"Invalid path segment: {part!r}")
        elif isinstance(part, int):
            segments.append(Index(part))
        elif isinstance(part, str):
            segments.append(Key(part))
        else:
            raise TypeError(f"Invalid path segment: {part!r}")

    if not segments:
        raise ValueError("Path must not be empty")
    return tuple(segments)


def format_path(path: Sequence[PathSegment]) -> str:
    return ".".join(str(segment) for segment in path)


def is_related(a: Path, b: Path) -> bool:
    """True when one path is a prefix of (or equal to) the other."""
    shortest = min(len(a), len(b))
    return a[:shortest] == b[:shortest]


# =============================================================================
# SCHEMA PATHS
# =============================================================================


def _exchange(exchange: ExchangeName | str) -> Key:
    return Key(ExchangeName(exchange).value)


def loaded_path(exchange: ExchangeName | str, table: str) -> Path:
    """Flag telling whether a public table finished its initial load."""
    return (_exchange(exchange), Key("loaded"), Key(table))


def latency_path(exchange: ExchangeName | str) -> Path:
    return (_exchange(exchange), Key("public"), Key("latency"))


def ticker_path(exchange: ExchangeName | str, symbol: str) -> Path:
    return (_exchange(exchange), Key("public"), Key("tickers"), Key(symbol))


def market_path(exchange: ExchangeName | str, symbol: str) -> Path:
    return (_exchange(exchange), Key("public"), Key("markets"), Key(symbol))


def order_book_path(exchange: ExchangeName | str, symbol: str) -> Path:
    return (_exchange(exchange), Key("public"), Key("order_books"), Key(symbol))


def order_book_side_path(
    exchange: ExchangeName | str, symbol: str, side: BookSide | str
) -> Path:
    return order_book_path(exchange, symbol) + (Key(BookSide(side).value),)


def account_path(exchange: ExchangeName | str, account_id: str) -> Path:
    return (_exchange(exchange), Key("private"), Key(account_id))
