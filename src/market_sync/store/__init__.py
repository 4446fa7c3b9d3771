"""Store module - canonical state tree and the change commands that patch it."""

from market_sync.store.commands import (
    ChangeCommand,
    RemoveArrayElement,
    Update,
    remove_array_element,
    to_command,
    update,
)
from market_sync.store.patch_store import Observer, PatchStore
from market_sync.store.paths import (
    Index,
    Key,
    Path,
    PathLike,
    account_path,
    coerce_path,
    format_path,
    latency_path,
    loaded_path,
    market_path,
    order_book_path,
    order_book_side_path,
    parse_path,
    ticker_path,
)

__all__ = [
    # Store
    "PatchStore",
    "Observer",
    # Commands
    "ChangeCommand",
    "Update",
    "RemoveArrayElement",
    "update",
    "remove_array_element",
    "to_command",
    # Paths
    "Key",
    "Index",
    "Path",
    "PathLike",
    "parse_path",
    "coerce_path",
    "format_path",
    "loaded_path",
    "latency_path",
    "ticker_path",
    "market_path",
    "order_book_path",
    "order_book_side_path",
    "account_path",
]
