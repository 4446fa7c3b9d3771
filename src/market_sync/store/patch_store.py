"""Canonical in-memory state tree, mutated only through command batches.

Pattern:
1. Session start: the tree is built from schema defaults
2. Feed layers apply ordered batches of change commands
3. Observers are notified once per batch, after every command landed
4. On reconnect: reset() purges everything back to defaults

Usage:
    from market_sync.store import PatchStore, update

    store = PatchStore()
    unsubscribe = store.subscribe(redraw, path="bybit.public.tickers")
    store.apply_changes([
        update("bybit.public.tickers.BTCUSDT", ticker.model_dump()),
        update("bybit.public.latency", 12),
    ])  # redraw() runs once, with the tickers table

The store does no locking. One logical writer per subtree is expected;
callers writing overlapping subtrees from several tasks must serialize their
own batches.
"""

import copy
import logging
from collections.abc import Callable, Iterable, Mapping, MutableMapping, MutableSequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from market_sync.core.errors import PathError
from market_sync.core.models import ExchangeName, default_store_state
from market_sync.store.commands import RemoveArrayElement, Update, to_command
from market_sync.store.paths import Index, Key, Path, PathLike, coerce_path, format_path, is_related

if TYPE_CHECKING:
    from market_sync.config import MarketSyncConfig

logger = logging.getLogger(__name__)

Observer = Callable[[Any], None]

_MISSING = object()


@dataclass(eq=False)
class _Subscription:
    callback: Observer
    path: Path | None


def _child(container: Any, segment: Key | Index, path: Path) -> Any:
    """Look up one segment, returning _MISSING when the slot is absent."""
    if isinstance(segment, Key):
        if not isinstance(container, MutableMapping):
            raise PathError(
                f"Field {segment.name!r} applied to {type(container).__name__}",
                format_path(path),
            )
        return container.get(segment.name, _MISSING)

    if not isinstance(container, MutableSequence):
        raise PathError(
            f"Sequence index {segment.position} applied to {type(container).__name__}",
            format_path(path),
        )
    if segment.position < len(container):
        return container[segment.position]
    return _MISSING


def _assign(container: Any, segment: Key | Index, value: Any, path: Path) -> None:
    if isinstance(segment, Key):
        if not isinstance(container, MutableMapping):
            raise PathError(
                f"Field {segment.name!r} applied to {type(container).__name__}",
                format_path(path),
            )
        container[segment.name] = value
        return

    if not isinstance(container, MutableSequence):
        raise PathError(
            f"Sequence index {segment.position} applied to {type(container).__name__}",
            format_path(path),
        )
    if segment.position < len(container):
        container[segment.position] = value
    elif segment.position == len(container):
        container.append(value)
    else:
        raise PathError(
            f"Sequence index {segment.position} is past the end of a list "
            f"of length {len(container)}",
            format_path(path),
        )


class PatchStore:
    """Owns one state tree and applies change batches to it.

    Explicitly constructed and owned by a session; there is no process-wide
    instance.
    """

    def __init__(self, exchanges: list[ExchangeName] | None = None) -> None:
        """Initialize the tree from schema defaults.

        Args:
            exchanges: Exchange subtrees to create. Defaults to all exchanges.
        """
        self._defaults = default_store_state(exchanges)
        self._memory: dict[str, Any] = copy.deepcopy(self._defaults)
        self._subscriptions: list[_Subscription] = []

    @classmethod
    def from_config(cls, config: "MarketSyncConfig") -> "PatchStore":
        return cls(exchanges=config.exchanges)

    @property
    def memory(self) -> dict[str, Any]:
        """Live state tree. Read-only by contract: mutate via apply_changes."""
        return self._memory

    def snapshot(self) -> dict[str, Any]:
        """Deep copy of the current tree, safe to keep across batches."""
        return copy.deepcopy(self._memory)

    def get(self, path: PathLike, default: Any = None) -> Any:
        """Read the value at `path`, or `default` if any segment is absent.

        Raises:
            PathError: If the path indexes into the wrong kind of container
        """
        value = self._resolve(coerce_path(path))
        return default if value is _MISSING else value

    # =========================================================================
    # MUTATION
    # =========================================================================

    def apply_changes(
        self, commands: Iterable[Update | RemoveArrayElement | Mapping[str, Any]]
    ) -> None:
        """Apply a batch of commands in order, then notify observers once.

        Args:
            commands: Command models or their dict forms

        Raises:
            PathError: If a command path addresses the wrong container kind.
                Commands before the failing one stay applied and no
                notification is sent.
            pydantic.ValidationError: If a dict is not a valid command
            Exception: The first error raised by an observer, after every
                observer has been called
        """
        batch = [to_command(raw) for raw in commands]
        if not batch:
            return

        for command in batch:
            if isinstance(command, Update):
                self._apply_update(command)
            else:
                self._apply_removal(command)

        logger.debug("Applied batch of %d change(s)", len(batch))
        self._notify([command.path for command in batch])

    def reset(self) -> None:
        """Replace the whole tree with a fresh copy of the schema defaults.

        Call on reconnect so no partial data from the dropped connection
        survives. Every observer is notified.
        """
        self._memory = copy.deepcopy(self._defaults)
        logger.debug("Store reset to defaults (%d exchange(s))", len(self._memory))
        self._notify(None)

    def _apply_update(self, command: Update) -> None:
        path = command.path
        parent: Any = self._memory
        for depth, segment in enumerate(path[:-1]):
            child = _child(parent, segment, path)
            if child is _MISSING:
                child = [] if isinstance(path[depth + 1], Index) else {}
                _assign(parent, segment, child, path)
            parent = child
        _assign(parent, path[-1], command.value, path)

    def _apply_removal(self, command: RemoveArrayElement) -> None:
        target = self._resolve(command.path)
        if target is _MISSING:
            logger.debug("Ignoring removal at %s: nothing there", format_path(command.path))
            return
        if not isinstance(target, MutableSequence):
            raise PathError(
                f"removeArrayElement target is {type(target).__name__}, not a list",
                format_path(command.path),
            )

        if 0 <= command.index < len(target):
            del target[command.index]
        else:
            logger.debug(
                "Ignoring out-of-range removal index %d at %s (length %d)",
                command.index,
                format_path(command.path),
                len(target),
            )

    def _resolve(self, path: Path) -> Any:
        current: Any = self._memory
        for segment in path:
            current = _child(current, segment, path)
            if current is _MISSING:
                return _MISSING
        return current

    # =========================================================================
    # OBSERVERS
    # =========================================================================

    def subscribe(self, callback: Observer, path: PathLike | None = None) -> Callable[[], None]:
        """Register an observer, called once after each relevant batch.

        An observer that raises does not stop the others; the first error
        is re-raised from apply_changes (or reset) once all have run.

        Args:
            callback: Receives the subtree at `path` (None if it doesn't
                exist), or the whole tree when no path is given
            path: Only batches touching this path (an ancestor, the path
                itself or a descendant) trigger the callback

        Returns:
            Function that removes this observer
        """
        subscription = _Subscription(
            callback=callback,
            path=None if path is None else coerce_path(path),
        )
        self._subscriptions.append(subscription)

        def unsubscribe() -> None:
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)

        return unsubscribe

    def _notify(self, touched: list[Path] | None) -> None:
        notified = 0
        first_error: Exception | None = None
        for subscription in list(self._subscriptions):
            if subscription.path is None:
                payload = self._memory
            elif touched is None or any(is_related(subscription.path, p) for p in touched):
                value = self._resolve(subscription.path)
                payload = None if value is _MISSING else value
            else:
                continue

            try:
                subscription.callback(payload)
            except Exception as exc:
                logger.error("Observer %r raised: %s", subscription.callback, exc)
                if first_error is None:
                    first_error = exc
            notified += 1

        if notified:
            logger.debug("Notified %d observer(s)", notified)
        if first_error is not None:
            raise first_error
