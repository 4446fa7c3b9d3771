"""Exception types raised by market_sync."""


class MarketSyncError(Exception):
    """Base class for all market_sync errors."""


class PathError(MarketSyncError, TypeError):
    """A state path addressed the wrong kind of container.

    Raised when a sequence index is applied to a named-field container, a field
    name is applied to a sequence, or a path walks into a scalar. Commands come
    from a single trusted producer, so this is always a programming defect.
    """

    def __init__(self, message: str, path: str | None = None) -> None:
        super().__init__(message if path is None else f"{message} (path: {path})")
        self.path = path


class KeyFormatError(MarketSyncError, ValueError):
    """Private key material could not be parsed as a secp256k1 key."""
