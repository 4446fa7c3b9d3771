"""Data models for the canonical market/account state tree.

The state tree itself holds plain dicts and lists (so it can be patched by
path and mirrored by observers); these models describe its schema and are
used to build defaults and to shape the records producers write:

    exchange id
      -> loaded:  {markets, tickers}
      -> public:  {latency, tickers, markets, order_books}
      -> private: {account id -> ExchangeAccountMemory}

Producers build a record with the model and store `.model_dump()`.
"""

from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field


class ExchangeName(str, Enum):
    BYBIT = "bybit"
    BINANCE = "binance"
    HYPERLIQUID = "hyperliquid"
    ONCHAIN = "onchain"
    POLYMARKET = "polymarket"


class BookSide(str, Enum):
    """Side of an order book. Asks sort ascending, bids descending."""

    BIDS = "bids"
    ASKS = "asks"

    @property
    def descending(self) -> bool:
        return self is BookSide.BIDS


class PositionSide(str, Enum):
    LONG = "long"
    SHORT = "short"


class OrderSide(str, Enum):
    BUY = "buy"
    SELL = "sell"


class OrderStatus(str, Enum):
    OPEN = "open"
    CLOSED = "closed"
    CANCELED = "canceled"


class OrderType(str, Enum):
    MARKET = "market"
    LIMIT = "limit"
    STOP_LOSS = "stop_market"
    TAKE_PROFIT = "take_profit_market"
    TRAILING_STOP_LOSS = "trailing_stop_market"


class PriceLevel(BaseModel):
    """One depth-of-book entry.

    `total` is the cumulative amount at or better than `price`, recomputed by
    the order book engine after every mutation of the side.
    """

    price: float = Field(description="Price at this level")
    amount: float = Field(description="Size resting at this level")
    total: float = Field(default=0.0, description="Cumulative size up to this level")


class OrderBook(BaseModel):
    """Both sides of one symbol's book."""

    bids: list[PriceLevel] = Field(default_factory=list)
    asks: list[PriceLevel] = Field(default_factory=list)


class Ticker(BaseModel):
    id: str
    symbol: str
    clean_symbol: str
    bid: float = 0.0
    ask: float = 0.0
    last: float = 0.0
    mark: float = 0.0
    index: float = 0.0
    percentage: float = 0.0
    open_interest: float = 0.0
    funding_rate: float = 0.0
    volume: float = 0.0
    quote_volume: float = 0.0


class MarketPrecision(BaseModel):
    """Exchange-defined increments: lot size (amount) and tick size (price)."""

    amount: float = Field(description="Lot size")
    price: float = Field(description="Tick size")


class AmountLimits(BaseModel):
    min: float = 0.0
    max: float = 0.0
    max_market: float = 0.0


class LeverageLimits(BaseModel):
    min: float = 1.0
    max: float = 1.0


class MarketLimits(BaseModel):
    amount: AmountLimits = Field(default_factory=AmountLimits)
    leverage: LeverageLimits = Field(default_factory=LeverageLimits)


class Market(BaseModel):
    id: str
    symbol: str
    base: str
    quote: str
    active: bool = True
    precision: MarketPrecision
    limits: MarketLimits = Field(default_factory=MarketLimits)


class Balance(BaseModel):
    used: float = 0.0
    free: float = 0.0
    total: float = 0.0
    upnl: float = 0.0


class Position(BaseModel):
    symbol: str
    side: PositionSide
    entry_price: float
    notional: float
    leverage: float
    upnl: float
    contracts: float
    liquidation_price: float
    is_hedged: bool | None = None


class Order(BaseModel):
    id: str
    parent_id: str | None = None
    status: OrderStatus
    symbol: str
    type: OrderType
    side: OrderSide
    price: float
    amount: float
    filled: float = 0.0
    remaining: float = 0.0
    reduce_only: bool = False


class FillData(BaseModel):
    side: OrderSide
    amount: float
    symbol: str
    price: float | Literal["MARKET"]


class Notification(BaseModel):
    type: Literal["order_fill"] = "order_fill"
    data: FillData


class ExchangeAccountMemory(BaseModel):
    """Private state for one account, stored under `private.<account id>`."""

    balance: Balance = Field(default_factory=Balance)
    positions: list[Position] = Field(default_factory=list)
    orders: list[Order] = Field(default_factory=list)
    notifications: list[Notification] = Field(default_factory=list)


class LoadedFlags(BaseModel):
    markets: bool = False
    tickers: bool = False


class PublicMemory(BaseModel):
    latency: float = 0
    tickers: dict[str, Ticker] = Field(default_factory=dict)
    markets: dict[str, Market] = Field(default_factory=dict)
    order_books: dict[str, OrderBook] = Field(default_factory=dict)


class ExchangeMemory(BaseModel):
    """Schema of one exchange's subtree in the state tree."""

    loaded: LoadedFlags = Field(default_factory=LoadedFlags)
    public: PublicMemory = Field(default_factory=PublicMemory)
    private: dict[str, ExchangeAccountMemory] = Field(default_factory=dict)


def default_store_state(
    exchanges: list[ExchangeName] | None = None,
) -> dict[str, dict]:
    """Build a fresh schema-default state tree.

    Args:
        exchanges: Exchanges to include. Defaults to every ExchangeName.

    Returns:
        Plain nested dicts, one ExchangeMemory subtree per exchange id
    """
    names = list(ExchangeName) if exchanges is None else exchanges
    return {ExchangeName(name).value: ExchangeMemory().model_dump() for name in names}
