from .order_book import (
    ASK,
    BID,
    OrderBook,
    SideBook,
    changed,
    compute_spread,
    resolve,
    serialize,
    summarize,
)
from .types import (
    EMPTY_ASK,
    EMPTY_BID,
    Entry,
    LevelState,
    OrderBookSummary,
    PriceLevel,
    SerializationDefect,
)

__all__ = [
    "ASK",
    "BID",
    "EMPTY_ASK",
    "EMPTY_BID",
    "Entry",
    "LevelState",
    "OrderBook",
    "OrderBookSummary",
    "PriceLevel",
    "SerializationDefect",
    "SideBook",
    "changed",
    "compute_spread",
    "resolve",
    "serialize",
    "summarize",
]
