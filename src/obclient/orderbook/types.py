"""Value types for the local order book."""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import NamedTuple, Optional

Price = float
Size = float


class SerializationDefect(RuntimeError):
    """The book summary could not be encoded. Always a bug, never retried."""


@dataclass(frozen=True)
class Entry:
    price: Price
    size: Size


# An empty side reports these instead of a level.
EMPTY_ASK = Entry(price=math.inf, size=0.0)
EMPTY_BID = Entry(price=0.0, size=0.0)


class PriceLevel(NamedTuple):
    price: Price
    size: Size
    update_id: int


class LevelState(NamedTuple):
    size: Size
    update_id: int


@dataclass(frozen=True)
class OrderBookSummary:
    best_bid: Entry
    best_ask: Entry
    spread: float

    @property
    def has_bid(self) -> bool:
        return self.best_bid != EMPTY_BID

    @property
    def has_ask(self) -> bool:
        return self.best_ask != EMPTY_ASK

    @property
    def quoted_spread(self) -> Optional[float]:
        """Spread, or None when either side of the book is empty."""
        if not (self.has_bid and self.has_ask):
            return None
        return self.spread
