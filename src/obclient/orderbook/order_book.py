"""
Price-level order book with top-of-book caching and uncrossing.

Every level stores the id of the feed message that last wrote it. When a
batch leaves the book crossed, those ids decide which side is stale:
the older level is dropped, and a cross written by a single message is
netted off as an implied trade.

The book is single-writer. Batches must arrive in feed order.
"""
from __future__ import annotations

import json
import logging
from typing import Dict, Iterable, List, Sequence, Tuple

from .types import (
    EMPTY_ASK,
    EMPTY_BID,
    Entry,
    LevelState,
    OrderBookSummary,
    PriceLevel,
    SerializationDefect,
)

log = logging.getLogger(__name__)

ASK = "ask"
BID = "bid"


class SideBook:
    """One side of the book: price -> (size, update_id)."""

    def __init__(self, side: str):
        if side not in (ASK, BID):
            raise ValueError(f"unknown side: {side}")
        self.side = side
        self.levels: Dict[float, LevelState] = {}

    def __len__(self) -> int:
        return len(self.levels)

    def __contains__(self, price) -> bool:
        return price in self.levels

    def apply(self, deltas: Iterable[PriceLevel]) -> None:
        # absolute sizes; a zero size removes the level
        for price, size, update_id in deltas:
            if size == 0:
                self.levels.pop(price, None)
            else:
                self.levels[price] = LevelState(size, update_id)

    def set(self, price: float, size: float, update_id: int) -> None:
        self.levels[price] = LevelState(size, update_id)

    def remove(self, price: float) -> None:
        self.levels.pop(price, None)

    def update_id_at(self, price: float) -> int:
        return self.levels[price].update_id

    def best(self) -> Entry:
        if not self.levels:
            return EMPTY_ASK if self.side == ASK else EMPTY_BID
        pick = min if self.side == ASK else max
        price = pick(self.levels)
        return Entry(price=price, size=self.levels[price].size)

    def preview(self, max_n: int = 5) -> List[Tuple[float, float]]:
        """Top `max_n` levels in book order (asks ascending, bids descending)."""
        ordered = sorted(self.levels, reverse=(self.side == BID))[:max_n]
        return [(p, self.levels[p].size) for p in ordered]


class OrderBook:
    """
    Usage:
        book = OrderBook()
        if book.update(message_id, asks, bids):
            print(book.to_json())
    """

    def __init__(self):
        self.asks = SideBook(ASK)
        self.bids = SideBook(BID)
        self.best_ask: Entry = EMPTY_ASK
        self.best_bid: Entry = EMPTY_BID

    @property
    def spread(self) -> float:
        return compute_spread(self.best_ask, self.best_bid)

    def update(
        self,
        update_id: int,
        asks: Sequence[Entry],
        bids: Sequence[Entry],
        uncross: bool = True,
    ) -> bool:
        """Apply one feed message and report whether the top of book changed."""
        prev_ask, prev_bid = self.best_ask, self.best_bid
        prev_spread = compute_spread(prev_ask, prev_bid)

        self.asks.apply(PriceLevel(e.price, e.size, update_id) for e in asks)
        self.bids.apply(PriceLevel(e.price, e.size, update_id) for e in bids)

        best_ask, best_bid, spread = resolve(self, uncross)
        return changed(prev_ask, prev_bid, prev_spread, best_ask, best_bid, spread)

    def summarize(self) -> OrderBookSummary:
        return summarize(self)

    def to_json(self) -> str:
        return serialize(self.summarize())

    def __str__(self) -> str:
        return self.to_json()


def compute_spread(best_ask: Entry, best_bid: Entry) -> float:
    return best_ask.price - best_bid.price


def resolve(book: OrderBook, uncross: bool) -> Tuple[Entry, Entry, float]:
    """Recompute the cached best levels, repairing a crossed book if asked to.

    Returns (best_ask, best_bid, spread) and stores the best levels on `book`.
    """
    asks, bids = book.asks, book.bids
    best_ask, best_bid = asks.best(), bids.best()
    spread = compute_spread(best_ask, best_bid)

    # See https://docs.dydx.exchange/api_integration-guides/how_to_uncross_orderbook
    count = 0
    while uncross and spread <= 0 and len(asks) > 0 and len(bids) > 0:
        count += 1
        log.warning("crossing detected; uncrossing count=%d", count)
        log.debug(
            "crossed levels ask=%s bid=%s asks=%s bids=%s",
            best_ask, best_bid, asks.preview(), bids.preview(),
        )

        ask_id = asks.update_id_at(best_ask.price)
        bid_id = bids.update_id_at(best_bid.price)

        if bid_id < ask_id:
            bids.remove(best_bid.price)
        elif bid_id > ask_id:
            asks.remove(best_ask.price)
        elif best_bid.size > best_ask.size:
            asks.remove(best_ask.price)
            bids.set(best_bid.price, best_bid.size - best_ask.size, bid_id)
        elif best_bid.size < best_ask.size:
            bids.remove(best_bid.price)
            asks.set(best_ask.price, best_ask.size - best_bid.size, ask_id)
        else:
            asks.remove(best_ask.price)
            bids.remove(best_bid.price)

        best_ask, best_bid = asks.best(), bids.best()
        spread = compute_spread(best_ask, best_bid)

    book.best_ask = best_ask
    book.best_bid = best_bid
    return best_ask, best_bid, spread


def changed(
    prev_ask: Entry,
    prev_bid: Entry,
    prev_spread: float,
    new_ask: Entry,
    new_bid: Entry,
    new_spread: float,
) -> bool:
    return prev_ask != new_ask or prev_bid != new_bid or prev_spread != new_spread


def summarize(book: OrderBook) -> OrderBookSummary:
    return OrderBookSummary(
        best_bid=book.best_bid,
        best_ask=book.best_ask,
        spread=compute_spread(book.best_ask, book.best_bid),
    )


def format_number(x: float) -> str:
    """Shortest round-trip decimal text; integral values drop the '.0'."""
    text = repr(float(x))
    if text.endswith(".0"):
        text = text[:-2]
    return text


def _entry_dict(entry: Entry) -> dict:
    return {"price": format_number(entry.price), "size": format_number(entry.size)}


def serialize(summary: OrderBookSummary) -> str:
    """One-line JSON: best_bid, best_ask, spread. Empty sides encode as null."""
    payload = {
        "best_bid": _entry_dict(summary.best_bid) if summary.has_bid else None,
        "best_ask": _entry_dict(summary.best_ask) if summary.has_ask else None,
        "spread": summary.quoted_spread,
    }
    try:
        return json.dumps(payload, allow_nan=False, separators=(",", ":"))
    except (TypeError, ValueError) as e:
        raise SerializationDefect(f"Could not marshal orderbook summary: {summary!r}") from e
