import math

from obclient.orderbook import (
    EMPTY_ASK,
    EMPTY_BID,
    Entry,
    OrderBook,
    PriceLevel,
    SideBook,
    changed,
)


def E(price, size):
    return Entry(price=price, size=size)


def test_new_book_has_sentinels():
    book = OrderBook()
    assert book.best_ask == EMPTY_ASK
    assert book.best_bid == EMPTY_BID
    assert math.isinf(book.best_ask.price)
    assert book.best_bid.price == 0
    assert math.isinf(book.spread)


def test_upsert_is_absolute_replacement():
    book = OrderBook()
    book.update(1, asks=[E(101.0, 3.0)], bids=[])
    book.update(2, asks=[E(101.0, 3.0)], bids=[])
    assert len(book.asks) == 1
    assert book.asks.levels[101.0].size == 3.0

    book.update(3, asks=[E(101.0, 1.5)], bids=[])
    assert book.asks.levels[101.0].size == 1.5
    assert book.asks.update_id_at(101.0) == 3


def test_zero_size_removes_level():
    book = OrderBook()
    book.update(1, asks=[E(101.0, 2.0), E(102.0, 4.0)], bids=[E(99.0, 1.0)])
    assert book.best_ask == E(101.0, 2.0)

    book.update(2, asks=[E(101.0, 0.0)], bids=[])
    assert 101.0 not in book.asks
    assert book.best_ask == E(102.0, 4.0)


def test_removing_missing_level_is_noop():
    side = SideBook("bid")
    side.apply([PriceLevel(10.0, 0.0, 1)])
    assert len(side) == 0
    assert side.best() == EMPTY_BID


def test_best_levels_are_min_ask_and_max_bid():
    book = OrderBook()
    book.update(
        7,
        asks=[E(105.0, 1.0), E(103.0, 2.0), E(104.0, 3.0)],
        bids=[E(99.0, 1.0), E(101.0, 2.0), E(100.0, 3.0)],
    )
    assert book.best_ask == E(103.0, 2.0)
    assert book.best_bid == E(101.0, 2.0)
    assert book.spread == 2.0


def test_empty_side_yields_sentinel():
    book = OrderBook()
    book.update(1, asks=[], bids=[E(100.0, 1.0)])
    assert book.best_ask == EMPTY_ASK
    book.update(2, asks=[E(101.0, 1.0)], bids=[E(100.0, 0.0)])
    assert book.best_bid == EMPTY_BID


def test_preview_orders_levels_by_side():
    asks = SideBook("ask")
    asks.apply([PriceLevel(p, 1.0, 1) for p in (5.0, 3.0, 4.0)])
    bids = SideBook("bid")
    bids.apply([PriceLevel(p, 2.0, 1) for p in (1.0, 2.0, 0.5)])
    assert asks.preview(2) == [(3.0, 1.0), (4.0, 1.0)]
    assert bids.preview() == [(2.0, 2.0), (1.0, 2.0), (0.5, 2.0)]


def test_update_reports_change_only_when_top_moves():
    book = OrderBook()
    assert book.update(1, asks=[E(101.0, 1.0)], bids=[E(99.0, 1.0)]) is True
    # deeper level only: top of book unchanged
    assert book.update(2, asks=[E(105.0, 4.0)], bids=[E(90.0, 2.0)]) is False
    # same top rewritten with a newer id: still unchanged
    assert book.update(3, asks=[E(101.0, 1.0)], bids=[]) is False
    # size change at the top
    assert book.update(4, asks=[], bids=[E(99.0, 2.0)]) is True
    # new best price
    assert book.update(5, asks=[E(100.5, 1.0)], bids=[]) is True


def test_changed_compares_each_component():
    a, b = E(101.0, 1.0), E(99.0, 1.0)
    assert changed(a, b, 2.0, a, b, 2.0) is False
    assert changed(a, b, 2.0, E(101.0, 2.0), b, 2.0) is True
    assert changed(a, b, 2.0, a, E(98.0, 1.0), 3.0) is True
    assert changed(a, b, 2.0, a, b, 2.5) is True
    assert changed(EMPTY_ASK, EMPTY_BID, math.inf, EMPTY_ASK, EMPTY_BID, math.inf) is False
