"""
Pydantic models for dYdX v4 indexer websocket frames.

Book frames are normalized into an OrderBookUpdate: the frame's message id
plus absolute-size ask and bid levels.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from obclient.orderbook import Entry

ORDERBOOK_CHANNEL = "v4_orderbook"

CONNECTED = "connected"
SUBSCRIBED = "subscribed"
UNSUBSCRIBED = "unsubscribed"
CHANNEL_DATA = "channel_data"
CHANNEL_BATCH_DATA = "channel_batch_data"
ERROR = "error"


class FeedMessageError(Exception):
    """A feed frame could not be turned into a book update."""


class MalformedMessage(FeedMessageError):
    """Frame is not valid JSON or does not have the expected shape."""


class MalformedLevel(FeedMessageError):
    """A price or size field is not a number."""


class UnexpectedMessageKind(FeedMessageError):
    """Frame type is none of the kinds this client understands."""


class FeedError(FeedMessageError):
    """The server reported an error on the connection."""


class DydxMessage(BaseModel):
    model_config = ConfigDict(extra="ignore")

    type: str
    id: Optional[str] = None
    channel: Optional[str] = None
    connection_id: Optional[str] = None
    message_id: int = 0
    contents: Any = None
    message: Optional[str] = None


class SnapshotLevel(BaseModel):
    price: str
    size: str


class SnapshotContents(BaseModel):
    """Initial book sent with the subscription acknowledgement."""
    asks: List[SnapshotLevel] = Field(default_factory=list)
    bids: List[SnapshotLevel] = Field(default_factory=list)


class DeltaContents(BaseModel):
    """Incremental levels, each a [price, size] string pair."""
    asks: List[Tuple[str, str]] = Field(default_factory=list)
    bids: List[Tuple[str, str]] = Field(default_factory=list)


@dataclass(frozen=True)
class OrderBookUpdate:
    message_id: int
    asks: Tuple[Entry, ...] = ()
    bids: Tuple[Entry, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.asks and not self.bids


def subscribe_payload(market_id: str, channel: str = ORDERBOOK_CHANNEL) -> dict:
    return {"type": "subscribe", "channel": channel, "id": market_id}


def _to_float(value: str, field: str) -> float:
    try:
        x = float(value)
    except (TypeError, ValueError):
        raise MalformedLevel(f"expected {field} to be a float; got {value!r}") from None
    if not math.isfinite(x):
        raise MalformedLevel(f"expected {field} to be finite; got {value!r}")
    return x


def to_entries(pairs) -> Tuple[Entry, ...]:
    return tuple(
        Entry(price=_to_float(p, "price"), size=_to_float(s, "size"))
        for p, s in pairs
    )


def _parse_snapshot(message_id: int, contents: Any) -> OrderBookUpdate:
    try:
        snap = SnapshotContents.model_validate(contents or {})
    except ValidationError as e:
        raise MalformedMessage(f"bad subscribed contents: {e}") from e
    return OrderBookUpdate(
        message_id=message_id,
        asks=to_entries((lvl.price, lvl.size) for lvl in snap.asks),
        bids=to_entries((lvl.price, lvl.size) for lvl in snap.bids),
    )


def _parse_deltas(message_id: int, batches: List[Any]) -> OrderBookUpdate:
    asks: List[Entry] = []
    bids: List[Entry] = []
    for contents in batches:
        try:
            delta = DeltaContents.model_validate(contents or {})
        except ValidationError as e:
            raise MalformedMessage(f"bad channel_data contents: {e}") from e
        asks.extend(to_entries(delta.asks))
        bids.extend(to_entries(delta.bids))
    return OrderBookUpdate(message_id=message_id, asks=tuple(asks), bids=tuple(bids))


def parse_message(raw: Union[str, bytes]) -> Optional[OrderBookUpdate]:
    """Decode one frame. Returns None for frames that carry no book content."""
    try:
        m = DydxMessage.model_validate_json(raw)
    except ValidationError as e:
        raise MalformedMessage(f"could not decode frame: {e}") from e

    if m.type in (CONNECTED, UNSUBSCRIBED):
        return None
    if m.type == SUBSCRIBED:
        return _parse_snapshot(m.message_id, m.contents)
    if m.type == CHANNEL_DATA:
        return _parse_deltas(m.message_id, [m.contents])
    if m.type == CHANNEL_BATCH_DATA:
        if not isinstance(m.contents, list):
            raise MalformedMessage("channel_batch_data contents must be a list")
        return _parse_deltas(m.message_id, m.contents)
    if m.type == ERROR:
        raise FeedError(f"server error: {m.message}")
    raise UnexpectedMessageKind(f"unexpected message type: {m.type}")
