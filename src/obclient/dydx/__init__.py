from .messages import (
    FeedError,
    FeedMessageError,
    MalformedLevel,
    MalformedMessage,
    OrderBookUpdate,
    UnexpectedMessageKind,
    parse_message,
    subscribe_payload,
)
from .ws_runtime import DEFAULT_WS_URL, DydxWSRuntime
