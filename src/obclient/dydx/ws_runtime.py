# src/obclient/dydx/ws_runtime.py
import json
import logging
import ssl
from typing import AsyncIterator, Optional

import certifi
import websockets
from websockets.exceptions import ConnectionClosedOK

from .messages import (
    ORDERBOOK_CHANNEL,
    FeedError,
    FeedMessageError,
    OrderBookUpdate,
    parse_message,
    subscribe_payload,
)

log = logging.getLogger(__name__)

# See https://docs.dydx.exchange/api_integration-indexer/indexer_websocket
#
# testnet: wss://indexer.v4testnet.dydx.exchange/v4/ws
# staging: wss://indexer.v4staging.dydx.exchange/v4/ws
DEFAULT_WS_URL = "wss://indexer.dydx.trade/v4/ws"


class DydxWSRuntime:
    """
    Owns a single WS session against the dYdX indexer.

    Usage:
        rt = DydxWSRuntime(url)
        async for update in rt.stream_order_book("ETH-USD"):
            ...
        # from a signal handler / other task:
        await rt.stop()

    There is no reconnect: message ids are only comparable within one
    session, so a new session needs a fresh book.
    """

    def __init__(
        self,
        ws_url: str = DEFAULT_WS_URL,
        *,
        ping_interval: float = 20.0,
        ping_timeout: float = 20.0,
        open_timeout: float = 25.0,
        strict: bool = False,
    ):
        self.ws_url = ws_url
        self.ping_interval = float(ping_interval)
        self.ping_timeout = float(ping_timeout)
        self.open_timeout = float(open_timeout)
        self.strict = strict

        self.ssl_ctx: Optional[ssl.SSLContext] = None
        if ws_url.startswith("wss://"):
            self.ssl_ctx = ssl.SSLContext(ssl.PROTOCOL_TLS_CLIENT)
            self.ssl_ctx.load_verify_locations(certifi.where())

        self._ws = None
        self._stopping = False
        self.messages_received = 0
        self.messages_dropped = 0

    @property
    def is_connected(self) -> bool:
        return self._ws is not None

    async def _subscribe(self, ws, market: str, channel: str = ORDERBOOK_CHANNEL) -> None:
        await ws.send(json.dumps(subscribe_payload(market, channel)))
        log.info("Subscribed to %s for %s", channel, market)

    async def stream_order_book(self, market: str) -> AsyncIterator[OrderBookUpdate]:
        """Yield book updates for `market` until the socket closes.

        A normal close ends the iteration; any other close or transport
        error propagates.
        """
        log.info("ws_connecting url=%s", self.ws_url)
        async with websockets.connect(
            self.ws_url,
            ssl=self.ssl_ctx,
            open_timeout=self.open_timeout,
            ping_interval=self.ping_interval,
            ping_timeout=self.ping_timeout,
        ) as ws:
            self._ws = ws
            try:
                if self._stopping:
                    await ws.close(code=1000)
                    return
                log.info("ws_connected")
                await self._subscribe(ws, market)
                while True:
                    try:
                        raw = await ws.recv()
                    except ConnectionClosedOK:
                        log.info("ws_closed_normally")
                        return
                    self.messages_received += 1
                    update = self._decode(raw)
                    if update is not None and not update.is_empty:
                        yield update
            finally:
                self._ws = None

    def _decode(self, raw) -> Optional[OrderBookUpdate]:
        try:
            return parse_message(raw)
        except FeedError:
            raise
        except FeedMessageError as e:
            if self.strict:
                raise
            self.messages_dropped += 1
            log.error("feed_message_dropped error=%s frame=%s", e, str(raw)[:500])
            return None

    async def stop(self) -> None:
        """Close the socket with a normal closure. Safe to call more than once."""
        if self._stopping:
            return
        self._stopping = True
        ws = self._ws
        if ws is None:
            return
        log.info("Closing websocket connection...")
        await ws.close(code=1000)
