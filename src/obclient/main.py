"""CLI entrypoint: stream one dYdX market and print the top of book on change.

Usage:
    python -m obclient.main --market ETH-USD
    DYDX_WSS_URL=wss://indexer.v4testnet.dydx.exchange/v4/ws obclient --no-uncross
"""
import asyncio
import logging
import signal
import sys
from typing import AsyncIterator, Optional, TextIO

from logging_config import configure_logging
from workflow_logger import AsyncWorkflowSession

from obclient.config import ClientConfig, apply_args, load_config_from_env, parse_args
from obclient.dydx import DydxWSRuntime, OrderBookUpdate
from obclient.orderbook import OrderBook

log = logging.getLogger(__name__)


async def consume(
    updates: AsyncIterator[OrderBookUpdate],
    book: OrderBook,
    uncross: bool,
    out: TextIO = sys.stdout,
) -> int:
    """Apply every update to `book`; print a summary line whenever it changes."""
    written = 0
    async for update in updates:
        if book.update(update.message_id, update.asks, update.bids, uncross=uncross):
            print(book.to_json(), file=out, flush=True)
            written += 1
    return written


def _install_signal_handlers(stop: asyncio.Event) -> list:
    loop = asyncio.get_running_loop()
    installed = []
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop.set)
            installed.append(sig)
        except (NotImplementedError, RuntimeError):
            # no loop signal support on this platform / thread
            pass
    return installed


async def run(
    cfg: ClientConfig,
    *,
    out: TextIO = sys.stdout,
    runtime: Optional[DydxWSRuntime] = None,
    stop: Optional[asyncio.Event] = None,
    session_logger: Optional[logging.Logger] = None,
) -> int:
    """Run one feed session. Returns the number of summaries written."""
    rt = runtime or DydxWSRuntime(cfg.ws_url, strict=cfg.strict_feed)
    book = OrderBook()
    stop = stop or asyncio.Event()
    installed = _install_signal_handlers(stop)

    try:
        async with AsyncWorkflowSession(f"orderbook {cfg.market}", logger=session_logger):
            consumer = asyncio.create_task(
                consume(rt.stream_order_book(cfg.market), book, cfg.uncross, out),
                name="orderbook_consumer",
            )
            stopper = asyncio.create_task(stop.wait(), name="orderbook_stop")
            done, _ = await asyncio.wait({consumer, stopper}, return_when=asyncio.FIRST_COMPLETED)

            if consumer in done:
                stopper.cancel()
                return consumer.result()

            log.info("Exiting. Please wait...")
            await rt.stop()
            try:
                return await asyncio.wait_for(consumer, cfg.shutdown_timeout_s)
            except asyncio.TimeoutError:
                log.warning("consumer did not finish within %.1fs; cancelled", cfg.shutdown_timeout_s)
                return 0
    finally:
        loop = asyncio.get_running_loop()
        for sig in installed:
            loop.remove_signal_handler(sig)


def main(argv=None) -> int:
    args = parse_args(argv)
    cfg = apply_args(load_config_from_env(), args)
    configure_logging(cfg.log_level, cfg.log_dir)
    log.info("market=%s url=%s uncross=%s", cfg.market, cfg.ws_url, cfg.uncross)

    try:
        asyncio.run(run(cfg))
    except Exception as e:
        log.error("An error occurred: %s", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
