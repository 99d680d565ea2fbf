import argparse
import os
from dataclasses import dataclass, replace

from dotenv import find_dotenv, load_dotenv

from obclient.dydx.ws_runtime import DEFAULT_WS_URL


@dataclass
class ClientConfig:
    ws_url: str
    market: str
    uncross: bool
    strict_feed: bool
    shutdown_timeout_s: float
    log_level: str
    log_dir: str


def _flag(name: str, default: str) -> bool:
    return bool(int(os.getenv(name, default)))


def load_config_from_env() -> ClientConfig:
    # Load .env reliably even when running from src/
    env_path = find_dotenv(usecwd=True)
    load_dotenv(env_path or None)
    return ClientConfig(
        ws_url=os.getenv('DYDX_WSS_URL', DEFAULT_WS_URL),
        market=os.getenv('OB_MARKET', 'ETH-USD').strip(),
        uncross=_flag('OB_UNCROSS', '1'),
        strict_feed=_flag('OB_STRICT_FEED', '0'),
        shutdown_timeout_s=float(os.getenv('OB_SHUTDOWN_TIMEOUT_S', '1.0')),
        log_level=os.getenv('OB_LOG_LEVEL', 'INFO').upper(),
        log_dir=os.getenv('OB_LOG_DIR', './logs'),
    )


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        prog="obclient",
        description="Stream a dYdX order book and print the top of book whenever it changes.",
    )
    parser.add_argument("--market", default=None, help="Market id, e.g. ETH-USD")
    parser.add_argument("--url", default=None, help="Indexer websocket URL")
    parser.add_argument("--no-uncross", dest="uncross", action="store_false", default=None,
                        help="Leave crossed books as received")
    parser.add_argument("--strict", action="store_true", default=None,
                        help="Stop on the first undecodable feed message instead of dropping it")
    parser.add_argument("--log-level", default=None, choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return parser.parse_args(argv)


def apply_args(cfg: ClientConfig, args) -> ClientConfig:
    """Override env config with any CLI flags that were given."""
    overrides = {}
    if args.market is not None:
        overrides['market'] = args.market
    if args.url is not None:
        overrides['ws_url'] = args.url
    if args.uncross is not None:
        overrides['uncross'] = args.uncross
    if args.strict is not None:
        overrides['strict_feed'] = args.strict
    if args.log_level is not None:
        overrides['log_level'] = args.log_level
    return replace(cfg, **overrides)
