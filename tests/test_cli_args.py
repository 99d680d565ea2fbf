import pytest

from obclient.config import apply_args, load_config_from_env, parse_args
from obclient.dydx import DEFAULT_WS_URL

ENV_VARS = [
    "DYDX_WSS_URL", "OB_MARKET", "OB_UNCROSS", "OB_STRICT_FEED",
    "OB_SHUTDOWN_TIMEOUT_S", "OB_LOG_LEVEL", "OB_LOG_DIR",
]


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    # no stray .env above tmp_path
    monkeypatch.chdir(tmp_path)
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_defaults(clean_env):
    cfg = load_config_from_env()
    assert cfg.ws_url == DEFAULT_WS_URL
    assert cfg.market == "ETH-USD"
    assert cfg.uncross is True
    assert cfg.strict_feed is False
    assert cfg.shutdown_timeout_s == 1.0
    assert cfg.log_level == "INFO"


def test_env_overrides(clean_env):
    clean_env.setenv("DYDX_WSS_URL", "wss://indexer.v4testnet.dydx.exchange/v4/ws")
    clean_env.setenv("OB_MARKET", " BTC-USD ")
    clean_env.setenv("OB_UNCROSS", "0")
    clean_env.setenv("OB_STRICT_FEED", "1")
    clean_env.setenv("OB_LOG_LEVEL", "debug")
    cfg = load_config_from_env()
    assert cfg.ws_url.startswith("wss://indexer.v4testnet")
    assert cfg.market == "BTC-USD"
    assert cfg.uncross is False
    assert cfg.strict_feed is True
    assert cfg.log_level == "DEBUG"


def test_dotenv_file_is_loaded(clean_env, tmp_path):
    # record OB_MARKET as unset so the value load_dotenv writes is undone afterwards
    clean_env.setenv("OB_MARKET", "placeholder")
    clean_env.delenv("OB_MARKET")
    (tmp_path / ".env").write_text("OB_MARKET=SOL-USD\n")
    assert load_config_from_env().market == "SOL-USD"


def test_args_override_env(clean_env):
    args = parse_args(["--market", "BTC-USD", "--url", "ws://localhost:9000", "--no-uncross", "--strict"])
    cfg = apply_args(load_config_from_env(), args)
    assert cfg.market == "BTC-USD"
    assert cfg.ws_url == "ws://localhost:9000"
    assert cfg.uncross is False
    assert cfg.strict_feed is True


def test_no_args_keeps_env(clean_env):
    clean_env.setenv("OB_UNCROSS", "0")
    cfg = apply_args(load_config_from_env(), parse_args([]))
    assert cfg.uncross is False
    assert cfg.market == "ETH-USD"
