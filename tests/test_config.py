"""Tests for quantsignal.config — environment variable loading and validation."""

import pytest

from quantsignal.config import Config, load_config, parse_correlated_assets


_ENV_VARS = [
    "TRADING_MODE",
    "EXCHANGE_API_KEY",
    "EXCHANGE_API_SECRET",
    "MAX_RISK_PCT",
    "MAX_OPEN_POSITIONS",
    "MAX_DAILY_TRADES",
    "MAX_DAILY_LOSS_PCT",
    "MAX_WEEKLY_LOSS_PCT",
    "STOP_LOSS_PCT",
    "TAKE_PROFIT_PCT",
    "COOLDOWN_SECONDS",
    "MIN_CONFLUENCE",
    "MAX_VOLATILITY_PCT",
    "MAX_TRADE_AMOUNT",
    "MIN_NOTIONAL",
    "PAPER_STARTING_BALANCE",
    "CORRELATED_ASSETS",
    "TRAILING_STOP_ENABLED",
    "TRAILING_STOP_ACTIVATION",
    "TRAILING_STOP_DISTANCE",
    "EXCHANGE_TIMEOUT_SECONDS",
    "EXCHANGE_MAX_RETRIES",
    "MACRO_EVENTS_FILE",
    "LOG_LEVEL",
    "HEALTH_PORT",
]


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Ensure QuantSignal env vars are cleared between tests."""
    for var in _ENV_VARS:
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def no_dotenv(tmp_path):
    """A non-existent env path so load_dotenv doesn't read a real .env file."""
    return str(tmp_path / "nonexistent.env")


class TestLoadConfig:
    def test_defaults(self, no_dotenv):
        cfg = load_config(env_path=no_dotenv)
        assert cfg.trading_mode == "paper"
        assert cfg.is_paper is True
        assert cfg.max_risk_pct == 0.02
        assert cfg.max_open_positions == 3
        assert cfg.max_daily_trades == 10
        assert cfg.max_daily_loss_pct == 0.05
        assert cfg.max_weekly_loss_pct == 0.10
        assert cfg.cooldown_seconds == 300
        assert cfg.min_confluence == 60
        assert cfg.min_notional == 10.0
        assert cfg.paper_starting_balance == 10000.0
        assert cfg.trailing_stop_enabled is False
        assert cfg.log_level == "INFO"
        assert cfg.health_port == 8080

    def test_default_correlation_groups(self, no_dotenv):
        cfg = load_config(env_path=no_dotenv)
        assert cfg.correlated_assets["BTC"] == ("ETH", "SOL")
        assert cfg.correlated_assets["SOL"] == ("BTC", "ETH")

    def test_overrides(self, monkeypatch, no_dotenv):
        monkeypatch.setenv("MAX_OPEN_POSITIONS", "5")
        monkeypatch.setenv("STOP_LOSS_PCT", "0.01")
        monkeypatch.setenv("TRAILING_STOP_ENABLED", "true")
        monkeypatch.setenv("CORRELATED_ASSETS", "ADA:DOT")
        cfg = load_config(env_path=no_dotenv)
        assert cfg.max_open_positions == 5
        assert cfg.stop_loss_pct == 0.01
        assert cfg.trailing_stop_enabled is True
        assert cfg.correlated_assets == {"ADA": ("DOT",)}

    def test_live_requires_credentials(self, monkeypatch, no_dotenv):
        monkeypatch.setenv("TRADING_MODE", "live")
        monkeypatch.setenv("EXCHANGE_API_KEY", "key")
        with pytest.raises(ValueError, match="EXCHANGE_API_SECRET"):
            load_config(env_path=no_dotenv)

    def test_live_with_credentials(self, monkeypatch, no_dotenv):
        monkeypatch.setenv("TRADING_MODE", "live")
        monkeypatch.setenv("EXCHANGE_API_KEY", "key")
        monkeypatch.setenv("EXCHANGE_API_SECRET", "secret")
        cfg = load_config(env_path=no_dotenv)
        assert cfg.is_paper is False

    def test_invalid_mode(self, monkeypatch, no_dotenv):
        monkeypatch.setenv("TRADING_MODE", "yolo")
        with pytest.raises(ValueError, match="TRADING_MODE"):
            load_config(env_path=no_dotenv)


class TestConfigHelpers:
    def test_reward_risk_ratio(self):
        assert Config(stop_loss_pct=0.02, take_profit_pct=0.04).reward_risk_ratio == pytest.approx(2.0)

    def test_config_is_frozen(self):
        cfg = Config()
        with pytest.raises(AttributeError):
            cfg.max_open_positions = 99  # type: ignore[misc]

    def test_parse_correlated_assets(self):
        groups = parse_correlated_assets("btc:eth, sol ; ETH:BTC")
        assert groups == {"BTC": ("ETH", "SOL"), "ETH": ("BTC",)}

    def test_parse_rejects_malformed_group(self):
        with pytest.raises(ValueError):
            parse_correlated_assets("BTC-ETH")
