"""QuantSignal application configuration.

Loads .env variables into a typed config object.
Validates exchange credentials when live trading is requested.
"""

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv


_LIVE_REQUIRED_VARS = [
    "EXCHANGE_API_KEY",
    "EXCHANGE_API_SECRET",
]

_DEFAULT_CORRELATED_ASSETS = "BTC:ETH,SOL;ETH:BTC,SOL;SOL:BTC,ETH"


def parse_correlated_assets(raw: str) -> dict[str, tuple[str, ...]]:
    """Parse ``"BTC:ETH,SOL;ETH:BTC"`` into ``{"BTC": ("ETH", "SOL"), ...}``.

    Raises ``ValueError`` on a group without a ``:`` separator.
    """
    groups: dict[str, tuple[str, ...]] = {}
    for chunk in raw.split(";"):
        chunk = chunk.strip()
        if not chunk:
            continue
        if ":" not in chunk:
            raise ValueError(
                f"Invalid CORRELATED_ASSETS group {chunk!r}: expected ASSET:PEER,PEER"
            )
        asset, peers = chunk.split(":", 1)
        groups[asset.strip().upper()] = tuple(
            p.strip().upper() for p in peers.split(",") if p.strip()
        )
    return groups


def _env_bool(name: str, default: str = "false") -> bool:
    return os.environ.get(name, default).strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Config:
    """Typed configuration loaded from environment variables."""

    trading_mode: str = "paper"  # "paper" or "live"
    exchange_api_key: str = ""
    exchange_api_secret: str = ""
    max_risk_pct: float = 0.02
    max_open_positions: int = 3
    max_daily_trades: int = 10
    max_daily_loss_pct: float = 0.05
    max_weekly_loss_pct: float = 0.10
    stop_loss_pct: float = 0.02
    take_profit_pct: float = 0.04
    cooldown_seconds: int = 300
    min_confluence: int = 60
    max_volatility_pct: float = 0.08
    max_trade_amount: float = 100.0
    min_notional: float = 10.0
    paper_starting_balance: float = 10000.0
    correlated_assets: dict[str, tuple[str, ...]] = field(
        default_factory=lambda: parse_correlated_assets(_DEFAULT_CORRELATED_ASSETS)
    )
    trailing_stop_enabled: bool = False
    trailing_stop_activation: float = 0.02
    trailing_stop_distance: float = 0.01
    exchange_timeout_seconds: float = 10.0
    exchange_max_retries: int = 3
    macro_events_file: str = ""
    log_level: str = "INFO"
    health_port: int = 8080

    @property
    def is_paper(self) -> bool:
        """``True`` unless live trading was explicitly requested."""
        return self.trading_mode != "live"

    @property
    def reward_risk_ratio(self) -> float:
        """Take-profit distance divided by stop-loss distance."""
        if self.stop_loss_pct <= 0:
            return 0.0
        return self.take_profit_pct / self.stop_loss_pct


def load_config(env_path: str | None = None) -> Config:
    """Load configuration from environment variables.

    Raises ``ValueError`` with a message naming the missing variable when
    live mode is selected without exchange credentials, or when
    ``TRADING_MODE`` is not ``paper``/``live``.
    """
    load_dotenv(dotenv_path=env_path)

    mode = os.environ.get("TRADING_MODE", "paper").strip().lower()
    if mode not in ("paper", "live"):
        raise ValueError(f"TRADING_MODE must be 'paper' or 'live', got {mode!r}")

    if mode == "live":
        missing = [v for v in _LIVE_REQUIRED_VARS if not os.environ.get(v)]
        if missing:
            raise ValueError(
                f"Missing required environment variable(s): {', '.join(missing)}"
            )

    return Config(
        trading_mode=mode,
        exchange_api_key=os.environ.get("EXCHANGE_API_KEY", ""),
        exchange_api_secret=os.environ.get("EXCHANGE_API_SECRET", ""),
        max_risk_pct=float(os.environ.get("MAX_RISK_PCT", "0.02")),
        max_open_positions=int(os.environ.get("MAX_OPEN_POSITIONS", "3")),
        max_daily_trades=int(os.environ.get("MAX_DAILY_TRADES", "10")),
        max_daily_loss_pct=float(os.environ.get("MAX_DAILY_LOSS_PCT", "0.05")),
        max_weekly_loss_pct=float(os.environ.get("MAX_WEEKLY_LOSS_PCT", "0.10")),
        stop_loss_pct=float(os.environ.get("STOP_LOSS_PCT", "0.02")),
        take_profit_pct=float(os.environ.get("TAKE_PROFIT_PCT", "0.04")),
        cooldown_seconds=int(os.environ.get("COOLDOWN_SECONDS", "300")),
        min_confluence=int(os.environ.get("MIN_CONFLUENCE", "60")),
        max_volatility_pct=float(os.environ.get("MAX_VOLATILITY_PCT", "0.08")),
        max_trade_amount=float(os.environ.get("MAX_TRADE_AMOUNT", "100")),
        min_notional=float(os.environ.get("MIN_NOTIONAL", "10")),
        paper_starting_balance=float(
            os.environ.get("PAPER_STARTING_BALANCE", "10000")
        ),
        correlated_assets=parse_correlated_assets(
            os.environ.get("CORRELATED_ASSETS", _DEFAULT_CORRELATED_ASSETS)
        ),
        trailing_stop_enabled=_env_bool("TRAILING_STOP_ENABLED"),
        trailing_stop_activation=float(
            os.environ.get("TRAILING_STOP_ACTIVATION", "0.02")
        ),
        trailing_stop_distance=float(os.environ.get("TRAILING_STOP_DISTANCE", "0.01")),
        exchange_timeout_seconds=float(
            os.environ.get("EXCHANGE_TIMEOUT_SECONDS", "10")
        ),
        exchange_max_retries=int(os.environ.get("EXCHANGE_MAX_RETRIES", "3")),
        macro_events_file=os.environ.get("MACRO_EVENTS_FILE", ""),
        log_level=os.environ.get("LOG_LEVEL", "INFO"),
        health_port=int(os.environ.get("HEALTH_PORT", "8080")),
    )
