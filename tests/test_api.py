"""Tests for the internal status API and its control endpoint."""

import asyncio
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from quantsignal.api.routers import configure_routers
from quantsignal.config import Config
from quantsignal.executor import ExecutionEngine
from quantsignal.main import app, warn_if_live
from quantsignal.strategy.models import BUY, SELL

client = TestClient(app)


# ── Helpers ──────────────────────────────────────────────────────────────


@pytest.fixture(autouse=True)
def _reset_routers():
    configure_routers(None)
    yield
    configure_routers(None)


def _paper_executor(*trades: tuple[str, str, float]) -> ExecutionEngine:
    """Paper engine with *trades* (action, symbol, price) opened now."""
    executor = ExecutionEngine(Config(correlated_assets={}))

    async def _open():
        for action, symbol, price in trades:
            await executor.execute_trade(action, symbol, price)

    asyncio.run(_open())
    return executor


class MockLiveExecutor:
    is_paper_mode = False


# ── Tests ────────────────────────────────────────────────────────────────


class TestHealth:
    def test_health(self):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok"}


class TestPositionsEndpoint:
    def test_unconfigured_returns_empty(self):
        resp = client.get("/positions")
        assert resp.status_code == 200
        assert resp.json() == {"positions": []}

    def test_lists_open_positions(self):
        configure_routers(_paper_executor((BUY, "BTC/USDT", 100.0)))
        positions = client.get("/positions").json()["positions"]
        assert len(positions) == 1
        pos = positions[0]
        assert pos["symbol"] == "BTC/USDT"
        assert pos["stop_loss"] == 98.0
        assert pos["take_profit"] == 104.0
        assert pos["status"] == "OPEN"
        assert pos["mode"] == "PAPER"


class TestTradesTodayEndpoint:
    def test_unconfigured(self):
        assert client.get("/trades/today").json() == {"trades": [], "total": 0}

    def test_counts_todays_trades(self):
        configure_routers(_paper_executor((BUY, "BTC/USDT", 100.0), (SELL, "ETH/USDT", 50.0)))
        body = client.get("/trades/today").json()
        assert body["total"] == 2
        assert {t["symbol"] for t in body["trades"]} == {"BTC/USDT", "ETH/USDT"}


class TestLedgerEndpoint:
    def test_unconfigured_is_503(self):
        assert client.get("/ledger").status_code == 503

    def test_ledger_fields(self):
        configure_routers(_paper_executor((BUY, "BTC/USDT", 100.0)))
        body = client.get("/ledger").json()
        assert body["daily_pnl"] == 0.0
        assert body["weekly_pnl"] == 0.0
        assert body["daily_trade_count"] == 1
        assert body["open_position_count"] == 1
        assert body["cooldown_remaining"] == 0
        assert body["last_loss_at"] is None
        assert set(body) >= {"day", "week_start"}


class TestModeEndpoint:
    def test_paper_mode_shows_balances(self):
        configure_routers(_paper_executor((BUY, "BTC/USDT", 100.0)))
        body = client.get("/mode").json()
        assert body["mode"] == "paper"
        assert body["paper_balance"] == {"USDT": 9900.0, "BTC": 1.0}

    def test_live_mode(self):
        configure_routers(MockLiveExecutor())
        assert client.get("/mode").json() == {"mode": "live", "paper_balance": None}


class TestKillSwitchEndpoint:
    def test_unconfigured_is_503(self):
        assert client.post("/control/kill-switch").status_code == 503

    def test_closes_positions_and_stops_engine(self):
        executor = _paper_executor((BUY, "BTC/USDT", 100.0), (SELL, "ETH/USDT", 50.0))
        engine = MagicMock()
        configure_routers(executor, engine)

        resp = client.post("/control/kill-switch", json={"BTC/USDT": 101.0})
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "killed"
        assert len(body["closed"]) == 2
        btc = next(p for p in body["closed"] if p["symbol"] == "BTC/USDT")
        assert btc["pnl"] == 1.0
        assert btc["close_reason"] == "KILL_SWITCH"
        engine.stop.assert_called_once()
        assert client.get("/positions").json() == {"positions": []}

    def test_without_prices_closes_at_entry(self):
        configure_routers(_paper_executor((BUY, "BTC/USDT", 100.0)))
        body = client.post("/control/kill-switch").json()
        assert body["closed"][0]["pnl"] == 0.0


class TestWarnIfLive:
    def test_live_warns(self, caplog):
        with caplog.at_level("WARNING", logger="quantsignal"):
            assert warn_if_live("live") is True
        assert "LIVE TRADING MODE" in caplog.text

    def test_paper_is_quiet(self):
        assert warn_if_live("paper") is False
