"""Internal API routers — /positions, /trades, /ledger, /mode, /control endpoints.

No business logic. Reads from and delegates to the injected execution engine.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Body, HTTPException

logger = logging.getLogger("quantsignal")
router = APIRouter()

# ── Shared state (set during app startup) ────────────────────────────────

_executor = None  # Set via configure_routers()
_engine = None    # Set via configure_routers()


def configure_routers(executor, engine=None) -> None:
    """Inject dependencies from the application startup.

    Args:
        executor: An ``ExecutionEngine`` (or duck-type for tests).
        engine: Optional ``TradingEngine``; stopped by the kill switch.
    """
    global _executor, _engine  # noqa: PLW0603
    _executor = executor
    _engine = engine


def _require_executor():
    if _executor is None:
        raise HTTPException(status_code=503, detail="Execution engine not configured")
    return _executor


# ── Endpoints ────────────────────────────────────────────────────────────


@router.get("/positions")
async def get_positions():
    """Return open positions with SL/TP details."""
    if _executor is None:
        return {"positions": []}
    return {"positions": [p.to_dict() for p in _executor.open_positions]}


@router.get("/trades/today")
async def get_trades_today():
    """Return every position opened today, open or closed."""
    if _executor is None:
        return {"trades": [], "total": 0}
    trades = [p.to_dict() for p in _executor.daily_trades]
    return {"trades": trades, "total": len(trades)}


@router.get("/ledger")
async def get_ledger():
    """Return realised PnL, trade count and cooldown state."""
    executor = _require_executor()
    now = datetime.now(timezone.utc)
    ledger = executor.ledger
    return {
        "day": ledger.day.isoformat(),
        "week_start": ledger.week_start.isoformat(),
        "daily_pnl": round(executor.daily_pnl, 2),
        "weekly_pnl": round(executor.weekly_pnl, 2),
        "daily_trade_count": executor.daily_trade_count(now),
        "open_position_count": len(executor.open_positions),
        "cooldown_remaining": round(executor.cooldown_remaining(now)),
        "last_loss_at": ledger.last_loss_at.isoformat() if ledger.last_loss_at else None,
    }


@router.get("/mode")
async def get_mode():
    """Return the trading mode and, in paper mode, the simulated balances."""
    executor = _require_executor()
    if executor.is_paper_mode:
        return {"mode": "paper", "paper_balance": executor.paper_balance}
    return {"mode": "live", "paper_balance": None}


@router.post("/control/kill-switch")
async def kill_switch(prices: Optional[dict[str, float]] = Body(default=None)):
    """Kill switch: stop the trading loop and close every open position.

    Positions without a supplied price close at their entry price.
    """
    executor = _require_executor()
    if _engine is not None:
        _engine.stop()
    results = await executor.kill_switch(prices or {})
    logger.warning("KILL SWITCH triggered via API: %d position(s) closed.", len(results))
    return {
        "status": "killed",
        "closed": [r.position.to_dict() for r in results if r.closed],
    }
