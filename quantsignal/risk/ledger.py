"""Risk ledger and position book — process-lifetime trading state.

The ledger rolls its daily figures on a calendar-date change and its
weekly figure at the Monday boundary.  Both are pure state holders; the
caller passes the current time in.
"""

from datetime import date, datetime, timedelta
from typing import Optional

from quantsignal.broker.models import Position


def _week_start(day: date) -> date:
    return day - timedelta(days=day.weekday())


class RiskLedger:
    """Daily/weekly realised PnL, today's trade log and the last loss time.

    Args:
        now: Construction time; anchors the current day and week.
    """

    def __init__(self, now: datetime) -> None:
        self._day: date = now.date()
        self._week_start: date = _week_start(now.date())
        self._daily_pnl: float = 0.0
        self._weekly_pnl: float = 0.0
        self._daily_trades: list[Position] = []
        self._last_loss_at: Optional[datetime] = None

    # ── Mutation ─────────────────────────────────────────────────────────

    def roll(self, now: datetime) -> None:
        """Reset daily figures on a new date and weekly ones on a new week."""
        today = now.date()
        if today != self._day:
            self._day = today
            self._daily_pnl = 0.0
            self._daily_trades = [t for t in self._daily_trades if t.opened_at.date() == today]
        week = _week_start(today)
        if week != self._week_start:
            self._week_start = week
            self._weekly_pnl = 0.0

    def record_trade(self, position: Position, now: datetime) -> None:
        self.roll(now)
        self._daily_trades.append(position)

    def record_pnl(self, pnl: float, now: datetime) -> None:
        """Realise *pnl* into both ledgers; a loss starts the cooldown."""
        self.roll(now)
        self._daily_pnl += pnl
        self._weekly_pnl += pnl
        if pnl < 0:
            self._last_loss_at = now

    # ── Queries ──────────────────────────────────────────────────────────

    @property
    def daily_pnl(self) -> float:
        return self._daily_pnl

    @property
    def weekly_pnl(self) -> float:
        return self._weekly_pnl

    @property
    def daily_trades(self) -> list[Position]:
        return list(self._daily_trades)

    @property
    def last_loss_at(self) -> Optional[datetime]:
        return self._last_loss_at

    @property
    def day(self) -> date:
        return self._day

    @property
    def week_start(self) -> date:
        return self._week_start

    def cooldown_remaining(self, now: datetime, cooldown_seconds: float) -> float:
        """Seconds left in the post-loss cooldown (0 when inactive)."""
        if self._last_loss_at is None:
            return 0.0
        elapsed = (now - self._last_loss_at).total_seconds()
        return max(0.0, cooldown_seconds - elapsed)

    def is_daily_loss_hit(self, portfolio_value: float, max_loss_pct: float) -> bool:
        return self._daily_pnl < -portfolio_value * max_loss_pct

    def is_weekly_loss_hit(self, portfolio_value: float, max_loss_pct: float) -> bool:
        return self._weekly_pnl < -portfolio_value * max_loss_pct


class PositionBook:
    """Open positions plus the history of closed ones."""

    def __init__(self) -> None:
        self._open: dict[str, Position] = {}
        self._closed: list[Position] = []

    def add(self, position: Position) -> None:
        if position.id in self._open:
            raise ValueError(f"Position {position.id} is already open")
        self._open[position.id] = position

    def get(self, position_id: str) -> Optional[Position]:
        return self._open.get(position_id)

    def remove(self, position_id: str) -> Position:
        """Move a closed position from the open set into history."""
        position = self._open.pop(position_id)
        self._closed.append(position)
        return position

    @property
    def open_positions(self) -> list[Position]:
        return list(self._open.values())

    @property
    def closed_positions(self) -> list[Position]:
        return list(self._closed)

    def __len__(self) -> int:
        return len(self._open)
