"""Execution data models — positions, fills and structured results."""

from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Optional

OPEN = "OPEN"
CLOSED = "CLOSED"

PAPER = "PAPER"
LIVE = "LIVE"

# Close reasons
STOP_LOSS = "STOP_LOSS"
TAKE_PROFIT = "TAKE_PROFIT"
KILL_SWITCH = "KILL_SWITCH"
MANUAL = "manual"


@dataclass(frozen=True)
class OrderFill:
    """Exchange acknowledgement of a market order."""

    order_id: str
    filled: Optional[float] = None
    average: Optional[float] = None

    @classmethod
    def from_response(cls, raw: Any) -> "OrderFill":
        """Accept an ``OrderFill`` or a ccxt-style ``{"id", "filled", "average"}`` dict."""
        if isinstance(raw, OrderFill):
            return raw
        if isinstance(raw, dict) and "id" in raw:
            return cls(str(raw["id"]), raw.get("filled"), raw.get("average"))
        raise ValueError(f"Malformed order response: {raw!r}")


@dataclass
class Position:
    """A trade from open to close.

    Status only moves OPEN → CLOSED, through ``close()``.
    """

    id: str
    symbol: str
    action: str  # "BUY" or "SELL"
    entry_price: float
    size: float
    stop_loss: float
    take_profit: float
    cost: float
    opened_at: datetime
    mode: str = PAPER
    confluence: Optional[int] = None
    signal: Optional[str] = None
    status: str = OPEN
    order_id: Optional[str] = None
    pnl: Optional[float] = None
    close_price: Optional[float] = None
    closed_at: Optional[datetime] = None
    close_reason: Optional[str] = None

    @property
    def is_open(self) -> bool:
        return self.status == OPEN

    def unrealized_pnl(self, price: float) -> float:
        """PnL if closed at *price*: ``(price − entry) × size`` for BUY, mirrored for SELL."""
        if self.action == "BUY":
            return (price - self.entry_price) * self.size
        return (self.entry_price - price) * self.size

    def close(self, price: float, reason: str, at: datetime) -> float:
        """Mark the position CLOSED at *price* and return the realised PnL.

        Raises:
            ValueError: If the position is already closed.
        """
        if self.status != OPEN:
            raise ValueError(f"Position {self.id} is already {self.status}")
        pnl = self.unrealized_pnl(price)
        self.status = CLOSED
        self.close_price = price
        self.pnl = round(pnl, 2)
        self.closed_at = at
        self.close_reason = reason
        return pnl

    def to_dict(self) -> dict:
        data = asdict(self)
        data["opened_at"] = self.opened_at.isoformat()
        data["closed_at"] = self.closed_at.isoformat() if self.closed_at else None
        return data


@dataclass(frozen=True)
class ExecutionResult:
    """Outcome of ``execute_trade``: a new position or the rejection reason."""

    executed: bool
    position: Optional[Position] = None
    reason: str = ""


@dataclass(frozen=True)
class CloseResult:
    """Outcome of a close attempt."""

    closed: bool
    position: Optional[Position] = None
    reason: str = ""
    pnl: Optional[float] = None
