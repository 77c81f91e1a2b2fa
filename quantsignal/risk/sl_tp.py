"""Stop-loss / take-profit placement from fixed percentage offsets."""

from dataclasses import dataclass

from quantsignal.strategy.models import BUY, SELL


@dataclass(frozen=True)
class RiskLevels:
    """Computed SL and TP prices for a trade."""

    stop_loss: float
    take_profit: float


def round_price(price: float) -> float:
    """Round to cents, or to 6 decimals for sub-dollar prices."""
    return round(price, 2 if abs(price) >= 1 else 6)


def calculate_sl_tp(
    action: str,
    entry_price: float,
    stop_loss_pct: float = 0.02,
    take_profit_pct: float = 0.04,
) -> RiskLevels:
    """Place SL/TP at fixed fractions of *entry_price*.

    BUY: SL below, TP above.  SELL: mirrored.

    Raises:
        ValueError: If *action* is not BUY/SELL or a price/offset is invalid.
    """
    if action not in (BUY, SELL):
        raise ValueError(f"action must be BUY or SELL, got {action!r}")
    if entry_price <= 0:
        raise ValueError(f"entry_price must be positive, got {entry_price}")
    if stop_loss_pct <= 0 or take_profit_pct <= 0:
        raise ValueError("stop_loss_pct and take_profit_pct must be positive")

    if action == BUY:
        sl = entry_price * (1 - stop_loss_pct)
        tp = entry_price * (1 + take_profit_pct)
    else:
        sl = entry_price * (1 + stop_loss_pct)
        tp = entry_price * (1 - take_profit_pct)
    return RiskLevels(stop_loss=sl, take_profit=tp)
