"""Position sizing — pure math, no I/O.

Risk-based size capped by a maximum notional, then scaled down by a
volatility step function.
"""

import math

# (upper ATR% bound, multiplier) bands, checked in order.
VOLATILITY_BANDS: tuple[tuple[float, float], ...] = (
    (0.01, 1.0),
    (0.03, 0.8),
    (0.05, 0.5),
    (0.08, 0.25),
)

SIZE_DECIMALS = 5


def volatility_multiplier(atr_pct: float) -> float:
    """Step multiplier for *atr_pct* (ATR as a fraction of price).

    ≤ 1 % → 1.0, ≤ 3 % → 0.8, ≤ 5 % → 0.5, ≤ 8 % → 0.25, above → 0.
    """
    for bound, multiplier in VOLATILITY_BANDS:
        if atr_pct <= bound:
            return multiplier
    return 0.0


def volatility_adjusted_size(size: float, atr_pct: float) -> float:
    """Scale *size* down as volatility rises; exactly 0 above 8 %."""
    return size * volatility_multiplier(atr_pct)


def calculate_position_size(
    balance: float,
    price: float,
    stop_loss_price: float,
    max_risk_pct: float = 0.02,
    max_trade_amount: float = 100.0,
    atr_pct: float | None = None,
) -> float:
    """Calculate position size in base-asset units.

    Formula::

        by_risk = balance × max_risk_pct / |price − stop_loss_price|
        by_cap  = max_trade_amount / price
        size    = min(by_risk, by_cap) × volatility_multiplier(atr_pct)

    The result is floored to 5 decimals.  A zero stop distance or an empty
    balance yields 0.  *atr_pct* of ``None`` or 0 skips the volatility
    scaling.

    Raises:
        ValueError: If *price* is non-positive or *max_risk_pct* negative.
    """
    if price <= 0:
        raise ValueError(f"price must be positive, got {price}")
    if max_risk_pct < 0:
        raise ValueError(f"max_risk_pct must be non-negative, got {max_risk_pct}")

    risk_amount = max(balance, 0.0) * max_risk_pct
    risk_per_unit = abs(price - stop_loss_price)
    by_risk = risk_amount / risk_per_unit if risk_per_unit > 0 else 0.0
    by_cap = max_trade_amount / price

    size = min(by_risk, by_cap)
    if atr_pct:
        size = volatility_adjusted_size(size, atr_pct)

    factor = 10 ** SIZE_DECIMALS
    return math.floor(size * factor) / factor
