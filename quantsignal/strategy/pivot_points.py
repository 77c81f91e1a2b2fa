"""Pivot point levels (Classic, Woodie, Camarilla) — pure math."""

from quantsignal.strategy.models import BUY, HOLD, SELL, PivotPoints


def calculate_pivot_points(
    high: float,
    low: float,
    close: float,
    open_: float | None = None,
    current_price: float | None = None,
) -> PivotPoints:
    """Compute support/resistance pivots from the prior period's bar.

    Classic::

        PP = (H + L + C) / 3
        R1 = 2PP − L   R2 = PP + (H − L)   R3 = H + 2(PP − L)
        S1 = 2PP − H   S2 = PP − (H − L)   S3 = L − 2(H − PP)

    Woodie weights the close twice: ``PP = (H + L + 2C) / 4``.
    Camarilla offsets the close by ``(H − L) × 1.1 / {12, 6, 4, 2}``.

    The signal compares *current_price* (default: *close*) with the
    classic levels: above R1 or PP is BUY, below S1 or PP is SELL.
    *open_* is accepted for callers that pass a full bar; none of the
    three formulas use it.

    All levels are rounded to 2 decimals.
    """
    rng = high - low

    pp = (high + low + close) / 3
    classic = {
        "PP": round(pp, 2),
        "R1": round(2 * pp - low, 2),
        "R2": round(pp + rng, 2),
        "R3": round(high + 2 * (pp - low), 2),
        "S1": round(2 * pp - high, 2),
        "S2": round(pp - rng, 2),
        "S3": round(low - 2 * (high - pp), 2),
    }

    pp_w = (high + low + 2 * close) / 4
    woodie = {
        "PP": round(pp_w, 2),
        "R1": round(2 * pp_w - low, 2),
        "R2": round(pp_w + rng, 2),
        "S1": round(2 * pp_w - high, 2),
        "S2": round(pp_w - rng, 2),
    }

    camarilla = {"PP": round(pp, 2)}
    for level, divisor in enumerate((12, 6, 4, 2), start=1):
        offset = rng * 1.1 / divisor
        camarilla[f"R{level}"] = round(close + offset, 2)
        camarilla[f"S{level}"] = round(close - offset, 2)

    price = close if current_price is None else current_price
    if price > classic["R1"]:
        signal = BUY
    elif price < classic["S1"]:
        signal = SELL
    elif price > classic["PP"]:
        signal = BUY
    elif price < classic["PP"]:
        signal = SELL
    else:
        signal = HOLD

    return PivotPoints(classic=classic, woodie=woodie, camarilla=camarilla, signal=signal)
