"""Keltner Channels and the Aroon trend-exhaustion oscillator."""

import numpy as np

from quantsignal.strategy.indicators import true_ranges
from quantsignal.strategy.models import BUY, HOLD, SELL, IndicatorResult


def calculate_keltner_channels(
    highs: list[float],
    lows: list[float],
    closes: list[float],
    ema_period: int = 20,
    atr_period: int = 10,
    multiplier: float = 2.0,
) -> IndicatorResult:
    """EMA centre line ± *multiplier* × ATR.

    The centre is an EMA over every close (seeded with the first close);
    the ATR is the simple mean of the last *atr_period* true ranges.  A
    close below the lower band is BUY (mean reversion), above the upper
    band SELL.

    Neutral default (fewer than ``max(ema_period, atr_period)`` closes):
    all three lines equal the last close, HOLD.
    """
    if not closes:
        return IndicatorResult(0.0, HOLD, {"middle": 0.0, "upper": 0.0, "lower": 0.0})
    last = closes[-1]
    if len(closes) < max(ema_period, atr_period):
        return IndicatorResult(last, HOLD, {"middle": last, "upper": last, "lower": last})

    k = 2.0 / (ema_period + 1)
    ema = closes[0]
    for c in closes[1:]:
        ema = c * k + ema * (1 - k)

    trs = true_ranges(highs, lows, closes)
    atr = sum(trs[-atr_period:]) / atr_period

    upper = ema + multiplier * atr
    lower = ema - multiplier * atr

    signal = HOLD
    if last < lower:
        signal = BUY
    elif last > upper:
        signal = SELL

    middle = round(ema, 2)
    return IndicatorResult(
        middle,
        signal,
        {"middle": middle, "upper": round(upper, 2), "lower": round(lower, 2)},
    )


def calculate_aroon(
    highs: list[float], lows: list[float], period: int = 25
) -> IndicatorResult:
    """Aroon Up/Down: recency of the highest high and lowest low, 0–100.

    Over the last ``period + 1`` bars, ``up = index_of_max / period × 100``
    (100 when the high is on the latest bar).  BUY when Up > 70 and
    Down < 30, SELL on the mirror.  ``value`` is the oscillator Up − Down.

    Neutral default (fewer than ``period + 1`` bars): Up = Down = 50, HOLD.
    """
    if len(highs) < period + 1 or len(lows) < period + 1:
        return IndicatorResult(0.0, HOLD, {"aroon_up": 50.0, "aroon_down": 50.0})

    high_idx = int(np.argmax(highs[-(period + 1):]))
    low_idx = int(np.argmin(lows[-(period + 1):]))
    up = high_idx / period * 100
    down = low_idx / period * 100

    signal = HOLD
    if up > 70 and down < 30:
        signal = BUY
    elif down > 70 and up < 30:
        signal = SELL

    return IndicatorResult(
        round(up - down, 2),
        signal,
        {"aroon_up": round(up, 2), "aroon_down": round(down, 2)},
    )
