"""Technical indicators — pure functions, no I/O.

Every function takes trailing high/low/close/volume lists (oldest first)
and returns an ``IndicatorResult``.  With too little history each one
returns its documented neutral default instead of raising, so callers can
feed whatever window the market-data source produced.
"""

import math

from quantsignal.strategy.models import (
    BUY,
    HOLD,
    SELL,
    IndicatorResult,
    VolumeProfile,
)


def true_ranges(
    highs: list[float], lows: list[float], closes: list[float]
) -> list[float]:
    """True range for every bar after the first.

    ``TR = max(high - low, |high - prev_close|, |low - prev_close|)``
    """
    trs: list[float] = []
    for i in range(1, len(closes)):
        trs.append(
            max(
                highs[i] - lows[i],
                abs(highs[i] - closes[i - 1]),
                abs(lows[i] - closes[i - 1]),
            )
        )
    return trs


# ── Trend / volatility ───────────────────────────────────────────────────


def calculate_ema(values: list[float], period: int) -> list[float]:
    """Exponential Moving Average series seeded with the first value.

    ``EMA_t = value_t × k + EMA_{t-1} × (1 - k)`` with ``k = 2 / (period + 1)``.

    Returns an empty list when fewer than *period* values are given,
    otherwise a series of the same length as *values*.
    """
    if period <= 0 or len(values) < period:
        return []
    k = 2.0 / (period + 1)
    ema = [values[0]]
    for v in values[1:]:
        ema.append(v * k + ema[-1] * (1 - k))
    return ema


def calculate_atr(
    highs: list[float],
    lows: list[float],
    closes: list[float],
    period: int = 14,
) -> float:
    """Average True Range with Wilder smoothing.

    Returns ``0.0`` with fewer than two closes, and the plain mean of the
    available true ranges when there are fewer than *period* of them.
    """
    if len(closes) < 2:
        return 0.0
    trs = true_ranges(highs, lows, closes)
    if len(trs) < period:
        return sum(trs) / len(trs)
    atr = sum(trs[:period]) / period
    for tr in trs[period:]:
        atr = (atr * (period - 1) + tr) / period
    return round(atr, 4)


def calculate_adx(
    highs: list[float],
    lows: list[float],
    closes: list[float],
    period: int = 14,
) -> IndicatorResult:
    """Average Directional Index with +DI/-DI.

    Neutral default (fewer than ``period + 1`` closes): ADX 25, DI± 25, HOLD.
    Signal is BUY/SELL only when ADX > 25, by DI dominance.
    """
    if len(closes) < period + 1:
        return IndicatorResult(
            25.0, HOLD, {"adx": 25.0, "di_plus": 25.0, "di_minus": 25.0}
        )

    dm_plus: list[float] = []
    dm_minus: list[float] = []
    for i in range(1, len(closes)):
        up = highs[i] - highs[i - 1]
        down = lows[i - 1] - lows[i]
        dm_plus.append(up if up > down and up > 0 else 0.0)
        dm_minus.append(down if down > up and down > 0 else 0.0)
    trs = true_ranges(highs, lows, closes)

    s_tr = sum(trs[:period])
    s_dmp = sum(dm_plus[:period])
    s_dmm = sum(dm_minus[:period])
    dx: list[float] = []
    for i in range(period, len(trs)):
        s_tr = s_tr - s_tr / period + trs[i]
        s_dmp = s_dmp - s_dmp / period + dm_plus[i]
        s_dmm = s_dmm - s_dmm / period + dm_minus[i]
        di_p = (s_dmp / s_tr) * 100 if s_tr > 0 else 0.0
        di_m = (s_dmm / s_tr) * 100 if s_tr > 0 else 0.0
        dx.append(abs(di_p - di_m) / (di_p + di_m) * 100 if di_p + di_m > 0 else 0.0)

    if len(dx) >= period:
        adx = sum(dx[:period]) / period
        for value in dx[period:]:
            adx = (adx * (period - 1) + value) / period
    elif dx:
        adx = sum(dx) / len(dx)
    else:
        adx = 25.0

    di_plus = (s_dmp / s_tr) * 100 if s_tr > 0 else 0.0
    di_minus = (s_dmm / s_tr) * 100 if s_tr > 0 else 0.0

    signal = HOLD
    if adx > 25 and di_plus > di_minus:
        signal = BUY
    elif adx > 25 and di_minus > di_plus:
        signal = SELL

    adx = round(adx, 2)
    return IndicatorResult(
        adx,
        signal,
        {"adx": adx, "di_plus": round(di_plus, 2), "di_minus": round(di_minus, 2)},
    )


def calculate_parabolic_sar(
    highs: list[float],
    lows: list[float],
    af_start: float = 0.02,
    af_max: float = 0.2,
) -> IndicatorResult:
    """Parabolic SAR.  The signal is the current trend direction.

    The trend flips when price breaches the stop; on a flip the SAR jumps
    to the prior extreme point and the acceleration factor resets.
    Neutral default (fewer than 3 bars): SAR 0, HOLD.
    """
    if len(highs) < 3:
        return IndicatorResult(0.0, HOLD, {"sar": 0.0})

    is_up = True
    sar = lows[0]
    ep = highs[0]
    af = af_start
    for i in range(1, len(highs)):
        sar = sar + af * (ep - sar)
        prev2 = i - 2 if i >= 2 else i - 1
        if is_up:
            sar = min(sar, lows[i - 1], lows[prev2])
            if lows[i] < sar:
                is_up, sar, ep, af = False, ep, lows[i], af_start
            elif highs[i] > ep:
                ep = highs[i]
                af = min(af + af_start, af_max)
        else:
            sar = max(sar, highs[i - 1], highs[prev2])
            if highs[i] > sar:
                is_up, sar, ep, af = True, ep, highs[i], af_start
            elif lows[i] < ep:
                ep = lows[i]
                af = min(af + af_start, af_max)

    sar = round(sar, 4)
    return IndicatorResult(sar, BUY if is_up else SELL, {"sar": sar})


def calculate_ichimoku(
    highs: list[float],
    lows: list[float],
    closes: list[float],
    tenkan_period: int = 9,
    kijun_period: int = 26,
    senkou_b_period: int = 52,
) -> IndicatorResult:
    """Ichimoku lite: tenkan, kijun and an undisplaced cloud.

    BUY when price is above the cloud and tenkan > kijun; SELL when below
    the cloud and tenkan < kijun.  Components are ``None`` until enough
    bars exist for them.
    """

    def midpoint(period: int) -> float | None:
        if len(highs) < period or period <= 0:
            return None
        return (max(highs[-period:]) + min(lows[-period:])) / 2

    tenkan = midpoint(tenkan_period)
    kijun = midpoint(kijun_period)
    senkou_a = (tenkan + kijun) / 2 if tenkan is not None and kijun is not None else None
    senkou_b = midpoint(senkou_b_period)

    signal = HOLD
    if closes and None not in (tenkan, kijun, senkou_a, senkou_b):
        price = closes[-1]
        if price > max(senkou_a, senkou_b) and tenkan > kijun:
            signal = BUY
        elif price < min(senkou_a, senkou_b) and tenkan < kijun:
            signal = SELL

    def r(v: float | None) -> float | None:
        return round(v, 2) if v is not None else None

    return IndicatorResult(
        r(tenkan),
        signal,
        {
            "tenkan": r(tenkan),
            "kijun": r(kijun),
            "senkou_a": r(senkou_a),
            "senkou_b": r(senkou_b),
        },
    )


def calculate_ema_crossover(
    closes: list[float], fast: int = 50, slow: int = 200
) -> IndicatorResult:
    """Fast/slow EMA crossover.  A fresh cross wins, else the EMA order.

    Neutral default (fewer than *slow* closes): both EMAs equal the last
    close, HOLD.
    """
    if len(closes) < slow:
        last = closes[-1] if closes else 0.0
        return IndicatorResult(last, HOLD, {"fast_ema": last, "slow_ema": last})

    fast_ema = calculate_ema(closes, fast)
    slow_ema = calculate_ema(closes, slow)
    fast_val, slow_val = fast_ema[-1], slow_ema[-1]
    prev_fast = fast_ema[-2] if len(fast_ema) > 1 else fast_val
    prev_slow = slow_ema[-2] if len(slow_ema) > 1 else slow_val

    if prev_fast <= prev_slow and fast_val > slow_val:
        signal = BUY
    elif prev_fast >= prev_slow and fast_val < slow_val:
        signal = SELL
    elif fast_val > slow_val:
        signal = BUY
    elif fast_val < slow_val:
        signal = SELL
    else:
        signal = HOLD

    return IndicatorResult(
        round(fast_val - slow_val, 4),
        signal,
        {"fast_ema": round(fast_val, 2), "slow_ema": round(slow_val, 2)},
    )


def calculate_macd(
    closes: list[float],
    fast: int = 12,
    slow: int = 26,
    signal_period: int = 9,
) -> IndicatorResult:
    """MACD line, signal line and histogram; the signal is the line cross.

    Neutral default (fewer than ``slow + signal_period`` closes): all 0, HOLD.
    """
    if len(closes) < slow + signal_period:
        return IndicatorResult(0.0, HOLD, {"macd": 0.0, "signal": 0.0, "histogram": 0.0})

    fast_ema = calculate_ema(closes, fast)
    slow_ema = calculate_ema(closes, slow)
    macd_line = [f - s for f, s in zip(fast_ema, slow_ema)]
    signal_line = calculate_ema(macd_line[slow - 1:], signal_period)

    macd_val = macd_line[-1]
    signal_val = signal_line[-1]
    prev_macd = macd_line[-2]
    prev_signal = signal_line[-2] if len(signal_line) > 1 else signal_val

    cross = HOLD
    if prev_macd <= prev_signal and macd_val > signal_val:
        cross = BUY
    elif prev_macd >= prev_signal and macd_val < signal_val:
        cross = SELL

    histogram = round(macd_val - signal_val, 4)
    return IndicatorResult(
        round(macd_val, 4),
        cross,
        {"macd": round(macd_val, 4), "signal": round(signal_val, 4), "histogram": histogram},
    )


def calculate_bollinger(
    closes: list[float], period: int = 20, num_std: float = 2.0
) -> IndicatorResult:
    """Bollinger Bands (population standard deviation).

    BUY below the lower band, SELL above the upper band.  Neutral default
    (fewer than *period* closes): all bands equal the last close, HOLD.
    """
    if len(closes) < period or period <= 0:
        last = closes[-1] if closes else 0.0
        return IndicatorResult(last, HOLD, {"middle": last, "upper": last, "lower": last})

    window = closes[-period:]
    middle = sum(window) / period
    std = math.sqrt(sum((c - middle) ** 2 for c in window) / period)
    upper = middle + num_std * std
    lower = middle - num_std * std
    last = closes[-1]

    signal = HOLD
    if last < lower:
        signal = BUY
    elif last > upper:
        signal = SELL

    return IndicatorResult(
        round(middle, 2),
        signal,
        {"middle": round(middle, 2), "upper": round(upper, 2), "lower": round(lower, 2)},
    )


# ── Oscillators ──────────────────────────────────────────────────────────


def calculate_rsi(closes: list[float], period: int = 14) -> IndicatorResult:
    """Relative Strength Index with Wilder smoothing.

    BUY below 30, SELL above 70.  Neutral default (fewer than
    ``period + 1`` closes): 50, HOLD.
    """
    if len(closes) < period + 1:
        return IndicatorResult(50.0, HOLD)

    gains = 0.0
    losses = 0.0
    for i in range(1, period + 1):
        diff = closes[i] - closes[i - 1]
        if diff >= 0:
            gains += diff
        else:
            losses -= diff
    avg_gain = gains / period
    avg_loss = losses / period

    for i in range(period + 1, len(closes)):
        diff = closes[i] - closes[i - 1]
        avg_gain = (avg_gain * (period - 1) + max(diff, 0.0)) / period
        avg_loss = (avg_loss * (period - 1) + max(-diff, 0.0)) / period

    if avg_loss == 0:
        return IndicatorResult(100.0, SELL)

    value = 100 - 100 / (1 + avg_gain / avg_loss)
    signal = HOLD
    if value < 30:
        signal = BUY
    elif value > 70:
        signal = SELL
    return IndicatorResult(round(value, 2), signal)


def calculate_stochastic(
    highs: list[float],
    lows: list[float],
    closes: list[float],
    k_period: int = 14,
    d_period: int = 3,
) -> IndicatorResult:
    """Stochastic oscillator %K with its %D smoothing.

    BUY when both lines are below 20, SELL when both are above 80,
    otherwise on a fresh K/D cross.  Neutral default: K = D = 50, HOLD.
    """
    if len(closes) < k_period:
        return IndicatorResult(50.0, HOLD, {"k": 50.0, "d": 50.0})

    k_values: list[float] = []
    for i in range(k_period - 1, len(closes)):
        hh = max(highs[i - k_period + 1:i + 1])
        ll = min(lows[i - k_period + 1:i + 1])
        k_values.append((closes[i] - ll) / (hh - ll) * 100 if hh != ll else 50.0)

    d_values = [
        sum(k_values[i - d_period + 1:i + 1]) / d_period
        for i in range(d_period - 1, len(k_values))
    ]
    k = k_values[-1]
    d = d_values[-1] if d_values else k

    crossable = len(k_values) >= 2 and len(d_values) >= 2
    signal = HOLD
    if k < 20 and d < 20:
        signal = BUY
    elif k > 80 and d > 80:
        signal = SELL
    elif k > d and crossable and k_values[-2] <= d_values[-2]:
        signal = BUY
    elif k < d and crossable and k_values[-2] >= d_values[-2]:
        signal = SELL

    return IndicatorResult(round(k, 2), signal, {"k": round(k, 2), "d": round(d, 2)})


def calculate_williams_r(
    highs: list[float],
    lows: list[float],
    closes: list[float],
    period: int = 14,
) -> IndicatorResult:
    """Williams %R (−100..0).  BUY below −80, SELL above −20.

    Neutral default (fewer than *period* closes): −50, HOLD.
    """
    if len(closes) < period:
        return IndicatorResult(-50.0, HOLD)
    hh = max(highs[-period:])
    ll = min(lows[-period:])
    value = (hh - closes[-1]) / (hh - ll) * -100 if hh != ll else -50.0

    signal = HOLD
    if value < -80:
        signal = BUY
    elif value > -20:
        signal = SELL
    return IndicatorResult(round(value, 2), signal)


def calculate_cci(
    highs: list[float],
    lows: list[float],
    closes: list[float],
    period: int = 20,
) -> IndicatorResult:
    """Commodity Channel Index with the Lambert 0.015 constant.

    BUY below −100, SELL above 100.  Neutral default: 0, HOLD.
    """
    if len(closes) < period:
        return IndicatorResult(0.0, HOLD)
    typical = [(h + l + c) / 3 for h, l, c in zip(highs, lows, closes)]
    window = typical[-period:]
    mean = sum(window) / period
    mean_dev = sum(abs(tp - mean) for tp in window) / period
    value = (typical[-1] - mean) / (0.015 * mean_dev) if mean_dev > 0 else 0.0

    signal = HOLD
    if value < -100:
        signal = BUY
    elif value > 100:
        signal = SELL
    return IndicatorResult(round(value, 2), signal)


def calculate_roc(closes: list[float], period: int = 12) -> IndicatorResult:
    """Rate of change in percent over *period* bars.

    BUY above +5 %, SELL below −5 %.  Neutral default: 0, HOLD.
    """
    if len(closes) < period + 1:
        return IndicatorResult(0.0, HOLD)
    base = closes[-1 - period]
    value = (closes[-1] - base) / base * 100 if base != 0 else 0.0

    signal = HOLD
    if value > 5:
        signal = BUY
    elif value < -5:
        signal = SELL
    return IndicatorResult(round(value, 2), signal)


# ── Volume ───────────────────────────────────────────────────────────────


def calculate_obv(closes: list[float], volumes: list[float]) -> IndicatorResult:
    """On-Balance Volume compared with price over the last 10 bars.

    Price and OBV rising together → BUY, falling together → SELL.  When
    they disagree the signal follows OBV (accumulation/distribution ahead
    of price).  Neutral default (fewer than 2 closes): 0, HOLD.
    """
    if len(closes) < 2 or not volumes:
        return IndicatorResult(0.0, HOLD)

    obv = 0.0
    series = [0.0]
    for i in range(1, len(closes)):
        vol = volumes[i] if i < len(volumes) else 0.0
        if closes[i] > closes[i - 1]:
            obv += vol
        elif closes[i] < closes[i - 1]:
            obv -= vol
        series.append(obv)

    price_up = closes[-1] > closes[max(0, len(closes) - 10)]
    obv_up = series[-1] > series[max(0, len(series) - 10)]
    if price_up and obv_up:
        signal = BUY
    elif not price_up and not obv_up:
        signal = SELL
    elif obv_up:
        signal = BUY
    else:
        signal = SELL
    return IndicatorResult(obv, signal)


def calculate_mfi(
    highs: list[float],
    lows: list[float],
    closes: list[float],
    volumes: list[float],
    period: int = 14,
) -> IndicatorResult:
    """Money Flow Index.  BUY below 20, SELL above 80.

    Neutral default (fewer than ``period + 1`` closes or no volume): 50, HOLD.
    """
    if len(closes) < period + 1 or not volumes:
        return IndicatorResult(50.0, HOLD)

    typical = [(h + l + c) / 3 for h, l, c in zip(highs, lows, closes)]
    pos_flow = 0.0
    neg_flow = 0.0
    for i in range(len(closes) - period, len(closes)):
        vol = volumes[i] if i < len(volumes) and volumes[i] else 1.0
        flow = typical[i] * vol
        if typical[i] > typical[i - 1]:
            pos_flow += flow
        else:
            neg_flow += flow
    mfi = 100 - 100 / (1 + pos_flow / neg_flow) if neg_flow > 0 else 100.0

    signal = HOLD
    if mfi < 20:
        signal = BUY
    elif mfi > 80:
        signal = SELL
    return IndicatorResult(round(mfi, 2), signal)


def analyze_volume(
    closes: list[float], volumes: list[float], surge_ratio: float = 1.2
) -> VolumeProfile:
    """VWAP plus the volume phase of the last five bars.

    Accumulation: price above VWAP with recent volume over
    ``surge_ratio`` × average (BUY).  Distribution is the mirror (SELL).
    """
    if not closes or not volumes:
        return VolumeProfile(0.0, "neutral", HOLD)

    n = min(len(closes), len(volumes))
    total_v = sum(volumes[:n])
    total_pv = sum(closes[i] * volumes[i] for i in range(n))
    vwap = total_pv / total_v if total_v > 0 else closes[n - 1]
    last = closes[n - 1]
    recent_vol = sum(volumes[-5:]) / 5
    avg_vol = total_v / n

    if last > vwap and recent_vol > avg_vol * surge_ratio:
        return VolumeProfile(round(vwap, 2), "accumulation", BUY)
    if last < vwap and recent_vol > avg_vol * surge_ratio:
        return VolumeProfile(round(vwap, 2), "distribution", SELL)
    return VolumeProfile(round(vwap, 2), "neutral", HOLD)


# ── Levels ───────────────────────────────────────────────────────────────

FIBONACCI_RATIOS = (0.0, 0.236, 0.382, 0.5, 0.618, 0.786, 1.0)


def calculate_fibonacci(high: float, low: float) -> IndicatorResult:
    """Retracement levels from *high* down to *low*.  Always HOLD."""
    diff = high - low
    levels = {
        f"{ratio * 100:g}": round(high - ratio * diff, 2) for ratio in FIBONACCI_RATIOS
    }
    return IndicatorResult(levels["50"], HOLD, levels)


def calculate_rsi_series(closes: list[float], period: int = 14) -> list[float]:
    """RSI value for every bar, aligned with *closes*.

    Bars before the first full *period* are filled with the neutral 50.
    """
    if len(closes) < period + 1:
        return [50.0] * len(closes)

    series = [50.0] * period
    avg_gain = 0.0
    avg_loss = 0.0
    for i in range(1, len(closes)):
        diff = closes[i] - closes[i - 1]
        gain, loss = max(diff, 0.0), max(-diff, 0.0)
        if i <= period:
            avg_gain += gain / period
            avg_loss += loss / period
            if i < period:
                continue
        else:
            avg_gain = (avg_gain * (period - 1) + gain) / period
            avg_loss = (avg_loss * (period - 1) + loss) / period
        if avg_loss == 0:
            series.append(100.0)
        else:
            series.append(100 - 100 / (1 + avg_gain / avg_loss))
    return series
