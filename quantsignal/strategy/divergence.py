"""Price/oscillator divergence detection — pure function."""

from quantsignal.strategy.models import BEARISH, BULLISH, BUY, SELL, DivergenceSignal


def _swing_points(
    prices: list[float], osc: list[float]
) -> tuple[list[tuple[float, float]], list[tuple[float, float]]]:
    """Strict ±2 bar extrema as ``(price, oscillator)`` pairs: (lows, highs)."""
    lows: list[tuple[float, float]] = []
    highs: list[tuple[float, float]] = []
    for i in range(2, len(prices) - 2):
        neighbours = (prices[i - 2], prices[i - 1], prices[i + 1], prices[i + 2])
        if all(prices[i] < n for n in neighbours):
            lows.append((prices[i], osc[i]))
        if all(prices[i] > n for n in neighbours):
            highs.append((prices[i], osc[i]))
    return lows, highs


def detect_divergence(
    prices: list[float], oscillator: list[float], lookback: int = 30
) -> list[DivergenceSignal]:
    """Compare the last two price swings with the oscillator at the same bars.

    Regular divergences (strength 3) anticipate a reversal: a lower price
    low with a higher oscillator low is bullish, a higher price high with a
    lower oscillator high is bearish.  Hidden divergences (strength 2)
    signal trend continuation.

    Both series must be aligned bar-for-bar; returns an empty list when
    either is shorter than *lookback*.
    """
    if len(prices) < lookback or len(oscillator) < lookback:
        return []

    lows, highs = _swing_points(prices[-lookback:], oscillator[-lookback:])
    found: list[DivergenceSignal] = []

    if len(lows) >= 2:
        (p_a, o_a), (p_b, o_b) = lows[-2:]
        if p_b < p_a and o_b > o_a:
            found.append(DivergenceSignal(
                "Regular Bullish Divergence", BULLISH, BUY, 3,
                "Price lower low, oscillator higher low: reversal up expected",
            ))
        if p_b > p_a and o_b < o_a:
            found.append(DivergenceSignal(
                "Hidden Bullish Divergence", BULLISH, BUY, 2,
                "Price higher low, oscillator lower low: uptrend continuation",
            ))

    if len(highs) >= 2:
        (p_a, o_a), (p_b, o_b) = highs[-2:]
        if p_b > p_a and o_b < o_a:
            found.append(DivergenceSignal(
                "Regular Bearish Divergence", BEARISH, SELL, 3,
                "Price higher high, oscillator lower high: reversal down expected",
            ))
        if p_b < p_a and o_b > o_a:
            found.append(DivergenceSignal(
                "Hidden Bearish Divergence", BEARISH, SELL, 2,
                "Price lower high, oscillator higher high: downtrend continuation",
            ))
    return found
