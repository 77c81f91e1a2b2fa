"""Candlestick pattern recognition over the last one to three candles.

Each candle is reduced to body/shadow proportions and matched against a
fixed catalogue.  A window can yield several patterns at once.
"""

from dataclasses import dataclass

from quantsignal.strategy.models import BEARISH, BULLISH, NEUTRAL, CandleData, Pattern

MIN_CANDLES = 5


@dataclass(frozen=True)
class CandleShape:
    """Body and shadow proportions of a single candle."""

    open: float
    high: float
    low: float
    close: float
    body: float
    range: float
    upper_shadow: float
    lower_shadow: float
    is_bullish: bool
    is_bearish: bool
    body_pct: float

    @property
    def midpoint(self) -> float:
        """Midpoint of the real body."""
        return (self.open + self.close) / 2


def parse_candle(candle: CandleData) -> CandleShape:
    """Decompose *candle* into body, range and shadow lengths."""
    body = abs(candle.close - candle.open)
    rng = candle.high - candle.low
    return CandleShape(
        open=candle.open,
        high=candle.high,
        low=candle.low,
        close=candle.close,
        body=body,
        range=rng,
        upper_shadow=candle.high - max(candle.open, candle.close),
        lower_shadow=min(candle.open, candle.close) - candle.low,
        is_bullish=candle.close > candle.open,
        is_bearish=candle.close < candle.open,
        body_pct=body / rng if rng > 0 else 0.0,
    )


def _single(c: CandleShape, p1: CandleShape) -> list[Pattern]:
    found: list[Pattern] = []

    if c.body_pct < 0.1 and c.range > 0:
        if c.upper_shadow > c.body * 2 and c.lower_shadow > c.body * 2:
            found.append(Pattern("Doji", NEUTRAL, 1))
        elif c.upper_shadow > c.body * 3 and c.lower_shadow < c.body:
            found.append(Pattern("Gravestone Doji", BEARISH, 2))
        elif c.lower_shadow > c.body * 3 and c.upper_shadow < c.body:
            found.append(Pattern("Dragonfly Doji", BULLISH, 2))

    small_body = c.body_pct < 0.4
    long_lower = c.lower_shadow >= c.body * 2 and c.upper_shadow < c.body * 0.5
    long_upper = c.upper_shadow >= c.body * 2 and c.lower_shadow < c.body * 0.5

    if long_lower and small_body and c.body_pct > 0.05:
        found.append(Pattern("Hammer", BULLISH, 2))
    if long_upper and small_body and c.body_pct > 0.05:
        found.append(Pattern("Inverted Hammer", BULLISH, 1))
    # Same shapes after an up candle read as exhaustion.
    if long_lower and small_body and p1.is_bullish:
        found.append(Pattern("Hanging Man", BEARISH, 2))
    if long_upper and small_body and p1.is_bullish:
        found.append(Pattern("Shooting Star", BEARISH, 2))

    if c.body_pct > 0.95:
        if c.is_bullish:
            found.append(Pattern("Bullish Marubozu", BULLISH, 2))
        else:
            found.append(Pattern("Bearish Marubozu", BEARISH, 2))
    if 0.1 < c.body_pct < 0.3 and c.upper_shadow > c.body and c.lower_shadow > c.body:
        found.append(Pattern("Spinning Top", NEUTRAL, 1))
    return found


def _double(c: CandleShape, p1: CandleShape) -> list[Pattern]:
    found: list[Pattern] = []
    up_after_down = p1.is_bearish and c.is_bullish
    down_after_up = p1.is_bullish and c.is_bearish

    if up_after_down and c.open <= p1.close and c.close >= p1.open and c.body > p1.body:
        found.append(Pattern("Bullish Engulfing", BULLISH, 3))
    if down_after_up and c.open >= p1.close and c.close <= p1.open and c.body > p1.body:
        found.append(Pattern("Bearish Engulfing", BEARISH, 3))
    if up_after_down and c.body < p1.body and c.open > p1.close and c.close < p1.open:
        found.append(Pattern("Bullish Harami", BULLISH, 1))
    if down_after_up and c.body < p1.body and c.open < p1.close and c.close > p1.open:
        found.append(Pattern("Bearish Harami", BEARISH, 1))
    if up_after_down and c.open < p1.low and p1.midpoint < c.close < p1.open:
        found.append(Pattern("Piercing Line", BULLISH, 2))
    if down_after_up and c.open > p1.high and p1.open < c.close < p1.midpoint:
        found.append(Pattern("Dark Cloud Cover", BEARISH, 2))
    if up_after_down and abs(p1.low - c.low) < c.range * 0.05:
        found.append(Pattern("Tweezer Bottom", BULLISH, 2))
    if down_after_up and abs(p1.high - c.high) < c.range * 0.05:
        found.append(Pattern("Tweezer Top", BEARISH, 2))
    return found


def _triple(c: CandleShape, p1: CandleShape, p2: CandleShape) -> list[Pattern]:
    found: list[Pattern] = []

    if p2.is_bearish and p1.body_pct < 0.2 and c.is_bullish and c.close > p2.midpoint:
        found.append(Pattern("Morning Star", BULLISH, 3))
    if p2.is_bullish and p1.body_pct < 0.2 and c.is_bearish and c.close < p2.midpoint:
        found.append(Pattern("Evening Star", BEARISH, 3))

    strong_bodies = p2.body_pct > 0.5 and p1.body_pct > 0.5 and c.body_pct > 0.5
    if (
        p2.is_bullish and p1.is_bullish and c.is_bullish
        and p1.close > p2.close and c.close > p1.close and strong_bodies
    ):
        found.append(Pattern("Three White Soldiers", BULLISH, 3))
    if (
        p2.is_bearish and p1.is_bearish and c.is_bearish
        and p1.close < p2.close and c.close < p1.close and strong_bodies
    ):
        found.append(Pattern("Three Black Crows", BEARISH, 3))

    if p2.is_bearish and p1.is_bullish and p1.body < p2.body and c.is_bullish and c.close > p2.open:
        found.append(Pattern("Three Inside Up", BULLISH, 2))
    if p2.is_bullish and p1.is_bearish and p1.body < p2.body and c.is_bearish and c.close < p2.open:
        found.append(Pattern("Three Inside Down", BEARISH, 2))

    # Gapped doji between two opposite candles.
    if p2.is_bearish and p1.body_pct < 0.05 and p1.high < p2.low and c.is_bullish and c.low > p1.high:
        found.append(Pattern("Abandoned Baby (Bull)", BULLISH, 3))
    if p2.is_bullish and p1.body_pct < 0.05 and p1.low > p2.high and c.is_bearish and c.high < p1.low:
        found.append(Pattern("Abandoned Baby (Bear)", BEARISH, 3))
    return found


def detect_candlestick_patterns(candles: list[CandleData]) -> list[Pattern]:
    """Return every pattern formed by the last three candles.

    Returns an empty list with fewer than five candles.
    """
    if len(candles) < MIN_CANDLES:
        return []
    c = parse_candle(candles[-1])
    p1 = parse_candle(candles[-2])
    p2 = parse_candle(candles[-3])
    return _single(c, p1) + _double(c, p1) + _triple(c, p1, p2)
