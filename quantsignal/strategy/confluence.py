"""Confluence engine — weighted consensus over every upstream signal.

Each source is normalised to a score (BUY +1, HOLD 0, SELL −1,
STRONG_BUY +1.5, STRONG_SELL −1.5), multiplied by its weight, and the sum
is divided by the total weight of the sources that actually reported.
"""

import logging
from typing import Optional

from quantsignal.strategy.models import (
    BEARISH,
    BULLISH,
    BUY,
    HOLD,
    SELL,
    SIGNAL_SCORES,
    STRONG_BUY,
    STRONG_SELL,
    ConfluenceResult,
    IndicatorBag,
)

logger = logging.getLogger("quantsignal")

SOURCE_WEIGHTS: dict[str, int] = {
    "rsi": 8,
    "macd": 10,
    "bollinger": 8,
    "ema": 10,
    "fibonacci": 5,
    "volume": 7,
    "sentiment": 5,
    "stochastic": 8,
    "williams_r": 5,
    "adx": 10,
    "obv": 7,
    "cci": 5,
    "parabolic_sar": 7,
    "ichimoku": 10,
    "mfi": 5,
    "roc": 3,
    "candlestick_patterns": 12,
    "chart_patterns": 15,
    "fear_greed": 12,
    "market_regime": 10,
    "divergence": 10,
    "pivot_points": 5,
    "keltner": 5,
    "aroon": 5,
    "news": 5,
}

STRONG_THRESHOLD = 0.6
SIGNAL_THRESHOLD = 0.25


def _net_strength(items) -> Optional[str]:
    """Collapse patterns or divergences to one signal by summed strength."""
    if not items:
        return None
    bull = sum(i.strength for i in items if i.type == BULLISH)
    bear = sum(i.strength for i in items if i.type == BEARISH)
    if bull > bear:
        return BUY
    if bear > bull:
        return SELL
    return HOLD


def _signal_of(reading) -> Optional[str]:
    return reading.signal if reading is not None else None


def _label_signal(sentiment) -> Optional[str]:
    if sentiment is None:
        return None
    if sentiment.label == BULLISH:
        return BUY
    if sentiment.label == BEARISH:
        return SELL
    return HOLD


def collect_signals(bag: IndicatorBag) -> dict[str, Optional[str]]:
    """Map every confluence source to its signal (``None`` when missing)."""
    regime = bag.market_regime
    return {
        "rsi": _signal_of(bag.rsi),
        "macd": _signal_of(bag.macd),
        "bollinger": _signal_of(bag.bollinger),
        "ema": _signal_of(bag.ema),
        "fibonacci": _signal_of(bag.fibonacci),
        "volume": _signal_of(bag.volume),
        "sentiment": _label_signal(bag.sentiment),
        "stochastic": _signal_of(bag.stochastic),
        "williams_r": _signal_of(bag.williams_r),
        "adx": _signal_of(bag.adx),
        "obv": _signal_of(bag.obv),
        "cci": _signal_of(bag.cci),
        "parabolic_sar": _signal_of(bag.parabolic_sar),
        "ichimoku": _signal_of(bag.ichimoku),
        "mfi": _signal_of(bag.mfi),
        "roc": _signal_of(bag.roc),
        "candlestick_patterns": _net_strength(bag.candlestick_patterns),
        "chart_patterns": _net_strength(bag.chart_patterns),
        "fear_greed": _signal_of(bag.fear_greed),
        # The regime only votes (HOLD) when it rules trading out.
        "market_regime": HOLD if regime is not None and not regime.tradeable else None,
        "divergence": _net_strength(bag.divergences),
        "pivot_points": _signal_of(bag.pivot_points),
        "keltner": _signal_of(bag.keltner),
        "aroon": _signal_of(bag.aroon),
        "news": _signal_of(bag.news),
    }


def _grade(score: float) -> str:
    if score >= STRONG_THRESHOLD:
        return STRONG_BUY
    if score >= SIGNAL_THRESHOLD:
        return BUY
    if score <= -STRONG_THRESHOLD:
        return STRONG_SELL
    if score <= -SIGNAL_THRESHOLD:
        return SELL
    return HOLD


def calculate_super_confluence(bag: IndicatorBag) -> ConfluenceResult:
    """Grade the combined signal of every reading in *bag*.

    Thresholds on the normalised score: ≥ 0.6 STRONG_BUY, ≥ 0.25 BUY,
    ≤ −0.6 STRONG_SELL, ≤ −0.25 SELL, otherwise HOLD.  Confidence is
    ``|score| × 100 × regime.risk_multiplier`` clamped to 0–100.  A
    non-tradeable regime forces HOLD whatever the score.

    Returns:
        A ``ConfluenceResult``; ``details`` holds the per-source signals
        that were counted.
    """
    signals = collect_signals(bag)
    weighted = 0.0
    total_weight = 0
    details: dict[str, str] = {}
    for source, signal in signals.items():
        if signal is None or signal not in SIGNAL_SCORES:
            continue
        weight = SOURCE_WEIGHTS[source]
        weighted += SIGNAL_SCORES[signal] * weight
        total_weight += weight
        details[source] = signal

    regime = bag.market_regime
    regime_name = regime.regime if regime is not None else None
    if total_weight == 0:
        return ConfluenceResult(HOLD, 0, 0.0, regime_name, details)

    score = max(-1.5, min(1.5, weighted / total_weight))
    multiplier = regime.risk_multiplier if regime is not None else 1.0
    confidence = max(0, min(100, round(abs(score) * 100 * multiplier)))

    signal = _grade(score)
    if regime is not None and not regime.tradeable:
        signal = HOLD

    logger.debug(
        "Confluence %s score=%.3f confidence=%d regime=%s sources=%d",
        signal, score, confidence, regime_name, len(details),
    )
    return ConfluenceResult(signal, confidence, round(score, 3), regime_name, details)
