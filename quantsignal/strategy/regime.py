"""Market regime classification — pure function."""

from quantsignal.strategy.models import MarketRegime

STRONG_TREND = "STRONG_TREND"
WEAK_TREND = "WEAK_TREND"
RANGING = "RANGING"
VOLATILE_CHAOS = "VOLATILE_CHAOS"


def detect_market_regime(
    adx: float | None,
    atr_pct: float | None,
    roc: float | None,
    max_volatility_pct: float = 0.08,
) -> MarketRegime:
    """Classify the market from trend strength, volatility and momentum.

    Evaluated in order:

    1. ATR% above *max_volatility_pct* → VOLATILE_CHAOS (not tradeable, ×0).
    2. ADX > 30 and |ROC| > 3 → STRONG_TREND (×1.0).
    3. 20 < ADX ≤ 30 → WEAK_TREND (×0.5).
    4. Otherwise RANGING (×0.5).

    Missing ADX is read as 20, missing ROC and ATR% as 0.

    Args:
        adx: ADX value (0–100).
        atr_pct: ATR as a fraction of price (0.03 = 3 %).
        roc: Rate of change in percent.
        max_volatility_pct: Volatility ceiling as a fraction of price.
    """
    adx_val = adx if adx is not None else 20.0
    abs_roc = abs(roc or 0.0)

    if (atr_pct or 0.0) > max_volatility_pct:
        return MarketRegime(VOLATILE_CHAOS, False, 0.0, "Do not trade: volatility too high")
    if adx_val > 30 and abs_roc > 3:
        return MarketRegime(STRONG_TREND, True, 1.0, "Follow the trend: EMA crossover + MACD")
    if 20 < adx_val <= 30:
        return MarketRegime(WEAK_TREND, True, 0.5, "Trade cautiously at half size")
    return MarketRegime(RANGING, True, 0.5, "Mean reversion: Bollinger + RSI")
