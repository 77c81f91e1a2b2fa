"""Market analysis — assembles the full indicator bag from a candle window."""

from typing import Optional

from quantsignal.strategy.candlesticks import detect_candlestick_patterns
from quantsignal.strategy.channels import calculate_aroon, calculate_keltner_channels
from quantsignal.strategy.chart_patterns import (
    detect_advanced_chart_patterns,
    detect_chart_patterns,
)
from quantsignal.strategy.divergence import detect_divergence
from quantsignal.strategy.indicators import (
    analyze_volume,
    calculate_adx,
    calculate_atr,
    calculate_bollinger,
    calculate_cci,
    calculate_ema_crossover,
    calculate_fibonacci,
    calculate_ichimoku,
    calculate_macd,
    calculate_mfi,
    calculate_obv,
    calculate_parabolic_sar,
    calculate_roc,
    calculate_rsi,
    calculate_rsi_series,
    calculate_stochastic,
    calculate_williams_r,
)
from quantsignal.strategy.models import (
    CandleData,
    FearGreedReading,
    HeadlineSentiment,
    IndicatorBag,
    NewsDigest,
)
from quantsignal.strategy.pivot_points import calculate_pivot_points
from quantsignal.strategy.regime import detect_market_regime


def build_indicator_bag(
    candles: list[CandleData],
    fear_greed: Optional[FearGreedReading] = None,
    news: Optional[NewsDigest] = None,
    sentiment: Optional[HeadlineSentiment] = None,
    max_volatility_pct: float = 0.08,
    pivot_period: int = 24,
) -> IndicatorBag:
    """Run every indicator, pattern and analytic over *candles*.

    Pivots are computed from the *pivot_period* bars before the latest
    one and judged against the latest close.  Divergence compares closes
    with the RSI series.

    Args:
        candles: OHLCV bars, oldest first.
        fear_greed: Latest sentiment-index reading, if available.
        news: Aggregated headline sentiment, if available.
        sentiment: Free-text sentiment (e.g. an analyst note), if available.
        max_volatility_pct: Volatility ceiling for the regime classifier.
        pivot_period: Bars that form the prior pivot period.
    """
    opens = [c.open for c in candles]
    highs = [c.high for c in candles]
    lows = [c.low for c in candles]
    closes = [c.close for c in candles]
    volumes = [c.volume for c in candles]

    price = closes[-1] if closes else None
    atr = calculate_atr(highs, lows, closes)
    atr_pct = atr / price if price else 0.0

    adx = calculate_adx(highs, lows, closes)
    roc = calculate_roc(closes)
    regime = detect_market_regime(adx.value, atr_pct, roc.value, max_volatility_pct)

    pivots = None
    if len(candles) >= 2:
        prior = slice(max(0, len(candles) - 1 - pivot_period), len(candles) - 1)
        pivots = calculate_pivot_points(
            max(highs[prior]),
            min(lows[prior]),
            closes[-2],
            opens[prior][0],
            current_price=price,
        )

    fibonacci = calculate_fibonacci(max(highs), min(lows)) if candles else None
    chart = detect_chart_patterns(closes) + detect_advanced_chart_patterns(closes)

    return IndicatorBag(
        rsi=calculate_rsi(closes),
        macd=calculate_macd(closes),
        bollinger=calculate_bollinger(closes),
        ema=calculate_ema_crossover(closes),
        fibonacci=fibonacci,
        volume=analyze_volume(closes, volumes),
        sentiment=sentiment,
        stochastic=calculate_stochastic(highs, lows, closes),
        williams_r=calculate_williams_r(highs, lows, closes),
        adx=adx,
        obv=calculate_obv(closes, volumes),
        cci=calculate_cci(highs, lows, closes),
        parabolic_sar=calculate_parabolic_sar(highs, lows),
        ichimoku=calculate_ichimoku(highs, lows, closes),
        mfi=calculate_mfi(highs, lows, closes, volumes),
        roc=roc,
        candlestick_patterns=detect_candlestick_patterns(candles),
        chart_patterns=chart,
        fear_greed=fear_greed,
        market_regime=regime,
        divergences=detect_divergence(closes, calculate_rsi_series(closes)),
        pivot_points=pivots,
        keltner=calculate_keltner_channels(highs, lows, closes),
        aroon=calculate_aroon(highs, lows),
        news=news,
        price=price,
        atr=atr,
        atr_pct=atr_pct,
    )
