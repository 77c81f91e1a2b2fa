"""Tests for the confluence engine and the indicator-bag assembler."""

import pytest

from quantsignal.strategy.analysis import build_indicator_bag
from quantsignal.strategy.confluence import SOURCE_WEIGHTS, calculate_super_confluence, collect_signals
from quantsignal.strategy.models import (
    BEARISH,
    BULLISH,
    BUY,
    HOLD,
    SELL,
    STRONG_BUY,
    STRONG_SELL,
    CandleData,
    ConfluenceResult,
    FearGreedReading,
    IndicatorBag,
    IndicatorResult,
    MarketRegime,
    Pattern,
)
from quantsignal.strategy.regime import VOLATILE_CHAOS, WEAK_TREND


# ── Helpers ──────────────────────────────────────────────────────────────


def _sig(signal: str) -> IndicatorResult:
    return IndicatorResult(0.0, signal)


def _uptrend_candles(n: int = 250) -> list[CandleData]:
    candles = []
    for i in range(n):
        close = 100.0 + 0.5 * i
        open_ = close - 0.3
        candles.append(CandleData(f"t{i}", open_, close + 0.5, open_ - 0.5, close, 1000.0))
    return candles


def _chaotic_candles(n: int = 60) -> list[CandleData]:
    """Flat closes with a ±5 % range every bar: ATR is 10 % of price."""
    return [CandleData(f"t{i}", 100.0, 105.0, 95.0, 100.0, 1000.0) for i in range(n)]


# ── Confluence ───────────────────────────────────────────────────────────


class TestSuperConfluence:
    def test_empty_bag_is_hold(self):
        result = calculate_super_confluence(IndicatorBag())
        assert result.signal == HOLD
        assert result.confidence == 0
        assert result.score == 0.0
        assert result.details == {}

    def test_unanimous_buy_is_strong(self):
        result = calculate_super_confluence(IndicatorBag(rsi=_sig(BUY), macd=_sig(BUY)))
        assert result.signal == STRONG_BUY
        assert result.score == pytest.approx(1.0)
        assert result.confidence == 100
        assert result.action == BUY

    def test_missing_sources_are_excluded(self):
        # (−10 × 1) / (10 + 8 + 8) with rsi and bollinger neutral
        bag = IndicatorBag(macd=_sig(SELL), rsi=_sig(HOLD), bollinger=_sig(HOLD))
        result = calculate_super_confluence(bag)
        assert result.score == pytest.approx(-10 / 26, abs=1e-3)
        assert result.signal == SELL
        assert result.confidence == 38
        assert set(result.details) == {"macd", "rsi", "bollinger"}

    def test_mixed_signals_hold(self):
        result = calculate_super_confluence(IndicatorBag(rsi=_sig(BUY), macd=_sig(SELL)))
        assert result.signal == HOLD
        assert result.confidence == 11

    def test_strong_sell(self):
        bag = IndicatorBag(macd=_sig(SELL), ema=_sig(SELL), adx=_sig(SELL))
        assert calculate_super_confluence(bag).signal == STRONG_SELL

    def test_non_tradeable_regime_forces_hold(self):
        chaos = MarketRegime(VOLATILE_CHAOS, False, 0.0)
        bag = IndicatorBag(rsi=_sig(BUY), macd=_sig(BUY), market_regime=chaos)
        result = calculate_super_confluence(bag)
        assert result.signal == HOLD
        assert result.confidence == 0
        assert result.regime == VOLATILE_CHAOS
        assert result.details["market_regime"] == HOLD

    def test_regime_multiplier_scales_confidence(self):
        weak = MarketRegime(WEAK_TREND, True, 0.5)
        bag = IndicatorBag(rsi=_sig(BUY), macd=_sig(BUY), market_regime=weak)
        result = calculate_super_confluence(bag)
        assert result.signal == STRONG_BUY
        assert result.confidence == 50
        assert "market_regime" not in result.details

    def test_score_and_confidence_bounds(self):
        result = calculate_super_confluence(IndicatorBag(rsi=_sig(STRONG_BUY)))
        assert result.score == pytest.approx(1.5)
        assert result.confidence == 100

    def test_patterns_vote_by_net_strength(self):
        bag = IndicatorBag(candlestick_patterns=[
            Pattern("Bullish Engulfing", BULLISH, 3),
            Pattern("Shooting Star", BEARISH, 2),
        ])
        assert collect_signals(bag)["candlestick_patterns"] == BUY

    def test_empty_pattern_list_is_missing(self):
        assert collect_signals(IndicatorBag(chart_patterns=[]))["chart_patterns"] is None

    def test_fear_greed_counts(self):
        bag = IndicatorBag(fear_greed=FearGreedReading(90, "Extreme Greed", SELL, "test"))
        result = calculate_super_confluence(bag)
        assert result.details == {"fear_greed": SELL}
        assert result.signal == STRONG_SELL

    def test_every_source_has_a_weight(self):
        assert set(collect_signals(IndicatorBag())) == set(SOURCE_WEIGHTS)


class TestConfluenceAction:
    @pytest.mark.parametrize(
        "signal, action",
        [(STRONG_BUY, BUY), (BUY, BUY), (HOLD, HOLD), (SELL, SELL), (STRONG_SELL, SELL)],
    )
    def test_action(self, signal, action):
        assert ConfluenceResult(signal, 50, 0.5).action == action


# ── Indicator bag ────────────────────────────────────────────────────────


class TestBuildIndicatorBag:
    def test_uptrend_bag_is_populated(self):
        candles = _uptrend_candles()
        bag = build_indicator_bag(candles)
        assert bag.price == candles[-1].close
        assert bag.atr_pct == pytest.approx(bag.atr / bag.price)
        assert bag.ema.signal == BUY
        assert bag.adx.signal == BUY
        assert bag.market_regime is not None
        assert bag.fear_greed is None
        assert bag.news is None

    def test_pivots_use_prior_period(self):
        candles = _uptrend_candles()
        bag = build_indicator_bag(candles, pivot_period=24)
        prior = candles[-25:-1]
        high = max(c.high for c in prior)
        low = min(c.low for c in prior)
        expected_pp = round((high + low + candles[-2].close) / 3, 2)
        assert bag.pivot_points.classic["PP"] == pytest.approx(expected_pp)

    def test_high_volatility_is_chaos_and_hold(self):
        bag = build_indicator_bag(_chaotic_candles(), max_volatility_pct=0.08)
        assert bag.atr_pct == pytest.approx(0.10)
        assert bag.market_regime.regime == VOLATILE_CHAOS
        result = calculate_super_confluence(bag)
        assert result.signal == HOLD
        assert result.confidence == 0

    def test_empty_candles(self):
        bag = build_indicator_bag([])
        assert bag.price is None
        assert bag.pivot_points is None
        assert calculate_super_confluence(bag).signal in (BUY, SELL, HOLD, STRONG_BUY, STRONG_SELL)
