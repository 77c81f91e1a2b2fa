"""Tests for the trading rules engine."""

import pytest

from quantsignal.risk.rules import (
    CRITICAL,
    DEFAULT_RULES,
    HIGH,
    MEDIUM,
    RuleContext,
    TradingRule,
    evaluate_trading_rules,
)
from quantsignal.strategy.economic_calendar import CalendarAssessment, CalendarRisk
from quantsignal.strategy.models import (
    BUY,
    SELL,
    STRONG_BUY,
    ConfluenceResult,
    FearGreedReading,
    IndicatorBag,
    IndicatorResult,
    VolumeProfile,
)


def _ctx(**overrides) -> RuleContext:
    """A context that passes every default rule unless overridden."""
    defaults = dict(
        action=BUY,
        confluence=75,
        adx=IndicatorResult(22.0, BUY),
        atr_pct=0.02,
        rsi=IndicatorResult(55.0),
        volume=VolumeProfile(100.0, "accumulation", BUY),
        fear_greed=FearGreedReading(50, "Neutral", "HOLD", "test"),
    )
    defaults.update(overrides)
    return RuleContext(**defaults)


def _result(verdict, name: str):
    return next(r for r in verdict.rules if r.rule == name)


class TestDefaultRules:
    def test_rule_order_and_priorities(self):
        assert [(r.name, r.priority) for r in DEFAULT_RULES] == [
            ("Trade with the trend", CRITICAL),
            ("Risk/Reward >= 2:1", CRITICAL),
            ("Daily trade cap", HIGH),
            ("Volatility guard", HIGH),
            ("Economic calendar check", HIGH),
            ("Minimum confluence", CRITICAL),
            ("RSI extremes check", MEDIUM),
            ("Volume confirmation", MEDIUM),
            ("No revenge trading", CRITICAL),
            ("Contrarian guard", CRITICAL),
        ]

    def test_clean_context_is_approved(self):
        verdict = evaluate_trading_rules(_ctx())
        assert verdict.approved is True
        assert verdict.summary == "APPROVED"
        assert verdict.failures == []
        assert len(verdict.rules) == len(DEFAULT_RULES)


class TestCriticalRules:
    def test_buy_against_strong_downtrend(self):
        verdict = evaluate_trading_rules(_ctx(adx=IndicatorResult(35.0, SELL)))
        trend = _result(verdict, "Trade with the trend")
        assert trend.passed is False
        assert trend.priority == CRITICAL
        assert verdict.approved is False
        assert verdict.critical_failed == 1
        assert verdict.summary == "BLOCKED: Trade with the trend"

    def test_sell_with_strong_downtrend(self):
        verdict = evaluate_trading_rules(_ctx(action=SELL, adx=IndicatorResult(35.0, SELL)))
        assert _result(verdict, "Trade with the trend").passed is True

    def test_weak_trend_allows_either_side(self):
        verdict = evaluate_trading_rules(_ctx(adx=IndicatorResult(30.0, SELL)))
        assert _result(verdict, "Trade with the trend").passed is True

    def test_extreme_greed_blocks_buy(self):
        verdict = evaluate_trading_rules(
            _ctx(fear_greed=FearGreedReading(90, "Extreme Greed", SELL, "test"))
        )
        assert _result(verdict, "Contrarian guard").passed is False
        assert verdict.approved is False

    def test_extreme_fear_blocks_sell(self):
        verdict = evaluate_trading_rules(
            _ctx(action=SELL, adx=None, fear_greed=FearGreedReading(10, "Extreme Fear", BUY, "test"))
        )
        assert _result(verdict, "Contrarian guard").passed is False

    def test_low_confluence(self):
        verdict = evaluate_trading_rules(_ctx(confluence=59))
        assert verdict.summary == "BLOCKED: Minimum confluence"

    def test_poor_reward_risk(self):
        verdict = evaluate_trading_rules(_ctx(stop_loss_pct=0.03, take_profit_pct=0.04))
        assert _result(verdict, "Risk/Reward >= 2:1").passed is False
        assert verdict.approved is False

    def test_zero_stop_distance(self):
        verdict = evaluate_trading_rules(_ctx(stop_loss_pct=0.0))
        assert _result(verdict, "Risk/Reward >= 2:1").passed is False

    def test_cooldown_blocks(self):
        verdict = evaluate_trading_rules(_ctx(cooldown_remaining=1200))
        revenge = _result(verdict, "No revenge trading")
        assert revenge.passed is False
        assert "1200s" in revenge.reason
        assert verdict.approved is False

    def test_multiple_critical_in_summary(self):
        verdict = evaluate_trading_rules(_ctx(confluence=10, cooldown_remaining=5))
        assert verdict.summary == "BLOCKED: Minimum confluence, No revenge trading"
        assert verdict.critical_failed == 2


class TestHighRules:
    def test_high_volatility_fails(self):
        verdict = evaluate_trading_rules(_ctx(atr_pct=0.09))
        vol = _result(verdict, "Volatility guard")
        assert vol.passed is False
        assert vol.priority == HIGH

    def test_single_high_failure_is_approved(self):
        verdict = evaluate_trading_rules(_ctx(atr_pct=0.09))
        assert verdict.high_failed == 1
        assert verdict.approved is True
        assert verdict.summary == "APPROVED"

    def test_two_high_failures_block(self):
        verdict = evaluate_trading_rules(
            _ctx(atr_pct=0.09, daily_trade_count=10, max_daily_trades=10)
        )
        assert verdict.approved is False
        assert verdict.summary == "BLOCKED: too many warnings: Daily trade cap, Volatility guard"

    def test_calendar_pause_fails(self):
        calendar = CalendarAssessment(
            risks=[CalendarRisk("FOMC rate decision", "CRITICAL", "Pause trading")],
            high_risk=True,
            should_pause=True,
        )
        verdict = evaluate_trading_rules(_ctx(calendar=calendar))
        rule = _result(verdict, "Economic calendar check")
        assert rule.passed is False
        assert "FOMC rate decision" in rule.reason

    def test_calendar_without_pause_passes(self):
        calendar = CalendarAssessment(risks=[CalendarRisk("Asian Session", "LOW", "")])
        verdict = evaluate_trading_rules(_ctx(calendar=calendar))
        assert _result(verdict, "Economic calendar check").passed is True


class TestMediumRules:
    @pytest.mark.parametrize("action, rsi", [(BUY, 80.0), (SELL, 20.0)])
    def test_rsi_extremes_are_advisory(self, action, rsi):
        verdict = evaluate_trading_rules(_ctx(action=action, adx=None, rsi=IndicatorResult(rsi)))
        assert _result(verdict, "RSI extremes check").passed is False
        assert verdict.approved is True

    def test_neutral_volume_is_advisory(self):
        verdict = evaluate_trading_rules(_ctx(volume=VolumeProfile(100.0, "neutral")))
        assert _result(verdict, "Volume confirmation").passed is False
        assert verdict.approved is True


class TestRuleContext:
    def test_from_analysis(self):
        bag = IndicatorBag(
            adx=IndicatorResult(28.0, BUY),
            rsi=IndicatorResult(60.0),
            atr_pct=0.015,
        )
        confluence = ConfluenceResult(STRONG_BUY, 72, 0.72)
        ctx = RuleContext.from_analysis(BUY, bag, confluence, daily_trade_count=3)
        assert ctx.confluence == 72
        assert ctx.atr_pct == 0.015
        assert ctx.adx.value == 28.0
        assert ctx.daily_trade_count == 3
        assert ctx.calendar is None

    def test_custom_rule_set(self):
        always_fails = TradingRule("Never", HIGH, lambda ctx: (False, "no"))
        verdict = evaluate_trading_rules(_ctx(), (always_fails,))
        assert verdict.approved is True
        assert verdict.high_failed == 1
