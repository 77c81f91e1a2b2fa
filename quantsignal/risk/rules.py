"""Trading rules engine — declarative discipline checks before execution.

Each rule is a ``TradingRule`` descriptor (name, priority, check) and all
rules are evaluated uniformly against one ``RuleContext``.  A trade is
approved iff no CRITICAL rule fails and at most one HIGH rule fails;
MEDIUM failures are advisory.
"""

from dataclasses import dataclass, field
from typing import Callable, Optional

from quantsignal.strategy.economic_calendar import CalendarAssessment
from quantsignal.strategy.models import (
    BUY,
    SELL,
    ConfluenceResult,
    FearGreedReading,
    IndicatorBag,
    IndicatorResult,
    VolumeProfile,
)

CRITICAL = "CRITICAL"
HIGH = "HIGH"
MEDIUM = "MEDIUM"

STRONG_TREND_ADX = 30


@dataclass(frozen=True)
class RuleContext:
    """Everything a rule may look at for one proposed trade."""

    action: str
    confluence: float = 0.0  # confidence 0..100
    adx: Optional[IndicatorResult] = None
    atr_pct: Optional[float] = None
    rsi: Optional[IndicatorResult] = None
    volume: Optional[VolumeProfile] = None
    fear_greed: Optional[FearGreedReading] = None
    calendar: Optional[CalendarAssessment] = None
    daily_trade_count: int = 0
    cooldown_remaining: float = 0.0  # seconds
    max_daily_trades: int = 10
    max_volatility_pct: float = 0.08
    min_confluence: float = 60
    stop_loss_pct: float = 0.02
    take_profit_pct: float = 0.04
    min_reward_risk: float = 2.0
    extreme_fear: float = 20
    extreme_greed: float = 80

    @classmethod
    def from_analysis(
        cls,
        action: str,
        bag: IndicatorBag,
        confluence: ConfluenceResult,
        calendar: Optional[CalendarAssessment] = None,
        **limits,
    ) -> "RuleContext":
        """Build a context from an indicator bag and its confluence result."""
        return cls(
            action=action,
            confluence=confluence.confidence,
            adx=bag.adx,
            atr_pct=bag.atr_pct,
            rsi=bag.rsi,
            volume=bag.volume,
            fear_greed=bag.fear_greed,
            calendar=calendar,
            **limits,
        )


RuleCheck = Callable[[RuleContext], tuple[bool, str]]


@dataclass(frozen=True)
class TradingRule:
    """A named, prioritised predicate over a ``RuleContext``."""

    name: str
    priority: str
    check: RuleCheck


@dataclass(frozen=True)
class RuleEvaluation:
    rule: str
    passed: bool
    priority: str
    reason: str


@dataclass(frozen=True)
class RulesVerdict:
    """Ordered rule results plus the aggregate verdict."""

    approved: bool
    rules: list[RuleEvaluation] = field(default_factory=list)
    critical_failed: int = 0
    high_failed: int = 0
    summary: str = ""

    @property
    def failures(self) -> list[RuleEvaluation]:
        return [r for r in self.rules if not r.passed]


# ── Rule checks ──────────────────────────────────────────────────────────


def _trend_alignment(ctx: RuleContext) -> tuple[bool, str]:
    adx = ctx.adx
    if adx is None or (adx.value or 0) <= STRONG_TREND_ADX:
        return True, "No strong trend: both directions allowed"
    against = (ctx.action == BUY and adx.signal == SELL) or (
        ctx.action == SELL and adx.signal == BUY
    )
    if against:
        return False, f"ADX={adx.value} strong {adx.signal} trend: {ctx.action} is against it"
    return True, f"ADX={adx.value} strong trend: trading with it"


def _reward_risk(ctx: RuleContext) -> tuple[bool, str]:
    if ctx.stop_loss_pct <= 0:
        return False, "Stop-loss distance is zero"
    ratio = ctx.take_profit_pct / ctx.stop_loss_pct
    return (
        ratio >= ctx.min_reward_risk,
        f"Take profit {ctx.take_profit_pct:.1%} vs stop loss {ctx.stop_loss_pct:.1%}: "
        f"{ratio:.2f}:1 (need {ctx.min_reward_risk:g}:1)",
    )


def _daily_cap(ctx: RuleContext) -> tuple[bool, str]:
    return (
        ctx.daily_trade_count < ctx.max_daily_trades,
        f"{ctx.daily_trade_count}/{ctx.max_daily_trades} trades today",
    )


def _volatility(ctx: RuleContext) -> tuple[bool, str]:
    if not ctx.atr_pct:
        return True, "No ATR data"
    too_high = ctx.atr_pct >= ctx.max_volatility_pct
    verdict = "too volatile" if too_high else "acceptable"
    return not too_high, f"ATR/price = {ctx.atr_pct:.1%}: {verdict}"


def _calendar(ctx: RuleContext) -> tuple[bool, str]:
    if ctx.calendar is not None and ctx.calendar.should_pause:
        events = ", ".join(r.event for r in ctx.calendar.risks if r.risk in ("HIGH", "CRITICAL"))
        return False, f"High-impact event window: {events}"
    return True, "No imminent events"


def _min_confluence(ctx: RuleContext) -> tuple[bool, str]:
    return (
        ctx.confluence >= ctx.min_confluence,
        f"Confluence {ctx.confluence:g}% (need >= {ctx.min_confluence:g}%)",
    )


def _rsi_extremes(ctx: RuleContext) -> tuple[bool, str]:
    if ctx.rsi is None or ctx.rsi.value is None:
        return True, "No RSI"
    rsi = ctx.rsi.value
    if ctx.action == BUY and rsi > 75:
        return False, f"RSI={rsi}: overbought, do not buy"
    if ctx.action == SELL and rsi < 25:
        return False, f"RSI={rsi}: oversold, do not sell"
    return True, f"RSI={rsi}: OK"


def _volume_confirmation(ctx: RuleContext) -> tuple[bool, str]:
    if ctx.volume is None:
        return True, "No volume data"
    return ctx.volume.phase != "neutral", f"Volume phase: {ctx.volume.phase}"


def _no_revenge(ctx: RuleContext) -> tuple[bool, str]:
    if ctx.cooldown_remaining > 0:
        return False, f"Post-loss cooldown: {round(ctx.cooldown_remaining)}s left"
    return True, "No loss cooldown active"


def _contrarian(ctx: RuleContext) -> tuple[bool, str]:
    fg = ctx.fear_greed
    if fg is None:
        return True, "No sentiment index data"
    if fg.value > ctx.extreme_greed and ctx.action == BUY:
        return False, f"F&G={fg.value}: extreme greed + BUY"
    if fg.value < ctx.extreme_fear and ctx.action == SELL:
        return False, f"F&G={fg.value}: extreme fear + SELL"
    return True, f"F&G={fg.value}: OK"


DEFAULT_RULES: tuple[TradingRule, ...] = (
    TradingRule("Trade with the trend", CRITICAL, _trend_alignment),
    TradingRule("Risk/Reward >= 2:1", CRITICAL, _reward_risk),
    TradingRule("Daily trade cap", HIGH, _daily_cap),
    TradingRule("Volatility guard", HIGH, _volatility),
    TradingRule("Economic calendar check", HIGH, _calendar),
    TradingRule("Minimum confluence", CRITICAL, _min_confluence),
    TradingRule("RSI extremes check", MEDIUM, _rsi_extremes),
    TradingRule("Volume confirmation", MEDIUM, _volume_confirmation),
    TradingRule("No revenge trading", CRITICAL, _no_revenge),
    TradingRule("Contrarian guard", CRITICAL, _contrarian),
)


def evaluate_trading_rules(
    ctx: RuleContext, rules: tuple[TradingRule, ...] = DEFAULT_RULES
) -> RulesVerdict:
    """Run every rule in order and compute the verdict."""
    results: list[RuleEvaluation] = []
    for rule in rules:
        passed, reason = rule.check(ctx)
        results.append(RuleEvaluation(rule.name, bool(passed), rule.priority, reason))

    critical = [r.rule for r in results if not r.passed and r.priority == CRITICAL]
    high = [r.rule for r in results if not r.passed and r.priority == HIGH]

    if critical:
        summary = f"BLOCKED: {', '.join(critical)}"
    elif len(high) > 1:
        summary = f"BLOCKED: too many warnings: {', '.join(high)}"
    else:
        summary = "APPROVED"

    return RulesVerdict(
        approved=not critical and len(high) <= 1,
        rules=results,
        critical_failed=len(critical),
        high_failed=len(high),
        summary=summary,
    )
