"""QuantSignal — Trading engine (orchestration loop).

Connects market data, analysis, the rules engine and the execution engine
into a single polling loop.  The engine never schedules itself: ``run`` is
the external poll loop that drives ``run_once``.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Optional

from quantsignal.broker.base import MarketDataSource
from quantsignal.config import Config
from quantsignal.executor import ExecutionEngine
from quantsignal.feeds.fear_greed import FearGreedClient
from quantsignal.feeds.news import NewsClient
from quantsignal.risk.correlation import base_asset
from quantsignal.risk.rules import RuleContext, evaluate_trading_rules
from quantsignal.strategy.analysis import build_indicator_bag
from quantsignal.strategy.confluence import calculate_super_confluence
from quantsignal.strategy.economic_calendar import (
    DEFAULT_SCHEDULED_EVENTS,
    ScheduledEvent,
    get_economic_calendar_risks,
)
from quantsignal.strategy.models import HOLD

logger = logging.getLogger("quantsignal")

CANDLE_TIMEFRAME = "1h"
CANDLE_COUNT = 250
MIN_CANDLES = 50


class TradingEngine:
    """Orchestrates one analyse-gate-execute cycle per symbol per call.

    Args:
        config: Application configuration.
        market_data: Candle source implementing ``MarketDataSource``.
        executor: The execution engine that owns positions and the ledger.
        fear_greed_client: Sentiment-index feed; skipped when ``None``.
        news_client: Headline feed; skipped when ``None``.
        scheduled_events: Dated macro announcements for the calendar guard.
    """

    def __init__(
        self,
        config: Config,
        market_data: MarketDataSource,
        executor: ExecutionEngine,
        fear_greed_client: Optional[FearGreedClient] = None,
        news_client: Optional[NewsClient] = None,
        scheduled_events: tuple[ScheduledEvent, ...] = DEFAULT_SCHEDULED_EVENTS,
    ) -> None:
        self._config = config
        self._market_data = market_data
        self._executor = executor
        self._fear_greed = fear_greed_client
        self._news = news_client
        self._scheduled_events = scheduled_events
        self._running: bool = False
        self._cycle_count: int = 0

    @property
    def cycle_count(self) -> int:
        return self._cycle_count

    def stop(self) -> None:
        """Signal the engine to stop after the current cycle."""
        self._running = False

    # ── Polling loop ─────────────────────────────────────────────────────

    async def run(
        self,
        symbols: list[str],
        poll_interval: int = 300,
        max_cycles: int = 0,
    ) -> list[dict]:
        """Run the trading loop until stopped.

        Args:
            symbols: Markets evaluated each cycle, in order.
            poll_interval: Seconds between cycles.
            max_cycles: Stop after this many cycles (0 = unlimited).

        Returns:
            List of per-symbol, per-cycle result dicts.
        """
        self._running = True
        results: list[dict] = []
        cycle = 0

        while self._running:
            cycle += 1
            self._cycle_count += 1
            for symbol in symbols:
                try:
                    result = await self.run_once(symbol)
                except Exception as exc:
                    logger.error("Cycle %d %s error: %s", cycle, symbol, exc)
                    result = {"action": "error", "symbol": symbol, "reason": str(exc)}
                results.append(result)
                logger.info("Cycle %d %s: %s", cycle, symbol, result.get("action", "unknown"))

            if max_cycles > 0 and cycle >= max_cycles:
                break

            # Interruptible sleep: checks _running every second
            for _ in range(poll_interval):
                if not self._running:
                    break
                await asyncio.sleep(1)

        self._running = False
        return results

    # ── Single cycle ─────────────────────────────────────────────────────

    async def run_once(self, symbol: str, utc_now: Optional[datetime] = None) -> dict:
        """Execute one trading cycle for *symbol*.

        Returns a dict describing the action taken:

        - ``{"action": "skipped", "reason": "..."}``
        - ``{"action": "rejected", "reason": "BLOCKED: ...", "rules": [...]}``
        - ``{"action": "order_placed", "position": {...}}``

        Every result also carries ``closed``: positions closed by the
        stop/target check that runs before analysis.

        Args:
            symbol: Market symbol, e.g. ``"BTC/USDT"``.
            utc_now: Current UTC datetime.  Defaults to ``datetime.now(UTC)``.
        """
        if utc_now is None:
            utc_now = datetime.now(timezone.utc)
        cfg = self._config

        # 1 ── Market data
        candles = await self._market_data.fetch_candles(symbol, CANDLE_TIMEFRAME, CANDLE_COUNT)
        if len(candles) < MIN_CANDLES:
            return {
                "action": "skipped",
                "symbol": symbol,
                "reason": "insufficient_data",
                "closed": [],
            }
        price = candles[-1].close

        # 2 ── Stops and targets on open positions
        closes = await self._executor.check_stops_and_targets({symbol: price}, utc_now)
        closed = [c.position.to_dict() for c in closes if c.closed]

        # 3 ── Macro context and analysis
        fear_greed = await self._fear_greed.fetch() if self._fear_greed else None
        news = await self._news.fetch(base_asset(symbol)) if self._news else None
        bag = build_indicator_bag(
            candles,
            fear_greed=fear_greed,
            news=news,
            max_volatility_pct=cfg.max_volatility_pct,
        )
        confluence = calculate_super_confluence(bag)
        base = {
            "symbol": symbol,
            "price": price,
            "signal": confluence.signal,
            "confidence": confluence.confidence,
            "closed": closed,
        }

        if confluence.action == HOLD:
            return {**base, "action": "skipped", "reason": "no_signal"}

        # 4 ── Rules engine
        calendar = get_economic_calendar_risks(utc_now, self._scheduled_events)
        ctx = RuleContext.from_analysis(
            confluence.action,
            bag,
            confluence,
            calendar,
            daily_trade_count=self._executor.daily_trade_count(utc_now),
            cooldown_remaining=self._executor.cooldown_remaining(utc_now),
            max_daily_trades=cfg.max_daily_trades,
            max_volatility_pct=cfg.max_volatility_pct,
            min_confluence=cfg.min_confluence,
            stop_loss_pct=cfg.stop_loss_pct,
            take_profit_pct=cfg.take_profit_pct,
        )
        verdict = evaluate_trading_rules(ctx)
        if not verdict.approved:
            logger.info("%s %s rejected: %s", confluence.action, symbol, verdict.summary)
            return {
                **base,
                "action": "rejected",
                "reason": verdict.summary,
                "rules": [
                    {"rule": r.rule, "passed": r.passed, "priority": r.priority, "reason": r.reason}
                    for r in verdict.rules
                ],
            }

        # 5 ── Execution
        result = await self._executor.execute_trade(
            confluence.action,
            symbol,
            price,
            analysis=confluence,
            volatility_pct=bag.atr_pct,
            utc_now=utc_now,
        )
        if not result.executed:
            return {**base, "action": "skipped", "reason": result.reason}
        return {**base, "action": "order_placed", "position": result.position.to_dict()}
