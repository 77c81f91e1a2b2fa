"""QuantSignal — Execution & position engine.

Owns the position book and the risk ledger.  ``execute_trade`` is the only
way a position opens; ``close_position``, ``check_stops_and_targets`` and
``kill_switch`` are the only ways one closes.

State is not locked: concurrent ``execute_trade`` / ``close_position``
calls on one engine must be serialised by the caller.
"""

import asyncio
import itertools
import logging
from datetime import datetime, timezone
from typing import Mapping, Optional

from quantsignal.broker.base import ExchangeAdapter
from quantsignal.broker.models import (
    KILL_SWITCH,
    LIVE,
    MANUAL,
    PAPER,
    STOP_LOSS,
    TAKE_PROFIT,
    CloseResult,
    ExecutionResult,
    OrderFill,
    Position,
)
from quantsignal.broker.paper import PaperAccount
from quantsignal.config import Config
from quantsignal.risk.correlation import check_correlation_block
from quantsignal.risk.ledger import PositionBook, RiskLedger
from quantsignal.risk.position_sizer import calculate_position_size
from quantsignal.risk.sl_tp import calculate_sl_tp, round_price
from quantsignal.risk.trailing_stop import TrailingStop
from quantsignal.strategy.models import BUY, SELL, ConfluenceResult

logger = logging.getLogger("quantsignal")

BALANCE_RETRY_BASE_DELAY = 1.0  # seconds; doubles each attempt

_trade_seq = itertools.count(1)


def _new_trade_id(now: datetime) -> str:
    return f"t_{int(now.timestamp() * 1000)}_{next(_trade_seq):06d}"


class ExecutionEngine:
    """Risk-gated position lifecycle in paper or live mode.

    Args:
        config: Application configuration.
        exchange: Injected exchange client; required in live mode.
        utc_now: Construction time (anchors the ledger's day and week).
    """

    def __init__(
        self,
        config: Config,
        exchange: Optional[ExchangeAdapter] = None,
        utc_now: Optional[datetime] = None,
    ) -> None:
        if not config.is_paper and exchange is None:
            raise ValueError("Live mode requires an exchange adapter")
        self._config = config
        self._exchange = exchange
        self._book = PositionBook()
        self._ledger = RiskLedger(utc_now or datetime.now(timezone.utc))
        self._paper = PaperAccount(config.paper_starting_balance)
        self._trailing: dict[str, TrailingStop] = {}
        self._last_balance: Optional[float] = None

    # ── Read-only accessors ──────────────────────────────────────────────

    @property
    def is_paper_mode(self) -> bool:
        return self._config.is_paper

    @property
    def open_positions(self) -> list[Position]:
        return self._book.open_positions

    @property
    def closed_positions(self) -> list[Position]:
        return self._book.closed_positions

    @property
    def daily_trades(self) -> list[Position]:
        return self._ledger.daily_trades

    @property
    def daily_pnl(self) -> float:
        return self._ledger.daily_pnl

    @property
    def weekly_pnl(self) -> float:
        return self._ledger.weekly_pnl

    @property
    def paper_balance(self) -> dict[str, float]:
        return self._paper.balances()

    @property
    def ledger(self) -> RiskLedger:
        return self._ledger

    def cooldown_remaining(self, utc_now: Optional[datetime] = None) -> float:
        now = utc_now or datetime.now(timezone.utc)
        return self._ledger.cooldown_remaining(now, self._config.cooldown_seconds)

    def daily_trade_count(self, utc_now: Optional[datetime] = None) -> int:
        self._ledger.roll(utc_now or datetime.now(timezone.utc))
        return len(self._ledger.daily_trades)

    # ── Exchange I/O ─────────────────────────────────────────────────────

    async def _exchange_call(self, coro):
        return await asyncio.wait_for(coro, timeout=self._config.exchange_timeout_seconds)

    async def get_balance(self) -> float:
        """Quote-currency balance used for sizing and loss limits.

        Paper mode reads the paper account.  Live mode queries the exchange
        with exponential backoff and falls back to the last known balance
        (0 if none) once retries are exhausted.
        """
        if self.is_paper_mode:
            return self._paper.quote_balance

        attempts = max(1, self._config.exchange_max_retries)
        for attempt in range(attempts):
            try:
                balances = await self._exchange_call(self._exchange.fetch_balance())
                self._last_balance = float(balances.get(self._paper.quote, 0.0))
                return self._last_balance
            except Exception as exc:
                if attempt < attempts - 1:
                    delay = BALANCE_RETRY_BASE_DELAY * (2 ** attempt)
                    logger.warning(
                        "Balance query failed (%s), retry %d/%d in %.1fs",
                        exc, attempt + 1, attempts - 1, delay,
                    )
                    await asyncio.sleep(delay)
                else:
                    logger.error("Balance query failed after %d attempts: %s", attempts, exc)
        return self._last_balance or 0.0

    # ── Open ─────────────────────────────────────────────────────────────

    async def execute_trade(
        self,
        action: str,
        symbol: str,
        price: float,
        analysis: Optional[ConfluenceResult] = None,
        volatility_pct: Optional[float] = None,
        utc_now: Optional[datetime] = None,
    ) -> ExecutionResult:
        """Open a position if every risk gate passes.

        Gates, in order: daily trade cap, max open positions, post-loss
        cooldown, correlation block, weekly loss limit, daily loss kill
        switch, minimum notional.

        Args:
            action: ``"BUY"`` or ``"SELL"``.
            symbol: Market symbol, e.g. ``"BTC/USDT"``.
            price: Entry price.
            analysis: Confluence result recorded on the position.
            volatility_pct: ATR as a fraction of price, for size scaling.
            utc_now: Current UTC time.

        Returns:
            ``ExecutionResult`` with the new position, or the rejection reason.

        Raises:
            ValueError: If *action* is not BUY/SELL or *price* is not positive.
        """
        if action not in (BUY, SELL):
            raise ValueError(f"action must be BUY or SELL, got {action!r}")
        if price <= 0:
            raise ValueError(f"price must be positive, got {price}")
        now = utc_now or datetime.now(timezone.utc)
        cfg = self._config
        self._ledger.roll(now)

        # 1 ── Daily trade cap
        if len(self._ledger.daily_trades) >= cfg.max_daily_trades:
            return ExecutionResult(False, reason=f"Daily limit ({cfg.max_daily_trades})")

        # 2 ── Max open positions
        if len(self._book) >= cfg.max_open_positions:
            return ExecutionResult(False, reason=f"Max positions ({cfg.max_open_positions})")

        # 3 ── Post-loss cooldown
        remaining = self._ledger.cooldown_remaining(now, cfg.cooldown_seconds)
        if remaining > 0:
            return ExecutionResult(False, reason=f"Cooldown: {round(remaining)}s")

        # 4 ── Correlation guard
        corr = check_correlation_block(symbol, self._book.open_positions, cfg.correlated_assets)
        if corr.blocked:
            return ExecutionResult(False, reason=corr.reason)

        # 5/6 ── Loss limits
        balance = await self.get_balance()
        if self._ledger.is_weekly_loss_hit(balance, cfg.max_weekly_loss_pct):
            logger.warning("Weekly loss limit hit: %.2f", self._ledger.weekly_pnl)
            return ExecutionResult(
                False, reason=f"Weekly loss limit hit ({cfg.max_weekly_loss_pct:.0%})"
            )
        if self._ledger.is_daily_loss_hit(balance, cfg.max_daily_loss_pct):
            logger.warning("Daily loss kill switch: %.2f", self._ledger.daily_pnl)
            return ExecutionResult(
                False,
                reason=f"KILL SWITCH: Daily loss exceeds {cfg.max_daily_loss_pct:.0%}",
            )

        # 7 ── Levels and size
        levels = calculate_sl_tp(action, price, cfg.stop_loss_pct, cfg.take_profit_pct)
        size = calculate_position_size(
            balance,
            price,
            levels.stop_loss,
            max_risk_pct=cfg.max_risk_pct,
            max_trade_amount=cfg.max_trade_amount,
            atr_pct=volatility_pct,
        )
        notional = size * price
        if notional < cfg.min_notional:
            return ExecutionResult(False, reason=f"Position too small: ${notional:.2f}")

        position = Position(
            id=_new_trade_id(now),
            symbol=symbol,
            action=action,
            entry_price=price,
            size=size,
            stop_loss=round_price(levels.stop_loss),
            take_profit=round_price(levels.take_profit),
            cost=round(notional, 2),
            opened_at=now,
            mode=PAPER if self.is_paper_mode else LIVE,
            confluence=round(analysis.confidence) if analysis else None,
            signal=analysis.signal if analysis else None,
        )

        # 8 ── Place
        if self.is_paper_mode:
            self._paper.apply_open(position)
        else:
            try:
                raw = await self._exchange_call(
                    self._exchange.create_market_order(symbol, action.lower(), size)
                )
                position.order_id = OrderFill.from_response(raw).order_id
            except Exception as exc:
                logger.error("Order failed for %s %s: %s", action, symbol, exc)
                return ExecutionResult(False, reason=f"Exchange error: {exc}")

        self._book.add(position)
        self._ledger.record_trade(position, now)
        if cfg.trailing_stop_enabled:
            self._trailing[position.id] = TrailingStop(
                price,
                position.stop_loss,
                action,
                activation_pct=cfg.trailing_stop_activation,
                distance_pct=cfg.trailing_stop_distance,
            )

        logger.info(
            "%s %s %s %.5f @ %s | SL %s TP %s | $%.2f",
            position.mode, action, symbol, size, price,
            position.stop_loss, position.take_profit, position.cost,
        )
        return ExecutionResult(True, position=position)

    # ── Close ────────────────────────────────────────────────────────────

    async def close_position(
        self,
        position_id: str,
        current_price: float,
        reason: str = MANUAL,
        utc_now: Optional[datetime] = None,
    ) -> CloseResult:
        """Close one open position at *current_price* and realise its PnL."""
        position = self._book.get(position_id)
        if position is None:
            return CloseResult(False, reason="Not found")
        now = utc_now or datetime.now(timezone.utc)

        if not self.is_paper_mode:
            side = "sell" if position.action == BUY else "buy"
            try:
                await self._exchange_call(
                    self._exchange.create_market_order(position.symbol, side, position.size)
                )
            except Exception as exc:
                logger.error("Close order failed for %s: %s", position.id, exc)

        pnl = position.close(current_price, reason, now)
        self._book.remove(position.id)
        self._trailing.pop(position.id, None)
        if self.is_paper_mode:
            self._paper.apply_close(position, current_price, pnl)
        self._ledger.record_pnl(pnl, now)

        logger.info(
            "Closed %s %s @ %s (%s) PnL %.2f",
            position.action, position.symbol, current_price, reason, position.pnl,
        )
        return CloseResult(True, position=position, pnl=pnl)

    async def check_stops_and_targets(
        self,
        current_prices: Mapping[str, float],
        utc_now: Optional[datetime] = None,
    ) -> list[CloseResult]:
        """Close every position whose stop or target has been breached.

        Symbols missing from *current_prices* are skipped.  With trailing
        stops enabled, each stop is ratcheted before the breach check.
        """
        results: list[CloseResult] = []
        for position in self._book.open_positions:
            price = current_prices.get(position.symbol)
            if price is None:
                continue

            trail = self._trailing.get(position.id)
            if trail is not None:
                new_sl = trail.update(price)
                if new_sl is not None:
                    position.stop_loss = round_price(new_sl)
                    logger.info("Trailing stop for %s moved to %s", position.id, position.stop_loss)

            reason = None
            if position.action == BUY:
                if price <= position.stop_loss:
                    reason = STOP_LOSS
                elif price >= position.take_profit:
                    reason = TAKE_PROFIT
            else:
                if price >= position.stop_loss:
                    reason = STOP_LOSS
                elif price <= position.take_profit:
                    reason = TAKE_PROFIT

            if reason is not None:
                results.append(await self.close_position(position.id, price, reason, utc_now))
        return results

    async def kill_switch(
        self,
        current_prices: Mapping[str, float],
        utc_now: Optional[datetime] = None,
    ) -> list[CloseResult]:
        """Close every open position unconditionally."""
        positions = self._book.open_positions
        if positions:
            logger.warning("KILL SWITCH: closing %d position(s)", len(positions))
        results = []
        for position in positions:
            price = current_prices.get(position.symbol, position.entry_price)
            results.append(
                await self.close_position(position.id, price, KILL_SWITCH, utc_now)
            )
        return results
