"""Paper account — simulated balances for paper mode."""

import logging

from quantsignal.broker.models import Position
from quantsignal.risk.correlation import base_asset

logger = logging.getLogger("quantsignal")


class PaperAccount:
    """In-memory multi-currency balance.

    BUY debits the quote currency and credits the base asset; closing a
    BUY reverses it at the close price.  SELL positions are cash-settled:
    only their realised PnL reaches the quote balance on close.

    Args:
        starting_balance: Initial quote-currency balance.
        quote: Quote currency code.
    """

    def __init__(self, starting_balance: float = 10000.0, quote: str = "USDT") -> None:
        self.quote = quote
        self._balances: dict[str, float] = {quote: starting_balance}

    @property
    def quote_balance(self) -> float:
        return self._balances.get(self.quote, 0.0)

    def balances(self) -> dict[str, float]:
        """Copy of every non-empty balance."""
        return dict(self._balances)

    def _adjust(self, currency: str, amount: float) -> None:
        self._balances[currency] = self._balances.get(currency, 0.0) + amount

    def apply_open(self, position: Position) -> None:
        if position.action == "BUY":
            self._adjust(self.quote, -position.cost)
            self._adjust(base_asset(position.symbol), position.size)

    def apply_close(self, position: Position, price: float, pnl: float) -> None:
        if position.action == "BUY":
            self._adjust(self.quote, price * position.size)
            self._adjust(base_asset(position.symbol), -position.size)
        else:
            self._adjust(self.quote, pnl)
        logger.debug("Paper %s balance now %.2f", self.quote, self.quote_balance)
