"""Capability protocols for the injected exchange and market-data clients."""

from typing import Any, Protocol, runtime_checkable

from quantsignal.strategy.models import CandleData


@runtime_checkable
class ExchangeAdapter(Protocol):
    """Order placement and balance queries against a real exchange.

    ``create_market_order`` may return an ``OrderFill`` or a ccxt-style
    dict with ``id``/``filled``/``average`` keys.
    """

    async def fetch_balance(self) -> dict[str, float]:
        """Total balance per currency, e.g. ``{"USDT": 1000.0, "BTC": 0.01}``."""
        ...

    async def create_market_order(self, symbol: str, side: str, size: float) -> Any:
        """Submit a market order; *side* is ``"buy"`` or ``"sell"``."""
        ...


@runtime_checkable
class MarketDataSource(Protocol):
    """Supplies trailing OHLCV candles, oldest first."""

    async def fetch_candles(
        self, symbol: str, timeframe: str, count: int
    ) -> list[CandleData]:
        ...
