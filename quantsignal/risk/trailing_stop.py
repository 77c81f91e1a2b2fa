"""Trailing stop — percentage-based SL ratchet for open positions.

Rules:
  - Inactive until price has moved *activation_pct* in the trade's favour.
  - Once active, the SL trails *distance_pct* behind the current price and
    only ever moves in the trade's favour.
"""

from quantsignal.strategy.models import BUY, SELL


class TrailingStop:
    """Tracks and updates SL for a single position.

    Args:
        entry_price: Original entry price.
        initial_sl: Original stop-loss price.
        direction: ``"BUY"`` or ``"SELL"``.
        activation_pct: Favourable move (fraction) that arms the trail.
        distance_pct: Trail distance behind price (fraction).
    """

    def __init__(
        self,
        entry_price: float,
        initial_sl: float,
        direction: str,
        activation_pct: float = 0.02,
        distance_pct: float = 0.01,
    ) -> None:
        if direction not in (BUY, SELL):
            raise ValueError(f"direction must be BUY or SELL, got {direction!r}")
        self.entry_price = entry_price
        self.direction = direction
        self.current_sl = initial_sl
        self._activation = activation_pct
        self._distance = distance_pct

    def update(self, current_price: float) -> float | None:
        """Evaluate the current price and return a new SL if it should move.

        Returns:
            New SL price if the stop should be adjusted, ``None`` if no change.
        """
        if self.direction == BUY:
            if current_price < self.entry_price * (1 + self._activation):
                return None
            new_sl = current_price * (1 - self._distance)
            if new_sl > self.current_sl:
                self.current_sl = new_sl
                return new_sl
        else:
            if current_price > self.entry_price * (1 - self._activation):
                return None
            new_sl = current_price * (1 + self._distance)
            if new_sl < self.current_sl:
                self.current_sl = new_sl
                return new_sl
        return None
