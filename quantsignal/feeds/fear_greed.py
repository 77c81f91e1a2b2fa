"""Fear & Greed index feed with a 30-minute cache.

Never raises on network or payload failure: the last cached reading, or a
neutral fallback, is returned instead.
"""

import logging
import time
from typing import Callable

import httpx

from quantsignal.cache import TtlCache
from quantsignal.feeds.http import MAX_RETRIES, RETRY_BASE_DELAY, request_with_retry
from quantsignal.strategy.models import BUY, HOLD, SELL, FearGreedReading

logger = logging.getLogger("quantsignal")

FEAR_GREED_URL = "https://api.alternative.me/fng/?limit=1"
CACHE_TTL_SECONDS = 30 * 60
EXTREME_FEAR = 20
EXTREME_GREED = 80

NEUTRAL_READING = FearGreedReading(50, "Neutral", HOLD, "fallback")

_CACHE_KEY = "fear_greed"


def fear_greed_signal(
    value: float,
    extreme_fear: float = EXTREME_FEAR,
    extreme_greed: float = EXTREME_GREED,
) -> str:
    """Contrarian read of the index.

    ≤ extreme fear → BUY, ≥ extreme greed → SELL, otherwise BUY below 40,
    SELL above 60 and HOLD in between.
    """
    if value <= extreme_fear:
        return BUY
    if value >= extreme_greed:
        return SELL
    if value < 40:
        return BUY
    if value > 60:
        return SELL
    return HOLD


class FearGreedClient:
    """Fetches the market sentiment index.

    Args:
        url: Endpoint returning ``{"data": [{"value", "value_classification"}]}``.
        ttl_seconds: Cache lifetime of a successful reading.
        clock: Monotonic clock for the cache (injectable for tests).
    """

    def __init__(
        self,
        url: str = FEAR_GREED_URL,
        ttl_seconds: float = CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        max_retries: int = MAX_RETRIES,
        retry_base_delay: float = RETRY_BASE_DELAY,
    ) -> None:
        self._url = url
        self._cache: TtlCache[FearGreedReading] = TtlCache(ttl_seconds, clock)
        self._max_retries = max_retries
        self._retry_base_delay = retry_base_delay

    async def fetch(self) -> FearGreedReading:
        """Return the current reading, from cache when fresh."""
        cached = self._cache.get(_CACHE_KEY)
        if cached is not None:
            return cached

        try:
            resp = await request_with_retry(
                "get", self._url,
                max_retries=self._max_retries,
                base_delay=self._retry_base_delay,
            )
            entry = resp.json()["data"][0]
            value = int(entry["value"])
            label = str(entry.get("value_classification", ""))
        except (httpx.HTTPError, ValueError, KeyError, IndexError, TypeError) as exc:
            logger.warning("Fear & Greed fetch failed: %s", exc)
            return self._cache.get_stale(_CACHE_KEY) or NEUTRAL_READING

        reading = FearGreedReading(value, label, fear_greed_signal(value), "alternative.me")
        self._cache.set(_CACHE_KEY, reading)
        logger.info("Fear & Greed: %d (%s) -> %s", value, label, reading.signal)
        return reading
