"""Headline feed with a per-asset 15-minute cache."""

import logging
import time
from typing import Callable

import httpx

from quantsignal.cache import TtlCache
from quantsignal.feeds.http import MAX_RETRIES, RETRY_BASE_DELAY, request_with_retry
from quantsignal.strategy.models import Headline, NewsDigest
from quantsignal.strategy.news_sentiment import aggregate_news_sentiment, classify_headline

logger = logging.getLogger("quantsignal")

NEWS_URL = "https://cryptopanic.com/api/free/v1/posts/"
CACHE_TTL_SECONDS = 15 * 60
MAX_HEADLINES = 10


class NewsClient:
    """Fetches hot headlines for an asset and scores them.

    On any fetch or payload failure the stale cached digest (or an empty
    neutral digest) is returned; errors are logged, never raised.

    Args:
        url: Public headline endpoint.
        ttl_seconds: Per-asset cache lifetime.
        clock: Monotonic clock for the cache (injectable for tests).
    """

    def __init__(
        self,
        url: str = NEWS_URL,
        ttl_seconds: float = CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        max_retries: int = MAX_RETRIES,
        retry_base_delay: float = RETRY_BASE_DELAY,
    ) -> None:
        self._url = url
        self._cache: TtlCache[NewsDigest] = TtlCache(ttl_seconds, clock)
        self._max_retries = max_retries
        self._retry_base_delay = retry_base_delay

    async def fetch(self, asset: str = "BTC") -> NewsDigest:
        """Return the scored headline digest for *asset*."""
        key = asset.upper()
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        params = {
            "auth_token": "free",
            "public": "true",
            "filter": "hot",
            "currencies": key,
        }
        try:
            resp = await request_with_retry(
                "get", self._url,
                max_retries=self._max_retries,
                base_delay=self._retry_base_delay,
                params=params,
            )
            results = resp.json().get("results") or []
            headlines = [
                Headline(
                    title=item["title"],
                    source=(item.get("source") or {}).get("domain", "unknown"),
                    sentiment=classify_headline(item["title"]),
                    url=item.get("url", ""),
                    published=item.get("published_at", ""),
                )
                for item in results[:MAX_HEADLINES]
            ]
        except (httpx.HTTPError, ValueError, KeyError, TypeError, AttributeError) as exc:
            logger.warning("News fetch for %s failed: %s", key, exc)
            return self._cache.get_stale(key) or aggregate_news_sentiment([])

        if not headlines:
            return self._cache.get_stale(key) or aggregate_news_sentiment([])

        digest = aggregate_news_sentiment(headlines, source="cryptopanic")
        self._cache.set(key, digest)
        logger.info(
            "News %s: %d headline(s), score %d (%s)",
            key, len(headlines), digest.score, digest.label,
        )
        return digest
