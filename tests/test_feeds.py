"""Tests for the HTTP feeds and their TTL cache — mocked httpx responses."""

import httpx
import pytest

from quantsignal.cache import TtlCache
from quantsignal.feeds.fear_greed import (
    CACHE_TTL_SECONDS,
    NEUTRAL_READING,
    FearGreedClient,
    fear_greed_signal,
)
from quantsignal.feeds.http import request_with_retry
from quantsignal.feeds.news import NewsClient
from quantsignal.strategy.models import BUY, HOLD, SELL


# ── Helpers ──────────────────────────────────────────────────────────────


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def _fng_payload(value: int, label: str) -> dict:
    return {"data": [{"value": str(value), "value_classification": label}]}


MOCK_NEWS_RESPONSE = {
    "results": [
        {
            "title": "Bitcoin surges to record high",
            "url": "https://example.com/a",
            "published_at": "2026-02-10T12:00:00Z",
            "source": {"domain": "example.com"},
        },
        {
            "title": "Bitcoin trades sideways",
            "url": "https://example.com/b",
            "published_at": "2026-02-10T11:00:00Z",
            "source": {"domain": "example.com"},
        },
    ]
}


def _install_get(monkeypatch, responses: list):
    """Patch ``httpx.AsyncClient.get`` to replay *responses* in order.

    Each entry is ``(status, json_body)`` or an exception instance.
    Returns the list of captured calls.
    """
    calls: list[dict] = []
    queue = list(responses)

    async def _mock_get(self, url, *, headers=None, params=None, timeout=None):
        calls.append({"url": url, "params": params, "timeout": timeout})
        item = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(item, Exception):
            raise item
        status, body = item
        return httpx.Response(status, json=body, request=httpx.Request("GET", url))

    monkeypatch.setattr(httpx.AsyncClient, "get", _mock_get)
    return calls


# ── TTL cache ────────────────────────────────────────────────────────────


class TestTtlCache:
    def test_fresh_then_expired(self):
        clock = FakeClock()
        cache: TtlCache[int] = TtlCache(60, clock)
        cache.set("k", 1)
        clock.now += 59
        assert cache.get("k") == 1
        clock.now += 1
        assert cache.get("k") is None
        assert cache.get_stale("k") == 1

    def test_missing_key(self):
        cache: TtlCache[int] = TtlCache(60)
        assert cache.get("nope") is None
        assert cache.get_stale("nope") is None

    def test_clear(self):
        cache: TtlCache[int] = TtlCache(60)
        cache.set("k", 1)
        cache.clear()
        assert cache.get_stale("k") is None

    def test_rejects_non_positive_ttl(self):
        with pytest.raises(ValueError, match="ttl_seconds"):
            TtlCache(0)


# ── Retry helper ─────────────────────────────────────────────────────────


class TestRequestWithRetry:
    @pytest.mark.asyncio
    async def test_retries_on_503(self, monkeypatch):
        calls = _install_get(monkeypatch, [(503, {}), (200, {"ok": True})])
        resp = await request_with_retry("get", "https://example.com", base_delay=0)
        assert resp.json() == {"ok": True}
        assert len(calls) == 2

    @pytest.mark.asyncio
    async def test_raises_after_exhausting_retries(self, monkeypatch):
        calls = _install_get(monkeypatch, [httpx.ConnectError("down")])
        with pytest.raises(httpx.ConnectError):
            await request_with_retry("get", "https://example.com", base_delay=0)
        assert len(calls) == 3

    @pytest.mark.asyncio
    async def test_client_error_not_retried(self, monkeypatch):
        calls = _install_get(monkeypatch, [(404, {})])
        with pytest.raises(httpx.HTTPStatusError):
            await request_with_retry("get", "https://example.com", base_delay=0)
        assert len(calls) == 1


# ── Fear & Greed ─────────────────────────────────────────────────────────


class TestFearGreedSignal:
    @pytest.mark.parametrize(
        "value, expected",
        [(10, BUY), (20, BUY), (35, BUY), (50, HOLD), (65, SELL), (80, SELL), (95, SELL)],
    )
    def test_contrarian_bands(self, value, expected):
        assert fear_greed_signal(value) == expected


class TestFearGreedClient:
    @pytest.mark.asyncio
    async def test_fetch_parses_reading(self, monkeypatch):
        _install_get(monkeypatch, [(200, _fng_payload(15, "Extreme Fear"))])
        reading = await FearGreedClient(retry_base_delay=0).fetch()
        assert reading.value == 15
        assert reading.label == "Extreme Fear"
        assert reading.signal == BUY
        assert reading.source == "alternative.me"

    @pytest.mark.asyncio
    async def test_cached_for_thirty_minutes(self, monkeypatch):
        calls = _install_get(monkeypatch, [(200, _fng_payload(55, "Greed"))])
        clock = FakeClock()
        client = FearGreedClient(clock=clock, retry_base_delay=0)
        await client.fetch()
        clock.now += CACHE_TTL_SECONDS - 1
        await client.fetch()
        assert len(calls) == 1
        clock.now += 1
        await client.fetch()
        assert len(calls) == 2

    @pytest.mark.asyncio
    async def test_failure_returns_neutral(self, monkeypatch):
        _install_get(monkeypatch, [httpx.ConnectError("down")])
        reading = await FearGreedClient(retry_base_delay=0).fetch()
        assert reading == NEUTRAL_READING

    @pytest.mark.asyncio
    async def test_failure_after_success_returns_stale(self, monkeypatch):
        clock = FakeClock()
        client = FearGreedClient(clock=clock, retry_base_delay=0)
        _install_get(monkeypatch, [(200, _fng_payload(72, "Greed"))])
        first = await client.fetch()

        clock.now += CACHE_TTL_SECONDS
        _install_get(monkeypatch, [(500, {})])
        assert await client.fetch() == first

    @pytest.mark.asyncio
    async def test_malformed_payload(self, monkeypatch):
        _install_get(monkeypatch, [(200, {"data": []})])
        reading = await FearGreedClient(retry_base_delay=0).fetch()
        assert reading.source == "fallback"


# ── News ─────────────────────────────────────────────────────────────────


class TestNewsClient:
    @pytest.mark.asyncio
    async def test_fetch_scores_headlines(self, monkeypatch):
        calls = _install_get(monkeypatch, [(200, MOCK_NEWS_RESPONSE)])
        digest = await NewsClient(retry_base_delay=0).fetch("eth")
        assert calls[0]["params"]["currencies"] == "ETH"
        assert digest.source == "cryptopanic"
        assert len(digest.headlines) == 2
        assert digest.headlines[0].source == "example.com"
        assert digest.score == 30
        assert digest.signal == BUY

    @pytest.mark.asyncio
    async def test_cache_is_per_asset(self, monkeypatch):
        calls = _install_get(monkeypatch, [(200, MOCK_NEWS_RESPONSE)])
        client = NewsClient(clock=FakeClock(), retry_base_delay=0)
        await client.fetch("BTC")
        await client.fetch("BTC")
        await client.fetch("ETH")
        assert len(calls) == 2

    @pytest.mark.asyncio
    async def test_empty_results_are_neutral(self, monkeypatch):
        _install_get(monkeypatch, [(200, {"results": []})])
        digest = await NewsClient(retry_base_delay=0).fetch()
        assert digest.signal == HOLD
        assert digest.headlines == ()

    @pytest.mark.asyncio
    async def test_failure_is_neutral(self, monkeypatch):
        _install_get(monkeypatch, [httpx.ReadTimeout("slow")])
        digest = await NewsClient(retry_base_delay=0).fetch()
        assert digest.signal == HOLD
        assert digest.source == "unavailable"
