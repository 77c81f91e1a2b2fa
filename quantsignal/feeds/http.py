"""Shared HTTP helper for the public data feeds."""

import asyncio
import logging
from typing import Optional

import httpx

logger = logging.getLogger("quantsignal")

# Retry settings
MAX_RETRIES = 3
RETRY_BASE_DELAY = 2.0  # seconds; doubles each attempt
RETRYABLE_STATUS_CODES = {502, 503, 504, 429}
REQUEST_TIMEOUT = 10.0


async def request_with_retry(
    method: str,
    url: str,
    max_retries: int = MAX_RETRIES,
    base_delay: float = RETRY_BASE_DELAY,
    **kwargs,
) -> httpx.Response:
    """Execute an HTTP request with exponential-backoff retry.

    Retries on transient server errors (502, 503, 504), rate-limits (429)
    and transport failures.  Other error statuses raise
    ``httpx.HTTPStatusError`` immediately.

    Raises:
        httpx.HTTPError: When every attempt fails.
    """
    last_exc: Optional[Exception] = None

    for attempt in range(max_retries):
        try:
            async with httpx.AsyncClient() as client:
                resp = await getattr(client, method)(
                    url,
                    timeout=REQUEST_TIMEOUT,
                    **kwargs,
                )

            if resp.status_code in RETRYABLE_STATUS_CODES:
                delay = base_delay * (2 ** attempt)
                logger.warning(
                    "%s %s returned %d, retry %d/%d in %.1fs",
                    method.upper(), url, resp.status_code,
                    attempt + 1, max_retries, delay,
                )
                last_exc = httpx.HTTPStatusError(
                    f"Server error '{resp.status_code}'",
                    request=resp.request,
                    response=resp,
                )
                await asyncio.sleep(delay)
                continue

            resp.raise_for_status()
            return resp

        except httpx.TransportError as exc:
            delay = base_delay * (2 ** attempt)
            logger.warning(
                "%s %s transport error: %s, retry %d/%d in %.1fs",
                method.upper(), url, exc, attempt + 1, max_retries, delay,
            )
            last_exc = exc
            await asyncio.sleep(delay)

    raise last_exc  # type: ignore[misc]
