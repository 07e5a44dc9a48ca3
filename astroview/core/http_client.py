"""
astroview/core/http_client.py
Shared async httpx client + resilient single-call fetch.
  • create_client()     → one pooled client per process (lifespan-owned)
  • fetch_with_retry()  → timeout + bounded retry + exponential backoff
                          + one metric sample per attempt
  • FetchError          → the only failure type callers ever see
"""

import asyncio
import logging
import time
from typing import Any, Optional

import httpx
from tenacity import AsyncRetrying, RetryCallState, retry_if_exception_type, stop_after_attempt, wait_exponential

from astroview.core.config import DEFAULT_HEADERS
from astroview.core.metrics import MetricsRecorder

log = logging.getLogger("http")

_LIMITS  = httpx.Limits(max_connections=20, max_keepalive_connections=10)
_TIMEOUT = httpx.Timeout(30.0, connect=10.0)


class FetchError(Exception):
    """Upstream call failed: HTTP status, network error, or timeout."""

    def __init__(self, url: str, status: Optional[int] = None, timeout: bool = False, reason: str = ""):
        self.url     = url
        self.status  = status
        self.timeout = timeout
        self.reason  = reason
        if status is not None:
            msg = f"HTTP {status} for {url}"
        elif timeout:
            msg = f"timeout after {reason} for {url}"
        else:
            msg = f"network error for {url}: {reason}"
        super().__init__(msg)


def create_client() -> httpx.AsyncClient:
    # The per-attempt deadline lives in fetch_with_retry; this timeout is only
    # a backstop for callers that use the client directly.
    return httpx.AsyncClient(
        headers=DEFAULT_HEADERS,
        timeout=_TIMEOUT,
        follow_redirects=True,
        limits=_LIMITS,
    )


def _parse_body(resp: httpx.Response) -> Any:
    if "json" in resp.headers.get("content-type", "").lower():
        return resp.json()
    return resp.text


async def _sleep(seconds: float) -> None:
    await asyncio.sleep(seconds)


async def fetch_with_retry(
    client: httpx.AsyncClient,
    url: str,
    *,
    timeout_s: float = 5.0,
    retries: int = 2,
    metric_name: Optional[str] = None,
    metrics: Optional[MetricsRecorder] = None,
    backoff_s: float = 0.3,
    method: str = "GET",
    **request_kwargs: Any,
) -> Any:
    """
    Issue one HTTP request with up to `retries` extra attempts.

    Each attempt is cancelled after `timeout_s`. A non-2xx response counts as
    a failed attempt. Between attempts tenacity waits backoff_s * 2**n
    (0.3s, 0.6s, 1.2s ... by default). Returns parsed JSON when the response
    is JSON, otherwise the body text. Raises FetchError once attempts run out.

    Worst case latency is roughly sum(timeout_s + backoff) over all attempts.
    """
    attempts = max(0, retries) + 1

    def before_sleep(state: RetryCallState) -> None:
        err = state.outcome.exception() if state.outcome else None
        wait = state.next_action.sleep if state.next_action else 0.0
        log.info(f"{method} {url} attempt {state.attempt_number}/{attempts} failed ({err}) — retrying in {wait:.2f}s")

    retrying = AsyncRetrying(
        stop=stop_after_attempt(attempts),
        wait=wait_exponential(multiplier=backoff_s),
        retry=retry_if_exception_type(FetchError),
        sleep=_sleep,
        before_sleep=before_sleep,
        reraise=True,
    )
    try:
        async for attempt in retrying:
            with attempt:
                return await _attempt(client, method, url, timeout_s, metric_name, metrics, request_kwargs)
    except FetchError as err:
        log.warning(f"{method} {url} failed after {attempts} attempt(s): {err}")
        raise

    # AsyncRetrying with reraise=True either returns above or raises
    raise FetchError(url, reason="exhausted retries")


async def _attempt(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    timeout_s: float,
    metric_name: Optional[str],
    metrics: Optional[MetricsRecorder],
    request_kwargs: dict,
) -> Any:
    start = time.perf_counter()
    try:
        resp = await asyncio.wait_for(
            client.request(method, url, **request_kwargs),
            timeout=timeout_s,
        )
        if not resp.is_success:
            raise FetchError(url, status=resp.status_code)
        data = _parse_body(resp)
    except (FetchError, asyncio.TimeoutError, httpx.HTTPError, ValueError) as ex:
        err = _as_fetch_error(ex, url, timeout_s)
        _record(metrics, metric_name, start, success=False, timeout=err.timeout)
        if err is ex:
            raise
        raise err from ex

    _record(metrics, metric_name, start, success=True, timeout=False)
    return data


def _as_fetch_error(ex: Exception, url: str, timeout_s: float) -> FetchError:
    if isinstance(ex, FetchError):
        return ex
    if isinstance(ex, (asyncio.TimeoutError, httpx.TimeoutException)):
        return FetchError(url, timeout=True, reason=f"{timeout_s}s")
    if isinstance(ex, ValueError):
        return FetchError(url, reason=f"invalid body: {ex}")
    return FetchError(url, reason=repr(ex))


def _record(
    metrics: Optional[MetricsRecorder],
    name: Optional[str],
    start: float,
    success: bool,
    timeout: bool,
) -> None:
    if metrics is None or not name:
        return
    try:
        metrics.record_fetch(name, (time.perf_counter() - start) * 1000, success, timeout)
    except Exception as ex:
        log.debug(f"metric {name} dropped: {ex}")
