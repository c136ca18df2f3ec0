"""Rate-limited, retrying HTTP client for the flight search upstream."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import TYPE_CHECKING, Any

import httpx

from flyscan_crawler.config import CrawlerSettings, settings
from flyscan_crawler.errors import RequestAbortedError, TransportError
from flyscan_crawler.rate_limiter import RateLimiter
from flyscan_crawler.retry import RetryPolicy

if TYPE_CHECKING:
    from collections.abc import Coroutine

logger = logging.getLogger(__name__)

# Non-2xx answers and connection-level failures are worth another attempt
_RETRYABLE = (httpx.HTTPStatusError, httpx.TransportError)


class Client:
    """Async HTTP client with a shared rate budget and retry policy.

    Every attempt, retries included, is scheduled through the
    :class:`RateLimiter`.  Caller headers are merged over
    :attr:`DEFAULT_HEADERS` and win on conflict.
    """

    DEFAULT_HEADERS: dict[str, str] = {
        "content-type": "application/x-www-form-urlencoded;charset=UTF-8",
    }

    def __init__(
        self,
        *,
        rate_limiter: RateLimiter | None = None,
        retry_policy: RetryPolicy | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        cfg: CrawlerSettings = settings,
    ) -> None:
        self._limiter = rate_limiter or RateLimiter(
            cfg.rate_per_second, cfg.max_concurrent_requests
        )
        self._retry = retry_policy or RetryPolicy.from_settings(cfg)
        self._headers = httpx.Headers(
            {**self.DEFAULT_HEADERS, "user-agent": cfg.user_agent}
        )

        client_kwargs: dict[str, Any] = {"timeout": httpx.Timeout(cfg.timeout)}
        if cfg.proxy_url:
            client_kwargs["proxy"] = cfg.proxy_url
        if transport is not None:
            client_kwargs["transport"] = transport
        self._http = httpx.AsyncClient(**client_kwargs)

    @property
    def rate_limiter(self) -> RateLimiter:
        return self._limiter

    @property
    def retry_policy(self) -> RetryPolicy:
        return self._retry

    async def get(self, url: str, **kwargs: Any) -> httpx.Response:
        """Rate-limited GET with automatic retries."""
        return await self._request("GET", url, **kwargs)

    async def post(self, url: str, **kwargs: Any) -> httpx.Response:
        """Rate-limited POST with automatic retries."""
        return await self._request("POST", url, **kwargs)

    async def _request(
        self,
        method: str,
        url: str,
        *,
        headers: dict[str, str] | None = None,
        abort: asyncio.Event | None = None,
        **kwargs: Any,
    ) -> httpx.Response:
        merged = httpx.Headers(self._headers)
        merged.update(headers or {})
        call = self._attempts(method, url, headers=merged, abort=abort, **kwargs)
        if abort is None:
            return await call
        return await _until_aborted(call, abort, f"{method} {url}")

    async def _attempts(
        self,
        method: str,
        url: str,
        **kwargs: Any,
    ) -> httpx.Response:
        attempts = self._retry.max_attempts
        try:
            return await self._retry.run(
                self._limiter.execute,
                self._send,
                method,
                url,
                retry_on=_RETRYABLE,
                **kwargs,
            )
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            reason = exc.response.reason_phrase
            msg = (
                f"{method} request failed after {attempts} attempts: "
                f"HTTP {status} {reason}"
            )
            raise TransportError(
                msg, status_code=status, reason=reason, attempts=attempts
            ) from exc
        except httpx.TransportError as exc:
            msg = (
                f"{method} request failed after {attempts} attempts: "
                f"no response received ({exc!r})"
            )
            raise TransportError(
                msg, reason="no response received", attempts=attempts
            ) from exc

    async def _send(
        self,
        method: str,
        url: str,
        *,
        abort: asyncio.Event | None,
        **kwargs: Any,
    ) -> httpx.Response:
        if abort is not None and abort.is_set():
            msg = f"{method} {url} aborted before sending"
            raise RequestAbortedError(msg)
        response = await self._http.request(method, url, **kwargs)
        response.raise_for_status()
        logger.debug("%s %s -> %d", method, url, response.status_code)
        return response

    async def aclose(self) -> None:
        """Shut down the underlying HTTPX client."""
        await self._http.aclose()


async def _until_aborted(
    call: Coroutine[Any, Any, httpx.Response],
    abort: asyncio.Event,
    label: str,
) -> httpx.Response:
    """Await *call* unless *abort* fires first.

    Covers the whole retry loop: limiter queueing, backoff sleeps and the
    request itself are all cancelled as soon as the event is set.
    """
    if abort.is_set():
        call.close()
        msg = f"{label} aborted before sending"
        raise RequestAbortedError(msg)

    request = asyncio.ensure_future(call)
    aborted = asyncio.ensure_future(abort.wait())
    try:
        await asyncio.wait({request, aborted}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        for task in (request, aborted):
            if not task.done():
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await task

    if abort.is_set():
        msg = f"{label} aborted"
        raise RequestAbortedError(msg)
    return request.result()


_client: Client | None = None


def get_client() -> Client:
    """Return the process-wide client, creating it on first use."""
    global _client  # noqa: PLW0603
    if _client is None:
        _client = Client()
    return _client
