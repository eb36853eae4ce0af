"""RetryableApiClient — Bot API calls with timeout and linear backoff.

Every remote call is ``POST <api_base>/bot<token>/<method>`` with a JSON
body and answers ``{ok, result?, description?}``.

Failure kinds
-------------
- ``ApiTimeout``: the attempt exceeded ``timeout_seconds``.  Retried.
- ``ApiRejected``: non-2xx status.  Retried when ``retryable`` (429, 5xx),
  raised immediately otherwise.
- ``ApiMalformedResponse``: body is not a JSON object with an ``ok`` field.
  Not retried.
- Network errors (connection refused, reset...) are retried and surface as
  ``ApiError`` once attempts run out.

Backoff is linear: after failed attempt *n* the client sleeps
``n * retry_delay_seconds``.  A ``200`` response with ``ok: false`` is a
valid answer and is returned to the caller unchanged.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

import httpx

from tgrelay.core.errors import (
    ApiError,
    ApiMalformedResponse,
    ApiRejected,
    ApiTimeout,
    ValidationError,
)
from tgrelay.core.validation import validate_text

logger = logging.getLogger(__name__)

RETRY_STATUSES = frozenset({429, 500, 502, 503, 504})

Sleep = Callable[[float], Awaitable[Any]]


class RetryableApiClient:
    """Async Bot API client with per-attempt timeout and bounded retries.

    Parameters
    ----------
    bot_token:
        The bot token; part of every request path.
    api_base:
        Bot API root, without trailing ``/bot<token>``.
    timeout_seconds:
        Budget for a single attempt, from connect to the last body byte.
        Exceeding it aborts the request.
    max_retries:
        Total attempts per call, including the first.
    retry_delay_seconds:
        Base delay for the linear backoff.
    http_client:
        Optional pre-built ``httpx.AsyncClient`` (tests pass one backed by
        ``httpx.MockTransport``).  The client owns it only if it built it.
    sleep:
        Coroutine used to wait between attempts.
    """

    def __init__(
        self,
        bot_token: str,
        *,
        api_base: str = "https://api.telegram.org",
        timeout_seconds: float = 30.0,
        max_retries: int = 3,
        retry_delay_seconds: float = 1.0,
        http_client: httpx.AsyncClient | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        if max_retries < 1:
            raise ValueError("max_retries must be at least 1")
        self._bot_token = bot_token
        self._api_base = api_base.rstrip("/")
        self._timeout = timeout_seconds
        self._max_retries = max_retries
        self._retry_delay = retry_delay_seconds
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient()
        self._sleep = sleep

    def method_url(self, method: str) -> str:
        return f"{self._api_base}/bot{self._bot_token}/{method}"

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def call(self, method: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        """Invoke *method* with *params* and return the decoded response body.

        Raises
        ------
        ValidationError
            If *method* is empty or longer than 100 characters.
        ApiTimeout, ApiRejected, ApiMalformedResponse, ApiError
            The failure of the last attempt.
        """
        validate_text(method, max_length=100)
        if not method:
            raise ValidationError("API method name must not be empty")
        body = params or {}

        attempt = 0
        while True:
            attempt += 1
            try:
                return await self._attempt(method, body)
            except ApiMalformedResponse as exc:
                logger.error("API %s: %s", method, exc)
                raise
            except ApiError as exc:
                retryable = not isinstance(exc, ApiRejected) or exc.retryable
                if not retryable or attempt >= self._max_retries:
                    logger.error(
                        "API %s: failed on attempt %d/%d: %s",
                        method,
                        attempt,
                        self._max_retries,
                        exc,
                    )
                    raise
                delay = self._retry_delay * attempt
                logger.info(
                    "API %s: attempt %d failed (%s), retrying in %.2fs",
                    method,
                    attempt,
                    exc,
                    delay,
                )
                await self._sleep(delay)

    async def close(self) -> None:
        """Release the underlying HTTP client if this instance created it."""
        if self._owns_client:
            await self._http.aclose()

    async def __aenter__(self) -> RetryableApiClient:
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    def __repr__(self) -> str:
        return (
            f"RetryableApiClient(api_base={self._api_base!r}, "
            f"timeout={self._timeout}, max_retries={self._max_retries})"
        )

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    async def _attempt(self, method: str, body: dict[str, Any]) -> dict[str, Any]:
        # httpx limits each phase separately; wait_for bounds the whole exchange.
        try:
            response = await asyncio.wait_for(
                self._http.post(self.method_url(method), json=body, timeout=self._timeout),
                self._timeout,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
            raise ApiTimeout(method, self._timeout) from exc
        except httpx.HTTPError as exc:
            raise ApiError(method, f"Network error calling {method}: {exc}") from exc

        if not response.is_success:
            raise ApiRejected(
                method,
                response.status_code,
                _description(response),
                retryable=response.status_code in RETRY_STATUSES,
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise ApiMalformedResponse(
                method, f"Invalid API response format for {method}: not JSON"
            ) from exc
        if not isinstance(payload, dict) or "ok" not in payload:
            raise ApiMalformedResponse(
                method, f"Invalid API response format for {method}: missing 'ok'"
            )
        return payload


def _description(response: httpx.Response) -> str:
    """Best-effort error text from a rejected response."""
    try:
        payload = response.json()
    except ValueError:
        return response.text[:200]
    if isinstance(payload, dict) and payload.get("description"):
        return str(payload["description"])
    return response.text[:200]
