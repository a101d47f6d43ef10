"""HTTP client utilities and the retrying request executor."""

import asyncio
from collections.abc import Awaitable, Callable, Mapping
from enum import Enum
import json

from typing import Any, TypeAlias

import httpx

from chainview.helpers.constants import (
    DEFAULT_TIMEOUT,
    MAX_RETRIES,
    RETRY_BASE_DELAY_MS,
)
from chainview.helpers.http_models import (
    Err,
    ErrorKind,
    JsonResponse,
    Ok,
    OutcomeApiError,
    OutcomeRateLimited,
    OutcomeSuccess,
    OutcomeTransportError,
    RequestOutcome,
)
from chainview.helpers.logging import get_logger
from chainview.helpers.rate_limit import RateLimiter


logger = get_logger(__name__)

Classifier: TypeAlias = Callable[[int, str], RequestOutcome]


class RequestState(Enum):
    """States of one logical request."""

    ATTEMPTING = "attempting"
    RETRY_WAIT = "retry_wait"
    SUCCESS = "success"
    RATE_LIMITED = "rate_limited"
    HARD_ERROR = "hard_error"
    INTERRUPTED = "interrupted"


VALID_TRANSITIONS: dict[RequestState, frozenset[RequestState]] = {
    RequestState.ATTEMPTING: frozenset({
        RequestState.SUCCESS,
        RequestState.RETRY_WAIT,
        RequestState.HARD_ERROR,
        RequestState.INTERRUPTED,
    }),
    RequestState.RETRY_WAIT: frozenset({
        RequestState.ATTEMPTING,
        RequestState.RATE_LIMITED,
        RequestState.INTERRUPTED,
    }),
    # Terminal states
    RequestState.SUCCESS: frozenset(),
    RequestState.RATE_LIMITED: frozenset(),
    RequestState.HARD_ERROR: frozenset(),
    RequestState.INTERRUPTED: frozenset(),
}

TERMINAL_STATES = frozenset(
    state for state, targets in VALID_TRANSITIONS.items() if not targets
)


def transition_after_attempt(outcome: RequestOutcome) -> RequestState:
    """Map a classified attempt to the next state.

    Args:
        outcome: Classified result of one HTTP attempt

    Returns:
        SUCCESS, RETRY_WAIT for rate limits, HARD_ERROR otherwise
    """
    if isinstance(outcome, OutcomeSuccess):
        return RequestState.SUCCESS
    if isinstance(outcome, OutcomeRateLimited):
        return RequestState.RETRY_WAIT
    return RequestState.HARD_ERROR


def transition_after_retry_wait(attempt: int, max_retries: int) -> RequestState:
    """Decide whether a rate-limited request gets another attempt.

    Args:
        attempt: Zero-based index of the attempt that was rate limited
        max_retries: Retry budget

    Returns:
        ATTEMPTING while budget remains, RATE_LIMITED once it is spent
    """
    if attempt >= max_retries:
        return RequestState.RATE_LIMITED
    return RequestState.ATTEMPTING


def backoff_delay_ms(attempt: int, base_delay_ms: int = RETRY_BASE_DELAY_MS) -> int:
    """Exponential backoff before retrying after attempt ``attempt`` (0-indexed).

    Example:
        >>> [backoff_delay_ms(k) for k in range(3)]
        [1000, 2000, 4000]
    """
    return base_delay_ms * (2**attempt)


def classify_status(status_code: int, body: str) -> RequestOutcome:
    """Classify an attempt by HTTP status alone.

    Args:
        status_code: HTTP status code
        body: Response body text

    Returns:
        Rate limited on 429, API error on any other non-200, success otherwise
    """
    if status_code == httpx.codes.TOO_MANY_REQUESTS:
        return OutcomeRateLimited(message="Rate limit exceeded (HTTP 429)")
    if status_code != httpx.codes.OK:
        return OutcomeApiError(code=status_code, message=f"HTTP Error: {status_code}")
    return OutcomeSuccess(body=body)


def decode_json(body: str) -> JsonResponse | None:
    """Decode a response body, returning None if it is not a JSON object or array."""
    try:
        data = json.loads(body)
    except ValueError:
        return None
    return data if isinstance(data, dict | list) else None


def create_http_client(
    timeout: float = DEFAULT_TIMEOUT, **kwargs: Any
) -> httpx.AsyncClient:
    """Create a configured httpx AsyncClient.

    Args:
        timeout: Default timeout in seconds (default: DEFAULT_TIMEOUT)
        **kwargs: Additional httpx.AsyncClient kwargs

    Returns:
        Configured AsyncClient instance

    Example:
        ```python
        from chainview.helpers.http import create_http_client

        async with create_http_client() as client:
            response = await client.get("https://api.etherscan.io/v2/api")
        ```
    """
    headers = {"Accept": "application/json", **kwargs.pop("headers", {})}
    return httpx.AsyncClient(timeout=timeout, headers=headers, **kwargs)


class RequestExecutor:
    """Issue one logical GET with rate limiting and rate-limit retries.

    Each attempt waits on the shared ``RateLimiter``, performs the request
    with a fixed timeout and is classified into a ``RequestOutcome`` by an
    injected classifier. Rate-limited attempts back off exponentially until
    the retry budget is spent; transport failures and API errors end the
    request immediately.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        rate_limiter: RateLimiter,
        *,
        max_retries: int = MAX_RETRIES,
        base_delay_ms: int = RETRY_BASE_DELAY_MS,
        timeout: float = DEFAULT_TIMEOUT,
        sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
    ) -> None:
        """Initialize the executor.

        Args:
            client: Shared HTTP client
            rate_limiter: Limiter gating every attempt
            max_retries: Retries allowed after rate-limited attempts
            base_delay_ms: Base delay for exponential backoff
            timeout: Per-attempt timeout in seconds
            sleep: Coroutine function used for backoff and pause waits, in seconds

        Raises:
            ValueError: If max_retries or base_delay_ms is negative
        """
        if max_retries < 0:
            msg = "max_retries cannot be negative"
            raise ValueError(msg)
        if base_delay_ms < 0:
            msg = "base_delay_ms cannot be negative"
            raise ValueError(msg)

        self.client = client
        self.rate_limiter = rate_limiter
        self.max_retries = max_retries
        self.base_delay_ms = base_delay_ms
        self.timeout = timeout
        self._sleep = sleep

    async def pause(self, delay_ms: int) -> bool:
        """Wait ``delay_ms`` with the injected sleep.

        Returns:
            False if the wait was cancelled, True otherwise
        """
        try:
            await self._sleep(delay_ms / 1000)
        except asyncio.CancelledError:
            return False
        return True

    async def _attempt(
        self,
        url: str,
        params: Mapping[str, Any] | None,
        headers: Mapping[str, str] | None,
        classify: Classifier,
    ) -> RequestOutcome:
        try:
            response = await self.client.get(
                url, params=params, headers=headers, timeout=self.timeout
            )
        except httpx.TimeoutException as e:
            return OutcomeTransportError(cause=f"Request timed out: {e}")
        except httpx.HTTPError as e:
            return OutcomeTransportError(cause=f"IO Error: {e}")

        logger.debug("HTTP %s from %s", response.status_code, url)
        return classify(response.status_code, response.text)

    async def execute(
        self,
        url: str,
        *,
        params: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
        classify: Classifier = classify_status,
    ) -> Ok[str] | Err:
        """Run the request state machine to completion.

        Args:
            url: Request URL
            params: Query parameters
            headers: Extra request headers
            classify: Maps (status code, body) to a RequestOutcome

        Returns:
            Ok with the raw body, or Err with TRANSPORT, API, RATE_LIMITED
            or INTERRUPTED
        """
        attempt = 0
        state = RequestState.ATTEMPTING
        outcome: RequestOutcome | None = None

        while state not in TERMINAL_STATES:
            if state is RequestState.ATTEMPTING:
                try:
                    await self.rate_limiter.acquire()
                except asyncio.CancelledError:
                    state = RequestState.INTERRUPTED
                    continue

                if attempt:
                    logger.info("Retrying %s (retry %d/%d)", url, attempt, self.max_retries)
                else:
                    logger.debug("Requesting %s", url)

                outcome = await self._attempt(url, params, headers, classify)
                state = transition_after_attempt(outcome)

            elif state is RequestState.RETRY_WAIT:
                state = transition_after_retry_wait(attempt, self.max_retries)
                if state is not RequestState.ATTEMPTING:
                    continue

                delay_ms = backoff_delay_ms(attempt, self.base_delay_ms)
                logger.warning(
                    "Rate limit detected for %s. Waiting %dms before retry %d/%d",
                    url,
                    delay_ms,
                    attempt + 1,
                    self.max_retries,
                )
                if not await self.pause(delay_ms):
                    state = RequestState.INTERRUPTED
                    continue
                attempt += 1

        return self._finish(state, outcome, url)

    def _finish(
        self, state: RequestState, outcome: RequestOutcome | None, url: str
    ) -> Ok[str] | Err:
        if state is RequestState.SUCCESS and isinstance(outcome, OutcomeSuccess):
            return Ok(value=outcome.body)

        if state is RequestState.INTERRUPTED:
            logger.warning("Request to %s interrupted while waiting", url)
            return Err.interrupted()

        if state is RequestState.RATE_LIMITED:
            message = outcome.message if isinstance(outcome, OutcomeRateLimited) else ""
            logger.error("Rate limit exceeded for %s after %d retries", url, self.max_retries)
            return Err(
                kind=ErrorKind.RATE_LIMITED,
                message=f"Rate limit exceeded after {self.max_retries} retries: {message}",
                code=int(httpx.codes.TOO_MANY_REQUESTS),
            )

        if isinstance(outcome, OutcomeTransportError):
            logger.error("Transport error for %s: %s", url, outcome.cause)
            return Err(kind=ErrorKind.TRANSPORT, message=outcome.cause)

        if isinstance(outcome, OutcomeApiError):
            logger.error("API error for %s: %s", url, outcome.message)
            return Err(kind=ErrorKind.API, message=outcome.message, code=outcome.code)

        msg = f"Request ended in unexpected state {state.value}"
        raise RuntimeError(msg)


__all__ = [
    "TERMINAL_STATES",
    "VALID_TRANSITIONS",
    "Classifier",
    "RequestExecutor",
    "RequestState",
    "backoff_delay_ms",
    "classify_status",
    "create_http_client",
    "decode_json",
    "transition_after_attempt",
    "transition_after_retry_wait",
]
