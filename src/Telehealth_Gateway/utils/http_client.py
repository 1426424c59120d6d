"""HTTP client utilities, retry orchestration, and circuit breaker helpers.

Key Responsibilities:
    - Construct the asynchronous HTTP client used by the live resource store
      with timeout, optional retry, and optional circuit breaker behaviour
    - Provide the shared configuration dataclasses
    - Emit OpenTelemetry spans so store calls remain observable

Collaborators:
    - Upstream: :mod:`Telehealth_Gateway.transport.http`
    - Downstream: Wraps `httpx` clients, `tenacity` retry primitives and
      `pybreaker` circuit breakers

Side Effects:
    - Opens network connections via `httpx`
    - Emits OpenTelemetry spans

Performance Characteristics:
    - Connection pooling is delegated to `httpx`
    - The default retry budget is a single attempt; the gateway surfaces
      network failures to its caller instead of retrying them
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from datetime import UTC, datetime
from email.utils import parsedate_to_datetime
from enum import Enum

import httpx
from opentelemetry import trace
from pybreaker import CircuitBreaker, CircuitBreakerError
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
    wait_incrementing,
    wait_none,
)
from tenacity.wait import wait_base

# ==============================================================================
# TYPE DEFINITIONS
# ==============================================================================


class BackoffStrategy(str, Enum):
    """Supported retry backoff strategies for HTTP clients."""

    NONE = "none"
    EXPONENTIAL = "exponential"
    LINEAR = "linear"


@dataclass(frozen=True)
class RetryConfig:
    """Retry configuration for the async client."""

    attempts: int = 1
    backoff_strategy: BackoffStrategy = BackoffStrategy.EXPONENTIAL
    backoff_initial: float = 0.5
    backoff_max: float = 10.0
    status_forcelist: Iterable[int] = (429, 502, 503, 504)
    timeout: float = 30.0


@dataclass(frozen=True)
class CircuitBreakerConfig:
    """Configuration for the HTTP circuit breaker."""

    failure_threshold: int = 5
    recovery_timeout: float = 60.0


class RetryableHTTPStatus(httpx.HTTPStatusError):
    """HTTP status error annotated with Retry-After delays."""

    def __init__(
        self,
        message: str,
        *,
        request: httpx.Request,
        response: httpx.Response,
        retry_after: float = 0.0,
    ) -> None:
        """Build the retryable error wrapper.

        Args:
            message: Human readable description of the failure.
            request: Underlying HTTP request object.
            response: Response returned by the server.
            retry_after: Optional server supplied backoff duration.
        """
        super().__init__(message, request=request, response=response)
        self.retry_after = max(retry_after, 0.0)


class _RetryAfterWait(wait_base):
    """Tenacity wait strategy that honours Retry-After headers."""

    def __init__(self, fallback: wait_base) -> None:
        self._fallback = fallback

    def __call__(self, retry_state: RetryCallState) -> float:
        """Return the Retry-After delay when present, else the fallback delay."""
        exception = retry_state.outcome.exception() if retry_state.outcome else None
        if isinstance(exception, RetryableHTTPStatus) and exception.retry_after > 0:
            return exception.retry_after
        return self._fallback(retry_state)


def _build_wait(config: RetryConfig) -> wait_base:
    """Construct a Tenacity wait strategy from retry configuration."""
    if config.backoff_strategy is BackoffStrategy.NONE:
        base = wait_none()
    elif config.backoff_strategy is BackoffStrategy.LINEAR:
        base = wait_incrementing(
            start=max(config.backoff_initial, 0.0),
            increment=max(config.backoff_initial, 0.0),
            max=max(config.backoff_max, config.backoff_initial),
        )
    else:
        base = wait_exponential(
            multiplier=max(config.backoff_initial, 0.0) or 0.1,
            max=max(config.backoff_max, config.backoff_initial),
        )
    return base


def _compute_retry_after(response: httpx.Response) -> float:
    """Parse a Retry-After header and return the wait duration in seconds."""
    header = response.headers.get("Retry-After")
    if not header:
        return 0.0
    try:
        return float(header)
    except ValueError:
        try:
            retry_at = parsedate_to_datetime(header)
        except (TypeError, ValueError):
            return 0.0
        if retry_at.tzinfo is None:
            retry_at = retry_at.replace(tzinfo=UTC)
        delta = (retry_at - datetime.now(UTC)).total_seconds()
        return max(delta, 0.0)


async def _async_breaker_call(
    breaker: CircuitBreaker,
    func: Callable[[], Awaitable[httpx.Response]],
) -> httpx.Response:
    """Invoke ``func`` under a circuit breaker within async code paths.

    Raises:
        CircuitBreakerError: When the breaker is open.
        Exception: Propagates any exception raised by ``func`` after notifying
            the breaker of the failure.
    """
    with breaker._lock:  # type: ignore[attr-defined]
        state = breaker.state
        state.before_call(func)
        for listener in breaker.listeners:
            listener.before_call(breaker, func)
    try:
        result = await func()
    except Exception as exc:
        with breaker._lock:  # type: ignore[attr-defined]
            breaker.state._handle_error(exc)
        raise
    else:
        with breaker._lock:  # type: ignore[attr-defined]
            breaker.state._handle_success()
        return result


class AsyncHttpClient:
    """Async HTTP client composed from tenacity and pybreaker primitives."""

    def __init__(
        self,
        *,
        base_url: str | None = None,
        retry: RetryConfig | None = None,
        circuit_breaker: CircuitBreakerConfig | None = None,
        headers: dict[str, str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Create an async HTTP client.

        Args:
            base_url: Optional base URL applied to every request.
            retry: Retry configuration controlling attempts, backoff, and timeouts.
            circuit_breaker: Circuit breaker configuration; when omitted no
                breaker is created.
            headers: Static headers sent with every request.
            transport: Optional httpx transport override used in tests.
        """
        self._retry_config = retry or RetryConfig()
        client_kwargs: dict[str, object] = {
            "timeout": self._retry_config.timeout,
            "transport": transport,
            "headers": headers or {},
        }
        if base_url:
            client_kwargs["base_url"] = base_url
        self._client = httpx.AsyncClient(**client_kwargs)
        self._breaker = (
            CircuitBreaker(
                fail_max=circuit_breaker.failure_threshold,
                reset_timeout=circuit_breaker.recovery_timeout,
            )
            if circuit_breaker
            else None
        )
        self._retry = AsyncRetrying(
            stop=stop_after_attempt(max(self._retry_config.attempts, 1)),
            wait=_RetryAfterWait(_build_wait(self._retry_config)),
            retry=retry_if_exception_type((httpx.TransportError, RetryableHTTPStatus)),
            reraise=True,
        )
        self._tracer = trace.get_tracer(__name__)

    async def request(self, method: str, url: str, **kwargs) -> httpx.Response:
        """Issue an asynchronous HTTP request.

        A response whose status is in ``status_forcelist`` is retried while
        attempts remain and then returned as-is so the caller can classify it.

        Raises:
            httpx.TransportError: When the connection fails on the last attempt.
            CircuitBreakerError: When the circuit breaker rejects the call.
        """

        async def _perform() -> httpx.Response:
            with self._tracer.start_as_current_span("http.request") as span:
                span.set_attribute("http.method", method)
                span.set_attribute("http.url", url)
                response = await self._client.request(method, url, **kwargs)
                span.set_attribute("http.status_code", response.status_code)
            if response.status_code in self._retry_config.status_forcelist:
                raise RetryableHTTPStatus(
                    f"Retryable status {response.status_code}",
                    request=response.request,
                    response=response,
                    retry_after=_compute_retry_after(response),
                )
            return response

        async def _attempt() -> httpx.Response:
            if self._breaker is not None:
                return await _async_breaker_call(self._breaker, _perform)
            return await _perform()

        # each call iterates its own copy; concurrent bulk calls share the client
        retrying = self._retry.copy()
        try:
            async for attempt in retrying:
                with attempt:
                    return await _attempt()
        except RetryableHTTPStatus as exc:
            return exc.response
        raise RuntimeError("unreachable")  # pragma: no cover - tenacity exhausts attempts

    async def aclose(self) -> None:
        """Close the underlying ``httpx.AsyncClient``."""
        await self._client.aclose()


# ==============================================================================
# EXPORTS
# ==============================================================================

__all__ = [
    "AsyncHttpClient",
    "BackoffStrategy",
    "CircuitBreakerConfig",
    "CircuitBreakerError",
    "RetryConfig",
    "RetryableHTTPStatus",
]
