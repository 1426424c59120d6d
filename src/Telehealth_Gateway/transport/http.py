"""Live resource store over the FHIR REST interface.

Key Responsibilities:
    - Route ``search/read/create/update/delete`` to ``{base}/{resourceType}[/{id}]``
    - Classify failures into the gateway error taxonomy
    - Unwrap the ``{success, data, total}`` envelope of the back-office proxy
    - Validate response shape before anything is mapped

Collaborators:
    - Upstream: :class:`Telehealth_Gateway.gateway.service.ResourceGateway`
    - Downstream: :class:`Telehealth_Gateway.utils.http_client.AsyncHttpClient`

Side Effects:
    - Network I/O, structured log events and Prometheus metrics per call
    - Forwards the bound page-action correlation id as ``X-Correlation-ID``

Thread Safety:
    - Safe for concurrent use from one event loop; the underlying
      ``httpx.AsyncClient`` pools connections
"""

from __future__ import annotations

import json
import time
from collections.abc import Mapping
from typing import Any

import httpx
import structlog

from Telehealth_Gateway.config.settings import StoreSettings
from Telehealth_Gateway.models import Bundle, RawResource
from Telehealth_Gateway.observability.metrics import record_store_request
from Telehealth_Gateway.query.builder import ParamMap
from Telehealth_Gateway.transport.base import ResourceStore
from Telehealth_Gateway.utils.errors import (
    GatewayError,
    MalformedResponseError,
    NetworkError,
    ResourceNotFoundError,
    StoreError,
)
from Telehealth_Gateway.utils.http_client import (
    AsyncHttpClient,
    BackoffStrategy,
    CircuitBreakerConfig,
    CircuitBreakerError,
    RetryConfig,
)
from Telehealth_Gateway.utils.logging import get_correlation_id
from Telehealth_Gateway.validation.envelope import validate_bundle, validate_resource

logger = structlog.get_logger(__name__)

_SERVER_MANAGED = ("id", "meta")
CORRELATION_HEADER = "X-Correlation-ID"


def _retryable_status(status_code: int) -> bool:
    return status_code == 429 or status_code >= 500


def _error_message(response: httpx.Response) -> str:
    """Best-effort human readable message from an error body."""
    try:
        payload = response.json()
    except ValueError:
        return response.reason_phrase or f"HTTP {response.status_code}"
    if isinstance(payload, Mapping):
        if isinstance(payload.get("error"), str):
            return payload["error"]
        issues = payload.get("issue")
        if isinstance(issues, list) and issues and isinstance(issues[0], Mapping):
            details = issues[0].get("details")
            diagnostics = issues[0].get("diagnostics") or (
                details.get("text") if isinstance(details, Mapping) else None
            )
            if diagnostics:
                return str(diagnostics)
    return response.reason_phrase or f"HTTP {response.status_code}"


class HttpResourceStore(ResourceStore):
    """FHIR REST client for a configured store base URL."""

    name = "http"

    def __init__(
        self,
        settings: StoreSettings,
        *,
        client: AsyncHttpClient | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if client is None:
            if settings.base_url is None:
                raise ValueError("store.base_url must be set for the live resource store")
            breaker = (
                CircuitBreakerConfig(
                    failure_threshold=settings.breaker_failure_threshold,
                    recovery_timeout=settings.breaker_recovery_seconds,
                )
                if settings.breaker_failure_threshold
                else None
            )
            client = AsyncHttpClient(
                base_url=str(settings.base_url),
                retry=RetryConfig(
                    attempts=settings.retry_attempts,
                    backoff_strategy=BackoffStrategy(settings.retry_backoff),
                    backoff_initial=settings.retry_backoff_seconds,
                    timeout=settings.timeout_seconds,
                ),
                circuit_breaker=breaker,
                headers=dict(settings.headers),
                transport=transport,
            )
        self._client = client
        self._envelope = settings.envelope

    # ------------------------------------------------------------------
    # Contract
    # ------------------------------------------------------------------
    async def search(self, resource_type: str, params: ParamMap | None = None) -> Bundle:
        payload = await self._call(
            resource_type, "search", "GET", resource_type, params=dict(params or {})
        )
        payload = self._unwrap(payload, resource_type, expect_list=True)
        return validate_bundle(payload, resource_type)

    async def read(self, resource_type: str, resource_id: str) -> RawResource:
        payload = await self._call(
            resource_type,
            "read",
            "GET",
            f"{resource_type}/{resource_id}",
            resource_id=resource_id,
        )
        payload = self._unwrap(payload, resource_type, resource_id=resource_id)
        return validate_resource(payload, resource_type)

    async def create(self, resource_type: str, body: Mapping[str, Any]) -> RawResource:
        document = {key: value for key, value in body.items() if key not in _SERVER_MANAGED}
        document["resourceType"] = resource_type
        payload = await self._call(resource_type, "create", "POST", resource_type, json=document)
        payload = self._unwrap(payload, resource_type)
        return validate_resource(payload, resource_type, require_id=True)

    async def update(
        self, resource_type: str, resource_id: str, body: Mapping[str, Any]
    ) -> RawResource:
        document = dict(body)
        document["resourceType"] = resource_type
        document["id"] = resource_id
        payload = await self._call(
            resource_type,
            "update",
            "PUT",
            f"{resource_type}/{resource_id}",
            resource_id=resource_id,
            json=document,
        )
        payload = self._unwrap(payload, resource_type, resource_id=resource_id)
        return validate_resource(payload, resource_type)

    async def delete(self, resource_type: str, resource_id: str) -> None:
        payload = await self._call(
            resource_type,
            "delete",
            "DELETE",
            f"{resource_type}/{resource_id}",
            resource_id=resource_id,
            allow_empty=True,
        )
        if self._envelope == "api" and payload is not None:
            self._check_success(payload, resource_type, resource_id)

    async def capabilities(self) -> RawResource:
        payload = await self._call("CapabilityStatement", "capabilities", "GET", "metadata")
        payload = self._unwrap(payload, "CapabilityStatement")
        return validate_resource(payload, "CapabilityStatement")

    async def aclose(self) -> None:
        await self._client.aclose()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    async def _call(
        self,
        resource_type: str,
        operation: str,
        method: str,
        url: str,
        *,
        resource_id: str | None = None,
        allow_empty: bool = False,
        **kwargs: Any,
    ) -> Any:
        started = time.perf_counter()
        outcome = "ok"
        try:
            response = await self._send(resource_type, method, url, resource_id, **kwargs)
            return self._decode(response, resource_type, resource_id, allow_empty)
        except GatewayError as exc:
            outcome = exc.reason
            logger.warning(
                "transport.request_failed",
                resource_type=resource_type,
                resource_id=resource_id,
                operation=operation,
                reason=exc.reason,
                problem=exc.problem.model_dump(),
            )
            raise
        finally:
            elapsed = time.perf_counter() - started
            record_store_request(resource_type, operation, outcome, elapsed)
            logger.debug(
                "transport.request",
                resource_type=resource_type,
                operation=operation,
                outcome=outcome,
                duration_seconds=round(elapsed, 4),
            )

    async def _send(
        self,
        resource_type: str,
        method: str,
        url: str,
        resource_id: str | None,
        **kwargs: Any,
    ) -> httpx.Response:
        correlation_id = get_correlation_id()
        if correlation_id:
            kwargs["headers"] = {**kwargs.get("headers", {}), CORRELATION_HEADER: correlation_id}
        try:
            response = await self._client.request(method, url, **kwargs)
        except CircuitBreakerError as exc:
            raise NetworkError(
                "Resource store circuit is open",
                resource_type=resource_type,
                resource_id=resource_id,
            ) from exc
        except httpx.TransportError as exc:
            raise NetworkError(
                f"Resource store unreachable: {exc.__class__.__name__}",
                resource_type=resource_type,
                resource_id=resource_id,
                detail=str(exc) or None,
            ) from exc
        if response.status_code == 404:
            raise ResourceNotFoundError(
                f"{resource_type}/{resource_id} not found" if resource_id else f"{resource_type} not found",
                resource_type=resource_type,
                resource_id=resource_id,
            )
        if response.is_error:
            raise StoreError(
                _error_message(response),
                resource_type=resource_type,
                resource_id=resource_id,
                status=response.status_code,
                retryable=_retryable_status(response.status_code),
            )
        return response

    def _decode(
        self,
        response: httpx.Response,
        resource_type: str,
        resource_id: str | None,
        allow_empty: bool,
    ) -> Any:
        if not response.content:
            if allow_empty:
                return None
            raise MalformedResponseError(
                "Resource store returned an empty body",
                resource_type=resource_type,
                resource_id=resource_id,
            )
        try:
            return response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise MalformedResponseError(
                "Resource store returned a body that is not JSON",
                resource_type=resource_type,
                resource_id=resource_id,
                detail=str(exc),
            ) from exc

    def _check_success(
        self, payload: Any, resource_type: str, resource_id: str | None
    ) -> Mapping[str, Any]:
        if not isinstance(payload, Mapping) or "success" not in payload:
            raise MalformedResponseError(
                "Proxy response is missing the 'success' field",
                resource_type=resource_type,
                resource_id=resource_id,
            )
        if not payload["success"]:
            message = payload.get("error") or payload.get("message") or "Proxy reported failure"
            raise StoreError(str(message), resource_type=resource_type, resource_id=resource_id)
        return payload

    def _unwrap(
        self,
        payload: Any,
        resource_type: str,
        *,
        resource_id: str | None = None,
        expect_list: bool = False,
    ) -> Any:
        """Strip the proxy envelope; plain FHIR payloads pass through."""
        if self._envelope != "api":
            return payload
        envelope = self._check_success(payload, resource_type, resource_id)
        data = envelope.get("data")
        if isinstance(data, list):
            entries = [{"resource": item} for item in data]
            total = envelope.get("total")
            return {
                "resourceType": "Bundle",
                "type": "searchset",
                "total": total if isinstance(total, int) and total >= 0 else len(entries),
                "entry": entries,
            }
        if expect_list and data is None:
            return {"resourceType": "Bundle", "type": "searchset", "total": 0, "entry": []}
        if isinstance(data, Mapping):
            return dict(data)
        raise MalformedResponseError(
            "Proxy response 'data' is neither a resource nor a list",
            resource_type=resource_type,
            resource_id=resource_id,
        )


__all__ = ["HttpResourceStore"]
