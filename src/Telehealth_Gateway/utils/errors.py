"""Problem detail helpers and the gateway error taxonomy.

Key Responsibilities:
    - Provide RFC 7807 compliant data structures used when surfacing errors
      to the page layer
    - Supply a base exception that carries problem details
    - Classify store failures into network, malformed-response, not-found
      and store-error conditions

Collaborators:
    - Upstream: Transport clients raise these errors; the mutation dispatcher
      and collections translate them into rollbacks and bulk results
    - Downstream: Page layer renders :class:`ProblemDetail` payloads

Side Effects:
    - None; helpers are pure data containers

Thread Safety:
    - Thread-safe; dataclasses are immutable aside from standard attribute
      mutation semantics
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Mapping

# ==============================================================================
# TYPE DEFINITIONS
# ==============================================================================

__all__ = [
    "FoundationError",
    "GatewayError",
    "MalformedResponseError",
    "NetworkError",
    "ProblemDetail",
    "ResourceNotFoundError",
    "StoreError",
    "UnknownResourceTypeError",
    "reason_for",
]


@dataclass(slots=True)
class ProblemDetail:
    """Lightweight problem details object compliant with RFC 7807."""

    title: str
    status: int
    detail: str | None = None
    type: str = "about:blank"
    instance: str | None = None
    extra: Mapping[str, Any] = field(default_factory=dict)

    def model_dump(self) -> dict[str, Any]:
        """Return a dictionary representation with optional fields dropped."""
        payload = {key: value for key, value in asdict(self).items() if value is not None}
        if not payload.get("extra"):
            payload.pop("extra", None)
        return payload


class FoundationError(RuntimeError):
    """Base exception that carries a :class:`ProblemDetail` instance."""

    def __init__(
        self,
        message: str,
        *,
        status: int = 500,
        detail: str | None = None,
        type: str = "about:blank",
        instance: str | None = None,
        extra: Mapping[str, Any] | None = None,
    ) -> None:
        """Initialise the exception with structured problem detail attributes.

        Args:
            message: Human readable error summary.
            status: HTTP status code associated with the problem.
            detail: Optional detailed description of the failure.
            type: Problem type URI, defaults to ``about:blank``.
            instance: Optional URI reference identifying the specific occurrence.
            extra: Additional attributes included in the serialized payload.
        """
        super().__init__(message)
        self.problem = ProblemDetail(
            title=message,
            status=status,
            detail=detail,
            type=type,
            instance=instance,
            extra=extra or {},
        )


# ==============================================================================
# GATEWAY ERRORS
# ==============================================================================


class GatewayError(FoundationError):
    """Failure raised by a gateway operation against a resource store.

    Attributes:
        reason: Short machine readable code reported in bulk results.
        retryable: Whether the caller may reasonably retry the same call.
        resource_type: Resource type the failing call targeted.
        resource_id: Resource id the failing call targeted, when known.
    """

    reason: str = "gateway-error"
    default_status: int = 500

    def __init__(
        self,
        message: str,
        *,
        resource_type: str | None = None,
        resource_id: str | None = None,
        status: int | None = None,
        retryable: bool = False,
        detail: str | None = None,
    ) -> None:
        extra: dict[str, Any] = {"reason": self.reason}
        if resource_type:
            extra["resource_type"] = resource_type
        if resource_id:
            extra["resource_id"] = resource_id
        instance = f"{resource_type}/{resource_id}" if resource_type and resource_id else None
        super().__init__(
            message,
            status=status or self.default_status,
            detail=detail,
            instance=instance,
            extra=extra,
        )
        self.resource_type = resource_type
        self.resource_id = resource_id
        self.retryable = retryable


class NetworkError(GatewayError):
    """The transport call did not complete (timeout, refused, DNS)."""

    reason = "network"
    default_status = 503

    def __init__(self, message: str, **kwargs: Any) -> None:
        kwargs.setdefault("retryable", True)
        super().__init__(message, **kwargs)


class MalformedResponseError(GatewayError):
    """The store answered but the body failed shape validation."""

    reason = "malformed-response"
    default_status = 502


class ResourceNotFoundError(GatewayError):
    """The addressed resource id does not exist in the store."""

    reason = "not-found"
    default_status = 404


class StoreError(GatewayError):
    """The store rejected the call with a non-success HTTP status."""

    reason = "store-error"
    default_status = 500


class UnknownResourceTypeError(GatewayError):
    """No mapper or table entry is registered for a resource type."""

    reason = "unknown-resource-type"
    default_status = 400


def reason_for(error: BaseException) -> str:
    """Return the bulk-result reason code for ``error``."""
    if isinstance(error, GatewayError):
        return error.reason
    return type(error).__name__
