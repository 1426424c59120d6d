"""Shape validation for store responses using JSON Schemas.

The gateway does not validate resources against the full FHIR profiles;
it only checks the envelope fields it relies on (``resourceType``, ``id``,
``entry[].resource``) so a proxy error page or a mis-routed response is
reported as a malformed response instead of surfacing as a mapping default.

Thread Safety:
    Thread-safe: compiled validators are stateless.

Example:
    >>> validate_resource({"resourceType": "Task", "id": "t1"}, "Task")
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import structlog
from jsonschema import Draft202012Validator

from Telehealth_Gateway.utils.errors import MalformedResponseError

logger = structlog.get_logger(__name__)

# ==============================================================================
# SCHEMAS
# ==============================================================================

RESOURCE_SCHEMA: dict[str, object] = {
    "$id": "https://telehealth.local/schemas/resource",
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "required": ["resourceType"],
    "properties": {
        "resourceType": {"type": "string", "minLength": 1},
        "id": {"type": "string"},
        "extension": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["url"],
                "properties": {"url": {"type": "string"}},
            },
        },
    },
}

BUNDLE_SCHEMA: dict[str, object] = {
    "$id": "https://telehealth.local/schemas/bundle",
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "required": ["resourceType"],
    "properties": {
        "resourceType": {"const": "Bundle"},
        "total": {"type": "integer", "minimum": 0},
        "entry": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {"resource": {"$ref": "#/definitions/Resource"}},
            },
        },
    },
    "definitions": {
        "Resource": {key: value for key, value in RESOURCE_SCHEMA.items() if not key.startswith("$")}
    },
}

_RESOURCE_VALIDATOR = Draft202012Validator(RESOURCE_SCHEMA)
_BUNDLE_VALIDATOR = Draft202012Validator(BUNDLE_SCHEMA)


# ==============================================================================
# VALIDATION
# ==============================================================================


def _schema_errors(validator: Draft202012Validator, payload: Any) -> list[str]:
    errors: list[str] = []
    for error in validator.iter_errors(payload):
        path = ".".join(str(part) for part in error.path)
        errors.append(f"{path or 'root'}: {error.message}")
    return errors


def _malformed(
    message: str,
    errors: list[str],
    *,
    resource_type: str,
    resource_id: str | None = None,
) -> MalformedResponseError:
    logger.warning(
        "validation.malformed_response",
        resource_type=resource_type,
        resource_id=resource_id,
        errors=errors,
    )
    return MalformedResponseError(
        message,
        resource_type=resource_type,
        resource_id=resource_id,
        detail="; ".join(errors) or None,
    )


def validate_bundle(payload: Any, expected_type: str) -> dict[str, Any]:
    """Return ``payload`` if it has the shape of a search Bundle.

    Raises:
        MalformedResponseError: If the payload is not a Bundle-shaped object.
    """
    errors = _schema_errors(_BUNDLE_VALIDATOR, payload)
    if errors:
        raise _malformed(
            f"Search response for {expected_type} is not a Bundle",
            errors,
            resource_type=expected_type,
        )
    return dict(payload)


def validate_resource(
    payload: Any,
    expected_type: str,
    *,
    require_id: bool = False,
) -> dict[str, Any]:
    """Return ``payload`` if it is a resource of ``expected_type``.

    Args:
        payload: Decoded response body.
        expected_type: Resource type the call addressed.
        require_id: Whether the store must have assigned an ``id``.

    Raises:
        MalformedResponseError: If the shape, ``resourceType`` or ``id`` is wrong.
    """
    errors = _schema_errors(_RESOURCE_VALIDATOR, payload)
    resource_id = None
    if isinstance(payload, Mapping):
        raw_id = payload.get("id")
        resource_id = raw_id if isinstance(raw_id, str) else None
        actual = payload.get("resourceType")
        if not errors and actual != expected_type:
            errors.append(f"resourceType: expected '{expected_type}', got '{actual}'")
        if not errors and require_id and not resource_id:
            errors.append("id: store did not assign an id")
    if errors:
        raise _malformed(
            f"Response is not a valid {expected_type} resource",
            errors,
            resource_type=expected_type,
            resource_id=resource_id,
        )
    return dict(payload)


__all__ = ["BUNDLE_SCHEMA", "RESOURCE_SCHEMA", "validate_bundle", "validate_resource"]
