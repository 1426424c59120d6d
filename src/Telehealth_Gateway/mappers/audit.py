"""AuditEvent <-> AuditLog.

Audit events are append-only in practice; only the action, outcome and
outcome description are writable so administrators can annotate an entry.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from Telehealth_Gateway.mappers.base import ReferenceIndex, ResourceMapper
from Telehealth_Gateway.models import AuditLog, RawResource
from Telehealth_Gateway.utils.fhir import get_path

SUCCESS_OUTCOME = "0"


class AuditEventMapper(ResourceMapper[AuditLog]):
    resource_type = "AuditEvent"
    view_model = AuditLog
    owned_fields = ("action", "outcome", "details")

    def _read(self, raw: RawResource, included: ReferenceIndex) -> dict[str, Any]:
        reference = get_path(raw, "entity.0.what.reference")
        resource_id = ""
        if isinstance(reference, str) and "/" in reference:
            resource_id = reference.split("/")[1]
        outcome = self._text(raw, "outcome")
        return {
            "user_name": self._text(raw, "user_name"),
            "user_id": self._text(raw, "user_id"),
            "action": self._text(raw, "action"),
            "resource": self._text(raw, "resource"),
            "resource_id": resource_id,
            "outcome": outcome,
            "succeeded": outcome == SUCCESS_OUTCOME,
            "details": self._text(raw, "details"),
            "timestamp": self._text(raw, "timestamp"),
        }

    def _apply(self, raw: RawResource, vm: AuditLog, fields: Sequence[str]) -> None:
        if "action" in fields:
            self._put(raw, "action", vm.action)
        if "outcome" in fields:
            self._put(raw, "outcome", vm.outcome)
        if "details" in fields:
            self._put(raw, "outcomeDesc", vm.details)


__all__ = ["AuditEventMapper", "SUCCESS_OUTCOME"]
