"""Task <-> TaskItem.

``progress`` is derived from the status and never written back. Patient and
owner are edited by id; their display names are read-only and fall back to
the included Patient/Practitioner when the search asked for them.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from Telehealth_Gateway.mappers.base import ReferenceIndex, ResourceMapper
from Telehealth_Gateway.models import RawResource, TaskItem
from Telehealth_Gateway.utils.fhir import get_path, reference_id

PROGRESS_BY_STATUS: Mapping[str, int] = {
    "completed": 100,
    "in-progress": 60,
    "accepted": 30,
    "received": 20,
    "requested": 10,
}


class TaskMapper(ResourceMapper[TaskItem]):
    resource_type = "Task"
    view_model = TaskItem
    owned_fields = ("title", "patient_id", "owner_id", "status", "priority", "note", "due_date")
    title_field = "title"

    def _read(self, raw: RawResource, included: ReferenceIndex) -> dict[str, Any]:
        status = self._text(raw, "status")
        patient_name = get_path(raw, "for.display") or self._included_name(raw, "for", included)
        owner_name = get_path(raw, "owner.display") or self._included_name(raw, "owner", included)
        return {
            "title": self._text(raw, "title"),
            "patient_name": patient_name or self._default("patient_name"),
            "patient_id": reference_id(raw.get("for")),
            "owner_name": owner_name or self._default("owner_name"),
            "owner_id": reference_id(raw.get("owner")),
            "status": status,
            "priority": self._text(raw, "priority"),
            "note": self._text(raw, "note"),
            "authored_on": self._text(raw, "authored_on"),
            "due_date": self._text(raw, "due_date"),
            "progress": PROGRESS_BY_STATUS.get(status, 0),
        }

    def _apply(self, raw: RawResource, vm: TaskItem, fields: Sequence[str]) -> None:
        if "title" in fields:
            self._put(raw, "description", vm.title)
        if "patient_id" in fields:
            self._write_reference(raw, "for", vm.patient_id, "Patient")
        if "owner_id" in fields:
            self._write_reference(raw, "owner", vm.owner_id, "Practitioner")
        if "status" in fields:
            self._put(raw, "status", vm.status)
        if "priority" in fields:
            self._put(raw, "priority", vm.priority)
        if "note" in fields:
            self._put(raw, "note.0.text", vm.note)
        if "due_date" in fields:
            self._put(raw, "executionPeriod.end", vm.due_date)


__all__ = ["PROGRESS_BY_STATUS", "TaskMapper"]
