"""ServiceRequest <-> ServiceOrder and MedicationRequest <-> MedicationOrder.

Both request types share subject, requester, status, intent, priority and
note handling; they differ in what is being ordered. A medication ordered
by reference keeps its reference and only its display is edited.
"""

from __future__ import annotations

from abc import abstractmethod
from collections.abc import Sequence
from typing import Any, TypeVar

from Telehealth_Gateway.mappers.base import ReferenceIndex, ResourceMapper
from Telehealth_Gateway.models import MedicationOrder, Order, RawResource, ServiceOrder
from Telehealth_Gateway.utils.fhir import get_path, reference_id

_ORDER_FIELDS = ("description", "patient_id", "status", "intent", "priority", "note")

OrderVM = TypeVar("OrderVM", bound=Order)


class _OrderMapper(ResourceMapper[OrderVM]):
    owned_fields = _ORDER_FIELDS
    title_field = "description"

    def _read(self, raw: RawResource, included: ReferenceIndex) -> dict[str, Any]:
        patient = get_path(raw, "subject.display") or self._included_name(raw, "subject", included)
        requester = get_path(raw, "requester.display") or self._included_name(
            raw, "requester", included
        )
        return {
            "description": self._text(raw, "description"),
            "patient_name": patient or self._default("patient_name"),
            "patient_id": reference_id(raw.get("subject")),
            "requester": requester or self._default("requester"),
            "status": self._text(raw, "status"),
            "intent": self._text(raw, "intent"),
            "priority": self._text(raw, "priority"),
            "authored_on": self._text(raw, "authored_on"),
            "note": self._text(raw, "note"),
            **self._read_order(raw),
        }

    def _apply(self, raw: RawResource, vm: OrderVM, fields: Sequence[str]) -> None:
        if "description" in fields:
            self._write_description(raw, vm.description)
        if "patient_id" in fields:
            self._write_reference(raw, "subject", vm.patient_id, "Patient")
        for name in ("status", "intent", "priority"):
            if name in fields:
                self._put(raw, name, getattr(vm, name))
        if "note" in fields:
            self._put(raw, "note.0.text", vm.note)
        self._apply_order(raw, vm, fields)

    def _read_order(self, raw: RawResource) -> dict[str, Any]:
        return {}

    def _apply_order(self, raw: RawResource, vm: OrderVM, fields: Sequence[str]) -> None:
        return None

    @abstractmethod
    def _write_description(self, raw: RawResource, value: str) -> None:
        """Write the ordered item's display text."""


class ServiceRequestMapper(_OrderMapper[ServiceOrder]):
    resource_type = "ServiceRequest"
    view_model = ServiceOrder
    owned_fields = (*_ORDER_FIELDS, "code", "occurrence")

    def _read_order(self, raw: RawResource) -> dict[str, Any]:
        return {"code": self._text(raw, "code"), "occurrence": self._text(raw, "occurrence")}

    def _write_description(self, raw: RawResource, value: str) -> None:
        self._put(raw, "code.text", value)

    def _apply_order(self, raw: RawResource, vm: ServiceOrder, fields: Sequence[str]) -> None:
        if "code" in fields:
            self._put(raw, "code.coding.0.code", vm.code)
        if "occurrence" in fields:
            self._put(raw, "occurrenceDateTime", vm.occurrence)


class MedicationRequestMapper(_OrderMapper[MedicationOrder]):
    resource_type = "MedicationRequest"
    view_model = MedicationOrder
    owned_fields = (*_ORDER_FIELDS, "dosage")

    def _read_order(self, raw: RawResource) -> dict[str, Any]:
        return {"dosage": self._text(raw, "dosage")}

    def _write_description(self, raw: RawResource, value: str) -> None:
        if "medicationReference" in raw and "medicationCodeableConcept" not in raw:
            self._put(raw, "medicationReference.display", value)
        else:
            self._put(raw, "medicationCodeableConcept.text", value)

    def _apply_order(self, raw: RawResource, vm: MedicationOrder, fields: Sequence[str]) -> None:
        if "dosage" in fields:
            self._put(raw, "dosageInstruction.0.text", vm.dosage)


__all__ = ["MedicationRequestMapper", "ServiceRequestMapper"]
