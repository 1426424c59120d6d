"""Invoice <-> InvoiceSummary."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from Telehealth_Gateway.mappers.base import ReferenceIndex, ResourceMapper
from Telehealth_Gateway.models import InvoiceSummary, RawResource
from Telehealth_Gateway.utils.fhir import get_path, reference_id


class InvoiceMapper(ResourceMapper[InvoiceSummary]):
    resource_type = "Invoice"
    view_model = InvoiceSummary
    owned_fields = ("number", "patient_id", "type", "date", "total", "status")

    def _read(self, raw: RawResource, included: ReferenceIndex) -> dict[str, Any]:
        patient = get_path(raw, "subject.display") or self._included_name(raw, "subject", included)
        total = get_path(raw, "totalNet.value")
        if not isinstance(total, (int, float)) or isinstance(total, bool):
            total = self._default("total")
        return {
            "number": self._text(raw, "number"),
            "patient_name": patient or self._default("patient_name"),
            "patient_id": reference_id(raw.get("subject")),
            "type": self._text(raw, "type"),
            "date": self._text(raw, "date"),
            "total": float(total),
            "currency": self._text(raw, "currency"),
            "status": self._text(raw, "status"),
        }

    def _apply(self, raw: RawResource, vm: InvoiceSummary, fields: Sequence[str]) -> None:
        if "number" in fields:
            self._put(raw, "identifier.0.value", vm.number)
        if "patient_id" in fields:
            self._write_reference(raw, "subject", vm.patient_id, "Patient")
        if "type" in fields:
            self._put(raw, "type.text", vm.type)
        if "date" in fields:
            self._put(raw, "date", vm.date)
        if "total" in fields:
            set_currency = get_path(raw, "totalNet.currency") is None
            self._put(raw, "totalNet.value", vm.total)
            if set_currency:
                self._put(raw, "totalNet.currency", vm.currency)
        if "status" in fields:
            self._put(raw, "status", vm.status)


__all__ = ["InvoiceMapper"]
