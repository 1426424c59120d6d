"""Patient <-> PatientSummary.

Unlike practitioners, a patient without ``active`` is shown as inactive.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from Telehealth_Gateway.mappers.base import ReferenceIndex, ResourceMapper
from Telehealth_Gateway.mappers.mixins import ContactFieldsMixin
from Telehealth_Gateway.models import PatientSummary, RawResource
from Telehealth_Gateway.utils.fhir import get_path


class PatientMapper(ContactFieldsMixin, ResourceMapper[PatientSummary]):
    resource_type = "Patient"
    view_model = PatientSummary
    owned_fields = (
        "name",
        "email",
        "phone",
        "birth_date",
        "gender",
        "address",
        "identifier",
        "active",
    )
    title_field = "name"

    def _read(self, raw: RawResource, included: ReferenceIndex) -> dict[str, Any]:
        return {
            "name": self.read_name(raw, self._default("name")),
            "email": self.read_telecom(raw, "email", self._default("email")),
            "phone": self.read_telecom(raw, "phone", self._default("phone")),
            "birth_date": self._text(raw, "birth_date"),
            "gender": self._text(raw, "gender"),
            "address": self.read_address(raw, self._default("address")),
            "identifier": self._text(raw, "identifier"),
            "active": self._flag(raw, "active"),
            "updated_at": str(get_path(raw, "meta.lastUpdated", "")),
        }

    def _apply(self, raw: RawResource, vm: PatientSummary, fields: Sequence[str]) -> None:
        if "name" in fields:
            self.write_name(raw, vm.name)
        if "email" in fields:
            self.write_telecom(raw, "email", vm.email)
        if "phone" in fields:
            self.write_telecom(raw, "phone", vm.phone)
        if "birth_date" in fields:
            self._put(raw, "birthDate", vm.birth_date)
        if "gender" in fields:
            self._put(raw, "gender", vm.gender)
        if "address" in fields:
            self.write_address(raw, vm.address)
        if "identifier" in fields:
            self._put(raw, "identifier.0.value", vm.identifier)
        if "active" in fields:
            raw["active"] = vm.active


__all__ = ["PatientMapper"]
