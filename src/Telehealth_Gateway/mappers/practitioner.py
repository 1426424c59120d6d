"""Practitioner <-> Provider."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from Telehealth_Gateway.mappers.base import ReferenceIndex, ResourceMapper
from Telehealth_Gateway.mappers.mixins import ContactFieldsMixin
from Telehealth_Gateway.models import Provider, RawResource


class PractitionerMapper(ContactFieldsMixin, ResourceMapper[Provider]):
    resource_type = "Practitioner"
    view_model = Provider
    owned_fields = ("name", "specialty", "phone", "email", "address", "gender", "npi", "active")
    title_field = "name"
    contact_use = "work"

    def _read(self, raw: RawResource, included: ReferenceIndex) -> dict[str, Any]:
        return {
            "name": self.read_name(raw, self._default("name")),
            "specialty": self._text(raw, "specialty"),
            "phone": self.read_telecom(raw, "phone", self._default("phone")),
            "email": self.read_telecom(raw, "email", self._default("email")),
            "address": self.read_address(raw, self._default("address")),
            "gender": self._text(raw, "gender"),
            "npi": self.read_npi(raw, self._default("npi")),
            "active": self._flag(raw, "active"),
        }

    def _apply(self, raw: RawResource, vm: Provider, fields: Sequence[str]) -> None:
        if "name" in fields:
            self.write_name(raw, vm.name)
        if "specialty" in fields:
            self._put(raw, "qualification.0.code.text", vm.specialty)
        if "phone" in fields:
            self.write_telecom(raw, "phone", vm.phone)
        if "email" in fields:
            self.write_telecom(raw, "email", vm.email)
        if "address" in fields:
            self.write_address(raw, vm.address)
        if "gender" in fields:
            self._put(raw, "gender", vm.gender)
        if "npi" in fields:
            self.write_npi(raw, vm.npi)
        if "active" in fields:
            raw["active"] = vm.active


__all__ = ["PractitionerMapper"]
