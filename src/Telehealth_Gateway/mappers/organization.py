"""Organization <-> Pharmacy."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from Telehealth_Gateway.mappers.base import ReferenceIndex, ResourceMapper
from Telehealth_Gateway.mappers.mixins import ContactFieldsMixin
from Telehealth_Gateway.models import Pharmacy, RawResource


class OrganizationMapper(ContactFieldsMixin, ResourceMapper[Pharmacy]):
    resource_type = "Organization"
    view_model = Pharmacy
    owned_fields = ("name", "type", "phone", "email", "address", "identifier", "active")
    title_field = "name"
    contact_use = "work"

    def _read(self, raw: RawResource, included: ReferenceIndex) -> dict[str, Any]:
        return {
            "name": self._text(raw, "name"),
            "type": self._text(raw, "type"),
            "phone": self.read_telecom(raw, "phone", self._default("phone")),
            "email": self.read_telecom(raw, "email", self._default("email")),
            "address": self.read_address(raw, self._default("address")),
            "identifier": self._text(raw, "identifier"),
            "active": self._flag(raw, "active"),
        }

    def _apply(self, raw: RawResource, vm: Pharmacy, fields: Sequence[str]) -> None:
        if "name" in fields:
            self._put(raw, "name", vm.name)
        if "type" in fields:
            self._put(raw, "type.0.text", vm.type)
        if "phone" in fields:
            self.write_telecom(raw, "phone", vm.phone)
        if "email" in fields:
            self.write_telecom(raw, "email", vm.email)
        if "address" in fields:
            self.write_address(raw, vm.address)
        if "identifier" in fields:
            self._put(raw, "identifier.0.value", vm.identifier)
        if "active" in fields:
            raw["active"] = vm.active


__all__ = ["OrganizationMapper"]
