"""Shared mixins for resources with names and contact details (Practitioner, Patient, Organization)."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from Telehealth_Gateway.models import RawResource
from Telehealth_Gateway.utils.fhir import format_address, format_human_name, telecom_value

NPI_SYSTEM = "http://hl7.org/fhir/sid/us-npi"


def _primary(entries: list[Any], use: str) -> dict[str, Any] | None:
    dicts = [entry for entry in entries if isinstance(entry, dict)]
    if not dicts:
        return None
    return next((entry for entry in dicts if entry.get("use") == use), dicts[0])


class ContactFieldsMixin:
    """Read and write HumanName, ContactPoint and Address display strings.

    Reads pick the same entry the writes update (``official`` name, ``home``
    address, first contact of a system) so an edited value reads back as
    written.
    """

    contact_use: str = "home"

    def read_name(self, raw: Mapping[str, Any], default: str) -> str:
        return format_human_name(raw.get("name"), default)

    def write_name(self, raw: RawResource, value: str) -> None:
        """Split ``value`` into given names and family and update the primary name."""
        if not value:
            raw.pop("name", None)
            return
        parts = value.split()
        names = raw.get("name") if isinstance(raw.get("name"), list) else []
        entry = _primary(names, "official")
        if entry is None:
            entry = {"use": "official"}
            names = [entry, *names]
        for key in ("prefix", "suffix"):
            entry.pop(key, None)
        if len(parts) > 1:
            entry["given"] = parts[:-1]
        else:
            entry.pop("given", None)
        entry["family"] = parts[-1]
        if "text" in entry:
            entry["text"] = value
        raw["name"] = names

    def read_telecom(self, raw: Mapping[str, Any], system: str, default: str) -> str:
        return telecom_value(raw.get("telecom"), system, default)

    def write_telecom(self, raw: RawResource, system: str, value: str) -> None:
        """Update the first ContactPoint of ``system``; an empty value removes it."""
        telecom = raw.get("telecom") if isinstance(raw.get("telecom"), list) else []
        position = next(
            (
                index
                for index, contact in enumerate(telecom)
                if isinstance(contact, dict) and contact.get("system") == system and contact.get("value")
            ),
            None,
        )
        if not value:
            if position is not None:
                del telecom[position]
        elif position is not None:
            telecom[position]["value"] = value
        else:
            telecom.append({"system": system, "value": value, "use": self.contact_use})
        if telecom:
            raw["telecom"] = telecom
        else:
            raw.pop("telecom", None)

    def read_address(self, raw: Mapping[str, Any], default: str) -> str:
        return format_address(raw.get("address"), default)

    def write_address(self, raw: RawResource, value: str) -> None:
        """Replace the primary address with a free-text one."""
        addresses = raw.get("address") if isinstance(raw.get("address"), list) else []
        entry = _primary(addresses, "home")
        if not value:
            if entry is not None:
                addresses.remove(entry)
            if addresses:
                raw["address"] = addresses
            else:
                raw.pop("address", None)
            return
        replacement = {"use": entry.get("use", self.contact_use) if entry else self.contact_use, "text": value}
        if entry is None:
            addresses.append(replacement)
        else:
            addresses[addresses.index(entry)] = replacement
        raw["address"] = addresses

    def read_npi(self, raw: Mapping[str, Any], default: str) -> str:
        """NPI identifier value, else the first identifier's value."""
        identifiers = [entry for entry in raw.get("identifier") or [] if isinstance(entry, dict)]
        for entry in identifiers:
            if "npi" in str(entry.get("system", "")).lower() and entry.get("value"):
                return str(entry["value"])
        if identifiers and identifiers[0].get("value"):
            return str(identifiers[0]["value"])
        return default

    def write_npi(self, raw: RawResource, value: str) -> None:
        identifiers = raw.get("identifier") if isinstance(raw.get("identifier"), list) else []
        target = next(
            (
                entry
                for entry in identifiers
                if isinstance(entry, dict) and "npi" in str(entry.get("system", "")).lower()
            ),
            None,
        )
        if target is None and identifiers and isinstance(identifiers[0], dict):
            target = identifiers[0]
        if target is None:
            if value:
                raw["identifier"] = [{"system": NPI_SYSTEM, "value": value}]
            return
        if value:
            target["value"] = value
        else:
            target.pop("value", None)
        raw["identifier"] = identifiers


__all__ = ["NPI_SYSTEM", "ContactFieldsMixin"]
