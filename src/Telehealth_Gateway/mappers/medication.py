"""Medication <-> Product."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from Telehealth_Gateway.mappers.base import ReferenceIndex, ResourceMapper
from Telehealth_Gateway.models import Product, RawResource
from Telehealth_Gateway.utils.fhir import resolve_chain

_INGREDIENT_PATHS = (
    "itemCodeableConcept.text",
    "itemCodeableConcept.coding.0.display",
    "itemReference.display",
)


class MedicationMapper(ResourceMapper[Product]):
    resource_type = "Medication"
    view_model = Product
    owned_fields = (
        "name",
        "code",
        "manufacturer",
        "form",
        "ingredients",
        "batch_number",
        "expiration_date",
        "status",
    )
    title_field = "name"

    def _ingredients(self, raw: RawResource) -> tuple[str, ...]:
        entries = raw.get("ingredient")
        if not isinstance(entries, list):
            return ()
        fallback = self._default("ingredient")
        return tuple(
            str(resolve_chain(entry, _INGREDIENT_PATHS, fallback))
            for entry in entries
            if isinstance(entry, dict)
        )

    def _merge_ingredients(self, raw: RawResource, names: Sequence[str]) -> None:
        """Rename, append or truncate ingredient entries by position.

        Keys the view does not show (``strength``, ``isActive``, references)
        stay on every kept entry. The display fallback is never written.
        """
        fallback = self._default("ingredient")
        entries = [entry for entry in raw.get("ingredient") or [] if isinstance(entry, dict)]
        merged: list[dict[str, Any]] = []
        for position, name in enumerate(names):
            entry = entries[position] if position < len(entries) else {}
            shown = str(resolve_chain(entry, _INGREDIENT_PATHS, fallback))
            if name != shown:
                if "itemReference" in entry and "itemCodeableConcept" not in entry:
                    path = "itemReference.display"
                else:
                    path = "itemCodeableConcept.text"
                self._put(entry, path, "" if name == fallback else name)
            merged.append(entry)
        if merged:
            raw["ingredient"] = merged
        else:
            raw.pop("ingredient", None)

    def _read(self, raw: RawResource, included: ReferenceIndex) -> dict[str, Any]:
        return {
            "name": self._text(raw, "name"),
            "code": self._text(raw, "code"),
            "manufacturer": self._text(raw, "manufacturer"),
            "form": self._text(raw, "form"),
            "ingredients": self._ingredients(raw),
            "batch_number": self._text(raw, "batch_number"),
            "expiration_date": self._text(raw, "expiration_date"),
            "status": self._text(raw, "status"),
        }

    def _apply(self, raw: RawResource, vm: Product, fields: Sequence[str]) -> None:
        if "name" in fields:
            self._put(raw, "code.text", vm.name)
        if "code" in fields:
            self._put(raw, "code.coding.0.code", vm.code)
        if "manufacturer" in fields:
            self._put(raw, "manufacturer.display", vm.manufacturer)
        if "form" in fields:
            self._put(raw, "form.text", vm.form)
        if "ingredients" in fields:
            self._merge_ingredients(raw, vm.ingredients)
        if "batch_number" in fields:
            self._put(raw, "batch.lotNumber", vm.batch_number)
        if "expiration_date" in fields:
            self._put(raw, "batch.expirationDate", vm.expiration_date)
        if "status" in fields:
            self._put(raw, "status", vm.status)


__all__ = ["MedicationMapper"]
