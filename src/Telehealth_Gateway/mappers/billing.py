"""ChargeItem <-> Discount.

Discount terms live in the ``extension`` side-channel: ``type`` selects
between a percentage and an amount, and the value is read from the
``percentage`` or ``amount`` entry accordingly. Writes emit all four
entries (type, value, percentage, amount) so older readers that only know
one of them keep working.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, get_args

from Telehealth_Gateway.mappers.base import ReferenceIndex, ResourceMapper
from Telehealth_Gateway.models import Discount, RawResource
from Telehealth_Gateway.models.views import DiscountType

_DISCOUNT_TYPES: tuple[str, ...] = get_args(DiscountType)
_ACTIVE_STATUSES = {"billable", "billed"}


class ChargeItemMapper(ResourceMapper[Discount]):
    resource_type = "ChargeItem"
    view_model = Discount
    owned_fields = ("code", "name", "description", "type", "value", "is_active")
    title_field = "name"

    def _read(self, raw: RawResource, included: ReferenceIndex) -> dict[str, Any]:
        discount_type = self._extension(raw, "type")
        if discount_type not in _DISCOUNT_TYPES:
            discount_type = self.spec.extension_key("type").default
        if discount_type == "percentage":
            value = self._extension(raw, "percentage")
        else:
            value = self._extension(raw, "amount")
        return {
            "code": self._text(raw, "code"),
            "name": self._text(raw, "name"),
            "description": self._text(raw, "description"),
            "type": discount_type,
            "value": float(value or 0),
            "is_active": raw.get("status") in _ACTIVE_STATUSES,
            "created_at": self._text(raw, "created_at"),
        }

    def _apply(self, raw: RawResource, vm: Discount, fields: Sequence[str]) -> None:
        if "code" in fields:
            self._put(raw, "code.coding.0.code", vm.code)
        if "name" in fields:
            self._put(raw, "code.text", vm.name)
            self._put(raw, "code.coding.0.display", vm.name)
        if "description" in fields:
            self._put(raw, "definitionUri.0", vm.description)
            if raw.get("definitionUri") == []:
                del raw["definitionUri"]
        if "is_active" in fields:
            raw["status"] = "billable" if vm.is_active else "not-billable"
        if "type" in fields or "value" in fields:
            self._set_extension(raw, "type", vm.type)
            self._set_extension(raw, "value", vm.value)
            self._set_extension(raw, "percentage", vm.value if vm.type == "percentage" else 0)
            self._set_extension(raw, "amount", vm.value if vm.type == "fixed_amount" else 0)

    def copy_updates(self, vm: Discount) -> dict[str, Any]:
        return {"name": f"{vm.name} (Copy)", "code": f"{vm.code}_COPY"}


__all__ = ["ChargeItemMapper"]
