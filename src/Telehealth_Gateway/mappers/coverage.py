"""Coverage <-> CoverageSummary.

Copay and deductible are read from ``costToBeneficiary`` entries typed
``copay``/``deductible`` and fall back to the coverage extensions, then to
the configured defaults. The beneficiary display falls back to the name of
the included Patient when the search asked for ``Coverage:beneficiary``.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from Telehealth_Gateway.mappers.base import ReferenceIndex, ResourceMapper
from Telehealth_Gateway.models import CoverageSummary, RawResource
from Telehealth_Gateway.utils.fhir import get_path, reference_id

COPAY_TYPE_SYSTEM = "http://terminology.hl7.org/CodeSystem/coverage-copay-type"

_COST_LABELS = {"copay": "Copay", "deductible": "Deductible"}


def _cost_type_matches(entry: Mapping[str, Any], code: str) -> bool:
    codings = get_path(entry, "type.coding") or []
    for coding in codings:
        if isinstance(coding, Mapping) and str(coding.get("code", "")).lower() == code:
            return True
    text = get_path(entry, "type.text")
    return isinstance(text, str) and text.lower() == code


def _cost_entry(raw: Mapping[str, Any], code: str) -> dict[str, Any] | None:
    costs = raw.get("costToBeneficiary")
    if not isinstance(costs, list):
        return None
    for entry in costs:
        if isinstance(entry, dict) and _cost_type_matches(entry, code):
            return entry
    return None


class CoverageMapper(ResourceMapper[CoverageSummary]):
    resource_type = "Coverage"
    view_model = CoverageSummary
    owned_fields = (
        "payor_name",
        "type",
        "status",
        "subscriber_id",
        "period_start",
        "period_end",
        "copay",
        "deductible",
    )

    def _cost(self, raw: Mapping[str, Any], code: str) -> float:
        value = get_path(_cost_entry(raw, code), "valueMoney.value")
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return float(value)
        return float(self._extension(raw, code) or 0)

    def _read(self, raw: RawResource, included: ReferenceIndex) -> dict[str, Any]:
        beneficiary = get_path(raw, "beneficiary.display") or self._included_name(
            raw, "beneficiary", included
        )
        return {
            "payor_name": self._text(raw, "payor_name"),
            "beneficiary_name": beneficiary or self._default("beneficiary_name"),
            "beneficiary_id": reference_id(raw.get("beneficiary")),
            "type": self._text(raw, "type"),
            "status": self._text(raw, "status"),
            "subscriber_id": self._text(raw, "subscriber_id"),
            "period_start": self._text(raw, "period_start"),
            "period_end": self._text(raw, "period_end"),
            "copay": self._cost(raw, "copay"),
            "deductible": self._cost(raw, "deductible"),
        }

    def _write_cost(self, raw: RawResource, code: str, value: float) -> None:
        entry = _cost_entry(raw, code)
        if entry is None:
            costs = raw.get("costToBeneficiary")
            if not isinstance(costs, list):
                costs = raw["costToBeneficiary"] = []
            entry = {
                "type": {
                    "coding": [{"system": COPAY_TYPE_SYSTEM, "code": code}],
                    "text": _COST_LABELS[code],
                }
            }
            costs.append(entry)
        money = entry.get("valueMoney") if isinstance(entry.get("valueMoney"), dict) else {}
        entry["valueMoney"] = {**money, "value": value}
        entry["valueMoney"].setdefault("currency", "USD")

    def _apply(self, raw: RawResource, vm: CoverageSummary, fields: Sequence[str]) -> None:
        if "payor_name" in fields:
            self._put(raw, "payor.0.display", vm.payor_name)
        if "type" in fields:
            self._put(raw, "type.text", vm.type)
        if "status" in fields:
            self._put(raw, "status", vm.status)
        if "subscriber_id" in fields:
            self._put(raw, "subscriberId", vm.subscriber_id)
        if "period_start" in fields:
            self._put(raw, "period.start", vm.period_start)
        if "period_end" in fields:
            self._put(raw, "period.end", vm.period_end)
        if "copay" in fields:
            self._write_cost(raw, "copay", vm.copay)
        if "deductible" in fields:
            self._write_cost(raw, "deductible", vm.deductible)


__all__ = ["COPAY_TYPE_SYSTEM", "CoverageMapper"]
