"""Questionnaire <-> Form and QuestionnaireResponse <-> FormResponse.

Question texts and answer counts are listed, never edited here. A duplicated
form gets a fresh canonical url and starts over as a draft.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from Telehealth_Gateway.mappers.base import ReferenceIndex, ResourceMapper
from Telehealth_Gateway.models import Form, FormResponse, RawResource
from Telehealth_Gateway.utils.fhir import get_path, reference_id


def _items(raw: Mapping[str, Any]) -> list[dict[str, Any]]:
    items = raw.get("item")
    return [item for item in items if isinstance(item, dict)] if isinstance(items, list) else []


class QuestionnaireMapper(ResourceMapper[Form]):
    resource_type = "Questionnaire"
    view_model = Form
    owned_fields = ("title", "name", "url", "description", "version", "status")
    title_field = "title"

    def _read(self, raw: RawResource, included: ReferenceIndex) -> dict[str, Any]:
        return {
            "title": self._text(raw, "title"),
            "name": self._text(raw, "name"),
            "url": self._text(raw, "url"),
            "description": self._text(raw, "description"),
            "version": self._text(raw, "version"),
            "status": self._text(raw, "status"),
            "category": self._text(raw, "category"),
            "subject_type": self._text(raw, "subject_type"),
            "questions": tuple(str(item.get("text") or item.get("linkId") or "") for item in _items(raw)),
        }

    def _apply(self, raw: RawResource, vm: Form, fields: Sequence[str]) -> None:
        for name in fields:
            self._put(raw, name, getattr(vm, name))

    def copy_updates(self, vm: Form) -> dict[str, Any]:
        updates = {"title": f"{vm.title} (Copy)", "status": "draft"}
        if vm.url:
            updates["url"] = f"{vm.url}-copy"
        return updates


class QuestionnaireResponseMapper(ResourceMapper[FormResponse]):
    resource_type = "QuestionnaireResponse"
    view_model = FormResponse
    owned_fields = ("questionnaire", "patient_id", "authored", "status")

    def _read(self, raw: RawResource, included: ReferenceIndex) -> dict[str, Any]:
        patient = get_path(raw, "subject.display") or self._included_name(raw, "subject", included)
        author = get_path(raw, "author.display") or self._included_name(raw, "author", included)
        return {
            "questionnaire": self._text(raw, "questionnaire"),
            "patient_name": patient or self._default("patient_name"),
            "patient_id": reference_id(raw.get("subject")),
            "author": author or self._default("author"),
            "authored": self._text(raw, "authored"),
            "status": self._text(raw, "status"),
            "answer_count": sum(1 for item in _items(raw) if item.get("answer")),
        }

    def _apply(self, raw: RawResource, vm: FormResponse, fields: Sequence[str]) -> None:
        if "questionnaire" in fields:
            self._put(raw, "questionnaire", vm.questionnaire)
        if "patient_id" in fields:
            self._write_reference(raw, "subject", vm.patient_id, "Patient")
        if "authored" in fields:
            self._put(raw, "authored", vm.authored)
        if "status" in fields:
            self._put(raw, "status", vm.status)


__all__ = ["QuestionnaireMapper", "QuestionnaireResponseMapper"]
