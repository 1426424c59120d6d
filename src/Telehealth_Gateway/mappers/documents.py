"""DocumentReference <-> DocumentSummary.

Patient and author displays may come from included resources and are
read-only; attachments are listed but never edited here.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from Telehealth_Gateway.mappers.base import ReferenceIndex, ResourceMapper
from Telehealth_Gateway.models import Attachment, DocumentSummary, RawResource
from Telehealth_Gateway.utils.fhir import get_path


class DocumentReferenceMapper(ResourceMapper[DocumentSummary]):
    resource_type = "DocumentReference"
    view_model = DocumentSummary
    owned_fields = ("title", "type", "date", "status")
    title_field = "title"

    def _attachments(self, raw: RawResource) -> tuple[Attachment, ...]:
        content = raw.get("content")
        if not isinstance(content, list):
            return ()
        content_type = self._default("attachment_type")
        title = self._default("attachment_title")
        return tuple(
            Attachment(
                content_type=str(get_path(item, "attachment.contentType", content_type)),
                title=str(get_path(item, "attachment.title", title)),
            )
            for item in content
            if isinstance(item, dict)
        )

    def _read(self, raw: RawResource, included: ReferenceIndex) -> dict[str, Any]:
        patient = get_path(raw, "subject.display") or self._included_name(raw, "subject", included)
        author = get_path(raw, "author.0.display") or self._included_name(raw, "author.0", included)
        return {
            "title": self._text(raw, "title"),
            "type": self._text(raw, "type"),
            "patient_name": patient or self._default("patient_name"),
            "author": author or self._default("author"),
            "date": self._text(raw, "date"),
            "status": self._text(raw, "status"),
            "attachments": self._attachments(raw),
        }

    def _apply(self, raw: RawResource, vm: DocumentSummary, fields: Sequence[str]) -> None:
        if "title" in fields:
            self._put(raw, "description", vm.title)
        if "type" in fields:
            self._put(raw, "type.text", vm.type)
        if "date" in fields:
            self._put(raw, "date", vm.date)
        if "status" in fields:
            self._put(raw, "status", vm.status)


__all__ = ["DocumentReferenceMapper"]
