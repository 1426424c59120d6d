"""CodeSystem <-> TagSystem.

The tag category is derived from the code system url; the concept list is
only counted, never edited through the view.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from Telehealth_Gateway.mappers.base import ReferenceIndex, ResourceMapper
from Telehealth_Gateway.models import RawResource, TagSystem

# first match wins
CATEGORY_MARKERS: tuple[str, ...] = ("patient", "appointment", "resource", "billing")
DEFAULT_CATEGORY = "general"
COPY_VERSION = "1.0.0"


def category_for(url: str) -> str:
    for marker in CATEGORY_MARKERS:
        if marker in url:
            return marker
    return DEFAULT_CATEGORY


class CodeSystemMapper(ResourceMapper[TagSystem]):
    resource_type = "CodeSystem"
    view_model = TagSystem
    owned_fields = ("name", "title", "description", "url", "version", "status")
    title_field = "name"

    def _read(self, raw: RawResource, included: ReferenceIndex) -> dict[str, Any]:
        url = self._text(raw, "url")
        concepts = raw.get("concept")
        return {
            "name": self._text(raw, "name"),
            "title": self._text(raw, "title"),
            "description": self._text(raw, "description"),
            "url": url,
            "version": self._text(raw, "version"),
            "status": self._text(raw, "status"),
            "category": category_for(url),
            "concept_count": len(concepts) if isinstance(concepts, list) else 0,
        }

    def _apply(self, raw: RawResource, vm: TagSystem, fields: Sequence[str]) -> None:
        for name in fields:
            self._put(raw, name, getattr(vm, name))

    def copy_updates(self, vm: TagSystem) -> dict[str, Any]:
        return {
            "name": f"{vm.name or 'Copy'} - Copy",
            "title": f"{vm.title or 'Copy'} - Copy",
            "url": f"{vm.url or 'http://example.com'}-copy",
            "version": COPY_VERSION,
            "status": "draft",
        }


__all__ = ["CATEGORY_MARKERS", "CodeSystemMapper", "category_for"]
