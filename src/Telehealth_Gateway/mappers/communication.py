"""Communication <-> Message.

The subject is the ``topic`` text, else the first payload string; sender and
recipient displays fall back to the included Patient/Practitioner names.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from Telehealth_Gateway.mappers.base import ReferenceIndex, ResourceMapper
from Telehealth_Gateway.models import Message, RawResource
from Telehealth_Gateway.utils.fhir import get_path, reference_id


class CommunicationMapper(ResourceMapper[Message]):
    resource_type = "Communication"
    view_model = Message
    owned_fields = ("subject", "content", "recipient_id", "category", "priority", "status")
    title_field = "subject"

    def _read(self, raw: RawResource, included: ReferenceIndex) -> dict[str, Any]:
        sender = get_path(raw, "sender.display") or self._included_name(raw, "sender", included)
        recipient = get_path(raw, "recipient.0.display") or self._included_name(
            raw, "recipient.0", included
        )
        return {
            "subject": self._text(raw, "subject"),
            "content": self._text(raw, "content"),
            "sender_name": sender or self._default("sender_name"),
            "sender_id": reference_id(raw.get("sender")),
            "recipient_name": recipient or self._default("recipient_name"),
            "recipient_id": reference_id(get_path(raw, "recipient.0")),
            "category": self._text(raw, "category"),
            "priority": self._text(raw, "priority"),
            "status": self._text(raw, "status"),
            "sent": self._text(raw, "sent"),
        }

    def _apply(self, raw: RawResource, vm: Message, fields: Sequence[str]) -> None:
        if "subject" in fields:
            self._put(raw, "topic.text", vm.subject)
        if "content" in fields:
            self._put(raw, "payload.0.contentString", vm.content)
        if "recipient_id" in fields:
            self._write_reference(raw, "recipient.0", vm.recipient_id, "Patient")
            if raw.get("recipient") == []:
                del raw["recipient"]
        if "category" in fields:
            self._put(raw, "category.0.text", vm.category)
        if "priority" in fields:
            self._put(raw, "priority", vm.priority)
        if "status" in fields:
            self._put(raw, "status", vm.status)


__all__ = ["CommunicationMapper"]
