"""Appointment <-> Session.

Patient and provider are the participants whose actor references a Patient
or a Practitioner; editing either id rewrites that participant's actor and
keeps its status and role. The meeting link travels in the extension
side-channel. Symptoms are listed from ``reasonCode`` and are read-only.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from Telehealth_Gateway.mappers.base import ReferenceIndex, ResourceMapper
from Telehealth_Gateway.models import RawResource, Session
from Telehealth_Gateway.utils.fhir import get_path, reference_id


def _participant_index(raw: Mapping[str, Any], actor_type: str) -> int | None:
    participants = raw.get("participant")
    if not isinstance(participants, list):
        return None
    for index, entry in enumerate(participants):
        reference = get_path(entry, "actor.reference")
        if isinstance(reference, str) and reference.startswith(f"{actor_type}/"):
            return index
    return None


def _reason_texts(raw: Mapping[str, Any]) -> tuple[str, ...]:
    reasons = raw.get("reasonCode")
    if not isinstance(reasons, list):
        return ()
    return tuple(
        str(reason["text"]) for reason in reasons if isinstance(reason, dict) and reason.get("text")
    )


class AppointmentMapper(ResourceMapper[Session]):
    resource_type = "Appointment"
    view_model = Session
    owned_fields = (
        "title",
        "patient_id",
        "provider_id",
        "start",
        "end",
        "duration",
        "type",
        "session_type",
        "status",
        "notes",
        "meeting_link",
    )
    title_field = "title"

    def _actor(
        self, raw: RawResource, actor_type: str, included: ReferenceIndex
    ) -> tuple[str | None, str]:
        index = _participant_index(raw, actor_type)
        if index is None:
            return None, ""
        path = f"participant.{index}.actor"
        name = get_path(raw, f"{path}.display") or self._included_name(raw, path, included)
        return name, reference_id(get_path(raw, path))

    def _read(self, raw: RawResource, included: ReferenceIndex) -> dict[str, Any]:
        patient_name, patient_id = self._actor(raw, "Patient", included)
        provider_name, provider_id = self._actor(raw, "Practitioner", included)
        duration = raw.get("minutesDuration")
        if not isinstance(duration, int) or isinstance(duration, bool):
            duration = self._default("duration")
        return {
            "title": self._text(raw, "title"),
            "patient_name": patient_name or self._default("patient_name"),
            "patient_id": patient_id,
            "provider_name": provider_name or self._default("provider_name"),
            "provider_id": provider_id,
            "start": self._text(raw, "start"),
            "end": self._text(raw, "end"),
            "duration": duration,
            "type": self._text(raw, "type"),
            "session_type": self._text(raw, "session_type"),
            "status": self._text(raw, "status"),
            "notes": self._text(raw, "notes"),
            "meeting_link": str(self._extension(raw, "meeting_link") or ""),
            "symptoms": _reason_texts(raw),
        }

    def _write_participant(self, raw: RawResource, actor_type: str, resource_id: str) -> None:
        index = _participant_index(raw, actor_type)
        participants = raw.get("participant") if isinstance(raw.get("participant"), list) else []
        if index is None:
            if resource_id:
                participants.append(
                    {"actor": {"reference": f"{actor_type}/{resource_id}"}, "status": "accepted"}
                )
        elif resource_id:
            participants[index]["actor"] = {"reference": f"{actor_type}/{resource_id}"}
        else:
            del participants[index]
        if participants:
            raw["participant"] = participants
        else:
            raw.pop("participant", None)

    def _apply(self, raw: RawResource, vm: Session, fields: Sequence[str]) -> None:
        if "title" in fields:
            self._put(raw, "description", vm.title)
        if "patient_id" in fields:
            self._write_participant(raw, "Patient", vm.patient_id)
        if "provider_id" in fields:
            self._write_participant(raw, "Practitioner", vm.provider_id)
        if "start" in fields:
            self._put(raw, "start", vm.start)
        if "end" in fields:
            self._put(raw, "end", vm.end)
        if "duration" in fields:
            self._put(raw, "minutesDuration", vm.duration or None)
        if "type" in fields:
            self._put(raw, "appointmentType.text", vm.type)
        if "session_type" in fields:
            self._put(raw, "serviceType.0.text", vm.session_type)
        if "status" in fields:
            self._put(raw, "status", vm.status)
        if "notes" in fields:
            self._put(raw, "comment", vm.notes)
        if "meeting_link" in fields:
            if vm.meeting_link:
                self._set_extension(raw, "meeting_link", vm.meeting_link)
            else:
                self._clear_extension(raw, "meeting_link")


__all__ = ["AppointmentMapper"]
