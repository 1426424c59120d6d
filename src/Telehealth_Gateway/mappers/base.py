"""Base class for bidirectional resource <-> view-model mappers.

Key Responsibilities:
    - Project a sparse raw resource onto a fully defaulted view-model
    - Merge an edited view-model back into the resource it came from
    - Mark a resource as a copy for duplication

Merge Contract:
    ``to_raw(vm, existing)`` starts from a deep copy of ``existing`` (or,
    for a new resource, from the type's create defaults) and rewrites only
    the owned fields whose value differs from the view of that starting
    point. Unchanged view-models therefore round-trip to an identical
    resource, fields the view-model does not own are never touched, and
    placeholder defaults shown to the user are never written back.

Thread Safety:
    - Thread-safe: mappers hold only immutable configuration
"""

from __future__ import annotations

import copy
from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from typing import Any, ClassVar, Generic, TypeVar

from Telehealth_Gateway.codec.extensions import ExtensionCodec
from Telehealth_Gateway.config.resources import ResourceSpec
from Telehealth_Gateway.models import RawResource, ViewModel
from Telehealth_Gateway.utils.fhir import (
    delete_path,
    format_human_name,
    get_path,
    resolve_chain,
    set_path,
)

VM = TypeVar("VM", bound=ViewModel)

ReferenceIndex = Mapping[str, RawResource]

_SERVER_MANAGED = ("id", "meta")
_STATUS_WORDS = {"active": True, "inactive": False}


class ResourceMapper(ABC, Generic[VM]):
    """Maps one resource type to its view-model and back."""

    resource_type: ClassVar[str]
    view_model: ClassVar[type[ViewModel]]
    owned_fields: ClassVar[tuple[str, ...]] = ()
    title_field: ClassVar[str | None] = None

    def __init__(self, spec: ResourceSpec, codec: ExtensionCodec | None = None) -> None:
        if spec.resource_type != self.resource_type:
            raise ValueError(
                f"{type(self).__name__} maps {self.resource_type}, got a spec for {spec.resource_type}"
            )
        self.spec = spec
        self.codec = codec or ExtensionCodec()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def to_view_model(
        self, raw: Mapping[str, Any] | None, included: ReferenceIndex | None = None
    ) -> VM:
        """Project ``raw`` onto the view-model; never raises on sparse input."""
        resource = dict(raw or {})
        values = self._read(resource, included or {})
        resource_id = resource.get("id")
        return self.view_model(  # type: ignore[return-value]
            id=str(resource_id) if resource_id else "",
            raw=copy.deepcopy(resource),
            **values,
        )

    def blank(self) -> VM:
        """View-model of a new resource, pre-filled from the create defaults."""
        return self.to_view_model(self._fresh())

    def to_raw(self, vm: VM, existing: Mapping[str, Any] | None = None) -> RawResource:
        """Merge ``vm`` into ``existing`` (or a fresh resource) and return the result."""
        if existing is not None:
            raw = copy.deepcopy(dict(existing))
        else:
            raw = self._fresh()
            if vm.id:
                raw["id"] = vm.id
        raw["resourceType"] = self.resource_type
        baseline = self.to_view_model(raw)
        changed = tuple(
            name for name in self.owned_fields if getattr(vm, name) != getattr(baseline, name)
        )
        if changed:
            self._apply(raw, vm, changed)
        return raw

    def copy_updates(self, vm: VM) -> dict[str, Any]:
        """View-model field updates that mark ``vm`` as a copy."""
        if self.title_field is None:
            return {}
        return {self.title_field: f"{getattr(vm, self.title_field)} (Copy)"}

    def mark_copy(self, raw: Mapping[str, Any]) -> RawResource:
        """Return a copy of ``raw`` marked as a duplicate, without server metadata."""
        vm = self.to_view_model(raw)
        marked = vm.model_copy(update=self.copy_updates(vm))
        duplicate = self.to_raw(marked, existing=raw)
        for key in _SERVER_MANAGED:
            duplicate.pop(key, None)
        return duplicate

    def with_status(self, vm: VM, value: Any) -> VM:
        """Return ``vm`` with its status field set to ``value``.

        ``"active"``/``"inactive"`` are accepted for boolean status fields;
        other strings go through the type's status value table
        (``"success"`` becomes outcome ``"0"`` for audit events).
        """
        current = getattr(vm, vm.status_field)
        if isinstance(current, bool) and isinstance(value, str) and value in _STATUS_WORDS:
            value = _STATUS_WORDS[value]
        elif isinstance(value, str):
            value = self.spec.status_values.get(value, value)
        data = vm.model_dump()
        data[vm.status_field] = value
        return type(vm).model_validate(data)

    # ------------------------------------------------------------------
    # Per-type hooks
    # ------------------------------------------------------------------
    @abstractmethod
    def _read(self, raw: RawResource, included: ReferenceIndex) -> dict[str, Any]:
        """Return view-model field values for ``raw``."""

    @abstractmethod
    def _apply(self, raw: RawResource, vm: VM, fields: Sequence[str]) -> None:
        """Write ``fields`` of ``vm`` into ``raw`` in place."""

    # ------------------------------------------------------------------
    # Helpers for subclasses
    # ------------------------------------------------------------------
    def _fresh(self) -> RawResource:
        raw = copy.deepcopy(dict(self.spec.create_defaults))
        raw["resourceType"] = self.resource_type
        return raw

    def _chain(self, raw: Mapping[str, Any], name: str) -> Any:
        rule = self.spec.rule(name)
        return resolve_chain(raw, rule.paths, rule.default)

    def _text(self, raw: Mapping[str, Any], name: str) -> str:
        value = self._chain(raw, name)
        return "" if value is None else str(value)

    def _default(self, name: str) -> Any:
        return self.spec.rule(name).default

    def _flag(self, raw: Mapping[str, Any], element: str) -> bool:
        """Boolean status element; an absent value follows the table's ``status_absent``."""
        value = raw.get(element)
        if isinstance(value, bool):
            return value
        return self.spec.status_absent == "true"

    def _extension(self, raw: Mapping[str, Any], name: str) -> Any:
        return self.codec.read_key(raw, self.spec.extension_key(name))

    def _set_extension(self, raw: RawResource, name: str, value: Any) -> None:
        updated = self.codec.write_key(raw, self.spec.extension_key(name), value)
        raw["extension"] = updated["extension"]

    def _clear_extension(self, raw: RawResource, name: str) -> None:
        updated = self.codec.remove_key(raw, self.spec.extension_key(name))
        if "extension" in updated:
            raw["extension"] = updated["extension"]
        else:
            raw.pop("extension", None)

    @staticmethod
    def _write_reference(raw: RawResource, path: str, resource_id: str, fallback: str) -> None:
        """Point the Reference at ``path`` to ``resource_id``, keeping its target type.

        The display is dropped since it named the previous target. An empty
        id removes the reference.
        """
        if not resource_id:
            delete_path(raw, path)
            return
        target = get_path(raw, f"{path}.reference")
        target_type = target.rsplit("/", 1)[0] if isinstance(target, str) and "/" in target else fallback
        set_path(raw, path, {"reference": f"{target_type}/{resource_id}"})

    @staticmethod
    def _put(raw: RawResource, path: str, value: Any) -> None:
        """Set ``path`` to ``value``; an empty string or ``None`` clears it."""
        if value is None or value == "":
            delete_path(raw, path)
        else:
            set_path(raw, path, value)

    @staticmethod
    def _included_name(
        raw: Mapping[str, Any], reference_path: str, included: ReferenceIndex
    ) -> str | None:
        """Display name of the included resource ``reference_path`` points at."""
        reference = get_path(raw, f"{reference_path}.reference")
        target = included.get(reference) if isinstance(reference, str) else None
        if not target:
            return None
        name = target.get("name")
        if isinstance(name, str) and name:
            return name
        return format_human_name(name, "") or None


__all__ = ["ReferenceIndex", "ResourceMapper", "VM"]
