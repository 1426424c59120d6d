"""YAML-backed per-resource-type table.

The table is the static configuration collaborator of the gateway: it tells
the query builder which parameters a resource type understands, tells the
extension codec which side-channel tokens carry which values, and gives
each domain mapper its field priority chains and fallback literals.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from functools import lru_cache
from importlib import resources as importlib_resources
from pathlib import Path
from typing import Any, Literal

import yaml

from Telehealth_Gateway.utils.errors import UnknownResourceTypeError

ValueKind = Literal["string", "number", "boolean"]

_PACKAGED_TABLE = "resources.yaml"


@dataclass(frozen=True, slots=True)
class FieldRule:
    """Priority chain for one view-model field."""

    paths: tuple[str, ...] = ()
    default: Any = ""

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> FieldRule:
        return cls(
            paths=tuple(str(path) for path in data.get("paths") or ()),
            default=data.get("default", ""),
        )


@dataclass(frozen=True, slots=True)
class ExtensionKey:
    """One side-channel value: the lookup token and the url written for it."""

    token: str
    url: str
    kind: ValueKind = "string"
    default: Any = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> ExtensionKey:
        kind = str(data.get("kind", "string"))
        if kind not in ("string", "number", "boolean"):
            raise ValueError(f"Unsupported extension kind '{kind}'")
        token = str(data["token"])
        return cls(
            token=token,
            url=str(data.get("url") or token),
            kind=kind,  # type: ignore[arg-type]
            default=data.get("default"),
        )


@dataclass(frozen=True, slots=True)
class ResourceSpec:
    """Everything the gateway knows statically about one resource type."""

    resource_type: str
    view: str
    search_fields: tuple[str, ...] = ()
    status_param: str | None = None
    status_values: Mapping[str, str] = field(default_factory=dict)
    status_absent: str | None = None
    default_sort: str | None = None
    default_include: tuple[str, ...] = ()
    fields: Mapping[str, FieldRule] = field(default_factory=dict)
    extensions: Mapping[str, ExtensionKey] = field(default_factory=dict)
    create_defaults: Mapping[str, Any] = field(default_factory=dict)

    def rule(self, name: str) -> FieldRule:
        try:
            return self.fields[name]
        except KeyError as exc:
            raise KeyError(f"{self.resource_type} has no field rule '{name}'") from exc

    def extension_key(self, name: str) -> ExtensionKey:
        try:
            return self.extensions[name]
        except KeyError as exc:
            raise KeyError(f"{self.resource_type} has no extension key '{name}'") from exc

    @classmethod
    def from_mapping(cls, resource_type: str, data: Mapping[str, Any]) -> ResourceSpec:
        return cls(
            resource_type=resource_type,
            view=str(data.get("view", resource_type)),
            search_fields=tuple(str(item) for item in data.get("search_fields") or ()),
            status_param=data.get("status_param"),
            status_values={str(k): str(v) for k, v in dict(data.get("status_values") or {}).items()},
            status_absent=None if data.get("status_absent") is None else str(data["status_absent"]),
            default_sort=data.get("default_sort"),
            default_include=tuple(str(item) for item in data.get("default_include") or ()),
            fields={
                name: FieldRule.from_mapping(rule or {})
                for name, rule in dict(data.get("fields") or {}).items()
            },
            extensions={
                name: ExtensionKey.from_mapping(key)
                for name, key in dict(data.get("extensions") or {}).items()
            },
            create_defaults=dict(data.get("create_defaults") or {}),
        )


@dataclass(slots=True)
class ResourceTable:
    """Collection of :class:`ResourceSpec` entries keyed by resource type."""

    specs: dict[str, ResourceSpec] = field(default_factory=dict)

    def get(self, resource_type: str) -> ResourceSpec:
        try:
            return self.specs[resource_type]
        except KeyError as exc:
            raise UnknownResourceTypeError(
                f"Resource type '{resource_type}' is not configured",
                resource_type=resource_type,
            ) from exc

    def __contains__(self, resource_type: object) -> bool:
        return resource_type in self.specs

    def __iter__(self) -> Iterator[ResourceSpec]:
        return iter(self.specs.values())

    @property
    def resource_types(self) -> Sequence[str]:
        return tuple(self.specs)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> ResourceTable:
        resources = data.get("resources") or {}
        if not isinstance(resources, Mapping):
            raise ValueError("'resources' must be a mapping of resource type to spec")
        return cls(
            specs={
                str(name): ResourceSpec.from_mapping(str(name), spec or {})
                for name, spec in resources.items()
            }
        )

    @classmethod
    def from_yaml(cls, content: str) -> ResourceTable:
        try:
            data = yaml.safe_load(content)
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML: {exc}") from exc
        if not isinstance(data, Mapping):
            raise ValueError("Resource table must be a mapping")
        return cls.from_mapping(data)

    @classmethod
    def from_path(cls, path: Path) -> ResourceTable:
        try:
            content = path.read_text(encoding="utf-8")
        except FileNotFoundError as exc:
            raise ValueError(f"Resource table not found: {path}") from exc
        return cls.from_yaml(content)


def packaged_table_text() -> str:
    """Return the YAML shipped inside the package."""
    return (
        importlib_resources.files("Telehealth_Gateway.config")
        .joinpath(_PACKAGED_TABLE)
        .read_text(encoding="utf-8")
    )


@lru_cache(maxsize=4)
def load_resource_table(path: Path | None = None) -> ResourceTable:
    """Load (and cache) the resource table from ``path`` or the packaged default."""
    if path is not None:
        return ResourceTable.from_path(path)
    return ResourceTable.from_yaml(packaged_table_text())


__all__ = [
    "ExtensionKey",
    "FieldRule",
    "ResourceSpec",
    "ResourceTable",
    "ValueKind",
    "load_resource_table",
    "packaged_table_text",
]
