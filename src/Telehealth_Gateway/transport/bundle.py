"""Bundle unpacking helpers.

A search response carries the primary resources together with any
``_include``-d secondary resources. :func:`unpack` returns only the primary
ones in store order; :func:`index_references` exposes the rest so mappers
can resolve a reference to its display name.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from typing import Any

from Telehealth_Gateway.models import RawResource


def _resources(bundle: Mapping[str, Any] | None) -> Iterator[RawResource]:
    entries = (bundle or {}).get("entry")
    if not isinstance(entries, list):
        return
    for entry in entries:
        if not isinstance(entry, Mapping):
            continue
        resource = entry.get("resource")
        if isinstance(resource, Mapping):
            yield dict(resource)


def unpack(bundle: Mapping[str, Any] | None, expected_type: str) -> list[RawResource]:
    """Return the ``expected_type`` resources of ``bundle`` in their original order.

    A bundle without ``entry`` yields an empty list. Entries without a
    resource and resources of other types are skipped.
    """
    return [
        resource
        for resource in _resources(bundle)
        if resource.get("resourceType") == expected_type
    ]


def group_by_type(bundle: Mapping[str, Any] | None) -> dict[str, list[RawResource]]:
    """Group every resource in ``bundle`` by its ``resourceType``."""
    grouped: dict[str, list[RawResource]] = {}
    for resource in _resources(bundle):
        resource_type = resource.get("resourceType")
        if isinstance(resource_type, str) and resource_type:
            grouped.setdefault(resource_type, []).append(resource)
    return grouped


def index_references(
    bundle: Mapping[str, Any] | None, *, exclude_type: str | None = None
) -> dict[str, RawResource]:
    """Map ``"Type/id"`` to each resource in ``bundle``.

    ``exclude_type`` drops the primary resource type so only included
    resources are indexed. The first occurrence of a reference wins.
    """
    index: dict[str, RawResource] = {}
    for resource in _resources(bundle):
        resource_type = resource.get("resourceType")
        resource_id = resource.get("id")
        if not resource_type or not resource_id or resource_type == exclude_type:
            continue
        index.setdefault(f"{resource_type}/{resource_id}", resource)
    return index


__all__ = ["group_by_type", "index_references", "unpack"]
