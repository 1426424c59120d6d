"""In-memory resource store used for datasets routed to fixture mode.

The store answers the same contract as :class:`HttpResourceStore` with zero
latency: it assigns ids on create, raises :class:`ResourceNotFoundError`
for unknown ids and honours the query parameters the query builder emits
(free text, status, ``_sort``, ``_count`` and ``_include``) so a page
behaves the same against fixtures as against a live store.
"""

from __future__ import annotations

import copy
import re
import uuid
from collections.abc import Iterable, Mapping
from datetime import UTC, datetime
from typing import Any

import structlog

from Telehealth_Gateway.config.resources import ResourceSpec, ResourceTable
from Telehealth_Gateway.models import Bundle, RawResource
from Telehealth_Gateway.query.builder import ParamMap
from Telehealth_Gateway.transport.base import ResourceStore
from Telehealth_Gateway.utils.errors import ResourceNotFoundError
from Telehealth_Gateway.utils.fhir import get_path

logger = structlog.get_logger(__name__)

_FILTER_TEXT = re.compile(r'co "((?:[^"\\]|\\.)*)"')
_SORT_PATHS = {"_lastUpdated": "meta.lastUpdated", "_id": "id"}
# search parameters named differently from the element they address
_PARAM_ELEMENTS: Mapping[tuple[str, str], str] = {
    ("Appointment", "date"): "start",
    ("AuditEvent", "date"): "recorded",
    ("MedicationRequest", "authoredon"): "authoredOn",
    ("MedicationRequest", "code"): "medicationCodeableConcept",
    ("ServiceRequest", "authored"): "authoredOn",
}
_RESERVED = {"_sort", "_count", "_include", "_filter"}


def _elements(resource_type: str, search_param: str) -> tuple[str, ...]:
    """Elements a search parameter addresses (``agent-name`` -> ``agentName``, ``agent``)."""
    base = search_param.split(":", 1)[0]
    alias = _PARAM_ELEMENTS.get((resource_type, base))
    if alias:
        return (alias,)
    return tuple(dict.fromkeys((_camel(base), base.split("-", 1)[0])))


def _camel(name: str) -> str:
    head, *rest = name.split("-")
    return head + "".join(part.capitalize() for part in rest)


def _strings(node: Any) -> Iterable[str]:
    if isinstance(node, str):
        yield node
    elif isinstance(node, Mapping):
        for value in node.values():
            yield from _strings(value)
    elif isinstance(node, list):
        for value in node:
            yield from _strings(value)


def _references(node: Any, target_type: str) -> Iterable[Mapping[str, Any]]:
    """Every Reference anywhere in ``node`` that points at ``target_type``."""
    if isinstance(node, Mapping):
        reference = node.get("reference")
        if isinstance(reference, str) and reference.startswith(f"{target_type}/"):
            yield node
        for value in node.values():
            yield from _references(value, target_type)
    elif isinstance(node, list):
        for value in node:
            yield from _references(value, target_type)


def _token(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return "" if value is None else str(value)


def _first_param(value: Any) -> str:
    if isinstance(value, list):
        return str(value[0]) if value else ""
    return str(value)


class InMemoryResourceStore(ResourceStore):
    """Dictionary-backed store keyed by resource type then id."""

    name = "fixture"

    def __init__(
        self,
        table: ResourceTable,
        seed: Mapping[str, Iterable[Mapping[str, Any]]] | None = None,
    ) -> None:
        self.table = table
        self._resources: dict[str, dict[str, RawResource]] = {}
        for resource_type, resources in (seed or {}).items():
            for resource in resources:
                stored = copy.deepcopy(dict(resource))
                stored["resourceType"] = resource_type
                stored.setdefault("id", uuid.uuid4().hex)
                self._bucket(resource_type)[str(stored["id"])] = stored

    def _bucket(self, resource_type: str) -> dict[str, RawResource]:
        return self._resources.setdefault(resource_type, {})

    def _missing(self, resource_type: str, resource_id: str) -> ResourceNotFoundError:
        return ResourceNotFoundError(
            f"{resource_type}/{resource_id} not found",
            resource_type=resource_type,
            resource_id=resource_id,
        )

    # ------------------------------------------------------------------
    # Contract
    # ------------------------------------------------------------------
    async def search(self, resource_type: str, params: ParamMap | None = None) -> Bundle:
        params = dict(params or {})
        matches = list(self._bucket(resource_type).values())
        if resource_type in self.table:
            matches = self._filter(resource_type, matches, params)
        if "_sort" in params:
            matches = self._sort(resource_type, matches, _first_param(params["_sort"]))
        total = len(matches)
        if "_count" in params:
            matches = matches[: max(int(_first_param(params["_count"])), 0)]

        entries: list[dict[str, Any]] = [
            {"resource": copy.deepcopy(resource), "search": {"mode": "match"}}
            for resource in matches
        ]
        includes = params.get("_include") or []
        for included in self._included(matches, [includes] if isinstance(includes, str) else includes):
            entries.append({"resource": copy.deepcopy(included), "search": {"mode": "include"}})
        logger.debug("fixture.search", resource_type=resource_type, total=total)
        return {"resourceType": "Bundle", "type": "searchset", "total": total, "entry": entries}

    async def read(self, resource_type: str, resource_id: str) -> RawResource:
        try:
            return copy.deepcopy(self._bucket(resource_type)[resource_id])
        except KeyError:
            raise self._missing(resource_type, resource_id) from None

    async def create(self, resource_type: str, body: Mapping[str, Any]) -> RawResource:
        stored = copy.deepcopy(dict(body))
        stored["resourceType"] = resource_type
        stored["id"] = uuid.uuid4().hex
        stored["meta"] = {"versionId": "1", "lastUpdated": datetime.now(UTC).isoformat()}
        self._bucket(resource_type)[stored["id"]] = stored
        logger.debug("fixture.create", resource_type=resource_type, resource_id=stored["id"])
        return copy.deepcopy(stored)

    async def update(
        self, resource_type: str, resource_id: str, body: Mapping[str, Any]
    ) -> RawResource:
        bucket = self._bucket(resource_type)
        if resource_id not in bucket:
            raise self._missing(resource_type, resource_id)
        previous_version = get_path(bucket[resource_id], "meta.versionId", "0")
        stored = copy.deepcopy(dict(body))
        stored["resourceType"] = resource_type
        stored["id"] = resource_id
        version = int(previous_version) + 1 if str(previous_version).isdigit() else 1
        stored["meta"] = {
            **(stored.get("meta") or {}),
            "versionId": str(version),
            "lastUpdated": datetime.now(UTC).isoformat(),
        }
        bucket[resource_id] = stored
        return copy.deepcopy(stored)

    async def delete(self, resource_type: str, resource_id: str) -> None:
        bucket = self._bucket(resource_type)
        if resource_id not in bucket:
            raise self._missing(resource_type, resource_id)
        del bucket[resource_id]

    # ------------------------------------------------------------------
    # Query evaluation
    # ------------------------------------------------------------------
    def _filter(
        self, resource_type: str, resources: list[RawResource], params: Mapping[str, Any]
    ) -> list[RawResource]:
        spec = self.table.get(resource_type)
        text = self._search_text(spec.search_fields, params)
        status = None
        if spec.status_param and spec.status_param in params:
            status = _first_param(params[spec.status_param])

        kept: list[RawResource] = []
        for resource in resources:
            if status is not None and self._status_token(spec, resource) != status:
                continue
            if text and not self._matches_text(resource_type, resource, spec.search_fields, text):
                continue
            kept.append(resource)
        return kept

    @staticmethod
    def _status_token(spec: ResourceSpec, resource: RawResource) -> str:
        value = resource.get(spec.status_param) if spec.status_param else None
        if value is None:
            return spec.status_absent or ""
        return _token(value)

    def _search_text(self, search_fields: Iterable[str], params: Mapping[str, Any]) -> str | None:
        if "_filter" in params:
            found = _FILTER_TEXT.search(_first_param(params["_filter"]))
            if found:
                return found.group(1).replace('\\"', '"').replace("\\\\", "\\")
        for name in search_fields:
            if name in params and name not in _RESERVED:
                return _first_param(params[name])
        return None

    def _matches_text(
        self,
        resource_type: str,
        resource: RawResource,
        search_fields: Iterable[str],
        text: str,
    ) -> bool:
        needle = text.casefold()
        for name in search_fields:
            for element in _elements(resource_type, name):
                for value in _strings(resource.get(element)):
                    if needle in value.casefold():
                        return True
        return False

    def _sort(
        self, resource_type: str, resources: list[RawResource], sort: str
    ) -> list[RawResource]:
        descending = sort.startswith("-")
        key = sort.lstrip("-")
        path = _SORT_PATHS.get(key) or _PARAM_ELEMENTS.get((resource_type, key)) or _camel(key)

        def sort_key(resource: RawResource) -> str:
            value = get_path(resource, path)
            if value is None:
                return ""
            strings = list(_strings(value))
            return strings[0] if strings else _token(value)

        present = [resource for resource in resources if sort_key(resource)]
        absent = [resource for resource in resources if not sort_key(resource)]
        return sorted(present, key=sort_key, reverse=descending) + absent

    def _included(
        self, resources: list[RawResource], includes: Iterable[str]
    ) -> list[RawResource]:
        seen: set[str] = set()
        found: list[RawResource] = []
        for include in includes:
            parts = str(include).split(":")
            if len(parts) < 2:
                continue
            element = _camel(parts[1])
            wanted = parts[2] if len(parts) > 2 else element[:1].upper() + element[1:]
            for resource in resources:
                targets = resource.get(element)
                if targets is None:
                    # e.g. Appointment:patient resolves through participant actors
                    targets = list(_references(resource, wanted))
                for target in targets if isinstance(targets, list) else [targets]:
                    reference = get_path(target, "reference")
                    if not isinstance(reference, str) or "/" not in reference or reference in seen:
                        continue
                    target_type, target_id = reference.rsplit("/", 1)
                    included = self._bucket(target_type).get(target_id)
                    if included is not None:
                        seen.add(reference)
                        found.append(included)
        return found


__all__ = ["InMemoryResourceStore"]
