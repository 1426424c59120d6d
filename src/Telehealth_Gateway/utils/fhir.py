"""Helpers for reading loosely-typed FHIR resources.

Every helper is a total function: absent, ``None`` or wrongly-shaped input
yields the documented fallback instead of raising.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

__all__ = [
    "codeable_display",
    "delete_path",
    "first",
    "format_address",
    "format_human_name",
    "get_path",
    "reference_id",
    "resolve_chain",
    "set_path",
    "telecom_value",
]

_MISSING = object()


def _step(node: Any, key: str) -> Any:
    if isinstance(node, Mapping):
        return node.get(key, _MISSING)
    if isinstance(node, Sequence) and not isinstance(node, (str, bytes)) and key.isdigit():
        index = int(key)
        return node[index] if index < len(node) else _MISSING
    return _MISSING


def get_path(resource: Mapping[str, Any] | None, path: str, default: Any = None) -> Any:
    """Return the value at a dotted ``path`` such as ``code.coding.0.display``.

    Numeric segments index into lists. Empty strings and empty containers
    count as absent so priority chains skip them.
    """
    node: Any = resource
    for key in path.split("."):
        node = _step(node, key)
        if node is _MISSING or node is None:
            return default
    if node == "" or node == [] or node == {}:
        return default
    return node


def resolve_chain(resource: Mapping[str, Any] | None, paths: Sequence[str], default: Any) -> Any:
    """Return the first present value along ``paths``, else ``default``."""
    for path in paths:
        value = get_path(resource, path)
        if value is not None:
            return value
    return default


def set_path(resource: dict[str, Any], path: str, value: Any) -> dict[str, Any]:
    """Assign ``value`` at a dotted ``path``, creating containers on the way.

    Existing sibling keys along the path are left untouched.
    """
    keys = path.split(".")
    node: Any = resource
    for position, key in enumerate(keys[:-1]):
        upcoming = keys[position + 1]
        if isinstance(node, list):
            index = int(key)
            while len(node) <= index:
                node.append([] if upcoming.isdigit() else {})
            node = node[index]
            continue
        child = node.get(key)
        if not isinstance(child, (dict, list)):
            child = [] if upcoming.isdigit() else {}
            node[key] = child
        node = child
    last = keys[-1]
    if isinstance(node, list):
        index = int(last)
        while len(node) <= index:
            node.append(None)
        node[index] = value
    else:
        node[last] = value
    return resource


def delete_path(resource: dict[str, Any], path: str) -> dict[str, Any]:
    """Remove the value at a dotted ``path`` if present; missing paths are ignored."""
    keys = path.split(".")
    node: Any = resource
    for key in keys[:-1]:
        node = _step(node, key)
        if node is _MISSING or node is None:
            return resource
    last = keys[-1]
    if isinstance(node, dict):
        node.pop(last, None)
    elif isinstance(node, list) and last.isdigit() and int(last) < len(node):
        del node[int(last)]
    return resource


def first(values: Any) -> Any:
    """Return the first element of a list, or ``None``."""
    if isinstance(values, list) and values:
        return values[0]
    return None


def reference_id(reference: Mapping[str, Any] | None) -> str:
    """Return the id part of ``{"reference": "Type/id"}`` or ``""``."""
    target = get_path(reference, "reference")
    if not isinstance(target, str) or "/" not in target:
        return ""
    return target.rsplit("/", 1)[1]


def codeable_display(concept: Mapping[str, Any] | None, default: str) -> str:
    """Display a CodeableConcept: ``text``, then first ``display``, then first ``code``."""
    return resolve_chain(concept, ("text", "coding.0.display", "coding.0.code"), default)


def format_human_name(names: Any, default: str) -> str:
    """Display a HumanName list.

    Priority: the ``official`` entry (else the first), its ``text``, then
    prefix/given/family/suffix joined by spaces, then ``default``.
    """
    if not isinstance(names, list) or not names:
        return default
    entries = [entry for entry in names if isinstance(entry, Mapping)]
    if not entries:
        return default
    primary = next((entry for entry in entries if entry.get("use") == "official"), entries[0])
    if primary.get("text"):
        return str(primary["text"])
    parts: list[str] = []
    parts.extend(primary.get("prefix") or [])
    parts.extend(primary.get("given") or [])
    if primary.get("family"):
        parts.append(primary["family"])
    parts.extend(primary.get("suffix") or [])
    joined = " ".join(str(part) for part in parts if part).strip()
    return joined or default


def format_address(addresses: Any, default: str) -> str:
    """Display an Address list: ``home`` entry (else first), ``text``, then joined parts."""
    if not isinstance(addresses, list) or not addresses:
        return default
    entries = [entry for entry in addresses if isinstance(entry, Mapping)]
    if not entries:
        return default
    primary = next((entry for entry in entries if entry.get("use") == "home"), entries[0])
    if primary.get("text"):
        return str(primary["text"])
    parts: list[str] = list(primary.get("line") or [])
    for key in ("city", "state", "postalCode", "country"):
        if primary.get(key):
            parts.append(primary[key])
    return ", ".join(str(part) for part in parts if part) or default


def telecom_value(telecom: Any, system: str, default: str) -> str:
    """Return the value of the first ContactPoint with ``system``."""
    if not isinstance(telecom, list):
        return default
    for contact in telecom:
        if isinstance(contact, Mapping) and contact.get("system") == system and contact.get("value"):
            return str(contact["value"])
    return default
