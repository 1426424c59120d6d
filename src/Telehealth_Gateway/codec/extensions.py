"""Extension side-channel codec.

FHIR resources carry business values that have no first-class field
(discount percentage, copay, custom type tags) in their ``extension``
array as ``{"url": ..., "valueX": ...}`` entries. Stores already populated
by the back office identify these entries by a token contained in the url
(``discount-percentage`` answers to ``percentage``), so the default lookup
is a case-sensitive substring match; ``exact`` compares whole urls.

Key Responsibilities:
    - Read a typed value for a token with a documented fallback
    - Write a value so that a token is represented by exactly one entry

Side Effects:
    - None; ``write`` returns a new resource and never mutates its input

Thread Safety:
    - Thread-safe: stateless apart from the immutable match mode
"""

from __future__ import annotations

import copy
from collections.abc import Mapping
from decimal import Decimal
from typing import Any, Literal

from Telehealth_Gateway.config.resources import ExtensionKey, ValueKind

MatchMode = Literal["substring", "exact"]

# valueX fields accepted for each requested kind, in lookup order.
_VALUE_FIELDS: Mapping[ValueKind, tuple[str, ...]] = {
    "number": ("valueDecimal", "valueInteger", "valuePositiveInt", "valueUnsignedInt"),
    "string": ("valueString", "valueCode", "valueUri", "valueMarkdown", "valueId"),
    "boolean": ("valueBoolean",),
}


def _coerce(value: Any, kind: ValueKind) -> Any:
    """Return ``value`` as ``kind`` or ``None`` when it is the wrong kind."""
    if kind == "number":
        if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
            return None
        return value
    if kind == "boolean":
        return value if isinstance(value, bool) else None
    return value if isinstance(value, str) else None


def _value_field_for(value: Any) -> str:
    if isinstance(value, bool):
        return "valueBoolean"
    if isinstance(value, int):
        return "valueInteger"
    if isinstance(value, (float, Decimal)):
        return "valueDecimal"
    if isinstance(value, str):
        return "valueString"
    raise TypeError(f"Unsupported extension value type: {type(value).__name__}")


class ExtensionCodec:
    """Reads and writes token-addressed extension values."""

    def __init__(self, match: MatchMode = "substring") -> None:
        if match not in ("substring", "exact"):
            raise ValueError(f"Unknown extension match mode '{match}'")
        self.match = match

    def matches(self, url: Any, token: str) -> bool:
        if not isinstance(url, str):
            return False
        return token in url if self.match == "substring" else url == token

    def find(self, resource: Mapping[str, Any] | None, token: str) -> dict[str, Any] | None:
        """Return the first extension entry whose url answers to ``token``."""
        extensions = (resource or {}).get("extension")
        if not isinstance(extensions, list):
            return None
        for entry in extensions:
            if isinstance(entry, Mapping) and self.matches(entry.get("url"), token):
                return dict(entry)
        return None

    def read(
        self,
        resource: Mapping[str, Any] | None,
        token: str,
        kind: ValueKind,
        default: Any = None,
    ) -> Any:
        """Return the first matching entry's value coerced to ``kind``.

        Falls back to ``default`` when no entry matches or the first match
        carries a value of another kind. Later matches are never consulted.
        """
        entry = self.find(resource, token)
        if entry is None:
            return default
        for field_name in _VALUE_FIELDS[kind]:
            if field_name in entry:
                coerced = _coerce(entry[field_name], kind)
                return default if coerced is None else coerced
        return default

    def write(
        self,
        resource: Mapping[str, Any],
        token: str,
        value: Any,
        *,
        url: str | None = None,
        kind: ValueKind | None = None,
    ) -> dict[str, Any]:
        """Return a copy of ``resource`` with ``token`` set to ``value``.

        The first matching entry is replaced in place (keeping its url) and
        any further matches are dropped, so repeated writes leave exactly one
        entry. Without a match a new entry is appended under ``url`` (or the
        token itself). ``kind`` pins the valueX field (numbers are written as
        ``valueDecimal``); without it the field follows the Python type.
        """
        updated = copy.deepcopy(dict(resource))
        value_field = _VALUE_FIELDS[kind][0] if kind else _value_field_for(value)
        existing = updated.get("extension")
        entries = list(existing) if isinstance(existing, list) else []

        rewritten: list[Any] = []
        replaced = False
        for entry in entries:
            if isinstance(entry, Mapping) and self.matches(entry.get("url"), token):
                if replaced:
                    continue
                rewritten.append({"url": entry["url"], value_field: value})
                replaced = True
            else:
                rewritten.append(entry)
        if not replaced:
            rewritten.append({"url": url or token, value_field: value})
        updated["extension"] = rewritten
        return updated

    def remove(self, resource: Mapping[str, Any], token: str) -> dict[str, Any]:
        """Return a copy of ``resource`` without any entry answering to ``token``."""
        updated = copy.deepcopy(dict(resource))
        existing = updated.get("extension")
        if not isinstance(existing, list):
            return updated
        kept = [
            entry
            for entry in existing
            if not (isinstance(entry, Mapping) and self.matches(entry.get("url"), token))
        ]
        if kept:
            updated["extension"] = kept
        else:
            updated.pop("extension", None)
        return updated

    def _needle(self, key: ExtensionKey) -> str:
        # exact matching addresses an entry by its full url
        return key.token if self.match == "substring" else key.url

    def read_key(self, resource: Mapping[str, Any] | None, key: ExtensionKey) -> Any:
        """Read a value described by a resource-table :class:`ExtensionKey`."""
        return self.read(resource, self._needle(key), key.kind, key.default)

    def write_key(self, resource: Mapping[str, Any], key: ExtensionKey, value: Any) -> dict[str, Any]:
        """Write a value described by a resource-table :class:`ExtensionKey`."""
        return self.write(resource, self._needle(key), value, url=key.url, kind=key.kind)

    def remove_key(self, resource: Mapping[str, Any], key: ExtensionKey) -> dict[str, Any]:
        """Remove the value described by a resource-table :class:`ExtensionKey`."""
        return self.remove(resource, self._needle(key))


__all__ = ["ExtensionCodec", "MatchMode"]
