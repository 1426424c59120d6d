"""Translate a :class:`FilterIntent` into store query parameters.

The builder is a pure function of the resource table and the intent: it
holds no state between calls and never performs I/O.

Parameter vocabulary:
    - free text: the resource type's search field (``name``, ``code:text``)
      or, when several fields are searchable, one ``_filter`` expression
      joining ``<field> co "<text>"`` clauses with ``or``
    - status: the type's status parameter with the value translated through
      the table (``active`` becomes ``billable`` for charge items)
    - ``_sort``: passed through, a leading ``-`` meaning descending
    - ``_count``: always present, clamped to the configured ceiling
    - ``_include``: repeated parameter, passed through verbatim
"""

from __future__ import annotations

from Telehealth_Gateway.config.resources import ResourceSpec, ResourceTable
from Telehealth_Gateway.models.intent import FilterIntent

ParamValue = str | list[str]
ParamMap = dict[str, ParamValue]

DEFAULT_MAX_PAGE_SIZE = 50


def _filter_field(search_field: str) -> str:
    # _filter addresses element paths, not search-parameter modifiers
    return search_field.split(":", 1)[0]


def _quote(text: str) -> str:
    escaped = text.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


class QueryBuilder:
    """Builds per-resource-type query parameter maps."""

    def __init__(self, table: ResourceTable, max_page_size: int = DEFAULT_MAX_PAGE_SIZE) -> None:
        if max_page_size < 1:
            raise ValueError("max_page_size must be at least 1")
        self.table = table
        self.max_page_size = max_page_size

    def build(self, resource_type: str, intent: FilterIntent | None = None) -> ParamMap:
        """Return the query parameters for ``intent`` against ``resource_type``.

        Raises:
            UnknownResourceTypeError: If the type has no table entry.
        """
        spec = self.table.get(resource_type)
        intent = intent or FilterIntent()
        params: ParamMap = {}

        if intent.search_text:
            params.update(self._text_params(spec, intent.search_text))

        if intent.wants_status and spec.status_param:
            status = intent.status_filter or ""
            params[spec.status_param] = spec.status_values.get(status, status)

        sort = intent.sort or spec.default_sort
        if sort:
            params["_sort"] = sort

        params["_count"] = str(self._page_size(intent.page_size))

        includes = spec.default_include if intent.include is None else intent.include
        if includes:
            params["_include"] = list(includes)
        return params

    def _page_size(self, requested: int | None) -> int:
        if requested is None:
            return self.max_page_size
        return min(requested, self.max_page_size)

    def _text_params(self, spec: ResourceSpec, text: str) -> ParamMap:
        fields = spec.search_fields
        if not fields:
            return {}
        if len(fields) == 1:
            return {fields[0]: text}
        clauses = [f"{_filter_field(name)} co {_quote(text)}" for name in fields]
        return {"_filter": " or ".join(clauses)}


__all__ = ["DEFAULT_MAX_PAGE_SIZE", "ParamMap", "ParamValue", "QueryBuilder"]
