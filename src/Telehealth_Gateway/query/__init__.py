"""Query parameter construction."""

from .builder import DEFAULT_MAX_PAGE_SIZE, ParamMap, ParamValue, QueryBuilder

__all__ = ["DEFAULT_MAX_PAGE_SIZE", "ParamMap", "ParamValue", "QueryBuilder"]
