"""Resource-type-agnostic search intent declared by the page layer."""

from __future__ import annotations

from collections.abc import Sequence

from pydantic import BaseModel, ConfigDict, Field, PositiveInt, field_validator

ALL_STATUSES = "all"


class FilterIntent(BaseModel):
    """What the page wants to see; the query builder decides how to ask for it.

    ``sort`` follows the store convention: a leading ``-`` is descending.
    ``include`` of ``None`` means "use the resource type's default includes";
    an empty sequence means "no includes".
    """

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    search_text: str | None = Field(default=None, alias="searchText")
    status_filter: str | None = Field(default=None, alias="statusFilter")
    sort: str | None = None
    page_size: PositiveInt | None = Field(default=None, alias="pageSize")
    include: Sequence[str] | None = None

    @field_validator("search_text", "status_filter", "sort")
    @classmethod
    def _blank_to_none(cls, value: str | None) -> str | None:
        if value is None:
            return None
        value = value.strip()
        return value or None

    @field_validator("include")
    @classmethod
    def _freeze_include(cls, value: Sequence[str] | None) -> tuple[str, ...] | None:
        if value is None:
            return None
        return tuple(item for item in value if item)

    @property
    def wants_status(self) -> bool:
        return self.status_filter is not None and self.status_filter != ALL_STATUSES


__all__ = ["ALL_STATUSES", "FilterIntent"]
