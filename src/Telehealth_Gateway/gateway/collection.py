"""A page's held list for one resource type.

Searches are tagged with a monotonically increasing sequence number; a
response that arrives after a newer one has been applied is dropped, so
fast typing in a search box can never resurrect an older result. Mutations
go through the collection's :class:`MutationDispatcher`, the only writer of
the held list.
"""

from __future__ import annotations

import itertools
from collections.abc import Sequence
from typing import Any, Generic

import structlog

from Telehealth_Gateway.dispatch.mutations import BulkResult, MutationDispatcher
from Telehealth_Gateway.mappers.base import VM, ResourceMapper
from Telehealth_Gateway.models import FilterIntent, RawResource
from Telehealth_Gateway.observability.metrics import record_stale_response
from Telehealth_Gateway.query.builder import QueryBuilder
from Telehealth_Gateway.transport.base import ResourceStore
from Telehealth_Gateway.transport.bundle import index_references, unpack
from Telehealth_Gateway.utils.logging import page_action

logger = structlog.get_logger(__name__)


class ResourceCollection(Generic[VM]):
    """Held view-models for one resource type plus the search that filled them."""

    def __init__(
        self,
        store: ResourceStore,
        mapper: ResourceMapper[VM],
        builder: QueryBuilder,
    ) -> None:
        self.resource_type = mapper.resource_type
        self.store = store
        self.mapper = mapper
        self.builder = builder
        self.dispatcher: MutationDispatcher[VM] = MutationDispatcher(store, mapper)
        self.included: dict[str, RawResource] = {}
        self.total: int | None = None
        self._sequence = itertools.count(1)
        self._last_applied = 0

    @property
    def items(self) -> tuple[VM, ...]:
        return self.dispatcher.items

    @property
    def last_applied(self) -> int:
        return self._last_applied

    async def search(self, intent: FilterIntent | None = None) -> bool:
        """Run a search and apply it unless a newer one was applied first.

        Returns ``True`` when the response was applied and ``False`` when it
        was discarded as stale. Store errors propagate and leave the held
        list unchanged.
        """
        with page_action("search"):
            return await self._search(intent)

    async def _search(self, intent: FilterIntent | None) -> bool:
        sequence = next(self._sequence)
        params = self.builder.build(self.resource_type, intent)
        bundle = await self.store.search(self.resource_type, params)
        if sequence < self._last_applied:
            record_stale_response(self.resource_type)
            logger.info(
                "collection.stale_response",
                resource_type=self.resource_type,
                sequence=sequence,
                last_applied=self._last_applied,
            )
            return False
        self._last_applied = sequence
        included = index_references(bundle, exclude_type=self.resource_type)
        resources = unpack(bundle, self.resource_type)
        self.included = included
        total = bundle.get("total")
        self.total = total if isinstance(total, int) else len(resources)
        self.dispatcher.replace_all(
            self.mapper.to_view_model(resource, included) for resource in resources
        )
        logger.debug(
            "collection.applied",
            resource_type=self.resource_type,
            sequence=sequence,
            count=len(resources),
        )
        return True

    async def create(self, vm: VM) -> VM:
        with page_action("create"):
            return await self.dispatcher.create_and_append(vm)

    async def update(self, vm: VM) -> VM | None:
        with page_action("update"):
            return await self.dispatcher.update_and_replace(vm)

    async def remove(self, resource_id: str) -> None:
        with page_action("remove"):
            await self.dispatcher.delete_and_remove(resource_id)

    async def duplicate(self, resource_id: str) -> VM:
        with page_action("duplicate"):
            return await self.dispatcher.duplicate(resource_id)

    async def remove_many(self, ids: Sequence[str]) -> BulkResult:
        with page_action("remove_many"):
            return await self.dispatcher.delete_many(ids)

    async def set_status_many(self, ids: Sequence[str], value: Any) -> BulkResult:
        with page_action("set_status_many"):
            return await self.dispatcher.set_status_many(ids, value)


__all__ = ["ResourceCollection"]
