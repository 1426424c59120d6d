"""Page-facing gateway: ``list``, ``create``, ``update``, ``remove``, ``duplicate``.

Key Responsibilities:
    - Pick the store for a dataset through the :class:`ModeSelector`
    - Run query building, transport, unpacking and mapping for reads
    - Map view-models back to resources for writes
    - Hand out :class:`ResourceCollection` objects for pages that hold a list

Collaborators:
    - Upstream: page layer
    - Downstream: :class:`QueryBuilder`, :class:`ResourceStore`,
      :class:`MapperRegistry`

Example:
    >>> gateway = ResourceGateway.from_settings(load_settings("dev"))
    >>> discounts = await gateway.list("ChargeItem", FilterIntent(statusFilter="active"))
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

import httpx
import structlog

from Telehealth_Gateway.codec.extensions import ExtensionCodec
from Telehealth_Gateway.config.resources import ResourceTable, load_resource_table
from Telehealth_Gateway.config.settings import DataMode, GatewaySettings, get_settings
from Telehealth_Gateway.gateway.collection import ResourceCollection
from Telehealth_Gateway.gateway.mode import ModeSelector
from Telehealth_Gateway.mappers.base import ResourceMapper
from Telehealth_Gateway.mappers.registry import MapperRegistry, default_registry
from Telehealth_Gateway.models import FilterIntent, RawResource, ViewModel
from Telehealth_Gateway.observability import setup_observability
from Telehealth_Gateway.query.builder import QueryBuilder
from Telehealth_Gateway.transport.base import ResourceStore
from Telehealth_Gateway.transport.bundle import index_references, unpack
from Telehealth_Gateway.transport.fixtures import InMemoryResourceStore
from Telehealth_Gateway.transport.http import HttpResourceStore

logger = structlog.get_logger(__name__)


class ResourceGateway:
    """Single entry point the page layer talks to."""

    def __init__(
        self,
        *,
        table: ResourceTable,
        registry: MapperRegistry,
        builder: QueryBuilder,
        stores: Mapping[DataMode, ResourceStore],
        selector: ModeSelector,
    ) -> None:
        self.table = table
        self.registry = registry
        self.builder = builder
        self.selector = selector
        self._stores = dict(stores)
        self._collections: dict[tuple[str, str], ResourceCollection[Any]] = {}

    @classmethod
    def from_settings(
        cls,
        settings: GatewaySettings | None = None,
        *,
        fixtures: Mapping[str, Iterable[Mapping[str, Any]]] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> ResourceGateway:
        """Wire the gateway from settings.

        Args:
            settings: Gateway settings, defaults to :func:`get_settings`.
            fixtures: Seed resources for the fixture store, keyed by type.
            transport: Optional httpx transport override used in tests.
        """
        settings = settings or get_settings()
        setup_observability(settings)
        table = load_resource_table(settings.resource_table_path)
        codec = ExtensionCodec(settings.extensions.match)
        stores: dict[DataMode, ResourceStore] = {
            DataMode.FIXTURE: InMemoryResourceStore(table, seed=fixtures),
        }
        if settings.store.base_url is not None:
            stores[DataMode.LIVE] = HttpResourceStore(settings.store, transport=transport)
        return cls(
            table=table,
            registry=default_registry(table, codec),
            builder=QueryBuilder(table, settings.query.max_page_size),
            stores=stores,
            selector=ModeSelector.from_settings(settings),
        )

    # ------------------------------------------------------------------
    # Routing
    # ------------------------------------------------------------------
    def store_for(self, dataset_key: str) -> ResourceStore:
        mode = self.selector.resolve(dataset_key)
        try:
            return self._stores[mode]
        except KeyError as exc:
            raise RuntimeError(
                f"Dataset '{dataset_key}' resolved to {mode.value} mode but no {mode.value} store is configured"
            ) from exc

    def mapper_for(self, resource_type: str) -> ResourceMapper[Any]:
        return self.registry.get(resource_type)

    def collection(
        self, resource_type: str, *, dataset_key: str | None = None
    ) -> ResourceCollection[Any]:
        """Return the held collection for ``resource_type`` (one per dataset key)."""
        key = (resource_type, dataset_key or resource_type)
        if key not in self._collections:
            self._collections[key] = ResourceCollection(
                self.store_for(key[1]), self.mapper_for(resource_type), self.builder
            )
        return self._collections[key]

    # ------------------------------------------------------------------
    # Page-facing operations
    # ------------------------------------------------------------------
    async def list(
        self,
        resource_type: str,
        intent: FilterIntent | None = None,
        *,
        dataset_key: str | None = None,
    ) -> list[ViewModel]:
        """Search and map; included resources only feed display fallbacks."""
        mapper = self.mapper_for(resource_type)
        params = self.builder.build(resource_type, intent)
        bundle = await self.store_for(dataset_key or resource_type).search(resource_type, params)
        included = index_references(bundle, exclude_type=resource_type)
        return [mapper.to_view_model(raw, included) for raw in unpack(bundle, resource_type)]

    async def read(
        self, resource_type: str, resource_id: str, *, dataset_key: str | None = None
    ) -> ViewModel:
        store = self.store_for(dataset_key or resource_type)
        raw = await store.read(resource_type, resource_id)
        return self.mapper_for(resource_type).to_view_model(raw)

    async def create(self, vm: ViewModel, *, dataset_key: str | None = None) -> ViewModel:
        resource_type = vm.resource_type
        mapper = self.mapper_for(resource_type)
        store = self.store_for(dataset_key or resource_type)
        created = await store.create(resource_type, mapper.to_raw(vm))
        logger.info("gateway.created", resource_type=resource_type, resource_id=created.get("id"))
        return mapper.to_view_model(created)

    async def update(self, vm: ViewModel, *, dataset_key: str | None = None) -> ViewModel:
        """Merge ``vm`` into the resource it was read from and store it."""
        resource_type = vm.resource_type
        if not vm.id:
            raise ValueError(f"Cannot update a {resource_type} without an id")
        mapper = self.mapper_for(resource_type)
        store = self.store_for(dataset_key or resource_type)
        body = mapper.to_raw(vm, existing=vm.raw or None)
        stored = await store.update(resource_type, vm.id, body)
        return mapper.to_view_model(stored)

    async def remove(
        self, resource_type: str, resource_id: str, *, dataset_key: str | None = None
    ) -> None:
        self.mapper_for(resource_type)
        await self.store_for(dataset_key or resource_type).delete(resource_type, resource_id)
        logger.info("gateway.removed", resource_type=resource_type, resource_id=resource_id)

    async def duplicate(self, vm: ViewModel, *, dataset_key: str | None = None) -> ViewModel:
        """Create a marked copy of ``vm``'s resource; ``vm`` itself is not modified."""
        resource_type = vm.resource_type
        mapper = self.mapper_for(resource_type)
        source: RawResource = vm.raw or mapper.to_raw(vm)
        body = mapper.mark_copy(source)
        created = await self.store_for(dataset_key or resource_type).create(resource_type, body)
        return mapper.to_view_model(created)

    async def capabilities(self, dataset_key: str) -> RawResource:
        return await self.store_for(dataset_key).capabilities()

    async def aclose(self) -> None:
        for store in self._stores.values():
            await store.aclose()


__all__ = ["ResourceGateway"]
