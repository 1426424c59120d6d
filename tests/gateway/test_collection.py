import asyncio

import pytest

from Telehealth_Gateway.gateway import ResourceCollection
from Telehealth_Gateway.models import FilterIntent
from Telehealth_Gateway.query import QueryBuilder
from Telehealth_Gateway.transport import InMemoryResourceStore
from Telehealth_Gateway.utils.errors import NetworkError
from Telehealth_Gateway.utils.logging import get_correlation_id


class GatedStore(InMemoryResourceStore):
    """Holds a search (keyed by search text) or a delete (keyed by id) back until its gate opens."""

    def __init__(self, table, seed=None) -> None:
        super().__init__(table, seed)
        self.gates: dict[str, asyncio.Event] = {}
        self.delete_gates: dict[str, asyncio.Event] = {}
        self.failing_deletes: set[str] = set()
        self.fail_next = False

    async def search(self, resource_type, params=None):
        text = (params or {}).get("name")
        gate = self.gates.get(text)
        if gate is not None:
            await gate.wait()
        if self.fail_next:
            self.fail_next = False
            raise NetworkError("timeout", resource_type=resource_type)
        return await super().search(resource_type, params)

    async def delete(self, resource_type, resource_id):
        gate = self.delete_gates.get(resource_id)
        if gate is not None:
            await gate.wait()
        if resource_id in self.failing_deletes:
            raise NetworkError("timeout", resource_type=resource_type, resource_id=resource_id)
        return await super().delete(resource_type, resource_id)


@pytest.fixture
def store(table):
    return GatedStore(
        table,
        seed={
            "Practitioner": [
                {"id": "a", "name": [{"text": "Alpha One"}]},
                {"id": "b", "name": [{"text": "Beta Two"}]},
            ],
            "Coverage": [{"id": "c1", "beneficiary": {"reference": "Patient/p1"}}],
            "Patient": [{"id": "p1", "name": [{"text": "Sam Smith"}]}],
        },
    )


@pytest.fixture
def providers(store, registry, table):
    return ResourceCollection(store, registry.get("Practitioner"), QueryBuilder(table))


def _names(collection) -> list[str]:
    return [item.name for item in collection.items]


@pytest.mark.asyncio
async def test_search_fills_held_list(providers):
    assert await providers.search(FilterIntent()) is True
    assert _names(providers) == ["Alpha One", "Beta Two"]
    assert providers.total == 2
    assert providers.last_applied == 1


@pytest.mark.asyncio
async def test_older_response_arriving_late_is_discarded(providers, store):
    store.gates["alpha"] = asyncio.Event()
    first = asyncio.create_task(providers.search(FilterIntent(searchText="alpha")))
    await asyncio.sleep(0)

    assert await providers.search(FilterIntent(searchText="beta")) is True
    store.gates["alpha"].set()

    assert await first is False
    assert _names(providers) == ["Beta Two"]
    assert providers.last_applied == 2


@pytest.mark.asyncio
async def test_in_order_responses_all_apply(providers):
    assert await providers.search(FilterIntent(searchText="alpha")) is True
    assert await providers.search(FilterIntent(searchText="beta")) is True
    assert _names(providers) == ["Beta Two"]


@pytest.mark.asyncio
async def test_failed_search_keeps_held_list(providers, store):
    await providers.search(FilterIntent())
    store.fail_next = True
    with pytest.raises(NetworkError):
        await providers.search(FilterIntent(searchText="beta"))
    assert _names(providers) == ["Alpha One", "Beta Two"]


@pytest.mark.asyncio
async def test_included_resources_feed_display_names(store, registry, table):
    coverage = ResourceCollection(store, registry.get("Coverage"), QueryBuilder(table))
    await coverage.search()
    assert [item.beneficiary_name for item in coverage.items] == ["Sam Smith"]
    assert set(coverage.included) == {"Patient/p1"}


@pytest.mark.asyncio
async def test_mutations_go_through_dispatcher(providers):
    await providers.search(FilterIntent())
    draft = providers.mapper.blank().model_copy(update={"name": "Carol Three"})
    created = await providers.create(draft)
    assert _names(providers) == ["Alpha One", "Beta Two", "Carol Three"]

    await providers.remove("a")
    assert _names(providers) == ["Beta Two", "Carol Three"]

    result = await providers.set_status_many([created.id], "inactive")
    assert result.ok
    assert providers.dispatcher.find(created.id).active is False

    copy = await providers.duplicate("b")
    assert copy.name == "Beta Two (Copy)"

    result = await providers.remove_many(["b", copy.id])
    assert result.succeeded == ["b", copy.id]
    assert _names(providers) == ["Carol Three"]


@pytest.mark.asyncio
async def test_failed_delete_does_not_undo_newer_search(providers, store):
    await providers.search(FilterIntent())
    store.delete_gates["a"] = asyncio.Event()
    store.failing_deletes.add("a")
    removal = asyncio.create_task(providers.remove("a"))
    await asyncio.sleep(0)
    assert _names(providers) == ["Beta Two"]

    assert await providers.search(FilterIntent(searchText="beta")) is True
    store.delete_gates["a"].set()
    with pytest.raises(NetworkError):
        await removal
    assert _names(providers) == ["Beta Two"]


@pytest.mark.asyncio
async def test_failed_delete_without_newer_search_restores(providers, store):
    await providers.search(FilterIntent())
    store.failing_deletes.add("a")
    with pytest.raises(NetworkError):
        await providers.remove("a")
    assert _names(providers) == ["Alpha One", "Beta Two"]


@pytest.mark.asyncio
async def test_each_action_runs_under_its_own_correlation_id(table, registry):
    seen: list[str | None] = []

    class RecordingStore(InMemoryResourceStore):
        async def search(self, resource_type, params=None):
            seen.append(get_correlation_id())
            return await super().search(resource_type, params)

        async def delete(self, resource_type, resource_id):
            seen.append(get_correlation_id())
            return await super().delete(resource_type, resource_id)

    store = RecordingStore(table, seed={"Practitioner": [{"id": "a", "name": [{"text": "Alpha One"}]}]})
    collection = ResourceCollection(store, registry.get("Practitioner"), QueryBuilder(table))
    await collection.search()
    await collection.remove("a")

    assert seen[0].startswith("search-")
    assert seen[1].startswith("remove-")
    assert get_correlation_id() is None
