import json

import httpx
import pytest

from Telehealth_Gateway.config.settings import DataMode, GatewaySettings, ModeSettings, StoreSettings
from Telehealth_Gateway.gateway import ResourceGateway
from Telehealth_Gateway.models import FilterIntent
from Telehealth_Gateway.transport import HttpResourceStore, InMemoryResourceStore
from Telehealth_Gateway.utils.errors import ResourceNotFoundError, UnknownResourceTypeError
from tests.conftest import fhir_json

FIXTURES = {
    "ChargeItem": [
        {
            "id": "d1",
            "status": "billable",
            "code": {"text": "Senior", "coding": [{"code": "SEN"}]},
            "extension": [{"url": "discount-percentage", "valueDecimal": 15}],
        },
        {"id": "d2", "status": "not-billable", "code": {"text": "Student"}},
    ],
}


@pytest.fixture
def gateway():
    return ResourceGateway.from_settings(GatewaySettings(), fixtures=FIXTURES)


def test_fixture_only_without_base_url(gateway):
    assert isinstance(gateway.store_for("discounts"), InMemoryResourceStore)


def test_live_dataset_without_live_store_is_a_configuration_error():
    settings = GatewaySettings(mode=ModeSettings(overrides={"audit": DataMode.LIVE}))
    gateway = ResourceGateway.from_settings(settings)
    with pytest.raises(RuntimeError):
        gateway.store_for("audit")


@pytest.mark.asyncio
async def test_list_maps_view_models(gateway):
    discounts = await gateway.list("ChargeItem", FilterIntent(statusFilter="active"))
    assert [(item.id, item.name, item.value, item.is_active) for item in discounts] == [
        ("d1", "Senior", 15.0, True)
    ]


@pytest.mark.asyncio
async def test_unknown_resource_type(gateway):
    with pytest.raises(UnknownResourceTypeError):
        await gateway.list("Spaceship")


@pytest.mark.asyncio
async def test_create_update_remove(gateway):
    mapper = gateway.mapper_for("ChargeItem")
    created = await gateway.create(mapper.blank().model_copy(update={"name": "Veteran", "value": 20.0}))
    assert created.id
    assert created.value == 20.0

    updated = await gateway.update(created.model_copy(update={"is_active": False}))
    assert updated.is_active is False
    assert updated.name == "Veteran"

    await gateway.remove("ChargeItem", created.id)
    with pytest.raises(ResourceNotFoundError):
        await gateway.read("ChargeItem", created.id)


@pytest.mark.asyncio
async def test_update_requires_id(gateway):
    mapper = gateway.mapper_for("ChargeItem")
    with pytest.raises(ValueError):
        await gateway.update(mapper.blank())


@pytest.mark.asyncio
async def test_duplicate_creates_marked_copy(gateway):
    original = await gateway.read("ChargeItem", "d1")
    copy = await gateway.duplicate(original)
    assert copy.id != "d1"
    assert copy.name == "Senior (Copy)"
    assert copy.code == "SEN_COPY"
    assert copy.value == 15.0
    assert (await gateway.read("ChargeItem", "d1")).name == "Senior"


@pytest.mark.asyncio
async def test_collections_are_cached_per_dataset(gateway):
    first = gateway.collection("ChargeItem", dataset_key="discounts")
    assert gateway.collection("ChargeItem", dataset_key="discounts") is first
    assert gateway.collection("ChargeItem") is not first
    await first.search()
    assert [item.id for item in first.items] == ["d1", "d2"]


@pytest.mark.asyncio
async def test_fixture_capabilities(gateway):
    statement = await gateway.capabilities("discounts")
    assert statement["resourceType"] == "CapabilityStatement"


@pytest.mark.asyncio
async def test_live_mode_routes_through_http_store():
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        if request.method == "GET":
            return fhir_json(
                {
                    "resourceType": "Bundle",
                    "entry": [
                        {"resource": {"resourceType": "Coverage", "id": "c1", "beneficiary": {"reference": "Patient/p1"}}},
                        {"resource": {"resourceType": "Patient", "id": "p1", "name": [{"text": "Sam Smith"}]}},
                    ],
                }
            )
        body = json.loads(request.content)
        return fhir_json({**body, "id": "c1"})

    settings = GatewaySettings(store=StoreSettings(base_url="https://fhir.test/R4"))
    gateway = ResourceGateway.from_settings(settings, transport=httpx.MockTransport(handler))
    assert isinstance(gateway.store_for("coverage"), HttpResourceStore)

    coverages = await gateway.list("Coverage", FilterIntent(statusFilter="all"))
    assert [(item.id, item.beneficiary_name) for item in coverages] == [("c1", "Sam Smith")]
    assert requests[0].url.params.get_list("_include") == ["Coverage:beneficiary", "Coverage:payor"]

    updated = await gateway.update(coverages[0].model_copy(update={"copay": 30.0}))
    assert updated.copay == 30.0
    sent = json.loads(requests[-1].content)
    assert sent["beneficiary"] == {"reference": "Patient/p1"}
    assert "display" not in sent["beneficiary"]
    await gateway.aclose()


@pytest.mark.asyncio
async def test_package_level_search_by_text():
    from Telehealth_Gateway import FilterIntent as PublicFilterIntent
    from Telehealth_Gateway import ResourceGateway as PublicGateway

    tasks = {"Task": [{"id": "t1", "code": {"text": "Follow-up call"}}, {"id": "t2", "code": {"text": "Refill"}}]}
    gateway = PublicGateway.from_settings(GatewaySettings(), fixtures=tasks)
    items = await gateway.list("Task", PublicFilterIntent(searchText="follow"))
    assert [item.id for item in items] == ["t1"]
    assert items[0].title == "Follow-up call"
