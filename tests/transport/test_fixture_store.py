import pytest

from Telehealth_Gateway.models import FilterIntent
from Telehealth_Gateway.query import QueryBuilder
from Telehealth_Gateway.transport import InMemoryResourceStore, unpack
from Telehealth_Gateway.utils.errors import ResourceNotFoundError


@pytest.fixture
def store(table):
    return InMemoryResourceStore(
        table,
        seed={
            "Practitioner": [
                {"id": "pr1", "active": True, "name": [{"given": ["Grace"], "family": "Hopper"}]},
                {"id": "pr2", "active": False, "name": [{"given": ["Alan"], "family": "Turing"}]},
                {"id": "pr3", "active": True, "name": [{"text": "Ada Lovelace"}]},
            ],
            "Patient": [{"id": "p1", "name": [{"text": "Sam Patient"}]}],
            "Coverage": [
                {"id": "c1", "status": "active", "period": {"start": "2024-01-01"}, "beneficiary": {"reference": "Patient/p1"}},
                {"id": "c2", "status": "cancelled", "period": {"start": "2025-01-01"}},
                {"id": "c3", "status": "active"},
            ],
        },
    )


@pytest.fixture
def builder(table):
    return QueryBuilder(table)


@pytest.mark.asyncio
async def test_free_text_search(store, builder):
    bundle = await store.search("Practitioner", builder.build("Practitioner", FilterIntent(searchText="hop")))
    assert [item["id"] for item in unpack(bundle, "Practitioner")] == ["pr1"]


@pytest.mark.asyncio
async def test_boolean_status_filter(store, builder):
    params = builder.build("Practitioner", FilterIntent(statusFilter="inactive"))
    bundle = await store.search("Practitioner", params)
    assert [item["id"] for item in unpack(bundle, "Practitioner")] == ["pr2"]


@pytest.mark.asyncio
async def test_sort_descending_puts_missing_values_last(store, builder):
    bundle = await store.search("Coverage", builder.build("Coverage", FilterIntent(include=[])))
    assert [item["id"] for item in unpack(bundle, "Coverage")] == ["c2", "c1", "c3"]


@pytest.mark.asyncio
async def test_includes_are_marked_and_not_counted(store, builder):
    bundle = await store.search("Coverage", builder.build("Coverage", FilterIntent(statusFilter="active")))
    assert bundle["total"] == 2
    modes = {entry["resource"]["id"]: entry["search"]["mode"] for entry in bundle["entry"]}
    assert modes == {"c1": "match", "c3": "match", "p1": "include"}


@pytest.mark.asyncio
async def test_count_limits_page_but_not_total(store):
    bundle = await store.search("Practitioner", {"_count": "1"})
    assert bundle["total"] == 3
    assert len(bundle["entry"]) == 1


@pytest.mark.asyncio
async def test_create_assigns_id_and_version(store):
    created = await store.create("Task", {"id": "ignored", "status": "requested"})
    assert created["id"] != "ignored"
    assert created["meta"]["versionId"] == "1"
    assert await store.read("Task", created["id"]) == created


@pytest.mark.asyncio
async def test_update_bumps_version(store):
    created = await store.create("Task", {"status": "requested"})
    updated = await store.update("Task", created["id"], {**created, "status": "completed"})
    assert updated["status"] == "completed"
    assert updated["meta"]["versionId"] == "2"


@pytest.mark.asyncio
async def test_returned_resources_are_copies(store):
    resource = await store.read("Patient", "p1")
    resource["name"] = []
    assert (await store.read("Patient", "p1"))["name"] == [{"text": "Sam Patient"}]


@pytest.mark.asyncio
async def test_missing_ids_raise_not_found(store):
    with pytest.raises(ResourceNotFoundError):
        await store.read("Task", "nope")
    with pytest.raises(ResourceNotFoundError):
        await store.update("Task", "nope", {})
    with pytest.raises(ResourceNotFoundError):
        await store.delete("Task", "nope")


@pytest.mark.asyncio
async def test_delete_removes(store):
    await store.delete("Patient", "p1")
    bundle = await store.search("Patient")
    assert unpack(bundle, "Patient") == []


@pytest.fixture
def mixed_store(table):
    return InMemoryResourceStore(
        table,
        seed={
            "Practitioner": [
                {"id": "pr1", "active": True, "name": [{"text": "Grace Hopper"}]},
                {"id": "pr2", "name": [{"text": "No Flag"}]},
                {"id": "pr3", "active": False, "name": [{"text": "Alan Turing"}]},
            ],
            "Patient": [
                {"id": "p1", "active": True, "name": [{"text": "Sam Smith"}]},
                {"id": "p2", "name": [{"text": "Unflagged Patient"}]},
            ],
            "Appointment": [
                {
                    "id": "a1",
                    "start": "2024-05-01T09:00:00Z",
                    "appointmentType": {"text": "Follow-up"},
                    "participant": [{"actor": {"reference": "Patient/p1"}}, {"actor": {"reference": "Practitioner/pr1"}}],
                },
                {"id": "a2", "start": "2024-06-01T09:00:00Z", "appointmentType": {"text": "Consultation"}},
            ],
            "MedicationRequest": [
                {"id": "mr1", "medicationCodeableConcept": {"text": "Amoxicillin"}},
                {"id": "mr2", "medicationCodeableConcept": {"text": "Ibuprofen"}},
            ],
        },
    )


@pytest.mark.asyncio
async def test_absent_status_follows_table_default(mixed_store, builder, registry):
    active = await mixed_store.search("Practitioner", builder.build("Practitioner", FilterIntent(statusFilter="active")))
    assert [item["id"] for item in unpack(active, "Practitioner")] == ["pr1", "pr2"]
    practitioners = registry.get("Practitioner")
    assert all(practitioners.to_view_model(item).active for item in unpack(active, "Practitioner"))

    inactive = await mixed_store.search("Patient", builder.build("Patient", FilterIntent(statusFilter="inactive")))
    assert [item["id"] for item in unpack(inactive, "Patient")] == ["p2"]
    assert registry.get("Patient").to_view_model(unpack(inactive, "Patient")[0]).active is False


@pytest.mark.asyncio
async def test_appointment_includes_resolve_through_participants(mixed_store, builder):
    bundle = await mixed_store.search("Appointment", builder.build("Appointment", FilterIntent()))
    matches = [item["id"] for item in unpack(bundle, "Appointment")]
    included = {entry["resource"]["id"] for entry in bundle["entry"] if entry["search"]["mode"] == "include"}
    assert matches == ["a2", "a1"]
    assert included == {"p1", "pr1"}


@pytest.mark.asyncio
async def test_text_search_on_renamed_elements(mixed_store, builder):
    bundle = await mixed_store.search("MedicationRequest", builder.build("MedicationRequest", FilterIntent(searchText="amox")))
    assert [item["id"] for item in unpack(bundle, "MedicationRequest")] == ["mr1"]

    bundle = await mixed_store.search("Appointment", builder.build("Appointment", FilterIntent(searchText="follow")))
    assert [item["id"] for item in unpack(bundle, "Appointment")] == ["a1"]
