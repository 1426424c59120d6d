"""Contracts every registered mapper honours."""

import pytest

from Telehealth_Gateway.mappers import MAPPER_TYPES

SAMPLES = {
    "ChargeItem": {
        "status": "billable",
        "code": {"text": "Senior", "coding": [{"code": "SEN"}]},
        "extension": [
            {"url": "discount-type", "valueString": "percentage"},
            {"url": "discount-percentage", "valueDecimal": 15},
        ],
    },
    "Coverage": {
        "status": "active",
        "payor": [{"display": "Acme Health"}],
        "beneficiary": {"reference": "Patient/p1"},
        "period": {"start": "2024-01-01"},
    },
    "Medication": {"status": "active", "code": {"text": "Ibuprofen"}, "batch": {"lotNumber": "L1"}},
    "Task": {"status": "requested", "intent": "order", "description": "Call back", "for": {"reference": "Patient/p1"}},
    "Practitioner": {
        "active": True,
        "name": [{"given": ["Grace"], "family": "Hopper"}],
        "telecom": [{"system": "phone", "value": "555-0100"}],
    },
    "Patient": {"active": True, "name": [{"text": "Sam Smith"}], "birthDate": "1980-02-03"},
    "DocumentReference": {"status": "current", "description": "Lab report", "content": [{"attachment": {}}]},
    "CodeSystem": {"status": "active", "name": "Flags", "url": "http://x/patient-flags", "concept": []},
    "AuditEvent": {"action": "C", "outcome": "0", "recorded": "2024-03-01T12:00:00Z"},
    "Appointment": {
        "status": "booked",
        "start": "2024-05-01T09:00:00Z",
        "participant": [
            {"actor": {"reference": "Patient/p1", "display": "Sam Smith"}, "status": "accepted"},
            {"actor": {"reference": "Practitioner/d1"}, "status": "accepted"},
        ],
    },
    "Invoice": {"status": "issued", "subject": {"reference": "Patient/p1"}, "totalNet": {"value": 120.5}},
    "Organization": {"active": True, "name": "Corner Pharmacy", "telecom": [{"system": "phone", "value": "555-0199"}]},
    "Communication": {"status": "completed", "payload": [{"contentString": "Results are in"}]},
    "ServiceRequest": {"status": "active", "intent": "order", "code": {"text": "CBC"}, "subject": {"reference": "Patient/p1"}},
    "MedicationRequest": {
        "status": "active",
        "intent": "order",
        "medicationReference": {"reference": "Medication/m1", "display": "Amoxicillin"},
    },
    "Questionnaire": {"status": "active", "title": "Intake", "item": [{"linkId": "1", "text": "Allergies?"}]},
    "QuestionnaireResponse": {"status": "completed", "questionnaire": "Questionnaire/q1", "item": [{"linkId": "1", "answer": [{"valueString": "None"}]}]},
}

STATUS_CHANGES = {
    "ChargeItem": "inactive",
    "Coverage": "cancelled",
    "Medication": "inactive",
    "Task": "completed",
    "Practitioner": "inactive",
    "Patient": "inactive",
    "DocumentReference": "superseded",
    "CodeSystem": "retired",
    "AuditEvent": "failure",
    "Appointment": "cancelled",
    "Invoice": "cancelled",
    "Organization": "inactive",
    "Communication": "entered-in-error",
    "ServiceRequest": "revoked",
    "MedicationRequest": "stopped",
    "Questionnaire": "retired",
    "QuestionnaireResponse": "amended",
}

RESOURCE_TYPES = [mapper_type.resource_type for mapper_type in MAPPER_TYPES]


def _sample(resource_type: str) -> dict:
    return {
        "resourceType": resource_type,
        "id": "x1",
        "meta": {"versionId": "3"},
        "implicitRules": "http://example.org/rules",
        **SAMPLES[resource_type],
    }


def test_every_type_has_a_sample():
    assert set(RESOURCE_TYPES) == set(SAMPLES) == set(STATUS_CHANGES)


@pytest.mark.parametrize("resource_type", RESOURCE_TYPES)
@pytest.mark.parametrize("raw", [None, {}, {"id": "only-id"}, {"extension": "not-a-list", "name": 5}])
def test_sparse_resources_project_without_none(registry, resource_type, raw):
    mapper = registry.get(resource_type)
    view = mapper.to_view_model(raw)
    for name, value in view.model_dump(exclude={"raw"}).items():
        assert value is not None, name


@pytest.mark.parametrize("resource_type", RESOURCE_TYPES)
def test_unchanged_round_trip_is_identity(registry, resource_type):
    mapper = registry.get(resource_type)
    raw = _sample(resource_type)
    assert mapper.to_raw(mapper.to_view_model(raw), existing=raw) == raw


@pytest.mark.parametrize("resource_type", RESOURCE_TYPES)
def test_view_keeps_originating_resource(registry, resource_type):
    mapper = registry.get(resource_type)
    raw = _sample(resource_type)
    view = mapper.to_view_model(raw)
    assert view.id == "x1"
    assert view.raw == raw
    assert view.raw is not raw


@pytest.mark.parametrize("resource_type", RESOURCE_TYPES)
def test_status_change_round_trips_and_keeps_unowned_fields(registry, resource_type):
    mapper = registry.get(resource_type)
    raw = _sample(resource_type)
    changed = mapper.with_status(mapper.to_view_model(raw), STATUS_CHANGES[resource_type])
    written = mapper.to_raw(changed, existing=raw)

    status_field = changed.status_field
    assert getattr(mapper.to_view_model(written), status_field) == getattr(changed, status_field)
    assert written["implicitRules"] == "http://example.org/rules"
    assert written["meta"] == {"versionId": "3"}


@pytest.mark.parametrize("resource_type", RESOURCE_TYPES)
def test_mark_copy_strips_server_metadata(registry, resource_type):
    mapper = registry.get(resource_type)
    duplicate = mapper.mark_copy(_sample(resource_type))
    assert "id" not in duplicate
    assert "meta" not in duplicate
    assert duplicate["resourceType"] == resource_type


@pytest.mark.parametrize("resource_type", RESOURCE_TYPES)
def test_blank_round_trips_to_create_defaults(registry, table, resource_type):
    mapper = registry.get(resource_type)
    raw = mapper.to_raw(mapper.blank())
    assert raw == {"resourceType": resource_type, **table.get(resource_type).create_defaults}


def test_mapper_rejects_other_types_table_entry(table):
    charge_items, coverage = MAPPER_TYPES[0], table.get("Coverage")
    with pytest.raises(ValueError):
        charge_items(coverage)
