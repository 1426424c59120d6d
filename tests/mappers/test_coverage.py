import pytest

from Telehealth_Gateway.mappers import CoverageMapper
from Telehealth_Gateway.mappers.coverage import COPAY_TYPE_SYSTEM


@pytest.fixture
def mapper(registry) -> CoverageMapper:
    return registry.get("Coverage")


def test_sparse_coverage_uses_defaults(mapper):
    summary = mapper.to_view_model({"resourceType": "Coverage", "id": "c1"})
    assert summary.payor_name == "Unknown Payor"
    assert summary.beneficiary_name == "Unknown Patient"
    assert summary.type == "Not specified"
    assert summary.copay == 25
    assert summary.deductible == 1000


def test_costs_prefer_cost_to_beneficiary(mapper):
    raw = {
        "resourceType": "Coverage",
        "costToBeneficiary": [
            {"type": {"coding": [{"code": "copay"}]}, "valueMoney": {"value": 30, "currency": "USD"}},
            {"type": {"text": "Deductible"}, "valueMoney": {"value": 500}},
        ],
        "extension": [{"url": "coverage-copay", "valueDecimal": 99}],
    }
    summary = mapper.to_view_model(raw)
    assert summary.copay == 30
    assert summary.deductible == 500


def test_costs_fall_back_to_extensions(mapper):
    raw = {"extension": [{"url": "http://x/coverage-deductible", "valueDecimal": 750}]}
    assert mapper.to_view_model(raw).deductible == 750


def test_beneficiary_name_from_included_patient(mapper):
    raw = {"resourceType": "Coverage", "beneficiary": {"reference": "Patient/p1"}}
    included = {"Patient/p1": {"resourceType": "Patient", "id": "p1", "name": [{"given": ["Ada"], "family": "Lovelace"}]}}
    summary = mapper.to_view_model(raw, included)
    assert summary.beneficiary_name == "Ada Lovelace"
    assert summary.beneficiary_id == "p1"


def test_beneficiary_display_wins_over_included(mapper):
    raw = {"beneficiary": {"reference": "Patient/p1", "display": "Shown Name"}}
    included = {"Patient/p1": {"name": [{"text": "Other"}]}}
    assert mapper.to_view_model(raw, included).beneficiary_name == "Shown Name"


def test_editing_copay_appends_cost_entry(mapper):
    raw = {"resourceType": "Coverage", "id": "c1", "status": "active"}
    summary = mapper.to_view_model(raw).model_copy(update={"copay": 40.0})
    written = mapper.to_raw(summary, existing=raw)
    assert written["costToBeneficiary"] == [
        {
            "type": {"coding": [{"system": COPAY_TYPE_SYSTEM, "code": "copay"}], "text": "Copay"},
            "valueMoney": {"value": 40.0, "currency": "USD"},
        }
    ]
    assert "deductible" not in str(written)


def test_editing_copay_updates_existing_entry_in_place(mapper):
    raw = {
        "costToBeneficiary": [
            {"type": {"coding": [{"code": "copay"}]}, "valueMoney": {"value": 30, "currency": "EUR"}}
        ]
    }
    summary = mapper.to_view_model(raw).model_copy(update={"copay": 35.0})
    written = mapper.to_raw(summary, existing=raw)
    assert written["costToBeneficiary"] == [
        {"type": {"coding": [{"code": "copay"}]}, "valueMoney": {"value": 35.0, "currency": "EUR"}}
    ]


def test_period_and_subscriber_writes(mapper):
    raw = {"resourceType": "Coverage", "id": "c1", "period": {"start": "2024-01-01"}}
    summary = mapper.to_view_model(raw).model_copy(
        update={"period_end": "2024-12-31", "subscriber_id": "SUB-1", "period_start": ""}
    )
    written = mapper.to_raw(summary, existing=raw)
    assert written["period"] == {"end": "2024-12-31"}
    assert written["subscriberId"] == "SUB-1"


def test_duplicate_is_unmarked(mapper):
    raw = {"resourceType": "Coverage", "id": "c1", "meta": {"versionId": "1"}, "status": "active"}
    assert mapper.mark_copy(raw) == {"resourceType": "Coverage", "status": "active"}
