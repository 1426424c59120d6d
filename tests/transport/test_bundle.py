from Telehealth_Gateway.transport import group_by_type, index_references, unpack


def _bundle(*resources: dict) -> dict:
    return {"resourceType": "Bundle", "entry": [{"resource": resource} for resource in resources]}


def test_unpack_filters_included_resources():
    bundle = {
        "entry": [
            {
                "resource": {
                    "resourceType": "ChargeItem",
                    "id": "1",
                    "extension": [{"url": "...percentage", "valueDecimal": 15}],
                }
            },
            {"resource": {"resourceType": "Patient", "id": "p1"}},
        ]
    }
    result = unpack(bundle, "ChargeItem")
    assert len(result) == 1
    assert result[0]["resourceType"] == "ChargeItem"
    assert result[0]["id"] == "1"
    assert result[0]["extension"] == [{"url": "...percentage", "valueDecimal": 15}]


def test_unpack_preserves_store_order():
    bundle = _bundle(
        {"resourceType": "Task", "id": "3"},
        {"resourceType": "Patient", "id": "p"},
        {"resourceType": "Task", "id": "1"},
        {"resourceType": "Task", "id": "2"},
    )
    assert [item["id"] for item in unpack(bundle, "Task")] == ["3", "1", "2"]


def test_unpack_missing_entry_is_empty():
    assert unpack({"resourceType": "Bundle", "total": 0}, "Task") == []
    assert unpack(None, "Task") == []


def test_unpack_skips_entries_without_resource():
    bundle = {"entry": [{"fullUrl": "urn:x"}, {"resource": None}, "junk"]}
    assert unpack(bundle, "Task") == []


def test_group_by_type():
    bundle = _bundle(
        {"resourceType": "Coverage", "id": "c1"},
        {"resourceType": "Patient", "id": "p1"},
        {"resourceType": "Coverage", "id": "c2"},
    )
    grouped = group_by_type(bundle)
    assert [item["id"] for item in grouped["Coverage"]] == ["c1", "c2"]
    assert [item["id"] for item in grouped["Patient"]] == ["p1"]


def test_index_references_excludes_primary_type():
    bundle = _bundle(
        {"resourceType": "Coverage", "id": "c1"},
        {"resourceType": "Patient", "id": "p1", "name": [{"text": "Ada Lovelace"}]},
        {"resourceType": "Organization", "id": "o1", "name": "Acme Health"},
    )
    index = index_references(bundle, exclude_type="Coverage")
    assert set(index) == {"Patient/p1", "Organization/o1"}
    assert index["Patient/p1"]["name"] == [{"text": "Ada Lovelace"}]
