import pytest

from Telehealth_Gateway.codec import ExtensionCodec
from Telehealth_Gateway.config.resources import ExtensionKey


def _charge_item(*extensions: dict) -> dict:
    return {"resourceType": "ChargeItem", "id": "1", "extension": list(extensions)}


def test_read_missing_token_returns_default():
    codec = ExtensionCodec()
    resource = _charge_item({"url": "discount-type", "valueString": "percentage"})
    assert codec.read(resource, "percentage", "number", 10) == 10


def test_read_without_extension_array_returns_default():
    codec = ExtensionCodec()
    assert codec.read({"resourceType": "ChargeItem"}, "percentage", "number", 10) == 10
    assert codec.read(None, "percentage", "number", 10) == 10


def test_read_matches_url_substring():
    codec = ExtensionCodec()
    resource = _charge_item(
        {"url": "http://example.org/fhir/discount-percentage", "valueDecimal": 15}
    )
    assert codec.read(resource, "percentage", "number", 10) == 15


def test_substring_match_is_case_sensitive():
    codec = ExtensionCodec()
    resource = _charge_item({"url": "discount-PERCENTAGE", "valueDecimal": 15})
    assert codec.read(resource, "percentage", "number", 10) == 10


def test_read_wrong_value_kind_returns_default():
    codec = ExtensionCodec()
    resource = _charge_item({"url": "discount-percentage", "valueString": "fifteen"})
    assert codec.read(resource, "percentage", "number", 10) == 10


def test_read_boolean_is_not_a_number():
    codec = ExtensionCodec()
    resource = _charge_item({"url": "discount-percentage", "valueBoolean": True})
    assert codec.read(resource, "percentage", "number", 10) == 10


def test_zero_is_a_real_value():
    codec = ExtensionCodec()
    resource = _charge_item({"url": "discount-percentage", "valueDecimal": 0})
    assert codec.read(resource, "percentage", "number", 10) == 0


def test_first_match_wins():
    codec = ExtensionCodec()
    resource = _charge_item(
        {"url": "a-percentage", "valueDecimal": 5},
        {"url": "b-percentage", "valueDecimal": 7},
    )
    assert codec.read(resource, "percentage", "number", 10) == 5
    assert codec.read(resource, "percentage", "number", 10) == 5


def test_integer_value_fields_are_numbers():
    codec = ExtensionCodec()
    resource = _charge_item({"url": "visit-count", "valueInteger": 3})
    assert codec.read(resource, "count", "number", 0) == 3


def test_write_twice_leaves_single_entry_with_latest_value():
    codec = ExtensionCodec()
    resource = _charge_item({"url": "discount-type", "valueString": "percentage"})
    once = codec.write(resource, "percentage", 12.5, url="discount-percentage")
    twice = codec.write(once, "percentage", 20.0, url="discount-percentage")

    matching = [entry for entry in twice["extension"] if "percentage" in entry["url"]]
    assert matching == [{"url": "discount-percentage", "valueDecimal": 20.0}]
    assert {"url": "discount-type", "valueString": "percentage"} in twice["extension"]


def test_write_replaces_in_place_and_keeps_url():
    codec = ExtensionCodec()
    resource = _charge_item(
        {"url": "http://x/discount-percentage", "valueDecimal": 5},
        {"url": "discount-type", "valueString": "percentage"},
    )
    updated = codec.write(resource, "percentage", 9.0)
    assert updated["extension"][0] == {"url": "http://x/discount-percentage", "valueDecimal": 9.0}
    assert len(updated["extension"]) == 2


def test_write_collapses_duplicate_matches():
    codec = ExtensionCodec()
    resource = _charge_item(
        {"url": "a-percentage", "valueDecimal": 5},
        {"url": "b-percentage", "valueDecimal": 7},
    )
    updated = codec.write(resource, "percentage", 8.0)
    assert updated["extension"] == [{"url": "a-percentage", "valueDecimal": 8.0}]


def test_write_does_not_mutate_input():
    codec = ExtensionCodec()
    resource = _charge_item({"url": "discount-percentage", "valueDecimal": 5})
    codec.write(resource, "percentage", 9.0)
    assert resource["extension"] == [{"url": "discount-percentage", "valueDecimal": 5}]


def test_write_key_pins_numbers_to_decimal():
    codec = ExtensionCodec()
    key = ExtensionKey(token="amount", url="discount-amount", kind="number", default=0)
    updated = codec.write_key({"resourceType": "ChargeItem"}, key, 30)
    assert updated["extension"] == [{"url": "discount-amount", "valueDecimal": 30}]
    assert codec.read_key(updated, key) == 30


def test_exact_mode_compares_whole_url():
    codec = ExtensionCodec("exact")
    resource = _charge_item({"url": "discount-percentage", "valueDecimal": 15})
    assert codec.read(resource, "percentage", "number", 10) == 10
    assert codec.read(resource, "discount-percentage", "number", 10) == 15


def test_exact_mode_keys_address_entries_by_url():
    codec = ExtensionCodec("exact")
    key = ExtensionKey(token="percentage", url="discount-percentage", kind="number", default=10)
    resource = _charge_item({"url": "discount-percentage", "valueDecimal": 15})
    assert codec.read_key(resource, key) == 15


def test_remove_drops_every_match():
    codec = ExtensionCodec()
    resource = _charge_item(
        {"url": "a-percentage", "valueDecimal": 5},
        {"url": "discount-type", "valueString": "fixed_amount"},
    )
    updated = codec.remove(resource, "percentage")
    assert updated["extension"] == [{"url": "discount-type", "valueString": "fixed_amount"}]
    assert "extension" not in codec.remove(updated, "type")


def test_remove_key_in_exact_mode_uses_url():
    codec = ExtensionCodec("exact")
    key = ExtensionKey(token="meeting-link", url="http://example.org/meeting-link", kind="string")
    resource = {
        "resourceType": "Appointment",
        "extension": [
            {"url": "http://example.org/meeting-link", "valueString": "https://meet.example/a"},
            {"url": "meeting-link-note", "valueString": "keep"},
        ],
    }
    assert codec.remove_key(resource, key)["extension"] == [{"url": "meeting-link-note", "valueString": "keep"}]


def test_unknown_match_mode_rejected():
    with pytest.raises(ValueError):
        ExtensionCodec("prefix")  # type: ignore[arg-type]
