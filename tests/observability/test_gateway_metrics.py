import httpx
import pytest
from prometheus_client import REGISTRY

from Telehealth_Gateway.observability.metrics import (
    record_rollback,
    record_stale_response,
)
from Telehealth_Gateway.utils.errors import ResourceNotFoundError
from tests.conftest import fhir_json


def _sample(name: str, **labels: str) -> float:
    return REGISTRY.get_sample_value(name, labels) or 0.0


@pytest.mark.asyncio
async def test_store_calls_are_counted_by_outcome(http_store):
    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "DELETE":
            return httpx.Response(404)
        return fhir_json({"resourceType": "Bundle", "entry": []})

    labels = {"resource_type": "Task"}
    ok_before = _sample("gateway_store_requests_total", operation="search", outcome="ok", **labels)
    missing_before = _sample(
        "gateway_store_requests_total", operation="delete", outcome="not-found", **labels
    )
    timed_before = _sample(
        "gateway_store_request_duration_seconds_count", operation="search", **labels
    )

    store = http_store(handler)
    await store.search("Task", {})
    with pytest.raises(ResourceNotFoundError):
        await store.delete("Task", "t9")
    await store.aclose()

    assert _sample("gateway_store_requests_total", operation="search", outcome="ok", **labels) == ok_before + 1
    assert (
        _sample("gateway_store_requests_total", operation="delete", outcome="not-found", **labels)
        == missing_before + 1
    )
    assert (
        _sample("gateway_store_request_duration_seconds_count", operation="search", **labels)
        == timed_before + 1
    )


def test_rollback_and_stale_counters():
    rollbacks = _sample("gateway_optimistic_rollbacks_total", resource_type="Device", operation="update")
    stale = _sample("gateway_stale_responses_total", resource_type="Device")
    record_rollback("Device", "update")
    record_stale_response("Device")
    record_stale_response("Device")
    assert _sample("gateway_optimistic_rollbacks_total", resource_type="Device", operation="update") == rollbacks + 1
    assert _sample("gateway_stale_responses_total", resource_type="Device") == stale + 2
