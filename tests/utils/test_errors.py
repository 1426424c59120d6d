import pytest

from Telehealth_Gateway.utils.errors import (
    FoundationError,
    GatewayError,
    MalformedResponseError,
    NetworkError,
    ProblemDetail,
    ResourceNotFoundError,
    StoreError,
    UnknownResourceTypeError,
    reason_for,
)


def test_problem_detail_dumps_fields():
    problem = ProblemDetail(title="Error", status=400, detail="Bad")
    dumped = problem.model_dump()
    assert dumped["title"] == "Error"
    assert dumped["detail"] == "Bad"


def test_foundation_error_wraps_problem():
    error = FoundationError("Oops", status=404)
    assert error.problem.status == 404


@pytest.mark.parametrize(
    ("error", "reason", "status", "retryable"),
    [
        (NetworkError("down"), "network", 503, True),
        (MalformedResponseError("bad body"), "malformed-response", 502, False),
        (ResourceNotFoundError("gone"), "not-found", 404, False),
        (StoreError("rejected"), "store-error", 500, False),
        (UnknownResourceTypeError("what"), "unknown-resource-type", 400, False),
    ],
)
def test_taxonomy(error, reason, status, retryable):
    assert isinstance(error, GatewayError)
    assert error.reason == reason
    assert error.problem.status == status
    assert error.retryable is retryable
    assert reason_for(error) == reason


def test_store_error_can_be_retryable():
    error = StoreError("busy", status=503, retryable=True)
    assert error.retryable is True
    assert error.problem.status == 503


def test_gateway_error_carries_resource_address():
    error = ResourceNotFoundError("gone", resource_type="Task", resource_id="t1")
    assert error.resource_type == "Task"
    assert error.resource_id == "t1"
    assert error.problem.instance == "Task/t1"
    assert error.problem.extra["reason"] == "not-found"


def test_reason_for_foreign_exception():
    assert reason_for(TimeoutError("slow")) == "TimeoutError"
