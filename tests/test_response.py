"""Tests for BatchResponse decoding."""

from klime.core.response import BatchEventError, BatchResponse


def test_missing_fields_use_defaults():
    response = BatchResponse.from_dict({})
    assert response.status == "ok"
    assert response.accepted == 0
    assert response.failed == 0
    assert response.errors is None
    assert response.is_success
    assert not response.is_partial


def test_errors_are_parsed():
    response = BatchResponse.from_dict(
        {
            "status": "partial",
            "accepted": 1,
            "failed": 2,
            "errors": [{"index": 1, "message": "bad", "code": "invalid"}, {}],
        }
    )

    assert response.is_partial
    assert response.errors == [
        BatchEventError(index=1, message="bad", code="invalid"),
        BatchEventError(index=-1, message="", code=""),
    ]


def test_non_list_errors_are_ignored():
    assert BatchResponse.from_dict({"errors": "nope"}).errors is None
