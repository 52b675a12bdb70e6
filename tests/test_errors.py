"""Tests for the error taxonomy, message factories and input validators."""

import pytest

from kolada_gateway.errors import (
    ERROR_MESSAGES,
    GatewayError,
    InvalidInputError,
    NetworkError,
    NotFoundError,
    RateLimitedError,
    UpstreamError,
    validate_batch_size,
    validate_kpi_id,
    validate_municipality_id,
)


@pytest.mark.parametrize(
    "error_class,code",
    [
        (NotFoundError, "NOT_FOUND"),
        (InvalidInputError, "INVALID_INPUT"),
        (RateLimitedError, "RATE_LIMITED"),
        (NetworkError, "NETWORK_ERROR"),
        (UpstreamError, "API_ERROR"),
    ],
)
def test_codes(error_class, code):
    error = error_class()
    assert isinstance(error, GatewayError)
    assert error.code == code
    assert error.to_dict()["error"] == code
    assert error.to_dict()["message"] == error.message


def test_to_dict_omits_empty_fields():
    assert NotFoundError("gone").to_dict() == {"error": "NOT_FOUND", "message": "gone"}


def test_to_dict_includes_suggestion_and_details():
    error = RateLimitedError("slow down", suggestion="wait", details={"attempts": 4})
    assert error.to_dict() == {
        "error": "RATE_LIMITED",
        "message": "slow down",
        "suggestion": "wait",
        "details": {"attempts": 4},
    }
    assert str(error) == "slow down"


def test_message_factories():
    assert "N99999" in ERROR_MESSAGES.kpi_not_found("N99999").message
    assert "get_municipality_groups" in ERROR_MESSAGES.group_not_found("G1", "Municipality").suggestion
    assert "4" in ERROR_MESSAGES.rate_limited(4).message
    assert "30" in ERROR_MESSAGES.too_many_ids(30, 25).message


@pytest.mark.parametrize("kpi_id", ["N15033", "U00401", "N00000"])
def test_valid_kpi_ids(kpi_id):
    validate_kpi_id(kpi_id)


@pytest.mark.parametrize("kpi_id", ["", "n15033", "X15033", "N1503", "N150333", "N15O33"])
def test_invalid_kpi_ids(kpi_id):
    with pytest.raises(InvalidInputError) as exc_info:
        validate_kpi_id(kpi_id)
    assert exc_info.value.suggestion


@pytest.mark.parametrize("municipality_id", ["0180", "1480", "0001"])
def test_valid_municipality_ids(municipality_id):
    validate_municipality_id(municipality_id)


@pytest.mark.parametrize("municipality_id", ["180", "01800", "abcd", ""])
def test_invalid_municipality_ids(municipality_id):
    with pytest.raises(InvalidInputError):
        validate_municipality_id(municipality_id)


def test_batch_size_limit():
    validate_batch_size(["N00001"] * 25, 25)
    with pytest.raises(InvalidInputError, match="26"):
        validate_batch_size(["N00001"] * 26, 25)
