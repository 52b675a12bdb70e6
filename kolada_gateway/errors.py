"""Typed error taxonomy for the Kolada gateway.

Every failure that crosses the tool boundary is one of the classes below.
Each carries a machine-readable ``code``, a human-readable ``message`` and,
where it helps the calling agent, a ``suggestion`` for a corrective action.

Usage:
    from kolada_gateway.errors import NotFoundError, ERROR_MESSAGES

    error = ERROR_MESSAGES.kpi_not_found("N99999")
    raise NotFoundError(error.message, suggestion=error.suggestion)
"""

import re
from dataclasses import dataclass
from typing import Any, Sequence


class GatewayError(Exception):
    """Base class for all errors surfaced by the gateway."""

    code: str = "API_ERROR"
    message: str = "Kolada API error"
    suggestion: str | None = None
    details: dict[str, Any] | None = None

    def __init__(
        self,
        message: str | None = None,
        *,
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        if message is not None:
            self.message = message
        if suggestion is not None:
            self.suggestion = suggestion
        if details is not None:
            self.details = details

        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Export as the structured error payload returned to agents."""
        payload: dict[str, Any] = {"error": self.code, "message": self.message}
        if self.suggestion:
            payload["suggestion"] = self.suggestion
        if self.details:
            payload["details"] = self.details
        return payload


class NotFoundError(GatewayError):
    code = "NOT_FOUND"
    message = "Resource not found"


class InvalidInputError(GatewayError):
    code = "INVALID_INPUT"
    message = "Invalid input parameters"


class RateLimitedError(GatewayError):
    code = "RATE_LIMITED"
    message = "Rate limit exceeded"


class NetworkError(GatewayError):
    code = "NETWORK_ERROR"
    message = "Network connection error"


class UpstreamError(GatewayError):
    code = "API_ERROR"
    message = "Kolada API error"


@dataclass(frozen=True)
class ErrorMessage:
    """Message/suggestion pair used to build a GatewayError."""

    message: str
    suggestion: str


class _ErrorMessages:
    """Factories for the messages agents see most often."""

    @staticmethod
    def kpi_not_found(kpi_id: str) -> ErrorMessage:
        return ErrorMessage(
            message=f'KPI with ID "{kpi_id}" not found',
            suggestion=(
                'Use search_kpis to find valid KPI IDs. KPI IDs start with "N" or "U" '
                "followed by 5 digits."
            ),
        )

    @staticmethod
    def group_not_found(group_id: str, group_type: str) -> ErrorMessage:
        return ErrorMessage(
            message=f'{group_type} group with ID "{group_id}" not found',
            suggestion=f"Use get_{group_type.lower()}_groups to find valid group IDs.",
        )

    @staticmethod
    def municipality_not_found(municipality_id: str) -> ErrorMessage:
        return ErrorMessage(
            message=f'Municipality with ID "{municipality_id}" not found',
            suggestion="Use search_municipalities to find valid municipality IDs.",
        )

    @staticmethod
    def ou_not_found(ou_id: str) -> ErrorMessage:
        return ErrorMessage(
            message=f'Organizational unit with ID "{ou_id}" not found',
            suggestion="Use search_organizational_units to find valid OU IDs.",
        )

    @staticmethod
    def invalid_kpi_id(kpi_id: str) -> ErrorMessage:
        return ErrorMessage(
            message=f'Invalid KPI ID format: "{kpi_id}"',
            suggestion=(
                'KPI IDs must start with "N" or "U" followed by exactly 5 digits '
                '(e.g., "N15033").'
            ),
        )

    @staticmethod
    def invalid_municipality_id(municipality_id: str) -> ErrorMessage:
        return ErrorMessage(
            message=f'Invalid municipality ID format: "{municipality_id}"',
            suggestion='Municipality IDs are 4-digit codes (e.g., "0180" for Stockholm).',
        )

    @staticmethod
    def too_many_ids(count: int, maximum: int) -> ErrorMessage:
        return ErrorMessage(
            message=f"Too many IDs provided: {count}. Maximum allowed: {maximum}",
            suggestion=f"Split your request into multiple calls, each with at most {maximum} IDs.",
        )

    @staticmethod
    def rate_limited(attempts: int) -> ErrorMessage:
        return ErrorMessage(
            message=f"API rate limit exceeded after {attempts} attempts",
            suggestion=(
                "The request was retried with backoff. If this persists, reduce request "
                "frequency."
            ),
        )

    @staticmethod
    def network_error(details: str, attempts: int) -> ErrorMessage:
        return ErrorMessage(
            message=f"Network error after {attempts} attempts: {details}",
            suggestion=(
                "Check your internet connection and try again. If the problem persists, "
                "the Kolada API may be temporarily unavailable."
            ),
        )


ERROR_MESSAGES = _ErrorMessages()

KPI_ID_PATTERN = re.compile(r"^[NU]\d{5}$")
MUNICIPALITY_ID_PATTERN = re.compile(r"^\d{4}$")


def validate_kpi_id(kpi_id: str) -> None:
    """Raise InvalidInputError unless kpi_id looks like "N15033" or "U00401"."""
    if not KPI_ID_PATTERN.fullmatch(kpi_id):
        error = ERROR_MESSAGES.invalid_kpi_id(kpi_id)
        raise InvalidInputError(error.message, suggestion=error.suggestion)


def validate_municipality_id(municipality_id: str) -> None:
    """Raise InvalidInputError unless municipality_id is a 4-digit code."""
    if not MUNICIPALITY_ID_PATTERN.fullmatch(municipality_id):
        error = ERROR_MESSAGES.invalid_municipality_id(municipality_id)
        raise InvalidInputError(error.message, suggestion=error.suggestion)


def validate_batch_size(ids: Sequence[str], max_size: int) -> None:
    """Raise InvalidInputError when more than max_size ids are supplied."""
    if len(ids) > max_size:
        error = ERROR_MESSAGES.too_many_ids(len(ids), max_size)
        raise InvalidInputError(error.message, suggestion=error.suggestion)
