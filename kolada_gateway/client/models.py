"""Pydantic models for Kolada API v3 responses.

Collection endpoints return a page envelope:
    {"values": [...], "count": N, "next_page": "https://...", "previous_page": "https://..."}

By-id endpoints use the same envelope with zero or one value. Record models
allow extra fields so new upstream attributes pass through to agents.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class PageEnvelope(BaseModel):
    """One page of results from a Kolada endpoint.

    Attributes:
        values: Records on this page, in server order
        count: Number of records reported by the server
        next_page: Absolute URL of the following page, if any
        previous_page: Absolute URL of the preceding page, if any
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    values: list[dict[str, Any]] = Field(default_factory=list)
    count: int = 0
    next_page: str | None = None
    previous_page: str | None = None

    @classmethod
    def empty(cls) -> "PageEnvelope":
        return cls(values=[], count=0)


class KoladaRecord(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    title: str = ""


class KPI(KoladaRecord):
    """Key performance indicator metadata from /kpi."""

    description: str | None = None
    operating_area: str | None = None
    prel_publication_date: str | None = None
    publication_date: str | None = None
    ou_publication_date: str | None = None
    is_divided_by_gender: bool = False
    has_ou_data: bool = False
    municipality_type: str | None = None
    auspices: str | None = None
    publ_period: str | None = None


class Municipality(KoladaRecord):
    """Municipality (K) or region/county council (L) from /municipality."""

    type: Literal["K", "L"] | None = None


class KoladaGroup(KoladaRecord):
    """KPI group or municipality group.

    Members are lists of ``{"member_id": ..., "member_title": ...}`` objects
    in v3; older payloads used plain id strings, so both shapes are accepted.
    """

    description: str | None = None
    members: list[Any] = Field(default_factory=list)


class OrganizationalUnit(KoladaRecord):
    """School, care facility or other unit from /ou."""

    municipality: str | None = None
    ou_type: str | None = None


class DataPoint(BaseModel):
    """One value of a KPI for a period, optionally split by gender."""

    model_config = ConfigDict(extra="allow")

    gender: Literal["T", "M", "K"] | None = None
    value: float | None = None
    status: str | None = None
    count: int | None = None


class KPIData(BaseModel):
    """KPI values for one municipality or OU and one period from /data or /oudata."""

    model_config = ConfigDict(extra="allow")

    kpi: str
    period: int | None = None
    municipality: str | None = None
    ou: str | None = None
    values: list[DataPoint] = Field(default_factory=list)
