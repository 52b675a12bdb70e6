"""Pydantic input models for the gateway tools.

Each tool validates its arguments against one of these models before any
cache or network access. Unknown arguments are rejected.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

Gender = Literal["T", "M", "K"]
MunicipalityTypeFilter = Literal["K", "L", "all"]
Operator = Literal["gt", "lt", "gte", "lte", "eq"]


class ToolInput(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)


class NoInput(ToolInput):
    pass


# KPI tools


class SearchKpisInput(ToolInput):
    query: str | None = Field(
        default=None,
        description="Search term matched against KPI title, description and ID (Swedish terms work best)",
    )
    publication_date: str | None = Field(
        default=None, description="Exact publication date (YYYY-MM-DD)"
    )
    operating_area: str | None = Field(
        default=None, description='Operating area substring (e.g. "Utbildning")'
    )
    limit: int = Field(default=20, ge=1, le=100, description="Max results (default: 20)")


class GetKpiInput(ToolInput):
    kpi_id: str = Field(description='KPI ID (e.g. "N15033")')


class GetKpisInput(ToolInput):
    kpi_ids: list[str] = Field(min_length=1, description="KPI IDs (max 25 per call)")


class GroupQueryInput(ToolInput):
    query: str | None = Field(default=None, description="Search term matched against group titles")


class GetGroupInput(ToolInput):
    group_id: str = Field(min_length=1, description="Group ID")


# Municipality tools


class SearchMunicipalitiesInput(ToolInput):
    query: str | None = Field(default=None, description="Search term matched against names")
    municipality_type: MunicipalityTypeFilter = Field(
        default="all",
        description="K=Kommun (municipality), L=Region (county council), all=both",
    )


class GetMunicipalityInput(ToolInput):
    municipality_id: str = Field(description='4-digit municipality code (e.g. "0180" for Stockholm)')


# Organizational unit tools


class SearchOrganizationalUnitsInput(ToolInput):
    query: str | None = Field(default=None, description="Search term matched against unit names")
    municipality: str | None = Field(default=None, description="4-digit municipality code")
    ou_type: str | None = Field(
        default=None, description='OU type prefix (e.g. "V11" preschools, "V15" primary schools)'
    )
    limit: int = Field(default=20, ge=1, le=100, description="Max results (default: 20)")


class GetOrganizationalUnitInput(ToolInput):
    ou_id: str = Field(min_length=1, description="Organizational unit ID")


# Data tools


class GetKpiDataInput(ToolInput):
    kpi_id: str = Field(description="KPI ID to retrieve data for")
    municipality_id: str | None = Field(default=None, description="Municipality ID (or ou_id)")
    ou_id: str | None = Field(default=None, description="Organizational unit ID (or municipality_id)")
    years: list[int] | None = Field(default=None, description="Years to include (e.g. [2021, 2022])")


class GetMunicipalityKpisInput(ToolInput):
    municipality_id: str = Field(description="4-digit municipality code")
    year: int | None = Field(default=None, ge=1970, le=2100, description="Restrict to one year")


class CompareMunicipalitiesInput(ToolInput):
    kpi_id: str = Field(description="KPI ID to compare")
    municipality_ids: list[str] = Field(
        min_length=2, max_length=10, description="2-10 municipality IDs"
    )
    years: list[int] | None = Field(default=None, description="Years to include")

    @field_validator("municipality_ids")
    @classmethod
    def unique_ids(cls, value: list[str]) -> list[str]:
        duplicates = sorted({m for m in value if value.count(m) > 1})
        if duplicates:
            raise ValueError(f"duplicate municipality ids: {', '.join(duplicates)}")
        return value


class GetKpiTrendInput(ToolInput):
    kpi_id: str = Field(description="KPI ID to analyze")
    municipality_id: str = Field(description="4-digit municipality code")
    start_year: int = Field(ge=1970, le=2100, description="First year of the trend")
    end_year: int | None = Field(
        default=None, ge=1970, le=2100, description="Last year (defaults to the current year)"
    )
    gender: Gender = Field(default="T", description="T=total, M=men, K=women")

    @model_validator(mode="after")
    def check_year_order(self) -> "GetKpiTrendInput":
        if self.end_year is not None and self.end_year < self.start_year:
            raise ValueError("end_year must not be before start_year")
        return self


# Catalog navigation tools


class GetKpisByOperatingAreaInput(ToolInput):
    operating_area: str = Field(min_length=1, description='Operating area (e.g. "Vård och omsorg")')
    limit: int = Field(default=50, ge=1, le=100, description="Max results (default: 50)")


class FilterMunicipalitiesInput(ToolInput):
    kpi_id: str = Field(description="KPI ID to filter on")
    year: int = Field(ge=1970, le=2100, description="Year to analyze")
    threshold: float = Field(description="Threshold value")
    operator: Operator = Field(description="gt (>), lt (<), gte (>=), lte (<=), eq (=)")
    gender: Gender = Field(default="T", description="T=total, M=men, K=women")
    municipality_type: MunicipalityTypeFilter = Field(
        default="K", description="K=Kommun, L=Region, all=both"
    )
