"""Data tools: KPI values for municipalities and organizational units.

Data responses are cached for settings.data_ttl (five minutes by default)
because published values are occasionally revised.
"""

from datetime import date
from typing import Any

from kolada_gateway.client import KPIData
from kolada_gateway.errors import (
    InvalidInputError,
    validate_kpi_id,
    validate_municipality_id,
)
from kolada_gateway.gateway import KoladaGateway
from kolada_gateway.tools.registry import ToolDefinition
from kolada_gateway.tools.schemas import (
    CompareMunicipalitiesInput,
    GetKpiDataInput,
    GetKpiTrendInput,
    GetMunicipalityKpisInput,
)


def join_years(years: list[int] | None) -> str | None:
    if not years:
        return None
    return ",".join(str(year) for year in years)


def extract_value(point: KPIData, gender: str = "T") -> float | None:
    """Value for ``gender``, falling back to the first non-null value."""
    for value in point.values:
        if value.gender == gender and value.value is not None:
            return value.value
    for value in point.values:
        if value.value is not None:
            return value.value
    return None


def percent_change(previous: float | None, current: float | None) -> float | None:
    if previous is None or current is None or previous == 0:
        return None
    return round((current - previous) / previous * 100, 2)


async def fetch_data(
    gateway: KoladaGateway, endpoint: str, params: dict[str, Any]
) -> list[KPIData]:
    return await gateway.fetch_models_cached(
        KPIData, endpoint, params, ttl=gateway.settings.data_ttl
    )


async def get_kpi_data(gateway: KoladaGateway, args: GetKpiDataInput) -> dict:
    validate_kpi_id(args.kpi_id)
    if bool(args.municipality_id) == bool(args.ou_id):
        raise InvalidInputError(
            "Provide exactly one of municipality_id or ou_id",
            suggestion="Use municipality_id for municipality data or ou_id for unit data, not both.",
        )

    params: dict[str, Any] = {"kpi": args.kpi_id}
    if args.municipality_id:
        validate_municipality_id(args.municipality_id)
        params["municipality"] = args.municipality_id
        endpoint = "/data"
    else:
        params["ou"] = args.ou_id
        endpoint = "/oudata"

    years = join_years(args.years)
    if years:
        params["year"] = years

    data = await fetch_data(gateway, endpoint, params)
    return {
        "kpi_id": args.kpi_id,
        "entity_id": args.municipality_id or args.ou_id,
        "entity_type": "municipality" if args.municipality_id else "organizational_unit",
        "count": len(data),
        "data_points": data,
    }


async def get_municipality_kpis(gateway: KoladaGateway, args: GetMunicipalityKpisInput) -> dict:
    validate_municipality_id(args.municipality_id)
    params: dict[str, Any] = {"municipality": args.municipality_id}
    if args.year is not None:
        params["year"] = args.year

    data = await fetch_data(gateway, "/data", params)
    kpi_ids = list(dict.fromkeys(point.kpi for point in data))
    return {
        "municipality_id": args.municipality_id,
        "year": args.year if args.year is not None else "all",
        "kpi_count": len(kpi_ids),
        "available_kpis": kpi_ids,
        "note": "Use get_kpi for details about each KPI, or get_kpi_data for the values.",
    }


async def compare_municipalities(
    gateway: KoladaGateway, args: CompareMunicipalitiesInput
) -> dict:
    """One batched /data request, regrouped per municipality in input order."""
    validate_kpi_id(args.kpi_id)
    for municipality_id in args.municipality_ids:
        validate_municipality_id(municipality_id)

    params: dict[str, Any] = {"kpi": args.kpi_id}
    years = join_years(args.years)
    if years:
        params["year"] = years

    async def produce() -> list[KPIData]:
        records = await gateway.client.batch_fetch(
            "/data", args.municipality_ids, id_param="municipality", params=params
        )
        return [KPIData.model_validate(record) for record in records]

    data = await gateway.cached(
        "/data",
        produce,
        {**params, "municipality": args.municipality_ids},
        ttl=gateway.settings.data_ttl,
    )

    grouped: dict[str, list[KPIData]] = {m: [] for m in args.municipality_ids}
    for point in data:
        if point.municipality in grouped:
            grouped[point.municipality].append(point)

    return {
        "kpi_id": args.kpi_id,
        "municipalities": [
            {"municipality_id": m, "data": points} for m, points in grouped.items()
        ],
    }


async def get_kpi_trend(gateway: KoladaGateway, args: GetKpiTrendInput) -> dict:
    validate_kpi_id(args.kpi_id)
    validate_municipality_id(args.municipality_id)
    end_year = args.end_year or date.today().year
    if end_year < args.start_year:
        raise InvalidInputError(
            f"start_year {args.start_year} is after end_year {end_year}",
            suggestion="Choose a start_year no later than the current year.",
        )

    params = {
        "kpi": args.kpi_id,
        "municipality": args.municipality_id,
        "year": join_years(list(range(args.start_year, end_year + 1))),
    }
    data = await fetch_data(gateway, "/data", params)
    data = sorted(data, key=lambda point: point.period or 0)

    trend = []
    previous: float | None = None
    for point in data:
        value = extract_value(point, args.gender)
        trend.append(
            {
                "period": point.period,
                "value": value,
                "change_percent": percent_change(previous, value),
            }
        )
        previous = value

    return {
        "kpi_id": args.kpi_id,
        "municipality_id": args.municipality_id,
        "gender": args.gender,
        "period": f"{args.start_year}-{end_year}",
        "trend": trend,
    }


DATA_TOOLS = [
    ToolDefinition(
        name="get_kpi_data",
        description=(
            "Get KPI values for one municipality or one organizational unit, optionally "
            "restricted to specific years."
        ),
        input_model=GetKpiDataInput,
        handler=get_kpi_data,
    ),
    ToolDefinition(
        name="get_municipality_kpis",
        description="List the KPIs that have data for a municipality, optionally for one year.",
        input_model=GetMunicipalityKpisInput,
        handler=get_municipality_kpis,
    ),
    ToolDefinition(
        name="compare_municipalities",
        description="Compare one KPI across 2-10 municipalities. Useful for benchmarking.",
        input_model=CompareMunicipalitiesInput,
        handler=compare_municipalities,
    ),
    ToolDefinition(
        name="get_kpi_trend",
        description=(
            "Get the development of a KPI over time for one municipality, with the percent "
            "change from each period to the next."
        ),
        input_model=GetKpiTrendInput,
        handler=get_kpi_trend,
    ),
]
