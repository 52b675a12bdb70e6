"""Catalog navigation: operating areas and threshold filtering over municipalities."""

import operator
from collections import Counter

from kolada_gateway.client import KPIData
from kolada_gateway.errors import validate_kpi_id
from kolada_gateway.gateway import KoladaGateway
from kolada_gateway.tools.data_tools import extract_value
from kolada_gateway.tools.kpi_tools import kpi_summary
from kolada_gateway.tools.registry import ToolDefinition
from kolada_gateway.tools.schemas import (
    FilterMunicipalitiesInput,
    GetKpisByOperatingAreaInput,
    NoInput,
)

UNCATEGORIZED_AREA = "Övrigt"

OPERATORS = {
    "gt": (operator.gt, ">"),
    "lt": (operator.lt, "<"),
    "gte": (operator.ge, ">="),
    "lte": (operator.le, "<="),
    "eq": (operator.eq, "="),
}


async def list_operating_areas(gateway: KoladaGateway, args: NoInput) -> dict:
    kpis = await gateway.kpi_catalog()
    counts = Counter(kpi.operating_area or UNCATEGORIZED_AREA for kpi in kpis)
    return {
        "total_kpis": len(kpis),
        "operating_areas_count": len(counts),
        "operating_areas": [
            {"name": name, "kpi_count": count} for name, count in counts.most_common()
        ],
        "usage_tip": "Use get_kpis_by_operating_area with an area name to list its KPIs.",
    }


async def get_kpis_by_operating_area(
    gateway: KoladaGateway, args: GetKpisByOperatingAreaInput
) -> dict:
    kpis = await gateway.kpi_catalog()
    area = args.operating_area.lower()
    matches = [k for k in kpis if area in (k.operating_area or "").lower()]
    return {
        "operating_area": args.operating_area,
        "count": min(len(matches), args.limit),
        "total_matches": len(matches),
        "truncated": len(matches) > args.limit,
        "kpis": [kpi_summary(k) for k in matches[: args.limit]],
    }


async def filter_municipalities_by_kpi(
    gateway: KoladaGateway, args: FilterMunicipalitiesInput
) -> dict:
    """Municipalities whose KPI value passes the threshold, highest value first.

    Data for every candidate municipality is fetched in chunks of
    settings.max_batch_size through the shared limiter.
    """
    validate_kpi_id(args.kpi_id)
    compare, symbol = OPERATORS[args.operator]

    municipalities = await gateway.municipalities()
    if args.municipality_type != "all":
        municipalities = [m for m in municipalities if m.type == args.municipality_type]
    names = {m.id: m.title for m in municipalities}

    params = {"kpi": args.kpi_id, "year": args.year}

    async def produce() -> list[KPIData]:
        records = await gateway.client.batch_fetch(
            "/data", list(names), id_param="municipality", params=params, concurrent=True
        )
        return [KPIData.model_validate(record) for record in records]

    data = await gateway.cached(
        "/data",
        produce,
        {**params, "municipality_type": args.municipality_type},
        ttl=gateway.settings.data_ttl,
    )

    matches = []
    for point in data:
        if not point.municipality:
            continue
        value = extract_value(point, args.gender)
        if value is not None and compare(value, args.threshold):
            matches.append(
                {
                    "id": point.municipality,
                    "name": names.get(point.municipality, point.municipality),
                    "value": round(value, 2),
                }
            )
    matches.sort(key=lambda match: match["value"], reverse=True)

    return {
        "kpi_id": args.kpi_id,
        "year": args.year,
        "gender": args.gender,
        "filter": f"value {symbol} {args.threshold}",
        "municipality_type": args.municipality_type,
        "matching_count": len(matches),
        "total_municipalities": len(names),
        "municipalities": matches,
        "source": "Kolada",
    }


CATALOG_TOOLS = [
    ToolDefinition(
        name="list_operating_areas",
        description=(
            "List all operating areas (e.g. Utbildning, Vård och omsorg) with the number of "
            "KPIs in each. Gives an overview of the available data."
        ),
        input_model=NoInput,
        handler=list_operating_areas,
    ),
    ToolDefinition(
        name="get_kpis_by_operating_area",
        description="List the KPIs within one operating area (case-insensitive partial match).",
        input_model=GetKpisByOperatingAreaInput,
        handler=get_kpis_by_operating_area,
    ),
    ToolDefinition(
        name="filter_municipalities_by_kpi",
        description=(
            "Find municipalities where a KPI is above or below a threshold for a given year, "
            "e.g. all municipalities with unemployment below 5%."
        ),
        input_model=FilterMunicipalitiesInput,
        handler=filter_municipalities_by_kpi,
    ),
]
