"""KPI tools: search the catalog and look up KPIs and KPI groups."""

from kolada_gateway.client import KPI, KoladaGroup
from kolada_gateway.errors import (
    ERROR_MESSAGES,
    NotFoundError,
    validate_batch_size,
    validate_kpi_id,
)
from kolada_gateway.gateway import KoladaGateway
from kolada_gateway.tools.registry import ToolDefinition
from kolada_gateway.tools.schemas import (
    GetGroupInput,
    GetKpiInput,
    GetKpisInput,
    GroupQueryInput,
    SearchKpisInput,
)


def kpi_summary(kpi: KPI) -> dict:
    return {
        "id": kpi.id,
        "title": kpi.title,
        "description": kpi.description,
        "operating_area": kpi.operating_area,
        "municipality_type": kpi.municipality_type,
        "has_ou_data": kpi.has_ou_data,
    }


def group_summary(group: KoladaGroup) -> dict:
    summary = {"id": group.id, "title": group.title, "member_count": len(group.members)}
    if group.description:
        summary["description"] = group.description
    return summary


async def search_kpis(gateway: KoladaGateway, args: SearchKpisInput) -> dict:
    """Filter the cached KPI catalog by free text, publication date and area."""
    kpis = await gateway.kpi_catalog()

    if args.query:
        term = args.query.lower()
        kpis = [
            k
            for k in kpis
            if term in k.title.lower()
            or term in (k.description or "").lower()
            or term in k.id.lower()
        ]

    if args.publication_date:
        kpis = [k for k in kpis if k.publication_date == args.publication_date]

    if args.operating_area:
        area = args.operating_area.lower()
        kpis = [k for k in kpis if area in (k.operating_area or "").lower()]

    total_matches = len(kpis)
    kpis = kpis[: args.limit]
    return {
        "count": len(kpis),
        "total_matches": total_matches,
        "truncated": total_matches > args.limit,
        "kpis": [kpi_summary(k) for k in kpis],
    }


async def get_kpi(gateway: KoladaGateway, args: GetKpiInput) -> KPI:
    validate_kpi_id(args.kpi_id)
    endpoint = f"/kpi/{args.kpi_id}"

    async def produce() -> KPI:
        record = await gateway.client.fetch_one(endpoint)
        if record is None:
            error = ERROR_MESSAGES.kpi_not_found(args.kpi_id)
            raise NotFoundError(error.message, suggestion=error.suggestion)
        return KPI.model_validate(record)

    return await gateway.cached(endpoint, produce, ttl=gateway.settings.kpi_ttl)


async def get_kpis(gateway: KoladaGateway, args: GetKpisInput) -> dict:
    validate_batch_size(args.kpi_ids, gateway.settings.max_batch_size)
    for kpi_id in args.kpi_ids:
        validate_kpi_id(kpi_id)

    records = await gateway.client.batch_fetch("/kpi", args.kpi_ids)
    kpis = [KPI.model_validate(record) for record in records]
    found = {k.id for k in kpis}
    return {
        "requested": len(args.kpi_ids),
        "found": len(kpis),
        "missing": [kpi_id for kpi_id in args.kpi_ids if kpi_id not in found],
        "kpis": kpis,
    }


async def get_kpi_groups(gateway: KoladaGateway, args: GroupQueryInput) -> dict:
    params = {"title": args.query} if args.query else None
    groups = await gateway.fetch_models_cached(
        KoladaGroup, "/kpi_groups", params, ttl=gateway.settings.cache_ttl
    )
    return {"count": len(groups), "groups": [group_summary(g) for g in groups]}


async def get_kpi_group(gateway: KoladaGateway, args: GetGroupInput) -> KoladaGroup:
    record = await gateway.client.fetch_one(f"/kpi_groups/{args.group_id}")
    if record is None:
        error = ERROR_MESSAGES.group_not_found(args.group_id, "KPI")
        raise NotFoundError(error.message, suggestion=error.suggestion)
    return KoladaGroup.model_validate(record)


KPI_TOOLS = [
    ToolDefinition(
        name="search_kpis",
        description=(
            "Search key performance indicators (KPIs) by free text, publication date or "
            "operating area. Swedish search terms give the best results."
        ),
        input_model=SearchKpisInput,
        handler=search_kpis,
    ),
    ToolDefinition(
        name="get_kpi",
        description=(
            "Get full metadata for one KPI by ID, including publication dates and whether "
            "it is divided by gender."
        ),
        input_model=GetKpiInput,
        handler=get_kpi,
    ),
    ToolDefinition(
        name="get_kpis",
        description="Get several KPIs by ID in one call (up to 25 IDs).",
        input_model=GetKpisInput,
        handler=get_kpis,
    ),
    ToolDefinition(
        name="get_kpi_groups",
        description="List KPI groups (thematic collections of KPIs), optionally filtered by title.",
        input_model=GroupQueryInput,
        handler=get_kpi_groups,
    ),
    ToolDefinition(
        name="get_kpi_group",
        description="Get one KPI group including its member KPIs.",
        input_model=GetGroupInput,
        handler=get_kpi_group,
    ),
]
