"""Municipality tools: search municipalities/regions and municipality groups."""

from kolada_gateway.client import KoladaGroup, Municipality
from kolada_gateway.errors import ERROR_MESSAGES, NotFoundError, validate_municipality_id
from kolada_gateway.gateway import KoladaGateway
from kolada_gateway.tools.kpi_tools import group_summary
from kolada_gateway.tools.registry import ToolDefinition
from kolada_gateway.tools.schemas import (
    GetGroupInput,
    GetMunicipalityInput,
    GroupQueryInput,
    SearchMunicipalitiesInput,
)

MUNICIPALITY_TYPES = {
    "K": "Kommun (Municipality)",
    "L": "Landsting/Region (County Council)",
}


def municipality_summary(municipality: Municipality) -> dict:
    return {
        "id": municipality.id,
        "title": municipality.title,
        "type": municipality.type,
        "type_description": MUNICIPALITY_TYPES.get(municipality.type or "", "Unknown"),
    }


async def search_municipalities(gateway: KoladaGateway, args: SearchMunicipalitiesInput) -> dict:
    """Filter the cached municipality list by name and type."""
    municipalities = await gateway.municipalities()

    if args.municipality_type != "all":
        municipalities = [m for m in municipalities if m.type == args.municipality_type]

    if args.query:
        term = args.query.lower()
        municipalities = [m for m in municipalities if term in m.title.lower()]

    return {
        "count": len(municipalities),
        "municipalities": [municipality_summary(m) for m in municipalities],
    }


async def get_municipality(gateway: KoladaGateway, args: GetMunicipalityInput) -> Municipality:
    validate_municipality_id(args.municipality_id)
    record = await gateway.client.fetch_one(f"/municipality/{args.municipality_id}")
    if record is None:
        error = ERROR_MESSAGES.municipality_not_found(args.municipality_id)
        raise NotFoundError(error.message, suggestion=error.suggestion)
    return Municipality.model_validate(record)


async def get_municipality_groups(gateway: KoladaGateway, args: GroupQueryInput) -> dict:
    params = {"title": args.query} if args.query else None
    groups = await gateway.fetch_models_cached(
        KoladaGroup, "/municipality_groups", params, ttl=gateway.settings.cache_ttl
    )
    return {"count": len(groups), "groups": [group_summary(g) for g in groups]}


async def get_municipality_group(gateway: KoladaGateway, args: GetGroupInput) -> KoladaGroup:
    record = await gateway.client.fetch_one(f"/municipality_groups/{args.group_id}")
    if record is None:
        error = ERROR_MESSAGES.group_not_found(args.group_id, "Municipality")
        raise NotFoundError(error.message, suggestion=error.suggestion)
    return KoladaGroup.model_validate(record)


MUNICIPALITY_TOOLS = [
    ToolDefinition(
        name="search_municipalities",
        description=(
            "Search Swedish municipalities (kommuner) and regions (landsting/regioner) by "
            "name or type."
        ),
        input_model=SearchMunicipalitiesInput,
        handler=search_municipalities,
    ),
    ToolDefinition(
        name="get_municipality",
        description='Get one municipality by its 4-digit ID (e.g. "0180" for Stockholm).',
        input_model=GetMunicipalityInput,
        handler=get_municipality,
    ),
    ToolDefinition(
        name="get_municipality_groups",
        description=(
            "List municipality groups such as metropolitan regions or coastal municipalities, "
            "useful for comparing similar municipalities."
        ),
        input_model=GroupQueryInput,
        handler=get_municipality_groups,
    ),
    ToolDefinition(
        name="get_municipality_group",
        description="Get one municipality group including its member municipalities.",
        input_model=GetGroupInput,
        handler=get_municipality_group,
    ),
]
