"""Organizational unit tools (schools, preschools, care facilities)."""

from kolada_gateway.client import OrganizationalUnit
from kolada_gateway.errors import ERROR_MESSAGES, NotFoundError, validate_municipality_id
from kolada_gateway.gateway import KoladaGateway
from kolada_gateway.tools.registry import ToolDefinition
from kolada_gateway.tools.schemas import (
    GetOrganizationalUnitInput,
    NoInput,
    SearchOrganizationalUnitsInput,
)

OU_TYPES = {
    "V11": "Förskola (Preschool)",
    "V15": "Grundskola (Primary School)",
    "V16": "Gymnasieskola (Upper Secondary School)",
    "V17": "Särskola (Special Needs School)",
    "V18": "Vuxenutbildning (Adult Education)",
    "V21": "Äldreboende (Elderly Care)",
    "V31": "Fritidshem (After-school Care)",
}


async def search_organizational_units(
    gateway: KoladaGateway, args: SearchOrganizationalUnitsInput
) -> dict:
    params = {}
    if args.query:
        params["title"] = args.query
    if args.municipality:
        validate_municipality_id(args.municipality)
        params["municipality"] = args.municipality

    units = await gateway.fetch_models_cached(
        OrganizationalUnit, "/ou", params, ttl=gateway.settings.cache_ttl
    )

    # OU ids encode their type as a prefix, e.g. V15E018000301
    if args.ou_type:
        units = [u for u in units if u.id.startswith(args.ou_type)]

    units = units[: args.limit]
    return {
        "count": len(units),
        "organizational_units": [
            {"id": u.id, "title": u.title, "municipality": u.municipality, "ou_type": u.ou_type}
            for u in units
        ],
    }


async def get_organizational_unit(
    gateway: KoladaGateway, args: GetOrganizationalUnitInput
) -> OrganizationalUnit:
    record = await gateway.client.fetch_one(f"/ou/{args.ou_id}")
    if record is None:
        error = ERROR_MESSAGES.ou_not_found(args.ou_id)
        raise NotFoundError(error.message, suggestion=error.suggestion)
    return OrganizationalUnit.model_validate(record)


async def get_ou_types(gateway: KoladaGateway, args: NoInput) -> dict:
    return {
        "ou_types": OU_TYPES,
        "note": "These are common OU type prefixes. Use search_organizational_units to find actual units.",
    }


OU_TOOLS = [
    ToolDefinition(
        name="search_organizational_units",
        description=(
            "Search organizational units such as schools, preschools and care facilities. "
            "Filter by name, municipality or type prefix."
        ),
        input_model=SearchOrganizationalUnitsInput,
        handler=search_organizational_units,
    ),
    ToolDefinition(
        name="get_organizational_unit",
        description="Get one organizational unit by its ID.",
        input_model=GetOrganizationalUnitInput,
        handler=get_organizational_unit,
    ),
    ToolDefinition(
        name="get_ou_types",
        description="List common organizational unit type prefixes (e.g. V11=Preschool, V15=Primary School).",
        input_model=NoInput,
        handler=get_ou_types,
    ),
]
