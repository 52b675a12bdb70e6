"""Read-only resources: reference documents an agent can load without a tool call."""

from dataclasses import asdict, dataclass
from typing import Any

from kolada_gateway.errors import NotFoundError
from kolada_gateway.gateway import KoladaGateway
from kolada_gateway.monitoring import get_logger
from kolada_gateway.tools.municipality_tools import municipality_summary
from kolada_gateway.tools.registry import to_json

log = get_logger(__name__)


@dataclass(frozen=True)
class Resource:
    uri: str
    name: str
    description: str
    mime_type: str

    def to_dict(self) -> dict[str, str]:
        data = asdict(self)
        data["mimeType"] = data.pop("mime_type")
        return data


MUNICIPALITIES_URI = "kolada://municipalities"
KPI_CATALOG_URI = "kolada://kpi-catalog"
API_INFO_URI = "kolada://api-info"

RESOURCES = [
    Resource(
        uri=MUNICIPALITIES_URI,
        name="Swedish Municipalities List",
        description="Complete list of Swedish municipalities and county councils",
        mime_type="application/json",
    ),
    Resource(
        uri=KPI_CATALOG_URI,
        name="KPI Catalog",
        description="Complete catalog of available KPIs with metadata",
        mime_type="application/json",
    ),
    Resource(
        uri=API_INFO_URI,
        name="Kolada API Information",
        description="API information, endpoints, and usage guidelines",
        mime_type="text/markdown",
    ),
]


def api_info_markdown(gateway: KoladaGateway) -> str:
    settings = gateway.settings
    return f"""# Kolada API v3 Information

## About Kolada
Kolada is a database of key performance indicators (KPIs) for Swedish municipalities and regions.

## API Base URL
`{gateway.client.base_url}`

## Rate Limits
- At most {settings.rate_limit:g} requests per second
- Rate limits and network errors are retried up to {settings.max_retries} times with increasing delays
- Request timeout: {settings.timeout:g} seconds

## Main Endpoints
- `/kpi` - List and search KPIs
- `/municipality` - List and search municipalities
- `/ou` - List and search organizational units
- `/data` - KPI data for municipalities
- `/oudata` - KPI data for organizational units

## Pagination
- Follow `next_page` URLs for additional pages (handled automatically)
- At most {settings.max_batch_size} IDs per request (larger lists are split automatically)

## Data Attribution
When using Kolada data, cite it as: **"Källa: Kolada"**

## More Information
Official API documentation: https://api.kolada.se/v3/docs
"""


def list_resources() -> list[dict[str, str]]:
    return [resource.to_dict() for resource in RESOURCES]


async def read_resource(gateway: KoladaGateway, uri: str) -> dict[str, Any]:
    """Render a resource as ``{"contents": [{"uri", "mimeType", "text"}]}``.

    Raises:
        NotFoundError: Unknown resource URI
    """
    log.info("resource_read", uri=uri)

    if uri == MUNICIPALITIES_URI:
        municipalities = await gateway.municipalities()
        text = to_json(
            {
                "count": len(municipalities),
                "municipalities": [municipality_summary(m) for m in municipalities],
            }
        )
        mime_type = "application/json"
    elif uri == KPI_CATALOG_URI:
        kpis = await gateway.kpi_catalog()
        text = to_json(
            {
                "count": len(kpis),
                "kpis": [
                    {
                        "id": k.id,
                        "title": k.title,
                        "description": k.description,
                        "operating_area": k.operating_area,
                        "municipality_type": k.municipality_type,
                    }
                    for k in kpis
                ],
            }
        )
        mime_type = "application/json"
    elif uri == API_INFO_URI:
        text = api_info_markdown(gateway)
        mime_type = "text/markdown"
    else:
        raise NotFoundError(
            f"Unknown resource: {uri}",
            suggestion="Use list_resources to see the available resource URIs.",
        )

    return {"contents": [{"uri": uri, "mimeType": mime_type, "text": text}]}
