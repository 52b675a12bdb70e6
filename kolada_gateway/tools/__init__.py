"""Tool layer exposing the Kolada API to tool-calling agents."""

from kolada_gateway.gateway import KoladaGateway
from kolada_gateway.tools.catalog_tools import CATALOG_TOOLS
from kolada_gateway.tools.data_tools import DATA_TOOLS
from kolada_gateway.tools.kpi_tools import KPI_TOOLS
from kolada_gateway.tools.municipality_tools import MUNICIPALITY_TOOLS
from kolada_gateway.tools.ou_tools import OU_TOOLS
from kolada_gateway.tools.prompts import PROMPTS, get_prompt, list_prompts
from kolada_gateway.tools.registry import (
    ToolAnnotations,
    ToolDefinition,
    ToolRegistry,
    ToolResult,
)
from kolada_gateway.tools.resources import RESOURCES, list_resources, read_resource

ALL_TOOLS = [
    *KPI_TOOLS,
    *MUNICIPALITY_TOOLS,
    *OU_TOOLS,
    *DATA_TOOLS,
    *CATALOG_TOOLS,
]


def build_registry(gateway: KoladaGateway) -> ToolRegistry:
    """Registry with every gateway tool registered."""
    return ToolRegistry(gateway, ALL_TOOLS)


__all__ = [
    "ALL_TOOLS",
    "PROMPTS",
    "RESOURCES",
    "ToolAnnotations",
    "ToolDefinition",
    "ToolRegistry",
    "ToolResult",
    "build_registry",
    "get_prompt",
    "list_prompts",
    "list_resources",
    "read_resource",
]
