"""Rate-limited, cached gateway to the Kolada statistics API for tool-calling agents."""

from kolada_gateway.config import Settings, get_settings
from kolada_gateway.gateway import KoladaGateway

__version__ = "2.2.1"

__all__ = ["KoladaGateway", "Settings", "get_settings", "__version__"]
