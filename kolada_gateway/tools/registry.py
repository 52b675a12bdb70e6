"""Tool registry: named, schema-validated operations over the gateway.

The protocol server (MCP over stdio, JSON-RPC over HTTP, ...) only needs to
call ``list_tools()`` and ``call(name, arguments)``. Arguments are validated
against each tool's pydantic input model before the handler runs, and every
failure comes back as a structured error result, never a raw exception.
"""

import json
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Iterable

from pydantic import BaseModel, ValidationError

from kolada_gateway.errors import GatewayError, InvalidInputError, UpstreamError
from kolada_gateway.gateway import KoladaGateway
from kolada_gateway.monitoring import bind_correlation_id, get_logger, unbind_correlation_id

log = get_logger(__name__)

ToolHandler = Callable[[KoladaGateway, Any], Awaitable[Any]]


@dataclass(frozen=True)
class ToolAnnotations:
    """Behavior hints that help an agent decide when a tool is safe to call."""

    read_only: bool = True
    idempotent: bool = True
    destructive: bool = False
    open_world: bool = False

    def to_dict(self) -> dict[str, bool]:
        return {
            "readOnlyHint": self.read_only,
            "idempotentHint": self.idempotent,
            "destructiveHint": self.destructive,
            "openWorldHint": self.open_world,
        }


READ_ONLY = ToolAnnotations()


@dataclass(frozen=True)
class ToolDefinition:
    """A named operation with its input schema and async handler."""

    name: str
    description: str
    input_model: type[BaseModel]
    handler: ToolHandler
    annotations: ToolAnnotations = READ_ONLY

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_model.model_json_schema(),
            "annotations": self.annotations.to_dict(),
        }


def to_json(payload: Any) -> str:
    if isinstance(payload, BaseModel):
        payload = payload.model_dump(mode="json", exclude_none=True)
    return json.dumps(payload, ensure_ascii=False, indent=2, default=_json_default)


def _json_default(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", exclude_none=True)
    return str(value)


@dataclass
class ToolResult:
    """Tool output as text content, flagged when it carries an error."""

    content: list[dict[str, Any]] = field(default_factory=list)
    is_error: bool = False

    @classmethod
    def success(cls, payload: Any) -> "ToolResult":
        text = payload if isinstance(payload, str) else to_json(payload)
        return cls(content=[{"type": "text", "text": text}])

    @classmethod
    def failure(cls, error: GatewayError) -> "ToolResult":
        return cls(content=[{"type": "text", "text": to_json(error.to_dict())}], is_error=True)

    @property
    def text(self) -> str:
        return "".join(item.get("text", "") for item in self.content)

    def json(self) -> Any:
        """Parse the text content back into Python data."""
        return json.loads(self.text)

    def to_dict(self) -> dict[str, Any]:
        return {"content": self.content, "isError": self.is_error}


def _validation_error(name: str, exc: ValidationError) -> InvalidInputError:
    errors = [
        {"field": ".".join(str(part) for part in err["loc"]), "message": err["msg"]}
        for err in exc.errors()
    ]
    fields = ", ".join(err["field"] or "arguments" for err in errors)
    return InvalidInputError(
        f"Invalid arguments for {name}: {fields}",
        suggestion="Check the tool's input schema with list_tools and correct the arguments.",
        details={"errors": errors},
    )


class ToolRegistry:
    """Registry and dispatcher for gateway tools.

    Example:
        registry = build_registry(gateway)
        result = await registry.call("get_kpi", {"kpi_id": "N15033"})
        if result.is_error:
            print(result.json()["suggestion"])
    """

    def __init__(self, gateway: KoladaGateway, tools: Iterable[ToolDefinition] = ()):
        self.gateway = gateway
        self._tools: dict[str, ToolDefinition] = {}
        for tool in tools:
            self.register(tool)

    def __contains__(self, name: str) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def register(self, tool: ToolDefinition) -> None:
        if tool.name in self._tools:
            raise ValueError(f"Tool already registered: {tool.name}")
        self._tools[tool.name] = tool

    def get(self, name: str) -> ToolDefinition | None:
        return self._tools.get(name)

    def list_tools(self) -> list[dict[str, Any]]:
        """Describe every tool: name, description, JSON schema, annotations."""
        return [tool.to_dict() for tool in self._tools.values()]

    async def call(self, name: str, arguments: dict[str, Any] | None = None) -> ToolResult:
        """Validate ``arguments`` and run the named tool.

        Returns:
            ToolResult with the JSON payload, or with is_error=True and a
            structured error (code, message, suggestion)
        """
        bind_correlation_id(uuid.uuid4().hex[:12])
        start_time = time.perf_counter()
        log.info("tool_call_started", tool=name, args=arguments or {})
        try:
            result = await self._dispatch(name, arguments or {})
        finally:
            duration_ms = int((time.perf_counter() - start_time) * 1000)
            unbind_correlation_id()

        log.info(
            "tool_call_completed",
            tool=name,
            success=not result.is_error,
            duration_ms=duration_ms,
        )
        return result

    async def _dispatch(self, name: str, arguments: dict[str, Any]) -> ToolResult:
        tool = self._tools.get(name)
        if tool is None:
            return ToolResult.failure(
                InvalidInputError(
                    f"Unknown tool: {name}",
                    suggestion="Use list_tools to see the available tool names.",
                )
            )

        try:
            args = tool.input_model.model_validate(arguments)
        except ValidationError as exc:
            return ToolResult.failure(_validation_error(name, exc))

        try:
            payload = await tool.handler(self.gateway, args)
        except GatewayError as exc:
            log.warning("tool_call_failed", tool=name, error=exc.code, message=exc.message)
            return ToolResult.failure(exc)
        except Exception as exc:
            log.exception("tool_call_crashed", tool=name)
            return ToolResult.failure(
                UpstreamError(
                    f"Unexpected error while running {name}: {type(exc).__name__}",
                    suggestion="Retry the call; if it keeps failing, report the error.",
                )
            )

        return ToolResult.success(payload)
