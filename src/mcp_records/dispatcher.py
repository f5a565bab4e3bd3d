"""Protocol dispatcher: the four MCP operations over a data service and tool registry.

Every call-tool outcome is wrapped in a ToolEnvelope. Unknown tools,
validation failures and handler exceptions all come back as error envelopes;
call_tool() itself never raises. Discovery (list_resources) degrades to an
empty list on failure, read_resource fails the whole call when the URI is
unknown.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from pydantic_core import to_jsonable_python

from mcp_records.errors import HandlerError, NotFoundError, SchemaValidationError, ToolNotFoundError
from mcp_records.schema import validate_input
from mcp_records.tools import ToolDefinition, ToolHandler, ToolRegistry, register_builtin_tools

if TYPE_CHECKING:
	from pydantic import BaseModel

	from mcp_records.store import DataService

logger = logging.getLogger(__name__)

JSON_MIME_TYPE = "application/json"


@dataclass
class ToolEnvelope:
	"""Uniform success/error wrapper for a tool invocation.

	The payload is held in JSON-compatible form and its JSON text is rendered
	at construction, so a result that cannot be serialized fails here rather
	than later in the transport.
	"""

	tool: str
	payload: Any
	is_error: bool = False
	text: str = field(init=False)

	def __post_init__(self) -> None:
		self.text = json.dumps(self.payload)

	@classmethod
	def success(cls, tool: str, payload: Any) -> ToolEnvelope:
		"""Wrap a handler result; pydantic models and dataclasses are dumped to plain JSON.

		Raises:
			PydanticSerializationError: If the result has no JSON representation.
			ValueError: If the result contains a circular reference.
		"""
		return cls(tool=tool, payload=to_jsonable_python(payload))

	@classmethod
	def error(cls, tool: str, message: str) -> ToolEnvelope:
		return cls(tool=tool, payload=message, is_error=True)

	def to_dict(self) -> dict[str, Any]:
		return {
			"content": [{"type": "text", "mimeType": JSON_MIME_TYPE, "text": self.text}],
			"isError": self.is_error,
		}

	def to_content(self) -> list[Any]:
		"""Render as MCP TextContent blocks."""
		from mcp.types import TextContent

		return [TextContent(type="text", text=self.text)]


class RecordDispatcher:
	"""Facade implementing list-resources, read-resource, list-tools and call-tool."""

	def __init__(
		self,
		service: DataService,
		registry: ToolRegistry | None = None,
		log: logging.Logger | None = None,
	) -> None:
		self.service = service
		self._log = log or logger
		if registry is None:
			registry = ToolRegistry(log=self._log)
			register_builtin_tools(registry, service)
		self.registry = registry

	def register_tool(
		self,
		name: str,
		description: str,
		input_model: type[BaseModel],
		handler: ToolHandler,
	) -> ToolDefinition:
		"""Add a tool at runtime. It is listed and invocable from the next call on."""
		return self.registry.register(name, description, input_model, handler)

	async def list_resources(self) -> list[dict[str, Any]]:
		try:
			resources = await self.service.list_resources()
		except Exception:
			self._log.exception("Error listing resources")
			return []

		listing = []
		for resource in resources:
			entry: dict[str, Any] = {
				"uri": resource.uri,
				"name": resource.name,
				"mimeType": JSON_MIME_TYPE,
			}
			if resource.description:
				entry["description"] = resource.description
			listing.append(entry)
		return listing

	async def read_resource(self, uri: str) -> dict[str, Any]:
		"""Return the resource's own metadata (not its records) as JSON content.

		Raises:
			NotFoundError: If no resource has this URI.
		"""
		try:
			resource = await self.service.get_resource(uri)
		except Exception as exc:
			self._log.error("Error reading resource %s: %s", uri, exc)
			raise NotFoundError(f"Resource not found: {uri}") from exc

		return {
			"uri": uri,
			"mimeType": JSON_MIME_TYPE,
			"text": json.dumps(resource.to_dict(), default=str),
		}

	def list_tools(self) -> list[dict[str, Any]]:
		return [tool.describe() for tool in self.registry.list()]

	async def call_tool(self, name: str, arguments: dict[str, Any] | None = None) -> ToolEnvelope:
		try:
			tool = self.registry.resolve(name)
			args = validate_input(tool.input_model, arguments)
		except (ToolNotFoundError, SchemaValidationError) as exc:
			self._log.warning("Rejected call to %s: %s", name, exc)
			return ToolEnvelope.error(name, f"Error in tool {name}: {exc}")

		try:
			result = await tool.invoke(args)
		except Exception as exc:
			failure = HandlerError(name, exc)
			self._log.error("Tool %s failed: %s", name, exc)
			return ToolEnvelope.error(name, str(failure))

		try:
			return ToolEnvelope.success(name, result)
		except (TypeError, ValueError) as exc:
			self._log.error("Tool %s returned an unserializable result: %s", name, exc)
			return ToolEnvelope.error(name, f"Error in tool {name}: result is not JSON-serializable: {exc}")
