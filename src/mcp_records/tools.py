"""Tool registry: built-in record tools plus tools registered at runtime.

The registry is an ordered map consulted by a single dispatch function, so
adding a tool never re-wraps earlier handlers. Names are unique across built-in
and dynamic tools; registering a taken name raises DuplicateToolError, which
means a dynamic tool can never shadow a built-in.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Union

from pydantic import BaseModel

from mcp_records.errors import DuplicateToolError, ToolNotFoundError
from mcp_records.models import (
	CreateRecordArgs,
	DeleteRecordArgs,
	GetRecordArgs,
	ListRecordsArgs,
	QueryDescriptor,
	SearchRecordsArgs,
	UpdateRecordArgs,
	record_limit,
)
from mcp_records.schema import input_schema

if TYPE_CHECKING:
	from mcp_records.store import DataService

logger = logging.getLogger(__name__)

ToolHandler = Callable[[Any], Union[Awaitable[Any], Any]]


@dataclass
class ToolDefinition:
	"""A named, schema-validated operation."""

	name: str
	description: str
	input_model: type[BaseModel]
	handler: ToolHandler
	builtin: bool = False

	def describe(self) -> dict[str, Any]:
		"""MCP tool listing entry."""
		return {
			"name": self.name,
			"description": self.description,
			"inputSchema": input_schema(self.input_model),
		}

	async def invoke(self, args: BaseModel) -> Any:
		result = self.handler(args)
		if inspect.isawaitable(result):
			result = await result
		return result


class ToolRegistry:
	"""Ordered collection of tools. Built-ins list first, then dynamic tools."""

	def __init__(self, log: logging.Logger | None = None) -> None:
		self._tools: dict[str, ToolDefinition] = {}
		self._log = log or logger

	def register(
		self,
		name: str,
		description: str,
		input_model: type[BaseModel],
		handler: ToolHandler,
		builtin: bool = False,
	) -> ToolDefinition:
		"""Register a tool.

		Raises:
			ValueError: If the name is empty or the model is not an object schema.
			DuplicateToolError: If a tool with this name already exists.
		"""
		if not name:
			raise ValueError("Tool name must not be empty")
		if name in self._tools:
			raise DuplicateToolError(f"Tool '{name}' is already registered")
		# Fail at registration time rather than on the first list_tools call.
		input_schema(input_model)

		tool = ToolDefinition(
			name=name,
			description=description,
			input_model=input_model,
			handler=handler,
			builtin=builtin,
		)
		self._tools[name] = tool
		self._log.info("Registered %s tool: %s", "built-in" if builtin else "dynamic", name)
		return tool

	def resolve(self, name: str) -> ToolDefinition:
		tool = self._tools.get(name)
		if tool is None:
			raise ToolNotFoundError(name)
		return tool

	def list(self) -> list[ToolDefinition]:
		tools = list(self._tools.values())
		return [t for t in tools if t.builtin] + [t for t in tools if not t.builtin]

	def names(self) -> list[str]:
		return [t.name for t in self.list()]

	def __contains__(self, name: object) -> bool:
		return name in self._tools

	def __len__(self) -> int:
		return len(self._tools)


# -- Built-in tools --

def register_builtin_tools(registry: ToolRegistry, service: DataService) -> None:
	"""Install the six record tools, each a thin wrapper over the data service."""

	async def list_records(args: ListRecordsArgs) -> Any:
		return await service.query_resource(
			args.resource_uri,
			QueryDescriptor(
				filter=args.filter,
				sort=list(args.sort or []),
				max_records=record_limit(args.max_records),
			),
		)

	async def search_records(args: SearchRecordsArgs) -> Any:
		return await service.query_resource(
			args.resource_uri,
			QueryDescriptor(
				search_term=args.search_term,
				fields=args.fields,
				max_records=record_limit(args.max_records),
			),
		)

	async def get_record(args: GetRecordArgs) -> Any:
		await service.get_resource(args.resource_uri)
		return await service.get_record(args.resource_uri, args.record_id)

	async def create_record(args: CreateRecordArgs) -> Any:
		return await service.create_record(args.resource_uri, args.data)

	async def update_record(args: UpdateRecordArgs) -> Any:
		return await service.update_record(args.resource_uri, args.record_id, args.data)

	async def delete_record(args: DeleteRecordArgs) -> Any:
		success = await service.delete_record(args.resource_uri, args.record_id)
		return {"success": success, "id": args.record_id}

	builtins: list[tuple[str, str, type[BaseModel], ToolHandler]] = [
		("list_records", "List records from a resource", ListRecordsArgs, list_records),
		("search_records", "Search for records containing specific text", SearchRecordsArgs, search_records),
		("get_record", "Get a specific record by ID", GetRecordArgs, get_record),
		("create_record", "Create a new record in a resource", CreateRecordArgs, create_record),
		("update_record", "Update a record in a resource", UpdateRecordArgs, update_record),
		("delete_record", "Delete a record from a resource", DeleteRecordArgs, delete_record),
	]
	for name, description, model, handler in builtins:
		registry.register(name, description, model, handler, builtin=True)
