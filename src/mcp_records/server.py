"""MCP server binding: wires a RecordDispatcher into the mcp SDK over stdio."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from typing import Any

from mcp.server import Server
from mcp.server.lowlevel.helper_types import ReadResourceContents
from mcp.server.stdio import stdio_server
from mcp.types import Resource as MCPResource
from mcp.types import TextContent, Tool
from pydantic import AnyUrl

from mcp_records.config import RecordsConfig
from mcp_records.dispatcher import RecordDispatcher
from mcp_records.remote import RemoteTableDataService, TableAPIClient
from mcp_records.store import InMemoryDataService

logger = logging.getLogger(__name__)


class ToolCallFailed(Exception):
	"""Raised inside the SDK handler so that an error envelope becomes an isError result."""


def build_server(dispatcher: RecordDispatcher, name: str = "mcp-records", version: str = "0.1.0") -> Server:
	"""Create an SDK server whose four handlers delegate to dispatcher."""
	server: Server = Server(name, version=version)

	@server.list_resources()
	async def list_resources() -> list[MCPResource]:
		resources = []
		for entry in await dispatcher.list_resources():
			try:
				resources.append(MCPResource(
					uri=entry["uri"],
					name=entry["name"],
					description=entry.get("description"),
					mimeType=entry["mimeType"],
				))
			except ValueError as exc:
				logger.warning("Skipping resource with unusable URI %s: %s", entry["uri"], exc)
		return resources

	@server.read_resource()
	async def read_resource(uri: AnyUrl) -> Iterable[ReadResourceContents]:
		content = await dispatcher.read_resource(str(uri))
		return [ReadResourceContents(content=content["text"], mime_type=content["mimeType"])]

	@server.list_tools()
	async def list_tools() -> list[Tool]:
		return [
			Tool(name=t["name"], description=t["description"], inputSchema=t["inputSchema"])
			for t in dispatcher.list_tools()
		]

	# Argument validation happens in the dispatcher so every violation is reported.
	@server.call_tool(validate_input=False)
	async def call_tool(name: str, arguments: dict[str, Any]) -> list[TextContent]:
		envelope = await dispatcher.call_tool(name, arguments)
		if envelope.is_error:
			raise ToolCallFailed(envelope.text)
		return envelope.to_content()

	return server


def create_dispatcher(config: RecordsConfig) -> RecordDispatcher:
	"""Build the backend named in config and a dispatcher over it."""
	backend = config.backend
	if backend.type == "remote":
		remote = backend.remote
		client = TableAPIClient(
			api_key=remote.api_key,
			base_url=remote.base_url,
			max_retries=remote.max_retries,
			backoff_seconds=remote.backoff_seconds,
			timeout=remote.timeout,
		)
		return RecordDispatcher(RemoteTableDataService(client, remote.base_id))

	if backend.type != "memory":
		raise ValueError(f"Unknown backend type: {backend.type}")

	service = InMemoryDataService(config.server.resource_prefix)
	dispatcher = RecordDispatcher(service)
	if backend.seed_demo:
		from mcp_records.demo import register_user_tools, seed_users

		seed_users(service)
		register_user_tools(dispatcher)
	return dispatcher


async def run_stdio(server: Server) -> None:
	async with stdio_server() as (read_stream, write_stream):
		await server.run(read_stream, write_stream, server.create_initialization_options())


def run_mcp_server(config: RecordsConfig) -> None:
	"""Entry point for `mcp-records serve`."""
	dispatcher = create_dispatcher(config)
	server = build_server(dispatcher, config.server.name, config.server.version)
	logger.info("MCP server %s %s running on stdio", config.server.name, config.server.version)
	for tool in dispatcher.registry.names():
		logger.debug("Tool available: %s", tool)

	async def _serve() -> None:
		try:
			await run_stdio(server)
		finally:
			await dispatcher.service.close()

	asyncio.run(_serve())
