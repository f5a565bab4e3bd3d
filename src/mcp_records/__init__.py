"""MCP resource discovery and record tools over pluggable data services."""

from __future__ import annotations

from mcp_records.dispatcher import RecordDispatcher, ToolEnvelope
from mcp_records.models import QueryDescriptor, Resource, SortSpec
from mcp_records.query import execute
from mcp_records.store import DataService, InMemoryDataService
from mcp_records.tools import ToolDefinition, ToolRegistry

__all__ = [
	"DataService",
	"InMemoryDataService",
	"QueryDescriptor",
	"RecordDispatcher",
	"Resource",
	"SortSpec",
	"ToolDefinition",
	"ToolEnvelope",
	"ToolRegistry",
	"execute",
]
