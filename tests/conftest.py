"""Shared pytest fixtures and factory functions for mcp-records tests."""

from __future__ import annotations

import pytest

from mcp_records.dispatcher import RecordDispatcher
from mcp_records.models import Resource
from mcp_records.store import InMemoryDataService

USERS = [
	{"id": "u1", "name": "Ada Admin", "role": "admin"},
	{"id": "u2", "name": "Jane Smith", "role": "user"},
	{"id": "u3", "name": "Bob Jones", "role": "user"},
]


@pytest.fixture()
def service() -> InMemoryDataService:
	"""Empty in-memory store using the demo:// scheme."""
	return InMemoryDataService("demo://")


@pytest.fixture()
def users(service: InMemoryDataService) -> Resource:
	"""A Users resource at demo://users seeded with three records."""
	resource = service.register_resource("Users", "Demo users")
	service.seed_data(resource.uri, [dict(u) for u in USERS])
	return resource


@pytest.fixture()
def dispatcher(service: InMemoryDataService, users: Resource) -> RecordDispatcher:
	"""Dispatcher with the built-in tools over the seeded store."""
	return RecordDispatcher(service)
