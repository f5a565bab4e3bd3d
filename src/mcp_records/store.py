"""Data service contract and the in-memory reference backend."""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from typing import Any

from mcp_records import query as query_engine
from mcp_records.errors import (
	DuplicateRecordError,
	DuplicateResourceError,
	NotFoundError,
	RecordNotFoundError,
)
from mcp_records.models import QueryDescriptor, Record, Resource, _new_id, _now_iso

logger = logging.getLogger(__name__)

_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")

# Fields the store owns; callers cannot overwrite them on update.
_PROTECTED_ON_UPDATE = ("id", "createdAt")


def derive_uri(prefix: str, name: str) -> str:
	"""Build a resource URI from a display name: "User Accounts" -> "<prefix>user-accounts"."""
	return f"{prefix}{_NON_ALNUM_RE.sub('-', name.lower())}"


class DataService(ABC):
	"""Backend contract consumed by the dispatcher.

	All operations are coroutines so that remote backends can suspend on I/O.
	Failures surface as ordinary exceptions; the dispatcher turns them into
	error envelopes.
	"""

	@abstractmethod
	async def list_resources(self) -> list[Resource]:
		"""All resources, in registration order."""

	@abstractmethod
	async def get_resource(self, uri: str) -> Resource:
		"""Raises NotFoundError for an unknown URI."""

	@abstractmethod
	async def query_resource(
		self, uri: str, query: QueryDescriptor | dict[str, Any] | None = None,
	) -> list[Record]:
		"""Run a query over the resource's current records."""

	@abstractmethod
	async def create_record(self, uri: str, data: dict[str, Any]) -> Record:
		...

	@abstractmethod
	async def update_record(self, uri: str, record_id: str, data: dict[str, Any]) -> Record:
		...

	@abstractmethod
	async def delete_record(self, uri: str, record_id: str) -> bool:
		...

	async def get_record(self, uri: str, record_id: str) -> Record:
		"""Fetch one record by id. Backends with a direct lookup should override."""
		matches = await self.query_resource(uri, QueryDescriptor(filter={"id": record_id}))
		if not matches:
			raise RecordNotFoundError(record_id)
		return matches[0]

	async def close(self) -> None:
		"""Release backend resources. No-op unless the backend holds connections."""


class InMemoryDataService(DataService):
	"""Resource-partitioned dict store. The default DataService implementation.

	No locking: each operation is a single dict mutation, so concurrent writers
	to the same record race and the last write wins.
	"""

	def __init__(self, resource_prefix: str = "mcp://", log: logging.Logger | None = None) -> None:
		self.resource_prefix = resource_prefix
		self._log = log or logger
		self._resources: dict[str, Resource] = {}
		self._data: dict[str, dict[str, Record]] = {}

	def register_resource(
		self,
		name: str,
		description: str | None = None,
		metadata: dict[str, Any] | None = None,
	) -> Resource:
		"""Register a new resource under a URI derived from its name.

		Raises:
			DuplicateResourceError: If the derived URI is already taken.
		"""
		uri = derive_uri(self.resource_prefix, name)
		if uri in self._resources:
			raise DuplicateResourceError(f"Resource '{uri}' is already registered")

		resource = Resource(uri=uri, name=name, description=description, metadata=dict(metadata or {}))
		self._resources[uri] = resource
		self._data[uri] = {}
		self._log.info("Registered resource: %s (%s)", name, uri)
		return resource

	def seed_data(self, uri: str, records: list[dict[str, Any]]) -> int:
		"""Bulk-load records, stamping timestamps. Existing ids are replaced."""
		collection = self._collection(uri)
		timestamp = _now_iso()
		for raw in records:
			record_id = self._explicit_id(raw) or self._generate_id(collection)
			collection[record_id] = {**raw, "id": record_id, "createdAt": timestamp, "updatedAt": timestamp}
		self._log.info("Seeded %d records to %s", len(records), uri)
		return len(records)

	async def list_resources(self) -> list[Resource]:
		return list(self._resources.values())

	async def get_resource(self, uri: str) -> Resource:
		resource = self._resources.get(uri)
		if resource is None:
			raise NotFoundError(f"Resource not found: {uri}")
		return resource

	async def query_resource(
		self, uri: str, query: QueryDescriptor | dict[str, Any] | None = None,
	) -> list[Record]:
		collection = self._collection(uri)
		results = query_engine.execute(list(collection.values()), query)
		self._log.debug("Query on %s returned %d of %d records", uri, len(results), len(collection))
		return [dict(r) for r in results]

	async def get_record(self, uri: str, record_id: str) -> Record:
		record = self._collection(uri).get(record_id)
		if record is None:
			raise RecordNotFoundError(record_id)
		return dict(record)

	async def create_record(self, uri: str, data: dict[str, Any]) -> Record:
		collection = self._collection(uri)
		record_id = self._explicit_id(data)
		if record_id is None:
			record_id = self._generate_id(collection)
		elif record_id in collection:
			raise DuplicateRecordError(f"Record '{record_id}' already exists in {uri}")

		timestamp = _now_iso()
		record = {**data, "id": record_id, "createdAt": timestamp, "updatedAt": timestamp}
		collection[record_id] = record
		self._log.debug("Created record %s in %s", record_id, uri)
		return dict(record)

	async def update_record(self, uri: str, record_id: str, data: dict[str, Any]) -> Record:
		collection = self._collection(uri)
		existing = collection.get(record_id)
		if existing is None:
			raise RecordNotFoundError(record_id)

		updated = {**existing, **data}
		for key in _PROTECTED_ON_UPDATE:
			updated[key] = existing[key]
		updated["updatedAt"] = _now_iso()
		collection[record_id] = updated
		self._log.debug("Updated record %s in %s", record_id, uri)
		return dict(updated)

	async def delete_record(self, uri: str, record_id: str) -> bool:
		collection = self._collection(uri)
		if record_id not in collection:
			raise RecordNotFoundError(record_id)
		del collection[record_id]
		self._log.debug("Deleted record %s from %s", record_id, uri)
		return True

	def _collection(self, uri: str) -> dict[str, Record]:
		collection = self._data.get(uri)
		if collection is None:
			raise NotFoundError(f"Resource not found: {uri}")
		return collection

	@staticmethod
	def _explicit_id(data: dict[str, Any]) -> str | None:
		value = data.get("id")
		if value is None or value == "":
			return None
		return str(value)

	@staticmethod
	def _generate_id(collection: dict[str, Record]) -> str:
		record_id = _new_id()
		while record_id in collection:
			record_id = _new_id()
		return record_id
