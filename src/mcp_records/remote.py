"""Remote paginated-table REST backend (Airtable-style API).

TableAPIClient speaks the HTTP API with httpx; RemoteTableDataService adapts
it to the DataService contract, exposing every table of one base as a
resource. Retry and backoff live here, not in the dispatcher.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

import httpx
from pydantic import BaseModel, ValidationError

from mcp_records import query as query_engine
from mcp_records.errors import (
	NotFoundError,
	RecordNotFoundError,
	RemoteAPIError,
	ResponseParseError,
	TransportError,
)
from mcp_records.models import QueryDescriptor, Record, Resource, SortSpec
from mcp_records.store import DataService

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.airtable.com"

_RETRY_STATUSES = {429, 500, 502, 503, 504}


# -- Response shapes --

class BaseInfo(BaseModel, extra="ignore"):
	id: str
	name: str
	permissionLevel: str = ""


class BasesResponse(BaseModel, extra="ignore"):
	bases: list[BaseInfo]
	offset: str | None = None


class TableInfo(BaseModel, extra="ignore"):
	id: str
	name: str
	description: str | None = None
	primaryFieldId: str | None = None
	fields: list[dict[str, Any]] = []
	views: list[dict[str, Any]] = []


class BaseSchemaResponse(BaseModel, extra="ignore"):
	tables: list[TableInfo]


class TableRecord(BaseModel, extra="ignore"):
	id: str
	fields: dict[str, Any] = {}
	createdTime: str | None = None


class RecordListResponse(BaseModel, extra="ignore"):
	records: list[TableRecord]
	offset: str | None = None


class DeletedRecord(BaseModel, extra="ignore"):
	id: str
	deleted: bool = True


class DeleteResponse(BaseModel, extra="ignore"):
	records: list[DeletedRecord]


def sort_params(sort: list[SortSpec] | None) -> list[tuple[str, str]]:
	"""Encode sort specs as indexed sort[i][field] / sort[i][direction] params."""
	params: list[tuple[str, str]] = []
	for i, spec in enumerate(sort or []):
		params.append((f"sort[{i}][field]", spec.field))
		params.append((f"sort[{i}][direction]", spec.direction))
	return params


class TableAPIClient:
	"""Async client for a paginated-table REST API."""

	def __init__(
		self,
		api_key: str,
		base_url: str = DEFAULT_BASE_URL,
		client: httpx.AsyncClient | None = None,
		max_retries: int = 3,
		backoff_seconds: float = 1.0,
		timeout: float = 30.0,
		log: logging.Logger | None = None,
	) -> None:
		self._api_key = api_key
		self._base_url = (base_url or DEFAULT_BASE_URL).rstrip("/")
		self._client = client or httpx.AsyncClient(timeout=timeout)
		self._max_retries = max(0, max_retries)
		self._backoff_seconds = backoff_seconds
		self._log = log or logger

	async def close(self) -> None:
		"""Close the underlying HTTP client."""
		await self._client.aclose()

	def _headers(self) -> dict[str, str]:
		return {
			"Authorization": f"Bearer {self._api_key}",
			"Accept": "application/json",
		}

	async def _request(
		self,
		method: str,
		path: str,
		params: list[tuple[str, str]] | None = None,
		body: Any = None,
	) -> Any:
		"""Send a request, retrying throttling and transient failures.

		Raises:
			RemoteAPIError: Non-success status after retries.
			ResponseParseError: Body is not valid JSON.
			TransportError: Connection-level failure after retries.
		"""
		url = f"{self._base_url}{path}"
		idempotent = method == "GET"
		attempt = 0
		while True:
			try:
				resp = await self._client.request(
					method, url, params=params, json=body, headers=self._headers(),
				)
			except httpx.TransportError as exc:
				if idempotent and attempt < self._max_retries:
					await self._backoff(attempt, f"{method} {path}: {exc}")
					attempt += 1
					continue
				raise TransportError(f"{method} {path} failed: {exc}") from exc

			retryable = resp.status_code == 429 or (idempotent and resp.status_code in _RETRY_STATUSES)
			if retryable and attempt < self._max_retries:
				await self._backoff(attempt, f"{method} {path}: HTTP {resp.status_code}")
				attempt += 1
				continue

			if not resp.is_success:
				raise RemoteAPIError(resp.status_code, resp.reason_phrase, resp.text)

			try:
				return json.loads(resp.text)
			except json.JSONDecodeError as exc:
				raise ResponseParseError(f"Failed to parse API response: {exc}") from exc

	async def _backoff(self, attempt: int, reason: str) -> None:
		delay = self._backoff_seconds * (2 ** attempt)
		self._log.warning("Retrying %s in %.1fs (attempt %d/%d)", reason, delay, attempt + 1, self._max_retries)
		await asyncio.sleep(delay)

	@staticmethod
	def _parse(model: type[BaseModel], data: Any) -> Any:
		try:
			return model.model_validate(data)
		except ValidationError as exc:
			raise ResponseParseError(f"Failed to parse API response: {exc}") from exc

	async def list_bases(self) -> list[BaseInfo]:
		data = await self._request("GET", "/v0/meta/bases")
		return self._parse(BasesResponse, data).bases

	async def get_base_schema(self, base_id: str) -> list[TableInfo]:
		data = await self._request("GET", f"/v0/meta/bases/{base_id}/tables")
		return self._parse(BaseSchemaResponse, data).tables

	async def list_records(
		self,
		base_id: str,
		table_id: str,
		max_records: int | None = None,
		sort: list[SortSpec] | None = None,
	) -> list[TableRecord]:
		"""List records, following pagination offsets until exhausted or max_records is reached."""
		base_params: list[tuple[str, str]] = []
		if max_records:
			base_params.append(("maxRecords", str(max_records)))
		base_params.extend(sort_params(sort))

		records: list[TableRecord] = []
		offset: str | None = None
		while True:
			params = list(base_params)
			if offset:
				params.append(("offset", offset))
			data = await self._request("GET", f"/v0/{base_id}/{table_id}", params=params)
			page = self._parse(RecordListResponse, data)
			records.extend(page.records)
			offset = page.offset
			if not offset or (max_records and len(records) >= max_records):
				break
		return records[:max_records] if max_records else records

	async def get_record(self, base_id: str, table_id: str, record_id: str) -> TableRecord:
		data = await self._request("GET", f"/v0/{base_id}/{table_id}/{record_id}")
		return self._parse(TableRecord, data)

	async def create_record(self, base_id: str, table_id: str, fields: dict[str, Any]) -> TableRecord:
		data = await self._request("POST", f"/v0/{base_id}/{table_id}", body={"fields": fields})
		return self._parse(TableRecord, data)

	async def update_records(
		self, base_id: str, table_id: str, records: list[dict[str, Any]],
	) -> list[TableRecord]:
		data = await self._request("PATCH", f"/v0/{base_id}/{table_id}", body={"records": records})
		return self._parse(RecordListResponse, data).records

	async def delete_records(self, base_id: str, table_id: str, record_ids: list[str]) -> list[dict[str, str]]:
		params = [("records[]", rid) for rid in record_ids]
		data = await self._request("DELETE", f"/v0/{base_id}/{table_id}", params=params)
		return [{"id": r.id} for r in self._parse(DeleteResponse, data).records if r.deleted]


def _flatten(record: TableRecord) -> Record:
	flat: Record = {"id": record.id, **record.fields}
	if record.createdTime:
		flat["createdAt"] = record.createdTime
	return flat


def _writable_fields(data: dict[str, Any]) -> dict[str, Any]:
	return {k: v for k, v in data.items() if k not in ("id", "createdAt", "updatedAt")}


class RemoteTableDataService(DataService):
	"""DataService over one base of a remote table API.

	Each table becomes a resource at ``<scheme><base_id>/<table_id>``. A bare
	limit is pushed to the API. Any search, filter or sort fetches the whole
	table and runs through the local query engine, so ordering matches the
	in-memory backend.
	"""

	def __init__(
		self,
		client: TableAPIClient,
		base_id: str,
		scheme: str = "table://",
		log: logging.Logger | None = None,
	) -> None:
		self._client = client
		self._base_id = base_id
		self._scheme = scheme
		self._log = log or logger
		self._tables: dict[str, tuple[str, Resource]] = {}

	async def close(self) -> None:
		await self._client.close()

	def _uri(self, table_id: str) -> str:
		return f"{self._scheme}{self._base_id}/{table_id}"

	async def _refresh(self) -> None:
		tables = await self._client.get_base_schema(self._base_id)
		self._tables = {}
		for table in tables:
			resource = Resource(
				uri=self._uri(table.id),
				name=table.name,
				description=table.description,
				metadata={
					"baseId": self._base_id,
					"tableId": table.id,
					"primaryFieldId": table.primaryFieldId,
					"fields": [f.get("name") for f in table.fields],
				},
			)
			self._tables[resource.uri] = (table.id, resource)
		self._log.debug("Loaded %d tables from base %s", len(self._tables), self._base_id)

	async def _table_id(self, uri: str) -> str:
		if uri not in self._tables:
			await self._refresh()
		entry = self._tables.get(uri)
		if entry is None:
			raise NotFoundError(f"Resource not found: {uri}")
		return entry[0]

	async def list_resources(self) -> list[Resource]:
		await self._refresh()
		return [resource for _, resource in self._tables.values()]

	async def get_resource(self, uri: str) -> Resource:
		await self._table_id(uri)
		return self._tables[uri][1]

	async def query_resource(
		self, uri: str, query: QueryDescriptor | dict[str, Any] | None = None,
	) -> list[Record]:
		table_id = await self._table_id(uri)
		if not isinstance(query, QueryDescriptor):
			query = QueryDescriptor.from_mapping(query)

		if query.search_term or query.filter or query.sort:
			records = await self._client.list_records(self._base_id, table_id)
			return query_engine.execute([_flatten(r) for r in records], query)

		max_records = query.max_records if query.max_records and query.max_records > 0 else None
		records = await self._client.list_records(self._base_id, table_id, max_records=max_records)
		return [_flatten(r) for r in records]

	async def get_record(self, uri: str, record_id: str) -> Record:
		table_id = await self._table_id(uri)
		try:
			record = await self._client.get_record(self._base_id, table_id, record_id)
		except RemoteAPIError as exc:
			if exc.status_code == 404:
				raise RecordNotFoundError(record_id) from exc
			raise
		return _flatten(record)

	async def create_record(self, uri: str, data: dict[str, Any]) -> Record:
		table_id = await self._table_id(uri)
		record = await self._client.create_record(self._base_id, table_id, _writable_fields(data))
		return _flatten(record)

	async def update_record(self, uri: str, record_id: str, data: dict[str, Any]) -> Record:
		table_id = await self._table_id(uri)
		try:
			updated = await self._client.update_records(
				self._base_id, table_id, [{"id": record_id, "fields": _writable_fields(data)}],
			)
		except RemoteAPIError as exc:
			if exc.status_code == 404:
				raise RecordNotFoundError(record_id) from exc
			raise
		if not updated:
			raise RecordNotFoundError(record_id)
		return _flatten(updated[0])

	async def delete_record(self, uri: str, record_id: str) -> bool:
		table_id = await self._table_id(uri)
		try:
			deleted = await self._client.delete_records(self._base_id, table_id, [record_id])
		except RemoteAPIError as exc:
			if exc.status_code == 404:
				raise RecordNotFoundError(record_id) from exc
			raise
		return any(d["id"] == record_id for d in deleted)
