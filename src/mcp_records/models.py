"""Data models for mcp-records: resources, query descriptors, tool arguments."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Literal
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

Record = dict[str, Any]

SortDirection = Literal["asc", "desc"]


def _now_iso() -> str:
	return datetime.now(timezone.utc).isoformat()


def _new_id() -> str:
	return uuid4().hex[:12]


def record_limit(value: float | None) -> int | None:
	"""Truncate a numeric limit toward zero; non-finite values mean no limit."""
	if value is None or not math.isfinite(value):
		return None
	return int(value)


@dataclass
class Resource:
	"""A named, URI-addressed collection of records."""

	uri: str
	name: str
	description: str | None = None
	metadata: dict[str, Any] = field(default_factory=dict)

	def to_dict(self) -> dict[str, Any]:
		data: dict[str, Any] = {"uri": self.uri, "name": self.name}
		if self.description is not None:
			data["description"] = self.description
		if self.metadata:
			data["metadata"] = dict(self.metadata)
		return data


class WireModel(BaseModel):
	"""Base for tool argument models: snake_case in Python, camelCase on the wire."""

	model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SortSpec(WireModel):
	field: str = Field(description="Field name to sort by")
	direction: SortDirection = Field(
		default="asc",
		description="Sort direction. Defaults to asc (ascending)",
	)


@dataclass
class QueryDescriptor:
	"""Search/filter/sort/limit request handed to the query engine."""

	search_term: str | None = None
	fields: list[str] | None = None
	filter: dict[str, Any] | None = None
	sort: list[SortSpec] = field(default_factory=list)
	max_records: int | None = None

	@classmethod
	def from_mapping(cls, query: dict[str, Any] | None) -> QueryDescriptor:
		"""Build a descriptor from an untyped camelCase query map.

		Entries with an unexpected shape are ignored rather than rejected, so a
		backend can forward whatever the caller sent.
		"""
		if not query:
			return cls()

		search_term = query.get("searchTerm")
		if not isinstance(search_term, str):
			search_term = None

		fields = query.get("fields")
		if isinstance(fields, (list, tuple)):
			fields = [str(f) for f in fields]
		else:
			fields = None

		flt = query.get("filter")
		if not isinstance(flt, dict):
			flt = None

		sort: list[SortSpec] = []
		raw_sort = query.get("sort")
		if isinstance(raw_sort, (list, tuple)):
			for item in raw_sort:
				if isinstance(item, SortSpec):
					sort.append(item)
				elif isinstance(item, dict) and isinstance(item.get("field"), str):
					direction = "desc" if item.get("direction") == "desc" else "asc"
					sort.append(SortSpec(field=item["field"], direction=direction))

		max_records = query.get("maxRecords")
		if isinstance(max_records, bool) or not isinstance(max_records, (int, float)):
			max_records = None
		else:
			max_records = record_limit(max_records)

		return cls(
			search_term=search_term,
			fields=fields,
			filter=flt,
			sort=sort,
			max_records=max_records,
		)

	def to_mapping(self) -> dict[str, Any]:
		"""Inverse of from_mapping; omits unset entries."""
		query: dict[str, Any] = {}
		if self.search_term is not None:
			query["searchTerm"] = self.search_term
		if self.fields is not None:
			query["fields"] = list(self.fields)
		if self.filter is not None:
			query["filter"] = dict(self.filter)
		if self.sort:
			query["sort"] = [{"field": s.field, "direction": s.direction} for s in self.sort]
		if self.max_records is not None:
			query["maxRecords"] = self.max_records
		return query


# -- Built-in tool arguments --

class ListRecordsArgs(WireModel):
	resource_uri: str = Field(description="URI of the resource to query")
	max_records: float | None = Field(
		default=None,
		description="Maximum number of records to return. Omit, or pass 0 or a negative number, for no limit.",
	)
	filter: dict[str, Any] | None = Field(
		default=None,
		description="Exact-match filter criteria, field name to value",
	)
	sort: list[SortSpec] | None = Field(
		default=None,
		description="Specifies how to sort the records",
	)


class SearchRecordsArgs(WireModel):
	resource_uri: str = Field(description="URI of the resource")
	search_term: str = Field(description="Text to search for in records")
	fields: list[str] | None = Field(
		default=None,
		description="Specific fields to search in. If not provided, searches all text fields.",
	)
	max_records: float | None = Field(
		default=None,
		description="Maximum number of records to return. Omit, or pass 0 or a negative number, for no limit.",
	)


class GetRecordArgs(WireModel):
	resource_uri: str = Field(description="URI of the resource")
	record_id: str = Field(description="ID of the record to retrieve")


class CreateRecordArgs(WireModel):
	resource_uri: str = Field(description="URI of the resource")
	data: dict[str, Any] = Field(description="Record data to create")


class UpdateRecordArgs(WireModel):
	resource_uri: str = Field(description="URI of the resource")
	record_id: str = Field(description="ID of the record to update")
	data: dict[str, Any] = Field(description="New record data")


class DeleteRecordArgs(WireModel):
	resource_uri: str = Field(description="URI of the resource")
	record_id: str = Field(description="ID of the record to delete")
