"""Schema validation and JSON-Schema export for tool inputs.

Tool input schemas are pydantic models. validate_input() turns a raw argument
mapping into a model instance, collecting every violation into a single
SchemaValidationError; input_schema() exports the structural description that
list-tools advertises to callers.
"""

from __future__ import annotations

from typing import Any, TypeVar

import pydantic
from pydantic import BaseModel

from mcp_records.errors import SchemaValidationError

M = TypeVar("M", bound=BaseModel)


def _format_loc(loc: tuple[int | str, ...]) -> str:
	return ".".join(str(part) for part in loc)


def validate_input(model: type[M], raw: Any) -> M:
	"""Validate raw input against a model.

	Args:
		model: The pydantic model acting as the schema.
		raw: Untyped input, usually the decoded tool arguments. None is
			treated as an empty mapping.

	Returns:
		The validated model instance.

	Raises:
		SchemaValidationError: Listing every (field path, message) pair.
	"""
	if raw is None:
		raw = {}
	try:
		return model.model_validate(raw)
	except pydantic.ValidationError as exc:
		issues = [(_format_loc(err["loc"]), err["msg"]) for err in exc.errors()]
		raise SchemaValidationError(issues) from exc


def input_schema(model: type[BaseModel]) -> dict[str, Any]:
	"""Export a model as a JSON-Schema object description.

	Raises:
		ValueError: If the model does not describe an object.
	"""
	schema = model.model_json_schema(by_alias=True)
	if schema.get("type") != "object":
		raise ValueError(
			f"Invalid input schema to convert: expected an object but got {schema.get('type', 'no type')}"
		)
	return schema
