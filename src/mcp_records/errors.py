"""Error taxonomy for mcp-records."""

from __future__ import annotations


class RecordsError(Exception):
	"""Base class for every error raised by mcp-records."""


class SchemaValidationError(RecordsError, ValueError):
	"""Input failed a schema check. Carries every (path, message) violation."""

	def __init__(self, issues: list[tuple[str, str]]) -> None:
		self.issues = issues
		detail = "; ".join(f"{path}: {message}" if path else message for path, message in issues)
		super().__init__(f"Invalid input: {detail}")


class NotFoundError(RecordsError, LookupError):
	"""A referenced resource does not exist."""


class RecordNotFoundError(NotFoundError):
	"""A referenced record does not exist inside an existing resource."""

	def __init__(self, record_id: str) -> None:
		self.record_id = record_id
		super().__init__(f"Record not found: {record_id}")


class ToolNotFoundError(NotFoundError):
	"""No tool is registered under the requested name."""

	def __init__(self, name: str) -> None:
		self.name = name
		super().__init__(f"Unknown tool: {name}")


class DuplicateResourceError(RecordsError, ValueError):
	"""A resource with the derived URI is already registered."""


class DuplicateRecordError(RecordsError, ValueError):
	"""A record with the given id already exists in the resource."""


class DuplicateToolError(RecordsError, ValueError):
	"""A tool with the given name is already registered."""


class HandlerError(RecordsError):
	"""A tool handler raised while executing."""

	def __init__(self, tool: str, cause: BaseException) -> None:
		self.tool = tool
		self.cause = cause
		super().__init__(f"Error in tool {tool}: {cause}")


class TransportError(RecordsError):
	"""I/O failure talking to a remote backend."""


class RemoteAPIError(TransportError):
	"""The remote API answered with a non-success HTTP status."""

	def __init__(self, status_code: int, reason: str, body: str = "") -> None:
		self.status_code = status_code
		self.reason = reason
		self.body = body
		super().__init__(f"Remote API error: {status_code} {reason}".rstrip())


class ResponseParseError(TransportError):
	"""The remote API answered with a body that could not be parsed."""
