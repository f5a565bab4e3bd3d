"""TOML configuration loader for mcp-records."""

from __future__ import annotations

import logging
import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

API_KEY_ENV = "MCP_RECORDS_API_KEY"

BACKEND_TYPES = ("memory", "remote")


@dataclass
class ServerConfig:
	"""Identity advertised to MCP clients."""

	name: str = "mcp-records"
	version: str = "0.1.0"
	resource_prefix: str = "mcp://"


@dataclass
class LoggingConfig:
	level: str = "INFO"


@dataclass
class RemoteConfig:
	"""Paginated-table REST API backend settings."""

	api_key: str = ""
	base_url: str = "https://api.airtable.com"
	base_id: str = ""
	max_retries: int = 3
	backoff_seconds: float = 1.0
	timeout: float = 30.0


@dataclass
class BackendConfig:
	"""Which DataService backs the dispatcher."""

	type: str = "memory"  # memory/remote
	seed_demo: bool = True  # install the example users resource and tools
	remote: RemoteConfig = field(default_factory=RemoteConfig)


@dataclass
class RecordsConfig:
	"""Top-level mcp-records configuration."""

	server: ServerConfig = field(default_factory=ServerConfig)
	logging: LoggingConfig = field(default_factory=LoggingConfig)
	backend: BackendConfig = field(default_factory=BackendConfig)


DEFAULT_CONFIG_TOML = """\
[server]
name = "mcp-records"
version = "0.1.0"
resource_prefix = "mcp://"

[logging]
level = "INFO"

[backend]
type = "memory"
seed_demo = true

[backend.remote]
# api_key falls back to the MCP_RECORDS_API_KEY environment variable
base_url = "https://api.airtable.com"
base_id = ""
max_retries = 3
timeout = 30.0
"""


def _build_server(data: dict[str, Any]) -> ServerConfig:
	sc = ServerConfig()
	for key in ("name", "version", "resource_prefix"):
		if key in data:
			setattr(sc, key, str(data[key]))
	return sc


def _build_logging(data: dict[str, Any]) -> LoggingConfig:
	lc = LoggingConfig()
	if "level" in data:
		lc.level = str(data["level"]).upper()
	return lc


def _build_remote(data: dict[str, Any]) -> RemoteConfig:
	rc = RemoteConfig()
	for key in ("api_key", "base_url", "base_id"):
		if key in data:
			setattr(rc, key, str(data[key]))
	if "max_retries" in data:
		rc.max_retries = int(data["max_retries"])
	for key in ("backoff_seconds", "timeout"):
		if key in data:
			setattr(rc, key, float(data[key]))
	return rc


def _build_backend(data: dict[str, Any]) -> BackendConfig:
	bc = BackendConfig()
	if "type" in data:
		bc.type = str(data["type"])
	if "seed_demo" in data:
		bc.seed_demo = bool(data["seed_demo"])
	if "remote" in data:
		bc.remote = _build_remote(data["remote"])
	return bc


def _apply_env(rc: RecordsConfig) -> RecordsConfig:
	remote = rc.backend.remote
	if not remote.api_key:
		remote.api_key = os.environ.get(API_KEY_ENV, "")
	return rc


def load_config(path: str | Path) -> RecordsConfig:
	"""Load an mcp-records.toml config file.

	Args:
		path: Path to the TOML config file.

	Returns:
		Parsed RecordsConfig.

	Raises:
		FileNotFoundError: If config file doesn't exist.
		tomllib.TOMLDecodeError: If config is invalid TOML.
	"""
	config_path = Path(path)
	if not config_path.exists():
		raise FileNotFoundError(f"Config file not found: {config_path}")

	with open(config_path, "rb") as f:
		data = tomllib.load(f)

	rc = RecordsConfig()
	if "server" in data:
		rc.server = _build_server(data["server"])
	if "logging" in data:
		rc.logging = _build_logging(data["logging"])
	if "backend" in data:
		rc.backend = _build_backend(data["backend"])
	return _apply_env(rc)


def load_config_or_default(path: str | Path | None) -> RecordsConfig:
	"""Load path when it exists, else fall back to defaults (plus env overrides)."""
	if path is not None and Path(path).exists():
		return load_config(path)
	return _apply_env(RecordsConfig())


def validate_config(config: RecordsConfig) -> list[tuple[str, str]]:
	"""Perform semantic validation of a loaded RecordsConfig.

	Returns a list of (level, message) tuples where level is 'error' or 'warning'.
	"""
	issues: list[tuple[str, str]] = []

	if "://" not in config.server.resource_prefix:
		issues.append((
			"error",
			f"server.resource_prefix must be scheme-qualified (e.g. 'mcp://'): {config.server.resource_prefix!r}",
		))

	if not isinstance(logging.getLevelName(config.logging.level), int):
		issues.append(("error", f"logging.level is not a valid level: {config.logging.level}"))

	backend = config.backend
	if backend.type not in BACKEND_TYPES:
		issues.append(("error", f"backend.type must be one of {', '.join(BACKEND_TYPES)}: {backend.type}"))
	elif backend.type == "remote":
		if not backend.remote.api_key:
			issues.append(("error", f"backend.remote.api_key is empty and {API_KEY_ENV} is not set"))
		if not backend.remote.base_id:
			issues.append(("error", "backend.remote.base_id must not be empty"))
		if not backend.remote.base_url.startswith(("http://", "https://")):
			issues.append(("error", f"backend.remote.base_url is not an http(s) URL: {backend.remote.base_url}"))
		if backend.seed_demo:
			issues.append(("warning", "backend.seed_demo only applies to the memory backend"))

	if backend.remote.max_retries < 0:
		issues.append(("warning", f"backend.remote.max_retries is negative: {backend.remote.max_retries}"))
	if backend.remote.timeout <= 0:
		issues.append(("warning", f"backend.remote.timeout is not positive: {backend.remote.timeout}"))

	return issues
