"""CLI interface for mcp-records."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from mcp_records.config import DEFAULT_CONFIG_TOML, RecordsConfig, load_config_or_default, validate_config

DEFAULT_CONFIG = "mcp-records.toml"


def build_parser() -> argparse.ArgumentParser:
	parser = argparse.ArgumentParser(
		prog="mcp-records",
		description="mcp-records - MCP server for resource discovery and record tools",
	)
	sub = parser.add_subparsers(dest="command")

	# mcp-records serve
	serve = sub.add_parser("serve", help="Start the MCP server (stdio)")
	serve.add_argument("--config", default=DEFAULT_CONFIG, help="Config file path")

	# mcp-records tools
	tools = sub.add_parser("tools", help="Print the tool listing as JSON")
	tools.add_argument("--config", default=DEFAULT_CONFIG, help="Config file path")

	# mcp-records resources
	resources = sub.add_parser("resources", help="Print the resource listing as JSON")
	resources.add_argument("--config", default=DEFAULT_CONFIG, help="Config file path")

	# mcp-records init
	init_cmd = sub.add_parser("init", help="Write a default mcp-records.toml")
	init_cmd.add_argument("path", nargs="?", default=".")
	init_cmd.add_argument("--force", action="store_true", help="Overwrite an existing config")

	# mcp-records validate-config
	vc = sub.add_parser("validate-config", help="Validate config file semantically")
	vc.add_argument("--config", default=DEFAULT_CONFIG, help="Config file path")

	return parser


def _load(args: argparse.Namespace) -> RecordsConfig:
	config = load_config_or_default(args.config)
	logging.getLogger().setLevel(config.logging.level)
	return config


def cmd_serve(args: argparse.Namespace) -> int:
	"""Start the MCP server."""
	from mcp_records.server import run_mcp_server

	run_mcp_server(_load(args))
	return 0


def cmd_tools(args: argparse.Namespace) -> int:
	from mcp_records.server import create_dispatcher

	dispatcher = create_dispatcher(_load(args))
	try:
		print(json.dumps(dispatcher.list_tools(), indent=2))
	finally:
		asyncio.run(dispatcher.service.close())
	return 0


def cmd_resources(args: argparse.Namespace) -> int:
	from mcp_records.server import create_dispatcher

	dispatcher = create_dispatcher(_load(args))

	async def _list() -> list[dict[str, object]]:
		try:
			return await dispatcher.list_resources()
		finally:
			await dispatcher.service.close()

	print(json.dumps(asyncio.run(_list()), indent=2))
	return 0


def cmd_init(args: argparse.Namespace) -> int:
	target = Path(args.path)
	config_path = target / DEFAULT_CONFIG if target.is_dir() or not target.suffix else target
	if config_path.exists() and not args.force:
		print(f"Config already exists: {config_path} (use --force to overwrite)")
		return 1
	config_path.parent.mkdir(parents=True, exist_ok=True)
	config_path.write_text(DEFAULT_CONFIG_TOML)
	print(f"Wrote {config_path}")
	return 0


def cmd_validate_config(args: argparse.Namespace) -> int:
	config = load_config_or_default(args.config)
	issues = validate_config(config)

	errors = [(lvl, msg) for lvl, msg in issues if lvl == "error"]
	warnings = [(lvl, msg) for lvl, msg in issues if lvl == "warning"]

	for level, msg in issues:
		print(f"[{level.upper()}] {msg}")

	if not issues:
		print("Config OK")

	print(f"\n{len(errors)} error(s), {len(warnings)} warning(s)")
	return 1 if errors else 0


COMMANDS = {
	"serve": cmd_serve,
	"tools": cmd_tools,
	"resources": cmd_resources,
	"init": cmd_init,
	"validate-config": cmd_validate_config,
}


def main(argv: list[str] | None = None) -> int:
	# stdout carries the stdio protocol; all diagnostics go to stderr.
	logging.basicConfig(
		level=logging.INFO,
		format="%(asctime)s %(levelname)s %(name)s: %(message)s",
		datefmt="%H:%M:%S",
		stream=sys.stderr,
		force=True,
	)
	parser = build_parser()
	args = parser.parse_args(argv)

	if args.command is None:
		parser.print_help()
		return 0

	handler = COMMANDS.get(args.command)
	if handler is None:
		print(f"Unknown command: {args.command}")
		return 1

	try:
		return handler(args)
	except (FileNotFoundError, ValueError) as e:
		print(f"Error: {e}", file=sys.stderr)
		return 1


if __name__ == "__main__":
	sys.exit(main())
