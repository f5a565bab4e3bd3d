"""Tests for CLI argument parsing and commands."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest

from mcp_records.cli import DEFAULT_CONFIG, build_parser, cmd_init, main
from mcp_records.config import API_KEY_ENV, DEFAULT_CONFIG_TOML
from mcp_records.remote import TableAPIClient


class TestArgParsing:
	def test_init_default_path(self) -> None:
		args = build_parser().parse_args(["init"])
		assert args.command == "init"
		assert args.path == "."
		assert args.force is False

	def test_serve_default_config(self) -> None:
		args = build_parser().parse_args(["serve"])
		assert args.config == DEFAULT_CONFIG

	def test_no_command_returns_0(self) -> None:
		assert main([]) == 0


class TestInit:
	def test_creates_config(self, tmp_path: Path) -> None:
		args = build_parser().parse_args(["init", str(tmp_path)])
		assert cmd_init(args) == 0
		assert (tmp_path / DEFAULT_CONFIG).read_text() == DEFAULT_CONFIG_TOML

	def test_refuses_overwrite(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
		(tmp_path / DEFAULT_CONFIG).write_text("# mine\n")
		assert main(["init", str(tmp_path)]) == 1
		assert "already exists" in capsys.readouterr().out
		assert (tmp_path / DEFAULT_CONFIG).read_text() == "# mine\n"

	def test_force_overwrites(self, tmp_path: Path) -> None:
		(tmp_path / DEFAULT_CONFIG).write_text("# mine\n")
		assert main(["init", str(tmp_path), "--force"]) == 0
		assert (tmp_path / DEFAULT_CONFIG).read_text() == DEFAULT_CONFIG_TOML

	def test_explicit_file_path(self, tmp_path: Path) -> None:
		target = tmp_path / "conf" / "custom.toml"
		assert main(["init", str(target)]) == 0
		assert target.exists()


class TestListings:
	def test_tools_prints_demo_listing(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
		assert main(["tools", "--config", str(tmp_path / "absent.toml")]) == 0
		tools = json.loads(capsys.readouterr().out)
		names = [t["name"] for t in tools]
		assert names[0] == "list_records"
		assert names[-1] == "filter_users_by_role"

	def test_tools_closes_remote_client(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
		config = tmp_path / DEFAULT_CONFIG
		config.write_text(
			'[backend]\ntype = "remote"\nseed_demo = false\n'
			'[backend.remote]\napi_key = "k"\nbase_id = "appX"\n'
		)
		with patch.object(TableAPIClient, "close", new_callable=AsyncMock) as mock_close:
			assert main(["tools", "--config", str(config)]) == 0
		mock_close.assert_awaited_once()
		assert len(json.loads(capsys.readouterr().out)) == 6

	def test_resources_prints_users(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
		assert main(["resources", "--config", str(tmp_path / "absent.toml")]) == 0
		resources = json.loads(capsys.readouterr().out)
		assert resources == [{
			"uri": "mcp://users",
			"name": "Users",
			"mimeType": "application/json",
			"description": "User management resource",
		}]

	def test_demo_disabled(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
		config = tmp_path / DEFAULT_CONFIG
		config.write_text("[backend]\nseed_demo = false\n")
		assert main(["resources", "--config", str(config)]) == 0
		assert json.loads(capsys.readouterr().out) == []

	def test_unknown_backend_is_an_error(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
		config = tmp_path / DEFAULT_CONFIG
		config.write_text('[backend]\ntype = "sqlite"\n')
		assert main(["tools", "--config", str(config)]) == 1
		assert "Unknown backend type: sqlite" in capsys.readouterr().err


class TestValidateConfig:
	def test_ok(self, tmp_path: Path, capsys: pytest.CaptureFixture[str], monkeypatch: pytest.MonkeyPatch) -> None:
		monkeypatch.delenv(API_KEY_ENV, raising=False)
		assert main(["validate-config", "--config", str(tmp_path / "absent.toml")]) == 0
		out = capsys.readouterr().out
		assert "Config OK" in out
		assert "0 error(s), 0 warning(s)" in out

	def test_errors_reported(
		self, tmp_path: Path, capsys: pytest.CaptureFixture[str], monkeypatch: pytest.MonkeyPatch,
	) -> None:
		monkeypatch.delenv(API_KEY_ENV, raising=False)
		config = tmp_path / DEFAULT_CONFIG
		config.write_text('[backend]\ntype = "remote"\n')
		assert main(["validate-config", "--config", str(config)]) == 1
		out = capsys.readouterr().out
		assert "[ERROR] backend.remote.api_key is empty" in out
		assert "[WARNING] backend.seed_demo only applies to the memory backend" in out
		assert "2 error(s), 1 warning(s)" in out


class TestServe:
	def test_serve_runs_server_with_loaded_config(self, tmp_path: Path) -> None:
		config = tmp_path / DEFAULT_CONFIG
		config.write_text('[server]\nname = "custom"\n')
		with patch("mcp_records.server.run_mcp_server") as mock_run:
			assert main(["serve", "--config", str(config)]) == 0
		mock_run.assert_called_once()
		assert mock_run.call_args[0][0].server.name == "custom"
