"""Tests for the subreg CLI."""

from __future__ import annotations

import json

import pytest
from rich.console import Console
from typer.testing import CliRunner

from subreg.cli import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for name in ("SUBREG_AGENTS_DIR", "SUBREG_SEARCH_CACHE_SIZE", "SUBREG_CACHE_TTL"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr("subreg.cli.console", Console(width=200))


class TestSearchCommand:
    def test_json_output(self) -> None:
        result = runner.invoke(app, ["search", "security audit", "--json"])
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["capsules"][0]["id"] == "security-auditor"
        assert data["total"] == 1

    def test_table_output(self) -> None:
        result = runner.invoke(app, ["search", "security audit"])
        assert result.exit_code == 0
        assert "security-auditor" in result.stdout

    def test_invalid_latency(self) -> None:
        result = runner.invoke(app, ["search", "x", "--latency", "medium"])
        assert result.exit_code == 1


class TestShowCommand:
    def test_alias(self) -> None:
        result = runner.invoke(app, ["show", "Test-Runner"])
        assert result.exit_code == 0
        assert json.loads(result.stdout)["id"] == "test-runner"

    def test_unknown(self) -> None:
        result = runner.invoke(app, ["show", "ghost"])
        assert result.exit_code == 1


class TestListCommand:
    def test_lists_builtins(self) -> None:
        result = runner.invoke(app, ["list"])
        assert result.exit_code == 0
        for name in ("test-runner", "migration-planner", "refactor-assistant"):
            assert name in result.stdout

    def test_page_size_from_config_file(self, tmp_path) -> None:
        config = tmp_path / "subreg.json"
        config.write_text(json.dumps({"search": {"default_page_size": 1}}))

        result = runner.invoke(app, ["list", "--config", str(config)])
        assert result.exit_code == 0
        assert "1 of 5 subagents (more available)" in result.stdout
        assert "test-runner" in result.stdout
        assert "refactor-assistant" not in result.stdout

    def test_page_size_option_overrides_config(self, tmp_path) -> None:
        config = tmp_path / "subreg.json"
        config.write_text(json.dumps({"search": {"default_page_size": 1}}))

        result = runner.invoke(app, ["list", "--config", str(config), "--page-size", "5"])
        assert result.exit_code == 0
        assert "5 of 5 subagents" in result.stdout
        assert "refactor-assistant" in result.stdout

    def test_agents_dir_from_config_file(self, tmp_path) -> None:
        agents = tmp_path / "agents"
        agents.mkdir()
        (agents / "linter.md").write_text("---\nid: linter\n---\nYou lint code.\n")
        config = tmp_path / "subreg.json"
        config.write_text(json.dumps({"include_builtin": False, "agents_dir": str(agents)}))

        result = runner.invoke(app, ["show", "linter", "--config", str(config)])
        assert result.exit_code == 0
        assert json.loads(result.stdout)["system_prompt"] == "You lint code."
