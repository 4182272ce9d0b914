"""Unit tests for the deepwatch CLI."""

from collections.abc import AsyncIterator
import json
from pathlib import Path
import re
from typing import Any
from unittest.mock import MagicMock, patch

import pytest
from typer.testing import CliRunner

from deepwatch import __version__
from deepwatch.cli.main import app

runner = CliRunner()


def clean(output: str) -> str:
    """Strip ANSI codes (Rich adds color formatting)."""
    return re.sub(r"\x1b\[[0-9;]*m", "", output)


@pytest.fixture
def home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    fake_home = tmp_path / "home"
    fake_home.mkdir()
    monkeypatch.setattr(Path, "home", lambda: fake_home)
    return fake_home


def write_trace(path: Path) -> Path:
    records = [
        {
            "mode": "messages",
            "namespace": [],
            "data": [
                {
                    "content": "",
                    "tool_calls": [{"id": "t1", "name": "task", "args": {"description": "research agents"}}],
                },
                {"langgraph_node": "model"},
            ],
        },
        {
            "mode": "messages",
            "namespace": ["tools:frag"],
            "data": [{"content": "reading docs"}, {}],
        },
        {
            "mode": "updates",
            "namespace": [],
            "data": {"tools": {"todos": [{"content": "Write agent skills", "status": "in_progress"}]}},
        },
        {
            "mode": "updates",
            "namespace": [],
            "data": {
                "tools": {
                    "messages": [
                        {"type": "tool", "tool_call_id": "t1", "name": "task", "content": "found topics"}
                    ]
                }
            },
        },
    ]
    path.write_text("\n".join(json.dumps(r) for r in records) + "\n", encoding="utf-8")
    return path


class TestMainApp:
    """Tests for the main Typer application."""

    def test_app_has_help(self) -> None:
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "deepwatch" in result.output
        assert "Live monitor" in clean(result.output)

    def test_version_option(self) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in clean(result.output)

    def test_version_short_option(self) -> None:
        result = runner.invoke(app, ["-V"])
        assert result.exit_code == 0
        assert __version__ in clean(result.output)

    @pytest.mark.parametrize("command", ["run", "replay", "config"])
    def test_commands_registered(self, command: str) -> None:
        result = runner.invoke(app, [command, "--help"])
        assert result.exit_code == 0


class TestReplayCommand:
    """Tests for `deepwatch replay`."""

    def test_replay_prints_tables(self, home: Path, tmp_path: Path) -> None:
        trace = write_trace(tmp_path / "trace.jsonl")

        result = runner.invoke(app, ["replay", str(trace)])

        output = clean(result.output)
        assert result.exit_code == 0, output
        assert "Run Summary" in output
        assert "Subagents" in output
        assert "research" in output
        assert "Todo List" in output
        assert "Write agent skills" in output
        assert "Agent completed. Generated 0 skill files." in output

    def test_missing_trace(self, home: Path, tmp_path: Path) -> None:
        result = runner.invoke(app, ["replay", str(tmp_path / "missing.jsonl")])

        assert result.exit_code == 1
        assert "Trace file not found" in clean(result.output)

    def test_corrupt_trace_fails(self, home: Path, tmp_path: Path) -> None:
        trace = tmp_path / "bad.jsonl"
        trace.write_text("{not json\n", encoding="utf-8")

        result = runner.invoke(app, ["replay", str(trace)])

        assert result.exit_code == 1
        assert "Agent Failed" in clean(result.output)

    def test_invalid_config(self, home: Path, tmp_path: Path) -> None:
        trace = write_trace(tmp_path / "trace.jsonl")
        bad_config = tmp_path / "config.yaml"
        bad_config.write_text("monitor:\n  log_capacity: -1\n", encoding="utf-8")

        result = runner.invoke(app, ["replay", str(trace), "--config", str(bad_config)])

        assert result.exit_code == 1
        assert "Configuration Error" in clean(result.output)


class TestRunCommand:
    """Tests for `deepwatch run` with the engine replaced."""

    @staticmethod
    def fake_stream(*chunks: Any) -> AsyncIterator[Any]:
        async def stream() -> AsyncIterator[Any]:
            for chunk in chunks:
                yield chunk

        return stream()

    def test_plain_run_records_trace(self, home: Path, tmp_path: Path) -> None:
        trace = tmp_path / "run.jsonl"
        chunk = ("updates", {"tools": {"todos": [{"content": "Plan", "status": "pending"}]}})

        with (
            patch("deepwatch.engine.create_skills_agent", return_value=MagicMock()) as create,
            patch("deepwatch.engine.stream_agent", return_value=self.fake_stream(chunk)) as stream,
        ):
            result = runner.invoke(app, ["run", "--no-tui", "--trace-file", str(trace), "-r", "hello"])

        output = clean(result.output)
        assert result.exit_code == 0, output
        create.assert_called_once()
        assert stream.call_args.args[1] == "hello"
        assert "Todo list updated (1 items)" in output
        assert "Agent completed. Generated 0 skill files." in output
        assert len(trace.read_text(encoding="utf-8").splitlines()) == 1

    def test_stream_failure_exits_non_zero(self, home: Path) -> None:
        async def broken() -> AsyncIterator[Any]:
            raise RuntimeError("model provider unavailable")
            yield  # pragma: no cover

        with (
            patch("deepwatch.engine.create_skills_agent", return_value=MagicMock()),
            patch("deepwatch.engine.stream_agent", return_value=broken()),
        ):
            result = runner.invoke(app, ["run", "--no-tui"])

        assert result.exit_code == 1
        assert "model provider unavailable" in clean(result.output)

    def test_missing_engine_dependency(self, home: Path) -> None:
        with patch("deepwatch.engine.create_skills_agent", side_effect=ImportError("deepagents missing")):
            result = runner.invoke(app, ["run", "--no-tui"])

        assert result.exit_code == 1
        assert "Missing Dependency" in clean(result.output)


class TestConfigCommands:
    """Tests for `deepwatch config`."""

    def test_init_then_refuse(self, home: Path) -> None:
        first = runner.invoke(app, ["config", "init"])
        second = runner.invoke(app, ["config", "init"])
        forced = runner.invoke(app, ["config", "init", "--force"])

        assert first.exit_code == 0
        assert (home / ".deepwatch" / "config.yaml").is_file()
        assert second.exit_code == 1
        assert "--force" in clean(second.output)
        assert forced.exit_code == 0

    def test_show_all(self, home: Path) -> None:
        result = runner.invoke(app, ["config", "show"])

        output = clean(result.output)
        assert result.exit_code == 0
        assert "monitor.log_capacity" in output
        assert "protocol.dispatch_action" in output

    def test_show_section(self, home: Path) -> None:
        result = runner.invoke(app, ["config", "show", "protocol"])

        output = clean(result.output)
        assert result.exit_code == 0
        assert "protocol.namespace_prefix" in output
        assert "monitor.log_capacity" not in output

    def test_show_unknown_section(self, home: Path) -> None:
        result = runner.invoke(app, ["config", "show", "nope"])

        assert result.exit_code == 1
        assert "Unknown section" in clean(result.output)

    def test_path(self, home: Path) -> None:
        result = runner.invoke(app, ["config", "path"])

        assert result.exit_code == 0
        assert ".deepwatch" in clean(result.output)
