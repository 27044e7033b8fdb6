"""Tests for the heartbeat-events CLI."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from heartbeat_events.cli import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("HEARTBEAT_EVENTS_CONFIG", raising=False)
    monkeypatch.delenv("HEARTBEAT_EVENTS_MAX_HISTORY", raising=False)


def _write_events(path: Path, payloads: list[dict]) -> Path:
    path.write_text(
        "\n".join(json.dumps(payload) for payload in payloads) + "\n",
        encoding="utf-8",
    )
    return path


@pytest.fixture
def events_file(tmp_path: Path) -> Path:
    return _write_events(
        tmp_path / "events.jsonl",
        [
            {"status": "sent", "durationMs": 1200, "channel": "telegram", "to": "42"},
            {"status": "ok-empty", "durationMs": 300},
            {"status": "failed", "reason": "timeout"},
        ],
    )


class TestReplay:
    """Tests for the replay command."""

    def test_prints_history_and_summary(self, events_file: Path) -> None:
        result = runner.invoke(app, ["replay", str(events_file)])
        assert result.exit_code == 0, result.output
        assert "-> telegram:42" in result.output
        assert "reason=timeout" in result.output
        assert "Events: 3" in result.output
        assert "failed: 1" in result.output

    def test_limit(self, events_file: Path) -> None:
        result = runner.invoke(app, ["replay", str(events_file), "--limit", "1", "--json"])
        assert result.exit_code == 0, result.output
        payloads = json.loads(result.stdout)
        assert len(payloads) == 1
        assert payloads[0]["status"] == "failed"
        assert payloads[0]["ts"] > 0

    def test_max_history_evicts(self, events_file: Path) -> None:
        result = runner.invoke(
            app, ["replay", str(events_file), "--max-history", "2", "--json"]
        )
        assert result.exit_code == 0, result.output
        payloads = json.loads(result.stdout)
        assert [p["status"] for p in payloads] == ["ok-empty", "failed"]

    def test_echo_prints_live_events(self, events_file: Path) -> None:
        result = runner.invoke(app, ["replay", str(events_file), "--echo"])
        assert result.exit_code == 0, result.output
        live = [line for line in result.output.splitlines() if line.startswith("+ ")]
        assert len(live) == 3

    def test_empty_file(self, tmp_path: Path) -> None:
        path = tmp_path / "empty.jsonl"
        path.write_text("", encoding="utf-8")
        result = runner.invoke(app, ["replay", str(path)])
        assert result.exit_code == 0, result.output
        assert "No heartbeat events recorded." in result.output

    def test_rejects_timestamped_payload(self, tmp_path: Path) -> None:
        path = _write_events(
            tmp_path / "events.jsonl",
            [{"status": "sent"}, {"status": "sent", "ts": 1}],
        )
        result = runner.invoke(app, ["replay", str(path)])
        assert result.exit_code == 1
        assert "line 2" in result.output

    def test_rejects_invalid_json(self, tmp_path: Path) -> None:
        path = tmp_path / "events.jsonl"
        path.write_text("{not json}\n", encoding="utf-8")
        result = runner.invoke(app, ["replay", str(path)])
        assert result.exit_code == 1
        assert "invalid JSON" in result.output

    def test_rejects_undecodable_line(self, tmp_path: Path) -> None:
        path = tmp_path / "events.jsonl"
        path.write_bytes(b'{"status": "sent"}\n{"status":"sent","reason":"\xff"}\n')
        result = runner.invoke(app, ["replay", str(path)])
        assert result.exit_code == 1
        assert isinstance(result.exception, SystemExit)
        assert "line 2" in result.output
        assert "invalid UTF-8" in result.output

    def test_rejects_non_object(self, tmp_path: Path) -> None:
        path = tmp_path / "events.jsonl"
        path.write_text("[1, 2]\n", encoding="utf-8")
        result = runner.invoke(app, ["replay", str(path)])
        assert result.exit_code == 1
        assert "expected a JSON object" in result.output

    def test_config_sets_capacity(self, events_file: Path, tmp_path: Path) -> None:
        config_path = tmp_path / "heartbeat.toml"
        config_path.write_text("[heartbeat_events]\nmax_history = 1\n", encoding="utf-8")
        result = runner.invoke(
            app, ["replay", str(events_file), "--config", str(config_path), "--json"]
        )
        assert result.exit_code == 0, result.output
        assert len(json.loads(result.stdout)) == 1

    def test_bad_config(self, events_file: Path, tmp_path: Path) -> None:
        result = runner.invoke(
            app,
            ["replay", str(events_file), "--config", str(tmp_path / "missing.toml")],
        )
        assert result.exit_code == 1
        assert "Missing config" in result.output


class TestLimits:
    """Tests for the limits command."""

    def test_defaults(self) -> None:
        result = runner.invoke(app, ["limits"])
        assert result.exit_code == 0, result.output
        assert "max_history=50" in result.output
        assert "clear_listeners_on_reset=false" in result.output
