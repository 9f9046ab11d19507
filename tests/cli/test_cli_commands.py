from __future__ import annotations

import io
import json
from pathlib import Path
from typing import Any

import pytest

from sectionvalidator import __version__
from sectionvalidator.cli import main as cli_main
from sectionvalidator.settings import RuntimeSettings

OPEN_ISSUE = "https://github.com/example/example/issues/1"
CLOSED_ISSUE = "https://github.com/example/example/issues/2"


@pytest.fixture()
def runtime_settings(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> RuntimeSettings:
    home = tmp_path / "runtime"
    settings = RuntimeSettings(home_dir=home, log_dir=home / "logs", cli_version=__version__)
    monkeypatch.setattr(cli_main, "SETTINGS", settings, raising=False)
    monkeypatch.setenv("SECTION_VALIDATOR_TELEMETRY", "1")
    return settings


@pytest.fixture()
def snapshot(tmp_path: Path) -> Path:
    path = tmp_path / "issues.json"
    path.write_text(json.dumps({"issues": {OPEN_ISSUE: "open", CLOSED_ISSUE: "closed"}}), encoding="utf-8")
    return path


def _events(settings: RuntimeSettings) -> list[dict[str, Any]]:
    return [json.loads(line) for line in settings.telemetry_file.read_text(encoding="utf-8").splitlines()]


def test_supports_html_only() -> None:
    assert cli_main.main(["supports", "html"]) == 0
    assert cli_main.main(["supports", "latex"]) == 1


def test_preprocess_round_trip(
    runtime_settings: RuntimeSettings,
    snapshot: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    context = {
        "root": str(snapshot.parent),
        "config": {"preprocessor": {"section-validator": {"snapshot_path": snapshot.name}}},
        "renderer": "html",
        "mdbook_version": "0.4.40",
    }
    content = f"a\n!!!{OPEN_ISSUE}\nb\n!!!\n!!!{CLOSED_ISSUE}\nc\n!!!\n!!!https://github.com/o/r/issues/9\nd\n!!!\n"
    book = {"sections": [{"Chapter": {"name": "One", "content": content, "sub_items": [], "path": "one.md"}}]}
    monkeypatch.setattr("sys.stdin", io.StringIO(json.dumps([context, book])))

    assert cli_main.main([]) == 0

    captured = capsys.readouterr()
    output = json.loads(captured.out)
    assert output["sections"][0]["Chapter"]["content"] == "a\nb\n"
    assert "https://github.com/o/r/issues/9" in captured.err
    names = [event["event"] for event in _events(runtime_settings)]
    assert names == ["issue.lookup_failed", "preprocess"]


def test_preprocess_warns_on_version_mismatch(
    runtime_settings: RuntimeSettings,
    snapshot: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    context = {
        "root": str(snapshot.parent),
        "config": {"preprocessor": {"section-validator": {"snapshot_path": snapshot.name}}},
        "mdbook_version": "0.3.7",
    }
    monkeypatch.setattr("sys.stdin", io.StringIO(json.dumps([context, {"sections": []}])))

    assert cli_main.main([]) == 0
    assert "0.3.7" in capsys.readouterr().err


def test_preprocess_rejects_bad_input(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    monkeypatch.setattr("sys.stdin", io.StringIO("garbage"))
    assert cli_main.main([]) == 1
    assert "not valid JSON" in capsys.readouterr().err


def test_preprocess_rejects_bad_config(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    context = {"config": {"preprocessor": {"section-validator": {"hide_invalid": "nope"}}}, "mdbook_version": "0.4.1"}
    monkeypatch.setattr("sys.stdin", io.StringIO(json.dumps([context, {"sections": []}])))

    assert cli_main.main([]) == 1
    err = capsys.readouterr().err
    assert "SECTION_VALIDATOR_INVALID_CONFIG" in err
    assert "remediation" in err


def test_render_show_invalid(
    runtime_settings: RuntimeSettings,
    snapshot: Path,
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    doc = tmp_path / "doc.md"
    doc.write_text(f"!!!{CLOSED_ISSUE}\nold\n!!!\n", encoding="utf-8")
    config = tmp_path / "validator.yaml"
    config.write_text("invalid_message: OUTDATED\n", encoding="utf-8")

    code = cli_main.main(["render", str(doc), "--config", str(config), "--show-invalid", "--snapshot", str(snapshot)])

    assert code == 0
    assert capsys.readouterr().out == "OUTDATED\n\nold\n"


def test_render_rejects_non_mapping_config(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    doc = tmp_path / "doc.md"
    doc.write_text("text\n", encoding="utf-8")
    config = tmp_path / "validator.yaml"
    config.write_text("- a\n- b\n", encoding="utf-8")

    assert cli_main.main(["render", str(doc), "--config", str(config)]) == 1
    assert "must be a mapping" in capsys.readouterr().err


def test_telemetry_report_and_clear(
    runtime_settings: RuntimeSettings,
    snapshot: Path,
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    doc = tmp_path / "doc.md"
    doc.write_text("plain\n", encoding="utf-8")
    cli_main.main(["render", str(doc), "--snapshot", str(snapshot)])
    capsys.readouterr()

    assert cli_main.main(["telemetry", "report"]) == 0
    summary = json.loads(capsys.readouterr().out)
    assert summary["by_event"] == {"render": 1}

    assert cli_main.main(["telemetry", "clear"]) == 0
    assert not runtime_settings.telemetry_file.exists()


def test_preprocess_survives_unwritable_telemetry_log(
    tmp_path: Path,
    snapshot: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("", encoding="utf-8")
    settings = RuntimeSettings(home_dir=tmp_path, log_dir=blocker / "logs", cli_version=__version__)
    monkeypatch.setattr(cli_main, "SETTINGS", settings, raising=False)
    monkeypatch.setenv("SECTION_VALIDATOR_TELEMETRY", "1")
    context = {
        "root": str(snapshot.parent),
        "config": {"preprocessor": {"section-validator": {"snapshot_path": snapshot.name}}},
        "mdbook_version": "0.4.40",
    }
    content = "keep\n!!!https://github.com/o/r/issues/404\ngone\n!!!\n"
    book = {"sections": [{"Chapter": {"name": "One", "content": content, "sub_items": [], "path": "one.md"}}]}
    monkeypatch.setattr("sys.stdin", io.StringIO(json.dumps([context, book])))

    assert cli_main.main([]) == 0

    captured = capsys.readouterr()
    assert json.loads(captured.out)["sections"][0]["Chapter"]["content"] == "keep\n"
    assert "https://github.com/o/r/issues/404" in captured.err
    assert captured.err.count("telemetry disabled") == 1


def test_telemetry_tail_limits_output(
    runtime_settings: RuntimeSettings,
    snapshot: Path,
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    doc = tmp_path / "doc.md"
    doc.write_text(f"!!!{OPEN_ISSUE}\nstill open\n!!!\n", encoding="utf-8")
    for _ in range(3):
        assert cli_main.main(["render", str(doc), "--snapshot", str(snapshot)]) == 0
    capsys.readouterr()

    assert cli_main.main(["telemetry", "tail", "--limit", "2"]) == 0
    lines = capsys.readouterr().out.splitlines()
    events = [json.loads(line) for line in lines]
    assert [evt["event"] for evt in events] == ["render", "render"]
    assert all(evt["payload"]["tickets"] == 1 for evt in events)
    assert all(evt["status"] == "ok" for evt in events)
