"""Best-effort telemetry for preprocessor runs and failed ticket lookups.

Records go to a JSONL file under the runtime log directory. Writing them
never fails a build: an unwritable log is reported once on stderr and then
skipped.
"""

from __future__ import annotations

import json
import os
import sys
import time
from collections import Counter, deque
from importlib import resources
from pathlib import Path
from typing import Any, Iterable, Iterator, List, Set

import jsonschema

from sectionvalidator.app.validation import LookupFailure, TransformReport
from sectionvalidator.settings import RuntimeSettings

EVENT_LOOKUP_FAILED = "issue.lookup_failed"
EVENT_PREPROCESS = "preprocess"
EVENT_RENDER = "render"

_DISABLE_VALUES = {"0", "false", "no", "off"}

_TELEMETRY_VALIDATOR = None
_UNWRITABLE: Set[Path] = set()


def telemetry_enabled() -> bool:
    value = os.getenv("SECTION_VALIDATOR_TELEMETRY", "1").lower()
    return value not in _DISABLE_VALUES


def record_lookup_failures(settings: RuntimeSettings, failures: Iterable[LookupFailure], *, command: str) -> None:
    for failure in failures:
        record_structured_event(
            settings,
            EVENT_LOOKUP_FAILED,
            payload={"command": command, **failure.as_dict()},
            level="warn",
            component="resolver",
        )


def record_run(settings: RuntimeSettings, event: str, report: TransformReport, *, duration_ms: float) -> None:
    record_structured_event(
        settings,
        event,
        payload=report.to_dict(),
        level="warn" if report.failures else "info",
        status="degraded" if report.failures else "ok",
        component="mdbook" if event == EVENT_PREPROCESS else "cli",
        duration_ms=duration_ms,
    )


def record_structured_event(
    settings: RuntimeSettings,
    event: str,
    *,
    payload: dict[str, Any] | None = None,
    level: str = "info",
    status: str | None = None,
    component: str | None = None,
    duration_ms: float | None = None,
) -> bool:
    """Append one record; returns False when telemetry is off or the log is unwritable."""

    if not telemetry_enabled():
        return False
    record: dict[str, Any] = {
        "ts": time.time(),
        "event": event,
        "payload": payload or {},
        "level": level,
    }
    if status:
        record["status"] = status
    if component:
        record["component"] = component
    if duration_ms is not None:
        record["durationMs"] = max(float(duration_ms), 0.0)
    _telemetry_validator().validate(record)

    log_path = settings.telemetry_file
    if log_path in _UNWRITABLE:
        return False
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        with log_path.open("a", encoding="utf-8") as fh:
            fh.write(json.dumps(record, ensure_ascii=False) + "\n")
    except OSError as exc:
        _UNWRITABLE.add(log_path)
        print(f"section-validator: telemetry disabled, cannot write {log_path}: {exc}", file=sys.stderr)
        return False
    return True


def iter_events(settings: RuntimeSettings) -> Iterator[dict[str, Any]]:
    log_path = settings.telemetry_file
    if not log_path.exists():
        return
    with log_path.open("r", encoding="utf-8") as fh:
        for line in fh:
            line = line.strip()
            if not line:
                continue
            try:
                yield json.loads(line)
            except json.JSONDecodeError:
                continue


def tail(settings: RuntimeSettings, limit: int) -> List[dict[str, Any]]:
    if limit <= 0:
        return []
    return list(deque(iter_events(settings), maxlen=limit))


def summarize(events: Iterable[dict[str, Any]]) -> dict[str, Any]:
    """Count events and list the tickets whose lookups failed most often."""

    by_event: Counter[str] = Counter()
    failed_urls: Counter[str] = Counter()
    runs = 0
    degraded_runs = 0
    for evt in events:
        name = evt.get("event", "unknown")
        by_event[name] += 1
        if name == EVENT_LOOKUP_FAILED:
            failed_urls[str(evt.get("payload", {}).get("url", "unknown"))] += 1
        elif name in {EVENT_PREPROCESS, EVENT_RENDER}:
            runs += 1
            if evt.get("status") == "degraded":
                degraded_runs += 1
    return {
        "total": sum(by_event.values()),
        "by_event": dict(by_event),
        "runs": runs,
        "degraded_runs": degraded_runs,
        "failed_urls": dict(failed_urls.most_common()),
    }


def clear(settings: RuntimeSettings) -> None:
    log_path = settings.telemetry_file
    if log_path.exists():
        log_path.unlink()


def _telemetry_validator() -> jsonschema.Draft202012Validator:
    global _TELEMETRY_VALIDATOR
    if _TELEMETRY_VALIDATOR is None:
        schema_resource = resources.files("sectionvalidator.resources") / "telemetry.schema.json"
        schema = json.loads(schema_resource.read_text(encoding="utf-8"))
        _TELEMETRY_VALIDATOR = jsonschema.Draft202012Validator(schema)
    return _TELEMETRY_VALIDATOR
