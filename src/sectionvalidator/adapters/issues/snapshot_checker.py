"""Offline checker backed by a JSON snapshot of ticket states."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict

from sectionvalidator.domain.sections import TicketStatus
from sectionvalidator.ports.issues import IssueLookupError, IssueStatusChecker


class SnapshotIssueChecker(IssueStatusChecker):
    """Answers from a snapshot such as ``{"issues": {"<url>": "open"}}``.

    A list of ``{"url": ..., "state": ...}`` objects is accepted as well.
    """

    def __init__(self, path: Path) -> None:
        self._path = path
        self._states: Dict[str, str] | None = None

    def check(self, url: str) -> TicketStatus:
        states = self._load()
        state = states.get(url)
        if state is None:
            raise IssueLookupError(f"{url} not present in snapshot {self._path}")
        if state == "open":
            return TicketStatus.OPEN
        if state == "closed":
            return TicketStatus.CLOSED
        raise IssueLookupError(f"{url} has unrecognised state {state!r} in snapshot {self._path}")

    def _load(self) -> Dict[str, str]:
        if self._states is None:
            self._states = _read_states(self._path)
        return self._states


def _read_states(path: Path) -> Dict[str, str]:
    if not path.exists():
        raise IssueLookupError(f"snapshot not found at {path}")
    try:
        payload: Any = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise IssueLookupError(f"snapshot {path} is not valid JSON") from exc
    issues = payload.get("issues", payload) if isinstance(payload, dict) else payload

    states: Dict[str, str] = {}
    if isinstance(issues, dict):
        for url, state in issues.items():
            states[str(url)] = str(state).strip().lower()
    elif isinstance(issues, list):
        for item in issues:
            if not isinstance(item, dict) or "url" not in item:
                continue
            states[str(item["url"])] = str(item.get("state", "")).strip().lower()
    else:
        raise IssueLookupError(f"snapshot {path} must hold an object or a list of issues")
    return states
