"""Factory helpers for issue status checkers."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict

from sectionvalidator.ports.issues import IssueStatusChecker

from .github_checker import GitHubIssueChecker
from .snapshot_checker import SnapshotIssueChecker


def build_checker(options: Dict[str, Any], root: Path) -> IssueStatusChecker:
    snapshot = options.get("snapshot_path")
    if snapshot:
        candidate = Path(str(snapshot)).expanduser()
        if not candidate.is_absolute():
            candidate = (root / candidate).resolve()
        return SnapshotIssueChecker(candidate)
    return GitHubIssueChecker(options)


__all__ = ["build_checker"]
