"""Ticket URL classification and markdown link formatting."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional, Sequence

_GITHUB_PATTERN = re.compile(r"github\.com/(.+?)/(.+?)/(issues|pull)/(\d+)$", re.IGNORECASE)


@dataclass(frozen=True)
class GitHubIssue:
    owner: str
    repo: str
    number: str
    kind: str  # "issues" | "pull"
    url: str

    @property
    def api_collection(self) -> str:
        return "issues" if self.kind.lower() == "issues" else "pulls"

    @property
    def reference(self) -> str:
        return f"{self.owner}/{self.repo}#{self.number}"


def issue_from_url(url: str) -> Optional[GitHubIssue]:
    """Return the GitHub issue or pull request a URL points at, if any."""

    match = _GITHUB_PATTERN.search(url)
    if match is None:
        return None
    owner, repo, kind, number = match.groups()
    return GitHubIssue(owner=owner, repo=repo, number=number, kind=kind, url=url)


def markdown_link(url: str) -> str:
    issue = issue_from_url(url)
    label = issue.reference if issue is not None else url
    return f"[`{label}`]({url})"


def markdown_many(urls: Sequence[str]) -> str:
    """Join links as "a", "a, and b" or "a, b, and c"."""

    links = [markdown_link(url) for url in urls]
    if len(links) <= 1:
        return "".join(links)
    return ", and ".join([", ".join(links[:-1]), links[-1]])
