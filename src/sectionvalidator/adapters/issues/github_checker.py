"""GitHub issue and pull request status checker."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Dict
from urllib.parse import urlsplit

import requests

from sectionvalidator import __version__
from sectionvalidator.domain.sections import TicketStatus
from sectionvalidator.domain.sections.links import GitHubIssue, issue_from_url
from sectionvalidator.ports.issues import IssueLookupError, IssueStatusChecker

DEFAULT_TOKEN_ENV = "GITHUB_TOKEN"
DEFAULT_TIMEOUT = 10.0
GITHUB_API = "https://api.github.com"
USER_AGENT = f"section-validator/{__version__}"


@dataclass
class GitHubAuthConfig:
    token_env: str | None

    def resolve(self) -> str | None:
        if not self.token_env:
            return None
        return os.environ.get(self.token_env) or None


class GitHubIssueChecker(IssueStatusChecker):
    def __init__(self, options: Dict[str, Any] | None = None, session: requests.Session | None = None) -> None:
        options = options or {}
        self._timeout = float(options.get("timeout", DEFAULT_TIMEOUT))
        self._check_links = bool(options.get("check_links", False))
        self._auth_config = GitHubAuthConfig(token_env=options.get("token_env", DEFAULT_TOKEN_ENV))
        self._session = session or requests.Session()

    def check(self, url: str) -> TicketStatus:
        parts = urlsplit(url)
        if parts.scheme not in {"http", "https"} or not parts.netloc:
            raise IssueLookupError(f"not an http(s) URL: {url!r}")
        issue = issue_from_url(url)
        if issue is not None:
            return self._issue_status(issue)
        if self._check_links:
            return self._link_status(url)
        raise IssueLookupError(f"not a recognised issue URL: {url}")

    def _issue_status(self, issue: GitHubIssue) -> TicketStatus:
        request_url = f"{GITHUB_API}/repos/{issue.owner}/{issue.repo}/{issue.api_collection}/{issue.number}"
        headers = {
            "Accept": "application/vnd.github+json",
            "User-Agent": USER_AGENT,
        }
        token = self._auth_config.resolve()
        if token:
            headers["Authorization"] = f"Bearer {token}"
        try:
            response = self._session.get(request_url, headers=headers, timeout=self._timeout)
        except requests.RequestException as exc:
            raise IssueLookupError(f"github request failed: {exc}") from exc
        if response.status_code >= 400:
            raise IssueLookupError(f"github request failed: {response.status_code} {response.text}")
        try:
            payload = response.json()
        except ValueError as exc:
            raise IssueLookupError("github response is not valid JSON") from exc
        if not isinstance(payload, dict) or not isinstance(payload.get("state"), str):
            raise IssueLookupError("github response has no 'state' field")
        return TicketStatus.OPEN if payload["state"].lower() == "open" else TicketStatus.CLOSED

    def _link_status(self, url: str) -> TicketStatus:
        try:
            response = self._session.head(url, headers={"User-Agent": USER_AGENT}, timeout=self._timeout)
        except requests.RequestException as exc:
            raise IssueLookupError(f"link check failed: {exc}") from exc
        return TicketStatus.OPEN if response.status_code == 200 else TicketStatus.CLOSED
