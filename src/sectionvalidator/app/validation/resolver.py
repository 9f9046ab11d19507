"""Concurrent, deduplicated ticket status resolution."""

from __future__ import annotations

import concurrent.futures
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List

from sectionvalidator.domain.sections import TicketStatus

DEFAULT_MAX_WORKERS = 8
DEFAULT_RESOLVE_TIMEOUT = 30.0

StatusCheck = Callable[[str], TicketStatus]


@dataclass(frozen=True)
class LookupFailure:
    url: str
    reason: str

    def as_dict(self) -> Dict[str, str]:
        return {"url": self.url, "reason": self.reason}


@dataclass
class Resolution:
    statuses: Dict[str, TicketStatus] = field(default_factory=dict)
    failures: List[LookupFailure] = field(default_factory=list)


class IssueStatusResolver:
    """Queries each distinct ticket once; failures resolve to UNKNOWN.

    ``timeout`` bounds how long ``resolve`` waits for the batch. Lookups still
    running when it expires resolve to UNKNOWN, but their worker threads run
    until the checker returns and the interpreter joins them at exit, so the
    checker's own request timeout is what bounds process shutdown.
    """

    def __init__(
        self,
        check: StatusCheck,
        *,
        max_workers: int = DEFAULT_MAX_WORKERS,
        timeout: float = DEFAULT_RESOLVE_TIMEOUT,
    ) -> None:
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self._check = check
        self._max_workers = max_workers
        self._timeout = timeout

    def resolve(self, tickets: Iterable[str]) -> Resolution:
        unique = list(dict.fromkeys(tickets))
        resolution = Resolution()
        if not unique:
            return resolution

        executor = concurrent.futures.ThreadPoolExecutor(
            max_workers=min(self._max_workers, len(unique)),
            thread_name_prefix="section-validator",
        )
        try:
            futures = {executor.submit(self._check, url): url for url in unique}
            done, _ = concurrent.futures.wait(futures, timeout=self._timeout)
            for future, url in futures.items():
                if future not in done:
                    future.cancel()
                    self._fail(resolution, url, f"lookup timed out after {self._timeout:g}s")
                    continue
                try:
                    status = future.result()
                except Exception as exc:  # noqa: BLE001 - any lookup failure degrades to UNKNOWN
                    self._fail(resolution, url, str(exc) or type(exc).__name__)
                    continue
                if not isinstance(status, TicketStatus):
                    self._fail(resolution, url, f"checker returned {status!r}")
                    continue
                resolution.statuses[url] = status
        finally:
            executor.shutdown(wait=False, cancel_futures=True)
        return resolution

    @staticmethod
    def _fail(resolution: Resolution, url: str, reason: str) -> None:
        resolution.statuses[url] = TicketStatus.UNKNOWN
        resolution.failures.append(LookupFailure(url=url, reason=reason))
