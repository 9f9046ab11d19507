"""Document-level conditional section processing."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Sequence

from sectionvalidator.domain.sections import (
    TicketStatus,
    ValidatorOptions,
    Validity,
    collect_tickets,
    iter_regions,
    parse,
    region_validity,
    render,
)

from .resolver import (
    DEFAULT_MAX_WORKERS,
    DEFAULT_RESOLVE_TIMEOUT,
    IssueStatusResolver,
    LookupFailure,
    StatusCheck,
)


@dataclass(frozen=True)
class Chunk:
    identifier: str
    raw_text: str


@dataclass
class TransformReport:
    chunks: int = 0
    regions: int = 0
    invalid_regions: int = 0
    tickets: int = 0
    statuses: Dict[str, TicketStatus] = field(default_factory=dict)
    failures: List[LookupFailure] = field(default_factory=list)

    def to_dict(self) -> Dict[str, object]:
        return {
            "chunks": self.chunks,
            "regions": self.regions,
            "invalid_regions": self.invalid_regions,
            "tickets": self.tickets,
            "failures": [failure.as_dict() for failure in self.failures],
        }


@dataclass(frozen=True)
class TransformResult:
    chunks: List[Chunk]
    report: TransformReport


def transform(
    chunks: Sequence[Chunk],
    options: ValidatorOptions,
    check: StatusCheck,
    *,
    max_workers: int = DEFAULT_MAX_WORKERS,
    timeout: float = DEFAULT_RESOLVE_TIMEOUT,
) -> TransformResult:
    """Rewrite every chunk; each distinct ticket is looked up once per call.

    Chunk identity and order are preserved. Lookup failures never raise,
    they are reported and treated as UNKNOWN.
    """

    trees = [parse(chunk.raw_text) for chunk in chunks]
    tickets: List[str] = []
    for tree in trees:
        tickets.extend(collect_tickets(tree))

    resolver = IssueStatusResolver(check, max_workers=max_workers, timeout=timeout)
    resolution = resolver.resolve(tickets)

    report = TransformReport(
        chunks=len(chunks),
        tickets=len(resolution.statuses),
        statuses=resolution.statuses,
        failures=resolution.failures,
    )
    rewritten: List[Chunk] = []
    for chunk, tree in zip(chunks, trees):
        for region in iter_regions(tree):
            report.regions += 1
            if region_validity(region, resolution.statuses) is Validity.INVALID:
                report.invalid_regions += 1
        rewritten.append(Chunk(identifier=chunk.identifier, raw_text=render(tree, resolution.statuses, options)))
    return TransformResult(chunks=rewritten, report=report)
