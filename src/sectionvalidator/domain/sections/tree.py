"""Region tree construction from scanned markers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Sequence, Tuple, Union

from .value_objects import Marker, MarkerKind


@dataclass(frozen=True)
class Passage:
    """Literal text that is always kept."""

    text: str
    line_index: int


@dataclass
class Region:
    """Content gated on one or more tickets.

    ``end_line`` is the index of the closing marker, or ``None`` when the
    region was still open at the end of the chunk.
    """

    tickets: Tuple[str, ...]
    start_line: int
    end_line: Optional[int] = None
    children: List["Node"] = field(default_factory=list)

    @property
    def force_closed(self) -> bool:
        return self.end_line is None

    @property
    def content_lines(self) -> List[str]:
        lines: List[str] = []
        for node in self.children:
            if isinstance(node, Passage):
                lines.append(node.text)
            else:
                lines.extend(node.content_lines)
        return lines


Node = Union[Passage, Region]


def build_region_tree(lines: Sequence[str], markers: Sequence[Marker]) -> List[Node]:
    """Pair markers into regions; every non-marker line keeps its position.

    A closer with nothing open is kept as literal text. Regions still open at
    the end are closed there with everything captured so far.
    """

    by_line: Dict[int, Marker] = {marker.line_index: marker for marker in markers}
    root: List[Node] = []
    stack: List[Region] = []

    for index, line in enumerate(lines):
        target = stack[-1].children if stack else root
        marker = by_line.get(index)
        if marker is None:
            target.append(Passage(text=line, line_index=index))
        elif marker.kind is MarkerKind.OPEN:
            region = Region(tickets=_dedupe(marker.tickets), start_line=index)
            target.append(region)
            stack.append(region)
        elif stack:
            stack.pop().end_line = index
        else:
            root.append(Passage(text=line, line_index=index))
    return root


def iter_regions(nodes: Sequence[Node]) -> Iterator[Region]:
    """Yield every region, outer before inner, in document order."""

    pending: List[Node] = list(reversed(nodes))
    while pending:
        node = pending.pop()
        if isinstance(node, Region):
            yield node
            pending.extend(reversed(node.children))


def collect_tickets(nodes: Sequence[Node]) -> List[str]:
    seen: Dict[str, None] = {}
    for region in iter_regions(nodes):
        for ticket in region.tickets:
            seen.setdefault(ticket, None)
    return list(seen)


def _dedupe(tickets: Sequence[str]) -> Tuple[str, ...]:
    return tuple(dict.fromkeys(tickets))
