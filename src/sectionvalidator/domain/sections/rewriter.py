"""Resolve region trees into markdown."""

from __future__ import annotations

from typing import Iterator, List, Mapping, Optional, Sequence, Tuple

from .links import markdown_many
from .scanner import scan_markers, split_lines
from .tree import Node, Passage, Region, build_region_tree
from .value_objects import TicketStatus, ValidatorOptions, Validity


def region_validity(region: Region, statuses: Mapping[str, TicketStatus]) -> Validity:
    """A region is valid only while every one of its tickets is open."""

    if all(statuses.get(ticket, TicketStatus.UNKNOWN) is TicketStatus.OPEN for ticket in region.tickets):
        return Validity.VALID
    return Validity.INVALID


def rewrite_region(region: Region, validity: Validity, content: str, options: ValidatorOptions) -> str:
    """Replacement text for a region span; ``content`` has children already rewritten."""

    if validity is Validity.VALID:
        if options.annotate_valid:
            verb = "is" if len(region.tickets) == 1 else "are"
            return f"⚠️ This is only valid while {markdown_many(region.tickets)} {verb} open\n\n{content}"
        return content
    if options.hide_invalid:
        return ""
    return f"{options.invalid_message}\n\n{content}"


def render(nodes: Sequence[Node], statuses: Mapping[str, TicketStatus], options: ValidatorOptions) -> str:
    """Rewrite a region tree depth-first; inner regions resolve before their parent."""

    frames: List[Tuple[Iterator[Node], List[str], Optional[Region]]] = [(iter(nodes), [], None)]
    while True:
        children, parts, region = frames[-1]
        for node in children:
            if isinstance(node, Passage):
                parts.append(node.text)
                continue
            frames.append((iter(node.children), [], node))
            break
        else:
            frames.pop()
            text = "".join(parts)
            if region is None:
                return text
            text = rewrite_region(region, region_validity(region, statuses), text, options)
            frames[-1][1].append(text)


def parse(text: str) -> List[Node]:
    lines = split_lines(text)
    return build_region_tree(lines, scan_markers(lines))


def rewrite_text(text: str, statuses: Mapping[str, TicketStatus], options: ValidatorOptions) -> str:
    return render(parse(text), statuses, options)
