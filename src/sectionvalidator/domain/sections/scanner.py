"""Marker line detection."""

from __future__ import annotations

from typing import List, Optional, Sequence

from .value_objects import Marker, MarkerKind

MARKER_PREFIX = "!!!"


def parse_marker_line(line: str, line_index: int = 0) -> Optional[Marker]:
    """Return the marker encoded by ``line`` or ``None`` for ordinary content.

    A closing marker is ``!!!`` followed only by whitespace. An opening marker
    is ``!!!`` followed by a comma-separated list of ticket URLs; a line whose
    entries are all blank is ordinary content.
    """

    body = line.rstrip("\r\n")
    if not body.startswith(MARKER_PREFIX):
        return None
    if body.rstrip() == MARKER_PREFIX:
        return Marker(kind=MarkerKind.CLOSE, line_index=line_index)
    tickets = tuple(token.strip() for token in body[len(MARKER_PREFIX):].split(",") if token.strip())
    if not tickets:
        return None
    return Marker(kind=MarkerKind.OPEN, line_index=line_index, tickets=tickets)


def scan_markers(lines: Sequence[str]) -> List[Marker]:
    markers: List[Marker] = []
    for index, line in enumerate(lines):
        marker = parse_marker_line(line, index)
        if marker is not None:
            markers.append(marker)
    return markers


def split_lines(text: str) -> List[str]:
    """Split on newlines only, keeping line endings so the text rejoins exactly."""

    parts = text.split("\n")
    lines = [part + "\n" for part in parts[:-1]]
    if parts[-1]:
        lines.append(parts[-1])
    return lines
