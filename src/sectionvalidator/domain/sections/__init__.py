"""Domain primitives for conditional sections."""

from __future__ import annotations

from .rewriter import parse, region_validity, render, rewrite_region, rewrite_text
from .scanner import MARKER_PREFIX, parse_marker_line, scan_markers, split_lines
from .tree import Passage, Region, build_region_tree, collect_tickets, iter_regions
from .value_objects import (
    DEFAULT_INVALID_MESSAGE,
    Marker,
    MarkerKind,
    TicketStatus,
    ValidatorConfigError,
    ValidatorOptions,
    Validity,
)

__all__ = [
    "DEFAULT_INVALID_MESSAGE",
    "MARKER_PREFIX",
    "Marker",
    "MarkerKind",
    "Passage",
    "Region",
    "TicketStatus",
    "ValidatorConfigError",
    "ValidatorOptions",
    "Validity",
    "build_region_tree",
    "collect_tickets",
    "iter_regions",
    "parse",
    "parse_marker_line",
    "region_validity",
    "render",
    "rewrite_region",
    "rewrite_text",
    "scan_markers",
    "split_lines",
]
