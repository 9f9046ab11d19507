"""Application services for conditional section validation."""

from .resolver import IssueStatusResolver, LookupFailure, Resolution
from .service import Chunk, TransformReport, TransformResult, transform

__all__ = [
    "Chunk",
    "IssueStatusResolver",
    "LookupFailure",
    "Resolution",
    "TransformReport",
    "TransformResult",
    "transform",
]
