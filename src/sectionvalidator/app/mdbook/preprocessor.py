"""mdBook preprocessor adapter."""

from __future__ import annotations

import copy
import json
from dataclasses import dataclass
from pathlib import Path
from typing import IO, Any, Dict, List, Mapping, Optional, Tuple

from sectionvalidator.adapters.issues.providers import build_checker
from sectionvalidator.app.validation import Chunk, TransformReport, transform
from sectionvalidator.ports.issues import IssueStatusChecker

from .config import PREPROCESSOR_NAME, PreprocessorConfig

SUPPORTED_MDBOOK_SERIES = "0.4"
SUPPORTED_RENDERERS = {"html"}


class PreprocessorInputError(ValueError):
    """Raised when stdin does not carry an mdBook ``[context, book]`` pair."""


@dataclass(frozen=True)
class PreprocessorResult:
    book: Dict[str, Any]
    report: TransformReport


def parse_input(stream: IO[str]) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    try:
        payload = json.load(stream)
    except json.JSONDecodeError as exc:
        raise PreprocessorInputError(f"preprocessor input is not valid JSON: {exc}") from exc
    if not isinstance(payload, list) or len(payload) != 2:
        raise PreprocessorInputError("preprocessor input must be a [context, book] array")
    context, book = payload
    if not isinstance(context, dict) or not isinstance(book, dict):
        raise PreprocessorInputError("preprocessor context and book must be objects")
    if not isinstance(book.get("sections", []), list):
        raise PreprocessorInputError("book 'sections' must be an array")
    return context, book


def version_warning(context: Mapping[str, Any]) -> Optional[str]:
    version = str(context.get("mdbook_version") or "")
    series = ".".join(version.split(".")[:2])
    if series == SUPPORTED_MDBOOK_SERIES:
        return None
    return (
        f"Warning: The {PREPROCESSOR_NAME} preprocessor was built against mdbook "
        f"{SUPPORTED_MDBOOK_SERIES}.x, but we're being called from version {version or 'unknown'}"
    )


class SectionValidatorPreprocessor:
    """Rewrites conditional sections in every chapter of a book."""

    name = PREPROCESSOR_NAME

    def __init__(self, checker: IssueStatusChecker | None = None) -> None:
        self._checker = checker

    def supports_renderer(self, renderer: str) -> bool:
        return renderer in SUPPORTED_RENDERERS

    def run(self, context: Mapping[str, Any], book: Mapping[str, Any]) -> PreprocessorResult:
        config = PreprocessorConfig.from_context(context)
        checker = self._checker or build_checker(config.checker_options(), Path(str(context.get("root") or ".")))

        processed = copy.deepcopy(dict(book))
        chapters = _collect_chapters(processed.get("sections", []))
        chunks = [
            Chunk(identifier=_chapter_identifier(chapter, index), raw_text=str(chapter.get("content") or ""))
            for index, chapter in enumerate(chapters)
        ]
        result = transform(
            chunks,
            config.options,
            checker.check,
            max_workers=config.max_workers,
            timeout=config.deadline,
        )
        for chapter, chunk in zip(chapters, result.chunks):
            chapter["content"] = chunk.raw_text
        return PreprocessorResult(book=processed, report=result.report)


def _collect_chapters(items: List[Any]) -> List[Dict[str, Any]]:
    """Chapters in reading order, sub-chapters after their parent."""

    chapters: List[Dict[str, Any]] = []
    pending = list(reversed(items))
    while pending:
        item = pending.pop()
        if not isinstance(item, dict):
            continue  # "Separator"
        chapter = item.get("Chapter")
        if not isinstance(chapter, dict):
            continue  # {"PartTitle": ...}
        chapters.append(chapter)
        sub_items = chapter.get("sub_items") or []
        if isinstance(sub_items, list):
            pending.extend(reversed(sub_items))
    return chapters


def _chapter_identifier(chapter: Mapping[str, Any], index: int) -> str:
    return str(chapter.get("path") or chapter.get("name") or f"chapter-{index}")
