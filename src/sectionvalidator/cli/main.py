#!/usr/bin/env python3
"""Entry point for the section-validator CLI."""

from __future__ import annotations

import argparse
import json
import sys
import time
from pathlib import Path
from textwrap import dedent
from typing import Any, Dict, Iterable

import yaml

from sectionvalidator import __version__
from sectionvalidator.adapters.issues.providers import build_checker
from sectionvalidator.app.mdbook import (
    PREPROCESSOR_NAME,
    PreprocessorConfig,
    PreprocessorInputError,
    SectionValidatorPreprocessor,
    parse_input,
    version_warning,
)
from sectionvalidator.app.validation import Chunk, LookupFailure, transform
from sectionvalidator.domain.sections import ValidatorConfigError
from sectionvalidator.settings import SETTINGS
from sectionvalidator.utils.telemetry import EVENT_PREPROCESS, EVENT_RENDER, record_lookup_failures, record_run
from sectionvalidator.utils.telemetry import clear as telemetry_clear
from sectionvalidator.utils.telemetry import iter_events as telemetry_iter
from sectionvalidator.utils.telemetry import summarize as telemetry_summarize
from sectionvalidator.utils.telemetry import tail as telemetry_tail

HELP_OVERVIEW = dedent(
    """
    An mdBook preprocessor that shows, flags or hides sections depending on
    whether the issues they reference are still open.

    Usage from book.toml:
      [preprocessor.section-validator]
      hide_invalid = true

    Mark a conditional section in markdown:
      !!!https://github.com/owner/repo/issues/1
      Workaround text that only applies while the issue is open.
      !!!
    """
)


def _report_failures(failures: Iterable[LookupFailure], command: str) -> None:
    failures = list(failures)
    for failure in failures:
        print(f"{PREPROCESSOR_NAME}: {failure.url}: {failure.reason}", file=sys.stderr)
    record_lookup_failures(SETTINGS, failures, command=command)


def _config_error(exc: ValidatorConfigError) -> int:
    print(f"{PREPROCESSOR_NAME}: {exc.code}: {exc}", file=sys.stderr)
    if exc.remediation:
        print(f"  remediation: {exc.remediation}", file=sys.stderr)
    return 1


def _preprocess_cmd(args: argparse.Namespace) -> int:
    started = time.perf_counter()
    try:
        context, book = parse_input(sys.stdin)
    except PreprocessorInputError as exc:
        print(f"{PREPROCESSOR_NAME}: {exc}", file=sys.stderr)
        return 1

    warning = version_warning(context)
    if warning:
        print(warning, file=sys.stderr)

    try:
        result = SectionValidatorPreprocessor().run(context, book)
    except ValidatorConfigError as exc:
        return _config_error(exc)

    _report_failures(result.report.failures, EVENT_PREPROCESS)
    json.dump(result.book, sys.stdout, ensure_ascii=False)
    sys.stdout.flush()
    record_run(SETTINGS, EVENT_PREPROCESS, result.report, duration_ms=(time.perf_counter() - started) * 1000)
    return 0


def _supports_cmd(args: argparse.Namespace) -> int:
    return 0 if SectionValidatorPreprocessor().supports_renderer(args.renderer) else 1


def _load_render_config(args: argparse.Namespace) -> PreprocessorConfig:
    data: Dict[str, Any] = {}
    if args.config:
        config_path = Path(args.config).expanduser()
        try:
            loaded = yaml.safe_load(config_path.read_text(encoding="utf-8"))
        except (OSError, yaml.YAMLError) as exc:
            raise ValidatorConfigError(f"cannot read {config_path}: {exc}") from exc
        if loaded is not None and not isinstance(loaded, dict):
            raise ValidatorConfigError(f"configuration in {config_path} must be a mapping")
        data.update(loaded or {})
    if args.show_invalid:
        data["hide_invalid"] = False
    if args.snapshot:
        data["snapshot_path"] = args.snapshot
    return PreprocessorConfig.from_dict(data)


def _render_cmd(args: argparse.Namespace) -> int:
    started = time.perf_counter()
    source = Path(args.path).expanduser()
    try:
        config = _load_render_config(args)
    except ValidatorConfigError as exc:
        return _config_error(exc)
    try:
        text = source.read_text(encoding="utf-8")
    except OSError as exc:
        print(f"{PREPROCESSOR_NAME}: cannot read {source}: {exc}", file=sys.stderr)
        return 1

    checker = build_checker(config.checker_options(), Path.cwd())
    result = transform(
        [Chunk(identifier=source.as_posix(), raw_text=text)],
        config.options,
        checker.check,
        max_workers=config.max_workers,
        timeout=config.deadline,
    )
    _report_failures(result.report.failures, EVENT_RENDER)
    sys.stdout.write(result.chunks[0].raw_text)
    if args.json:
        print(json.dumps(result.report.to_dict(), ensure_ascii=False, indent=2), file=sys.stderr)
    record_run(SETTINGS, EVENT_RENDER, result.report, duration_ms=(time.perf_counter() - started) * 1000)
    return 0


def _telemetry_cmd(args: argparse.Namespace) -> int:
    if args.telemetry_command == "report":
        print(json.dumps(telemetry_summarize(telemetry_iter(SETTINGS)), indent=2, ensure_ascii=False))
        return 0
    if args.telemetry_command == "clear":
        telemetry_clear(SETTINGS)
        print("Telemetry log cleared")
        return 0
    if args.telemetry_command == "tail":
        for evt in telemetry_tail(SETTINGS, args.limit):
            print(json.dumps(evt, ensure_ascii=False))
        return 0
    print("Unsupported telemetry command", file=sys.stderr)
    return 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=PREPROCESSOR_NAME,
        description=HELP_OVERVIEW,
        formatter_class=argparse.RawTextHelpFormatter,
    )
    parser.add_argument("--version", action="version", version=f"{PREPROCESSOR_NAME} {__version__}")
    parser.set_defaults(func=_preprocess_cmd)

    sub = parser.add_subparsers(dest="command")

    supports_cmd = sub.add_parser("supports", help="Check whether a renderer is supported by this preprocessor")
    supports_cmd.add_argument("renderer")
    supports_cmd.set_defaults(func=_supports_cmd)

    render_cmd = sub.add_parser("render", help="Rewrite a single markdown file to stdout")
    render_cmd.add_argument("path", help="Markdown file to rewrite")
    render_cmd.add_argument("--config", help="YAML file with preprocessor options")
    render_cmd.add_argument("--show-invalid", action="store_true", help="Keep invalid sections behind the warning message")
    render_cmd.add_argument("--snapshot", help="Resolve tickets from a JSON snapshot instead of GitHub")
    render_cmd.add_argument("--json", action="store_true", help="Print a JSON summary to stderr")
    render_cmd.set_defaults(func=_render_cmd)

    telemetry_cmd = sub.add_parser("telemetry", help="Inspect the local telemetry log")
    telemetry_sub = telemetry_cmd.add_subparsers(dest="telemetry_command", required=True)
    telemetry_sub.add_parser("report", help="Summarise recorded events")
    telemetry_sub.add_parser("clear", help="Delete the telemetry log")
    tail_cmd = telemetry_sub.add_parser("tail", help="Print the most recent events")
    tail_cmd.add_argument("--limit", type=int, default=20)
    telemetry_cmd.set_defaults(func=_telemetry_cmd)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
