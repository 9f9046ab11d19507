"""Preprocessor configuration read from the mdBook context."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from sectionvalidator.adapters.issues.github_checker import DEFAULT_TIMEOUT, DEFAULT_TOKEN_ENV
from sectionvalidator.app.validation.resolver import DEFAULT_MAX_WORKERS, DEFAULT_RESOLVE_TIMEOUT
from sectionvalidator.domain.sections import ValidatorConfigError, ValidatorOptions

PREPROCESSOR_NAME = "section-validator"


@dataclass(frozen=True)
class PreprocessorConfig:
    """Rewrite policy plus the settings of the ticket lookup."""

    options: ValidatorOptions = field(default_factory=ValidatorOptions)
    max_workers: int = DEFAULT_MAX_WORKERS
    timeout: float = DEFAULT_TIMEOUT
    deadline: float = DEFAULT_RESOLVE_TIMEOUT
    token_env: str = DEFAULT_TOKEN_ENV
    snapshot_path: Optional[str] = None
    check_links: bool = False

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> "PreprocessorConfig":
        if not isinstance(data, Mapping):
            raise ValidatorConfigError(f"[preprocessor.{PREPROCESSOR_NAME}] must be a table")
        defaults = cls()
        snapshot = data.get("snapshot_path")
        if snapshot is not None and not isinstance(snapshot, str):
            raise ValidatorConfigError("'snapshot_path' must be a string")
        check_links = data.get("check_links", defaults.check_links)
        if not isinstance(check_links, bool):
            raise ValidatorConfigError("'check_links' must be a boolean")
        token_env = data.get("token_env", defaults.token_env)
        if not isinstance(token_env, str):
            raise ValidatorConfigError("'token_env' must be a string")
        return cls(
            options=ValidatorOptions.from_dict(data),
            max_workers=_positive(data, "max_workers", defaults.max_workers, integral=True),
            timeout=_positive(data, "timeout", defaults.timeout),
            deadline=_positive(data, "deadline", defaults.deadline),
            token_env=token_env,
            snapshot_path=snapshot,
            check_links=check_links,
        )

    @classmethod
    def from_context(cls, context: Mapping[str, Any]) -> "PreprocessorConfig":
        config = context.get("config")
        preprocessors = config.get("preprocessor") if isinstance(config, Mapping) else None
        section = preprocessors.get(PREPROCESSOR_NAME) if isinstance(preprocessors, Mapping) else None
        return cls.from_dict(section or {})

    def checker_options(self) -> Dict[str, Any]:
        return {
            "timeout": self.timeout,
            "token_env": self.token_env,
            "snapshot_path": self.snapshot_path,
            "check_links": self.check_links,
        }


def _positive(data: Mapping[str, object], key: str, default: float, *, integral: bool = False) -> Any:
    value = data.get(key, default)
    allowed = (int,) if integral else (int, float)
    if isinstance(value, bool) or not isinstance(value, allowed) or value <= 0:
        kind = "integer" if integral else "number"
        raise ValidatorConfigError(f"'{key}' must be a positive {kind}")
    return value
