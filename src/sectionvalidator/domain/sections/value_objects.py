"""Value objects for the conditional section bounded context."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Tuple

DEFAULT_INVALID_MESSAGE = (
    "🚨 Warning, this content is out of date and is included for historical reasons. 🚨"
)

ERROR_REMEDIATIONS = {
    "SECTION_VALIDATOR_INVALID_CONFIG": "Fix [preprocessor.section-validator] in book.toml to match the documented option types.",
    "SECTION_VALIDATOR_INVALID_INPUT": "Run the preprocessor through mdbook, or pipe a [context, book] JSON pair on stdin.",
}


class MarkerKind(str, Enum):
    OPEN = "open"
    CLOSE = "close"


class TicketStatus(str, Enum):
    OPEN = "open"
    CLOSED = "closed"
    UNKNOWN = "unknown"


class Validity(str, Enum):
    VALID = "valid"
    INVALID = "invalid"


class ValidatorConfigError(ValueError):
    """Raised when preprocessor configuration is invalid."""

    def __init__(self, message: str, *, code: str = "SECTION_VALIDATOR_INVALID_CONFIG", remediation: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.remediation = remediation if remediation is not None else ERROR_REMEDIATIONS.get(code)


@dataclass(frozen=True)
class Marker:
    """A `!!!` line opening or closing a conditional section."""

    kind: MarkerKind
    line_index: int
    tickets: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ValidatorOptions:
    """Rewrite policy, fixed for the duration of one build."""

    hide_invalid: bool = True
    invalid_message: str = DEFAULT_INVALID_MESSAGE
    annotate_valid: bool = False

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> "ValidatorOptions":
        if not isinstance(data, Mapping):
            raise ValidatorConfigError("section-validator options must be a mapping")
        defaults = cls()
        return cls(
            hide_invalid=_flag(data, "hide_invalid", defaults.hide_invalid),
            invalid_message=_text(data, "invalid_message", defaults.invalid_message),
            annotate_valid=_flag(data, "annotate_valid", defaults.annotate_valid),
        )


def _flag(data: Mapping[str, object], key: str, default: bool) -> bool:
    value = data.get(key, default)
    if not isinstance(value, bool):
        raise ValidatorConfigError(f"'{key}' must be a boolean, got {type(value).__name__}")
    return value


def _text(data: Mapping[str, object], key: str, default: str) -> str:
    value = data.get(key, default)
    if not isinstance(value, str):
        raise ValidatorConfigError(f"'{key}' must be a string, got {type(value).__name__}")
    return value
