"""mdBook integration for the section validator."""

from .config import PREPROCESSOR_NAME, PreprocessorConfig
from .preprocessor import (
    PreprocessorInputError,
    PreprocessorResult,
    SectionValidatorPreprocessor,
    parse_input,
    version_warning,
)

__all__ = [
    "PREPROCESSOR_NAME",
    "PreprocessorConfig",
    "PreprocessorInputError",
    "PreprocessorResult",
    "SectionValidatorPreprocessor",
    "parse_input",
    "version_warning",
]
