"""Custom exception hierarchy for robertok errors."""

import regex as re


def _with_details(message: str, **details: object) -> str:
    """Append each non-empty detail to ``message`` as ``(name: value)``."""
    parts = [message]
    parts.extend(f"({name}: {value})" for name, value in details.items() if value)
    return " ".join(parts)


class RobertokError(Exception):
    """Base exception for all robertok errors."""


class ResourceLoadError(RobertokError):
    """Raised when building tokenizer resources from disk or memory fails."""

    def __init__(self, message: str, *, resource_path: str | None = None) -> None:
        super().__init__(_with_details(message, path=resource_path))
        self.resource_path = resource_path


class PatternError(RobertokError):
    """Raised when a pre-tokenization pattern does not compile."""

    def __init__(self, pattern: str, regex_err: re.error) -> None:
        message = _with_details(
            "invalid pre-tokenization pattern", pattern=repr(pattern), reason=regex_err
        )
        super().__init__(message)
        self.pattern = pattern
        self.regex_err = regex_err
