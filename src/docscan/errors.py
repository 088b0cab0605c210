"""Error taxonomy shared by the scanning pipeline and the HTTP layer."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Sequence


class DocscanError(Exception):
    """Base class for pipeline failures.

    ``retryable`` marks transient upstream failures (timeouts, throttling, 5xx) that a
    caller may retry around the failing call. The pipeline itself never retries.
    """

    retryable: bool = False

    def __init__(self, message: str, *, retryable: bool | None = None) -> None:
        super().__init__(message)
        self.message = message
        if retryable is not None:
            self.retryable = retryable

    def __str__(self) -> str:
        return self.message


class OcrError(DocscanError):
    """Raised when the upstream OCR service fails or returns nothing usable."""


class ExtractionError(DocscanError):
    """Upstream JSON extraction failed or returned data that does not fit the schema."""


class ConfigurationError(DocscanError):
    """Missing or invalid provider configuration. Fatal at startup, never retried."""

    retryable = False


@dataclass(frozen=True)
class ValidationIssue:
    """A single schema violation."""

    path: str
    code: str
    message: str

    def as_dict(self) -> dict[str, str]:
        return {"path": self.path, "code": self.code, "message": self.message}


class ValidationError(DocscanError):
    """Normalized data failed schema validation; carries every violated field."""

    def __init__(self, message: str, issues: Iterable[ValidationIssue] = ()) -> None:
        super().__init__(message, retryable=False)
        self.issues: List[ValidationIssue] = list(issues)

    def __str__(self) -> str:
        if not self.issues:
            return self.message
        details = "; ".join(f"{issue.path or '<root>'}: {issue.message}" for issue in self.issues)
        return f"{self.message}: {details}"


def compose_errors(errors: Sequence[DocscanError], *, cls: type[DocscanError]) -> DocscanError:
    """Fold several failures into one, retryable only when every part was."""

    message = " | ".join(str(error) for error in errors)
    retryable = bool(errors) and all(error.retryable for error in errors)
    return cls(message, retryable=retryable)


__all__ = [
    "DocscanError",
    "OcrError",
    "ExtractionError",
    "ConfigurationError",
    "ValidationError",
    "ValidationIssue",
    "compose_errors",
]
