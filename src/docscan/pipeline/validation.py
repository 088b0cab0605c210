"""Schema validation of normalized scan data."""

from __future__ import annotations

from typing import Any, List, Mapping, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from docscan.errors import ValidationError, ValidationIssue

ModelT = TypeVar("ModelT", bound=BaseModel)


def _issue_path(location: tuple[Any, ...]) -> str:
    return ".".join(str(part) for part in location)


def issues_from_pydantic(exc: PydanticValidationError) -> List[ValidationIssue]:
    """Flatten every pydantic error into a ``ValidationIssue``."""

    return [
        ValidationIssue(
            path=_issue_path(tuple(error.get("loc", ()))),
            code=str(error.get("type", "invalid")),
            message=str(error.get("msg", "Invalid value")),
        )
        for error in exc.errors()
    ]


def validate_document(model: Type[ModelT], data: Mapping[str, Any]) -> ModelT:
    """Validate ``data`` against ``model``, collecting every violation.

    Raises ``ValidationError`` listing all failing fields, keyed by their camelCase path.
    """

    try:
        return model.model_validate(dict(data))
    except PydanticValidationError as exc:
        issues = issues_from_pydantic(exc)
        raise ValidationError(
            f"{model.__name__} failed validation with {len(issues)} issue(s)", issues
        ) from exc


__all__ = ["issues_from_pydantic", "validate_document"]
