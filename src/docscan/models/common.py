"""Shared field types and response envelopes."""

from __future__ import annotations

from typing import Annotated, Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, StringConstraints
from pydantic.alias_generators import to_camel

DecimalString = Annotated[str, StringConstraints(pattern=r"^\d+(\.\d+)?$")]
Confidence = Annotated[float, Field(ge=0.0, le=1.0)]
CurrencyCode = Annotated[str, StringConstraints(pattern=r"^[A-Z]{3}$")]

DocumentType = Literal["check", "receipt"]
DOCUMENT_TYPES: tuple[str, ...] = ("check", "receipt")


class CamelModel(BaseModel):
    """Base model exchanging camelCase JSON while exposing snake_case attributes."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ConfidenceBreakdown(BaseModel):
    """Per-stage confidence scores surfaced to API callers."""

    ocr: Confidence
    extraction: Confidence
    overall: Confidence


class ErrorResponse(BaseModel):
    """Error envelope returned by every failing endpoint."""

    error: str
    issues: Optional[List[Dict[str, str]]] = None
