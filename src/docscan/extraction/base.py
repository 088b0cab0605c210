"""Shared types for JSON extraction providers."""

from __future__ import annotations

from dataclasses import dataclass, field
from time import perf_counter
from typing import Any, Dict, Mapping, Optional, Protocol

import httpx

from docscan import metrics
from docscan.errors import ExtractionError


@dataclass(frozen=True)
class JsonSchema:
    """Named JSON schema handed to an extraction provider."""

    name: str
    definition: Dict[str, Any]
    description: str = ""
    strict: bool = True

    @property
    def required(self) -> list[str]:
        return list(self.definition.get("required") or [])


@dataclass
class ExtractionResult:
    """Outcome of one extraction attempt.

    Providers report failures through ``error`` instead of raising, so a caller can
    decide between falling back to another provider and failing the scan.
    """

    payload: Dict[str, Any] = field(default_factory=dict)
    confidence: float = 0.0
    provider: str = ""
    error: Optional[ExtractionError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, payload: Dict[str, Any], confidence: float, provider: str) -> "ExtractionResult":
        return cls(payload=payload, confidence=confidence, provider=provider)

    @classmethod
    def failure(cls, error: ExtractionError, provider: str) -> "ExtractionResult":
        return cls(payload={}, confidence=0.0, provider=provider, error=error)


class JsonExtractor(Protocol):
    """Protocol implemented by every extraction provider."""

    name: str

    def extract(self, markdown: str, schema: JsonSchema) -> ExtractionResult:
        """Turn OCR markdown into a JSON object shaped by ``schema``."""


def post_json(
    endpoint: str,
    payload: Mapping[str, Any],
    *,
    headers: Mapping[str, str],
    timeout: float,
    provider: str,
    transport: httpx.BaseTransport | None = None,
) -> Dict[str, Any]:
    """POST ``payload`` and return the decoded JSON body.

    Raises ``ExtractionError``: timeouts, transport failures, 429 and 5xx are
    retryable, every other failure is permanent.
    """

    start = perf_counter()
    try:
        with httpx.Client(timeout=timeout, transport=transport) as client:
            response = client.post(endpoint, json=dict(payload), headers=dict(headers))
    except httpx.TimeoutException as exc:
        raise ExtractionError(
            f"{provider} request timed out after {timeout:.0f}s.", retryable=True
        ) from exc
    except httpx.HTTPError as exc:
        raise ExtractionError(f"{provider} unreachable: {exc}", retryable=True) from exc
    finally:
        metrics.UPSTREAM_LATENCY.labels(provider=provider, operation="extract").observe(
            perf_counter() - start
        )

    if response.status_code == 429 or response.status_code >= 500:
        raise ExtractionError(
            f"{provider} returned HTTP {response.status_code}.", retryable=True
        )
    if response.status_code >= 400:
        raise ExtractionError(
            f"{provider} rejected the request (HTTP {response.status_code}): {response.text[:200]}",
            retryable=False,
        )
    try:
        body = response.json()
    except ValueError as exc:
        raise ExtractionError(f"{provider} returned a non-JSON body.", retryable=False) from exc
    if not isinstance(body, dict):
        raise ExtractionError(f"{provider} returned an unexpected payload.", retryable=False)
    return body


def missing_required_fields(payload: Mapping[str, Any], schema: JsonSchema) -> list[str]:
    """Top-level required keys absent from ``payload``."""

    return [key for key in schema.required if payload.get(key) is None]


def check_strict_schema(
    payload: Mapping[str, Any], schema: JsonSchema, provider: str
) -> Optional[ExtractionError]:
    if not schema.strict:
        return None
    missing = missing_required_fields(payload, schema)
    if not missing:
        return None
    return ExtractionError(
        f"{provider} response is missing required fields: {', '.join(missing)}",
        retryable=False,
    )


__all__ = [
    "ExtractionResult",
    "JsonExtractor",
    "JsonSchema",
    "check_strict_schema",
    "missing_required_fields",
    "post_json",
]
