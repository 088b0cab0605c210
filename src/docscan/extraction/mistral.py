"""JSON extraction through Mistral chat completions with schema-constrained output."""

from __future__ import annotations

import logging
from typing import Any, Dict

import httpx

from docscan.errors import ExtractionError
from docscan.extraction.base import (
    ExtractionResult,
    JsonSchema,
    check_strict_schema,
    post_json,
)
from docscan.extraction.parsing import JsonParseError, parse_json_object
from docscan.extraction.scoring import score_extraction

logger = logging.getLogger(__name__)

PROVIDER_NAME = "mistral"
DEFAULT_EXTRACTION_MODEL = "mistral-large-latest"

SYSTEM_PROMPT = (
    "You are a JSON extraction professional. Extract valid JSON from the provided markdown. "
    "Make sure the quotes are correctly balanced and the JSON is correct. "
    "The given markdown is always a source of truth. "
    "If something is not there, then you have no value for that."
)


class MistralJsonExtractor:
    """General-purpose extractor relying on Mistral's ``json_schema`` response format."""

    name = PROVIDER_NAME

    def __init__(
        self,
        *,
        api_key: str,
        base_url: str = "https://api.mistral.ai",
        model: str = DEFAULT_EXTRACTION_MODEL,
        timeout: float = 60.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._model = model
        self._timeout = max(0.1, float(timeout))
        self._transport = transport

    def extract(self, markdown: str, schema: JsonSchema) -> ExtractionResult:
        try:
            body = post_json(
                f"{self._base_url}/v1/chat/completions",
                self._build_payload(markdown, schema),
                headers={"Authorization": f"Bearer {self._api_key}"},
                timeout=self._timeout,
                provider=PROVIDER_NAME,
                transport=self._transport,
            )
            content, finish_reason = self._read_choice(body)
            try:
                parsed = parse_json_object(content)
            except JsonParseError as exc:
                raise ExtractionError(f"{PROVIDER_NAME} returned {exc}", retryable=False) from exc
        except ExtractionError as exc:
            logger.warning("Mistral extraction failed (retryable=%s): %s", exc.retryable, exc)
            return ExtractionResult.failure(exc, PROVIDER_NAME)

        schema_error = check_strict_schema(parsed, schema, PROVIDER_NAME)
        if schema_error is not None:
            logger.warning("Mistral extraction rejected: %s", schema_error)
            return ExtractionResult.failure(schema_error, PROVIDER_NAME)

        confidence = score_extraction(finish_reason, parsed)
        logger.debug(
            "Mistral extraction finished schema=%s fields=%s confidence=%.2f",
            schema.name,
            len(parsed),
            confidence,
        )
        return ExtractionResult.success(parsed, confidence, PROVIDER_NAME)

    def _build_payload(self, markdown: str, schema: JsonSchema) -> Dict[str, Any]:
        return {
            "model": self._model,
            "temperature": 0,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": markdown},
            ],
            "response_format": {
                "type": "json_schema",
                "json_schema": {
                    "name": schema.name,
                    "description": schema.description,
                    "schema": schema.definition,
                    "strict": schema.strict,
                },
            },
        }

    @staticmethod
    def _read_choice(body: Dict[str, Any]) -> tuple[str, str | None]:
        choices = body.get("choices")
        if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
            raise ExtractionError("Mistral returned no choices.", retryable=False)
        choice = choices[0]
        message = choice.get("message")
        if not isinstance(message, dict):
            raise ExtractionError("Mistral returned a malformed message.", retryable=False)
        content = message.get("content")
        if not isinstance(content, str) or not content.strip():
            raise ExtractionError("Mistral returned an empty response.", retryable=False)
        return content.strip(), choice.get("finish_reason")


__all__ = ["MistralJsonExtractor", "DEFAULT_EXTRACTION_MODEL", "SYSTEM_PROMPT"]
