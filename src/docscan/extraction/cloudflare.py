"""Lightweight JSON extraction through Cloudflare Workers AI."""

from __future__ import annotations

import json
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

PROVIDER_NAME = "cloudflare"
DEFAULT_CLOUDFLARE_MODEL = "@cf/meta/llama-3.3-70b-instruct-fp8-fast"
MAX_TOKENS = 2048

SYSTEM_PROMPT = (
    "You are a top-tier JSON extraction professional. Extract valid JSON from the provided "
    "markdown using these guidelines:\n"
    "1. The given markdown is the ONLY source of truth.\n"
    "2. Use null for fields you cannot confidently extract.\n"
    "3. NEVER invent data that is not explicitly in the text.\n"
    "4. Assign low confidence scores when information is unclear or incomplete.\n"
    "5. Set isValidInput=false if the input appears to be invalid or minimal.\n"
    "6. Return ONLY the JSON object with balanced braces and brackets, no extra text."
)


class CloudflareJsonExtractor:
    """Extractor backed by a Workers AI instruct model.

    The model has no structured-output mode, so the schema travels inside the prompt
    and the reply is cleaned and, if needed, repaired once before decoding.
    """

    name = PROVIDER_NAME

    def __init__(
        self,
        *,
        account_id: str,
        api_token: str,
        base_url: str = "https://api.cloudflare.com/client/v4",
        model: str = DEFAULT_CLOUDFLARE_MODEL,
        timeout: float = 60.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._account_id = account_id
        self._api_token = api_token
        self._base_url = base_url.rstrip("/")
        self._model = model
        self._timeout = max(0.1, float(timeout))
        self._transport = transport

    @property
    def endpoint(self) -> str:
        return f"{self._base_url}/accounts/{self._account_id}/ai/run/{self._model}"

    def extract(self, markdown: str, schema: JsonSchema) -> ExtractionResult:
        try:
            body = post_json(
                self.endpoint,
                self._build_payload(markdown, schema),
                headers={"Authorization": f"Bearer {self._api_token}"},
                timeout=self._timeout,
                provider=PROVIDER_NAME,
                transport=self._transport,
            )
            text = self._read_response(body)
            try:
                parsed = parse_json_object(text, repair=True)
            except JsonParseError as exc:
                raise ExtractionError(f"{PROVIDER_NAME} returned {exc}", retryable=False) from exc
        except ExtractionError as exc:
            logger.warning("Cloudflare extraction failed (retryable=%s): %s", exc.retryable, exc)
            return ExtractionResult.failure(exc, PROVIDER_NAME)

        schema_error = check_strict_schema(parsed, schema, PROVIDER_NAME)
        if schema_error is not None:
            logger.warning("Cloudflare extraction rejected: %s", schema_error)
            return ExtractionResult.failure(schema_error, PROVIDER_NAME)

        # Workers AI does not report a finish reason; a decoded object counts as complete.
        confidence = score_extraction("stop", parsed)
        logger.debug(
            "Cloudflare extraction finished schema=%s fields=%s confidence=%.2f",
            schema.name,
            len(parsed),
            confidence,
        )
        return ExtractionResult.success(parsed, confidence, PROVIDER_NAME)

    def _build_payload(self, markdown: str, schema: JsonSchema) -> Dict[str, Any]:
        prompt = (
            "Extract structured data from the following text and return it as valid JSON:\n\n"
            f"{markdown}\n\n"
            "Please follow this JSON schema structure:\n"
            f"{json.dumps(schema.definition, indent=2)}\n\n"
            "Return only the JSON object with no additional text or formatting."
        )
        return {
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            "max_tokens": MAX_TOKENS,
            "temperature": 0,
            "stream": False,
        }

    @staticmethod
    def _read_response(body: Dict[str, Any]) -> str:
        if body.get("success") is False:
            errors = body.get("errors") or []
            detail = "; ".join(
                str(entry.get("message", entry)) if isinstance(entry, dict) else str(entry)
                for entry in errors
            )
            raise ExtractionError(
                f"Cloudflare reported failure: {detail or 'unknown error'}", retryable=False
            )
        result = body.get("result")
        if isinstance(result, dict):
            response = result.get("response")
            if isinstance(response, dict):
                return json.dumps(response)
            if isinstance(response, str) and response.strip():
                return response
        elif isinstance(result, str) and result.strip():
            return result
        raise ExtractionError("Cloudflare returned an empty response.", retryable=False)


__all__ = ["CloudflareJsonExtractor", "DEFAULT_CLOUDFLARE_MODEL", "MAX_TOKENS"]
