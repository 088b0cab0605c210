"""Application configuration helpers."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

ENV_FILE_CANDIDATES = (Path(".env"), Path(".env.local"))


class Settings(BaseModel):
    """Global application settings loaded from environment variables or .env files."""

    mistral_api_key: Optional[str] = Field(
        default=None,
        description="API key used for Mistral OCR and chat completions.",
    )
    mistral_base_url: str = Field(
        default="https://api.mistral.ai",
        description="Mistral API base URL.",
    )
    ocr_model: str = Field(
        default="mistral-ocr-latest",
        description="Model identifier passed to the OCR endpoint.",
    )
    extraction_model: str = Field(
        default="mistral-large-latest",
        description="Model identifier used by the Mistral JSON extractor.",
    )
    json_extractor: str = Field(
        default="mistral",
        description="Primary JSON extractor (mistral or cloudflare).",
    )
    json_extractor_fallback: Optional[str] = Field(
        default="cloudflare",
        description="Fallback JSON extractor used when the primary is unavailable or fails.",
    )
    cloudflare_account_id: Optional[str] = Field(
        default=None,
        description="Cloudflare account owning the Workers AI binding.",
    )
    cloudflare_api_token: Optional[str] = Field(
        default=None,
        description="Cloudflare API token with Workers AI access.",
    )
    cloudflare_base_url: str = Field(
        default="https://api.cloudflare.com/client/v4",
        description="Cloudflare REST API base URL.",
    )
    cloudflare_model: str = Field(
        default="@cf/meta/llama-3.3-70b-instruct-fp8-fast",
        description="Workers AI model used by the lightweight JSON extractor.",
    )
    request_timeout: float = Field(
        default=60.0,
        description="Seconds allowed for each upstream OCR or extraction call.",
    )
    max_upload_bytes: int = Field(
        default=10 * 1024 * 1024,
        description="Largest accepted image upload in bytes.",
    )
    log_level: str = Field(default="INFO", description="Logging level (DEBUG/INFO/WARNING/ERROR)")
    log_format: str = Field(
        default="plain",
        description="Logging format (plain/json).",
    )
    log_requests: bool = Field(
        default=True,
        description="Emit request access logs when true.",
    )

    model_config = ConfigDict(frozen=True)

    def secrets(self) -> list[str]:
        """Values that must never appear in log output."""

        return [self.mistral_api_key or "", self.cloudflare_api_token or ""]


def _coerce_bool(value: str) -> bool:
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _parse_env_file(path: Path) -> dict[str, str]:
    payload: dict[str, str] = {}
    try:
        with path.open("r", encoding="utf-8") as handle:
            for raw_line in handle:
                line = raw_line.strip()
                if not line or line.startswith("#") or "=" not in line:
                    continue
                key, raw_value = line.split("=", 1)
                payload[key.strip()] = raw_value.strip().strip('"').strip("'")
    except FileNotFoundError:
        return {}
    return payload


def _load_env_file_values() -> dict[str, str]:
    values: dict[str, str] = {}
    for candidate in ENV_FILE_CANDIDATES:
        values.update(_parse_env_file(candidate))
    return values


def _load_from_env() -> dict[str, object]:
    """Load optional overrides from env vars (with .env fallbacks)."""

    file_values = _load_env_file_values()

    def _env(key: str) -> Optional[str]:
        return os.environ.get(key) or file_values.get(key)

    payload: dict[str, object] = {}
    if (api_key := _env("DOCSCAN_MISTRAL_API_KEY") or _env("MISTRAL_API_KEY")):
        payload["mistral_api_key"] = api_key
    if (base_url := _env("DOCSCAN_MISTRAL_BASE_URL")):
        payload["mistral_base_url"] = base_url
    if (ocr_model := _env("DOCSCAN_OCR_MODEL")):
        payload["ocr_model"] = ocr_model
    if (extraction_model := _env("DOCSCAN_EXTRACTION_MODEL")):
        payload["extraction_model"] = extraction_model
    if (extractor := _env("DOCSCAN_JSON_EXTRACTOR")):
        payload["json_extractor"] = extractor.strip().lower()
    fallback = _env("DOCSCAN_JSON_EXTRACTOR_FALLBACK")
    if fallback is not None:
        normalized_fallback = fallback.strip().lower()
        payload["json_extractor_fallback"] = (
            None if normalized_fallback in {"", "none", "off"} else normalized_fallback
        )
    if (account_id := _env("DOCSCAN_CLOUDFLARE_ACCOUNT_ID")):
        payload["cloudflare_account_id"] = account_id
    if (cf_token := _env("DOCSCAN_CLOUDFLARE_API_TOKEN")):
        payload["cloudflare_api_token"] = cf_token
    if (cf_base := _env("DOCSCAN_CLOUDFLARE_BASE_URL")):
        payload["cloudflare_base_url"] = cf_base
    if (cf_model := _env("DOCSCAN_CLOUDFLARE_MODEL")):
        payload["cloudflare_model"] = cf_model
    if (timeout := _env("DOCSCAN_REQUEST_TIMEOUT")):
        try:
            payload["request_timeout"] = float(timeout)
        except ValueError:
            pass
    if (max_upload := _env("DOCSCAN_MAX_UPLOAD_BYTES")):
        try:
            payload["max_upload_bytes"] = int(max_upload)
        except ValueError:
            pass
    if (log_level := _env("DOCSCAN_LOG_LEVEL")):
        payload["log_level"] = log_level
    if (log_format := _env("DOCSCAN_LOG_FORMAT")):
        payload["log_format"] = log_format
    if (log_requests := _env("DOCSCAN_LOG_REQUESTS")):
        payload["log_requests"] = _coerce_bool(log_requests)
    return payload


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings."""

    return Settings(**_load_from_env())
