"""Selection of JSON extraction providers with availability probing and fallback."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Mapping, Optional

import httpx

from docscan import metrics
from docscan.config import Settings
from docscan.errors import ConfigurationError, ExtractionError, compose_errors
from docscan.extraction.base import ExtractionResult, JsonExtractor, JsonSchema
from docscan.extraction.cloudflare import CloudflareJsonExtractor
from docscan.extraction.mistral import MistralJsonExtractor

logger = logging.getLogger(__name__)

MIN_API_KEY_LENGTH = 20
PLACEHOLDER_API_KEYS = frozenset({"your-api-key-here", "api-key", "mistral-api-key", "placeholder"})


class ExtractorType(str, Enum):
    MISTRAL = "mistral"
    CLOUDFLARE = "cloudflare"

    @classmethod
    def parse(cls, value: "ExtractorType | str") -> "ExtractorType":
        if isinstance(value, cls):
            return value
        normalized = str(value or "").strip().lower()
        try:
            return cls(normalized)
        except ValueError as exc:
            supported = ", ".join(member.value for member in cls)
            raise ConfigurationError(
                f"Unsupported JSON extractor '{value}'. Expected one of: {supported}."
            ) from exc


@dataclass(frozen=True)
class Availability:
    available: bool
    reason: str = ""


AvailabilityProbe = Callable[[], Availability]


def validate_api_key(api_key: Optional[str]) -> Availability:
    """Sanity-check a Mistral API key without calling the API."""

    key = (api_key or "").strip()
    if not key:
        return Availability(False, "Mistral API key is not configured")
    if key.lower() in PLACEHOLDER_API_KEYS:
        return Availability(False, "Mistral API key is a placeholder value")
    if len(key) < MIN_API_KEY_LENGTH:
        return Availability(False, f"Mistral API key is shorter than {MIN_API_KEY_LENGTH} characters")
    return Availability(True)


class FallbackJsonExtractor:
    """Try the primary provider and consult the fallback only when it fails."""

    def __init__(self, primary: JsonExtractor, fallback: JsonExtractor) -> None:
        self.primary = primary
        self.fallback = fallback
        self.name = f"{primary.name}+{fallback.name}"

    def extract(self, markdown: str, schema: JsonSchema) -> ExtractionResult:
        first = self.primary.extract(markdown, schema)
        if first.ok:
            return first

        logger.warning(
            "Primary extractor %s failed, trying %s: %s",
            self.primary.name,
            self.fallback.name,
            first.error,
        )
        metrics.EXTRACTOR_FALLBACKS.labels(
            primary=self.primary.name, fallback=self.fallback.name, reason="error"
        ).inc()
        second = self.fallback.extract(markdown, schema)
        if second.ok:
            return second

        errors = [error for error in (first.error, second.error) if error is not None]
        combined = compose_errors(errors, cls=ExtractionError)
        return ExtractionResult.failure(combined, self.name)


class JsonExtractorFactory:
    """Build extractors from settings.

    Probes can be replaced per type, which is how tests simulate misconfigured or
    unreachable providers.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        transport: httpx.BaseTransport | None = None,
        probes: Optional[Mapping[ExtractorType, AvailabilityProbe]] = None,
    ) -> None:
        self._settings = settings
        self._transport = transport
        self._probes: Dict[ExtractorType, AvailabilityProbe] = {
            ExtractorType.MISTRAL: self._probe_mistral,
            ExtractorType.CLOUDFLARE: self._probe_cloudflare,
        }
        if probes:
            self._probes.update(probes)

    def check_availability(self, extractor_type: ExtractorType | str) -> Availability:
        kind = ExtractorType.parse(extractor_type)
        probe = self._probes.get(kind)
        if probe is None:
            return Availability(False, f"No availability probe registered for {kind.value}")
        try:
            return probe()
        except Exception as exc:
            logger.debug("Availability probe for %s raised", kind.value, exc_info=True)
            return Availability(False, f"Availability check failed: {exc}")

    def available_types(self) -> List[ExtractorType]:
        return [kind for kind in ExtractorType if self.check_availability(kind).available]

    def create(
        self,
        primary: ExtractorType | str,
        fallback: ExtractorType | str | None = None,
        *,
        validate_availability: bool = True,
    ) -> JsonExtractor:
        primary_type = ExtractorType.parse(primary)
        fallback_type = ExtractorType.parse(fallback) if fallback else None
        if fallback_type == primary_type:
            fallback_type = None

        if not validate_availability:
            extractor = self._build(primary_type)
            if fallback_type is None:
                return extractor
            return FallbackJsonExtractor(extractor, self._build(fallback_type))

        primary_status = self.check_availability(primary_type)
        fallback_status = (
            self.check_availability(fallback_type) if fallback_type is not None else None
        )

        if not primary_status.available:
            if fallback_type is not None and fallback_status is not None and fallback_status.available:
                logger.warning(
                    "Extractor %s unavailable (%s); using fallback %s",
                    primary_type.value,
                    primary_status.reason,
                    fallback_type.value,
                )
                metrics.EXTRACTOR_FALLBACKS.labels(
                    primary=primary_type.value,
                    fallback=fallback_type.value,
                    reason="unavailable",
                ).inc()
                return self._build(fallback_type)

            reasons = [f"{primary_type.value}: {primary_status.reason}"]
            if fallback_type is not None and fallback_status is not None:
                reasons.append(f"{fallback_type.value}: {fallback_status.reason}")
            raise ConfigurationError(
                "No JSON extractor is available (" + "; ".join(reasons) + ")"
            )

        extractor = self._build(primary_type)
        if fallback_type is not None and fallback_status is not None and fallback_status.available:
            return FallbackJsonExtractor(extractor, self._build(fallback_type))
        if fallback_type is not None and fallback_status is not None:
            logger.info(
                "Fallback extractor %s unavailable: %s", fallback_type.value, fallback_status.reason
            )
        return extractor

    def _build(self, extractor_type: ExtractorType) -> JsonExtractor:
        settings = self._settings
        if extractor_type is ExtractorType.MISTRAL:
            return MistralJsonExtractor(
                api_key=settings.mistral_api_key or "",
                base_url=settings.mistral_base_url,
                model=settings.extraction_model,
                timeout=settings.request_timeout,
                transport=self._transport,
            )
        if extractor_type is ExtractorType.CLOUDFLARE:
            return CloudflareJsonExtractor(
                account_id=settings.cloudflare_account_id or "",
                api_token=settings.cloudflare_api_token or "",
                base_url=settings.cloudflare_base_url,
                model=settings.cloudflare_model,
                timeout=settings.request_timeout,
                transport=self._transport,
            )
        raise ConfigurationError(f"Unsupported JSON extractor '{extractor_type}'.")

    def _probe_mistral(self) -> Availability:
        return validate_api_key(self._settings.mistral_api_key)

    def _probe_cloudflare(self) -> Availability:
        missing = [
            name
            for name, value in (
                ("account id", self._settings.cloudflare_account_id),
                ("API token", self._settings.cloudflare_api_token),
            )
            if not (value or "").strip()
        ]
        if missing:
            return Availability(False, f"Cloudflare {' and '.join(missing)} not configured")
        return Availability(True)


__all__ = [
    "Availability",
    "ExtractorType",
    "FallbackJsonExtractor",
    "JsonExtractorFactory",
    "validate_api_key",
]
