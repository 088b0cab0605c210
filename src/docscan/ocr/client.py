"""Client for the Mistral OCR endpoint."""

from __future__ import annotations

import base64
import logging
from dataclasses import dataclass, field
from time import perf_counter
from typing import List, Optional, Protocol

import httpx

from docscan import metrics
from docscan.errors import OcrError
from docscan.ocr.sanitize import preview_text

logger = logging.getLogger(__name__)

DEFAULT_OCR_MODEL = "mistral-ocr-latest"
DEFAULT_TIMEOUT = 60.0

SUPPORTED_MIME_TYPES = {
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/heic",
    "image/heif",
    "image/webp",
    "application/pdf",
}

# Mistral does not score its pages, so a page without a score counts as fully trusted.
_UNSCORED_PAGE_CONFIDENCE = 1.0


@dataclass(frozen=True)
class OcrPage:
    index: int
    text: str
    confidence: float
    width: Optional[int] = None
    height: Optional[int] = None


@dataclass(frozen=True)
class OcrResult:
    """Text recognized in one uploaded document."""

    text: str
    confidence: float
    pages: List[OcrPage] = field(default_factory=list)


class OcrClient(Protocol):
    """Protocol for OCR backends consumed by the scanners."""

    def extract_text(self, image_bytes: bytes, mime_type: str) -> OcrResult:
        """Return the recognized text of the image or raise ``OcrError``."""


def is_supported_mime_type(mime_type: str | None) -> bool:
    return bool(mime_type) and mime_type.split(";")[0].strip().lower() in SUPPORTED_MIME_TYPES


class MistralOcrClient:
    """Send document images to Mistral OCR and collect the page markdown."""

    def __init__(
        self,
        *,
        api_key: str,
        base_url: str = "https://api.mistral.ai",
        model: str = DEFAULT_OCR_MODEL,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._model = model
        self._timeout = max(0.1, float(timeout))
        self._transport = transport

    def extract_text(self, image_bytes: bytes, mime_type: str) -> OcrResult:
        if not image_bytes:
            raise OcrError("Image payload is empty.", retryable=False)
        normalized_type = (mime_type or "").split(";")[0].strip().lower()
        if normalized_type not in SUPPORTED_MIME_TYPES:
            raise OcrError(f"Unsupported document type '{mime_type}'.", retryable=False)

        body = self._execute(self._build_payload(image_bytes, normalized_type))
        pages = self._parse_pages(body)
        text = "\n\n".join(page.text.strip() for page in pages if page.text.strip())
        if not text:
            raise OcrError("OCR service returned no text.", retryable=False)

        confidence = sum(page.confidence for page in pages) / len(pages)
        logger.debug(
            "OCR extracted pages=%s chars=%s confidence=%.2f preview=%s",
            len(pages),
            len(text),
            confidence,
            preview_text(text),
        )
        return OcrResult(text=text, confidence=confidence, pages=pages)

    def _build_payload(self, image_bytes: bytes, mime_type: str) -> dict[str, object]:
        encoded = base64.b64encode(image_bytes).decode("ascii")
        data_url = f"data:{mime_type};base64,{encoded}"
        if mime_type == "application/pdf":
            document = {"type": "document_url", "document_url": data_url}
        else:
            document = {"type": "image_url", "image_url": data_url}
        return {
            "model": self._model,
            "document": document,
            "include_image_base64": False,
        }

    def _execute(self, payload: dict[str, object]) -> dict[str, object]:
        endpoint = f"{self._base_url}/v1/ocr"
        headers = {"Authorization": f"Bearer {self._api_key}"}
        start = perf_counter()
        try:
            with httpx.Client(timeout=self._timeout, transport=self._transport) as client:
                response = client.post(endpoint, json=payload, headers=headers)
        except httpx.TimeoutException as exc:
            raise OcrError(f"OCR request timed out after {self._timeout:.0f}s.", retryable=True) from exc
        except httpx.HTTPError as exc:
            raise OcrError(f"OCR service unreachable: {exc}", retryable=True) from exc
        finally:
            metrics.UPSTREAM_LATENCY.labels(provider="mistral", operation="ocr").observe(
                perf_counter() - start
            )

        if response.status_code == 429 or response.status_code >= 500:
            raise OcrError(
                f"OCR service returned HTTP {response.status_code}.", retryable=True
            )
        if response.status_code >= 400:
            raise OcrError(
                f"OCR service rejected the document (HTTP {response.status_code}): "
                f"{response.text[:200]}",
                retryable=False,
            )
        try:
            body = response.json()
        except ValueError as exc:
            raise OcrError("OCR service returned a non-JSON body.", retryable=True) from exc
        if not isinstance(body, dict):
            raise OcrError("OCR service returned an unexpected payload.", retryable=False)
        return body

    @staticmethod
    def _parse_pages(body: dict[str, object]) -> List[OcrPage]:
        raw_pages = body.get("pages") or []
        if not isinstance(raw_pages, list) or not raw_pages:
            raise OcrError("OCR service returned an empty page set.", retryable=False)

        pages: List[OcrPage] = []
        for position, entry in enumerate(raw_pages):
            if not isinstance(entry, dict):
                continue
            dimensions = entry.get("dimensions") or {}
            raw_confidence = entry.get("confidence")
            try:
                confidence = (
                    float(raw_confidence)
                    if raw_confidence is not None
                    else _UNSCORED_PAGE_CONFIDENCE
                )
            except (TypeError, ValueError):
                confidence = _UNSCORED_PAGE_CONFIDENCE
            pages.append(
                OcrPage(
                    index=int(entry.get("index", position)),
                    text=str(entry.get("markdown") or entry.get("text") or ""),
                    confidence=min(1.0, max(0.0, confidence)),
                    width=dimensions.get("width") if isinstance(dimensions, dict) else None,
                    height=dimensions.get("height") if isinstance(dimensions, dict) else None,
                )
            )
        if not pages:
            raise OcrError("OCR service returned an empty page set.", retryable=False)
        pages.sort(key=lambda page: page.index)
        return pages


__all__ = [
    "MistralOcrClient",
    "OcrClient",
    "OcrPage",
    "OcrResult",
    "SUPPORTED_MIME_TYPES",
    "is_supported_mime_type",
]
