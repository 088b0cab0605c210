"""OCR client utilities."""

from .client import (
    SUPPORTED_MIME_TYPES,
    MistralOcrClient,
    OcrClient,
    OcrPage,
    OcrResult,
    is_supported_mime_type,
)
from .sanitize import preview_text, sanitize_text

__all__ = [
    "MistralOcrClient",
    "OcrClient",
    "OcrPage",
    "OcrResult",
    "SUPPORTED_MIME_TYPES",
    "is_supported_mime_type",
    "preview_text",
    "sanitize_text",
]
