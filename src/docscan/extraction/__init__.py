"""JSON extraction providers and their selection logic."""

from .base import ExtractionResult, JsonExtractor, JsonSchema
from .cloudflare import CloudflareJsonExtractor
from .factory import ExtractorType, FallbackJsonExtractor, JsonExtractorFactory
from .mistral import MistralJsonExtractor
from .scoring import score_extraction

__all__ = [
    "CloudflareJsonExtractor",
    "ExtractionResult",
    "ExtractorType",
    "FallbackJsonExtractor",
    "JsonExtractor",
    "JsonExtractorFactory",
    "JsonSchema",
    "MistralJsonExtractor",
    "score_extraction",
]
