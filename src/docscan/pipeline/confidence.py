"""Overall confidence for a scan."""

from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal

OCR_WEIGHT = 0.6
EXTRACTION_WEIGHT = 0.4

_PRECISION = Decimal("0.01")


def _clamp(value: float) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(number):
        return 0.0
    return min(1.0, max(0.0, number))


def combine_confidence(ocr_confidence: float, extraction_confidence: float) -> float:
    """Weighted mean of OCR and extraction confidence, clamped and rounded half-up to 0.01."""

    blended = OCR_WEIGHT * _clamp(ocr_confidence) + EXTRACTION_WEIGHT * _clamp(extraction_confidence)
    bounded = min(1.0, max(0.0, blended))
    return float(Decimal(repr(bounded)).quantize(_PRECISION, rounding=ROUND_HALF_UP))


__all__ = ["combine_confidence", "EXTRACTION_WEIGHT", "OCR_WEIGHT"]
