"""Document scanning pipeline."""

from .confidence import combine_confidence
from .factory import build_scanners
from .hallucination import (
    HallucinationVerdict,
    apply_verdict,
    detect_check_hallucination,
    detect_receipt_hallucination,
)
from .normalizer import normalize_check, normalize_receipt
from .scanner import CheckScanner, DocumentScanner, ReceiptScanner, ScanOutcome, ScanState

__all__ = [
    "CheckScanner",
    "DocumentScanner",
    "HallucinationVerdict",
    "ReceiptScanner",
    "ScanOutcome",
    "ScanState",
    "apply_verdict",
    "build_scanners",
    "combine_confidence",
    "detect_check_hallucination",
    "detect_receipt_hallucination",
    "normalize_check",
    "normalize_receipt",
]
