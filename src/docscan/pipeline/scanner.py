"""Per-document scanning pipeline: OCR, extraction, normalization and scoring."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from time import perf_counter
from typing import Any, Callable, Dict, List, Mapping, Optional, Type

from pydantic import BaseModel

from docscan import metrics
from docscan.errors import DocscanError, ExtractionError, OcrError, ValidationError
from docscan.extraction.base import JsonExtractor, JsonSchema
from docscan.models.check import Check, CheckScanResponse
from docscan.models.common import CamelModel, ConfidenceBreakdown, DocumentType
from docscan.models.receipt import Receipt, ReceiptScanResponse
from docscan.ocr.client import OcrClient, OcrResult
from docscan.ocr.sanitize import preview_text
from docscan.pipeline.confidence import combine_confidence
from docscan.pipeline.hallucination import (
    HallucinationVerdict,
    apply_verdict,
    detect_check_hallucination,
    detect_receipt_hallucination,
)
from docscan.pipeline.normalizer import normalize_check, normalize_receipt
from docscan.pipeline.schemas import (
    CHECK_SCHEMA,
    RECEIPT_SCHEMA,
    build_check_prompt,
    build_receipt_prompt,
)
from docscan.pipeline.validation import validate_document

logger = logging.getLogger(__name__)

Normalizer = Callable[[Mapping[str, Any]], Dict[str, Any]]
Detector = Callable[[Mapping[str, Any]], HallucinationVerdict]


class ScanState(str, Enum):
    IDLE = "idle"
    OCR_IN_FLIGHT = "ocr_in_flight"
    EXTRACTION_IN_FLIGHT = "extraction_in_flight"
    DONE = "done"
    FAILED = "failed"


@dataclass
class ScanOutcome:
    """Everything one ``scan`` call produced, successful or not."""

    document_type: str
    state: ScanState = ScanState.IDLE
    transitions: List[ScanState] = field(default_factory=lambda: [ScanState.IDLE])
    data: Optional[BaseModel] = None
    confidence: Optional[ConfidenceBreakdown] = None
    error: Optional[DocscanError] = None
    raw_text: Optional[str] = None
    provider: Optional[str] = None
    verdict: Optional[HallucinationVerdict] = None

    @property
    def ok(self) -> bool:
        return self.state is ScanState.DONE

    def advance(self, state: ScanState) -> None:
        self.state = state
        self.transitions.append(state)

    def fail(self, error: DocscanError) -> "ScanOutcome":
        self.error = error
        self.advance(ScanState.FAILED)
        return self


class DocumentScanner:
    """Run one document image through the full extraction pipeline.

    Instances hold only their collaborators and can be shared between concurrent
    requests. ``scan`` never raises for OCR, extraction or validation failures; they
    come back on the outcome with ``state == FAILED``.
    """

    def __init__(
        self,
        *,
        document_type: DocumentType,
        ocr_client: OcrClient,
        extractor: JsonExtractor,
        schema: JsonSchema,
        prompt_builder: Callable[[str], str],
        normalizer: Normalizer,
        detector: Detector,
        model: Type[BaseModel],
        response_model: Type[CamelModel],
    ) -> None:
        self.document_type = document_type
        self.ocr_client = ocr_client
        self.extractor = extractor
        self.schema = schema
        self._build_prompt = prompt_builder
        self._normalize = normalizer
        self._detect = detector
        self._model = model
        self._response_model = response_model

    def scan(self, image_bytes: bytes, mime_type: str) -> ScanOutcome:
        outcome = ScanOutcome(document_type=self.document_type)
        start = perf_counter()
        try:
            self._run(outcome, image_bytes, mime_type)
        finally:
            duration = perf_counter() - start
            status = "succeeded" if outcome.ok else "failed"
            metrics.SCANS.labels(document_type=self.document_type, status=status).inc()
            log_extra = {"document_type": self.document_type}
            if outcome.ok:
                logger.info(
                    "Scan finished document_type=%s provider=%s confidence=%s duration=%.3fs",
                    self.document_type,
                    outcome.provider,
                    outcome.confidence.overall if outcome.confidence else None,
                    duration,
                    extra=log_extra,
                )
            else:
                logger.warning(
                    "Scan failed document_type=%s state=%s error=%s duration=%.3fs",
                    self.document_type,
                    outcome.transitions[-2].value if len(outcome.transitions) > 1 else None,
                    outcome.error,
                    duration,
                    extra=log_extra,
                )
        return outcome

    def to_response(self, outcome: ScanOutcome) -> CamelModel:
        """Wrap a successful outcome in the API response envelope."""

        if not outcome.ok or outcome.data is None or outcome.confidence is None:
            raise ValueError("Only successful scans can be rendered as a response.")
        return self._response_model(data=outcome.data, confidence=outcome.confidence)

    def _run(self, outcome: ScanOutcome, image_bytes: bytes, mime_type: str) -> None:
        outcome.advance(ScanState.OCR_IN_FLIGHT)
        try:
            ocr: OcrResult = self.ocr_client.extract_text(image_bytes, mime_type)
        except OcrError as exc:
            outcome.fail(exc)
            return
        outcome.raw_text = ocr.text
        logger.debug(
            "OCR text for %s scan: %s", self.document_type, preview_text(ocr.text)
        )

        outcome.advance(ScanState.EXTRACTION_IN_FLIGHT)
        result = self.extractor.extract(self._build_prompt(ocr.text), self.schema)
        outcome.provider = result.provider
        if not result.ok:
            outcome.fail(result.error or ExtractionError("Extraction failed without detail."))
            return

        payload = dict(result.payload)
        payload["confidence"] = result.confidence
        normalized = self._normalize(payload)
        verdict = self._detect(normalized)
        outcome.verdict = verdict
        if verdict.flagged:
            logger.warning(
                "Likely fabricated %s data score=%s signals=%s",
                self.document_type,
                verdict.score,
                ",".join(verdict.signals),
                extra={"document_type": self.document_type},
            )
            metrics.HALLUCINATIONS_FLAGGED.labels(document_type=self.document_type).inc()

        try:
            document = validate_document(self._model, apply_verdict(normalized, verdict))
        except ValidationError as exc:
            outcome.fail(exc)
            return

        outcome.data = document
        outcome.confidence = ConfidenceBreakdown(
            ocr=min(1.0, max(0.0, ocr.confidence)),
            extraction=verdict.confidence,
            overall=combine_confidence(ocr.confidence, verdict.confidence),
        )
        outcome.advance(ScanState.DONE)


class CheckScanner(DocumentScanner):
    def __init__(self, *, ocr_client: OcrClient, extractor: JsonExtractor) -> None:
        super().__init__(
            document_type="check",
            ocr_client=ocr_client,
            extractor=extractor,
            schema=CHECK_SCHEMA,
            prompt_builder=build_check_prompt,
            normalizer=normalize_check,
            detector=detect_check_hallucination,
            model=Check,
            response_model=CheckScanResponse,
        )


class ReceiptScanner(DocumentScanner):
    def __init__(self, *, ocr_client: OcrClient, extractor: JsonExtractor) -> None:
        super().__init__(
            document_type="receipt",
            ocr_client=ocr_client,
            extractor=extractor,
            schema=RECEIPT_SCHEMA,
            prompt_builder=build_receipt_prompt,
            normalizer=normalize_receipt,
            detector=detect_receipt_hallucination,
            model=Receipt,
            response_model=ReceiptScanResponse,
        )


__all__ = [
    "CheckScanner",
    "DocumentScanner",
    "ReceiptScanner",
    "ScanOutcome",
    "ScanState",
]
