"""ASGI application for Docscan."""

from __future__ import annotations

import logging
from time import perf_counter
from typing import Any, List, Mapping, Optional
from uuid import uuid4

from fastapi import Depends, FastAPI, HTTPException, Query, Request, status
from fastapi.responses import JSONResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.concurrency import run_in_threadpool
from starlette.exceptions import HTTPException as StarletteHTTPException

from docscan import __version__, metrics
from docscan.config import Settings, get_settings
from docscan.errors import (
    ConfigurationError,
    DocscanError,
    ExtractionError,
    OcrError,
    ValidationError,
)
from docscan.extraction.factory import FallbackJsonExtractor
from docscan.logging_utils import bind_request_id
from docscan.logging_utils import configure_logging as configure_app_logging
from docscan.models.common import DOCUMENT_TYPES, ErrorResponse
from docscan.ocr.client import is_supported_mime_type
from docscan.pipeline.factory import build_scanners
from docscan.pipeline.scanner import DocumentScanner
from docscan.server import deps

logger = logging.getLogger(__name__)


def status_for_error(exc: DocscanError) -> int:
    """HTTP status for a pipeline failure."""

    if isinstance(exc, ValidationError):
        return status.HTTP_422_UNPROCESSABLE_ENTITY
    if isinstance(exc, ConfigurationError):
        return status.HTTP_500_INTERNAL_SERVER_ERROR
    if exc.retryable:
        return status.HTTP_503_SERVICE_UNAVAILABLE
    if isinstance(exc, (OcrError, ExtractionError)):
        return status.HTTP_502_BAD_GATEWAY
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def _error_response(status_code: int, message: str, issues: Optional[List[dict]] = None) -> JSONResponse:
    body = ErrorResponse(error=message, issues=issues)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


def _extractor_names(scanners: Mapping[str, DocumentScanner]) -> List[str]:
    names: List[str] = []
    for scanner in scanners.values():
        extractor = scanner.extractor
        if isinstance(extractor, FallbackJsonExtractor):
            candidates = [extractor.primary.name, extractor.fallback.name]
        else:
            candidates = [extractor.name]
        names.extend(name for name in candidates if name not in names)
    return names


def _configure_logging(settings: Settings) -> None:
    configure_app_logging(settings.log_level, settings.log_format, settings.secrets())


def create_app(
    scanners: Optional[Mapping[str, DocumentScanner]] = None,
    settings: Optional[Settings] = None,
) -> FastAPI:
    """Create and configure a FastAPI application instance.

    Scanners are built from settings unless supplied; a ``ConfigurationError`` raised
    while building them aborts startup.
    """

    settings = settings or get_settings()
    _configure_logging(settings)

    if scanners is None:
        scanners = build_scanners(settings)

    application = FastAPI(title="Docscan", version=__version__)
    application.state.scanners = dict(scanners)
    logger.debug("Application created with log level %s", settings.log_level)

    access_logger = logging.getLogger("docscan.access")

    @application.middleware("http")
    async def log_request_response(request: Request, call_next):
        """Tag each request with an id, time it and record metrics."""

        request_id = request.headers.get("X-Request-ID") or uuid4().hex
        request.state.request_id = request_id
        start = perf_counter()
        path = request.url.path
        method = request.method
        try:
            with bind_request_id(request_id):
                response: Response = await call_next(request)
        except Exception:
            duration_ms = (perf_counter() - start) * 1000
            access_logger.exception(
                "HTTP %s %s status=500 duration_ms=%.2f",
                method,
                path,
                duration_ms,
                extra={"request_id": request_id},
            )
            metrics.REQUEST_COUNT.labels(method=method, path=path, status="500").inc()
            metrics.REQUEST_LATENCY.labels(method=method, path=path).observe(duration_ms / 1000.0)
            raise

        duration_ms = (perf_counter() - start) * 1000
        response.headers.setdefault("X-Request-ID", request_id)
        if settings.log_requests:
            access_logger.info(
                "HTTP %s %s status=%s duration_ms=%.2f",
                method,
                path,
                response.status_code,
                duration_ms,
                extra={"request_id": request_id},
            )
        metrics.REQUEST_COUNT.labels(
            method=method,
            path=path,
            status=str(response.status_code),
        ).inc()
        metrics.REQUEST_LATENCY.labels(method=method, path=path).observe(duration_ms / 1000.0)
        return response

    @application.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return _error_response(exc.status_code, str(exc.detail))

    @application.exception_handler(DocscanError)
    async def docscan_exception_handler(request: Request, exc: DocscanError):
        status_code = status_for_error(exc)
        logger.warning(
            "Scan request failed on %s %s status=%s: %s",
            request.method,
            request.url.path,
            status_code,
            exc,
        )
        issues = None
        if isinstance(exc, ValidationError):
            issues = [issue.as_dict() for issue in exc.issues]
        return _error_response(status_code, exc.message, issues)

    async def _scan(
        request: Request,
        document_type: str,
        scanners: deps.ScannerRegistry,
    ) -> JSONResponse:
        if document_type not in DOCUMENT_TYPES:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Unknown document type '{document_type}'. Expected one of: "
                + ", ".join(DOCUMENT_TYPES),
            )
        scanner = scanners.get(document_type)
        if scanner is None:
            raise ConfigurationError(f"No scanner configured for document type '{document_type}'.")

        content_type = request.headers.get("content-type", "")
        if not is_supported_mime_type(content_type):
            raise HTTPException(
                status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
                detail=f"Unsupported content type '{content_type or 'missing'}'.",
            )
        body = await request.body()
        if not body:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST, detail="Request body is empty."
            )
        if len(body) > settings.max_upload_bytes:
            raise HTTPException(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                detail=f"Image exceeds {settings.max_upload_bytes} byte limit.",
            )

        outcome = await run_in_threadpool(scanner.scan, body, content_type)
        if not outcome.ok:
            raise outcome.error or DocscanError("Scan failed.")
        return JSONResponse(content=scanner.to_response(outcome).to_payload())

    @application.post("/process", summary="Scan a check or receipt image")
    async def process_endpoint(
        request: Request,
        document_type: str = Query(default="receipt", alias="type"),
        scanners: deps.ScannerRegistry = Depends(deps.get_scanners),
    ) -> JSONResponse:
        return await _scan(request, document_type.strip().lower(), scanners)

    @application.post("/check", summary="Scan a check image")
    async def check_endpoint(
        request: Request,
        scanners: deps.ScannerRegistry = Depends(deps.get_scanners),
    ) -> JSONResponse:
        return await _scan(request, "check", scanners)

    @application.post("/receipt", summary="Scan a receipt image")
    async def receipt_endpoint(
        request: Request,
        scanners: deps.ScannerRegistry = Depends(deps.get_scanners),
    ) -> JSONResponse:
        return await _scan(request, "receipt", scanners)

    @application.get("/health", summary="Service health")
    def health_endpoint(
        scanners: deps.ScannerRegistry = Depends(deps.get_scanners),
    ) -> dict[str, Any]:
        return {
            "status": "ok",
            "version": __version__,
            "extractors": _extractor_names(scanners),
        }

    @application.get("/metrics", include_in_schema=False)
    def metrics_endpoint() -> Response:
        payload = generate_latest()
        return Response(content=payload, media_type=CONTENT_TYPE_LATEST)

    return application


__all__ = ["create_app", "status_for_error"]
