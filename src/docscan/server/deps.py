"""Dependency definitions for the Docscan API server."""

from __future__ import annotations

from typing import Mapping

from fastapi import Request

from docscan.pipeline.scanner import DocumentScanner

ScannerRegistry = Mapping[str, DocumentScanner]


def get_scanners(request: Request) -> ScannerRegistry:
    """Scanners built at startup, keyed by document type."""

    return request.app.state.scanners
