"""Pydantic models defining shared data contracts."""

from docscan.models.check import Check, CheckScanResponse
from docscan.models.common import (
    CamelModel,
    ConfidenceBreakdown,
    DocumentType,
    ErrorResponse,
)
from docscan.models.receipt import (
    Merchant,
    Receipt,
    ReceiptItem,
    ReceiptMetadata,
    ReceiptPayment,
    ReceiptScanResponse,
    ReceiptTax,
    ReceiptTotals,
)

__all__ = [
    "CamelModel",
    "Check",
    "CheckScanResponse",
    "ConfidenceBreakdown",
    "DocumentType",
    "ErrorResponse",
    "Merchant",
    "Receipt",
    "ReceiptItem",
    "ReceiptMetadata",
    "ReceiptPayment",
    "ReceiptScanResponse",
    "ReceiptTax",
    "ReceiptTotals",
]
