"""Pydantic models for scanned checks."""

from __future__ import annotations

from datetime import date as calendar_date
from typing import Annotated, Literal, Optional

from pydantic import StringConstraints

from docscan.models.common import CamelModel, Confidence, ConfidenceBreakdown, DecimalString

AccountType = Literal["checking", "savings", "money_market", "other"]
CheckType = Literal[
    "personal",
    "business",
    "cashiers",
    "certified",
    "traveler",
    "money_order",
    "other",
]

ACCOUNT_TYPES: tuple[str, ...] = ("checking", "savings", "money_market", "other")
CHECK_TYPES: tuple[str, ...] = (
    "personal",
    "business",
    "cashiers",
    "certified",
    "traveler",
    "money_order",
    "other",
)


class Check(CamelModel):
    """Structured data extracted from a check image."""

    check_number: Optional[str] = None
    date: Optional[calendar_date] = None
    payee: Annotated[str, StringConstraints(min_length=1)]
    payer: Optional[str] = None
    amount: DecimalString
    amount_text: Optional[str] = None
    memo: Optional[str] = None
    bank_name: Optional[str] = None
    routing_number: Optional[Annotated[str, StringConstraints(pattern=r"^\d{9}$")]] = None
    account_number: Optional[str] = None
    account_type: Optional[AccountType] = None
    check_type: Optional[CheckType] = None
    signature: Optional[bool] = None
    signature_text: Optional[str] = None
    fractional_code: Optional[str] = None
    micr_line: Optional[str] = None
    is_valid_input: bool = True
    confidence: Confidence


class CheckScanResponse(CamelModel):
    """Successful check scan returned by the API."""

    data: Check
    document_type: Literal["check"] = "check"
    confidence: ConfidenceBreakdown
