"""Pydantic models for scanned receipts."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, List, Literal, Optional

from pydantic import Field, StringConstraints

from docscan.models.common import (
    CamelModel,
    Confidence,
    ConfidenceBreakdown,
    CurrencyCode,
    DecimalString,
)

ReceiptType = Literal["sale", "return", "refund", "estimate", "proforma", "other"]
PaymentMethod = Literal[
    "credit",
    "debit",
    "cash",
    "check",
    "gift_card",
    "store_credit",
    "mobile_payment",
    "other",
]
CardType = Literal[
    "visa",
    "mastercard",
    "amex",
    "discover",
    "diners_club",
    "jcb",
    "union_pay",
    "other",
]
TaxType = Literal["sales", "vat", "gst", "pst", "hst", "excise", "service", "other"]
ItemUnit = Literal["ea", "kg", "g", "lb", "oz", "l", "ml", "gal", "pc", "pr", "pk", "box", "other"]
ReceiptFormat = Literal[
    "retail",
    "restaurant",
    "service",
    "utility",
    "transportation",
    "accommodation",
    "other",
]

RECEIPT_TYPES: tuple[str, ...] = ("sale", "return", "refund", "estimate", "proforma", "other")
PAYMENT_METHODS: tuple[str, ...] = (
    "credit",
    "debit",
    "cash",
    "check",
    "gift_card",
    "store_credit",
    "mobile_payment",
    "other",
)
CARD_TYPES: tuple[str, ...] = (
    "visa",
    "mastercard",
    "amex",
    "discover",
    "diners_club",
    "jcb",
    "union_pay",
    "other",
)
TAX_TYPES: tuple[str, ...] = ("sales", "vat", "gst", "pst", "hst", "excise", "service", "other")
ITEM_UNITS: tuple[str, ...] = (
    "ea",
    "kg",
    "g",
    "lb",
    "oz",
    "l",
    "ml",
    "gal",
    "pc",
    "pr",
    "pk",
    "box",
    "other",
)
RECEIPT_FORMATS: tuple[str, ...] = (
    "retail",
    "restaurant",
    "service",
    "utility",
    "transportation",
    "accommodation",
    "other",
)


class Merchant(CamelModel):
    name: Annotated[str, StringConstraints(min_length=1)]
    address: Optional[str] = None
    phone: Optional[str] = None
    website: Optional[str] = None
    tax_id: Optional[str] = None
    store_id: Optional[str] = None
    chain_name: Optional[str] = None


class ReceiptTotals(CamelModel):
    subtotal: Optional[DecimalString] = None
    tax: Optional[DecimalString] = None
    tip: Optional[DecimalString] = None
    discount: Optional[DecimalString] = None
    total: DecimalString


class ReceiptItem(CamelModel):
    """A purchased line item."""

    description: Annotated[str, StringConstraints(min_length=1)]
    sku: Optional[str] = None
    quantity: Optional[Annotated[float, Field(ge=0)]] = None
    unit: Optional[ItemUnit] = None
    unit_price: Optional[DecimalString] = None
    total_price: DecimalString
    discounted: Optional[bool] = None
    discount_amount: Optional[DecimalString] = None
    category: Optional[str] = None


class ReceiptTax(CamelModel):
    tax_name: Optional[str] = None
    tax_type: Optional[TaxType] = None
    tax_rate: Optional[Annotated[float, Field(ge=0, le=1)]] = None
    tax_amount: Optional[DecimalString] = None


class ReceiptPayment(CamelModel):
    method: Optional[PaymentMethod] = None
    card_type: Optional[CardType] = None
    last_digits: Optional[Annotated[str, StringConstraints(pattern=r"^\d{4}$")]] = None
    amount: Optional[DecimalString] = None
    transaction_id: Optional[str] = None


class ReceiptMetadata(CamelModel):
    confidence_score: Optional[Confidence] = None
    currency: Optional[CurrencyCode] = None
    language_code: Optional[
        Annotated[str, StringConstraints(pattern=r"^[a-z]{2}(-[A-Z]{2})?$")]
    ] = None
    time_zone: Optional[str] = None
    receipt_format: Optional[ReceiptFormat] = None
    source_image_id: Optional[str] = None
    warnings: Optional[List[str]] = None


class Receipt(CamelModel):
    """Structured data extracted from a receipt image."""

    merchant: Merchant
    receipt_number: Optional[str] = None
    receipt_type: Optional[ReceiptType] = None
    timestamp: datetime
    payment_method: Optional[PaymentMethod] = None
    totals: ReceiptTotals
    currency: CurrencyCode
    items: Optional[List[ReceiptItem]] = None
    taxes: Optional[List[ReceiptTax]] = None
    payments: Optional[List[ReceiptPayment]] = None
    notes: Optional[List[str]] = None
    metadata: Optional[ReceiptMetadata] = None
    is_valid_input: bool = True
    confidence: Confidence


class ReceiptScanResponse(CamelModel):
    """Successful receipt scan returned by the API."""

    data: Receipt
    document_type: Literal["receipt"] = "receipt"
    confidence: ConfidenceBreakdown
