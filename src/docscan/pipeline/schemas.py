"""Extraction schemas and prompts for checks and receipts."""

from __future__ import annotations

from typing import Any, Dict

from docscan.extraction.base import JsonSchema
from docscan.models.check import ACCOUNT_TYPES, CHECK_TYPES
from docscan.models.receipt import (
    CARD_TYPES,
    ITEM_UNITS,
    PAYMENT_METHODS,
    RECEIPT_FORMATS,
    RECEIPT_TYPES,
    TAX_TYPES,
)


def _string(description: str, **extra: Any) -> Dict[str, Any]:
    return {"type": "string", "description": description, **extra}


def _number(description: str, **extra: Any) -> Dict[str, Any]:
    return {"type": "number", "description": description, "minimum": 0, **extra}


def _enum(description: str, values: tuple[str, ...]) -> Dict[str, Any]:
    return {"type": "string", "description": description, "enum": list(values)}


_CONFIDENCE = _number("Overall confidence score (0-1)", maximum=1)
_IS_VALID_INPUT = {
    "type": "boolean",
    "description": "False when the image does not look like a real document",
}

CHECK_SCHEMA = JsonSchema(
    name="check",
    description="Structured data extracted from a check image",
    definition={
        "type": "object",
        "required": ["amount", "confidence"],
        "properties": {
            "checkNumber": _string("Check number or identifier"),
            "date": _string("Date on the check (YYYY-MM-DD)"),
            "payee": _string("Person or entity to whom the check is payable"),
            "payer": _string("Person or entity who wrote the check"),
            "amount": _number("Dollar amount of the check"),
            "amountText": _string("Written text amount of the check"),
            "memo": _string("Memo or note on the check"),
            "bankName": _string("Name of the bank issuing the check"),
            "routingNumber": _string("Bank routing number (9 digits)"),
            "accountNumber": _string("Bank account number"),
            "accountType": _enum("Type of account", ACCOUNT_TYPES),
            "checkType": _enum("Type of check", CHECK_TYPES),
            "signature": {"type": "boolean", "description": "Whether the check appears signed"},
            "signatureText": _string("Text of the signature if readable"),
            "fractionalCode": _string("Fractional routing code printed on the check"),
            "micrLine": _string("Full MICR line printed along the bottom of the check"),
            "isValidInput": _IS_VALID_INPUT,
            "confidence": _CONFIDENCE,
        },
    },
)

RECEIPT_SCHEMA = JsonSchema(
    name="receipt",
    description="Structured data extracted from a receipt image",
    definition={
        "type": "object",
        "required": ["merchant", "totals", "confidence"],
        "properties": {
            "merchant": {
                "type": "object",
                "required": ["name"],
                "properties": {
                    "name": _string("Name of the store or merchant"),
                    "address": _string("Merchant street address"),
                    "phone": _string("Merchant phone number"),
                    "website": _string("Merchant website"),
                    "taxId": _string("Merchant tax identifier"),
                    "storeId": _string("Store or branch number"),
                    "chainName": _string("Parent chain name"),
                },
            },
            "receiptNumber": _string("Receipt or transaction number"),
            "receiptType": _enum("Kind of receipt", RECEIPT_TYPES),
            "timestamp": _string("Date and time of the transaction (ISO 8601)"),
            "paymentMethod": _enum("Primary payment method", PAYMENT_METHODS),
            "totals": {
                "type": "object",
                "required": ["total"],
                "properties": {
                    "subtotal": _number("Amount before tax"),
                    "tax": _number("Tax amount"),
                    "tip": _number("Tip amount"),
                    "discount": _number("Discount amount"),
                    "total": _number("Final amount paid"),
                },
            },
            "currency": _string("ISO 4217 currency code", pattern="^[A-Z]{3}$"),
            "items": {
                "type": "array",
                "items": {
                    "type": "object",
                    "required": ["description", "totalPrice"],
                    "properties": {
                        "description": _string("Item description"),
                        "sku": _string("Stock keeping unit"),
                        "quantity": _number("Quantity purchased"),
                        "unit": _enum("Unit of measure", ITEM_UNITS),
                        "unitPrice": _number("Price per unit"),
                        "totalPrice": _number("Line total"),
                        "discounted": {"type": "boolean", "description": "Whether a discount applied"},
                        "discountAmount": _number("Discount applied to the line"),
                        "category": _string("Item category"),
                    },
                },
            },
            "taxes": {
                "type": "array",
                "items": {
                    "type": "object",
                    "properties": {
                        "taxName": _string("Tax label as printed"),
                        "taxType": _enum("Kind of tax", TAX_TYPES),
                        "taxRate": _number("Tax rate as a decimal fraction", maximum=1),
                        "taxAmount": _number("Tax amount"),
                    },
                },
            },
            "payments": {
                "type": "array",
                "items": {
                    "type": "object",
                    "properties": {
                        "method": _enum("Payment method", PAYMENT_METHODS),
                        "cardType": _enum("Card network", CARD_TYPES),
                        "lastDigits": _string("Last four card digits", pattern="^\\d{4}$"),
                        "amount": _number("Amount paid with this method"),
                        "transactionId": _string("Payment transaction identifier"),
                    },
                },
            },
            "notes": {"type": "array", "items": {"type": "string"}},
            "metadata": {
                "type": "object",
                "properties": {
                    "currency": _string("ISO 4217 currency code"),
                    "languageCode": _string("Language of the receipt, e.g. en or en-US"),
                    "timeZone": _string("Time zone of the transaction"),
                    "receiptFormat": _enum("Receipt layout family", RECEIPT_FORMATS),
                    "warnings": {"type": "array", "items": {"type": "string"}},
                },
            },
            "isValidInput": _IS_VALID_INPUT,
            "confidence": _CONFIDENCE,
        },
    },
)

_GUARDRAILS = """IMPORTANT:
- Extract only information that is clearly visible in the input
- Use null for uncertain information
- Assign confidence scores proportional to clarity and completeness of the input
- Prioritize accuracy over completeness
- Set overall confidence below 0.5 if the input appears invalid or contains minimal information
"""


def build_check_prompt(ocr_text: str) -> str:
    return f"""# Check Data Extraction

Below is the text extracted from a check image using OCR. Extract the relevant information into a structured JSON format.

## OCR Text:

{ocr_text}

## Instructions:

Extract the check number, the date, the payee, the payer, the amount and the amount in words,
the memo line, the bank name, the 9-digit routing number, the account number, the check and
account types, whether the check is signed and the MICR line at the bottom of the check.

For numerical values, extract them as numbers without currency symbols.
For the date, use ISO 8601 format (YYYY-MM-DD) if possible.

{_GUARDRAILS}"""


def build_receipt_prompt(ocr_text: str) -> str:
    return f"""# Receipt Data Extraction

Below is the text extracted from a receipt image using OCR. Extract the relevant information into a structured JSON format.

## OCR Text:

{ocr_text}

## Instructions:

Extract the merchant (name, address, phone, website, store id, chain name) under "merchant",
the receipt number and date/time, the purchased items with quantities and prices, the totals
(subtotal, tax, tip, discount, total) under "totals" and the payment details.

For numerical values, extract them as numbers without currency symbols.
For the date, use ISO 8601 format (YYYY-MM-DDThh:mm:ssZ) if possible.
For the currency, use the 3-letter ISO currency code (e.g. USD, EUR, GBP).

{_GUARDRAILS}"""


__all__ = ["CHECK_SCHEMA", "RECEIPT_SCHEMA", "build_check_prompt", "build_receipt_prompt"]
