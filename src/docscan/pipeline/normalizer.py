"""Canonicalisation of extracted check and receipt fields.

The functions here only reshape values the extractor produced. Anything that cannot
be parsed is passed through untouched and left for schema validation to report.
"""

from __future__ import annotations

import math
import re
from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Dict, Iterable, Mapping, Optional

from docscan.models.check import ACCOUNT_TYPES, CHECK_TYPES
from docscan.models.receipt import (
    CARD_TYPES,
    ITEM_UNITS,
    PAYMENT_METHODS,
    RECEIPT_FORMATS,
    RECEIPT_TYPES,
    TAX_TYPES,
)

ROUTING_NUMBER_LENGTH = 9

_DATE_FORMATS = (
    "%Y-%m-%d",
    "%m/%d/%Y",
    "%m/%d/%y",
    "%m-%d-%Y",
    "%d.%m.%Y",
    "%Y/%m/%d",
    "%B %d, %Y",
    "%b %d, %Y",
    "%d %B %Y",
    "%d %b %Y",
)
_TIME_SUFFIXES = ("", " %H:%M", " %H:%M:%S", " %I:%M %p", " %I:%M:%S %p")

_MICR_ROUTING_RE = re.compile(r"⑆\s*(\d[\d\s-]*?)\s*⑆")
_MICR_ACCOUNT_RE = re.compile(r"⑈\s*(\d[\d\s-]*?)\s*⑈")
_MICR_CHECK_NUMBER_RE = re.compile(r"⑇\s*(\d[\d\s-]*?)\s*⑇")

_CURRENCY_SYMBOLS = "$€£¥₹"
_CURRENCY_AFFIX_RE = re.compile(r"^[A-Z]{3}\s*|\s*[A-Z]{3}$")
_PLAIN_AMOUNT_RE = re.compile(r"^-?\d{1,3}(,\d{3})+(\.\d+)?$|^-?\d+(\.\d+)?$")
_DECIMAL_COMMA_RE = re.compile(r"^-?\d+,\d{1,2}$")
_CENTS = Decimal("0.01")

_ACCOUNT_TYPE_ALIASES = {
    "chequing": "checking",
    "check": "checking",
    "saving": "savings",
    "moneymarket": "money_market",
}
_CHECK_TYPE_ALIASES = {
    "cashier": "cashiers",
    "cashier_check": "cashiers",
    "cashiers_check": "cashiers",
    "certified_check": "certified",
    "travelers": "traveler",
    "traveller": "traveler",
    "travellers": "traveler",
    "travelers_check": "traveler",
    "moneyorder": "money_order",
    "personal_check": "personal",
    "business_check": "business",
}
_RECEIPT_TYPE_ALIASES = {
    "purchase": "sale",
    "sales": "sale",
    "returns": "return",
    "quote": "estimate",
    "pro_forma": "proforma",
}
_PAYMENT_METHOD_ALIASES = {
    "credit_card": "credit",
    "debit_card": "debit",
    "giftcard": "gift_card",
    "gift_certificate": "gift_card",
    "cheque": "check",
    "mobile": "mobile_payment",
    "apple_pay": "mobile_payment",
    "google_pay": "mobile_payment",
}
_CARD_TYPE_ALIASES = {
    "master_card": "mastercard",
    "mc": "mastercard",
    "american_express": "amex",
    "diners": "diners_club",
    "unionpay": "union_pay",
}
_TAX_TYPE_ALIASES = {
    "sales_tax": "sales",
    "value_added_tax": "vat",
}
_ITEM_UNIT_ALIASES = {
    "each": "ea",
    "pcs": "pc",
    "piece": "pc",
    "pieces": "pc",
    "lbs": "lb",
    "kgs": "kg",
    "liter": "l",
    "litre": "l",
    "gallon": "gal",
    "pack": "pk",
    "pair": "pr",
}
_RECEIPT_FORMAT_ALIASES = {
    "store": "retail",
    "hotel": "accommodation",
    "transport": "transportation",
}

_CHECK_ID_FIELDS = ("checkNumber", "accountNumber")
_MERCHANT_ID_FIELDS = ("phone", "storeId", "taxId")
_ITEM_MONEY_FIELDS = ("unitPrice", "totalPrice", "discountAmount")
_TOTALS_MONEY_FIELDS = ("subtotal", "tax", "tip", "discount", "total")


def _to_camel(key: str) -> str:
    parts = [part for part in key.split("_") if part]
    if "_" not in key or not parts:
        return key
    head, *rest = parts
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


def _clean(value: Any) -> Any:
    """Camel-case keys recursively and drop nulls and empty strings."""

    if isinstance(value, Mapping):
        cleaned: Dict[str, Any] = {}
        for key, item in value.items():
            item = _clean(item)
            if item is None:
                continue
            cleaned[_to_camel(str(key))] = item
        return cleaned
    if isinstance(value, (list, tuple)):
        return [item for item in (_clean(entry) for entry in value) if item is not None]
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


def _canonical_key(value: str) -> str:
    key = value.strip().lower().replace("'", "").replace("’", "")
    return re.sub(r"[\s\-]+", "_", key)


def match_enum(value: Any, vocabulary: Iterable[str], aliases: Mapping[str, str] | None = None) -> Any:
    """Map ``value`` onto ``vocabulary`` or return it unchanged."""

    if not isinstance(value, str):
        return value
    key = _canonical_key(value)
    if key in vocabulary:
        return key
    if aliases and key in aliases:
        return aliases[key]
    return value


def _parse_datetime(text: str) -> Optional[datetime]:
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        pass
    normalized = re.sub(r"\s+", " ", text.replace(" at ", " ")).strip()
    for date_format in _DATE_FORMATS:
        for time_suffix in _TIME_SUFFIXES:
            try:
                return datetime.strptime(normalized, date_format + time_suffix)
            except ValueError:
                continue
    return None


def normalize_date(value: Any) -> Any:
    """Reformat a date-like value as ``YYYY-MM-DD``."""

    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if not isinstance(value, str):
        return value
    parsed = _parse_datetime(value)
    return parsed.date().isoformat() if parsed else value


def normalize_timestamp(value: Any) -> Any:
    """Reformat a date/time value as an ISO-8601 date-time, writing UTC as ``Z``."""

    if isinstance(value, datetime):
        parsed: Optional[datetime] = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        parsed = _parse_datetime(value)
    else:
        return value
    if parsed is None:
        return value
    parsed = parsed.replace(microsecond=0)
    offset = parsed.utcoffset()
    if offset is None:
        return parsed.isoformat(timespec="seconds")
    if offset == timedelta(0):
        return parsed.replace(tzinfo=None).isoformat(timespec="seconds") + "Z"
    return parsed.isoformat(timespec="seconds")


def normalize_money(value: Any) -> Any:
    """Render an amount as a plain decimal string with two places."""

    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        if isinstance(value, float) and not math.isfinite(value):
            return value
        amount = Decimal(str(value))
    elif isinstance(value, str):
        text = _CURRENCY_AFFIX_RE.sub("", value.strip())
        text = text.translate({ord(symbol): None for symbol in _CURRENCY_SYMBOLS})
        text = re.sub(r"\s+", "", text)
        if _DECIMAL_COMMA_RE.match(text):
            text = text.replace(",", ".")
        elif _PLAIN_AMOUNT_RE.match(text):
            text = text.replace(",", "")
        else:
            return value
        amount = Decimal(text)
    else:
        return value
    try:
        return str(amount.quantize(_CENTS, rounding=ROUND_HALF_UP))
    except InvalidOperation:
        # Wider than the decimal context can hold at cent precision.
        return value


def normalize_routing_number(value: Any) -> Any:
    """Reduce a routing number to exactly nine digits."""

    if isinstance(value, bool) or not isinstance(value, (str, int)):
        return value
    digits = re.sub(r"\D", "", str(value))
    if not digits:
        return value
    if len(digits) < ROUTING_NUMBER_LENGTH:
        return digits.zfill(ROUTING_NUMBER_LENGTH)
    return digits[-ROUTING_NUMBER_LENGTH:]


def normalize_currency(value: Any) -> Any:
    return value.strip().upper() if isinstance(value, str) else value


def _as_identifier(value: Any) -> Any:
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return str(value)
    return value


def parse_micr_line(micr_line: str) -> Dict[str, str]:
    """Pull routing, account and check numbers out of a MICR line.

    Transit symbols (⑆) wrap the routing number, on-us symbols (⑈) the account
    number and amount symbols (⑇) the check number.
    """

    fields: Dict[str, str] = {}
    for name, pattern in (
        ("routingNumber", _MICR_ROUTING_RE),
        ("accountNumber", _MICR_ACCOUNT_RE),
        ("checkNumber", _MICR_CHECK_NUMBER_RE),
    ):
        match = pattern.search(micr_line)
        if match:
            fields[name] = re.sub(r"\D", "", match.group(1))
    return fields


def normalize_check(raw: Mapping[str, Any]) -> Dict[str, Any]:
    """Return a normalized copy of extracted check data."""

    data = _clean(raw) if isinstance(raw, Mapping) else {}

    for field in _CHECK_ID_FIELDS:
        if field in data:
            data[field] = _as_identifier(data[field])

    micr_line = data.get("micrLine")
    if isinstance(micr_line, str):
        for field, value in parse_micr_line(micr_line).items():
            if value and field not in data:
                data[field] = value

    if "routingNumber" in data:
        data["routingNumber"] = normalize_routing_number(data["routingNumber"])
    if "date" in data:
        data["date"] = normalize_date(data["date"])
    if "amount" in data:
        data["amount"] = normalize_money(data["amount"])
    if "accountType" in data:
        data["accountType"] = match_enum(data["accountType"], ACCOUNT_TYPES, _ACCOUNT_TYPE_ALIASES)
    if "checkType" in data:
        data["checkType"] = match_enum(data["checkType"], CHECK_TYPES, _CHECK_TYPE_ALIASES)
    return data


def _normalize_entries(entries: Any, normalize_entry) -> Any:
    if not isinstance(entries, list):
        return entries
    return [normalize_entry(entry) if isinstance(entry, dict) else entry for entry in entries]


def _normalize_item(item: Dict[str, Any]) -> Dict[str, Any]:
    for field in _ITEM_MONEY_FIELDS:
        if field in item:
            item[field] = normalize_money(item[field])
    if "sku" in item:
        item["sku"] = _as_identifier(item["sku"])
    if "unit" in item:
        item["unit"] = match_enum(item["unit"], ITEM_UNITS, _ITEM_UNIT_ALIASES)
    return item


def _normalize_tax(tax: Dict[str, Any]) -> Dict[str, Any]:
    if "taxAmount" in tax:
        tax["taxAmount"] = normalize_money(tax["taxAmount"])
    if "taxType" in tax:
        tax["taxType"] = match_enum(tax["taxType"], TAX_TYPES, _TAX_TYPE_ALIASES)
    return tax


def _normalize_payment(payment: Dict[str, Any]) -> Dict[str, Any]:
    if "amount" in payment:
        payment["amount"] = normalize_money(payment["amount"])
    if "method" in payment:
        payment["method"] = match_enum(payment["method"], PAYMENT_METHODS, _PAYMENT_METHOD_ALIASES)
    if "cardType" in payment:
        payment["cardType"] = match_enum(payment["cardType"], CARD_TYPES, _CARD_TYPE_ALIASES)
    for field in ("lastDigits", "transactionId"):
        if field in payment:
            payment[field] = _as_identifier(payment[field])
    return payment


def normalize_receipt(raw: Mapping[str, Any]) -> Dict[str, Any]:
    """Return a normalized copy of extracted receipt data."""

    data = _clean(raw) if isinstance(raw, Mapping) else {}

    merchant = data.get("merchant")
    if isinstance(merchant, dict):
        for field in _MERCHANT_ID_FIELDS:
            if field in merchant:
                merchant[field] = _as_identifier(merchant[field])

    if "receiptNumber" in data:
        data["receiptNumber"] = _as_identifier(data["receiptNumber"])
    if "timestamp" in data:
        data["timestamp"] = normalize_timestamp(data["timestamp"])
    if "currency" in data:
        data["currency"] = normalize_currency(data["currency"])
    if "receiptType" in data:
        data["receiptType"] = match_enum(data["receiptType"], RECEIPT_TYPES, _RECEIPT_TYPE_ALIASES)
    if "paymentMethod" in data:
        data["paymentMethod"] = match_enum(
            data["paymentMethod"], PAYMENT_METHODS, _PAYMENT_METHOD_ALIASES
        )

    totals = data.get("totals")
    if isinstance(totals, dict):
        for field in _TOTALS_MONEY_FIELDS:
            if field in totals:
                totals[field] = normalize_money(totals[field])

    if "items" in data:
        data["items"] = _normalize_entries(data["items"], _normalize_item)
    if "taxes" in data:
        data["taxes"] = _normalize_entries(data["taxes"], _normalize_tax)
    if "payments" in data:
        data["payments"] = _normalize_entries(data["payments"], _normalize_payment)

    metadata = data.get("metadata")
    if isinstance(metadata, dict):
        if "currency" in metadata:
            metadata["currency"] = normalize_currency(metadata["currency"])
        if "receiptFormat" in metadata:
            metadata["receiptFormat"] = match_enum(
                metadata["receiptFormat"], RECEIPT_FORMATS, _RECEIPT_FORMAT_ALIASES
            )
    return data


__all__ = [
    "match_enum",
    "normalize_check",
    "normalize_currency",
    "normalize_date",
    "normalize_money",
    "normalize_receipt",
    "normalize_routing_number",
    "normalize_timestamp",
    "parse_micr_line",
]
