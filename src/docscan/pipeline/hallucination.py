"""Heuristics that flag extraction output likely fabricated by the model.

Language models asked to read a blank or unreadable image tend to answer with the
same stock values ("John Doe", check 1234, a $100 total at "Store"). Each detector
adds one point per stock value it finds and two for the most canonical
combinations; a score of two or more marks the input as invalid and caps its
confidence.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Mapping, Optional, Tuple

SUSPICION_THRESHOLD = 2
FLAGGED_CONFIDENCE_CAP = 0.3

PLACEHOLDER_CHECK_NUMBERS = frozenset({"1234", "5678", "0000", "1001", "100", "123"})
PLACEHOLDER_PAYEES = ("john doe", "jane doe", "john smith", "jane smith", "abc company", "xyz corp")
PLACEHOLDER_PAYERS = ("john doe", "jane doe", "john smith", "jane smith")
PLACEHOLDER_CHECK_AMOUNTS = frozenset(
    Decimal(value) for value in ("100", "150.75", "200", "500", "1000", "50", "25")
)
PLACEHOLDER_CHECK_DATES = frozenset({"2023-10-05", "2024-01-05", "2023-01-01", "2024-01-01"})
PLACEHOLDER_BANK_NAMES = frozenset({"bank", "first bank", "national bank", "city bank"})
PLACEHOLDER_ROUTING_NUMBERS = frozenset({"123456789", "000000000", "111111111"})

PLACEHOLDER_MERCHANT_NAMES = frozenset(
    {"store", "market", "supermarket", "shop", "restaurant", "abc store", "xyz market"}
)
PLACEHOLDER_RECEIPT_TOTALS = frozenset(
    Decimal(value) for value in ("0", "10", "15.99", "20", "25", "50", "100", "5.99", "12.99")
)
PLACEHOLDER_RECEIPT_NUMBERS = frozenset({"123", "1234", "001", "100", "r001", "txn123"})
PLACEHOLDER_ADDRESS_FRAGMENTS = ("123 main st", "456 oak ave")
PLACEHOLDER_ADDRESSES = frozenset({"address", "street"})
PLACEHOLDER_ITEM_DESCRIPTIONS = frozenset({"item", "product", "food", "drink", "service"})

_SPARSE_ITEMS_TOTAL = Decimal("20")


@dataclass(frozen=True)
class HallucinationVerdict:
    score: int
    signals: Tuple[str, ...] = field(default_factory=tuple)
    is_valid_input: bool = True
    confidence: float = 0.0

    @property
    def flagged(self) -> bool:
        return self.score >= SUSPICION_THRESHOLD


class _Tally:
    def __init__(self) -> None:
        self.score = 0
        self.signals: list[str] = []

    def add(self, signal: str, condition: bool, weight: int = 1) -> None:
        if condition:
            self.score += weight
            self.signals.append(signal)


def _text(value: Any) -> str:
    return value.strip().lower() if isinstance(value, str) else ""


def _decimal(value: Any) -> Optional[Decimal]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    return number if number.is_finite() else None


def _contains_any(value: str, fragments) -> bool:
    return bool(value) and any(fragment in value for fragment in fragments)


def _confidence(data: Mapping[str, Any]) -> float:
    value = data.get("confidence")
    if isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if number != number:
        return 0.0
    return min(1.0, max(0.0, number))


def _verdict(data: Mapping[str, Any], tally: _Tally) -> HallucinationVerdict:
    confidence = _confidence(data)
    if tally.score >= SUSPICION_THRESHOLD:
        return HallucinationVerdict(
            score=tally.score,
            signals=tuple(tally.signals),
            is_valid_input=False,
            confidence=min(confidence, FLAGGED_CONFIDENCE_CAP),
        )
    prior = data.get("isValidInput", data.get("is_valid_input"))
    return HallucinationVerdict(
        score=tally.score,
        signals=tuple(tally.signals),
        is_valid_input=prior is not False,
        confidence=confidence,
    )


def detect_check_hallucination(data: Mapping[str, Any]) -> HallucinationVerdict:
    """Score normalized check data against stock placeholder values."""

    tally = _Tally()
    check_number = _text(data.get("checkNumber"))
    payee = _text(data.get("payee"))
    payer = _text(data.get("payer"))
    amount = _decimal(data.get("amount"))

    tally.add("placeholder_check_number", check_number in PLACEHOLDER_CHECK_NUMBERS)
    tally.add("placeholder_payee", _contains_any(payee, PLACEHOLDER_PAYEES))
    tally.add("placeholder_payer", _contains_any(payer, PLACEHOLDER_PAYERS))
    tally.add("placeholder_amount", amount is not None and amount in PLACEHOLDER_CHECK_AMOUNTS)
    tally.add("placeholder_date", _text(data.get("date")) in PLACEHOLDER_CHECK_DATES)
    tally.add("placeholder_bank_name", _text(data.get("bankName")) in PLACEHOLDER_BANK_NAMES)
    tally.add(
        "placeholder_routing_number",
        _text(data.get("routingNumber")) in PLACEHOLDER_ROUTING_NUMBERS,
    )
    tally.add(
        "amount_without_parties",
        amount is not None and amount > 0 and not payee and not payer,
    )
    tally.add(
        "canonical_check_combination",
        check_number == "1234" and "john doe" in payee and amount == Decimal("100"),
        weight=2,
    )
    return _verdict(data, tally)


def detect_receipt_hallucination(data: Mapping[str, Any]) -> HallucinationVerdict:
    """Score normalized receipt data against stock placeholder values."""

    tally = _Tally()
    merchant = data.get("merchant") if isinstance(data.get("merchant"), Mapping) else {}
    totals = data.get("totals") if isinstance(data.get("totals"), Mapping) else {}
    raw_items = data.get("items")
    items = raw_items if isinstance(raw_items, list) else None

    name = _text(merchant.get("name"))
    address = _text(merchant.get("address"))
    phone = _text(merchant.get("phone"))
    total = _decimal(totals.get("total"))
    has_positive_total = total is not None and total > 0
    placeholder_name = name in PLACEHOLDER_MERCHANT_NAMES
    currency = data.get("currency")

    tally.add("placeholder_merchant_name", bool(name) and placeholder_name)
    tally.add("missing_merchant_name", not name and has_positive_total)
    tally.add("placeholder_total", total is not None and total in PLACEHOLDER_RECEIPT_TOTALS)
    tally.add(
        "currency_without_merchant",
        isinstance(currency, str) and len(currency) == 3 and (not name or placeholder_name),
    )
    tally.add(
        "placeholder_receipt_number",
        _text(data.get("receiptNumber")) in PLACEHOLDER_RECEIPT_NUMBERS,
    )
    tally.add(
        "placeholder_address",
        _contains_any(address, PLACEHOLDER_ADDRESS_FRAGMENTS) or address in PLACEHOLDER_ADDRESSES,
    )
    tally.add(
        "placeholder_item_description",
        any(
            _text(item.get("description")) in PLACEHOLDER_ITEM_DESCRIPTIONS
            for item in items or ()
            if isinstance(item, Mapping)
        ),
    )
    tally.add(
        "sparse_items_for_total",
        items is not None and len(items) <= 1 and total is not None and total > _SPARSE_ITEMS_TOTAL,
    )
    tally.add(
        "missing_timestamp",
        not data.get("timestamp") and bool(name) and has_positive_total and bool(items),
    )
    tally.add(
        "rich_output_from_minimal_input",
        has_positive_total and not address and not phone and not items,
    )
    tally.add(
        "canonical_receipt_combination",
        name == "store" and total == Decimal("10") and items is not None and len(items) == 1,
        weight=2,
    )
    return _verdict(data, tally)


def apply_verdict(data: Mapping[str, Any], verdict: HallucinationVerdict) -> Dict[str, Any]:
    """Return a copy of ``data`` carrying the verdict's validity flag and confidence."""

    updated = dict(data)
    updated["isValidInput"] = verdict.is_valid_input
    updated["confidence"] = verdict.confidence
    return updated


__all__ = [
    "FLAGGED_CONFIDENCE_CAP",
    "HallucinationVerdict",
    "SUSPICION_THRESHOLD",
    "apply_verdict",
    "detect_check_hallucination",
    "detect_receipt_hallucination",
]
