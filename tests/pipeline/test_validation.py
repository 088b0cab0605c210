"""Tests for schema validation of normalized data."""

from __future__ import annotations

import pytest

from docscan.errors import ValidationError
from docscan.models.check import Check
from docscan.models.receipt import Receipt
from docscan.pipeline.validation import validate_document


def test_valid_check_is_returned_as_model():
    check = validate_document(
        Check, {"payee": "Northwind", "amount": "12.00", "date": "2024-03-14", "confidence": 0.8}
    )

    assert check.payee == "Northwind"
    assert check.is_valid_input is True
    assert check.date.isoformat() == "2024-03-14"


def test_all_violations_are_collected():
    with pytest.raises(ValidationError) as excinfo:
        validate_document(
            Check,
            {"amount": "twelve", "routingNumber": "123", "confidence": 1.5},
        )

    paths = {issue.path for issue in excinfo.value.issues}
    assert {"payee", "amount", "routingNumber", "confidence"} <= paths
    assert all(issue.code and issue.message for issue in excinfo.value.issues)
    assert not excinfo.value.retryable


def test_nested_receipt_paths_are_dotted_camel_case():
    with pytest.raises(ValidationError) as excinfo:
        validate_document(
            Receipt,
            {
                "merchant": {"name": "Corner Grocery"},
                "timestamp": "2024-03-14T09:30:00Z",
                "totals": {"total": "42.99"},
                "currency": "usd",
                "items": [{"description": "Apples"}],
                "confidence": 0.9,
            },
        )

    paths = {issue.path for issue in excinfo.value.issues}
    assert paths == {"currency", "items.0.totalPrice"}
