"""Shared fixtures for the EDIFACT INVOIC test suite."""

import datetime

import pytest

from edifact_invoic.cli import generate_example_invoic


@pytest.fixture
def fixed_timestamp():
    return datetime.datetime(2025, 1, 1, 12, 0)


@pytest.fixture
def minimal_invoice():
    """Smallest record that passes both validation passes"""
    return {
        "invoice_number": "INV1",
        "invoice_date": "20250101",
        "currency": "EUR",
        "parties": {
            "buyer": {"id": "B1"},
            "seller": {"id": "S1"},
        },
        "items": [
            {"id": "I1", "quantity": 2, "price": 10.00},
        ],
    }


@pytest.fixture
def full_invoice():
    return generate_example_invoic()
