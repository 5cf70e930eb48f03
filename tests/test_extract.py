from datetime import date, time
from decimal import Decimal

import pytest

from sms_ledger.extract import (
    extract_account,
    extract_amount,
    extract_counterparty,
    extract_date,
    extract_direction,
    extract_reference,
    extract_time,
    extract_upi_line,
)
from sms_ledger.models import Direction

from .conftest import CREDIT_SMS, DEBIT_SMS


@pytest.mark.parametrize(
    "text,expected",
    [
        ("INR 150.00 debited", Decimal("150.00")),
        ("INR 1,25,000.50 credited", Decimal("125000.50")),
        ("INR  42 debited", Decimal("42.00")),
        ("INR 7.5 debited", Decimal("7.50")),
    ],
)
def test_extract_amount_ok(text, expected):
    assert extract_amount(text) == expected


@pytest.mark.parametrize(
    "text", ["150.00 debited", "INR debited", "INR , debited", "INR 0.00 debited", "Rs 10"]
)
def test_extract_amount_absent(text):
    assert extract_amount(text) is None


def test_extract_direction_uses_first_keyword():
    assert extract_direction("debited then credited") is Direction.DEBIT
    assert extract_direction("credited then debited") is Direction.CREDIT
    assert extract_direction("INR 10.00 Debited") is None


def test_extract_account_falls_back_to_default():
    assert extract_account("A/c no. XX9999") == "XX9999"
    assert extract_account("no account here") == "XX3248"
    assert extract_account("no account here", default="XX0000") == "XX0000"


def test_extract_date_is_day_month_year():
    assert extract_date("15-12-24, 14:30:45") == date(2024, 12, 15)
    assert extract_date("02-10-25") == date(2025, 10, 2)


@pytest.mark.parametrize("text", ["32-01-25", "10-13-25", "00-01-25", "no date"])
def test_extract_date_absent(text):
    assert extract_date(text) is None


def test_extract_time():
    assert extract_time("02-10-25, 20:05:59") == time(20, 5, 59)
    assert extract_time("25:00:00") is None
    assert extract_time("20:05") is None


def test_upi_line_fields_for_debit():
    assert extract_upi_line(DEBIT_SMS) == "UPI/P2M/527537387973/MANGARAM CHOWDARY"
    assert extract_counterparty(DEBIT_SMS) == "MANGARAM CHOWDARY"
    assert extract_reference(DEBIT_SMS) == "UPI/P2M/527537387973/MANGARAM CHOWDARY"


def test_upi_line_fields_for_credit():
    assert extract_counterparty(CREDIT_SMS) == "MADDU REV"
    assert extract_reference(CREDIT_SMS) == "UPI/P2A/512654122901/MADDU REV/AXIS BANK"


def test_counterparty_strips_dash_suffix():
    text = "UPI/P2M/111/SHOP NAME-PAYTM/x"
    assert extract_counterparty(text) == "SHOP NAME"


def test_missing_upi_line():
    text = "INR 10.00 debited\n02-10-25, 20:05:59"
    assert extract_upi_line(text) is None
    assert extract_counterparty(text) == "Unknown"
    assert extract_reference(text) is None


def test_short_upi_line_has_unknown_counterparty():
    assert extract_counterparty("UPI/P2M/123") == "Unknown"
    assert extract_reference("UPI/P2M/123") == "UPI/P2M/123"
