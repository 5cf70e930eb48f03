"""Field extraction for Axis Bank UPI alert messages.

Every extractor is a pure function that returns the typed value or ``None``.
None of them raise on malformed input.
"""

import re
from datetime import date, time
from decimal import Decimal, InvalidOperation

from .models import Direction
from .settings import DEFAULT_ACCOUNT_NUMBER


AMOUNT_RE = re.compile(r"INR\s+([\d,]+\.?\d{0,2})")
DIRECTION_RE = re.compile(r"(debited|credited)")
ACCOUNT_RE = re.compile(r"A/c no\.\s+(\w+)")
DATE_RE = re.compile(r"(\d{2})-(\d{2})-(\d{2})")
TIME_RE = re.compile(r"(\d{2}):(\d{2}):(\d{2})")

UPI_PREFIX = "UPI/"
UNKNOWN_COUNTERPARTY = "Unknown"


def extract_amount(text: str) -> Decimal | None:
    match = AMOUNT_RE.search(text)
    if match is None:
        return None
    digits = match.group(1).replace(",", "")
    try:
        amount = Decimal(digits)
    except InvalidOperation:
        return None
    if not amount.is_finite() or amount <= 0:
        return None
    return amount.quantize(Decimal("0.01"))


def extract_direction(text: str) -> Direction | None:
    match = DIRECTION_RE.search(text)
    if match is None:
        return None
    return Direction.DEBIT if match.group(1) == "debited" else Direction.CREDIT


def extract_account(text: str, default: str = DEFAULT_ACCOUNT_NUMBER) -> str:
    match = ACCOUNT_RE.search(text)
    return match.group(1) if match else default


def extract_date(text: str) -> date | None:
    # dd-mm-yy, two-digit years are always 20yy
    match = DATE_RE.search(text)
    if match is None:
        return None
    day, month, year = (int(part) for part in match.groups())
    try:
        return date(2000 + year, month, day)
    except ValueError:
        return None


def extract_time(text: str) -> time | None:
    match = TIME_RE.search(text)
    if match is None:
        return None
    hour, minute, second = (int(part) for part in match.groups())
    try:
        return time(hour, minute, second)
    except ValueError:
        return None


def extract_upi_line(text: str) -> str | None:
    for line in text.splitlines():
        if line.startswith(UPI_PREFIX):
            return line
    return None


def extract_counterparty(text: str) -> str:
    line = extract_upi_line(text)
    if line is None:
        return UNKNOWN_COUNTERPARTY
    parts = line.split("/")
    if len(parts) <= 3:
        return UNKNOWN_COUNTERPARTY
    name = parts[3].split("-", 1)[0].strip()
    return name or UNKNOWN_COUNTERPARTY


def extract_reference(text: str) -> str | None:
    line = extract_upi_line(text)
    if line is None:
        return None
    return line.split(" - ", 1)[0].strip()
