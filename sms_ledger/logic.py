import re
from decimal import Decimal, InvalidOperation

from .models import Direction


SENDER_RE = re.compile(r"[A-Z]{2}-AXISBK-S")
CURRENCY_MARKER = "INR"
DIRECTION_KEYWORDS = ("debited", "credited")

MIN_AMOUNT = Decimal("0.01")
MAX_AMOUNT = Decimal("999999999.99")
MAX_NAME_LENGTH = 100
MAX_TAG_LENGTH = 50


def is_valid_sender(sender: str) -> bool:
    return SENDER_RE.fullmatch(sender or "") is not None


def contains_transaction_keywords(body: str) -> bool:
    if not body or CURRENCY_MARKER not in body:
        return False
    return any(keyword in body for keyword in DIRECTION_KEYWORDS)


def is_valid_bank_sms(sender: str, body: str) -> bool:
    return is_valid_sender(sender) and contains_transaction_keywords(body)


def parse_amount(s: str) -> Decimal:
    if not isinstance(s, str) or not s.strip():
        raise ValueError("amount required")
    cleaned = s.replace("₹", "").replace(",", "").strip()
    try:
        d = Decimal(cleaned)
    except InvalidOperation as e:
        raise ValueError("amount invalid") from e
    if not d.is_finite():
        raise ValueError("amount invalid")
    if d != d.quantize(Decimal("0.01")):
        raise ValueError("amount supports up to 2 decimals")
    if d < MIN_AMOUNT or d > MAX_AMOUNT:
        raise ValueError("amount out of range")
    return d.quantize(Decimal("0.01"))


def validate_direction(s: str | Direction) -> Direction:
    if isinstance(s, Direction):
        return s
    try:
        return Direction((s or "").strip().upper())
    except ValueError as e:
        raise ValueError("direction must be DEBIT or CREDIT") from e


def validate_counterparty(s: str) -> str:
    name = (s or "").strip()
    if not name:
        raise ValueError("counterparty name required")
    if len(name) > MAX_NAME_LENGTH:
        raise ValueError("counterparty name too long")
    return name


def normalize_tag(
    s: str | None, *, max_length: int | None = MAX_TAG_LENGTH
) -> str | None:
    if s is None:
        return None
    tag = s.strip()
    if not tag:
        return None
    if max_length is not None and len(tag) > max_length:
        raise ValueError("tag too long")
    return tag
