"""Display strings for transactions, kept apart from the data model."""

from datetime import time
from decimal import Decimal

from .models import Direction, EntryMethod, TimeFormat, Transaction


CURRENCY_SYMBOL = "₹"
ADD_TAG_PLACEHOLDER = "+ Add Tag"

DIRECTION_LABELS = {
    Direction.DEBIT: "Debit",
    Direction.CREDIT: "Credit",
}

DIRECTION_BADGES = {
    Direction.DEBIT: "DEBITED",
    Direction.CREDIT: "CREDITED",
}

ENTRY_METHOD_LABELS = {
    EntryMethod.AUTOMATIC: "SMS",
    EntryMethod.MANUAL: "Manual",
}

ENTRY_METHOD_DESCRIPTIONS = {
    EntryMethod.AUTOMATIC: "Automatically captured from SMS",
    EntryMethod.MANUAL: "Manually entered by user",
}

TIME_FORMAT_LABELS = {
    TimeFormat.TWELVE_HOUR: "12h",
    TimeFormat.TWENTY_FOUR_HOUR: "24h",
}

# (scale, suffix), largest first
_SHORT_SCALES = (
    (Decimal("10000000"), "Cr"),
    (Decimal("100000"), "L"),
    (Decimal("1000"), "K"),
)


def direction_label(direction: Direction) -> str:
    return DIRECTION_LABELS[Direction(direction)]


def direction_badge(direction: Direction) -> str:
    return DIRECTION_BADGES[Direction(direction)]


def entry_method_label(method: EntryMethod) -> str:
    return ENTRY_METHOD_LABELS[EntryMethod(method)]


def entry_method_description(method: EntryMethod) -> str:
    return ENTRY_METHOD_DESCRIPTIONS[EntryMethod(method)]


def format_amount(amount: Decimal) -> str:
    return f"{CURRENCY_SYMBOL}{Decimal(amount):,.2f}"


def format_amount_short(amount: Decimal) -> str:
    value = Decimal(amount)
    for scale, suffix in _SHORT_SCALES:
        if value >= scale:
            return f"{CURRENCY_SYMBOL}{value / scale:.1f}{suffix}"
    compact = f"{value:,.2f}".rstrip("0").rstrip(".")
    return f"{CURRENCY_SYMBOL}{compact}"


def format_time(t: time, fmt: TimeFormat, *, seconds: bool = False) -> str:
    if TimeFormat(fmt) is TimeFormat.TWENTY_FOUR_HOUR:
        return t.strftime("%H:%M:%S" if seconds else "%H:%M")
    hour = t.hour % 12 or 12
    suffix = "AM" if t.hour < 12 else "PM"
    if seconds:
        return f"{hour}:{t.minute:02d}:{t.second:02d} {suffix}"
    return f"{hour}:{t.minute:02d} {suffix}"


def toggle_time_format(fmt: TimeFormat) -> TimeFormat:
    if TimeFormat(fmt) is TimeFormat.TWELVE_HOUR:
        return TimeFormat.TWENTY_FOUR_HOUR
    return TimeFormat.TWELVE_HOUR


def display_tag(txn: Transaction) -> str:
    return txn.user_tag.strip() if txn.is_tagged else ADD_TAG_PLACEHOLDER


def short_name(name: str, limit: int = 20) -> str:
    if len(name) > limit:
        return name[: limit - 3] + "..."
    return name
