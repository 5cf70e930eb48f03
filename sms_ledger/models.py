import threading
import time as _time
from dataclasses import dataclass
from datetime import date, time
from decimal import Decimal
from enum import Enum


class Direction(str, Enum):
    DEBIT = "DEBIT"
    CREDIT = "CREDIT"


class EntryMethod(str, Enum):
    AUTOMATIC = "AUTOMATIC"
    MANUAL = "MANUAL"


class TimeFormat(str, Enum):
    TWELVE_HOUR = "TWELVE_HOUR"
    TWENTY_FOUR_HOUR = "TWENTY_FOUR_HOUR"


_clock_lock = threading.Lock()
_last_millis = 0


def now_millis() -> int:
    """Wall-clock epoch milliseconds that never go backwards within a process."""
    global _last_millis
    with _clock_lock:
        _last_millis = max(_last_millis, _time.time_ns() // 1_000_000)
        return _last_millis


@dataclass(frozen=True)
class Transaction:
    amount: Decimal
    direction: Direction
    account_number: str
    date: date
    time: time
    counterparty_name: str
    institution: str
    entry_method: EntryMethod
    created_at: int
    reference: str | None = None
    user_tag: str | None = None
    raw_source_text: str | None = None
    id: int = 0

    @property
    def is_tagged(self) -> bool:
        return self.user_tag is not None and self.user_tag.strip() != ""


@dataclass(frozen=True)
class InboundMessage:
    sender: str
    body: str
