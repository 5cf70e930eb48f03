from datetime import date, time
from decimal import Decimal

import pytest

from sms_ledger.db import init_db
from sms_ledger.models import Direction, EntryMethod, Transaction
from sms_ledger.repo import TransactionStore
from sms_ledger.settings import Settings


DEBIT_SMS = (
    "INR 150.00 debited\n"
    "A/c no. XX3248\n"
    "02-10-25, 20:05:59\n"
    "UPI/P2M/527537387973/MANGARAM CHOWDARY\n"
    "Not you? SMS BLOCKUPI Cust ID to 91XXXXXXXX\n"
    "Axis Bank"
)

CREDIT_SMS = (
    "INR 5000.00 credited\n"
    "A/c no. XX3248\n"
    "28-09-25, 20:05:06 IST\n"
    "UPI/P2A/512654122901/MADDU REV/AXIS BANK - Axis Bank"
)


@pytest.fixture
def settings(tmp_path):
    s = Settings(data_dir=tmp_path, db_path=tmp_path / "t.sqlite")
    init_db(s)
    return s


@pytest.fixture
def store(settings):
    return TransactionStore(settings.db_path)


@pytest.fixture
def make_txn():
    def _make(**overrides):
        fields = dict(
            amount=Decimal("100.00"),
            direction=Direction.DEBIT,
            account_number="XX3248",
            date=date(2025, 10, 2),
            time=time(12, 0, 0),
            counterparty_name="TEST SHOP",
            institution="Axis Bank",
            entry_method=EntryMethod.AUTOMATIC,
            created_at=1,
            reference="UPI/P2M/1/TEST SHOP",
            raw_source_text="raw",
        )
        fields.update(overrides)
        return Transaction(**fields)

    return _make
