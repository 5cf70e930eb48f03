import sqlite3

from sms_ledger.db import init_db
from sms_ledger.settings import Settings


def test_init_db_creates_schema(tmp_path):
    settings = Settings(data_dir=tmp_path / "nested", db_path=tmp_path / "nested" / "t.sqlite")
    init_db(settings)

    conn = sqlite3.connect(str(settings.db_path))
    conn.row_factory = sqlite3.Row
    columns = [
        row["name"] for row in conn.execute("PRAGMA table_info(transactions)").fetchall()
    ]
    indexes = [
        row["name"] for row in conn.execute("PRAGMA index_list(transactions)").fetchall()
    ]
    triggers = conn.execute("SELECT name FROM sqlite_master WHERE type = 'trigger'").fetchall()
    conn.close()

    assert columns == [
        "id",
        "amount_cents",
        "direction",
        "account_number",
        "date",
        "time",
        "counterparty_name",
        "reference",
        "institution",
        "user_tag",
        "is_tagged",
        "entry_method",
        "raw_source_text",
        "created_at",
    ]
    assert "idx_transactions_date_time" in indexes
    assert "idx_transactions_is_tagged" in indexes
    assert triggers == []


def test_init_db_is_idempotent(tmp_path):
    settings = Settings(data_dir=tmp_path, db_path=tmp_path / "t.sqlite")
    init_db(settings)
    conn = sqlite3.connect(str(settings.db_path))
    conn.execute(
        """
        INSERT INTO transactions(
          amount_cents, direction, account_number, date, time, counterparty_name,
          institution, entry_method, created_at
        )
        VALUES (100, 'DEBIT', 'XX3248', '2025-10-02', '10:00:00', 'X', 'Axis Bank', 'AUTOMATIC', 1)
        """
    )
    conn.commit()
    conn.close()

    init_db(settings)

    conn2 = sqlite3.connect(str(settings.db_path))
    count = conn2.execute("SELECT COUNT(*) FROM transactions").fetchone()[0]
    conn2.close()
    assert count == 1
