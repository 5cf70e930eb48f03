import sqlite3
from contextlib import closing, contextmanager
from pathlib import Path

from .settings import Settings


def connect(db_path: str | Path):
    conn = sqlite3.connect(str(db_path), timeout=10.0)
    conn.row_factory = sqlite3.Row
    conn.create_function("casefold", 1, _casefold, deterministic=True)
    return conn


def _casefold(value):
    return value.casefold() if isinstance(value, str) else value


@contextmanager
def transaction(db_path: str | Path):
    """Yield a connection whose statements commit together or not at all."""
    with closing(connect(db_path)) as conn:
        with conn:
            yield conn


def init_db(settings: Settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    with transaction(settings.db_path) as conn:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS transactions (
              id INTEGER PRIMARY KEY AUTOINCREMENT,
              amount_cents INTEGER NOT NULL CHECK(amount_cents > 0),
              direction TEXT NOT NULL CHECK(direction IN ('DEBIT','CREDIT')),
              account_number TEXT NOT NULL,
              date TEXT NOT NULL,
              time TEXT NOT NULL,
              counterparty_name TEXT NOT NULL,
              reference TEXT,
              institution TEXT NOT NULL,
              user_tag TEXT,
              is_tagged INTEGER NOT NULL DEFAULT 0
                CHECK(is_tagged = (user_tag IS NOT NULL AND trim(user_tag) <> '')),
              entry_method TEXT NOT NULL CHECK(entry_method IN ('AUTOMATIC','MANUAL')),
              raw_source_text TEXT,
              created_at INTEGER NOT NULL
            );
            """
        )
        conn.execute(
            """
            CREATE INDEX IF NOT EXISTS idx_transactions_date_time
            ON transactions(date DESC, time DESC, id ASC)
            """
        )
        conn.execute(
            """
            CREATE INDEX IF NOT EXISTS idx_transactions_is_tagged
            ON transactions(is_tagged)
            """
        )
