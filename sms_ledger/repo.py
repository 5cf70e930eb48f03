import sqlite3
import threading
from collections.abc import AsyncIterator, Callable, Iterable
from contextlib import contextmanager
from datetime import date as dt_date, time as dt_time
from decimal import Decimal
from pathlib import Path
from typing import Any

from .db import transaction
from .live import ChangeNotifier, Subscription, stream
from .logging_setup import get_logger
from .logic import normalize_tag
from .models import Direction, EntryMethod, Transaction


logger = get_logger("sms_ledger.repo")

_ORDER_BY = "ORDER BY date DESC, time DESC, id ASC"


class StoreError(Exception):
    """The underlying storage failed while running a store operation."""


class TransactionNotFound(StoreError, LookupError):
    def __init__(self, txn_id: int):
        super().__init__(f"transaction {txn_id} not found")
        self.txn_id = txn_id


def _to_cents(amount: Decimal) -> int:
    return int((Decimal(amount) * 100).quantize(Decimal("1")))


def _from_cents(cents: int) -> Decimal:
    return (Decimal(cents) / 100).quantize(Decimal("0.01"))


def _row_to_txn(row: sqlite3.Row) -> Transaction:
    return Transaction(
        id=int(row["id"]),
        amount=_from_cents(row["amount_cents"]),
        direction=Direction(row["direction"]),
        account_number=row["account_number"],
        date=dt_date.fromisoformat(row["date"]),
        time=dt_time.fromisoformat(row["time"]),
        counterparty_name=row["counterparty_name"],
        institution=row["institution"],
        entry_method=EntryMethod(row["entry_method"]),
        created_at=int(row["created_at"]),
        reference=row["reference"],
        user_tag=row["user_tag"],
        raw_source_text=row["raw_source_text"],
    )


def _mutable_values(txn: Transaction) -> tuple:
    tag = normalize_tag(txn.user_tag, max_length=None)
    return (
        _to_cents(txn.amount),
        Direction(txn.direction).value,
        txn.account_number,
        txn.date.isoformat(),
        txn.time.strftime("%H:%M:%S"),
        txn.counterparty_name,
        txn.reference,
        txn.institution,
        tag,
        1 if tag else 0,
        EntryMethod(txn.entry_method).value,
        txn.raw_source_text,
    )


class TransactionStore:
    """Sole owner of the persisted transaction collection.

    Writes are serialized by a store-wide lock and each one commits in a single
    SQLite transaction, so readers only ever see whole writes. Every successful
    write refreshes the live queries registered through :meth:`observe`.
    """

    def __init__(self, db_path: str | Path):
        self.db_path = Path(db_path)
        self._write_lock = threading.RLock()
        self._notifier = ChangeNotifier()

    @contextmanager
    def _guard(self, action: str):
        try:
            yield
        except sqlite3.Error as exc:
            logger.error("%s failed: %s", action, exc, exc_info=True)
            raise StoreError(f"{action} failed") from exc

    def _select(self, where: str = "", params: tuple = (), suffix: str = ""):
        sql = f"SELECT * FROM transactions {where} {_ORDER_BY} {suffix}"
        with self._guard("query"):
            with transaction(self.db_path) as conn:
                rows = conn.execute(sql, params).fetchall()
        return [_row_to_txn(row) for row in rows]

    # Reads

    def today_transactions(self, today: dt_date | None = None) -> list[Transaction]:
        current = today or dt_date.today()
        return self._select("WHERE date = ?", (current.isoformat(),))

    def untagged_transactions(self) -> list[Transaction]:
        return self._select("WHERE is_tagged = 0")

    def all_transactions(self) -> list[Transaction]:
        return self._select()

    def search(self, query: str) -> list[Transaction]:
        needle = (query or "").casefold()
        return self._select(
            """
            WHERE instr(casefold(counterparty_name), ?) > 0
               OR instr(casefold(COALESCE(user_tag, '')), ?) > 0
            """,
            (needle, needle),
        )

    def by_direction(self, direction: Direction | str) -> list[Transaction]:
        return self._select("WHERE direction = ?", (Direction(direction).value,))

    def by_entry_method(self, method: EntryMethod | str) -> list[Transaction]:
        return self._select("WHERE entry_method = ?", (EntryMethod(method).value,))

    def by_date_range(self, start: dt_date, end: dt_date) -> list[Transaction]:
        return self._select(
            "WHERE date >= ? AND date <= ?", (start.isoformat(), end.isoformat())
        )

    def paged(self, limit: int, offset: int = 0) -> list[Transaction]:
        if limit < 0 or offset < 0:
            raise ValueError("limit and offset must be non-negative")
        return self._select(suffix="LIMIT ? OFFSET ?", params=(limit, offset))

    def untagged_count(self) -> int:
        with self._guard("count"):
            with transaction(self.db_path) as conn:
                row = conn.execute(
                    "SELECT COUNT(*) AS c FROM transactions WHERE is_tagged = 0"
                ).fetchone()
        return int(row["c"])

    def get(self, txn_id: int) -> Transaction | None:
        with self._guard("lookup"):
            with transaction(self.db_path) as conn:
                row = conn.execute(
                    "SELECT * FROM transactions WHERE id = ?", (txn_id,)
                ).fetchone()
        return _row_to_txn(row) if row is not None else None

    def export_rows(self) -> list[Transaction]:
        return self.all_transactions()

    # Writes

    def insert(self, txn: Transaction) -> int:
        return self.insert_many([txn])[0]

    def insert_many(self, txns: Iterable[Transaction]) -> list[int]:
        values = [_mutable_values(txn) + (txn.created_at,) for txn in txns]
        if not values:
            return []
        ids = []
        with self._write_lock, self._guard("insert"):
            with transaction(self.db_path) as conn:
                for row in values:
                    cur = conn.execute(
                        """
                        INSERT INTO transactions(
                          amount_cents, direction, account_number, date, time,
                          counterparty_name, reference, institution, user_tag,
                          is_tagged, entry_method, raw_source_text, created_at
                        )
                        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                        """,
                        row,
                    )
                    ids.append(int(cur.lastrowid))
        logger.debug("inserted transactions %s", ids)
        self._notifier.publish()
        return ids

    def update(self, txn: Transaction) -> None:
        with self._write_lock, self._guard("update"):
            with transaction(self.db_path) as conn:
                cur = conn.execute(
                    """
                    UPDATE transactions
                    SET amount_cents = ?, direction = ?, account_number = ?,
                        date = ?, time = ?, counterparty_name = ?, reference = ?,
                        institution = ?, user_tag = ?, is_tagged = ?,
                        entry_method = ?, raw_source_text = ?
                    WHERE id = ?
                    """,
                    _mutable_values(txn) + (txn.id,),
                )
                if cur.rowcount == 0:
                    raise TransactionNotFound(txn.id)
        logger.debug("updated transaction %s", txn.id)
        self._notifier.publish()

    def update_tag(self, txn_id: int, tag: str | None) -> None:
        """Set or clear the user tag; ``is_tagged`` always follows the tag."""
        clean = normalize_tag(tag, max_length=None)
        with self._write_lock, self._guard("tag update"):
            with transaction(self.db_path) as conn:
                cur = conn.execute(
                    """
                    UPDATE transactions
                    SET user_tag = ?, is_tagged = ?
                    WHERE id = ?
                    """,
                    (clean, 1 if clean else 0, txn_id),
                )
                if cur.rowcount == 0:
                    raise TransactionNotFound(txn_id)
        logger.debug("tag updated: id=%s tag=%r", txn_id, clean)
        self._notifier.publish()

    def delete(self, txn_id: int) -> None:
        with self._write_lock, self._guard("delete"):
            with transaction(self.db_path) as conn:
                cur = conn.execute("DELETE FROM transactions WHERE id = ?", (txn_id,))
        if cur.rowcount:
            logger.debug("deleted transaction %s", txn_id)
            self._notifier.publish()

    def delete_all(self) -> None:
        with self._write_lock, self._guard("delete all"):
            with transaction(self.db_path) as conn:
                conn.execute("DELETE FROM transactions")
        logger.info("all transactions deleted")
        self._notifier.publish()

    # Live queries

    def observe(
        self, query: Callable[[], Any], callback: Callable[[Any], None]
    ) -> Subscription:
        """Call ``callback`` with ``query()`` now and again whenever it changes."""
        return self._notifier.subscribe(query, callback)

    def stream(self, query: Callable[[], Any]) -> AsyncIterator[Any]:
        return stream(self._notifier, query)
