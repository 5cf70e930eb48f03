from collections.abc import Iterable

from .models import Transaction
from .repo import TransactionStore


CSV_HEADER = (
    "Date,Time,Type,Amount,Receiver/Sender,Bank,Account,UPI Reference,Tag,Entry Method"
)


def _quoted(value: str | None) -> str:
    text = value or ""
    return '"' + text.replace('"', '""') + '"'


def csv_row(txn: Transaction) -> str:
    return ",".join(
        [
            txn.date.isoformat(),
            txn.time.strftime("%H:%M:%S"),
            txn.direction.name,
            f"{txn.amount:.2f}",
            _quoted(txn.counterparty_name),
            _quoted(txn.institution),
            txn.account_number,
            _quoted(txn.reference),
            _quoted(txn.user_tag),
            txn.entry_method.name,
        ]
    )


def render_csv(transactions: Iterable[Transaction]) -> str:
    lines = [CSV_HEADER]
    lines.extend(csv_row(txn) for txn in transactions)
    return "\n".join(lines) + "\n"


def export_csv(store: TransactionStore) -> str:
    return render_csv(store.export_rows())
