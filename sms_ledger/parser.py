from collections.abc import Callable

from .extract import (
    extract_account,
    extract_amount,
    extract_counterparty,
    extract_date,
    extract_direction,
    extract_reference,
    extract_time,
)
from .logging_setup import get_logger
from .logic import contains_transaction_keywords
from .models import Direction, EntryMethod, Transaction, now_millis
from .settings import DEFAULT_ACCOUNT_NUMBER, DEFAULT_INSTITUTION


logger = get_logger("sms_ledger.parser")


def parse_transaction(
    body: str,
    *,
    institution: str = DEFAULT_INSTITUTION,
    default_account: str = DEFAULT_ACCOUNT_NUMBER,
    clock: Callable[[], int] = now_millis,
) -> Transaction | None:
    """Turn an alert message into an unsaved, untagged transaction.

    Returns ``None`` when the message is not a transaction alert or when the
    amount, date or time cannot be read. Anything other than ``"debited"`` is
    treated as a credit.
    """
    try:
        if not contains_transaction_keywords(body):
            return None

        amount = extract_amount(body)
        txn_date = extract_date(body)
        txn_time = extract_time(body)
        if amount is None or txn_date is None or txn_time is None:
            logger.debug(
                "rejected message: amount=%s date=%s time=%s",
                amount,
                txn_date,
                txn_time,
            )
            return None

        direction = extract_direction(body)
        if direction is None:
            direction = Direction.CREDIT

        return Transaction(
            amount=amount,
            direction=direction,
            account_number=extract_account(body, default_account),
            date=txn_date,
            time=txn_time,
            counterparty_name=extract_counterparty(body),
            institution=institution,
            entry_method=EntryMethod.AUTOMATIC,
            created_at=clock(),
            reference=extract_reference(body),
            user_tag=None,
            raw_source_text=body,
        )
    except Exception:
        logger.warning("unexpected error while parsing message", exc_info=True)
        return None
