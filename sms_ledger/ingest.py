import asyncio
import dataclasses
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import date, time
from decimal import Decimal
from enum import Enum

from .logging_setup import get_logger
from .logic import (
    contains_transaction_keywords,
    is_valid_sender,
    normalize_tag,
    parse_amount,
    validate_counterparty,
    validate_direction,
)
from .models import Direction, EntryMethod, InboundMessage, Transaction, now_millis
from .parser import parse_transaction
from .repo import StoreError, TransactionStore
from .settings import MANUAL_INSTITUTION, Settings


logger = get_logger("sms_ledger.ingest")


class IngestStage(str, Enum):
    RECEIVED = "RECEIVED"
    SENDER_CHECKED = "SENDER_CHECKED"
    CONTENT_CHECKED = "CONTENT_CHECKED"
    PARSED = "PARSED"
    PERSISTED = "PERSISTED"


@dataclass(frozen=True)
class IngestOutcome:
    message: InboundMessage
    stage: IngestStage
    transaction: Transaction | None = None
    dropped: str | None = None

    @property
    def persisted(self) -> bool:
        return self.stage is IngestStage.PERSISTED and self.dropped is None


Notifier = Callable[[Transaction], None]


class IngestionCoordinator:
    def __init__(
        self,
        store: TransactionStore,
        settings: Settings,
        notifier: Notifier | None = None,
    ):
        self.store = store
        self.settings = settings
        self.notifier = notifier

    def _parse(self, body: str) -> Transaction | None:
        return parse_transaction(
            body,
            institution=self.settings.institution,
            default_account=self.settings.default_account,
        )

    async def _run(self, message: InboundMessage) -> IngestOutcome:
        if not is_valid_sender(message.sender):
            logger.debug("ignoring message from sender %r", message.sender)
            return IngestOutcome(message, IngestStage.SENDER_CHECKED, dropped="sender")
        if not contains_transaction_keywords(message.body):
            logger.debug("ignoring message without transaction keywords")
            return IngestOutcome(message, IngestStage.CONTENT_CHECKED, dropped="content")

        try:
            parsed = await asyncio.wait_for(
                asyncio.to_thread(self._parse, message.body),
                timeout=self.settings.ingest_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(
                "dropping message from %r: parsing exceeded %.1fs",
                message.sender,
                self.settings.ingest_timeout,
            )
            return IngestOutcome(message, IngestStage.CONTENT_CHECKED, dropped="timeout")
        if parsed is None:
            logger.info("could not parse transaction from %r", message.sender)
            return IngestOutcome(message, IngestStage.PARSED, dropped="parse")

        # Not bounded by the timeout; a started insert runs to completion.
        try:
            txn_id = await asyncio.to_thread(self.store.insert, parsed)
        except StoreError:
            logger.error("failed to save parsed transaction", exc_info=True)
            return IngestOutcome(message, IngestStage.PERSISTED, dropped="storage")

        saved = dataclasses.replace(parsed, id=txn_id)
        logger.info(
            "saved transaction %s: %s %s %s",
            txn_id,
            saved.direction.value,
            saved.amount,
            saved.counterparty_name,
        )
        self._notify(saved)
        return IngestOutcome(message, IngestStage.PERSISTED, transaction=saved)

    def _notify(self, txn: Transaction) -> None:
        if self.notifier is None or not self.settings.notifications_enabled:
            return
        try:
            self.notifier(txn)
        except Exception:
            logger.warning("notifier failed for transaction %s", txn.id, exc_info=True)

    async def process_message(self, message: InboundMessage) -> IngestOutcome:
        try:
            return await self._run(message)
        except Exception:
            logger.exception("unexpected error while ingesting message from %r", message.sender)
            return IngestOutcome(message, IngestStage.RECEIVED, dropped="error")

    async def process_batch(
        self, messages: Iterable[InboundMessage]
    ) -> list[IngestOutcome]:
        outcomes = []
        for message in messages:
            outcomes.append(await self.process_message(message))
        saved = sum(1 for outcome in outcomes if outcome.persisted)
        logger.debug("batch processed: %d of %d saved", saved, len(outcomes))
        return outcomes

    def add_manual_entry(
        self,
        *,
        amount: str | Decimal,
        direction: str | Direction,
        counterparty_name: str,
        date: date,
        time: time,
        tag: str | None = None,
    ) -> Transaction:
        """Validate and save a user-entered transaction.

        Raises ``ValueError`` for invalid input and ``StoreError`` when saving
        fails.
        """
        txn = Transaction(
            amount=parse_amount(str(amount)),
            direction=validate_direction(direction),
            account_number=self.settings.default_account,
            date=date,
            time=time.replace(microsecond=0),
            counterparty_name=validate_counterparty(counterparty_name),
            institution=MANUAL_INSTITUTION,
            entry_method=EntryMethod.MANUAL,
            created_at=now_millis(),
            reference=None,
            user_tag=normalize_tag(tag),
            raw_source_text=None,
        )
        txn_id = self.store.insert(txn)
        logger.info("saved manual transaction %s", txn_id)
        return dataclasses.replace(txn, id=txn_id)
