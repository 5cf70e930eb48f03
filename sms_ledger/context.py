from dataclasses import dataclass

from .db import init_db
from .ingest import IngestionCoordinator, Notifier
from .repo import TransactionStore
from .settings import Settings


@dataclass(frozen=True)
class AppContext:
    settings: Settings
    store: TransactionStore
    coordinator: IngestionCoordinator


def build_context(settings: Settings, notifier: Notifier | None = None) -> AppContext:
    init_db(settings)
    store = TransactionStore(settings.db_path)
    coordinator = IngestionCoordinator(store, settings, notifier=notifier)
    return AppContext(settings=settings, store=store, coordinator=coordinator)
