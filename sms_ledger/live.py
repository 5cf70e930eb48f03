"""Live queries over the transaction store.

A subscription re-runs its query after every successful write and hands the
new result to its callback whenever it differs from the last one delivered.
"""

import asyncio
import threading
from collections.abc import AsyncIterator, Callable
from typing import Any

from .logging_setup import get_logger


logger = get_logger("sms_ledger.live")

_UNSET = object()


class Subscription:
    def __init__(
        self,
        notifier: "ChangeNotifier",
        query: Callable[[], Any],
        callback: Callable[[Any], None],
    ):
        self._notifier = notifier
        self._query = query
        self._callback = callback
        self._last: Any = _UNSET
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def refresh(self) -> None:
        if not self._active:
            return
        try:
            snapshot = self._query()
        except Exception:
            logger.exception("live query failed; keeping previous snapshot")
            return
        if self._last is not _UNSET and snapshot == self._last:
            return
        self._last = snapshot
        if not self._active:
            return
        try:
            self._callback(snapshot)
        except Exception:
            logger.exception("live query subscriber raised")

    def cancel(self) -> None:
        if not self._active:
            return
        self._active = False
        self._notifier.unsubscribe(self)


class ChangeNotifier:
    def __init__(self):
        self._subscriptions: list[Subscription] = []
        self._subs_lock = threading.Lock()
        # Refreshes run one at a time so a subscriber never sees an older
        # snapshot after a newer one.
        self._refresh_lock = threading.RLock()

    def subscribe(
        self, query: Callable[[], Any], callback: Callable[[Any], None]
    ) -> Subscription:
        subscription = Subscription(self, query, callback)
        with self._refresh_lock:
            with self._subs_lock:
                self._subscriptions.append(subscription)
            subscription.refresh()
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        with self._subs_lock:
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)

    def publish(self) -> None:
        with self._refresh_lock:
            with self._subs_lock:
                subscriptions = list(self._subscriptions)
            for subscription in subscriptions:
                subscription.refresh()

    def __len__(self) -> int:
        with self._subs_lock:
            return len(self._subscriptions)


async def stream(
    notifier: ChangeNotifier, query: Callable[[], Any]
) -> AsyncIterator[Any]:
    """Yield query snapshots until the consumer stops iterating."""
    loop = asyncio.get_running_loop()
    queue: asyncio.Queue = asyncio.Queue()

    def _push(snapshot: Any) -> None:
        loop.call_soon_threadsafe(queue.put_nowait, snapshot)

    subscription = await asyncio.to_thread(notifier.subscribe, query, _push)
    try:
        while True:
            yield await queue.get()
    finally:
        subscription.cancel()
