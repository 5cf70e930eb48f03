import asyncio
import dataclasses
from decimal import Decimal

import pytest

from sms_ledger.live import ChangeNotifier


def test_observe_emits_initial_snapshot_and_changes(store, make_txn):
    seen = []
    sub = store.observe(store.untagged_count, seen.append)
    assert seen == [0]

    tid = store.insert(make_txn())
    assert seen == [0, 1]

    store.update_tag(tid, "Food")
    assert seen == [0, 1, 0]

    sub.cancel()
    store.insert(make_txn())
    assert seen == [0, 1, 0]
    assert not sub.active


def test_observe_skips_writes_that_do_not_change_result(store, make_txn):
    tid = store.insert(make_txn())
    seen = []
    store.observe(store.untagged_count, seen.append)

    txn = store.get(tid)
    store.update(dataclasses.replace(txn, amount=Decimal("12.00")))
    assert seen == [1]


def test_observe_list_query_sees_full_records(store, make_txn):
    snapshots = []
    store.observe(lambda: store.search("shop"), snapshots.append)

    store.insert(make_txn(counterparty_name="Big Shop"))
    store.insert(make_txn(counterparty_name="Cafe"))

    assert [len(s) for s in snapshots] == [0, 1]
    assert snapshots[-1][0].counterparty_name == "Big Shop"


def test_cancel_is_idempotent_and_callback_errors_are_contained(store, make_txn):
    def broken(snapshot):
        raise RuntimeError("subscriber bug")

    seen = []
    bad = store.observe(store.untagged_count, broken)
    store.observe(store.untagged_count, seen.append)

    store.insert(make_txn())
    assert seen == [0, 1]

    bad.cancel()
    bad.cancel()


def test_cancel_from_inside_callback():
    notifier = ChangeNotifier()
    counter = {"n": 0}
    seen = []

    def query():
        counter["n"] += 1
        return counter["n"]

    def callback(value):
        seen.append(value)
        if value >= 2:
            sub.cancel()

    sub = notifier.subscribe(query, callback)
    notifier.publish()
    notifier.publish()

    assert seen == [1, 2]
    assert len(notifier) == 0


@pytest.mark.asyncio
async def test_stream_yields_snapshots_until_closed(store, make_txn):
    snapshots = store.stream(store.untagged_count)

    assert await asyncio.wait_for(snapshots.__anext__(), 2) == 0

    await asyncio.to_thread(store.insert, make_txn())
    assert await asyncio.wait_for(snapshots.__anext__(), 2) == 1

    await snapshots.aclose()
    await asyncio.to_thread(store.insert, make_txn())
