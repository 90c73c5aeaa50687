from __future__ import annotations

import threading

from linksync.domain.model import Situation
from linksync.domain.sync import SyncContext
from tests.helpers.sync import (
    ACCOUNTS,
    LEDGER,
    MAPPING_NAME,
    USERS,
    SyncHarness,
    make_harness,
    make_mapping_config,
)


def test_context_clears_only_its_own_pending_link() -> None:
    context = SyncContext()
    outer = context.populate_pending_link(
        mapping_name="m",
        source_id="1",
        source_object={"_id": "1"},
        recon_id=None,
        situation=Situation.ABSENT,
    )
    inner = context.populate_pending_link(
        mapping_name="n",
        source_id="2",
        source_object={"_id": "2"},
        recon_id=None,
        situation=Situation.ABSENT,
    )

    context.clear_pending_link(outer)
    assert context.pending_link is inner

    context.clear_pending_link(inner)
    assert context.pending_link is None


def test_notified_create_links_pending_source(harness: SyncHarness) -> None:
    source = harness.seed_user("1", "ada@example.org")
    context = SyncContext()
    pending = context.populate_pending_link(
        mapping_name=MAPPING_NAME,
        source_id="1",
        source_object=source,
        recon_id="r1",
        situation=Situation.ABSENT,
    )
    target = harness.seed_account("a", "ada@example.org")

    assert harness.service.handle_pending_link(f"{ACCOUNTS}/a", target, context)
    assert pending.linked

    link = harness.link_for("1")
    assert link is not None
    assert (link.target_id, link.recon_id) == ("a", "r1")
    assert not harness.service.handle_pending_link(f"{ACCOUNTS}/a", target, context)


def test_pending_link_ignores_other_collections(harness: SyncHarness) -> None:
    context = SyncContext()
    context.populate_pending_link(
        mapping_name=MAPPING_NAME,
        source_id="1",
        source_object={"_id": "1"},
        recon_id=None,
        situation=Situation.ABSENT,
    )

    assert not harness.service.handle_pending_link(f"{LEDGER}/x", {"_id": "x"}, context)
    assert not harness.service.handle_pending_link(f"{ACCOUNTS}/a", {"_id": "a"}, None)
    assert harness.links.list_links(MAPPING_NAME) == []


def test_create_cascade_yields_single_link(harness: SyncHarness) -> None:
    harness.objects.create(USERS, {"email": "ada@example.org", "name": "Ada"}, object_id="1")

    accounts = harness.accounts()
    links = harness.links.list_links(MAPPING_NAME)
    assert len(accounts) == 1
    assert len(links) == 1
    assert links[0].source_id == "1"
    assert links[0].target_id == accounts[0]["_id"]
    assert harness.links.writes == 1


def test_chained_mappings_each_link_once() -> None:
    ledger_config = make_mapping_config(
        name="accounts_ledger",
        source=ACCOUNTS,
        target=LEDGER,
        properties=[{"source": "email", "target": "owner"}],
    )
    harness = make_harness(make_mapping_config(), ledger_config)

    harness.objects.create(USERS, {"email": "ada@example.org"}, object_id="1")

    account_links = harness.links.list_links(MAPPING_NAME)
    ledger_links = harness.links.list_links("accounts_ledger")
    assert len(account_links) == 1
    assert len(ledger_links) == 1
    assert ledger_links[0].source_id == account_links[0].target_id
    ledger = harness.objects.query(LEDGER, {"filter": {"owner": "ada@example.org"}})
    assert [entry["_id"] for entry in ledger] == [ledger_links[0].target_id]


def test_concurrent_create_events_yield_single_link(harness: SyncHarness) -> None:
    harness.seed_user("1", "ada@example.org")
    mapping = harness.mapping()
    barrier = threading.Barrier(2)
    errors: list[BaseException] = []

    def notify() -> None:
        barrier.wait()
        try:
            mapping.on_create(f"{USERS}/1")
        except Exception as exc:  # noqa: BLE001
            errors.append(exc)

    threads = [threading.Thread(target=notify) for _ in range(2)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=10)

    assert errors == []
    assert len(harness.accounts()) == 1
    assert len(harness.links.list_links(MAPPING_NAME)) == 1
