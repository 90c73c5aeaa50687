from __future__ import annotations

import threading
from typing import TYPE_CHECKING, Any

import pytest

from linksync.domain.model import Link
from linksync.domain.sync import EmptySourceError, HookError
from tests.helpers.sync import (
    ACCOUNTS,
    MAPPING_NAME,
    USERS,
    SyncHarness,
    correlate_by_email,
    make_harness,
    make_mapping_config,
)

if TYPE_CHECKING:
    from collections.abc import Mapping


def _seed_users(harness: SyncHarness) -> None:
    harness.seed_user("1", "ada@example.org", "Ada")
    harness.seed_user("2", "grace@example.org", "Grace")


@pytest.mark.parametrize("subscribe", [True, False])
def test_initial_pass_creates_and_links_every_source(subscribe: bool) -> None:
    harness = make_harness(subscribe=subscribe)
    _seed_users(harness)

    result = harness.service.recon(MAPPING_NAME, "r1")

    assert len(harness.accounts()) == 2
    links = harness.links.list_links(MAPPING_NAME)
    assert sorted(link.source_id for link in links) == ["1", "2"]
    assert {link.recon_id for link in links} == {"r1"}
    assert result.source.entries == 2
    assert result.source.situations == {"ABSENT": 2}
    assert result.target.entries == 2
    assert sum(result.target.situations.values()) == 0
    entries = harness.audit_entries("r1")
    assert [(entry["situation"], entry["action"], entry["status"]) for entry in entries] == [
        ("ABSENT", "CREATE", "SUCCESS"),
        ("ABSENT", "CREATE", "SUCCESS"),
    ]
    assert entries[0]["sourceObjectId"] == f"{USERS}/1"
    assert entries[0]["targetObjectId"] == f"{ACCOUNTS}/{links[0].target_id}"


def test_second_pass_is_idempotent(harness: SyncHarness) -> None:
    _seed_users(harness)
    harness.service.recon(MAPPING_NAME, "r1")
    writes = harness.objects.writes
    link_ids = {link.link_id for link in harness.links.list_links(MAPPING_NAME)}

    result = harness.service.recon(MAPPING_NAME, "r2")

    assert harness.objects.writes == writes
    links = harness.links.list_links(MAPPING_NAME)
    assert {link.link_id for link in links} == link_ids
    assert {link.recon_id for link in links} == {"r2"}
    assert result.source.situations == {"CONFIRMED": 2}
    assert [entry["action"] for entry in harness.audit_entries("r2")] == ["UPDATE", "UPDATE"]


def test_source_changes_reach_target_on_next_pass(harness: SyncHarness) -> None:
    _seed_users(harness)
    harness.service.recon(MAPPING_NAME, "r1")
    harness.seed_user("1", "ada@example.org", "Countess Lovelace")

    harness.service.recon(MAPPING_NAME, "r2")

    names = sorted(account["displayName"] for account in harness.accounts())
    assert names == ["Countess Lovelace", "Grace"]


def test_correlated_target_is_linked_not_created() -> None:
    harness = make_harness(make_mapping_config(correlationQuery=correlate_by_email))
    _seed_users(harness)
    harness.seed_account("a", "ada@example.org")

    result = harness.service.recon(MAPPING_NAME, "r1")

    assert len(harness.accounts()) == 2
    link = harness.link_for("1")
    assert link is not None
    assert link.target_id == "a"
    assert result.source.situations == {"FOUND": 1, "ABSENT": 1}


def test_orphan_target_is_reported_as_unassigned(harness: SyncHarness) -> None:
    _seed_users(harness)
    harness.seed_account("orphan", "nobody@example.org")

    result = harness.service.recon(MAPPING_NAME, "r1")

    assert harness.objects.read(ACCOUNTS, "orphan") is not None
    assert result.target.situations == {"UNASSIGNED": 1}
    target_entries = [
        entry for entry in harness.audit_entries("r1") if entry["reconciling"] == "target"
    ]
    assert len(target_entries) == 1
    entry = target_entries[0]
    assert entry["targetObjectId"] == f"{ACCOUNTS}/orphan"
    assert entry["sourceObjectId"] is None
    assert (entry["situation"], entry["action"], entry["status"]) == (
        "UNASSIGNED",
        "EXCEPTION",
        "SUCCESS",
    )
    assert entry["message"]


def test_target_of_removed_source_is_deleted(harness: SyncHarness) -> None:
    harness.seed_user("1", "ada@example.org")
    harness.seed_account("a", "grace@example.org")
    harness.links.create(MAPPING_NAME, Link(source_id="2", target_id="a", recon_id="r0"))

    result = harness.service.recon(MAPPING_NAME, "r1")

    assert harness.objects.read(ACCOUNTS, "a") is None
    assert harness.link_for("2") is None
    assert result.target.situations == {"UNQUALIFIED": 1}



def test_target_sweep_shares_the_linked_source_lock(harness: SyncHarness) -> None:
    harness.seed_user("1", "ada@example.org")
    harness.seed_account("a", "grace@example.org")
    harness.links.create(MAPPING_NAME, Link(source_id="2", target_id="a", recon_id="r0"))
    mapping = harness.mapping()
    assert mapping.lock_key_for_target("a") == mapping.lock_key_for_source("2")
    assert mapping.lock_key_for_target("unlinked") == ("target", "unlinked")

    finished = threading.Event()

    def run_pass() -> None:
        harness.service.recon(MAPPING_NAME, "r1")
        finished.set()

    with mapping.locks.hold(mapping.lock_key_for_source("2")):
        thread = threading.Thread(target=run_pass)
        thread.start()
        assert not finished.wait(timeout=0.2)
        assert harness.objects.read(ACCOUNTS, "a") is not None

    thread.join(timeout=5)
    assert finished.is_set()
    assert harness.objects.read(ACCOUNTS, "a") is None


def test_missing_target_is_audited_without_failure(harness: SyncHarness) -> None:
    harness.seed_user("1", "ada@example.org")
    harness.links.create(MAPPING_NAME, Link(source_id="1", target_id="gone"))

    harness.service.recon(MAPPING_NAME, "r1")

    [entry] = harness.audit_entries("r1")
    assert (entry["situation"], entry["action"], entry["status"]) == (
        "MISSING",
        "EXCEPTION",
        "SUCCESS",
    )
    assert entry["targetObjectId"] is None


def test_entry_failure_does_not_stop_the_pass() -> None:
    def correlate(scope: Mapping[str, Any]) -> dict[str, Any]:
        if scope["source"]["_id"] == "2":
            raise RuntimeError("directory offline")
        return correlate_by_email(scope)

    harness = make_harness(make_mapping_config(correlationQuery=correlate))
    _seed_users(harness)
    harness.seed_user("3", "alan@example.org")

    result = harness.service.recon(MAPPING_NAME, "r1")

    assert result.source.entries == 3
    assert harness.link_for("1") is not None
    assert harness.link_for("2") is None
    assert harness.link_for("3") is not None
    failures = [entry for entry in harness.audit_entries("r1") if entry["status"] == "FAILURE"]
    assert len(failures) == 1
    assert failures[0]["sourceObjectId"] == f"{USERS}/2"
    assert failures[0]["action"] is None
    assert failures[0]["message"] == (
        "users_accounts correlationQuery script encountered exception. "
        "Root cause: directory offline"
    )


def test_invalid_sources_produce_no_audit_entry() -> None:
    harness = make_harness(
        make_mapping_config(
            validSource=lambda scope: scope["source"]["email"] != "grace@example.org",
        )
    )
    _seed_users(harness)

    result = harness.service.recon(MAPPING_NAME, "r1")

    assert result.source.not_valid == 1
    assert [entry["sourceObjectId"] for entry in harness.audit_entries("r1")] == [f"{USERS}/1"]


def test_empty_source_collection_is_refused(harness: SyncHarness) -> None:
    harness.seed_account("a", "ada@example.org")

    with pytest.raises(EmptySourceError):
        harness.service.recon(MAPPING_NAME, "r1")

    assert harness.objects.read(ACCOUNTS, "a") is not None


def test_result_hook_receives_summaries() -> None:
    received: list[Mapping[str, Any]] = []
    harness = make_harness(make_mapping_config(result=received.append))
    _seed_users(harness)

    result = harness.service.recon(MAPPING_NAME, "r1")

    assert len(received) == 1
    summary = received[0]
    assert set(summary) == {"source", "target", "global"}
    assert summary["source"]["entries"] == 2
    assert summary["source"]["reconId"] == "r1"
    assert summary["global"]["name"] == MAPPING_NAME
    assert result.global_.finished


def test_failing_result_hook_raises() -> None:
    def explode(_scope: Mapping[str, Any]) -> None:
        raise ValueError("cannot publish")

    harness = make_harness(make_mapping_config(result=explode))
    _seed_users(harness)

    with pytest.raises(HookError, match="result script"):
        harness.service.recon(MAPPING_NAME, "r1")
