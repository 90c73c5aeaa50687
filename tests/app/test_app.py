from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest

from linksync.adapters.memory import InMemoryLinkStore, InMemoryObjectStore
from linksync.adapters.sqlalchemy.engine import shutdown, startup
from linksync.adapters.sqlalchemy.repositories import SqlAlchemyLinkStore
from linksync.app import build_synchronization_service, reconcile_mapping
from linksync.config import MissingConfigurationError
from linksync.domain.sync import SyncDocument
from tests.helpers.sync import ACCOUNTS, MAPPING_NAME, USERS

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

    from sqlalchemy.engine import Engine


def _document() -> SyncDocument:
    return SyncDocument.model_validate(
        {
            "mappings": [
                {
                    "name": MAPPING_NAME,
                    "source": USERS,
                    "target": ACCOUNTS,
                    "properties": [{"source": "email", "target": "email"}],
                }
            ]
        }
    )


@pytest.fixture
def started_engine(sqlite_engine: Engine) -> Iterator[Engine]:
    startup(engine=sqlite_engine, force=True)
    try:
        yield sqlite_engine
    finally:
        shutdown()


def test_in_memory_service_reacts_to_store_writes() -> None:
    objects = InMemoryObjectStore()
    links = InMemoryLinkStore()
    build_synchronization_service(
        document=_document(),
        objects=objects,
        links=links,
        persistent=False,
    )

    objects.create(USERS, {"email": "ada@example.org"}, object_id="1")

    link = links.find_by_source(MAPPING_NAME, "1")
    assert link is not None
    assert objects.read(ACCOUNTS, link.target_id) is not None


def test_persistent_service_stores_links_in_database(started_engine: Engine) -> None:
    objects = InMemoryObjectStore()
    objects.put(USERS, {"_id": "1", "email": "ada@example.org"})
    service = build_synchronization_service(document=_document(), objects=objects)

    result = reconcile_mapping(service, MAPPING_NAME, recon_id="r1")

    assert result.recon_id == "r1"
    link = SqlAlchemyLinkStore().find_by_source(MAPPING_NAME, "1")
    assert link is not None
    assert link.recon_id == "r1"


def test_mapping_document_from_environment(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
) -> None:
    path = tmp_path / "sync.json"
    path.write_text(json.dumps(_document().model_dump(mode="json", by_alias=True)), encoding="utf-8")
    monkeypatch.setenv("LINKSYNC_MAPPINGS_FILE", str(path))

    service = build_synchronization_service(persistent=False)

    assert [mapping.name for mapping in service.mappings] == [MAPPING_NAME]


def test_missing_mapping_document_is_reported(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("LINKSYNC_MAPPINGS_FILE", raising=False)

    with pytest.raises(MissingConfigurationError):
        build_synchronization_service(persistent=False)
