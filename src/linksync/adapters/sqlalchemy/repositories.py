"""Link store and audit sink backed by SQLAlchemy sessions."""

from __future__ import annotations

from dataclasses import replace
from typing import TYPE_CHECKING, Any, cast

from sqlalchemy import delete, insert, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from linksync.adapters.sqlalchemy.engine import session_factory as default_session_factory
from linksync.adapters.sqlalchemy.mappings import link_table, recon_audit_table
from linksync.domain.model import Link
from linksync.domain.ports.errors import ConflictError, NotFoundError, ObjectStoreError

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from sqlalchemy import CursorResult, Select
    from sqlalchemy.engine import RowMapping
    from sqlalchemy.orm import Session, sessionmaker


def _row_to_link(row: RowMapping) -> Link:
    return Link(
        link_id=str(row["id"]),
        revision=str(row["revision"]),
        source_id=row["source_id"],
        target_id=row["target_id"],
        recon_id=row["recon_id"],
    )


class SqlAlchemyLinkStore:
    """Links persisted in the ``links`` table.

    Each call runs in its own transaction. Uniqueness of source and target ids per
    link set is enforced by constraints; revisions guard concurrent updates.
    """

    def __init__(self, session_factory: sessionmaker[Session] | None = None) -> None:
        self._session_factory = session_factory or default_session_factory()

    def find_by_source(self, link_set: str, source_id: str) -> Link | None:
        stmt = (
            select(link_table)
            .where(link_table.c.link_set == link_set)
            .where(link_table.c.source_id == source_id)
        )
        return self._fetch_one(stmt)

    def find_by_target(self, link_set: str, target_id: str) -> Link | None:
        stmt = (
            select(link_table)
            .where(link_table.c.link_set == link_set)
            .where(link_table.c.target_id == target_id)
        )
        return self._fetch_one(stmt)

    def list_links(self, link_set: str) -> Sequence[Link]:
        stmt = select(link_table).where(link_table.c.link_set == link_set).order_by(link_table.c.id)
        try:
            with self._session_factory() as session:
                rows = session.execute(stmt).mappings().all()
        except SQLAlchemyError as exc:
            raise ObjectStoreError(f"Failed to list links of {link_set}") from exc
        return [_row_to_link(row) for row in rows]

    def create(self, link_set: str, link: Link) -> Link:
        stmt = insert(link_table).values(
            link_set=link_set,
            source_id=link.source_id,
            target_id=link.target_id,
            recon_id=link.recon_id,
            revision=0,
        )
        try:
            with self._session_factory.begin() as session:
                result = session.execute(stmt)
                primary_key = result.inserted_primary_key
        except IntegrityError as exc:
            raise ConflictError(
                f"Link set {link_set} already links {link.source_id} or {link.target_id}"
            ) from exc
        except SQLAlchemyError as exc:
            raise ObjectStoreError(f"Failed to create link in {link_set}") from exc
        if primary_key is None:
            raise ObjectStoreError(f"No id assigned to new link in {link_set}")
        return replace(link, link_id=str(primary_key[0]), revision="0")

    def update(self, link_set: str, link: Link) -> Link:
        row_id, expected = self._identify(link_set, link)
        stmt = (
            update(link_table)
            .where(link_table.c.id == row_id)
            .where(link_table.c.link_set == link_set)
            .where(link_table.c.revision == expected)
            .values(
                source_id=link.source_id,
                target_id=link.target_id,
                recon_id=link.recon_id,
                revision=expected + 1,
            )
        )
        try:
            with self._session_factory.begin() as session:
                result = cast("CursorResult[Any]", session.execute(stmt))
                if result.rowcount == 0:
                    self._raise_missing_or_conflict(session, link_set, row_id, expected)
        except IntegrityError as exc:
            raise ConflictError(f"Target {link.target_id} is already linked in {link_set}") from exc
        except SQLAlchemyError as exc:
            raise ObjectStoreError(f"Failed to update link {link.link_id}") from exc
        return replace(link, revision=str(expected + 1))

    def delete(self, link_set: str, link: Link) -> None:
        if link.link_id is None:
            return
        row_id, expected = self._identify(link_set, link)
        stmt = (
            delete(link_table)
            .where(link_table.c.id == row_id)
            .where(link_table.c.link_set == link_set)
            .where(link_table.c.revision == expected)
        )
        try:
            with self._session_factory.begin() as session:
                result = cast("CursorResult[Any]", session.execute(stmt))
                if result.rowcount == 0 and self._exists(session, link_set, row_id):
                    raise ConflictError(f"Link {row_id} changed since revision {expected}")
        except SQLAlchemyError as exc:
            raise ObjectStoreError(f"Failed to delete link {link.link_id}") from exc

    def _fetch_one(self, stmt: Select[Any]) -> Link | None:
        try:
            with self._session_factory() as session:
                row = session.execute(stmt).mappings().one_or_none()
        except SQLAlchemyError as exc:
            raise ObjectStoreError("Failed to read link") from exc
        return None if row is None else _row_to_link(row)

    @staticmethod
    def _identify(link_set: str, link: Link) -> tuple[int, int]:
        if link.link_id is None:
            raise NotFoundError(f"Link without id in {link_set}")
        try:
            return int(link.link_id), int(link.revision or 0)
        except ValueError as exc:
            raise NotFoundError(f"Link {link.link_id} not found in {link_set}") from exc

    @staticmethod
    def _exists(session: Session, link_set: str, row_id: int) -> bool:
        stmt = (
            select(link_table.c.id)
            .where(link_table.c.id == row_id)
            .where(link_table.c.link_set == link_set)
        )
        return session.execute(stmt).scalar_one_or_none() is not None

    def _raise_missing_or_conflict(
        self,
        session: Session,
        link_set: str,
        row_id: int,
        expected: int,
    ) -> None:
        if self._exists(session, link_set, row_id):
            raise ConflictError(f"Link {row_id} changed since revision {expected}")
        raise NotFoundError(f"Link {row_id} not found in {link_set}")


_AUDIT_COLUMNS = {
    "reconId": "recon_id",
    "reconciling": "reconciling",
    "sourceObjectId": "source_object_id",
    "targetObjectId": "target_object_id",
    "timestamp": "timestamp",
    "situation": "situation",
    "action": "action",
    "status": "status",
    "message": "message",
}


class SqlAlchemyAuditSink:
    """Append reconciliation audit entries to the ``recon_audit`` table."""

    def __init__(self, session_factory: sessionmaker[Session] | None = None) -> None:
        self._session_factory = session_factory or default_session_factory()

    def create(self, collection: str, entry: Mapping[str, Any]) -> None:
        values: dict[str, Any] = {"collection": collection}
        for key, column in _AUDIT_COLUMNS.items():
            values[column] = entry.get(key)
        try:
            with self._session_factory.begin() as session:
                session.execute(insert(recon_audit_table).values(**values))
        except SQLAlchemyError as exc:
            raise ObjectStoreError(f"Failed to append audit entry to {collection}") from exc

    def entries_for(self, collection: str, *, recon_id: str | None = None) -> list[dict[str, Any]]:
        stmt = (
            select(recon_audit_table)
            .where(recon_audit_table.c.collection == collection)
            .order_by(recon_audit_table.c.id)
        )
        if recon_id is not None:
            stmt = stmt.where(recon_audit_table.c.recon_id == recon_id)
        try:
            with self._session_factory() as session:
                rows = session.execute(stmt).mappings().all()
        except SQLAlchemyError as exc:
            raise ObjectStoreError(f"Failed to read audit entries of {collection}") from exc
        return [{key: row[column] for key, column in _AUDIT_COLUMNS.items()} for row in rows]

