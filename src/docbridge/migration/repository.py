"""
Source catalog access for the import engine.

The engine talks to the catalog through the ``ContentRepository`` protocol.
``SqlContentRepository`` implements it over SQLAlchemy with one session per
instance; ``SqlRepositoryFactory`` hands every worker its own instance.
"""

import uuid
from collections.abc import Iterable, Sequence
from datetime import datetime, timezone
from typing import Protocol

from sqlalchemy import func, or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from docbridge.client.exceptions import RepositoryError
from docbridge.migration.documents import PendingItem, RoleEntry
from docbridge.migration.models import ImportItemRow, RoleRow
from docbridge.utils.logging import get_logger

logger = get_logger(__name__)


class ContentRepository(Protocol):
    """Catalog operations used by the engine."""

    def role_table(self) -> list[RoleEntry]: ...

    def pending_items(self, offset: int, count: int) -> list[PendingItem]: ...

    def total_pending_count(self) -> int: ...

    def mark_processed(self, items: Sequence[PendingItem], target_site: str) -> None: ...

    def close(self) -> None: ...

    def __enter__(self) -> "ContentRepository": ...

    def __exit__(self, exc_type, exc_val, exc_tb) -> None: ...


class RepositoryFactory(Protocol):
    """Creates one repository instance per caller."""

    def create(self) -> ContentRepository: ...


class SqlContentRepository:
    """
    SQLAlchemy-backed catalog repository.

    Pending items are paged in (sequence, id) order. Rows marked processed
    by the same run still count towards offsets so that concurrent workers
    keep seeing the backlog as it was when the run started.

    Usage:
        with factory.create() as repository:
            items = repository.pending_items(0, 100)
    """

    def __init__(self, session: Session, run_id: str):
        self.session = session
        self.run_id = run_id

    def __enter__(self) -> "SqlContentRepository":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def close(self) -> None:
        self.session.close()

    def role_table(self) -> list[RoleEntry]:
        try:
            rows = self.session.scalars(select(RoleRow).order_by(RoleRow.id)).all()
        except SQLAlchemyError as e:
            raise RepositoryError(f"Failed to load role table: {e}") from e
        return [RoleEntry(row.document_class, row.external_group_name) for row in rows]

    def pending_items(self, offset: int, count: int) -> list[PendingItem]:
        stmt = (
            select(ImportItemRow)
            .where(self._backlog_filter())
            .order_by(ImportItemRow.sequence, ImportItemRow.id)
            .offset(offset)
            .limit(count)
        )
        try:
            rows = self.session.scalars(stmt).all()
        except SQLAlchemyError as e:
            raise RepositoryError(
                f"Failed to fetch pending items at offset {offset}: {e}"
            ) from e

        logger.debug("pending_items_fetched", offset=offset, requested=count, fetched=len(rows))
        return [_to_pending_item(row) for row in rows]

    def total_pending_count(self) -> int:
        stmt = select(func.count()).select_from(ImportItemRow).where(self._backlog_filter())
        try:
            return int(self.session.scalar(stmt) or 0)
        except SQLAlchemyError as e:
            raise RepositoryError(f"Failed to count pending items: {e}") from e

    def processed_count(self) -> int:
        stmt = (
            select(func.count())
            .select_from(ImportItemRow)
            .where(ImportItemRow.imported.is_(True))
        )
        try:
            return int(self.session.scalar(stmt) or 0)
        except SQLAlchemyError as e:
            raise RepositoryError(f"Failed to count processed items: {e}") from e

    def mark_processed(self, items: Sequence[PendingItem], target_site: str) -> None:
        ids = [item.id for item in items]
        if not ids:
            return

        stmt = (
            update(ImportItemRow)
            .where(ImportItemRow.id.in_(ids))
            .values(
                imported=True,
                imported_at=datetime.now(timezone.utc).replace(tzinfo=None),
                imported_run=self.run_id,
                target_site=target_site,
            )
        )
        try:
            self.session.execute(stmt)
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise RepositoryError(f"Failed to mark {len(ids)} items processed: {e}") from e

        for item in items:
            item.processed = True
        logger.debug("items_marked_processed", count=len(ids), target_site=target_site)

    def _backlog_filter(self):
        return or_(ImportItemRow.imported.is_(False), ImportItemRow.imported_run == self.run_id)


class SqlRepositoryFactory:
    """Creates a repository with a fresh session for each caller."""

    def __init__(self, session_factory: sessionmaker, run_id: str | None = None):
        self.session_factory = session_factory
        self.run_id = run_id or uuid.uuid4().hex

    def create(self) -> SqlContentRepository:
        return SqlContentRepository(self.session_factory(), self.run_id)


def add_pending_items(session_factory: sessionmaker, items: Iterable[PendingItem]) -> int:
    """Insert pending items into the catalog, keeping their iteration order."""
    with session_factory() as session:
        start = session.scalar(select(func.coalesce(func.max(ImportItemRow.sequence), -1))) + 1
        count = 0
        for count, item in enumerate(items, start=1):
            session.add(_to_row(item, start + count - 1))
        session.commit()
    return count


def add_roles(session_factory: sessionmaker, roles: Iterable[RoleEntry]) -> None:
    with session_factory() as session:
        session.add_all(
            RoleRow(document_class=r.document_class, external_group_name=r.external_group_name)
            for r in roles
        )
        session.commit()


def _to_pending_item(row: ImportItemRow) -> PendingItem:
    return PendingItem(
        id=row.id,
        file_name=row.file_name,
        file_path=row.file_path,
        document_title=row.document_title,
        document_class=row.document_class,
        mime_type=row.mime_type,
        date_on_document=row.date_on_document,
        message_id=row.message_id,
        contract_name=row.contract_name,
        client_id=row.client_id,
        surname=row.surname,
        forenames=row.forenames,
        date_of_birth=row.date_of_birth,
        file_type=row.file_type,
        document_type=row.document_type,
        referral_id=row.referral_id,
        withhold_from_client=row.withhold_from_client,
        sub_contract=row.sub_contract,
        void=row.void,
        processed=row.imported,
    )


def _to_row(item: PendingItem, sequence: int) -> ImportItemRow:
    return ImportItemRow(
        id=item.id,
        sequence=sequence,
        file_name=item.file_name,
        file_path=item.file_path,
        document_title=item.document_title,
        document_class=item.document_class,
        mime_type=item.mime_type,
        date_on_document=item.date_on_document,
        message_id=item.message_id,
        contract_name=item.contract_name,
        client_id=item.client_id,
        surname=item.surname,
        forenames=item.forenames,
        date_of_birth=item.date_of_birth,
        file_type=item.file_type,
        document_type=item.document_type,
        referral_id=item.referral_id,
        withhold_from_client=item.withhold_from_client,
        sub_contract=item.sub_contract,
        void=item.void,
        imported=item.processed,
    )
