"""Shared fixtures and fakes for the docbridge test suite.

The fakes stand in for the source catalog and the document store so the
engine can be exercised without a database or network.
"""

from __future__ import annotations

import threading
import time
import uuid
from collections.abc import Callable, Sequence
from pathlib import Path

import pytest

from docbridge.config import DEFAULT_DUPLICATE_NAME_ERROR_CODE, ImportConfig
from docbridge.migration.documents import CommitOutcome, Document, PendingItem, RoleEntry

DUPLICATE_CODE = DEFAULT_DUPLICATE_NAME_ERROR_CODE


class FakeRepository:
    """One 'connection' to the in-memory catalog."""

    def __init__(self, catalog: FakeCatalog):
        self.catalog = catalog
        self.offset: int | None = None

    def __enter__(self) -> FakeRepository:
        self.catalog._opened()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def close(self) -> None:
        self.catalog._closed()
        if self.catalog.on_close is not None:
            self.catalog.on_close(self.offset)

    def role_table(self) -> list[RoleEntry]:
        return list(self.catalog.roles)

    def pending_items(self, offset: int, count: int) -> list[PendingItem]:
        self.offset = offset
        if self.catalog.on_fetch is not None:
            self.catalog.on_fetch(offset)
        if self.catalog.fetch_delay:
            time.sleep(self.catalog.fetch_delay)
        with self.catalog.lock:
            self.catalog.fetches.append((offset, count))
            return list(self.catalog.items[offset : offset + count])

    def total_pending_count(self) -> int:
        return len(self.catalog.items)

    def mark_processed(self, items: Sequence[PendingItem], target_site: str) -> None:
        if self.catalog.mark_error is not None:
            raise self.catalog.mark_error
        with self.catalog.lock:
            for item in items:
                item.processed = True
                self.catalog.marked.append((item.id, target_site))


class FakeCatalog:
    """In-memory catalog doubling as a repository factory.

    ``items`` is the backlog as seen at the start of a run; it is never
    shrunk, mirroring the stable offsets of the SQL repository.
    """

    def __init__(
        self,
        items: list[PendingItem] | None = None,
        roles: list[RoleEntry] | None = None,
        fetch_delay: float = 0.0,
    ):
        self.items = items or []
        self.roles = roles or []
        self.fetch_delay = fetch_delay
        self.fetches: list[tuple[int, int]] = []
        self.marked: list[tuple[uuid.UUID, str]] = []
        self.mark_error: Exception | None = None
        self.on_fetch: Callable[[int], None] | None = None
        self.on_close: Callable[[int | None], None] | None = None
        self.lock = threading.Lock()
        self.open_connections = 0
        self.max_open_connections = 0

    def create(self) -> FakeRepository:
        return FakeRepository(self)

    def marked_ids(self) -> list[uuid.UUID]:
        return [item_id for item_id, _ in self.marked]

    def _opened(self) -> None:
        with self.lock:
            self.open_connections += 1
            self.max_open_connections = max(self.max_open_connections, self.open_connections)

    def _closed(self) -> None:
        with self.lock:
            self.open_connections -= 1


class FakeDocumentStore:
    """Document store that rejects names it already holds.

    A rejected batch may leave part of the block behind (``partial_adds``),
    which is what rollback has to clean up.
    """

    def __init__(
        self,
        existing_names: set[str] | None = None,
        duplicate_code: str = DUPLICATE_CODE,
        partial_adds: bool = True,
        add_delay: float = 0.0,
    ):
        self.names: dict[str, uuid.UUID | None] = dict.fromkeys(existing_names or ())
        self.documents: dict[uuid.UUID, Document] = {}
        self.duplicate_code = duplicate_code
        self.partial_adds = partial_adds
        self.add_delay = add_delay
        self.add_calls: list[list[str]] = []
        self.remove_calls: list[list[uuid.UUID]] = []
        self.scripted: list[CommitOutcome | Exception] = []
        self.on_add: Callable[[Sequence[Document]], None] | None = None
        self.lock = threading.Lock()

    def add_documents(self, documents: Sequence[Document]) -> CommitOutcome:
        if self.on_add is not None:
            self.on_add(documents)
        if self.add_delay:
            time.sleep(self.add_delay)

        with self.lock:
            self.add_calls.append([d.file_name for d in documents])

            if self.scripted:
                scripted = self.scripted.pop(0)
                if isinstance(scripted, Exception):
                    raise scripted
                if scripted.success:
                    self._store(documents)
                return scripted

            for index, document in enumerate(documents):
                if document.file_name in self.names:
                    if self.partial_adds:
                        self._store(documents[:index])
                    return CommitOutcome.failed(
                        self.duplicate_code,
                        f"A file with the name {document.file_name} already exists.",
                    )

            self._store(documents)
            return CommitOutcome.ok()

    def remove_documents(self, ids: Sequence[uuid.UUID]) -> None:
        with self.lock:
            self.remove_calls.append(list(ids))
            for document_id in ids:
                document = self.documents.pop(document_id, None)
                if document is not None:
                    self.names.pop(document.file_name, None)

    def stored_names(self) -> set[str]:
        with self.lock:
            return {d.file_name for d in self.documents.values()}

    def _store(self, documents: Sequence[Document]) -> None:
        for document in documents:
            self.documents[document.id] = document
            self.names[document.file_name] = document.id


def make_item(
    directory: Path,
    file_name: str = "report.pdf",
    content: bytes = b"%PDF-1.4 test",
    create_file: bool = True,
    **fields,
) -> PendingItem:
    """Build a pending item whose content file lives under ``directory``."""
    item_id = fields.pop("id", None) or uuid.uuid4()
    path = directory / f"{item_id}.bin"
    if create_file:
        path.write_bytes(content)
    fields.setdefault("document_title", file_name.rsplit(".", 1)[0])
    fields.setdefault("document_class", "medical")
    fields.setdefault("mime_type", "application/pdf")
    return PendingItem(id=item_id, file_name=file_name, file_path=str(path), **fields)


@pytest.fixture
def content_dir(tmp_path: Path) -> Path:
    path = tmp_path / "content"
    path.mkdir()
    return path


@pytest.fixture
def item_factory(content_dir: Path) -> Callable[..., PendingItem]:
    def factory(file_name: str = "report.pdf", **fields) -> PendingItem:
        return make_item(content_dir, file_name, **fields)

    return factory


@pytest.fixture
def roles() -> list[RoleEntry]:
    return [
        RoleEntry("medical", "Clinicians"),
        RoleEntry("medical", "Case Managers"),
        RoleEntry("finance", "Accounts"),
    ]


@pytest.fixture
def import_config() -> ImportConfig:
    return ImportConfig(
        buffer_size=4,
        block_size=2,
        max_to_process=1000,
        thread_count=2,
        duplicate_name_error_code=DUPLICATE_CODE,
        max_rename_attempts=10,
    )
