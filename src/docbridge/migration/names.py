"""File name collision handling for document blocks.

The target store rejects two documents with the same file name. Names are
made unique before each commit by incrementing a numeric suffix until the
name is unclaimed in a registry. The registry remembers which document
claimed each name, so resolving an already-resolved block again changes
nothing.
"""

import threading
import uuid
from collections.abc import Iterable

from docbridge.migration.documents import Document
from docbridge.utils.logging import get_logger

logger = get_logger(__name__)


class NameRegistry:
    """File names already claimed during an import.

    One registry normally belongs to a single range worker. When global
    uniqueness is configured, one instance is shared by every worker; the
    lock keeps check-and-claim atomic in that case.
    """

    def __init__(self, names: Iterable[str] = ()):
        self._owners: dict[str, uuid.UUID | None] = {name: None for name in names}
        self._lock = threading.Lock()

    def __contains__(self, name: object) -> bool:
        return name in self._owners

    def __len__(self) -> int:
        return len(self._owners)

    def names(self) -> set[str]:
        with self._lock:
            return set(self._owners)

    def owner(self, name: str) -> uuid.UUID | None:
        return self._owners.get(name)

    def claim(self, name: str, owner: uuid.UUID) -> bool:
        """Claim ``name`` for ``owner``.

        Returns:
            True if the name was free or already held by ``owner``
        """
        with self._lock:
            if name in self._owners:
                return self._owners[name] == owner
            self._owners[name] = owner
            return True


def enforce_unique_file_names(documents: Iterable[Document], registry: NameRegistry) -> int:
    """Give every document a file name not claimed by any other document.

    Documents are processed in order, so earlier documents keep the plain
    name and later ones get the suffix.

    Args:
        documents: Block of documents, mutated in place
        registry: Names already claimed in this scope

    Returns:
        Number of suffix increments applied
    """
    renames = 0
    for document in documents:
        original = document.file_name
        while not registry.claim(document.file_name, document.id):
            document.bump_suffix()
            renames += 1
        if document.file_name != original:
            logger.debug(
                "file_name_disambiguated",
                document_id=str(document.id),
                original=original,
                resolved=document.file_name,
            )
    return renames


def bump_named_in_error(documents: Iterable[Document], detail: str) -> list[Document]:
    """Increment the suffix of documents whose name appears in a store error.

    Args:
        documents: Block that was rejected
        detail: Error text returned by the store

    Returns:
        Documents that were renamed
    """
    if not detail:
        return []

    bumped = []
    for document in documents:
        if document.file_name in detail:
            document.bump_suffix()
            bumped.append(document)
    return bumped
