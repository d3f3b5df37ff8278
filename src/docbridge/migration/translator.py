"""Translation of pending catalog items into target documents."""

import base64
from collections.abc import Iterable
from pathlib import Path

from docbridge.client.exceptions import TranslationError
from docbridge.migration.documents import (
    Document,
    MessageDocument,
    PendingItem,
    ReferralDocument,
    RoleEntry,
)
from docbridge.utils.logging import get_logger

logger = get_logger(__name__)


class DocumentTranslator:
    """Builds store documents from pending items.

    The role table is read once when the engine is constructed and shared
    read-only by every worker.
    """

    def __init__(self, role_table: Iterable[RoleEntry]):
        self.role_table = tuple(role_table)

    def roles_for(self, document_class: str) -> list[str]:
        """External group names granted access to a document class."""
        return [
            role.external_group_name
            for role in self.role_table
            if role.document_class == document_class
        ]

    def translate(self, item: PendingItem) -> Document:
        """Build the document variant selected by the item's message id.

        Raises:
            TranslationError: If the content file cannot be read
        """
        content = self._read_content(item)

        common = {
            "id": item.id,
            "title": item.document_title,
            "content": content,
            "mime_type": item.mime_type,
            "document_class": item.document_class,
            "base_file_name": item.file_name,
            "date_on_document": item.date_on_document,
        }

        if item.has_message:
            return MessageDocument(message_id=str(item.message_id), **common)

        return ReferralDocument(
            contract_name=item.contract_name,
            contract_client_id=_as_text(item.client_id),
            surname=item.surname,
            forenames=item.forenames,
            date_of_birth=item.date_of_birth,
            file_type=item.file_type,
            document_type=item.document_type,
            referral_id=_as_text(item.referral_id),
            withhold_from_client=item.withhold_from_client,
            sub_contract=item.sub_contract,
            void=item.void,
            roles=self.roles_for(item.document_class),
            **common,
        )

    def translate_block(self, items: Iterable[PendingItem]) -> list[Document]:
        """Translate a block in order; any failure fails the whole block."""
        documents = [self.translate(item) for item in items]
        logger.debug("block_translated", documents=len(documents))
        return documents

    @staticmethod
    def _read_content(item: PendingItem) -> str:
        try:
            data = Path(item.file_path).read_bytes()
        except OSError as e:
            raise TranslationError(
                f"Cannot read content for item {item.id} from {item.file_path}: {e}",
                item_id=item.id,
                file_path=item.file_path,
            ) from e
        return base64.b64encode(data).decode("ascii")


def _as_text(value: int | None) -> str | None:
    return None if value is None else str(value)
