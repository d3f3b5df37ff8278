"""Data types shared by the import engine.

Pending items come from the source catalog, documents go to the target
store. Documents are a tagged union: every variant carries the common
attribute set plus the fields selected by the item's discriminator.
"""

import os
import uuid
from dataclasses import dataclass, field, fields
from datetime import date, datetime
from enum import Enum
from typing import Any


@dataclass
class PendingItem:
    """One source record awaiting migration."""

    id: uuid.UUID
    file_name: str
    file_path: str
    document_title: str = ""
    document_class: str = ""
    mime_type: str = "application/octet-stream"
    date_on_document: datetime | None = None
    message_id: int | None = None
    contract_name: str | None = None
    client_id: int | None = None
    surname: str | None = None
    forenames: str | None = None
    date_of_birth: date | None = None
    file_type: str | None = None
    document_type: str | None = None
    referral_id: int | None = None
    withhold_from_client: bool = False
    sub_contract: str | None = None
    void: bool = False
    processed: bool = False

    @property
    def has_message(self) -> bool:
        """Items linked to a message become message documents."""
        return bool(self.message_id)


@dataclass(frozen=True)
class RoleEntry:
    """Role table row mapping a document class to an external group."""

    document_class: str
    external_group_name: str


@dataclass(frozen=True)
class RangeDescriptor:
    """Contiguous slice of the pending backlog assigned to one worker."""

    offset: int
    size: int

    @property
    def end(self) -> int:
        return self.offset + self.size

    def __str__(self) -> str:
        return f"[{self.offset}, {self.end})"


class DocumentVariant(str, Enum):
    """Tag selecting the document shape created for an item."""

    REFERRAL = "referral"
    MESSAGE = "message"


@dataclass
class Document:
    """Common attribute set of every target document."""

    id: uuid.UUID
    title: str
    content: str
    mime_type: str
    document_class: str
    base_file_name: str
    date_on_document: datetime | None = None
    file_name_suffix: int = 0

    variant: DocumentVariant = field(init=False)

    @property
    def file_name(self) -> str:
        """Effective file name, ``report(2).pdf`` for suffix 2."""
        if self.file_name_suffix == 0:
            return self.base_file_name
        stem, ext = os.path.splitext(self.base_file_name)
        return f"{stem}({self.file_name_suffix}){ext}"

    def bump_suffix(self) -> str:
        self.file_name_suffix += 1
        return self.file_name

    def to_payload(self) -> dict[str, Any]:
        """Serialize for the document store API."""
        payload: dict[str, Any] = {}
        for f in fields(self):
            if f.name in ("base_file_name", "file_name_suffix"):
                continue
            value = getattr(self, f.name)
            if isinstance(value, uuid.UUID):
                value = str(value)
            elif isinstance(value, (date, datetime)):
                value = value.isoformat()
            elif isinstance(value, Enum):
                value = value.value
            payload[f.name] = value
        payload["file_name"] = self.file_name
        return payload


@dataclass
class ReferralDocument(Document):
    """Document for an item without a message (carries client and role data)."""

    contract_name: str | None = None
    contract_client_id: str | None = None
    surname: str | None = None
    forenames: str | None = None
    date_of_birth: date | None = None
    file_type: str | None = None
    document_type: str | None = None
    referral_id: str | None = None
    withhold_from_client: bool = False
    sub_contract: str | None = None
    void: bool = False
    roles: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.variant = DocumentVariant.REFERRAL


@dataclass
class MessageDocument(Document):
    """Document attached to a message."""

    message_id: str = ""

    def __post_init__(self) -> None:
        self.variant = DocumentVariant.MESSAGE


@dataclass(frozen=True)
class CommitOutcome:
    """Result of one add-documents call."""

    success: bool
    error_code: str | None = None
    detail: str = ""

    @classmethod
    def ok(cls) -> "CommitOutcome":
        return cls(success=True)

    @classmethod
    def failed(cls, error_code: str | None, detail: str = "") -> "CommitOutcome":
        return cls(success=False, error_code=error_code, detail=detail)
