"""
SQLAlchemy models for the source catalog.

The catalog holds the records awaiting import and the role table that maps
document classes to the external groups allowed to read them.
"""

import uuid
from datetime import date, datetime

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    Index,
    Integer,
    String,
    Uuid,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


class ImportItemRow(Base):
    """
    One source record awaiting migration to the document store.

    ``imported`` is the processed marker. ``imported_run`` records which
    import run set it so a run can keep paging over a stable backlog.
    """

    __tablename__ = "import_items"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    sequence: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, comment="Backlog ordering key"
    )

    # Shared document fields
    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    file_path: Mapped[str] = mapped_column(String(1024), nullable=False)
    document_title: Mapped[str] = mapped_column(String(512), nullable=False, default="")
    document_class: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    mime_type: Mapped[str] = mapped_column(
        String(255), nullable=False, default="application/octet-stream"
    )
    date_on_document: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    # Discriminator: non-zero means the document belongs to a message
    message_id: Mapped[int | None] = mapped_column(Integer, nullable=True)

    # Referral fields
    contract_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    client_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    surname: Mapped[str | None] = mapped_column(String(255), nullable=True)
    forenames: Mapped[str | None] = mapped_column(String(255), nullable=True)
    date_of_birth: Mapped[date | None] = mapped_column(Date, nullable=True)
    file_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    document_type: Mapped[str | None] = mapped_column(String(100), nullable=True)
    referral_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    withhold_from_client: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    sub_contract: Mapped[str | None] = mapped_column(String(255), nullable=True)
    void: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Import tracking
    imported: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, index=True)
    imported_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    imported_run: Mapped[str | None] = mapped_column(String(64), nullable=True)
    target_site: Mapped[str | None] = mapped_column(String(1024), nullable=True)

    __table_args__ = (Index("idx_import_items_pending", "imported", "sequence"),)

    def __repr__(self) -> str:
        return (
            f"<ImportItemRow(id={self.id}, file_name='{self.file_name}', "
            f"imported={self.imported})>"
        )


class RoleRow(Base):
    """Grants an external group access to one document class."""

    __tablename__ = "roles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    document_class: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    external_group_name: Mapped[str] = mapped_column(String(255), nullable=False)

    def __repr__(self) -> str:
        return (
            f"<RoleRow(document_class='{self.document_class}', "
            f"external_group_name='{self.external_group_name}')>"
        )
