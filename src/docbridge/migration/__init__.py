"""
Migration module for docbridge.

This module provides the import engine: block construction, document
translation, file name collision handling, block commits with rollback,
range workers and the scheduler that runs them.
"""

# Engine building blocks
from docbridge.migration.blocks import create_blocks
from docbridge.migration.commit import CommitManager, CommitReport, DocumentStore
from docbridge.migration.control import EngineState

# Data types
from docbridge.migration.documents import (
    CommitOutcome,
    Document,
    DocumentVariant,
    MessageDocument,
    PendingItem,
    RangeDescriptor,
    ReferralDocument,
    RoleEntry,
)

# Scheduling
from docbridge.migration.importer import Importer, ImportSummary, compute_ranges
from docbridge.migration.names import NameRegistry, bump_named_in_error, enforce_unique_file_names

# Catalog access
from docbridge.migration.repository import (
    ContentRepository,
    RepositoryFactory,
    SqlContentRepository,
    SqlRepositoryFactory,
)
from docbridge.migration.translator import DocumentTranslator
from docbridge.migration.worker import RangeResult, RangeWorker

__all__ = [
    # Data types
    "PendingItem",
    "RoleEntry",
    "RangeDescriptor",
    "Document",
    "DocumentVariant",
    "ReferralDocument",
    "MessageDocument",
    "CommitOutcome",
    # Engine
    "create_blocks",
    "DocumentTranslator",
    "NameRegistry",
    "enforce_unique_file_names",
    "bump_named_in_error",
    "CommitManager",
    "CommitReport",
    "DocumentStore",
    "EngineState",
    "RangeWorker",
    "RangeResult",
    "Importer",
    "ImportSummary",
    "compute_ranges",
    # Catalog access
    "ContentRepository",
    "RepositoryFactory",
    "SqlContentRepository",
    "SqlRepositoryFactory",
]
