"""
CLI context manager for docbridge.

This module provides the context object that is passed to all CLI commands,
containing configuration, the catalog session factory and the store client.
"""

from dataclasses import dataclass, field
from pathlib import Path

from sqlalchemy import Engine
from sqlalchemy.orm import sessionmaker

from docbridge.client.document_store import DocumentStoreClient
from docbridge.client.exceptions import ConfigurationError
from docbridge.config import MigrationConfig, load_config_from_yaml
from docbridge.migration.database import engine_from_config, init_database
from docbridge.migration.repository import SqlRepositoryFactory
from docbridge.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class MigrationContext:
    """
    Context object for CLI commands.

    Attributes:
        config_path: Path to configuration file
        log_level: Logging level
        log_file: Optional log file path
    """

    config_path: Path | None = None
    log_level: str = "INFO"
    log_file: Path | None = None

    # Lazy-loaded attributes
    _config: MigrationConfig | None = field(default=None, init=False, repr=False)
    _engine: Engine | None = field(default=None, init=False, repr=False)
    _session_factory: sessionmaker | None = field(default=None, init=False, repr=False)
    _store_client: DocumentStoreClient | None = field(default=None, init=False, repr=False)

    @property
    def config(self) -> MigrationConfig:
        """Get or load configuration."""
        if self._config is None:
            if self.config_path is None:
                raise ConfigurationError(
                    "Configuration file path not provided. "
                    "Use --config option or set DOCBRIDGE_CONFIG environment variable."
                )

            logger.debug("loading_configuration", config_path=str(self.config_path))
            try:
                self._config = load_config_from_yaml(self.config_path)
            except (FileNotFoundError, ValueError) as e:
                raise ConfigurationError(str(e)) from e

        return self._config

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            self._engine = engine_from_config(self.config.source)
        return self._engine

    @property
    def session_factory(self) -> sessionmaker:
        """Catalog session factory; creates tables on first use."""
        if self._session_factory is None:
            self._session_factory = init_database(self.engine)
        return self._session_factory

    def repository_factory(self) -> SqlRepositoryFactory:
        """A new factory, and therefore a new run id, per call."""
        return SqlRepositoryFactory(self.session_factory)

    @property
    def store_client(self) -> DocumentStoreClient:
        """Get or create the document store client."""
        if self._store_client is None:
            logger.debug("creating_store_client", url=self.config.target.url)
            self._store_client = DocumentStoreClient(
                config=self.config.target,
                retry_config=self.config.retry,
                max_connections=max(10, self.config.importer.thread_count * 2),
            )
        return self._store_client

    def cleanup(self) -> None:
        """Release clients and database connections."""
        if self._store_client is not None:
            self._store_client.close()
            self._store_client = None
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
            self._session_factory = None

    def __enter__(self) -> "MigrationContext":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.cleanup()
