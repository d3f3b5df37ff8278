"""
Database engine and session management for the source catalog.

Each range worker opens its own session, so sessions are created from a
shared factory rather than shared between threads.
"""

from sqlalchemy import Engine, create_engine, pool, text
from sqlalchemy.orm import sessionmaker

from docbridge.client.exceptions import ConfigurationError
from docbridge.config import SourceConfig
from docbridge.migration.models import Base
from docbridge.utils.logging import get_logger

logger = get_logger(__name__)


def create_database_engine(
    database_url: str,
    echo: bool = False,
    pool_size: int = 5,
    max_overflow: int = 10,
    pool_timeout: int = 30,
    pool_recycle: int = 3600,
) -> Engine:
    """
    Create a SQLAlchemy engine with appropriate settings.

    Args:
        database_url: Database connection URL
        echo: Whether to log SQL statements
        pool_size: Number of connections to maintain in the pool
        max_overflow: Connections allowed beyond pool_size
        pool_timeout: Timeout for getting a connection from the pool (seconds)
        pool_recycle: Recycle connections after this many seconds

    Returns:
        SQLAlchemy Engine instance

    Raises:
        ConfigurationError: If the engine cannot be created
    """
    if not database_url:
        raise ConfigurationError("Database URL cannot be empty")

    try:
        is_sqlite = database_url.startswith("sqlite")

        if is_sqlite:
            # NullPool plus check_same_thread=False lets every worker thread
            # open its own SQLite connection
            engine = create_engine(
                database_url,
                echo=echo,
                poolclass=pool.NullPool,
                connect_args={"check_same_thread": False},
            )
        else:
            engine = create_engine(
                database_url,
                echo=echo,
                pool_size=pool_size,
                max_overflow=max_overflow,
                pool_timeout=pool_timeout,
                pool_pre_ping=True,
                pool_recycle=pool_recycle,
            )

        logger.info(
            "database_engine_created",
            database_type="sqlite" if is_sqlite else engine.dialect.name,
            pool_size=pool_size if not is_sqlite else "NullPool",
        )
        return engine

    except Exception as e:
        logger.error("database_engine_failed", error=str(e))
        raise ConfigurationError(f"Failed to create database engine: {e}") from e


def engine_from_config(config: SourceConfig) -> Engine:
    return create_database_engine(
        config.database_url,
        echo=config.echo,
        pool_size=config.pool_size,
        max_overflow=config.max_overflow,
        pool_timeout=config.pool_timeout,
        pool_recycle=config.pool_recycle,
    )


def init_database(engine: Engine) -> sessionmaker:
    """
    Create catalog tables if missing and return a session factory.

    Idempotent; safe to call on an existing catalog.

    Raises:
        ConfigurationError: If table creation fails
    """
    try:
        Base.metadata.create_all(engine)
    except Exception as e:
        logger.error("database_init_failed", error=str(e))
        raise ConfigurationError(f"Failed to initialize database: {e}") from e

    logger.info("database_initialized", tables=len(Base.metadata.tables))
    return sessionmaker(bind=engine, expire_on_commit=False)


def validate_database_connection(engine: Engine) -> bool:
    """
    Check that a connection can be established.

    Returns:
        True if connection successful, False otherwise
    """
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        logger.info("database_connection_validated")
        return True
    except Exception as e:
        logger.error("database_connection_failed", error=str(e))
        return False
