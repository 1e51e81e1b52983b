"""
Sample Buddy Database Session Management
========================================
Database connection, session management, and initialization utilities.

Uses SQLite in the user data directory by default.

Configuration:
    SAMPLE_BUDDY_DATABASE_URL (or DATABASE_URL) selects another database:

        export SAMPLE_BUDDY_DATABASE_URL="sqlite:////srv/lab/sample_buddy.db"

    SAMPLE_BUDDY_HOME moves the data directory (default ~/.sample_buddy).

    Or pass the URL directly to DatabaseManager or init_db().
"""

import os
from pathlib import Path
from typing import Optional, Generator
from contextlib import contextmanager
from sqlalchemy import create_engine, event, text
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from database.models import Base


def get_data_dir() -> Path:
    """
    Directory holding the database file and import backups.

    Created on first use.
    """
    home = os.environ.get('SAMPLE_BUDDY_HOME')
    data_dir = Path(home) if home else Path.home() / ".sample_buddy"
    data_dir.mkdir(parents=True, exist_ok=True)
    return data_dir


def get_database_url() -> str:
    """
    Get database URL from environment or use default SQLite.

    Checks SAMPLE_BUDDY_DATABASE_URL, then DATABASE_URL, then falls back to
    SQLite in the data directory.

    Returns:
        Database connection URL string
    """
    env_url = os.environ.get('SAMPLE_BUDDY_DATABASE_URL') or os.environ.get('DATABASE_URL')
    if env_url:
        return env_url

    db_path = get_data_dir() / "sample_buddy.db"
    return f"sqlite:///{db_path}"


class DatabaseManager:
    """
    Manages database connections and sessions for Sample Buddy.

    Usage:
        # Initialize with default SQLite database
        db = DatabaseManager()

        # Or with a specific database URL
        db = DatabaseManager("sqlite:///:memory:")

        # Get a session
        with db.session() as session:
            entries = session.query(StoreEntry).all()
    """

    def __init__(
        self,
        database_url: Optional[str] = None,
        echo: bool = False,
        create_tables: bool = True
    ):
        """
        Initialize the database manager.

        Args:
            database_url: Database connection URL. If None, checks the environment,
                         then falls back to SQLite in the data directory.
            echo: If True, SQLAlchemy will log all SQL statements.
            create_tables: If True, creates all tables on initialization.
        """
        if database_url is None:
            database_url = get_database_url()

        self.database_url = database_url
        self._is_sqlite = database_url.startswith("sqlite")

        if self._is_sqlite:
            self._engine = create_engine(
                database_url,
                echo=echo,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool if ":memory:" in database_url else None
            )

            @event.listens_for(self._engine, "connect")
            def set_sqlite_pragma(dbapi_connection, connection_record):
                cursor = dbapi_connection.cursor()
                cursor.execute("PRAGMA journal_mode=WAL")  # Survives a crash mid-write
                cursor.execute("PRAGMA synchronous=NORMAL")
                cursor.execute("PRAGMA busy_timeout=5000")  # 5 second timeout on locks
                cursor.close()
        else:
            self._engine = create_engine(
                database_url,
                echo=echo,
                pool_pre_ping=True,
            )

        self._session_factory = sessionmaker(
            bind=self._engine,
            autocommit=False,
            autoflush=False
        )

        if create_tables:
            self.create_all()

    @property
    def engine(self):
        """Get the SQLAlchemy engine."""
        return self._engine

    def create_all(self):
        """Create all database tables."""
        Base.metadata.create_all(self._engine)

    def dispose(self):
        """Dispose of the connection pool."""
        self._engine.dispose()

    @contextmanager
    def session(self) -> Generator[Session, None, None]:
        """
        Provide a transactional scope around a series of operations.

        Usage:
            with db.session() as session:
                session.add(StoreEntry(key="appState", value={}))
                # Automatically commits on success, rolls back on error
        """
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def health_check(self) -> bool:
        """
        Check if the database connection is healthy.

        Returns:
            True if connection is healthy, False otherwise.
        """
        try:
            with self._engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except Exception:
            return False

    def get_table_stats(self) -> dict:
        """
        Get statistics about database tables.

        Returns:
            Dictionary with table names and row counts.
        """
        stats = {}
        with self.session() as session:
            for table in Base.metadata.tables.keys():
                try:
                    count = session.execute(text(f"SELECT COUNT(*) FROM {table}")).scalar()
                    stats[table] = count
                except Exception:
                    stats[table] = -1  # Error counting
        return stats


# Global database instance (lazy initialization)
_db_manager: Optional[DatabaseManager] = None


def init_db(
    database_url: Optional[str] = None,
    echo: bool = False,
    create_tables: bool = True
) -> DatabaseManager:
    """
    Initialize the global database manager.

    Args:
        database_url: Database connection URL. If None, uses the configured default.
        echo: If True, SQLAlchemy will log all SQL statements.
        create_tables: If True, creates all tables on initialization.

    Returns:
        The DatabaseManager instance.
    """
    global _db_manager
    if _db_manager is not None:
        _db_manager.dispose()
    _db_manager = DatabaseManager(
        database_url=database_url,
        echo=echo,
        create_tables=create_tables
    )
    return _db_manager


def get_db() -> DatabaseManager:
    """
    Get the global database manager instance.

    Initializes with default settings if not already initialized.
    """
    global _db_manager
    if _db_manager is None:
        _db_manager = DatabaseManager()
    return _db_manager


@contextmanager
def get_session() -> Generator[Session, None, None]:
    """
    Convenience function to get a database session.

    Usage:
        with get_session() as session:
            entries = session.query(StoreEntry).all()
    """
    db = get_db()
    with db.session() as session:
        yield session


def close_db():
    """Close the global database connection."""
    global _db_manager
    if _db_manager is not None:
        _db_manager.dispose()
        _db_manager = None
