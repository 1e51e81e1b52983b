# Sample Buddy Database Module
# ============================
# SQLAlchemy-based storage for the sample inventory:
# - Key-value store holding the application state snapshot
# - Delete password record
# - Append-only audit log table
# - JSON export / import with automatic backups

from database.models import (
    Base,
    StoreEntry,
    AuditLog,
)

from database.session import (
    DatabaseManager,
    get_data_dir,
    get_database_url,
    get_db,
    init_db,
    get_session,
    close_db,
)

from database.persistence import (
    PersistenceGateway,
    STATE_KEY,
    PASSWORD_KEY,
)

from database.auth import (
    PasswordAuthenticator,
    hash_password,
    verify_password,
    DEFAULT_DELETE_PASSWORD,
)

from database.utils import (
    logs_to_dataframe,
    export_logs_to_csv,
    samples_to_dataframe,
    inventory_summary,
    get_database_stats,
)

__all__ = [
    # Models
    "Base",
    "StoreEntry",
    "AuditLog",
    # Session management
    "DatabaseManager",
    "get_data_dir",
    "get_database_url",
    "get_db",
    "init_db",
    "get_session",
    "close_db",
    # Persistence
    "PersistenceGateway",
    "STATE_KEY",
    "PASSWORD_KEY",
    # Delete password
    "PasswordAuthenticator",
    "hash_password",
    "verify_password",
    "DEFAULT_DELETE_PASSWORD",
    # Tabular exports
    "logs_to_dataframe",
    "export_logs_to_csv",
    "samples_to_dataframe",
    "inventory_summary",
    "get_database_stats",
]
