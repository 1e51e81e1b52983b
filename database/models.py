"""
Sample Buddy Database Models
============================
SQLAlchemy ORM models for the local Sample Buddy store.

The application state is kept as JSON documents in a small key-value table,
next to an append-only copy of every audit log entry.
"""

from datetime import datetime
from typing import Optional, Any
from sqlalchemy import (
    Integer, String, Text, DateTime, JSON, Index
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all database models."""
    pass


# ============================================================
# KEY-VALUE STORE
# ============================================================

class StoreEntry(Base):
    """
    One top-level key of the application store.

    Known keys: 'appState' (full snapshot) and 'deletePassword'
    (salted hash of the delete password).
    """
    __tablename__ = "store_entries"

    key: Mapped[str] = mapped_column(String(100), primary_key=True)
    value: Mapped[Any] = mapped_column(JSON, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now, onupdate=datetime.now)

    def __repr__(self):
        return f"<StoreEntry(key='{self.key}')>"


# ============================================================
# AUDIT LOG
# ============================================================

class AuditLog(Base):
    """Append-only copy of the operator audit log."""
    __tablename__ = "audit_log"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    entry_id: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    timestamp: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    operator: Mapped[str] = mapped_column(String(100), nullable=False)
    action: Mapped[str] = mapped_column(String(50), nullable=False)
    details: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    item_type: Mapped[str] = mapped_column(String(20), nullable=False)
    item_code: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    recorded_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now)

    __table_args__ = (
        Index('idx_audit_time', 'timestamp'),
        Index('idx_audit_action', 'action'),
    )

    def __repr__(self):
        return f"<AuditLog(id={self.id}, action='{self.action}', item='{self.item_type}:{self.item_code}')>"
