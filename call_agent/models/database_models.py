"""
Database models for the Steak Call Agent service.

SQLAlchemy ORM models with async support (SQLite via aiosqlite or PostgreSQL via asyncpg).
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import String, Integer, Text, DateTime, Index
from sqlalchemy.ext.asyncio import AsyncAttrs
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(AsyncAttrs, DeclarativeBase):
    """Base class for all database models with async support."""
    pass


class CallSessionRow(Base):
    """
    Per-call dialogue state.

    One row per Twilio CallSid. History and the partial record are stored as
    JSON text and decoded by the session store.
    """

    __tablename__ = "call_sessions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    call_id: Mapped[str] = mapped_column(
        String(64),
        unique=True,
        nullable=False,
        comment="Twilio call SID"
    )

    caller_address: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        default="",
        comment="Caller phone number (E.164 format)"
    )

    history: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        default="[]",
        comment="JSON list of {role, content} turns"
    )

    partial_record: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        default="{}",
        comment="JSON object of extracted slots"
    )

    completed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime,
        nullable=True,
        comment="Set once the customer record was written for this call"
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=datetime.utcnow
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=datetime.utcnow,
        onupdate=datetime.utcnow
    )

    __table_args__ = (
        Index('ix_call_sessions_caller_address', 'caller_address'),
        Index('ix_call_sessions_created_at', 'created_at'),
    )


class Customer(Base):
    """
    Collected facts for a caller.

    One active row per phone number; a later completed call replaces it.
    """

    __tablename__ = "customers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    phone_number: Mapped[str] = mapped_column(
        String(32),
        unique=True,
        nullable=False,
        comment="Caller phone number (E.164 format)"
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    favorite_color: Mapped[str] = mapped_column(String(32), nullable=False)
    steak_preference: Mapped[str] = mapped_column(String(32), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=datetime.utcnow,
        index=True
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=datetime.utcnow,
        onupdate=datetime.utcnow
    )
