"""
Database service for the Steak Call Agent service.

Provides async storage operations for call sessions and customer records.
"""

from datetime import datetime
from typing import Optional, List

from sqlalchemy import select, update, text
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.exc import SQLAlchemyError

from call_agent.config import get_settings
from call_agent.models.database_models import Base, CallSessionRow, Customer
from call_agent.utils.logger import get_logger
from call_agent.utils.exceptions import StorageUnavailable

logger = get_logger(__name__)


class DatabaseService:
    """
    Async database service.

    Manages all database interactions using async SQLAlchemy. Writes that
    must be atomic under concurrent webhooks use the dialect's
    ``INSERT ... ON CONFLICT`` instead of read-then-write.
    """

    def __init__(self, database_url: Optional[str] = None):
        """
        Initialize database service.

        Args:
            database_url: Override for the configured connection string
        """
        self.settings = get_settings()
        self.database_url = database_url or self.settings.database_url
        self.engine = None
        self.async_session_maker = None

    async def init(self) -> None:
        """Initialize database engine and create tables."""
        try:
            engine_kwargs = {
                "echo": self.settings.log_level == "DEBUG",
                "pool_pre_ping": True,
            }
            if not self.database_url.startswith("sqlite"):
                engine_kwargs.update(pool_size=5, max_overflow=10)

            self.engine = create_async_engine(self.database_url, **engine_kwargs)

            self.async_session_maker = async_sessionmaker(
                self.engine,
                class_=AsyncSession,
                expire_on_commit=False
            )

            async with self.engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)

            logger.info("Database initialized successfully")

        except (SQLAlchemyError, OSError) as e:
            logger.error(f"Failed to initialize database: {e}")
            raise StorageUnavailable(f"Database initialization failed: {str(e)}")

    async def close(self) -> None:
        """Close database connection."""
        if self.engine:
            await self.engine.dispose()
            logger.info("Database connection closed")

    async def get_session(self) -> AsyncSession:
        """Get async database session."""
        if not self.async_session_maker:
            await self.init()
        return self.async_session_maker()

    async def health_check(self) -> bool:
        """Return True if the database answers a trivial query."""
        try:
            async with await self.get_session() as session:
                await session.execute(text("SELECT 1"))
            return True
        except (SQLAlchemyError, OSError, StorageUnavailable) as e:
            logger.error(f"Database health check failed: {e}")
            return False

    def _insert(self, table):
        """Dialect-specific INSERT supporting ON CONFLICT clauses."""
        if self.engine.dialect.name == "postgresql":
            return postgresql.insert(table)
        return sqlite.insert(table)

    # CallSessionRow operations

    async def get_call_session(self, call_id: str) -> Optional[CallSessionRow]:
        """
        Get the stored session row for a call.

        Args:
            call_id: Twilio call SID

        Returns:
            CallSessionRow or None if not found
        """
        try:
            async with await self.get_session() as session:
                stmt = select(CallSessionRow).where(CallSessionRow.call_id == call_id)
                result = await session.execute(stmt)
                return result.scalar_one_or_none()

        except (SQLAlchemyError, OSError) as e:
            logger.error(f"Database error getting call session: {e}")
            raise StorageUnavailable(f"Failed to get call session: {str(e)}")

    async def insert_call_session_if_absent(
        self,
        call_id: str,
        caller_address: str,
        history: str = "[]",
        partial_record: str = "{}",
    ) -> bool:
        """
        Create the session row unless one already exists for the call.

        Args:
            call_id: Twilio call SID
            caller_address: Caller phone number
            history: Serialized history
            partial_record: Serialized partial record

        Returns:
            True if this call inserted the row, False if it already existed
        """
        try:
            async with await self.get_session() as session:
                now = datetime.utcnow()
                stmt = (
                    self._insert(CallSessionRow)
                    .values(
                        call_id=call_id,
                        caller_address=caller_address,
                        history=history,
                        partial_record=partial_record,
                        created_at=now,
                        updated_at=now,
                    )
                    .on_conflict_do_nothing(index_elements=["call_id"])
                )
                result = await session.execute(stmt)
                await session.commit()

                inserted = result.rowcount == 1
                if inserted:
                    logger.info(f"Created call session for {call_id}")
                return inserted

        except (SQLAlchemyError, OSError) as e:
            logger.error(f"Database error creating call session: {e}")
            raise StorageUnavailable(f"Failed to create call session: {str(e)}")

    async def replace_call_session(self, call_id: str, history: str, partial_record: str) -> bool:
        """
        Overwrite history and partial record of a session.

        Args:
            call_id: Twilio call SID
            history: Serialized history
            partial_record: Serialized partial record

        Returns:
            True if a row was updated
        """
        try:
            async with await self.get_session() as session:
                stmt = (
                    update(CallSessionRow)
                    .where(CallSessionRow.call_id == call_id)
                    .values(
                        history=history,
                        partial_record=partial_record,
                        updated_at=datetime.utcnow(),
                    )
                )
                result = await session.execute(stmt)
                await session.commit()
                return result.rowcount > 0

        except (SQLAlchemyError, OSError) as e:
            logger.error(f"Database error updating call session: {e}")
            raise StorageUnavailable(f"Failed to update call session: {str(e)}")

    async def mark_call_session_completed(self, call_id: str, completed_at: datetime) -> bool:
        """
        Stamp the session as completed.

        Args:
            call_id: Twilio call SID
            completed_at: Completion timestamp

        Returns:
            True if a row was updated
        """
        try:
            async with await self.get_session() as session:
                stmt = (
                    update(CallSessionRow)
                    .where(CallSessionRow.call_id == call_id)
                    .values(completed_at=completed_at, updated_at=datetime.utcnow())
                )
                result = await session.execute(stmt)
                await session.commit()
                return result.rowcount > 0

        except (SQLAlchemyError, OSError) as e:
            logger.error(f"Database error completing call session: {e}")
            raise StorageUnavailable(f"Failed to complete call session: {str(e)}")

    # Customer operations

    async def upsert_customer(
        self,
        phone_number: str,
        name: str,
        favorite_color: str,
        steak_preference: str,
    ) -> None:
        """
        Insert or replace the customer record for a phone number.

        Args:
            phone_number: Caller phone number
            name: Caller name
            favorite_color: Favorite color
            steak_preference: Doneness label
        """
        try:
            async with await self.get_session() as session:
                now = datetime.utcnow()
                values = {
                    "name": name,
                    "favorite_color": favorite_color,
                    "steak_preference": steak_preference,
                    "created_at": now,
                    "updated_at": now,
                }
                stmt = (
                    self._insert(Customer)
                    .values(phone_number=phone_number, **values)
                    .on_conflict_do_update(index_elements=["phone_number"], set_=values)
                )
                await session.execute(stmt)
                await session.commit()
                logger.info(f"Saved customer record for {phone_number}")

        except (SQLAlchemyError, OSError) as e:
            logger.error(f"Database error saving customer: {e}")
            raise StorageUnavailable(f"Failed to save customer: {str(e)}")

    async def get_customer(self, phone_number: str) -> Optional[Customer]:
        """Get the customer record for a phone number."""
        try:
            async with await self.get_session() as session:
                stmt = select(Customer).where(Customer.phone_number == phone_number)
                result = await session.execute(stmt)
                return result.scalar_one_or_none()

        except (SQLAlchemyError, OSError) as e:
            logger.error(f"Database error getting customer: {e}")
            raise StorageUnavailable(f"Failed to get customer: {str(e)}")

    async def list_customers(self) -> List[Customer]:
        """Get all customer records, newest first."""
        try:
            async with await self.get_session() as session:
                stmt = select(Customer).order_by(Customer.created_at.desc(), Customer.id.desc())
                result = await session.execute(stmt)
                return list(result.scalars().all())

        except (SQLAlchemyError, OSError) as e:
            logger.error(f"Database error listing customers: {e}")
            raise StorageUnavailable(f"Failed to list customers: {str(e)}")
