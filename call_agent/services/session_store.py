"""
Session store for per-call dialogue state.

Typed CallSession models in and out; JSON text only at the database boundary.
"""

from datetime import datetime
from typing import List

from pydantic import TypeAdapter, ValidationError

from call_agent.models.conversation import CallSession, PartialRecord, Turn
from call_agent.models.database_models import CallSessionRow
from call_agent.services.database_service import DatabaseService
from call_agent.utils.exceptions import SessionNotFound, StorageUnavailable
from call_agent.utils.logger import get_logger

logger = get_logger(__name__)

_history_adapter = TypeAdapter(List[Turn])


class SessionStore:
    """
    Keyed persistence of CallSession by call id.

    Updates are last-writer-wins: Twilio delivers one call's turns strictly
    in sequence, and different calls never share a key.
    """

    def __init__(self, database_service: DatabaseService):
        """
        Initialize session store.

        Args:
            database_service: Storage backend
        """
        self.db = database_service

    @staticmethod
    def _encode_history(history: List[Turn]) -> str:
        return _history_adapter.dump_json(history).decode("utf-8")

    @staticmethod
    def _encode_record(record: PartialRecord) -> str:
        return record.model_dump_json(exclude_none=True)

    @staticmethod
    def _decode(row: CallSessionRow) -> CallSession:
        try:
            history = _history_adapter.validate_json(row.history or "[]")
            record = PartialRecord.model_validate_json(row.partial_record or "{}")
        except ValidationError as e:
            raise StorageUnavailable(f"Corrupt session data for {row.call_id}: {e}")

        return CallSession(
            call_id=row.call_id,
            caller_address=row.caller_address,
            history=history,
            partial_record=record,
            completed_at=row.completed_at,
            created_at=row.created_at,
        )

    async def get_or_create(self, call_id: str, caller_address: str) -> CallSession:
        """
        Return the session for a call, creating an empty one on first contact.

        Safe under concurrent first contacts for the same call: the insert is
        a single insert-if-absent, so at most one row ever exists per call id.

        Args:
            call_id: Twilio call SID
            caller_address: Caller phone number

        Returns:
            The stored CallSession

        Raises:
            StorageUnavailable: If the database cannot be reached
        """
        await self.db.insert_call_session_if_absent(
            call_id=call_id,
            caller_address=caller_address,
            history=self._encode_history([]),
            partial_record=self._encode_record(PartialRecord()),
        )

        row = await self.db.get_call_session(call_id)
        if row is None:
            raise StorageUnavailable(f"Session for {call_id} vanished after insert")
        return self._decode(row)

    async def get(self, call_id: str) -> CallSession:
        """
        Return the existing session for a call.

        Raises:
            SessionNotFound: If get_or_create never ran for this call
            StorageUnavailable: If the database cannot be reached
        """
        row = await self.db.get_call_session(call_id)
        if row is None:
            raise SessionNotFound(call_id)
        return self._decode(row)

    async def update(self, call_id: str, history: List[Turn], partial_record: PartialRecord) -> None:
        """
        Replace history and partial record of a session.

        Raises:
            SessionNotFound: If the session does not exist
            StorageUnavailable: If the database cannot be reached
        """
        updated = await self.db.replace_call_session(
            call_id,
            history=self._encode_history(history),
            partial_record=self._encode_record(partial_record),
        )
        if not updated:
            raise SessionNotFound(call_id)
        logger.debug(f"Session {call_id} updated: {len(history)} turns, slots {partial_record.filled_slots}")

    async def mark_completed(self, call_id: str) -> datetime:
        """
        Record that the customer record for this call has been written.

        Returns:
            The completion timestamp
        """
        completed_at = datetime.utcnow()
        updated = await self.db.mark_call_session_completed(call_id, completed_at)
        if not updated:
            raise SessionNotFound(call_id)
        return completed_at

