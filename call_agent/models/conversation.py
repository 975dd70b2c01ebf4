"""
Conversation data models.

Typed per-call dialogue state. These models are serialized to JSON text only
at the storage boundary (see SessionStore).
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class Role(str, Enum):
    """Speaker of a dialogue turn."""
    USER = "user"
    ASSISTANT = "assistant"


class SteakPreference(str, Enum):
    """Steak doneness labels."""
    RARE = "rare"
    MEDIUM_RARE = "medium rare"
    MEDIUM = "medium"
    MEDIUM_WELL = "medium well"
    WELL_DONE = "well done"


class Turn(BaseModel):
    """One entry of the dialogue history."""
    role: Role
    content: str

    def to_message(self) -> dict:
        """Chat-completion message representation."""
        return {"role": self.role.value, "content": self.content}


class CustomerRecord(BaseModel):
    """Completed set of facts for a caller, keyed by phone number."""
    caller_address: str = Field(..., description="Caller phone number (E.164)")
    name: str
    favorite_color: str
    steak_preference: SteakPreference


class PartialRecord(BaseModel):
    """
    In-progress facts extracted for a call.

    Every slot is optional; absent slots are None, never defaulted.
    """
    name: Optional[str] = None
    favorite_color: Optional[str] = None
    steak_preference: Optional[SteakPreference] = None

    @property
    def is_complete(self) -> bool:
        return bool(self.name and self.favorite_color and self.steak_preference)

    @property
    def filled_slots(self) -> List[str]:
        return [slot for slot, value in self.model_dump().items() if value is not None]

    def merge(self, extracted: "PartialRecord") -> "PartialRecord":
        """
        Return a new record with the non-null slots of ``extracted`` applied.

        A slot already set is replaced only by a new non-null value and is
        never cleared.
        """
        current = self.model_dump()
        current.update(extracted.model_dump(exclude_none=True))
        return PartialRecord(**current)

    def to_customer_record(self, caller_address: str) -> CustomerRecord:
        if not self.is_complete:
            raise ValueError(f"Record is missing slots: {self.filled_slots} filled")
        return CustomerRecord(
            caller_address=caller_address,
            name=self.name,
            favorite_color=self.favorite_color,
            steak_preference=self.steak_preference,
        )


class CallSession(BaseModel):
    """
    Dialogue state of one phone call.

    ``history`` only grows; ``partial_record`` only becomes more complete.
    """
    call_id: str
    caller_address: str = ""
    history: List[Turn] = Field(default_factory=list)
    partial_record: PartialRecord = Field(default_factory=PartialRecord)
    completed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    @property
    def is_completed(self) -> bool:
        """True once the customer record for this call has been written."""
        return self.completed_at is not None

    def transcript(self) -> str:
        """All turn contents of the call joined into one text blob."""
        return " ".join(turn.content for turn in self.history)
