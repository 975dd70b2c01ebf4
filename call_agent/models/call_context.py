"""
Per-request call information passed from the webhook layer to the controller.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

# Twilio CallStatus values; anything else is treated as "in-progress"
TWILIO_CALL_STATUSES = (
    "queued",
    "ringing",
    "in-progress",
    "completed",
    "busy",
    "failed",
    "no-answer",
    "canceled",
)


@dataclass
class CallContext:
    """
    The call a webhook request belongs to.

    ``caller_number`` doubles as the customer key and the SMS destination.
    """
    call_id: str  # Twilio CallSid
    caller_number: str = ""  # E.164
    recipient_number: str = ""
    status: str = "in-progress"
    received_at: datetime = field(default_factory=datetime.utcnow)

    def __post_init__(self):
        if not self.call_id:
            raise ValueError("Call ID cannot be empty")
        if self.status not in TWILIO_CALL_STATUSES:
            raise ValueError(f"Status must be one of {TWILIO_CALL_STATUSES}")

    @classmethod
    def from_webhook(
        cls,
        call_sid: str,
        from_number: str = "",
        to_number: str = "",
        call_status: Optional[str] = None,
    ) -> "CallContext":
        """Build a context from Twilio form fields, tolerating missing or unknown status."""
        status = (call_status or "").lower()
        return cls(
            call_id=call_sid,
            caller_number=from_number or "",
            recipient_number=to_number or "",
            status=status if status in TWILIO_CALL_STATUSES else "in-progress",
        )

    def to_dict(self) -> dict:
        """Log-friendly representation."""
        return {
            "call_id": self.call_id,
            "caller_number": self.caller_number,
            "recipient_number": self.recipient_number,
            "status": self.status,
            "received_at": self.received_at.isoformat(),
        }
