"""
Call instructions data models for protocol-agnostic call control.

These models represent the business logic output that can be converted
to protocol-specific responses (TwiML for Twilio).
"""

from typing import Optional
from dataclasses import dataclass


@dataclass
class SpeechInstruction:
    """Instruction to speak text."""
    text: str
    voice: str = "alice"
    language: str = "en-US"

    def __post_init__(self):
        """Validate speech instruction."""
        if not self.text:
            raise ValueError("Speech text cannot be empty")


@dataclass
class GatherInstruction:
    """Instruction to listen for the caller's next utterance."""
    action_url: str
    input: str = "speech"
    timeout_seconds: int = 10
    method: str = "POST"

    def __post_init__(self):
        """Validate gather instruction."""
        if not self.action_url:
            raise ValueError("Gather action URL cannot be empty")
        if self.timeout_seconds < 1:
            raise ValueError("Gather timeout must be at least 1 second")


@dataclass
class CallInstructions:
    """
    Protocol-agnostic call instructions.

    This is the output of CallController business logic, which handlers
    convert to protocol-specific responses.
    """
    # Call identification
    call_id: str

    # Dialogue status
    dialogue_status: str  # "continue", "complete", "failed"

    # Instructions
    speech: Optional[SpeechInstruction] = None
    gather: Optional[GatherInstruction] = None

    should_hangup: bool = False

    def __post_init__(self):
        """Validate call instructions."""
        if not self.call_id:
            raise ValueError("Call ID cannot be empty")

        valid_statuses = ["continue", "complete", "failed"]
        if self.dialogue_status not in valid_statuses:
            raise ValueError(f"Dialogue status must be one of {valid_statuses}")

        # A call that stays open must listen for the next utterance
        if not self.should_hangup and not self.gather:
            raise ValueError("Instructions must either gather speech or hang up")

        if self.should_hangup and self.gather:
            raise ValueError("Instructions cannot both gather speech and hang up")
