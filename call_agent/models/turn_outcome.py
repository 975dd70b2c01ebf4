"""
Results of a single dialogue turn.

The dialogue controller returns one of these; protocol handlers decide how to
render it (speak + listen again, or speak + hang up).
"""

from dataclasses import dataclass

from call_agent.models.conversation import CustomerRecord


@dataclass(frozen=True)
class TurnOutcome:
    """Base outcome: something to say back to the caller."""
    spoken_prompt: str

    @property
    def ends_call(self) -> bool:
        return False


@dataclass(frozen=True)
class Continue(TurnOutcome):
    """Dialogue not complete; speak the prompt and listen for another utterance."""


@dataclass(frozen=True)
class Complete(TurnOutcome):
    """All slots filled; the customer record has been saved and the SMS triggered."""
    record: CustomerRecord = None

    def __post_init__(self):
        if self.record is None:
            raise ValueError("Complete outcome requires a customer record")

    @property
    def ends_call(self) -> bool:
        return True


@dataclass(frozen=True)
class Failed(TurnOutcome):
    """A downstream error occurred; apologize and offer another turn."""
