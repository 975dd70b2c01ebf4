"""Data models module."""

from .conversation import (
    CallSession,
    CustomerRecord,
    PartialRecord,
    Role,
    SteakPreference,
    Turn,
)
from .turn_outcome import TurnOutcome, Continue, Complete, Failed

__all__ = [
    "CallSession",
    "CustomerRecord",
    "PartialRecord",
    "Role",
    "SteakPreference",
    "Turn",
    "TurnOutcome",
    "Continue",
    "Complete",
    "Failed",
]
