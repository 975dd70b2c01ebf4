"""
Steak doneness reference data.

Immutable, loaded at import time, shared by every call.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Union

from call_agent.models.conversation import SteakPreference


@dataclass(frozen=True)
class SteakProfile:
    """Target internal temperature and pan time for one doneness level."""
    target_temperature: str
    cook_time_per_side: str


STEAK_PROFILES: Mapping[SteakPreference, SteakProfile] = MappingProxyType({
    SteakPreference.RARE: SteakProfile("120-125°F", "2-3 minutes per side"),
    SteakPreference.MEDIUM_RARE: SteakProfile("130-135°F", "3-4 minutes per side"),
    SteakPreference.MEDIUM: SteakProfile("135-145°F", "4-5 minutes per side"),
    SteakPreference.MEDIUM_WELL: SteakProfile("145-155°F", "5-6 minutes per side"),
    SteakPreference.WELL_DONE: SteakProfile("155°F+", "6+ minutes per side"),
})


def get_steak_profile(preference: Union[SteakPreference, str]) -> SteakProfile:
    """
    Look up the cooking profile for a doneness label.

    Unknown labels fall back to medium.
    """
    if not isinstance(preference, SteakPreference):
        preference = str(preference).strip().lower()
    try:
        return STEAK_PROFILES[SteakPreference(preference)]
    except ValueError:
        return STEAK_PROFILES[SteakPreference.MEDIUM]
