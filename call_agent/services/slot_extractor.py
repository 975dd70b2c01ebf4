"""
Slot extraction from call transcripts.

Maps accumulated transcript text to a partial record (name, favorite color,
steak preference) using an ordered table of rules. Pure and deterministic:
no I/O, no state between calls.

Rules for a slot are tried in table order and the first rule that matches
anywhere in the text fills the slot. For vocabulary slots that means the
earlier vocabulary word wins, regardless of where each word appears in the
transcript.
"""

import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from call_agent.models.conversation import PartialRecord, SteakPreference

NAME_CUES: Tuple[str, ...] = ("my name is", "i'm", "this is")

COLOR_VOCABULARY: Tuple[str, ...] = (
    "red", "blue", "green", "yellow", "purple",
    "orange", "pink", "black", "white", "brown",
)

# Multi-word phrases must precede the words they contain
STEAK_VOCABULARY: Tuple[SteakPreference, ...] = (
    SteakPreference.MEDIUM_RARE,
    SteakPreference.MEDIUM_WELL,
    SteakPreference.WELL_DONE,
    SteakPreference.RARE,
    SteakPreference.MEDIUM,
)


@dataclass(frozen=True)
class SlotRule:
    """
    One extraction rule.

    Cue rules capture the word following the cue phrase verbatim; vocabulary
    rules yield their fixed value when the phrase occurs anywhere in the text.
    """
    slot: str
    pattern: "re.Pattern[str]"
    value: Optional[str] = None

    def match(self, text: str) -> Optional[str]:
        found = self.pattern.search(text)
        if not found:
            return None
        if self.value is not None:
            return self.value
        return found.group(1)


def _cue_rule(slot: str, cue: str) -> SlotRule:
    return SlotRule(slot=slot, pattern=re.compile(re.escape(cue) + r" (\w+)", re.IGNORECASE))


def _vocabulary_rule(slot: str, phrase: str) -> SlotRule:
    return SlotRule(slot=slot, pattern=re.compile(re.escape(phrase), re.IGNORECASE), value=phrase)


EXTRACTION_RULES: List[SlotRule] = (
    [_cue_rule("name", cue) for cue in NAME_CUES]
    + [_vocabulary_rule("favorite_color", color) for color in COLOR_VOCABULARY]
    + [_vocabulary_rule("steak_preference", pref.value) for pref in STEAK_VOCABULARY]
)


def extract(transcript_text: str) -> PartialRecord:
    """
    Extract whatever slots the transcript mentions.

    Args:
        transcript_text: Call text, typically every turn joined by spaces

    Returns:
        PartialRecord with only the slots that were found set
    """
    if not transcript_text or not transcript_text.strip():
        return PartialRecord()

    found: Dict[str, str] = {}
    for rule in EXTRACTION_RULES:
        if rule.slot in found:
            continue
        value = rule.match(transcript_text)
        if value is not None:
            found[rule.slot] = value

    return PartialRecord(**found)
