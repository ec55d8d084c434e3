"""
Pre-advance warning gate.

Before a trial is committed the participant is warned, once per trial, when
either the AI finding was never revealed or the free-text note shares no
keyword with the AI finding (a likely clinician/AI disagreement).
"""

import logging
import re
from dataclasses import dataclass
from typing import FrozenSet

logger = logging.getLogger("radai_study.warning_gate")

# Articles, copulas, prepositions, conjunctions and generic qualifiers that
# carry no finding-specific signal.
STOP_WORDS: FrozenSet[str] = frozenset({
    "a", "an", "the",
    "study", "detected", "present", "normal",
    "likely", "possible", "suggests",
    "with", "without", "of", "and", "or",
    "is", "are", "to", "for",
    "small", "large", "multifocal",
})

_NON_LETTER = re.compile(r"[^a-z\s]")


def keyword_set(ai_text: str) -> FrozenSet[str]:
    # "lower-lobe" collapses to "lowerlobe", not two tokens
    cleaned = _NON_LETTER.sub("", ai_text.lower())
    return frozenset(w for w in cleaned.split() if w and w not in STOP_WORDS)


def disagrees(note: str, ai_text: str) -> bool:
    """True when none of the AI finding's keywords occur in the note.

    Presence/absence only: a single shared keyword suppresses the signal.
    With no keywords at all there is nothing to disagree about.
    """
    keywords = keyword_set(ai_text)
    if not keywords:
        return False
    lowered = note.lower()
    return not any(k in lowered for k in keywords)


@dataclass(frozen=True)
class GateDecision:
    ai_unrevealed: bool = False
    likely_disagreement: bool = False

    @property
    def blocked(self) -> bool:
        return self.ai_unrevealed or self.likely_disagreement


CLEAR = GateDecision()


class WarningGate:
    """One-shot, per-trial block policy."""

    def evaluate(self, ephemeral, case) -> GateDecision:
        if ephemeral.warning_issued:
            return CLEAR

        ai_unrevealed = not ephemeral.ai_revealed
        # Empty notes never reach the detector
        likely_disagreement = bool(ephemeral.note.strip()) and disagrees(ephemeral.note, case.ai_text)

        decision = GateDecision(ai_unrevealed=ai_unrevealed, likely_disagreement=likely_disagreement)
        if decision.blocked:
            logger.info(
                "Warning raised for case %s (ai_unrevealed=%s, likely_disagreement=%s)",
                case.id, ai_unrevealed, likely_disagreement,
            )
        return decision
