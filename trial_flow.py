"""
Trial-flow controller for the RadAI study.

``TrialStateMachine`` owns the whole session: the participant, the current
step and trial index, the per-trial inputs, the warning state and the
append-only response log. The presentation layer reads from it and calls
its methods; it never mutates the state directly.

    Consent -> Onboarding -> Trial(0) -> ... -> Trial(N-1) -> Done
"""

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional, Tuple

from prepare_data import CaseCatalog, CaseVignette
from trial_states import AdvanceOutcome, Choice, Resolution, Step
from warning_gate import GateDecision, WarningGate

logger = logging.getLogger("radai_study.trial_flow")

DEFAULT_CONFIDENCE = 50


def now_iso(clock: Optional[Callable[[], datetime]] = None) -> str:
    moment = clock() if clock else datetime.now(timezone.utc)
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def clamp_confidence(value) -> int:
    return max(0, min(100, int(round(float(value)))))


@dataclass
class SessionState:
    participant_id: str = ""
    step: Step = Step.CONSENT
    trial_index: int = 0


@dataclass
class TrialEphemeral:
    choice: Choice = Choice.NONE
    confidence: int = DEFAULT_CONFIDENCE
    note: str = ""
    ai_revealed: bool = False
    warning_issued: bool = False


@dataclass(frozen=True)
class TrialResponse:
    participant_id: str
    timestamp: str
    trial_id: str
    case_text: str
    ai_text: str
    ai_confidence: int
    choice: str
    confidence: int
    clinician_note: str
    ai_revealed: bool

    def to_record(self) -> dict:
        """Flat, field-keyed record as sent to the logging sink."""
        return {
            "pid": self.participant_id,
            "timestamp": self.timestamp,
            "trialId": self.trial_id,
            "caseText": self.case_text,
            "aiText": self.ai_text,
            "aiConfidence": self.ai_confidence,
            "choice": self.choice,
            "confidence": self.confidence,
            "clinicianNote": self.clinician_note,
            "aiRevealed": self.ai_revealed,
        }


class TrialStateMachine:
    def __init__(self, catalog: CaseCatalog, event_logger=None, gate: Optional[WarningGate] = None,
                 clock: Optional[Callable[[], datetime]] = None):
        self.catalog = catalog
        self.event_logger = event_logger
        self.gate = gate or WarningGate()
        self.clock = clock

        self.state = SessionState()
        self.ephemeral = TrialEphemeral()
        self._responses = []
        # Decision that raised the currently open warning, if any
        self._warning: Optional[GateDecision] = None

    # --- read side ---

    @property
    def step(self) -> Step:
        return self.state.step

    @property
    def responses(self) -> Tuple[TrialResponse, ...]:
        return tuple(self._responses)

    @property
    def current_case(self) -> Optional[CaseVignette]:
        if self.state.step is not Step.TRIAL:
            return None
        return self.catalog[self.state.trial_index]

    @property
    def progress(self) -> float:
        return self.catalog.progress_fraction(self.state.step, self.state.trial_index)

    @property
    def is_last_trial(self) -> bool:
        return self.state.trial_index == len(self.catalog) - 1

    @property
    def warning(self) -> Optional[GateDecision]:
        return self._warning

    @property
    def warning_open(self) -> bool:
        return self._warning is not None

    @property
    def available_resolutions(self) -> Tuple[Resolution, ...]:
        if self._warning is None:
            return ()
        if self._warning.ai_unrevealed:
            return (Resolution.REVEAL_AI, Resolution.KEEP_EDITING, Resolution.CONTINUE_ANYWAY)
        return (Resolution.KEEP_EDITING, Resolution.CONTINUE_ANYWAY)

    @property
    def can_begin(self) -> bool:
        return self.state.step is Step.CONSENT and bool(self.state.participant_id.strip())

    @property
    def can_advance(self) -> bool:
        return (self.state.step is Step.TRIAL
                and self.ephemeral.choice is not Choice.NONE
                and self._warning is None)

    def export_json(self) -> str:
        return json.dumps([r.to_record() for r in self._responses], indent=2)

    # --- consent / onboarding ---

    def set_participant_id(self, participant_id: str) -> bool:
        if self.state.step is not Step.CONSENT:
            return False
        self.state.participant_id = participant_id or ""
        return True

    def start_onboarding(self) -> bool:
        if not self.can_begin:
            return False
        self.state.participant_id = self.state.participant_id.strip()
        self.state.step = Step.ONBOARDING
        logger.info("Participant %s consented", self.state.participant_id)
        return True

    def start_trials(self) -> bool:
        if self.state.step is not Step.ONBOARDING:
            return False
        self.state.step = Step.TRIAL
        self.state.trial_index = 0
        self.ephemeral = TrialEphemeral()
        return True

    # --- trial inputs ---

    def _accepts_input(self) -> bool:
        # Input is suspended while a warning waits for its resolution
        return self.state.step is Step.TRIAL and self._warning is None

    def set_choice(self, choice: Choice) -> bool:
        if not self._accepts_input():
            return False
        self.ephemeral.choice = Choice(choice)
        return True

    def set_confidence(self, value) -> bool:
        if not self._accepts_input():
            return False
        self.ephemeral.confidence = clamp_confidence(value)
        return True

    def set_note(self, note: str) -> bool:
        if not self._accepts_input():
            return False
        self.ephemeral.note = note or ""
        return True

    def reveal_ai(self) -> bool:
        if not self._accepts_input():
            return False
        self.ephemeral.ai_revealed = True
        return True

    # --- advance ---

    def attempt_advance(self) -> AdvanceOutcome:
        if self.state.step is not Step.TRIAL or self.ephemeral.choice is Choice.NONE:
            return AdvanceOutcome.DISABLED
        if self._warning is not None:
            return AdvanceOutcome.BLOCKED

        if not self.ephemeral.warning_issued:
            decision = self.gate.evaluate(self.ephemeral, self.current_case)
            if decision.blocked:
                self.ephemeral.warning_issued = True
                self._warning = decision
                return AdvanceOutcome.BLOCKED

        self._commit()
        return AdvanceOutcome.COMMITTED

    def resolve_warning(self, resolution: Resolution) -> Optional[AdvanceOutcome]:
        resolution = Resolution(resolution)
        if resolution not in self.available_resolutions:
            return None

        self._warning = None
        if resolution is Resolution.REVEAL_AI:
            self.ephemeral.ai_revealed = True
            return AdvanceOutcome.BLOCKED
        if resolution is Resolution.KEEP_EDITING:
            return AdvanceOutcome.BLOCKED

        # warning_issued is already true, so this goes straight to commit
        return self.attempt_advance()

    def _commit(self) -> TrialResponse:
        case = self.current_case
        eph = self.ephemeral
        response = TrialResponse(
            participant_id=self.state.participant_id,
            timestamp=now_iso(self.clock),
            trial_id=case.id,
            case_text=case.case_text,
            ai_text=case.ai_text,
            ai_confidence=case.ai_confidence,
            choice=eph.choice.value,
            confidence=eph.confidence,
            clinician_note=eph.note,
            ai_revealed=eph.ai_revealed,
        )
        self._responses.append(response)
        logger.info("Committed trial %s (%d/%d) for %s",
                    case.id, len(self._responses), len(self.catalog), response.participant_id)

        if self.event_logger is not None:
            # Not awaited; failures stay on the logger's diagnostic channel
            self.event_logger.submit(response)

        self.ephemeral = TrialEphemeral()
        if self.state.trial_index + 1 < len(self.catalog):
            self.state.trial_index += 1
        else:
            self.state.step = Step.DONE
            logger.info("Session complete for %s", self.state.participant_id)
        return response
