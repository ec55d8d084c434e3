from enum import Enum


class Step(str, Enum):
    CONSENT = "consent"
    ONBOARDING = "onboarding"
    TRIAL = "trial"
    DONE = "done"


class Choice(str, Enum):
    """Reliance choice. The value is what goes on the wire."""
    RADIOLOGIST = "radiologist"
    AI = "ai"
    NONE = "none"


class Resolution(str, Enum):
    REVEAL_AI = "reveal_ai"
    KEEP_EDITING = "keep_editing"
    CONTINUE_ANYWAY = "continue_anyway"


class AdvanceOutcome(str, Enum):
    DISABLED = "disabled"
    BLOCKED = "blocked"
    COMMITTED = "committed"
