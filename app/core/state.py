"""
Dialogue state machine.
Explicit booking stages and the guarded transitions between them.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, List, Optional


class DialogueState(str, Enum):
    """Where a booking conversation currently stands."""
    AWAITING_NAME = "awaiting_name"
    AWAITING_SLOT_CHOICE = "awaiting_slot_choice"
    AWAITING_EMAIL = "awaiting_email"
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    BOOKED = "booked"


class AskFor(str, Enum):
    """The field the agent asks for next, as reported by the model."""
    NAME = "name"
    EMAIL = "email"
    MEETING_PREFERENCE = "meeting_preference"
    USER_PREFERRED_TIME = "user_preferred_time"
    CONFIRMATION = "confirmation"

    @classmethod
    def parse(cls, value: Any) -> Optional["AskFor"]:
        """Map model output onto the vocabulary; anything unknown means "nothing"."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


@dataclass(frozen=True)
class Transition:
    """Move from `source` to `target` once `guard` holds."""
    source: DialogueState
    target: DialogueState
    guard: Callable[[Any, bool], bool]
    description: str


TRANSITIONS: List[Transition] = [
    Transition(
        DialogueState.AWAITING_NAME,
        DialogueState.AWAITING_SLOT_CHOICE,
        lambda collected, booked: bool(collected.name),
        "name collected",
    ),
    Transition(
        DialogueState.AWAITING_SLOT_CHOICE,
        DialogueState.AWAITING_EMAIL,
        lambda collected, booked: bool(collected.meeting_preference),
        "meeting time agreed",
    ),
    Transition(
        DialogueState.AWAITING_EMAIL,
        DialogueState.AWAITING_CONFIRMATION,
        lambda collected, booked: bool(collected.email),
        "email collected",
    ),
    Transition(
        DialogueState.AWAITING_CONFIRMATION,
        DialogueState.BOOKED,
        lambda collected, booked: booked,
        "booking recorded",
    ),
]


def resolve_state(collected: Any, booked: bool = False) -> DialogueState:
    """
    Walk the transition table from the initial state.

    `collected` is a CollectedData; the walk stops at the first transition
    whose guard does not hold.
    """
    state = DialogueState.AWAITING_NAME
    for transition in TRANSITIONS:
        if transition.source != state or not transition.guard(collected, booked):
            break
        state = transition.target
    return state
