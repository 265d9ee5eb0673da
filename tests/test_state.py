"""Tests for the dialogue state machine."""

import pytest

from app.core.session import CollectedData
from app.core.state import TRANSITIONS, AskFor, DialogueState, resolve_state


class TestResolveState:
    def test_starts_awaiting_name(self):
        assert resolve_state(CollectedData()) == DialogueState.AWAITING_NAME

    def test_name_moves_to_slot_choice(self):
        assert resolve_state(CollectedData(name="Jane")) == DialogueState.AWAITING_SLOT_CHOICE

    def test_meeting_time_moves_to_email(self):
        collected = CollectedData(name="Jane", meeting_preference="9:00 AM")
        assert resolve_state(collected) == DialogueState.AWAITING_EMAIL

    def test_email_moves_to_confirmation(self):
        collected = CollectedData(name="Jane", meeting_preference="9:00 AM", email="jane@example.com")
        assert resolve_state(collected) == DialogueState.AWAITING_CONFIRMATION

    def test_booked(self):
        collected = CollectedData(name="Jane", meeting_preference="9:00 AM", email="jane@example.com")
        assert resolve_state(collected, booked=True) == DialogueState.BOOKED

    def test_stages_are_not_skipped(self):
        # An email without a meeting time does not jump ahead.
        collected = CollectedData(name="Jane", email="jane@example.com")
        assert resolve_state(collected) == DialogueState.AWAITING_SLOT_CHOICE

    def test_booked_flag_alone_does_not_book(self):
        assert resolve_state(CollectedData(), booked=True) == DialogueState.AWAITING_NAME


class TestTransitions:
    def test_transitions_form_a_chain(self):
        for current, following in zip(TRANSITIONS, TRANSITIONS[1:]):
            assert current.target == following.source

    def test_chain_ends_booked(self):
        assert TRANSITIONS[0].source == DialogueState.AWAITING_NAME
        assert TRANSITIONS[-1].target == DialogueState.BOOKED


class TestAskFor:
    @pytest.mark.parametrize("value, expected", [
        ("email", AskFor.EMAIL),
        (" Confirmation ", AskFor.CONFIRMATION),
        ("user_preferred_time", AskFor.USER_PREFERRED_TIME),
        (AskFor.NAME, AskFor.NAME),
    ])
    def test_parses_known_values(self, value, expected):
        assert AskFor.parse(value) == expected

    @pytest.mark.parametrize("value", [None, "null", "phone", 3, ""])
    def test_unknown_is_none(self, value):
        assert AskFor.parse(value) is None
