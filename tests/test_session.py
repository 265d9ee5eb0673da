"""Tests for sessions and the session manager."""

from datetime import timedelta

import pytest

from app.core import prompts
from app.core.exceptions import SessionBusyException
from app.core.session import CollectedData, SessionManager
from app.core.state import DialogueState


class TestCollectedData:
    def test_reject_clears_matching_suggestion(self):
        collected = CollectedData(last_suggested_slot="9:00 AM")
        collected.reject_slot("9:00 AM")
        assert collected.rejected_slots == ["9:00 AM"]
        assert collected.last_suggested_slot is None

    def test_reject_is_idempotent(self):
        collected = CollectedData()
        collected.reject_slot("9:00 AM")
        collected.reject_slot("9:00 AM")
        assert collected.rejected_slots == ["9:00 AM"]

    def test_rejected_slot_cannot_be_suggested(self):
        collected = CollectedData(rejected_slots=["9:00 AM"])
        with pytest.raises(ValueError):
            collected.suggest_slot("9:00 AM")

    def test_suggest_none_clears(self):
        collected = CollectedData(last_suggested_slot="9:00 AM")
        collected.suggest_slot(None)
        assert collected.last_suggested_slot is None

    def test_wire_form_is_camel_case(self):
        data = CollectedData(name="Jane", user_preferred_time="4:00 PM").to_dict()
        assert data == {
            "name": "Jane",
            "email": None,
            "meetingPreference": None,
            "userPreferredTime": "4:00 PM",
            "rejectedSlots": [],
            "lastSuggestedSlot": None,
        }


class TestSessionManager:
    def test_new_session_starts_with_system_prompt(self, session_manager):
        session = session_manager.get_or_create("s1")
        assert len(session.messages) == 1
        assert session.messages[0].role == "system"
        assert session.messages[0].content == prompts.build_system_prompt("Alex")
        assert session.state == DialogueState.AWAITING_NAME

    def test_get_or_create_is_stable(self, session_manager):
        assert session_manager.get_or_create("s1") is session_manager.get_or_create("s1")
        assert session_manager.count() == 1

    def test_get_unknown_is_none(self, session_manager):
        assert session_manager.get("missing") is None

    def test_add_message_updates_timestamp(self, session_manager, clock):
        session = session_manager.get_or_create("s1")
        clock.current += timedelta(minutes=5)
        session.add_message("user", "hello", session_manager.now())
        assert session.last_updated == clock.current
        assert session.turn_count == 1

    def test_find_by_contact_requires_meeting_time(self, session_manager):
        session = session_manager.get_or_create("s1")
        session.collected.name = "Jane"
        session.collected.email = "jane@example.com"
        assert session_manager.find_by_contact("Jane", "jane@example.com") is None

        session.collected.meeting_preference = "9:00 AM"
        assert session_manager.find_by_contact("Jane", "jane@example.com") is session

    def test_sweep_disabled_by_default(self, session_manager, clock):
        session_manager.get_or_create("s1")
        clock.current += timedelta(days=30)
        assert not session_manager.reaping_enabled
        assert session_manager.sweep() == 0
        assert session_manager.count() == 1

    def test_sweep_removes_idle_sessions(self, clock):
        manager = SessionManager("prompt", clock=clock, idle_timeout_minutes=30)
        manager.get_or_create("old")
        clock.current += timedelta(minutes=20)
        manager.get_or_create("fresh")
        clock.current += timedelta(minutes=15)

        assert manager.sweep() == 1
        assert manager.get("old") is None
        assert manager.get("fresh") is not None


class TestTurnLock:
    @pytest.mark.asyncio
    async def test_concurrent_turn_is_rejected(self, session_manager):
        async with session_manager.turn("s1"):
            assert session_manager.is_busy("s1")
            with pytest.raises(SessionBusyException) as exc_info:
                async with session_manager.turn("s1"):
                    pass
        assert exc_info.value.status_code == 409
        assert not session_manager.is_busy("s1")

    @pytest.mark.asyncio
    async def test_other_sessions_are_independent(self, session_manager):
        async with session_manager.turn("s1"):
            async with session_manager.turn("s2") as other:
                assert other.session_id == "s2"

    @pytest.mark.asyncio
    async def test_busy_session_is_not_swept(self, clock):
        manager = SessionManager("prompt", clock=clock, idle_timeout_minutes=1)
        async with manager.turn("s1"):
            clock.current += timedelta(minutes=5)
            assert manager.sweep() == 0
        assert manager.sweep() == 1

    @pytest.mark.asyncio
    async def test_start_and_stop_cleanup_task(self, clock):
        manager = SessionManager("prompt", clock=clock, idle_timeout_minutes=1, sweep_interval_seconds=3600)
        await manager.start()
        assert manager._cleanup_task is not None
        await manager.stop()
        assert manager._cleanup_task is None
