"""
Dialogue Orchestrator for the Voice Booking Agent.
Runs one conversational turn: slot context → LLM → reply parsing →
field extraction → commit → TTS.
"""

import json
import logging
import random
import time
from dataclasses import dataclass, field, replace
from datetime import date, timedelta
from typing import Any, Callable, Dict, Optional, Sequence

from app.config import get_settings
from app.core import prompts
from app.core.exceptions import LLMEmptyResponseException, VoiceAgentException
from app.core.session import CollectedData, SessionManager
from app.core.state import AskFor, DialogueState
from app.nlu.base import FieldExtractor
from app.nlu.slot_reply import SlotDecision
from app.services.calendar import SlotCalendar
from app.services.llm import LLMGateway
from app.services.tts.cache import TTSCache
from app.logging.agent_logger import AgentLogger

logger = logging.getLogger(__name__)
settings = get_settings()

SlotChooser = Callable[[Sequence[str]], str]

# Declined suggestions before the agent asks for a preferred time instead.
MAX_SLOT_REJECTIONS = 2


@dataclass
class TurnMetrics:
    """Timings for a single turn."""
    start_time: float = field(default_factory=time.time)
    llm_start: Optional[float] = None
    llm_end: Optional[float] = None
    tts_start: Optional[float] = None
    tts_end: Optional[float] = None

    @property
    def llm_latency_ms(self) -> Optional[float]:
        if self.llm_start and self.llm_end:
            return (self.llm_end - self.llm_start) * 1000
        return None

    @property
    def tts_latency_ms(self) -> Optional[float]:
        if self.tts_start and self.tts_end:
            return (self.tts_end - self.tts_start) * 1000
        return None

    @property
    def total_latency_ms(self) -> float:
        return (time.time() - self.start_time) * 1000


# =========================
# Model reply parsing
# =========================

@dataclass(frozen=True)
class ModelReply:
    """Structured reply produced by the model."""
    reply_text: str
    ask_for: Optional[AskFor] = None
    ready_to_book: bool = False
    parsed: bool = True


def parse_model_reply(raw: str) -> ModelReply:
    """
    Parse the model's JSON reply.

    Never raises. Output that is not a JSON object with a non-empty
    `replyText` degrades to an apology when it looks like broken JSON, or is
    spoken verbatim when it is plain text.
    """
    try:
        data = json.loads(raw)
        if not isinstance(data, dict):
            raise ValueError("reply is not a JSON object")
        reply_text = data.get("replyText")
        if not isinstance(reply_text, str) or not reply_text.strip():
            raise ValueError("replyText missing")
    except ValueError as e:
        logger.warning(f"Unparseable model reply, using fallback: {e}")
        return ModelReply(
            reply_text=prompts.FALLBACK_REPLY if "{" in raw else raw.strip(),
            ask_for=None,
            ready_to_book=False,
            parsed=False
        )

    ready = data.get("readyToBook")
    return ModelReply(
        reply_text=reply_text,
        ask_for=AskFor.parse(data.get("askFor")),
        ready_to_book=ready if isinstance(ready, bool) else False
    )


# =========================
# Slot context
# =========================

@dataclass(frozen=True)
class SlotContext:
    """
    Instruction injected ahead of the model call.

    `suggestion` is a newly proposed slot to record once the turn commits;
    `backup_slot` is offered if the pending suggestion gets declined;
    `clears_suggestion` drops any pending slot because the model is asked for
    a free-form time instead.
    """
    kind: str
    message: str
    suggestion: Optional[str] = None
    backup_slot: Optional[str] = None
    clears_suggestion: bool = False


def build_slot_context(
    collected: CollectedData,
    available_slots: Sequence[str],
    state: DialogueState,
    choose: SlotChooser = random.choice
) -> SlotContext:
    """Decide which slot instruction the model gets this turn."""
    open_slots = [slot for slot in available_slots if slot not in collected.rejected_slots]
    pending = collected.last_suggested_slot

    if not open_slots:
        return SlotContext("no_slots", prompts.no_slots_left(), clears_suggestion=True)

    # A slot still on offer is resolved before asking for a preference.
    if pending and pending in open_slots:
        backups = [slot for slot in open_slots if slot != pending]
        # Declining this one reaches the rejection limit, so no backup is offered.
        if not backups or len(collected.rejected_slots) + 1 >= MAX_SLOT_REJECTIONS:
            return SlotContext("pending", prompts.pending_slot_without_backup(pending))
        backup = choose(backups)
        return SlotContext("pending", prompts.pending_slot(pending, backup), backup_slot=backup)

    if len(collected.rejected_slots) >= MAX_SLOT_REJECTIONS:
        return SlotContext("ask_preference", prompts.ask_preferred_time(open_slots), clears_suggestion=True)

    slot = choose(open_slots)
    if state == DialogueState.AWAITING_NAME:
        message = prompts.suggest_slot_after_name(slot)
    else:
        message = prompts.suggest_slot(slot)
    return SlotContext("suggest", message, suggestion=slot)


# =========================
# Field extraction
# =========================

@dataclass(frozen=True)
class FieldUpdates:
    """Changes to collected data planned from one utterance."""
    name: Optional[str] = None
    email: Optional[str] = None
    meeting_preference: Optional[str] = None
    user_preferred_time: Optional[str] = None
    rejected_slot: Optional[str] = None
    replaces_suggestion: bool = False
    next_suggestion: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return self == FieldUpdates()

    def apply(self, collected: CollectedData):
        if self.name and not collected.name:
            collected.name = self.name
        if self.email:
            collected.email = self.email
        if self.rejected_slot:
            collected.reject_slot(self.rejected_slot)
        if self.replaces_suggestion:
            collected.suggest_slot(self.next_suggestion)
        # Written once: an agreed meeting time never changes afterwards.
        if self.meeting_preference and not collected.meeting_preference:
            collected.meeting_preference = self.meeting_preference
            if self.user_preferred_time and not collected.user_preferred_time:
                collected.user_preferred_time = self.user_preferred_time


def plan_field_updates(
    collected: CollectedData,
    utterance: str,
    ask_for: Optional[AskFor],
    extractor: FieldExtractor,
    state: DialogueState,
    backup_slot: Optional[str] = None
) -> FieldUpdates:
    """
    Decide which fields a final utterance fills, given the state the turn
    started in. Pure: the same inputs always give the same FieldUpdates.
    """
    if not utterance or not utterance.strip():
        return FieldUpdates()

    if state == DialogueState.AWAITING_NAME:
        # The model moving on to another field means it heard a name.
        if ask_for is not None and ask_for != AskFor.NAME:
            return FieldUpdates(name=extractor.extract_name(utterance))
        return FieldUpdates()

    if state == DialogueState.AWAITING_SLOT_CHOICE:
        return _plan_slot_updates(collected, utterance, ask_for, extractor, backup_slot)

    if state == DialogueState.AWAITING_EMAIL:
        return FieldUpdates(email=extractor.parse_email(utterance))

    if state == DialogueState.AWAITING_CONFIRMATION:
        # Corrections while confirming
        email = extractor.parse_email(utterance)
        if email and email != collected.email:
            return FieldUpdates(email=email)

    return FieldUpdates()


def _plan_slot_updates(
    collected: CollectedData,
    utterance: str,
    ask_for: Optional[AskFor],
    extractor: FieldExtractor,
    backup_slot: Optional[str]
) -> FieldUpdates:
    pending = collected.last_suggested_slot
    reply = extractor.classify_slot_reply(utterance, pending)
    updates = FieldUpdates()

    if reply.decision == SlotDecision.REJECTED:
        updates = FieldUpdates(
            rejected_slot=pending,
            meeting_preference=reply.time,
            replaces_suggestion=True,
            next_suggestion=None if reply.time else backup_slot
        )
    elif reply.decision == SlotDecision.ACCEPTED and pending:
        updates = FieldUpdates(meeting_preference=pending)
    elif reply.decision == SlotDecision.TIME:
        free_form = pending is None or ask_for in (AskFor.USER_PREFERRED_TIME, AskFor.CONFIRMATION)
        updates = FieldUpdates(
            meeting_preference=reply.time,
            user_preferred_time=reply.time if free_form else None
        )

    # The model moving on to email or confirmation implies the pending slot was taken.
    if (
        ask_for in (AskFor.EMAIL, AskFor.CONFIRMATION)
        and pending
        and reply.decision != SlotDecision.REJECTED
        and not updates.meeting_preference
        and not collected.meeting_preference
    ):
        updates = replace(updates, meeting_preference=pending)

    return updates


# =========================
# Orchestrator
# =========================

@dataclass
class TurnResult:
    """Outcome of one turn, ready for a transport."""
    session_id: str
    reply_text: str
    ask_for: Optional[AskFor]
    ready_to_book: bool
    collected: Dict[str, Any]
    state: DialogueState
    provider: str
    audio_url: Optional[str] = None
    latency_ms: Optional[float] = None

    def to_response(self) -> Dict[str, Any]:
        response = {
            "replyText": self.reply_text,
            "askFor": self.ask_for.value if self.ask_for else None,
            "readyToBook": self.ready_to_book,
            "sessionState": {
                "collectedData": self.collected,
                "sessionId": self.session_id
            }
        }
        if self.audio_url:
            response["audioUrl"] = self.audio_url
        return response


class DialogueOrchestrator:
    """
    Turns transcripts into agent replies while collecting booking fields.

    Nothing is written to the session unless the model call and reply
    parsing succeed; extraction ambiguity leaves fields untouched.
    """

    def __init__(
        self,
        sessions: SessionManager,
        llm: LLMGateway,
        calendar: SlotCalendar,
        extractor: FieldExtractor,
        tts_cache: Optional[TTSCache] = None,
        agent_logger: Optional[AgentLogger] = None,
        booking_day_offset: int = settings.BOOKING_DAY_OFFSET,
        choose_slot: SlotChooser = random.choice
    ):
        self.sessions = sessions
        self.llm = llm
        self.calendar = calendar
        self.extractor = extractor
        self.tts_cache = tts_cache
        self.agent_logger = agent_logger
        self.booking_day_offset = booking_day_offset
        self._choose_slot = choose_slot

    def booking_day(self) -> date:
        return (self.sessions.now() + timedelta(days=self.booking_day_offset)).date()

    @staticmethod
    def needs_slot_context(state: DialogueState, collected: CollectedData, utterance: str) -> bool:
        if collected.meeting_preference or collected.user_preferred_time:
            return False
        if state == DialogueState.AWAITING_SLOT_CHOICE:
            return True
        return state == DialogueState.AWAITING_NAME and bool(utterance)

    async def process_turn(self, session_id: str, text: str, final: bool) -> TurnResult:
        """
        Process one transcript for a session.

        Raises:
            SessionBusyException: another turn of this session is running
            LLMUnavailableException: both LLM providers failed
            LLMEmptyResponseException: the model returned no content
        """
        metrics = TurnMetrics()
        utterance = text.strip() if final and text else ""

        is_new = self.sessions.get(session_id) is None
        if is_new and self.agent_logger:
            await self.agent_logger.log_session_start(session_id)

        try:
            async with self.sessions.turn(session_id) as session:
                state = session.state
                collected = session.collected

                context = None
                if self.needs_slot_context(state, collected, utterance):
                    available = await self.calendar.available_slots(self.booking_day())
                    context = build_slot_context(collected, available, state, self._choose_slot)

                messages = session.get_llm_messages()
                if utterance:
                    messages.append({"role": "user", "content": utterance})
                if context:
                    messages.append({"role": "system", "content": context.message})

                metrics.llm_start = time.time()
                completion = await self.llm.complete(messages)
                metrics.llm_end = time.time()

                if not completion.content or not completion.content.strip():
                    raise LLMEmptyResponseException(completion.provider)

                reply = parse_model_reply(completion.content)

                updates = FieldUpdates()
                if utterance:
                    updates = plan_field_updates(
                        collected,
                        utterance,
                        reply.ask_for,
                        self.extractor,
                        state,
                        context.backup_slot if context else None
                    )

                # Commit
                now = self.sessions.now()
                if utterance:
                    session.add_message("user", utterance, now)
                session.add_message("assistant", completion.content, now)
                updates.apply(collected)
                self._apply_slot_context(session.state, collected, context)

                new_state = session.state
                if new_state != state:
                    logger.info(f"Session {session_id}: {state.value} -> {new_state.value}")

                audio_url = None
                if self.tts_cache is not None:
                    metrics.tts_start = time.time()
                    audio_url = await self.tts_cache.speak(reply.reply_text)
                    metrics.tts_end = time.time()

                result = TurnResult(
                    session_id=session_id,
                    reply_text=reply.reply_text,
                    ask_for=reply.ask_for,
                    ready_to_book=reply.ready_to_book,
                    collected=collected.to_dict(),
                    state=new_state,
                    provider=completion.provider,
                    audio_url=audio_url,
                    latency_ms=metrics.total_latency_ms
                )
        except VoiceAgentException as e:
            if self.agent_logger:
                await self.agent_logger.log_error(session_id, e.error_code, e.message)
            raise

        logger.info(
            f"Turn complete for {session_id}: state={result.state.value} "
            f"provider={result.provider} llm={metrics.llm_latency_ms or 0:.0f}ms "
            f"total={result.latency_ms:.0f}ms audio={'yes' if audio_url else 'no'}"
        )

        if self.agent_logger:
            await self.agent_logger.log_turn_complete(
                session_id=session_id,
                user_text=utterance,
                agent_text=reply.reply_text,
                state=result.state.value,
                provider=result.provider,
                ask_for=reply.ask_for.value if reply.ask_for else None,
                slot_context=context.kind if context else None,
                latency_ms=result.latency_ms
            )

        return result

    @staticmethod
    def _apply_slot_context(
        state: DialogueState,
        collected: CollectedData,
        context: Optional[SlotContext]
    ):
        """Record the suggestion the model was told to make, once the turn committed."""
        if context is None or collected.meeting_preference:
            return
        if context.suggestion and state == DialogueState.AWAITING_SLOT_CHOICE:
            if context.suggestion not in collected.rejected_slots:
                collected.suggest_slot(context.suggestion)
        elif context.clears_suggestion:
            collected.suggest_slot(None)
