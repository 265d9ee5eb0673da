"""Core module initialization."""

from app.core.exceptions import (
    VoiceAgentException,
    STTException,
    TTSException,
    LLMException,
    SessionException,
    BookingException,
    DatabaseException
)
from app.core.state import AskFor, DialogueState

__all__ = [
    "VoiceAgentException",
    "STTException",
    "TTSException",
    "LLMException",
    "SessionException",
    "BookingException",
    "DatabaseException",
    "AskFor",
    "DialogueState"
]
