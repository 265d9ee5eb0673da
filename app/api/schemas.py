"""
Request and response models for the HTTP and WebSocket transports.
Field names on the wire are camelCase.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, EmailStr, Field


class AgentRequest(BaseModel):
    """One transcript delivered to the dialogue engine."""
    session_id: str = Field(..., alias="sessionId", min_length=1)
    text: str
    final: bool

    class Config:
        populate_by_name = True


class CollectedDataModel(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    meeting_preference: Optional[str] = Field(default=None, alias="meetingPreference")
    user_preferred_time: Optional[str] = Field(default=None, alias="userPreferredTime")
    rejected_slots: List[str] = Field(default_factory=list, alias="rejectedSlots")
    last_suggested_slot: Optional[str] = Field(default=None, alias="lastSuggestedSlot")

    class Config:
        populate_by_name = True


class SessionStateModel(BaseModel):
    collected_data: CollectedDataModel = Field(..., alias="collectedData")
    session_id: str = Field(..., alias="sessionId")

    class Config:
        populate_by_name = True


class BookingStatus(BaseModel):
    """Outcome of the automatic booking run after a ready turn."""
    status: str
    calendly_url: Optional[str] = Field(default=None, alias="calendlyUrl")
    error: Optional[str] = None

    class Config:
        populate_by_name = True


class AgentResponse(BaseModel):
    reply_text: str = Field(..., alias="replyText")
    ask_for: Optional[str] = Field(default=None, alias="askFor")
    ready_to_book: bool = Field(default=False, alias="readyToBook")
    session_state: SessionStateModel = Field(..., alias="sessionState")
    audio_url: Optional[str] = Field(default=None, alias="audioUrl")
    booking: Optional[BookingStatus] = None

    class Config:
        populate_by_name = True


class BookRequest(BaseModel):
    name: str = Field(..., min_length=1)
    email: EmailStr
    meeting_time: Optional[str] = Field(default=None, alias="meetingTime")

    class Config:
        populate_by_name = True


class BookResponse(BaseModel):
    calendly_url: str = Field(..., alias="calendlyUrl")

    class Config:
        populate_by_name = True


class TTSRequest(BaseModel):
    text: str = Field(..., min_length=1)
    voice_id: Optional[str] = Field(default=None, alias="voiceId")

    class Config:
        populate_by_name = True


class TTSResponse(BaseModel):
    audio_url: str = Field(..., alias="audioUrl")

    class Config:
        populate_by_name = True


class TokenResponse(BaseModel):
    token: str


class SocketMessage(BaseModel):
    """Envelope of every client frame on the voice socket."""
    type: str
    data: Optional[Dict[str, Any]] = None
    message_id: Optional[Any] = Field(default=None, alias="messageId")

    class Config:
        populate_by_name = True
