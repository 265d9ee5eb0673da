"""
Agent REST Endpoints.
Dialogue turns, bookings, speech synthesis and speech-to-text tokens.
"""

import logging
from typing import Any, Dict

from fastapi import APIRouter, FastAPI, Request

from app.api.schemas import (
    AgentRequest,
    AgentResponse,
    BookRequest,
    BookResponse,
    TTSRequest,
    TTSResponse,
    TokenResponse
)
from app.config import get_settings
from app.core.exceptions import VoiceAgentException

logger = logging.getLogger(__name__)
settings = get_settings()

router = APIRouter()


async def run_agent_turn(app: FastAPI, payload: AgentRequest) -> Dict[str, Any]:
    """
    Run one dialogue turn and, when the agent reports it is ready, book.

    Shared by the HTTP endpoint and the voice socket. Booking failures are
    reported in the response instead of failing the turn.
    """
    orchestrator = app.state.orchestrator
    result = await orchestrator.process_turn(payload.session_id, payload.text, payload.final)
    response = result.to_response()

    if not result.ready_to_book:
        return response

    session = app.state.session_manager.get(payload.session_id)
    if session is None or session.booked:
        return response
    if not session.collected.name or not session.collected.email:
        logger.info(f"Session {payload.session_id} ready to book but missing name or email")
        return response

    try:
        confirmation = await app.state.booking_service.complete_session_booking(session)
    except VoiceAgentException as e:
        logger.error(f"Automatic booking failed for {payload.session_id}: {e.message}")
        response["booking"] = {"status": "failed", "error": e.message}
        return response

    if confirmation is not None:
        response["booking"] = {"status": "confirmed", "calendlyUrl": confirmation.calendly_url}

    return response


@router.post("/agent", response_model=AgentResponse, response_model_exclude_unset=True)
async def agent_turn(request: Request, payload: AgentRequest):
    """
    Process one transcript and return the agent's reply.
    This is the main text-based conversation endpoint.
    """
    return await run_agent_turn(request.app, payload)


@router.post("/book", response_model=BookResponse)
async def book_meeting(request: Request, payload: BookRequest):
    """Store a booking and return the pre-filled scheduling link."""
    confirmation = await request.app.state.booking_service.book(
        payload.name,
        payload.email,
        payload.meeting_time
    )
    return {"calendlyUrl": confirmation.calendly_url}


@router.post("/tts", response_model=TTSResponse)
async def synthesize(request: Request, payload: TTSRequest):
    """Synthesize arbitrary text without going through the phrase cache."""
    result = await request.app.state.tts_service.synthesize(payload.text, payload.voice_id)
    return {"audioUrl": result.audio_url}


@router.post("/assemblyai/token", response_model=TokenResponse)
async def streaming_token(request: Request):
    """Issue a temporary AssemblyAI streaming token for the browser."""
    token = await request.app.state.stt_token_service.create_token()
    return {"token": token.token}
