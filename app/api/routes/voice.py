"""
Voice WebSocket Endpoint.
Low-latency channel for the browser voice widget: transcripts in, replies out.
"""

import json
import logging
import time

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from app.api.routes.agent import run_agent_turn
from app.api.schemas import AgentRequest, SocketMessage
from app.config import get_settings
from app.core.exceptions import VoiceAgentException

logger = logging.getLogger(__name__)
settings = get_settings()

router = APIRouter()


@router.websocket("/voice-ws")
async def voice_socket(websocket: WebSocket):
    """
    WebSocket endpoint for real-time voice conversations.

    Protocol (JSON text frames):
    - Server sends {"type": "connected"} on open
    - {"type": "voice_agent", "data": {...}, "messageId"} ->
      {"type": "voice_agent_response", "data": {...}, "messageId"}
    - {"type": "voice_agent_stream", ...} ->
      "voice_agent_stream_start" then "voice_agent_stream_complete"
      (or "voice_agent_stream_error")
    - {"type": "ping"} -> {"type": "pong", "timestamp": <ms>}
    - Anything else -> {"type": "error", "error": ..., "messageId"}

    Errors never close the socket.
    """
    await websocket.accept()
    app = websocket.app
    logger.info("Voice socket connected")

    await websocket.send_json({
        "type": "connected",
        "message": "WebSocket connected - real-time voice agent ready"
    })

    try:
        while True:
            raw = await websocket.receive_text()

            try:
                message = SocketMessage.model_validate(json.loads(raw))
            except (ValueError, ValidationError) as e:
                logger.warning(f"Invalid socket frame: {e}")
                await websocket.send_json({
                    "type": "error",
                    "error": "Invalid message format",
                    "messageId": "unknown"
                })
                continue

            if message.type == "ping":
                await websocket.send_json({"type": "pong", "timestamp": int(time.time() * 1000)})

            elif message.type == "voice_agent":
                try:
                    payload = AgentRequest.model_validate(message.data or {})
                    response = await run_agent_turn(app, payload)
                except ValidationError as e:
                    await _send_error(websocket, "error", "Invalid request data", message.message_id, e.errors())
                    continue
                except VoiceAgentException as e:
                    await _send_error(websocket, "error", e.message, message.message_id)
                    continue
                except Exception as e:
                    logger.exception(f"Voice agent turn failed: {e}")
                    await _send_error(websocket, "error", "Internal server error", message.message_id)
                    continue

                await websocket.send_json({
                    "type": "voice_agent_response",
                    "data": response,
                    "messageId": message.message_id
                })

            elif message.type == "voice_agent_stream":
                await _handle_stream(websocket, message)

            else:
                logger.warning(f"Unknown socket message type: {message.type}")
                await _send_error(websocket, "error", "Unknown message type", message.message_id)

    except WebSocketDisconnect:
        logger.info("Voice socket disconnected")


async def _handle_stream(websocket: WebSocket, message: SocketMessage):
    """Acknowledge immediately, then deliver the full turn."""
    try:
        payload = AgentRequest.model_validate(message.data or {})
    except ValidationError as e:
        await _send_error(websocket, "voice_agent_stream_error", "Invalid request data", message.message_id, e.errors())
        return

    await websocket.send_json({
        "type": "voice_agent_stream_start",
        "messageId": message.message_id,
        "sessionId": payload.session_id
    })

    try:
        response = await run_agent_turn(websocket.app, payload)
    except VoiceAgentException as e:
        await _send_error(websocket, "voice_agent_stream_error", e.message, message.message_id)
        return
    except Exception as e:
        logger.exception(f"Streaming voice agent turn failed: {e}")
        await _send_error(websocket, "voice_agent_stream_error", "Internal server error", message.message_id)
        return

    await websocket.send_json({
        "type": "voice_agent_stream_complete",
        "messageId": message.message_id,
        "data": response
    })


async def _send_error(websocket: WebSocket, frame_type: str, error: str, message_id, details=None):
    frame = {"type": frame_type, "error": error, "messageId": message_id}
    if details:
        frame["details"] = json.loads(json.dumps(details, default=str))
    await websocket.send_json(frame)
