"""
Core exceptions for the Voice Booking Agent.
Custom exception classes for structured error handling.
"""

from typing import Optional, Dict, Any


class VoiceAgentException(Exception):
    """Base exception for Voice Agent errors."""

    def __init__(
        self,
        message: str,
        error_code: str = "VOICE_AGENT_ERROR",
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


# =========================
# STT Exceptions
# =========================

class STTException(VoiceAgentException):
    """Base exception for STT errors."""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        status_code: int = 502
    ):
        super().__init__(
            message=message,
            error_code="STT_ERROR",
            status_code=status_code,
            details=details
        )


class STTNotConfiguredException(STTException):
    """Raised when no AssemblyAI key is configured."""

    def __init__(self):
        super().__init__(
            message="Speech-to-text provider is not configured",
            details={"error_type": "not_configured"},
            status_code=503
        )


class STTTokenException(STTException):
    """Raised when the streaming token request fails."""

    def __init__(self, error: str, provider_status: Optional[int] = None):
        super().__init__(
            message=f"Failed to obtain streaming token: {error}",
            details={"error": error, "provider_status": provider_status}
        )


# =========================
# TTS Exceptions
# =========================

class TTSException(VoiceAgentException):
    """Base exception for TTS errors."""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        status_code: int = 502
    ):
        super().__init__(
            message=message,
            error_code="TTS_ERROR",
            status_code=status_code,
            details=details
        )


class TTSNotConfiguredException(TTSException):
    """Raised when no ElevenLabs key is configured."""

    def __init__(self):
        super().__init__(
            message="Text-to-speech provider is not configured",
            details={"error_type": "not_configured"},
            status_code=503
        )


class TTSSynthesisException(TTSException):
    """Raised when the provider rejects or fails a synthesis request."""

    def __init__(self, error: str, provider_status: Optional[int] = None):
        super().__init__(
            message=f"Speech synthesis failed: {error}",
            details={"error": error, "provider_status": provider_status}
        )


# =========================
# LLM Exceptions
# =========================

class LLMException(VoiceAgentException):
    """Base exception for LLM errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            error_code="LLM_ERROR",
            status_code=502,
            details=details
        )


class LLMProviderException(LLMException):
    """Raised when a single provider call fails."""

    def __init__(self, provider: str, error: str):
        super().__init__(
            message=f"LLM provider '{provider}' failed: {error}",
            details={"provider": provider, "error": error}
        )


class LLMUnavailableException(LLMException):
    """Raised when the primary and the fallback provider both fail."""

    def __init__(self, primary_error: str, fallback_error: str):
        super().__init__(
            message="Both LLM providers are unavailable",
            details={"primary_error": primary_error, "fallback_error": fallback_error}
        )


class LLMEmptyResponseException(LLMException):
    """Raised when the model answered without any content."""

    def __init__(self, provider: str):
        super().__init__(
            message="LLM returned an empty response",
            details={"provider": provider}
        )


# =========================
# Session Exceptions
# =========================

class SessionException(VoiceAgentException):
    """Base exception for session errors."""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        status_code: int = 400
    ):
        super().__init__(
            message=message,
            error_code="SESSION_ERROR",
            status_code=status_code,
            details=details
        )


class SessionBusyException(SessionException):
    """Raised when a turn arrives while another turn of the session is running."""

    def __init__(self, session_id: str):
        super().__init__(
            message=f"Session '{session_id}' is already processing a turn",
            details={"session_id": session_id},
            status_code=409
        )


# =========================
# Booking Exceptions
# =========================

class BookingException(VoiceAgentException):
    """Base exception for booking errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            error_code="BOOKING_ERROR",
            status_code=500,
            details=details
        )


class BookingConfigurationException(BookingException):
    """Raised when the scheduling link is not configured."""

    def __init__(self):
        super().__init__(
            message="Calendly link not configured",
            details={"setting": "CALENDLY_BASE_LINK"}
        )


# =========================
# Database Exceptions
# =========================

class DatabaseException(VoiceAgentException):
    """Base exception for database errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            error_code="DATABASE_ERROR",
            status_code=500,
            details=details
        )


class BookingPersistenceException(DatabaseException):
    """Raised when a booking record cannot be stored."""

    def __init__(self, error: str):
        super().__init__(
            message=f"Failed to save booking: {error}",
            details={"entity": "booking", "error": error}
        )
