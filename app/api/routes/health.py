"""
Health Check Endpoints.
System health, readiness and provider configuration checks.
"""

from datetime import datetime
from fastapi import APIRouter, Request

from app.config import get_settings

router = APIRouter()
settings = get_settings()


@router.get("/health")
async def health_check():
    """Basic health check endpoint."""
    return {
        "status": "healthy",
        "timestamp": datetime.now().isoformat(),
        "version": settings.APP_VERSION
    }


@router.get("/health/ready")
async def readiness_check(request: Request):
    """
    Readiness check - verifies the dialogue engine is wired up.

    Providers are reported separately: a missing key degrades a feature
    (no audio, no fallback LLM) without making the service unready.
    """
    state = request.app.state
    checks = {
        "orchestrator": hasattr(state, "orchestrator"),
        "session_manager": hasattr(state, "session_manager"),
        "booking_service": hasattr(state, "booking_service"),
    }

    providers = {}
    if hasattr(state, "llm_gateway"):
        providers["llm_primary"] = state.llm_gateway.primary.is_configured
        providers["llm_fallback"] = state.llm_gateway.fallback.is_configured
    if hasattr(state, "tts_service"):
        providers["tts"] = state.tts_service.is_configured
    if hasattr(state, "stt_token_service"):
        providers["stt_token"] = state.stt_token_service.is_configured
    if hasattr(state, "booking_service"):
        providers["calendly"] = state.booking_service.is_configured

    all_ready = all(checks.values()) and (
        providers.get("llm_primary", False) or providers.get("llm_fallback", False)
    )

    return {
        "status": "ready" if all_ready else "not_ready",
        "checks": checks,
        "providers": providers,
        "timestamp": datetime.now().isoformat()
    }


@router.get("/health/live")
async def liveness_check():
    """
    Liveness check - just verifies the server is responding.
    """
    return {
        "status": "alive",
        "timestamp": datetime.now().isoformat()
    }


@router.get("/health/metrics")
async def metrics(request: Request):
    """
    Get basic system metrics.
    """
    metrics_data = {
        "timestamp": datetime.now().isoformat(),
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT
    }

    if hasattr(request.app.state, "session_manager"):
        metrics_data["active_sessions"] = request.app.state.session_manager.count()

    if hasattr(request.app.state, "tts_cache"):
        metrics_data["tts_cache"] = request.app.state.tts_cache.stats()

    return metrics_data
