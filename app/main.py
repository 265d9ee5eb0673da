"""
FastAPI Application Entry Point
===============================
Main application with lifecycle management, middleware, and route mounting.
"""

from contextlib import asynccontextmanager
from datetime import datetime
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import get_settings
from app.core import prompts
from app.core.exceptions import VoiceAgentException
from app.core.orchestrator import DialogueOrchestrator
from app.core.session import SessionManager
from app.api.routes import agent, health, voice
from app.db.database import init_db, close_db
from app.db.repositories.bookings import BookingRepository
from app.logging.agent_logger import AgentLogger
from app.nlu.heuristic import HeuristicExtractor
from app.services.booking import BookingService
from app.services.calendar import SlotCalendar
from app.services.llm import LLMGateway
from app.services.stt import STTTokenService
from app.services.tts import TTSService
from app.services.tts.cache import TTSCache

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    Handles startup and shutdown events.
    """
    logger.info("=" * 60)
    logger.info(f"Starting {settings.APP_NAME}")
    logger.info("=" * 60)

    # ==================
    # STARTUP
    # ==================

    # Initialize agent logger
    logger.info("Initializing agent logger...")
    agent_logger = AgentLogger(str(settings.AGENT_LOG_PATH))
    await agent_logger.start()
    app.state.agent_logger = agent_logger
    await agent_logger.log_system_event("Application starting", {
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT
    })

    # Initialize database
    logger.info("Initializing database...")
    await init_db()
    repository = BookingRepository()

    # Initialize services
    logger.info("Initializing LLM gateway...")
    app.state.llm_gateway = LLMGateway.from_settings(settings)

    logger.info("Initializing TTS service...")
    app.state.tts_service = TTSService.from_settings(settings)
    await app.state.tts_service.initialize()
    app.state.tts_cache = TTSCache(
        app.state.tts_service,
        prompts.cacheable_phrases(settings.ASSISTANT_NAME),
        max_text_length=settings.TTS_CACHE_MAX_TEXT_LENGTH,
        warm_concurrency=settings.TTS_WARM_CONCURRENCY
    )
    report = await app.state.tts_cache.warm()

    logger.info("Initializing STT token service...")
    app.state.stt_token_service = STTTokenService.from_settings(settings)
    await app.state.stt_token_service.initialize()

    logger.info("Initializing session manager...")
    app.state.session_manager = SessionManager(
        prompts.build_system_prompt(settings.ASSISTANT_NAME),
        idle_timeout_minutes=settings.SESSION_IDLE_TIMEOUT_MINUTES,
        sweep_interval_seconds=settings.SESSION_SWEEP_INTERVAL_SECONDS
    )
    await app.state.session_manager.start()

    app.state.booking_service = BookingService.from_settings(
        repository,
        app.state.session_manager,
        settings,
        agent_logger=agent_logger
    )

    logger.info("Initializing dialogue orchestrator...")
    app.state.orchestrator = DialogueOrchestrator(
        sessions=app.state.session_manager,
        llm=app.state.llm_gateway,
        calendar=SlotCalendar.from_settings(repository, settings),
        extractor=HeuristicExtractor.from_path(settings.EXTRACTION_VOCABULARY_PATH),
        tts_cache=app.state.tts_cache,
        agent_logger=agent_logger,
        booking_day_offset=settings.BOOKING_DAY_OFFSET
    )

    logger.info("=" * 60)
    logger.info(f"{settings.APP_NAME} Ready!")
    logger.info(f"Server: http://{settings.HOST}:{settings.PORT}")
    logger.info(f"Docs: http://{settings.HOST}:{settings.PORT}/docs")
    logger.info("=" * 60)

    await agent_logger.log_system_event("Application started successfully", {
        "host": settings.HOST,
        "port": settings.PORT,
        "tts_cache_phrases": f"{report.succeeded} warmed, {report.failed} failed",
        "calendly_configured": app.state.booking_service.is_configured
    })

    yield  # Application runs here

    # ==================
    # SHUTDOWN
    # ==================

    logger.info(f"Shutting down {settings.APP_NAME}...")

    await agent_logger.log_system_event("Application shutting down", {
        "sessions": app.state.session_manager.count()
    })

    # Cleanup services
    await app.state.session_manager.stop()
    await app.state.stt_token_service.cleanup()
    await app.state.tts_service.cleanup()
    await app.state.llm_gateway.cleanup()
    await agent_logger.close()

    # Close database
    await close_db()

    logger.info("Shutdown complete.")


# Create FastAPI application
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="""
    ## Voice Booking Agent

    Conversational backend that books a call by voice or text.

    ### Features:
    - 🎤 Real-time turns over WebSocket or HTTP
    - 🗓️ Suggests open half-hour slots for tomorrow
    - ✉️ Reconstructs spoken email addresses
    - 🔁 Groq LLM with OpenAI fallback
    - 🔊 ElevenLabs speech with a pre-warmed phrase cache

    ### Collection order:
    ```
    name → meeting time → email → confirmation → booking link
    ```
    """,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json"
)

# ==================
# MIDDLEWARE
# ==================

# CORS middleware for frontend access
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def add_timing_header(request: Request, call_next):
    """Add request timing information to response headers."""
    start_time = datetime.now()
    response = await call_next(request)
    process_time = (datetime.now() - start_time).total_seconds() * 1000
    response.headers["X-Process-Time-Ms"] = f"{process_time:.2f}"
    return response


# ==================
# EXCEPTION HANDLERS
# ==================

@app.exception_handler(VoiceAgentException)
async def voice_agent_exception_handler(request: Request, exc: VoiceAgentException):
    """Handle custom Voice Agent exceptions."""
    logger.error(f"{exc.__class__.__name__}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": exc.error_code,
            "message": exc.message,
            "details": exc.details
        }
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Reject malformed request bodies before they touch any session."""
    logger.warning(f"Invalid request to {request.url.path}")
    return JSONResponse(
        status_code=400,
        content={
            "error": "VALIDATION_ERROR",
            "message": "Invalid request data",
            "details": jsonable_encoder(exc.errors())
        }
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions."""
    logger.exception(f"Unexpected error: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "error": "INTERNAL_ERROR",
            "message": "An unexpected error occurred",
            "details": str(exc) if settings.DEBUG else None
        }
    )


# ==================
# ROUTES
# ==================

# Mount route modules
app.include_router(health.router, tags=["Health"])
app.include_router(agent.router, prefix="/api", tags=["Agent"])
app.include_router(voice.router, tags=["Voice"])


@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "running",
        "docs": "/docs",
        "health": "/health",
        "websocket": "/voice-ws"
    }
