"""
Configuration management for the Voice Booking Agent.
Loads settings from environment variables with sensible defaults.
"""

from pathlib import Path
from typing import Optional, List
from pydantic_settings import BaseSettings
from pydantic import Field
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # =========================
    # Application Settings
    # =========================
    APP_NAME: str = "Voice Booking Agent"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = Field(default=False, description="Enable debug mode")
    ENVIRONMENT: str = Field(default="development", description="Environment name")
    ASSISTANT_NAME: str = Field(default="Alex", description="Name the assistant introduces itself with")

    # =========================
    # API Keys
    # =========================
    GROQ_API_KEY: Optional[str] = Field(default=None, description="Groq API key for the primary LLM")
    OPENAI_API_KEY: Optional[str] = Field(default=None, description="OpenAI API key for the fallback LLM")
    ELEVENLABS_API_KEY: Optional[str] = Field(default=None, description="ElevenLabs API key for TTS")
    ASSEMBLYAI_API_KEY: Optional[str] = Field(default=None, description="AssemblyAI API key for STT tokens")
    CALENDLY_BASE_LINK: Optional[str] = Field(default=None, description="Scheduling link bookings are built on")

    # =========================
    # Server Settings
    # =========================
    HOST: str = Field(default="0.0.0.0", description="Server host")
    PORT: int = Field(default=8000, description="Server port")
    CORS_ORIGINS: List[str] = Field(default=["*"], description="Allowed CORS origins")

    # =========================
    # Database Settings
    # =========================
    DATABASE_URL: str = Field(
        default="sqlite+aiosqlite:///./data/voice_agent.db",
        description="Database connection URL"
    )
    DATABASE_ECHO: bool = Field(default=False, description="Echo SQL queries")

    # =========================
    # LLM Settings
    # =========================
    PRIMARY_LLM_MODEL: str = Field(
        default="llama-3.1-8b-instant",
        description="Groq model used for every turn"
    )
    FALLBACK_LLM_MODEL: str = Field(
        default="gpt-4o-mini",
        description="OpenAI model used when the primary call fails"
    )
    LLM_TEMPERATURE: float = Field(default=0.3, ge=0.0, le=2.0, description="Sampling temperature")
    LLM_MAX_TOKENS: int = Field(default=200, gt=0, description="Maximum tokens per reply")

    # =========================
    # TTS Settings
    # =========================
    TTS_API_URL: str = Field(
        default="https://api.elevenlabs.io/v1/text-to-speech",
        description="ElevenLabs text-to-speech endpoint"
    )
    TTS_VOICE_ID: str = Field(default="21m00Tcm4TlvDq8ikWAM", description="Default voice")
    TTS_MODEL_ID: str = Field(default="eleven_flash_v2_5", description="ElevenLabs model identifier")
    TTS_STABILITY: float = Field(default=0.5, ge=0.0, le=1.0)
    TTS_SIMILARITY_BOOST: float = Field(default=0.5, ge=0.0, le=1.0)
    TTS_CACHE_MAX_TEXT_LENGTH: int = Field(
        default=200,
        gt=0,
        description="Replies shorter than this are cached after synthesis"
    )
    TTS_WARM_CONCURRENCY: int = Field(default=5, gt=0, description="Parallel syntheses during warm-up")

    # =========================
    # STT Settings
    # =========================
    STT_TOKEN_URL: str = Field(
        default="https://streaming.assemblyai.com/v3/token",
        description="AssemblyAI streaming token endpoint"
    )
    STT_TOKEN_TTL_SECONDS: int = Field(default=600, gt=0, le=600, description="Token lifetime")

    # =========================
    # Session Settings
    # =========================
    SESSION_IDLE_TIMEOUT_MINUTES: int = Field(
        default=0,
        ge=0,
        description="Reap sessions idle this long; 0 keeps them for the process lifetime"
    )
    SESSION_SWEEP_INTERVAL_SECONDS: int = Field(default=60, gt=0, description="Reaper interval")

    # =========================
    # Scheduling Settings
    # =========================
    SLOT_DAY_START_HOUR: int = Field(default=9, ge=0, le=23)
    SLOT_DAY_END_HOUR: int = Field(default=18, ge=1, le=24)
    SLOT_INTERVAL_MINUTES: int = Field(default=30, gt=0, le=60)
    BOOKING_DAY_OFFSET: int = Field(default=1, ge=0, description="Days ahead bookings land on")
    BOOKING_FALLBACK_TIME: str = Field(
        default="12:30",
        pattern=r"^\d{1,2}:\d{2}$",
        description="24-hour time used when no slot label can be parsed"
    )

    # =========================
    # NLU Settings
    # =========================
    EXTRACTION_VOCABULARY_PATH: Optional[Path] = Field(
        default=None,
        description="JSON file overriding the extraction word lists"
    )

    # =========================
    # Logging Settings
    # =========================
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    AGENT_LOG_PATH: Path = Field(
        default=Path("./logs/agent_log.md"),
        description="Path to agent markdown log"
    )

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
