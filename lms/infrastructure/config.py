from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    """
    model_config = SettingsConfigDict(env_file='.env', env_file_encoding='utf-8', extra='ignore')

    # --- Core App Settings ---
    FLASK_ENV: str = "production"
    SECRET_KEY: str = ""
    DEBUG: bool = False

    # --- Infrastructure ---
    MONGO_URI: str = "mongodb://localhost:27017/learnhub"

    # --- AI Services ---
    OPENAI_API_KEY: str = ""
    GEMINI_API_KEY: str = ""

    # AI Model Configuration
    LMS_OPENAI_MODEL: str = "gpt-4o-mini"
    LMS_GEMINI_MODEL: str = "gemini-1.5-flash"
    LMS_DEFAULT_PROVIDER: str = "openai"
    LMS_BASE_URL: str = ""

    # --- Grading ---
    AI_GRADING_ENABLED: bool = True
    AI_RECOMMENDATIONS_ENABLED: bool = True
    AI_TIMEOUT_SECONDS: float = 20.0     # single outbound AI request
    GRADING_TIMEOUT_SECONDS: float = 45.0  # whole fan-out before local fallback
    GRADING_MAX_WORKERS: int = 8

    # --- Quiz sessions ---
    SESSION_IDLE_TTL_SECONDS: float = 1800.0  # abandoned sessions are dropped after this

    # --- Logging ---
    LOG_LEVEL: str = "INFO"

    # --- Version ---
    VERSION: str = "2026.10.18"

# Load settings
settings = Settings()

# Production readiness checks
if settings.FLASK_ENV == "production":
    if not settings.SECRET_KEY or settings.SECRET_KEY == "change-this-to-a-very-secret-key-in-production":
        raise ValueError("CRITICAL: SECRET_KEY is not set for production.")
    if settings.DEBUG:
        raise ValueError("CRITICAL: DEBUG mode must be disabled in production.")
