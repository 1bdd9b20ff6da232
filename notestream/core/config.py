import os
from dataclasses import dataclass
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings and configuration"""

    # ============ APP SETTINGS ============
    APP_NAME: str = "notestream"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = os.getenv("DEBUG", "False").lower() == "true"

    # ============ SERVER SETTINGS ============
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", 8000))
    RELOAD: bool = os.getenv("RELOAD", "True").lower() == "true"

    # ============ CORS SETTINGS ============
    ALLOWED_ORIGINS: list = os.getenv("ALLOWED_ORIGINS", "http://localhost:3000").split(",")

    # ============ COMPLETION PROVIDER SETTINGS ============
    # Default key, used when the client does not send its own
    OPENAI_API_KEY: Optional[str] = os.getenv("OPENAI_API_KEY", None)
    OPENAI_BASE_URL: str = os.getenv("OPENAI_BASE_URL", "https://api.openai.com")
    PROVIDER_TYPE: str = "openai"
    PROVIDER_NAME: str = os.getenv("PROVIDER_NAME", "OpenAI")

    # Completion parameters
    LLM_MODEL_NAME: str = os.getenv("LLM_MODEL_NAME", "gpt-4")
    LLM_TEMPERATURE: float = float(os.getenv("LLM_TEMPERATURE", 0.5))
    LLM_MAX_TOKENS: int = int(os.getenv("LLM_MAX_TOKENS", 2048))

    # ============ NOTES SERVICE SETTINGS ============
    NOTES_BASE_URL: str = os.getenv("NOTES_BASE_URL", "http://localhost:8080")
    BEARER_TOKEN: Optional[str] = os.getenv("BEARER_TOKEN", None)
    # None leaves the timeout to the HTTP client
    NOTES_TIMEOUT: Optional[float] = None

    # ============ STREAMING SETTINGS ============
    # "line" -> ^Query: (.*)$, "bracket" -> Query:[term]
    DIRECTIVE_GRAMMAR: str = os.getenv("DIRECTIVE_GRAMMAR", "bracket")
    DIRECTIVE_PATTERN: Optional[str] = os.getenv("DIRECTIVE_PATTERN", None)
    # "strict" ends the turn on a directive, "lenient" keeps forwarding
    COMPOSITOR_POLICY: str = os.getenv("COMPOSITOR_POLICY", "strict")

    # ============ LOGGING SETTINGS ============
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    LOG_FILE: Optional[str] = os.getenv("LOG_FILE", "logs/app.log")

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True)


# Instantiate settings
settings = Settings()


@dataclass(frozen=True)
class StartupReport:
    """Capabilities detected once at process start"""
    provider_key_available: bool
    notes_token_available: bool


def check_startup(config: Optional[Settings] = None) -> StartupReport:
    """
    Validate process-wide configuration and record capability flags.

    Missing values only warn: a client may still supply its own provider
    key, and the notes service is contacted regardless of the token.

    Args:
        config: Settings to check (uses global settings if None)

    Returns:
        StartupReport with the detected capabilities
    """
    # Imported here, logging itself depends on settings
    from notestream.core.logging import get_logger

    logger = get_logger(__name__)
    config = config or settings

    report = StartupReport(
        provider_key_available=bool(config.OPENAI_API_KEY),
        notes_token_available=bool(config.BEARER_TOKEN),
    )

    if not report.provider_key_available:
        logger.warning(
            "OPENAI_API_KEY has not been provided in this deployment environment. "
            "Will use the optional keys incoming from the client, which is not recommended."
        )
    if not report.notes_token_available:
        logger.warning(
            "BEARER_TOKEN is not set; requests to the notes service will not be authenticated."
        )
    return report
