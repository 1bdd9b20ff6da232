import logging
import logging.handlers
from pathlib import Path
from typing import Optional

from .config import settings


def setup_logging() -> logging.Logger:
    """
    Configure the application logger.

    Console output is always enabled; a rotating file handler is added
    when LOG_FILE is configured.

    Returns:
        logging.Logger: Root logger of the application namespace
    """
    level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    logger = logging.getLogger(settings.APP_NAME)
    logger.setLevel(level)

    # Re-imports (uvicorn reload, tests) must not stack handlers
    logger.handlers.clear()

    formatter = logging.Formatter(
        fmt=settings.LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if settings.LOG_FILE:
        try:
            Path(settings.LOG_FILE).parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.handlers.RotatingFileHandler(
                filename=settings.LOG_FILE,
                maxBytes=10 * 1024 * 1024,  # 10MB
                backupCount=5,
                encoding="utf-8"
            )
            file_handler.setLevel(level)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)
        except OSError as e:
            logger.warning(f"Failed to setup file logging: {e}")

    logger.propagate = False

    # Connection pool chatter from requests is noise at INFO
    logging.getLogger("urllib3").setLevel(logging.WARNING)

    return logger


logger = setup_logging()


def get_logger(module_name: Optional[str] = None) -> logging.Logger:
    """
    Get a logger nested under the application namespace.

    Args:
        module_name: Name of the module (typically __name__)

    Returns:
        logging.Logger: Logger instance for the module
    """
    if module_name:
        # Modules of this package already carry the app prefix
        if module_name == settings.APP_NAME or module_name.startswith(f"{settings.APP_NAME}."):
            return logging.getLogger(module_name)
        return logging.getLogger(f"{settings.APP_NAME}.{module_name}")
    return logger


def log_startup_info():
    """Log application startup information"""
    logger.info("=" * 60)
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")
    logger.info(f"Debug Mode: {settings.DEBUG}")
    logger.info(f"LLM Model: {settings.LLM_MODEL_NAME}")
    logger.info(f"Provider: {settings.PROVIDER_NAME} ({settings.OPENAI_BASE_URL})")
    logger.info(f"Notes Service: {settings.NOTES_BASE_URL}")
    logger.info(f"Directive Grammar: {settings.DIRECTIVE_PATTERN or settings.DIRECTIVE_GRAMMAR}")
    logger.info(f"Compositor Policy: {settings.COMPOSITOR_POLICY}")
    logger.info(f"Log Level: {settings.LOG_LEVEL}")
    logger.info("=" * 60)


def log_shutdown_info():
    """Log application shutdown information"""
    logger.info("=" * 60)
    logger.info(f"Shutting down {settings.APP_NAME}")
    logger.info("=" * 60)
