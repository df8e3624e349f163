"""
Logging configuration for the Job Portal API.

Provides structured logging without exposing secrets.
"""
import logging
import sys
from pathlib import Path
from logging.handlers import RotatingFileHandler


def setup_logging(log_level: str = "INFO", log_dir: str = "logs", log_to_file: bool = True):
    """
    Configure application logging.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_dir: Directory for the rotating log file
        log_to_file: Disable to log to stdout only (tests, containers)
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    logger = logging.getLogger()
    logger.setLevel(level)
    logger.handlers.clear()

    # Console handler with simple format
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    ))
    logger.addHandler(console_handler)

    if log_to_file:
        log_path = Path(log_dir)
        log_path.mkdir(exist_ok=True)

        # File handler with detailed format
        file_handler = RotatingFileHandler(
            log_path / "jobportal.log",
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=5
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        ))
        logger.addHandler(file_handler)

    # Set levels for third-party libraries
    logging.getLogger("uvicorn").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


SECRET_KEYS = ("password", "token", "secret", "signature", "database_url")
CONTACT_KEYS = ("email", "mobile", "contact", "identifier")


def _mask_contact(value: str) -> str:
    """Keep enough of an email or phone to correlate log lines."""
    if "@" in value:
        local, _, domain = value.partition("@")
        return f"{local[:1]}***@{domain}"
    return f"***{value[-4:]}" if len(value) > 4 else "***"


def sanitize_log_data(data: dict) -> dict:
    """
    Copy of `data` that is safe to log.

    Secrets are redacted outright; emails and phone numbers of employees,
    employers and admins are partially masked.
    """
    sanitized = data.copy()

    for key, value in sanitized.items():
        lowered = key.lower()
        if any(secret in lowered for secret in SECRET_KEYS):
            sanitized[key] = "***REDACTED***"
        elif lowered in CONTACT_KEYS and isinstance(value, str):
            sanitized[key] = _mask_contact(value)

    return sanitized
