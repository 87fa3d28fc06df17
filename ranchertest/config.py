"""Configuration management for the ranchertest toolkit."""
import os

from dotenv import load_dotenv

# Load environment variables from .env file if it exists
load_dotenv()


class Config:
    """Toolkit configuration with sensible defaults."""

    # Timeouts (in seconds)
    COMMAND_TIMEOUT: int = int(os.getenv("RANCHERTEST_COMMAND_TIMEOUT", "600"))
    WAIT_TIMEOUT: int = int(os.getenv("RANCHERTEST_WAIT_TIMEOUT", "300"))
    WAIT_INTERVAL: float = float(os.getenv("RANCHERTEST_WAIT_INTERVAL", "5"))

    # Retry configuration, only used by conditional cluster writes
    MAX_CONFLICT_RETRIES: int = int(os.getenv("RANCHERTEST_MAX_CONFLICT_RETRIES", "3"))
    RETRY_DELAY: float = float(os.getenv("RANCHERTEST_RETRY_DELAY", "1.0"))

    # Logging
    LOG_LEVEL: str = os.getenv("RANCHERTEST_LOG_LEVEL", "INFO").upper()
    LOG_FORMAT: str = os.getenv(
        "RANCHERTEST_LOG_FORMAT",
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    # Security
    REDACT_KEYS: tuple = ("password", "secret", "token")
