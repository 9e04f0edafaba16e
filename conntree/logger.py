import logging
import os
import sys
from dotenv import load_dotenv


load_dotenv()  # Pick up LOG_LEVEL and friends from .env

# GitHub Actions understands ::warning:: style annotations
GITHUB_ACTIONS = os.getenv("GITHUB_ACTIONS") == "true"

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"


def resolve_log_level(raw: str | None) -> str:
    """Normalize a level name from the environment, falling back to INFO."""
    level = (raw or "INFO").strip().upper()
    if level not in VALID_LOG_LEVELS:
        return "INFO"
    return level


LOG_LEVEL = resolve_log_level(os.getenv("LOG_LEVEL"))


class ANSIColors:
    """Terminal colors per level."""

    DEBUG = "\033[36m"    # Cyan
    INFO = "\033[32m"     # Green
    WARNING = "\033[33m"  # Yellow
    ERROR = "\033[31m"    # Red
    CRITICAL = "\033[1;31m"  # Bold Red
    RESET = "\033[0m"


class ForestLogFormatter(logging.Formatter):
    """Colorizes records locally, emits workflow annotations under GitHub Actions."""

    def __init__(self, fmt: str = LOG_FORMAT, github_actions: bool = GITHUB_ACTIONS):
        super().__init__(fmt)
        self.github_actions = github_actions

    def format(self, record):
        log_message = super().format(record)

        if self.github_actions:
            if record.levelno == logging.DEBUG:
                return f"::debug::{log_message}"
            elif record.levelno == logging.WARNING:
                return f"::warning::{log_message}"
            elif record.levelno >= logging.ERROR:
                return f"::error::{log_message}"
            return log_message

        log_color = {
            logging.DEBUG: ANSIColors.DEBUG,
            logging.INFO: ANSIColors.INFO,
            logging.WARNING: ANSIColors.WARNING,
            logging.ERROR: ANSIColors.ERROR,
            logging.CRITICAL: ANSIColors.CRITICAL,
        }.get(record.levelno, ANSIColors.RESET)

        return f"{log_color}{log_message}{ANSIColors.RESET}"


console_handler = logging.StreamHandler(sys.stdout)
console_handler.setFormatter(ForestLogFormatter())

logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    handlers=[console_handler],
)


def get_logger(name: str) -> logging.Logger:
    """Return a configured logger for the given module."""
    return logging.getLogger(name.split(".")[-1])
