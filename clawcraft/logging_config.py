"""
Centralized logging configuration for ClawCraft encounters.

Provides debug logging to file for all encounter operations.
Log file: <data_root>/debug.log (with rotation)

Usage:
    from clawcraft.logging_config import setup_logging
    setup_logging(data_root)  # Call once at startup

All clawcraft.* loggers write DEBUG to file, WARNING+ to console.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from datetime import datetime


# Global configuration
LOG_FILE_NAME = "debug.log"
MAX_LOG_SIZE = 10 * 1024 * 1024  # 10 MB per file
BACKUP_COUNT = 5  # Keep 5 backup files
ROOT_LOGGER_NAME = "clawcraft"

_logging_initialized = False


def setup_logging(
    data_root: Path | str,
    log_level: int = logging.DEBUG,
    console_level: int = logging.WARNING,
) -> Path:
    """
    Configure the logging system for the encounter engine.

    Args:
        data_root: Path to data directory (log file goes here)
        log_level: Level for file logging (default: DEBUG)
        console_level: Level for console output (default: WARNING)

    Returns:
        Path to the log file
    """
    global _logging_initialized

    data_path = Path(data_root)
    data_path.mkdir(parents=True, exist_ok=True)
    log_path = data_path / LOG_FILE_NAME

    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(logging.DEBUG)

    # Clear any existing handlers (for re-initialization)
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    file_formatter = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d | %(levelname)-8s | %(name)-35s | %(funcName)-25s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    file_handler = RotatingFileHandler(
        log_path,
        maxBytes=MAX_LOG_SIZE,
        backupCount=BACKUP_COUNT,
        encoding="utf-8",
    )
    file_handler.setLevel(log_level)
    file_handler.setFormatter(file_formatter)
    root_logger.addHandler(file_handler)

    # Console handler (less verbose)
    console_formatter = logging.Formatter(
        fmt="%(levelname)-8s | %(name)-25s | %(message)s"
    )
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(console_formatter)
    root_logger.addHandler(console_handler)

    if not _logging_initialized:
        root_logger.info("=" * 80)
        root_logger.info(f"ClawCraft encounter logging initialized at {datetime.now().isoformat()}")
        root_logger.info(f"Log file: {log_path.absolute()}")
        root_logger.info("=" * 80)
        _logging_initialized = True

    return log_path


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger for a module, namespaced under clawcraft.

    Args:
        name: Module name (typically __name__)
    """
    if name.startswith(f"{ROOT_LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


# =============================================================================
# Structured Logging Helpers
# =============================================================================


def log_session(
    logger: logging.Logger,
    session_id: str,
    action: str,
    participants: list[str] | tuple[str, ...] | None = None,
    details: str | None = None,
) -> None:
    """Log session lifecycle activity."""
    p_str = f" | participants={list(participants)}" if participants else ""
    details_str = f" | {details}" if details else ""
    logger.info(f"SESSION | {session_id} | {action}{p_str}{details_str}")


def log_generation(
    logger: logging.Logger,
    pair_key: str,
    status: str,
    duration_ms: int | None = None,
    details: str | None = None,
) -> None:
    """Log content generation attempts and their outcome."""
    duration_str = f" | {duration_ms}ms" if duration_ms is not None else ""
    details_str = f" | {details}" if details else ""
    logger.debug(f"GENERATION | {pair_key} | {status}{duration_str}{details_str}")


def log_relay(
    logger: logging.Logger,
    sink: str,
    success: bool = True,
    details: str | None = None,
) -> None:
    """Log a notification relay delivery."""
    status = "OK" if success else "FAILED"
    details_str = f" | {details}" if details else ""
    level = logging.DEBUG if success else logging.WARNING
    logger.log(level, f"RELAY | {sink} | {status}{details_str}")


def log_observer_cmd(
    logger: logging.Logger,
    command: str,
    details: str | None = None,
) -> None:
    """Log operator commands."""
    details_str = f" | {details}" if details else ""
    logger.info(f"OBSERVER_CMD | {command}{details_str}")
