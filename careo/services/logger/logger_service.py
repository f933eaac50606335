"""
Centralized Logger Service for Careo medication rounds.

This service provides a unified logging interface on top of loguru:
- Console output with emoji support and level colours
- Optional file logging with daily rotation and retention
- Service loggers bound to a LoggerName and LogSource so every record
  carries where it came from

Architecture:
- Type-safe enum-based configuration
- One global loguru configuration, applied by initialize_global_logger()
- Per-service loggers created with get_service_logger()
"""

import sys
from pathlib import Path
from typing import Any, Dict, Optional

from loguru import logger

from ...constants import (
    LOG_CONSOLE_FORMAT,
    LOG_FILE_FORMAT,
    LOG_FILE_NAME,
    LOG_FILE_RETENTION,
    LOG_FILE_ROTATION,
)
from ...enums import LogEmoji, LoggerName, LogLevel, LogSource

_DEFAULT_EXTRA = {
    "logger_name": LoggerName.SYSTEM.value,
    "source": LogSource.SYSTEM.value,
}

# Sinks need the extra keys even before initialize_global_logger() runs
logger.configure(extra=_DEFAULT_EXTRA)


def initialize_global_logger(
    log_level: LogLevel = LogLevel.INFO,
    logs_directory: Optional[str] = None,
    log_file: Optional[str] = None,
    enable_console: bool = True,
    enable_file_logging: bool = True,
) -> None:
    """
    Configure loguru sinks for the whole process.

    This should be called once during application or worker startup.

    Args:
        log_level: Minimum level written to every sink
        logs_directory: Directory for rotating log files
        log_file: Explicit log file path, overrides logs_directory
        enable_console: Write to stderr
        enable_file_logging: Write to a rotating file when a location is known
    """
    logger.remove()
    logger.configure(extra=_DEFAULT_EXTRA)

    if enable_console:
        logger.add(
            sys.stderr,
            level=log_level.value,
            format=LOG_CONSOLE_FORMAT,
            colorize=True,
            backtrace=False,
            diagnose=False,
        )

    if enable_file_logging and (log_file or logs_directory):
        file_path = (
            Path(log_file) if log_file else Path(logs_directory) / LOG_FILE_NAME
        )
        logger.add(
            str(file_path),
            level=log_level.value,
            format=LOG_FILE_FORMAT,
            rotation=LOG_FILE_ROTATION,
            retention=LOG_FILE_RETENTION,
            enqueue=True,
            encoding="utf-8",
        )


def _format_message(
    message: str, emoji: LogEmoji, context: Optional[Dict[str, Any]]
) -> str:
    text = f"{emoji.value} {message}"
    if context:
        details = ", ".join(f"{key}={value}" for key, value in context.items())
        text = f"{text} | {details}"
    return text


def get_service_logger(
    logger_name: LoggerName,
    source: LogSource = LogSource.SYSTEM,
    default_emoji: Optional[LogEmoji] = None,
):
    """
    Factory function to create a pre-configured logger for a specific service.

    Returns a logger with simplified methods that automatically include
    the correct source and logger_name while keeping emoji support.

    Emoji priority system (highest to lowest):
    1. Direct: Emoji passed directly to log method call
    2. Instance-set: Default emoji set when creating the service logger
    3. Fallback: Default emoji based on log level (ERROR, WARNING, INFO, DEBUG)

    Args:
        logger_name: The logger name enum to use for all calls
        source: The log source enum to use for all calls (defaults to SYSTEM)
        default_emoji: Instance-level default emoji that overrides level-based fallbacks

    Returns:
        ServiceLogger instance with error, warning, info, debug methods

    Example:
        from ...services.logger import get_service_logger
        from ...enums import LoggerName, LogEmoji

        logger = get_service_logger(LoggerName.INTAKE_GENERATION)
        logger.info("Run finished", extra_context={"inserted": 12})
        logger.error("Insert failed", exception=e, emoji=LogEmoji.DATABASE)
    """
    bound = logger.bind(logger_name=logger_name.value, source=source.value)

    def _resolve_emoji(
        method_emoji: Optional[LogEmoji], fallback_emoji: LogEmoji
    ) -> LogEmoji:
        if method_emoji is not None:
            return method_emoji
        if default_emoji is not None:
            return default_emoji
        return fallback_emoji

    class ServiceLogger:
        name = logger_name

        @staticmethod
        def error(
            message: str,
            exception: Optional[BaseException] = None,
            error_context: Optional[Dict[str, Any]] = None,
            emoji: Optional[LogEmoji] = None,
        ) -> None:
            """Log an error, attaching the traceback when an exception is given."""
            text = _format_message(
                message, _resolve_emoji(emoji, LogEmoji.ERROR), error_context
            )
            if exception is not None:
                bound.opt(exception=exception).error(text)
            else:
                bound.error(text)

        @staticmethod
        def warning(
            message: str,
            extra_context: Optional[Dict[str, Any]] = None,
            emoji: Optional[LogEmoji] = None,
        ) -> None:
            bound.warning(
                _format_message(
                    message, _resolve_emoji(emoji, LogEmoji.WARNING), extra_context
                )
            )

        @staticmethod
        def info(
            message: str,
            extra_context: Optional[Dict[str, Any]] = None,
            emoji: Optional[LogEmoji] = None,
        ) -> None:
            bound.info(
                _format_message(
                    message, _resolve_emoji(emoji, LogEmoji.INFO), extra_context
                )
            )

        @staticmethod
        def debug(
            message: str,
            extra_context: Optional[Dict[str, Any]] = None,
            emoji: Optional[LogEmoji] = None,
        ) -> None:
            bound.debug(
                _format_message(
                    message, _resolve_emoji(emoji, LogEmoji.DEBUG), extra_context
                )
            )

    return ServiceLogger()
