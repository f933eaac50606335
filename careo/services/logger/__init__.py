"""
Centralized Logger Service Module.

Usage:
    from careo.services.logger import get_service_logger
    from careo.enums import LoggerName, LogSource

    logger = get_service_logger(LoggerName.INTAKE_GENERATION, LogSource.WORKER)
    logger.info("Generation run started", extra_context={"date": "2024-01-15"})
"""

# Re-export commonly used enums for convenience
from ...enums import LogEmoji, LoggerName, LogLevel, LogSource
from .logger_service import get_service_logger, initialize_global_logger

__all__ = [
    "get_service_logger",
    "initialize_global_logger",
    # Enums
    "LogLevel",
    "LogSource",
    "LoggerName",
    "LogEmoji",
]
