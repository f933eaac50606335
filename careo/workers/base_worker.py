"""
Base worker class for the Careo worker architecture.

Provides common interfaces and utilities for all worker types.

Lifecycle:
- start()/stop() set the running flag and call initialize()/cleanup()
- Workers register their own scheduled jobs in initialize(); the base class
  never starts background loops
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from ..enums import LoggerName, LogSource
from ..services.logger import get_service_logger

logger = get_service_logger(LoggerName.SYSTEM, LogSource.WORKER)


class BaseWorker(ABC):
    """
    Abstract base class for all Careo workers.

    Provides common interface and utilities for worker implementation.
    Each worker is responsible for a specific domain of functionality.
    """

    def __init__(self, name: str):
        """
        Initialize base worker.

        Args:
            name: Worker name for logging and identification
        """
        self.name = name
        self.running = False

    async def start(self) -> None:
        """Start the worker."""
        logger.info(f"Starting {self.name} worker")
        self.running = True
        await self.initialize()

    async def stop(self) -> None:
        """Stop the worker."""
        logger.info(f"Stopping {self.name} worker")
        self.running = False
        await self.cleanup()

    @abstractmethod
    async def initialize(self) -> None:
        """Initialize worker-specific resources."""
        pass

    @abstractmethod
    async def cleanup(self) -> None:
        """Cleanup worker-specific resources."""
        pass

    def log_error(self, message: str, error: Optional[Exception] = None) -> None:
        """Log error message with worker name prefix."""
        if error:
            logger.error(f"[{self.name}] {message}: {error}", exception=error)
        else:
            logger.error(f"[{self.name}] {message}")

    def get_status(self) -> Dict[str, Any]:
        """
        Get current worker status.

        Returns:
            Dictionary with worker status information
        """
        return {
            "name": self.name,
            "running": self.running,
            "healthy": self.is_healthy(),
            "worker_type": self.__class__.__name__,
        }

    def is_healthy(self) -> bool:
        """
        Check if worker is in a healthy state.

        Returns:
            True if worker is healthy, False otherwise
        """
        return self.running
