"""
Worker modules for Careo medication rounds.
"""

from .base_worker import BaseWorker
from .scheduler_worker import SchedulerWorker

__all__ = ["BaseWorker", "SchedulerWorker"]
