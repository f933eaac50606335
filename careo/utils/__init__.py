"""
Utility helpers shared across services, workers and routers.
"""

from .intake_key_generator import IntakeKeyGenerator

__all__ = ["IntakeKeyGenerator"]
