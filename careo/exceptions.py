# careo/exceptions.py
"""
Custom exceptions for Careo medication rounds.

Centralized location for domain exception classes. Database-layer errors live
in careo/database/exceptions.py.
"""

from typing import Optional


class CareoError(Exception):
    """Base exception for all Careo-specific errors."""

    pass


class OrderValidationError(CareoError):
    """Raised when a medication order violates the order invariants."""

    def __init__(self, message: str, order_id: Optional[str] = None):
        super().__init__(message)
        self.order_id = order_id

    def __str__(self):
        if self.order_id:
            return f"order {self.order_id}: {super().__str__()}"
        return super().__str__()


class IntakeGenerationError(CareoError):
    """Raised when a generation request cannot be carried out at all."""

    pass


class RetryExhaustedError(CareoError):
    """Raised when an operation still fails after its final attempt."""

    def __init__(self, message: str, attempts: int, last_error: Exception):
        super().__init__(message)
        self.attempts = attempts
        self.last_error = last_error
