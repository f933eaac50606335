# careo/utils/intake_key_generator.py
"""
Intake Key Generator

ROLE: Single authority for the identity of an intake record.

An intake record is identified by the triple (order_id, scheduled_date,
scheduled_time). Every producer of intake records derives both the natural
key and the record id from here, so that repeated or concurrent generation
for the same dose always lands on the same row.

NAMING CONVENTIONS:
• natural key: "{order_id}:{YYYY-MM-DD}:{HH:MM}"
• record id: uuid5(INTAKE_RECORD_NAMESPACE, natural key)
"""

import uuid
from datetime import date
from typing import Tuple

from ..constants import INTAKE_RECORD_NAMESPACE
from .time_utils import format_date_string

_NAMESPACE = uuid.UUID(INTAKE_RECORD_NAMESPACE)


class IntakeKeyGenerator:
    """Generates deterministic keys and ids for intake records."""

    @staticmethod
    def natural_key(
        order_id: str, scheduled_date: date, scheduled_time: str
    ) -> Tuple[str, str, str]:
        """Idempotency key triple in its storage form."""
        return (str(order_id), format_date_string(scheduled_date), scheduled_time)

    @staticmethod
    def key_string(order_id: str, scheduled_date: date, scheduled_time: str) -> str:
        """Natural key joined into a single string."""
        return ":".join(
            IntakeKeyGenerator.natural_key(order_id, scheduled_date, scheduled_time)
        )

    @staticmethod
    def record_id(order_id: str, scheduled_date: date, scheduled_time: str) -> str:
        """Deterministic UUID for the intake record of one scheduled dose."""
        return str(
            uuid.uuid5(
                _NAMESPACE,
                IntakeKeyGenerator.key_string(order_id, scheduled_date, scheduled_time),
            )
        )
