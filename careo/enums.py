# careo/enums.py
"""
Application Enums - Centralized enum definitions.

All enums live here so that models, constants and services can import them
without creating circular dependencies.
"""

from enum import Enum


# =============================================================================
# MEDICATION ORDERS
# =============================================================================


class ScheduleType(str, Enum):
    """How doses of an order are planned. Values match the clinician form."""

    SCHEDULED = "Scheduled"
    PRN = "PRN (As Needed)"


class MedicationFrequency(str, Enum):
    """Clinical frequency of a medication order."""

    ONCE_DAILY = "Once daily (OD)"
    TWICE_DAILY = "Twice daily (BD)"
    THREE_TIMES_DAILY = "Three times daily (TD)"
    FOUR_TIMES_DAILY_QDS = "Four times daily (QDS)"
    FOUR_TIMES_DAILY_QIS = "Four times daily (QIS)"
    AS_NEEDED = "As Needed (PRN)"
    ONE_TIME = "One time (STAT)"
    WEEKLY = "Weekly"
    MONTHLY = "Monthly"


class OrderStatus(str, Enum):
    """Lifecycle status of a medication order. Only ACTIVE is generated."""

    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# =============================================================================
# INTAKE RECORDS
# =============================================================================


class ShiftLabel(str, Enum):
    """Facility staffing shift a dose is attributed to."""

    DAY = "day"
    NIGHT = "night"


class AdministrationStatus(str, Enum):
    """Administration state of an intake record, set by the staff workflow."""

    PENDING = "pending"
    ADMINISTERED = "administered"
    MISSED = "missed"
    SKIPPED = "skipped"


class InsertOutcome(str, Enum):
    """Result of an idempotent intake record insert."""

    INSERTED = "inserted"
    ALREADY_EXISTS = "already_exists"


# =============================================================================
# GENERATION RUNS
# =============================================================================


class GenerationRunStatus(str, Enum):
    """Final status of one daily generation run."""

    COMPLETED = "completed"
    COMPLETED_WITH_FAILURES = "completed_with_failures"
    ABORTED = "aborted"


class GenerationFailureKind(str, Enum):
    """Why a single order failed to generate for a date."""

    VALIDATION = "validation"
    TRANSIENT = "transient"
    UNEXPECTED = "unexpected"


class GenerationTrigger(str, Enum):
    """What started a generation run."""

    SCHEDULED = "scheduled"
    STARTUP = "startup"
    MANUAL = "manual"
    BACKFILL = "backfill"
    ORDER_CREATED = "order_created"


# =============================================================================
# LOGGING SYSTEM
# =============================================================================


class LogLevel(str, Enum):
    """Log level constants for centralized logging system."""

    TRACE = "TRACE"
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogSource(str, Enum):
    """Log source constants for identifying log origins."""

    API = "api"
    WORKER = "worker"
    SYSTEM = "system"
    DATABASE = "database"
    SCHEDULER = "scheduler"


class LogEmoji(str, Enum):
    """Type-safe emoji constants for log messages."""

    SUCCESS = "✅"
    COMPLETED = "✅"
    FAILED = "❌"
    ERROR = "❌"
    WARNING = "⚠️"
    INFO = "ℹ️"
    DEBUG = "🐞"
    CRITICAL = "☠️"
    SKIPPED = "⏭️"

    PROCESSING = "🔄"
    RETRY = "🔁"
    RUNNING = "▶️"
    STOPPED = "⏹️"

    SCHEDULER = "⏰"
    CALENDAR = "📅"
    MEDICATION = "💊"
    DATABASE = "🗄️"
    STARTUP = "🚀"
    SHUTDOWN = "🛑"
    SUMMARY = "📋"


class LoggerName(str, Enum):
    """Logger name constants for categorizing log entries."""

    REQUEST_LOGGER = "request_logger"
    ERROR_HANDLER = "error_handler"

    SCHEDULER_WORKER = "scheduler_worker"

    INTAKE_GENERATION = "intake_generation"
    SCHEDULING_SERVICE = "scheduling_service"
    DATABASE = "database"
    SYSTEM = "system"


class WorkerType(str, Enum):
    """Worker type identifiers for status reporting and monitoring."""

    SCHEDULER_WORKER = "SchedulerWorker"
    UNKNOWN = "Unknown"
