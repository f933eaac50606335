# careo/constants.py
"""
Global Constants for Careo medication rounds.

Centralized location for application constants to avoid hardcoded values
throughout the codebase.
"""

APPLICATION_NAME = "Careo Medication Rounds"
APPLICATION_VERSION = "1.0.0"

# ====================================================================
# TIMEZONE CONSTANTS
# ====================================================================

# Facility default (UK care homes)
DEFAULT_FACILITY_TIMEZONE = "Europe/London"

# Internal timestamps are always stored in UTC
DEFAULT_TIMEZONE = "UTC"

# ====================================================================
# SHIFT CONSTANTS
# ====================================================================

DEFAULT_DAY_SHIFT_START_HOUR = 8
DEFAULT_DAY_SHIFT_END_HOUR = 20

# ====================================================================
# DOSE TIME CONSTANTS
# ====================================================================

# 24-hour clock, zero padded ("08:00", "22:30")
DOSE_TIME_PATTERN = r"^(?:[01]\d|2[0-3]):[0-5]\d$"
DOSE_TIME_FORMAT = "%H:%M"
DATE_FORMAT = "%Y-%m-%d"

DEFAULT_DOSE_QUANTITY = 1

# Time buckets offered by the medication form
DOSE_TIME_BUCKETS = {
    "Morning": ["08:00", "10:00", "12:00"],
    "Afternoon": ["14:00", "18:00"],
    "Evening": ["22:00", "00:00"],
}

# ====================================================================
# GENERATION JOB CONSTANTS
# ====================================================================

# Daily trigger, 11:00 UTC
DEFAULT_GENERATION_CRON_HOUR_UTC = 11
DEFAULT_GENERATION_CRON_MINUTE_UTC = 0
GENERATION_MISFIRE_GRACE_SECONDS = 3600

DEFAULT_GENERATION_MAX_INSERT_ATTEMPTS = 3
DEFAULT_GENERATION_RETRY_DELAYS_SECONDS = [1, 2, 5]
DEFAULT_GENERATION_MAX_CONCURRENT_ORDERS = 10

# Upper bound on dates covered by a single backfill request
MAX_BACKFILL_DAYS = 31

# Local dates seeded with records when an order is created
INITIAL_GENERATION_DAYS = 7

# Namespace for deterministic intake record ids (uuid5)
INTAKE_RECORD_NAMESPACE = "6f1d2c8e-3b7a-5c4e-9d1f-2a8b7c6e5d4f"

# ====================================================================
# SCHEDULER CONSTANTS
# ====================================================================

SCHEDULER_MAX_INSTANCES = 1
DAILY_GENERATION_JOB_ID = "daily_intake_generation"
STARTUP_GENERATION_JOB_ID = "startup_intake_generation"

# ====================================================================
# LOGGING CONSTANTS
# ====================================================================

LOG_FILE_NAME = "careo_{time:YYYY-MM-DD}.log"
LOG_FILE_ROTATION = "00:00"
LOG_FILE_RETENTION = "30 days"
LOG_CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{extra[logger_name]}</cyan> | "
    "<level>{message}</level>"
)
LOG_FILE_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | "
    "{extra[source]}:{extra[logger_name]} | {message}"
)
