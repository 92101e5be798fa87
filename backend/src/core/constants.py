"""Application constants and configuration values."""

from core.config import FRONTEND_URL

# Database field lengths
MAX_NAME_LENGTH = 100
MAX_BODY_LOCATION_LENGTH = 100
MAX_COLOR_LENGTH = 20
MAX_NOTES_LENGTH = 5000
MAX_PATIENT_NOTE_LENGTH = 2000

# Database connection settings
DB_POOL_RECYCLE_SECONDS = 300  # 5 minutes

# CORS origins for development and production
_CORS_ORIGINS_RAW = [
    "http://localhost:5173",
    FRONTEND_URL,
]
CORS_ORIGINS = [origin for origin in _CORS_ORIGINS_RAW if origin and origin.strip()]

# Date/time string formats (stored as plain strings, never timezone-converted)
DATE_STRING_FORMAT = "%Y-%m-%d"
TIME_STRING_FORMAT = "%H:%M:%S"

# Treatment session planning
SESSION_INTERVAL_DAYS = 7  # Weekly cadence between generated sessions
MIN_PLANNED_SESSIONS = 1
MAX_PLANNED_SESSIONS = 50
MIN_LIGHT_BATH_DURATION = 1  # Units of 7 minutes
MAX_LIGHT_BATH_DURATION = 10  # 10 units = 70 minutes

# Default attendance times for generated sessions.
# Two distinct policies exist; see services.treatment_session_service.
DEFAULT_SESSION_TIME = "19:30"
DEFAULT_TUESDAY_SESSION_TIME = "21:00"

# Treatment record
MIN_RETURN_WEEKS = 1
MAX_RETURN_WEEKS = 52

# Session progress
DEFAULT_UPCOMING_SESSION_DAYS = 7

# Schedule settings
MIN_DAY_OF_WEEK = 0  # Sunday
MAX_DAY_OF_WEEK = 6  # Saturday
DEFAULT_MAX_CONCURRENT = 1

# Light bath colors accepted at the API boundary
LIGHT_BATH_COLORS = [
    "azul", "verde", "amarelo", "vermelho", "violeta", "branco", "laranja"
]
