"""
secretsync Constants

Centralized constants for magic values, defaults, and configuration.
"""

# Secret keys: uppercase letters, digits, underscore
SECRET_KEY_PATTERN = r"[A-Z0-9_]+"

# Environments created with every new project: (name, slug, is_production)
DEFAULT_ENVIRONMENTS = [
    ("Development", "development", False),
    ("Staging", "staging", False),
    ("Production", "production", True),
]

# Search
SEARCH_MIN_QUERY_LENGTH = 2
SEARCH_PROJECT_LIMIT = 10

# Cache TTL (seconds)
CACHE_TTL = {
    "search": 60,
}

# Database defaults
DEFAULT_DATABASE_URL = "sqlite:///secretsync.db"

# Dashboard defaults
DEFAULT_DASHBOARD_HOST = "127.0.0.1"
DEFAULT_DASHBOARD_PORT = 8401
DEFAULT_CORS_ORIGINS = ["http://localhost:8400", "http://127.0.0.1:8400"]

# Log Configuration
DEFAULT_LOG_DIR = "logs"
LOG_DATE_FORMAT = "%Y-%m-%d"
LOG_TIME_FORMAT = "%H-%M-%S"

# Secret export formats
EXPORT_FORMATS = ["env", "yaml"]

# Actor label used when nobody is identified
UNKNOWN_ACTOR = "Unknown"

# Error Messages
ERROR_INVALID_KEY = "Invalid secret key '{key}'"

# Sensitive Keywords (for secret masking)
SENSITIVE_KEYWORDS = [
    "PASSWORD",
    "TOKEN",
    "SECRET",
    "KEY",
    "PAT",
]
