"""
Constants Module

Defines constants used across the doc-mirror project.
"""

# =============================================================================
# API Constants
# =============================================================================

CLICKUP_API_BASE_URL = "https://api.clickup.com/api/v3"
CLICKUP_APP_BASE_URL = "https://app.clickup.com"
DUST_API_BASE_URL = "https://dust.tt/api/v1"

# Markdown is the only format the destination envelope expects
CLICKUP_CONTENT_FORMAT = "text/md"

REQUEST_TIMEOUT = 30.0  # seconds, per HTTP call

# HTTP status codes worth another attempt
RETRYABLE_STATUS_CODES = {408, 429, 500, 502, 503, 504}


# =============================================================================
# Rate Limits
# =============================================================================

# ClickUp: 1 request per second, serialized
SOURCE_MIN_INTERVAL = 1.0
SOURCE_MAX_CONCURRENT = 1

# Dust: 500ms between requests, serialized
DESTINATION_MIN_INTERVAL = 0.5
DESTINATION_MAX_CONCURRENT = 1


# =============================================================================
# Retry Settings
# =============================================================================

DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_BASE_DELAY = 2.0
DEFAULT_RETRY_MAX_DELAY = 30.0
DEFAULT_BACKOFF = "linear"
BACKOFF_STRATEGIES = ("linear", "exponential")


# =============================================================================
# Sync Constants
# =============================================================================

DEFAULT_BATCH_SIZE = 5
DEFAULT_BATCH_PAUSE = 1.0  # seconds between upsert batches

# Marker prefix used in RunResult for roots that could not be fetched
ROOT_FAILURE_PREFIX = "root:"
