# =============================================================================
# Recognizer (Azure Computer Vision Read API v3.2)
# =============================================================================

ANALYZE_PATH = "/vision/v3.2/read/analyze"
SUBSCRIPTION_KEY_HEADER = "Ocp-Apim-Subscription-Key"
JOB_LOCATION_HEADER = "Operation-Location"
SUBMIT_ACCEPTED_STATUS = 202

POLL_INTERVAL_SECONDS = 1.5  # Delay before each status check
POLL_MAX_ATTEMPTS = 20  # 20 x 1.5s ~ 30s worst case
POLL_DEADLINE_GRACE_SECONDS = 2.0  # Slack on top of attempts x interval
RECOGNIZER_CLIENT_TIMEOUT_SECONDS = 15.0  # Per-request HTTP timeout, capped by the poll deadline
INTAKE_TIMEOUT_SECONDS = 45.0  # Hard bound on one scan, submission included


# =============================================================================
# Input limits
# =============================================================================

MAX_IMAGE_SIZE_MB = 20


# =============================================================================
# Field extraction
# =============================================================================

NAME_MIN_LENGTH = 6
NAME_MAX_LENGTH = 49
NAME_BLOCKLIST = ("republic", "philippines", "identification")
ADDRESS_KEYWORDS = ("BRGY", "BARANGAY", "CITY", "PROVINCE", "STREET", "PUROK")


# =============================================================================
# Reference lookups
# =============================================================================

REFERENCE_RESULT_LIMIT = 20  # Same window the address pickers use
REFERENCE_CACHE_TTL_SECONDS = 3600
ZIP_CODE_MIN = 1000
ZIP_CODE_MAX = 9999
