"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

API_PREFIX = "/api"

MIN_JERSEY_NUMBER = 1
MAX_JERSEY_NUMBER = 99

DEFAULT_TOP_PERFORMERS = 6
WEEKLY_TREND_DAYS = 35
WEEKLY_TREND_MAX_WEEKS = 5
# Baseline used by the weekly trend: every player is expected at 7 sessions a week.
SESSIONS_PER_WEEK = 7

DEFAULT_TOKEN_MAX_AGE_SECONDS = 7 * 24 * 3600
MIN_PASSWORD_LENGTH = 6

ALLOWED_IMAGE_EXTENSIONS = frozenset({"jpeg", "jpg", "png", "webp", "gif"})
