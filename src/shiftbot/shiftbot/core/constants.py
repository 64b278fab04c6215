"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

SECONDS_PER_DAY = 86400
SECONDS_PER_WEEK = 7 * SECONDS_PER_DAY

DEFAULT_SHIFT_TYPE = "normal"
# Width of shifts.type in database/schema.sql
MAX_SHIFT_TYPE_LENGTH = 64
DEFAULT_LOA_REASON = "No reason given"

DEFAULT_LOG_LIMIT = 20
MAX_LOG_LIMIT = 100

DEFAULT_LOA_LIMIT = 50
MAX_USER_LOA_LIMIT = 50
MAX_GUILD_LOA_LIMIT = 200

DEFAULT_EFFECT_TIMEOUT_SECONDS = 5

# Platform permission bit for "Manage Server".
MANAGE_GUILD_PERMISSION = 1 << 5

GENERIC_FAILURE_MESSAGE = "Something went wrong while handling that action."
