"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_SESSION_WINDOW_SECONDS = 120
MAX_SESSION_WINDOW_SECONDS = 3 * 60 * 60
DEFAULT_MARK_MAX_ATTEMPTS = 3
DEFAULT_OPEN_SESSION_MAX_ATTEMPTS = 3
CODE_TOKEN_BYTES = 24
