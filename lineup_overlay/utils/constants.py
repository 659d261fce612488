"""
Constants for the Lineup Overlay application.

This module contains configuration constants used throughout the application.
"""

# Application metadata
APP_TITLE = "Lineup Overlay"

# Team sides
TEAM_A = "A"
TEAM_B = "B"
TEAM_SIDES = (TEAM_A, TEAM_B)

# Roster defaults
DEFAULT_ROSTER_SIZE = 11
DEFAULT_FORMATION_NAME = "4-3-3"
DEFAULT_FORMATION_LINES = (1, 4, 3, 3)
DEFAULT_UNIFORM_COLORS = {
    TEAM_A: "#2563eb",
    TEAM_B: "#dc2626",
}

# Free-text length limits
MAX_NUMBER_LENGTH = 3
MAX_PLAYER_NAME_LENGTH = 40
MAX_TEAM_NAME_LENGTH = 60

# Layout (percent of pitch height, 0 = opposing goal, 100 = own goal)
GOALKEEPER_Y = 90.0
DEFENSIVE_LINE_Y = 72.0
OPPOSING_BASELINE_Y = 8.0
LINE_WIDEN_FACTOR = 1.2

# Combined-vertical projection
TOP_HALF_START = 2.0
TOP_HALF_SPAN = 50.0
BOTTOM_HALF_START = 48.0
BOTTOM_HALF_SPAN = 50.0
COMBINED_WIDEN_FACTOR = 1.15

# Pointer handling
DRAG_THRESHOLD_PX = 6.0
CLICK_DELAY_SECONDS = 0.25

# Broadcast
BROADCAST_DEBOUNCE_SECONDS = 0.1
BROADCAST_PRECISION = 2

# Live-match feed
FEED_REFRESH_INTERVAL_SECONDS = 10.0
FEED_DEFAULT_BASE_URL = "https://v3.football.api-sports.io"
FEED_TIMEOUT_SECONDS = 10.0
FEED_MAX_RETRIES = 1
FEED_RETRY_BACKOFF = 0.5
FEED_RETRY_STATUSES = (429, 500, 502, 503, 504)
# Slack on top of the worst-case fetch time when waiting for an operator load
FEED_LOAD_MARGIN_SECONDS = 5.0
MISSED_PENALTY_DETAIL = "missed penalty"

# Match status before any feed data arrives
DEFAULT_MATCH_STATUS = "NS"

# Operator surface
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 7122
DEFAULT_SNAPSHOT_DIR = "snapshots"
