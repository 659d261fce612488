"""
Utilities package for the Lineup Overlay application.

This package contains constants, time helpers and logging setup.
"""
from .time_utils import now_ts, now_ms, fmt_elapsed
from .logging_utils import setup_logger
from .constants import (
    APP_TITLE, TEAM_A, TEAM_B, TEAM_SIDES, DEFAULT_ROSTER_SIZE,
    DEFAULT_FORMATION_NAME, DEFAULT_FORMATION_LINES
)

__all__ = [
    "now_ts", "now_ms", "fmt_elapsed", "setup_logger", "APP_TITLE",
    "TEAM_A", "TEAM_B", "TEAM_SIDES", "DEFAULT_ROSTER_SIZE",
    "DEFAULT_FORMATION_NAME", "DEFAULT_FORMATION_LINES"
]
