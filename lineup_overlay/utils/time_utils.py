"""
Utility functions for the Lineup Overlay application.

This module contains common time helpers used throughout the application.
"""
import time


def now_ts() -> float:
    """
    Get current timestamp in epoch seconds.

    Returns:
        Current time as floating point epoch seconds
    """
    return time.time()


def now_ms() -> int:
    """
    Get current timestamp in epoch milliseconds.

    Example:
        >>> isinstance(now_ms(), int)
        True
    """
    return int(now_ts() * 1000)


def fmt_elapsed(minutes) -> str:
    """Format elapsed match minutes the way scoreboards show them ("67'")."""
    if minutes is None:
        return ""
    return f"{int(minutes)}'"
