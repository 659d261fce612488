"""
Error types for the Lineup Overlay application.

Input problems are rejected at the boundary before any state is touched.
Feed problems are recovered locally by the reconciler.
"""
from typing import Optional


class OverlayError(Exception):
    """Base class for all application errors."""
    pass


class InputError(OverlayError, ValueError):
    """Malformed formation, out-of-range seat index or invalid editor input."""
    pass


class TransientFeedError(OverlayError):
    """Network failure or malformed response from the live-match feed."""

    def __init__(self, source: str, code: str, message: str, details: Optional[str] = None):
        super().__init__(message)
        self.source = source
        self.code = code
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        return {
            "source": self.source,
            "code": self.code,
            "message": self.message,
            **({"details": self.details} if self.details else {}),
        }
