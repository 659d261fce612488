"""
Lineup Overlay

Drives a broadcast overlay that shows two football teams' line-ups on a
pitch graphic. Operators edit formations, rosters and scores, drag player
cards into place, or bind the session to a live match feed; every visible
change is pushed to broadcast consumers.

This package provides the engine services and a Flask operator API.
"""
from .config import OverlayConfig, SurfaceConfig
from .errors import InputError, OverlayError, TransientFeedError
from .models import Formation, Player, Session, TeamState
from .services import ServiceFactory, OverlayEngine, SnapshotService
from .ui import create_app, run_web_app
from .utils import APP_TITLE

__version__ = "1.0.0"

__all__ = [
    "OverlayConfig", "SurfaceConfig", "InputError", "OverlayError", "TransientFeedError",
    "Formation", "Player", "Session", "TeamState",
    "ServiceFactory", "OverlayEngine", "SnapshotService",
    "create_app", "run_web_app", "APP_TITLE"
]
