"""
Services package for the Lineup Overlay application.

This package contains the layout engine, editors, pointer handling, the
live-feed reconciler, broadcast publishing and snapshot persistence.
"""
from .layout_service import (
    compute_positions, effective_positions, PositionSource,
    FormationPositionSource, OverridePositionSource, FallbackPositionSource
)
from .override_store import OverrideStore
from .mode_transform import DisplayMode, to_display, from_display
from .scheduler import Scheduler, TimerHandle, ManualScheduler, AsyncioScheduler
from .drag_controller import DragController, PitchRect, PointerPhase, PointerOutcome
from .feed_client import FeedClient
from .match_feed import MatchFeedReconciler, UserLoad, AutoTick, LoadResult, FeedState
from .broadcast import BroadcastPublisher, MemorySink, HttpPostSink, build_payload
from .persistence_service import SnapshotService
from .session_service import SessionService
from .service_factory import ServiceFactory, OverlayEngine

__all__ = [
    "compute_positions", "effective_positions", "PositionSource",
    "FormationPositionSource", "OverridePositionSource", "FallbackPositionSource",
    "OverrideStore", "DisplayMode", "to_display", "from_display",
    "Scheduler", "TimerHandle", "ManualScheduler", "AsyncioScheduler",
    "DragController", "PitchRect", "PointerPhase", "PointerOutcome",
    "FeedClient", "MatchFeedReconciler", "UserLoad", "AutoTick", "LoadResult", "FeedState",
    "BroadcastPublisher", "MemorySink", "HttpPostSink", "build_payload",
    "SnapshotService", "SessionService", "ServiceFactory", "OverlayEngine"
]
