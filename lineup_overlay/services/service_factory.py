"""
Service Factory for dependency injection.

Builds the complete engine (session, override store, editors, drag
controller, feed reconciler, broadcast publisher) around one scheduler so
every component shares the same event loop.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from ..config import OverlayConfig
from ..models import Session
from .broadcast import BroadcastPublisher, BroadcastSink, HttpPostSink, MemorySink
from .drag_controller import DragController
from .feed_client import FeedClient
from .match_feed import MatchFeedReconciler
from .override_store import OverrideStore
from .persistence_service import SnapshotService
from .scheduler import Scheduler
from .session_service import SessionService


@dataclass
class OverlayEngine:
    """All engine services wired around one session."""
    session: Session
    scheduler: Scheduler
    override_store: OverrideStore
    publisher: BroadcastPublisher
    editor: SessionService
    drag: DragController
    feed: MatchFeedReconciler
    snapshots: SnapshotService
    memory_sink: MemorySink
    config: OverlayConfig = field(default_factory=OverlayConfig)

    def state_dict(self) -> Dict[str, Any]:
        """Operator view of the session: snapshot fields plus live status."""
        binding = self.session.live_binding
        return {
            "session": self.snapshots.session_to_snapshot(self.session),
            "status": self.session.status,
            "elapsed": self.session.elapsed,
            "liveFeed": binding.to_dict() if binding else None,
            "feedState": self.feed.state.value,
            "selected": dict(self.editor.selected),
            "broadcastCount": self.publisher.emission_count,
        }

    def apply_snapshot(self, data: Any) -> List[str]:
        """Restore a snapshot onto the live session and let the publisher see it."""
        applied = self.snapshots.apply_snapshot(self.session, data)
        # A restored formation may be smaller than the restored override map
        for side in self.session.teams():
            self.override_store.prune(side)
        self.editor.clear_selection()
        self.publisher.request_refresh()
        return applied

    def auto_save(self) -> Optional[str]:
        """Write a timestamped snapshot into the configured snapshot directory."""
        return self.snapshots.auto_save(self.session, self.config.snapshot_dir)

    def shutdown(self) -> None:
        """Stop polling, pending clicks and pending broadcasts."""
        self.feed.stop()
        self.drag.reset()
        self.publisher.close()


class ServiceFactory:
    """
    Factory for creating service instances with proper dependency injection.
    """

    def __init__(self, config: Optional[OverlayConfig] = None):
        """Initialize factory with a configuration (environment by default)."""
        self.config = config or OverlayConfig.from_env()
        self._snapshot_service: Optional[SnapshotService] = None

    def create_feed_client(self) -> FeedClient:
        """Create the live-match feed client from configuration."""
        return FeedClient(
            base_url=self.config.feed_base_url,
            api_key=self.config.feed_api_key,
            timeout=self.config.feed_timeout,
            max_retries=self.config.feed_retries,
        )

    def create_sinks(self, memory_sink: MemorySink) -> List[BroadcastSink]:
        """In-memory sink always; HTTP push sink when a broadcast URL is configured."""
        sinks: List[BroadcastSink] = [memory_sink]
        if self.config.broadcast_url:
            sinks.append(HttpPostSink(self.config.broadcast_url))
        return sinks

    def create_engine(
        self,
        scheduler: Scheduler,
        session: Optional[Session] = None,
        feed_client: Optional[FeedClient] = None,
        extra_sinks: Sequence[BroadcastSink] = (),
    ) -> OverlayEngine:
        """
        Create a complete engine with its dependencies.

        Args:
            scheduler: Event-loop scheduler shared by all components
            session: Existing session, or a fresh default one
            feed_client: Optional custom feed client
            extra_sinks: Additional broadcast sinks

        Returns:
            Configured OverlayEngine instance
        """
        session = session or Session()
        override_store = OverrideStore(session)
        memory_sink = MemorySink()
        sinks = self.create_sinks(memory_sink) + list(extra_sinks)

        publisher = BroadcastPublisher(
            session, scheduler, sinks, debounce=self.config.broadcast_debounce
        )
        editor = SessionService(
            session, override_store,
            on_change=publisher.observe,
            on_layout_change=publisher.request_refresh,
        )
        drag = DragController(
            session,
            override_store,
            scheduler,
            on_click=editor.select_seat,
            on_double_click=editor.select_seat,
            on_drag_end=lambda _team, _seat: publisher.request_refresh(),
        )
        feed = MatchFeedReconciler(
            session,
            override_store,
            feed_client or self.create_feed_client(),
            scheduler,
            on_change=publisher.observe,
            refresh_interval=self.config.refresh_interval,
        )

        return OverlayEngine(
            session=session,
            scheduler=scheduler,
            override_store=override_store,
            publisher=publisher,
            editor=editor,
            drag=drag,
            feed=feed,
            snapshots=self._get_snapshot_service(),
            memory_sink=memory_sink,
            config=self.config,
        )

    def _get_snapshot_service(self) -> SnapshotService:
        """Get singleton snapshot service."""
        if self._snapshot_service is None:
            self._snapshot_service = SnapshotService()
        return self._snapshot_service
