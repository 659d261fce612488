"""
Pointer handling for player cards.

Each team side has its own pointer track so that simultaneous drags on
team A and team B never interfere. A press becomes a drag once the
pointer has moved at least the threshold distance; otherwise the release
is a click. Clicks are delivered after a short delay so that a second
click on the same seat can become a double-click instead.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Optional

from ..errors import InputError
from ..models import FieldPosition, Session, clamp_percent, require_side
from ..utils.constants import CLICK_DELAY_SECONDS, DRAG_THRESHOLD_PX
from ..utils.logging_utils import setup_logger
from .mode_transform import DisplayMode, from_display
from .override_store import OverrideStore
from .scheduler import Scheduler, TimerHandle

logger = setup_logger(__name__)

SeatCallback = Callable[[str, int], None]


@dataclass(frozen=True)
class PitchRect:
    """On-screen rectangle of a pitch surface, in pixels."""
    left: float
    top: float
    width: float
    height: float

    def to_percent(self, client_x: float, client_y: float) -> FieldPosition:
        """Convert a pixel coordinate to a clamped pitch percentage."""
        if self.width <= 0 or self.height <= 0:
            raise InputError("Pitch surface must have a positive size")
        x = (client_x - self.left) / self.width * 100
        y = (client_y - self.top) / self.height * 100
        return FieldPosition(x=clamp_percent(x), y=clamp_percent(y))

    @classmethod
    def from_dict(cls, data: Dict) -> PitchRect:
        try:
            return cls(
                left=float(data["left"]),
                top=float(data["top"]),
                width=float(data["width"]),
                height=float(data["height"]),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise InputError(f"Invalid pitch rectangle: {exc}") from exc


class PointerPhase(Enum):
    """Where a team's pointer track is in its press/drag cycle."""
    IDLE = "idle"
    PRESSED = "pressed"
    DRAGGING = "dragging"


class PointerOutcome(Enum):
    """What a completed press turned out to be."""
    IGNORED = "ignored"
    DRAG = "drag"
    CLICK_PENDING = "click_pending"
    DOUBLE_CLICK = "double_click"
    CANCELLED = "cancelled"


@dataclass
class PointerTrack:
    """State of one active press on a team side."""
    team: str
    seat_index: int
    pointer_id: int
    start_x: float
    start_y: float
    offset_x: float
    offset_y: float
    surface: PitchRect
    phase: PointerPhase = PointerPhase.PRESSED


@dataclass
class PendingClick:
    seat_index: int
    handle: TimerHandle


class DragController:
    """
    Turns pointer events into override updates or click selections.

    Callbacks:
        on_click(team, seat): single click, delivered after the click delay
        on_double_click(team, seat): double-click, delivered immediately
        on_drag_end(team, seat): after a drag is released
    """

    def __init__(
        self,
        session: Session,
        override_store: OverrideStore,
        scheduler: Scheduler,
        on_click: Optional[SeatCallback] = None,
        on_double_click: Optional[SeatCallback] = None,
        on_drag_end: Optional[SeatCallback] = None,
        threshold_px: float = DRAG_THRESHOLD_PX,
        click_delay: float = CLICK_DELAY_SECONDS,
    ):
        self.session = session
        self.override_store = override_store
        self.scheduler = scheduler
        self.on_click = on_click
        self.on_double_click = on_double_click
        self.on_drag_end = on_drag_end
        self.threshold_px = threshold_px
        self.click_delay = click_delay
        self._tracks: Dict[str, PointerTrack] = {}
        self._pending_clicks: Dict[str, PendingClick] = {}

    # ------------------------------------------------------------------
    # Pointer events
    # ------------------------------------------------------------------
    def pointer_down(
        self,
        team: str,
        seat_index: int,
        pointer_id: int,
        client_x: float,
        client_y: float,
        card_center_x: float,
        card_center_y: float,
        surface: PitchRect,
    ) -> None:
        """
        Begin a press on a seat.

        The offset between pointer and card centre is kept so a drag moves
        the grabbed point rather than snapping the card centre to it.

        Raises:
            InputError: For an unknown team or a seat outside the formation
        """
        require_side(team)
        if not self.session.team(team).has_seat(seat_index):
            raise InputError(f"Seat index {seat_index} outside team {team} formation")

        previous = self._tracks.get(team)
        if previous is not None:
            logger.debug("Pointer %s on team %s replaced by pointer %s", previous.pointer_id, team, pointer_id)

        self._tracks[team] = PointerTrack(
            team=team,
            seat_index=seat_index,
            pointer_id=pointer_id,
            start_x=client_x,
            start_y=client_y,
            offset_x=client_x - card_center_x,
            offset_y=client_y - card_center_y,
            surface=surface,
        )

    def pointer_move(self, team: str, pointer_id: int, client_x: float, client_y: float) -> bool:
        """Handle a move; returns True when an override was written."""
        track = self._active_track(team, pointer_id)
        if track is None:
            return False

        if track.phase is PointerPhase.PRESSED:
            displacement = math.hypot(client_x - track.start_x, client_y - track.start_y)
            if displacement < self.threshold_px:
                return False
            track.phase = PointerPhase.DRAGGING

        self._write_override(track, client_x, client_y)
        return True

    def pointer_up(self, team: str, pointer_id: int, client_x: float, client_y: float) -> PointerOutcome:
        """Finish a press, producing a drag end, a pending click or a double-click."""
        track = self._active_track(team, pointer_id)
        if track is None:
            return PointerOutcome.IGNORED

        # The release point counts as a final move
        self.pointer_move(team, pointer_id, client_x, client_y)
        del self._tracks[team]

        if track.phase is PointerPhase.DRAGGING:
            if self.on_drag_end is not None:
                self.on_drag_end(team, track.seat_index)
            return PointerOutcome.DRAG

        return self._register_click(team, track.seat_index)

    def pointer_cancel(self, team: str, pointer_id: int) -> PointerOutcome:
        """Abort a press without emitting a click."""
        track = self._active_track(team, pointer_id)
        if track is None:
            return PointerOutcome.IGNORED
        del self._tracks[team]
        if track.phase is PointerPhase.DRAGGING and self.on_drag_end is not None:
            self.on_drag_end(team, track.seat_index)
        return PointerOutcome.CANCELLED

    def double_click(self, team: str, seat_index: int) -> PointerOutcome:
        """Native double-click from the host: cancel the pending click and open the editor."""
        require_side(team)
        if not self.session.team(team).has_seat(seat_index):
            raise InputError(f"Seat index {seat_index} outside team {team} formation")
        self._cancel_pending_click(team)
        if self.on_double_click is not None:
            self.on_double_click(team, seat_index)
        return PointerOutcome.DOUBLE_CLICK

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def phase(self, team: str) -> PointerPhase:
        track = self._tracks.get(team)
        return track.phase if track else PointerPhase.IDLE

    def has_pending_click(self, team: str) -> bool:
        pending = self._pending_clicks.get(team)
        return pending is not None and pending.handle.pending

    def reset(self) -> None:
        """Drop every track and pending click (e.g. when the surface is torn down)."""
        self._tracks.clear()
        for team in list(self._pending_clicks):
            self._cancel_pending_click(team)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _active_track(self, team: str, pointer_id: int) -> Optional[PointerTrack]:
        track = self._tracks.get(team)
        if track is None or track.pointer_id != pointer_id:
            return None
        return track

    def _write_override(self, track: PointerTrack, client_x: float, client_y: float) -> None:
        adjusted_x = client_x - track.offset_x
        adjusted_y = client_y - track.offset_y
        on_screen = track.surface.to_percent(adjusted_x, adjusted_y)
        mode = DisplayMode.from_vertical_flag(self.session.vertical_mode)
        split_space = from_display(track.team, on_screen, mode)
        self.override_store.set(track.team, track.seat_index, split_space.clamped())

    def _register_click(self, team: str, seat_index: int) -> PointerOutcome:
        pending = self._pending_clicks.get(team)
        if pending is not None and pending.handle.pending and pending.seat_index == seat_index:
            self._cancel_pending_click(team)
            if self.on_double_click is not None:
                self.on_double_click(team, seat_index)
            return PointerOutcome.DOUBLE_CLICK

        self._cancel_pending_click(team)

        def _fire() -> None:
            self._pending_clicks.pop(team, None)
            if self.on_click is not None:
                self.on_click(team, seat_index)

        handle = self.scheduler.call_later(self.click_delay, _fire)
        self._pending_clicks[team] = PendingClick(seat_index=seat_index, handle=handle)
        return PointerOutcome.CLICK_PENDING

    def _cancel_pending_click(self, team: str) -> None:
        pending = self._pending_clicks.pop(team, None)
        if pending is not None:
            pending.handle.cancel()
