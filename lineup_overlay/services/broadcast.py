"""
Broadcast publisher for the Lineup Overlay application.

Assembles the composite overlay payload from the session and pushes it to
the configured sinks. Bursts of changes are coalesced with a debounce
timer; team identity changes flush on the next tick instead.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional, Protocol, Sequence, Tuple

import requests

from ..models import Session, TeamState
from ..utils.constants import BROADCAST_DEBOUNCE_SECONDS, BROADCAST_PRECISION, TEAM_A, TEAM_B
from ..utils.logging_utils import setup_logger
from ..utils.time_utils import fmt_elapsed, now_ms
from .layout_service import effective_positions
from .mode_transform import DisplayMode, to_display
from .scheduler import Scheduler, TimerHandle

logger = setup_logger(__name__)


class BroadcastSink(Protocol):
    def send(self, payload: Dict[str, Any]) -> None: ...


class MemorySink:
    """Keeps emitted payloads in memory; the operator surface serves the latest."""

    def __init__(self, keep: int = 50):
        self.keep = keep
        self.payloads: List[Dict[str, Any]] = []

    def send(self, payload: Dict[str, Any]) -> None:
        self.payloads.append(payload)
        if len(self.payloads) > self.keep:
            del self.payloads[: len(self.payloads) - self.keep]

    @property
    def latest(self) -> Optional[Dict[str, Any]]:
        return self.payloads[-1] if self.payloads else None


class HttpPostSink:
    """POSTs each payload as JSON to an overlay renderer."""

    def __init__(self, url: str, timeout: float = 2.0, session: Optional[requests.Session] = None):
        self.url = url
        self.timeout = timeout
        self.http = session or requests.Session()

    def send(self, payload: Dict[str, Any]) -> None:
        response = self.http.post(self.url, json=payload, timeout=self.timeout)
        response.raise_for_status()


# ---------- Payload assembly ---------- #

def _team_block(state: TeamState) -> Dict[str, Any]:
    return {
        "name": state.name,
        "logo": state.logo.to_dict() if state.logo else None,
        "formation": state.formation.to_dict(),
        "uniformColor": state.uniform_color,
        "score": state.score,
    }


def _seats(state: TeamState, mode: DisplayMode) -> List[Dict[str, Any]]:
    positions = effective_positions(state.formation, state.overrides)
    seats = []
    for index, (player, position) in enumerate(zip(state.roster, positions)):
        shown = to_display(state.side, position, mode)
        seats.append({
            "id": f"{state.side}-{index}",
            "team": state.side,
            "index": index,
            "number": player.number,
            "name": player.name,
            "x": round(shown.x, BROADCAST_PRECISION),
            "y": round(shown.y, BROADCAST_PRECISION),
            "yellowCard": player.yellow_card,
            "redCard": player.red_card,
            "goals": player.goals,
        })
    return seats


def build_payload(session: Session) -> Dict[str, Any]:
    """Assemble the full overlay payload with final, mode-projected seat positions."""
    mode = DisplayMode.from_vertical_flag(session.vertical_mode)
    return {
        "timestamp": now_ms(),
        "verticalMode": session.vertical_mode,
        "match": {
            "scoreA": session.team_a.score,
            "scoreB": session.team_b.score,
            "elapsed": session.elapsed,
            "clock": fmt_elapsed(session.elapsed),
            "status": session.status,
            "teamA": _team_block(session.team_a),
            "teamB": _team_block(session.team_b),
        },
        "teams": {
            TEAM_A: _seats(session.team_a, mode),
            TEAM_B: _seats(session.team_b, mode),
        },
    }


def _identity_fingerprint(session: Session) -> Tuple:
    return (session.team_a.identity(), session.team_b.identity())


def _content_fingerprint(session: Session) -> Tuple:
    def team(state: TeamState) -> Tuple:
        return (
            state.score,
            state.formation.name,
            state.formation.lines,
            state.uniform_color,
            tuple(
                (p.number, p.name, p.yellow_card, p.red_card, p.goals)
                for p in state.roster
            ),
        )

    return (
        team(session.team_a),
        team(session.team_b),
        session.vertical_mode,
        session.status,
        session.elapsed,
    )


class BroadcastPublisher:
    """
    Debounced emitter of the overlay payload.

    ``observe`` is called after every state mutation. The state present
    when the publisher is created is the baseline and is not emitted.
    """

    def __init__(
        self,
        session: Session,
        scheduler: Scheduler,
        sinks: Sequence[BroadcastSink] = (),
        debounce: float = BROADCAST_DEBOUNCE_SECONDS,
    ):
        self.session = session
        self.scheduler = scheduler
        self.sinks = list(sinks)
        self.debounce = debounce
        self.emission_count = 0
        self._timer: Optional[TimerHandle] = None
        self._timer_immediate = False
        self._identity = _identity_fingerprint(session)
        self._content = _content_fingerprint(session)

    def add_sink(self, sink: BroadcastSink) -> None:
        self.sinks.append(sink)

    def observe(self) -> bool:
        """Compare the session with the last observed state; schedule emission on change."""
        identity = _identity_fingerprint(self.session)
        content = _content_fingerprint(self.session)
        identity_changed = identity != self._identity
        content_changed = content != self._content
        self._identity = identity
        self._content = content

        if identity_changed:
            self._schedule(0.0, immediate=True)
        elif content_changed:
            self._schedule(self.debounce)
        return identity_changed or content_changed

    def request_refresh(self) -> None:
        """Schedule a debounced emission regardless of observed changes (e.g. after a drag)."""
        self.observe()
        self._schedule(self.debounce)

    def flush(self) -> Dict[str, Any]:
        """Cancel any pending timer and emit now."""
        self._cancel_timer()
        return self._emit()

    @property
    def pending(self) -> bool:
        return self._timer is not None and self._timer.pending

    def close(self) -> None:
        self._cancel_timer()

    # ---------- Internal helpers ---------- #

    def _schedule(self, delay: float, immediate: bool = False) -> None:
        if self.pending and self._timer_immediate:
            # A zero-delay flush is already queued and will carry the latest state
            return
        self._cancel_timer()
        self._timer_immediate = immediate
        self._timer = self.scheduler.call_later(delay, self._on_timer)

    def _on_timer(self) -> None:
        self._timer = None
        self._timer_immediate = False
        self._emit()

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self._timer_immediate = False

    def _emit(self) -> Dict[str, Any]:
        payload = build_payload(self.session)
        self.emission_count += 1
        logger.debug("Broadcast #%d (%d sinks)", self.emission_count, len(self.sinks))
        for sink in self.sinks:
            self.scheduler.run_blocking(
                lambda sink=sink: sink.send(payload),
                lambda _result: None,
                lambda exc, sink=sink: logger.warning(
                    "Broadcast sink %s failed: %s", sink.__class__.__name__, exc
                ),
            )
        return payload
