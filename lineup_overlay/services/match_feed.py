"""
Match-feed reconciler for the Lineup Overlay application.

Merges live-match data into the session. Two request kinds exist and are
merged by separate functions:

* ``UserLoad``: the operator picked a fixture. Both teams are replaced
  wholesale and manual positioning is discarded.
* ``AutoTick``: a background refresh of the bound fixture. Rosters,
  scores and status are replaced but manual positioning is kept.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional, Union

from ..errors import InputError, TransientFeedError
from ..models import (
    LiveFeedBinding, Player, Session, TeamLogo,
    default_player, parse_formation_string
)
from ..utils.constants import FEED_REFRESH_INTERVAL_SECONDS, MISSED_PENALTY_DETAIL
from ..utils.logging_utils import setup_logger
from .feed_client import FeedClient, FeedEvent, FixtureSnapshot, TeamLineup
from .override_store import OverrideStore
from .scheduler import Scheduler, TimerHandle

logger = setup_logger(__name__)


@dataclass(frozen=True)
class UserLoad:
    """Operator-initiated load of a fixture."""
    fixture_id: str


@dataclass(frozen=True)
class AutoTick:
    """Background refresh of the currently bound fixture."""
    fixture_id: str
    generation: int


ReconcileRequest = Union[UserLoad, AutoTick]


class FeedState(Enum):
    IDLE = "idle"
    POLLING = "polling"


@dataclass
class LoadResult:
    """Outcome of an operator-initiated fixture load."""
    fixture_id: str
    success: bool
    error: Optional[TransientFeedError] = None
    superseded: bool = False

    def to_dict(self) -> Dict:
        data = {"fixtureId": self.fixture_id, "success": self.success}
        if self.error is not None:
            data["error"] = self.error.to_dict()
        if self.superseded:
            data["superseded"] = True
        return data


# ---------- Event attribution ---------- #

def _event_matches_player(event: FeedEvent, player: Player) -> bool:
    # Feeds do not always carry a stable id on every event, so check both
    if event.player_id is not None and player.player_id is not None and event.player_id == player.player_id:
        return True
    return bool(event.player_name) and event.player_name == player.name


def is_counted_goal(event: FeedEvent) -> bool:
    """A goal event that counts towards the scorer's tally."""
    return event.type.lower() == "goal" and event.detail.strip().lower() != MISSED_PENALTY_DETAIL


def card_flags(event: FeedEvent) -> tuple:
    """Return (yellow, red) for a card event."""
    if event.type.lower() != "card":
        return (False, False)
    detail = event.detail.lower()
    if "second yellow" in detail:
        return (True, True)
    return ("yellow" in detail, "red" in detail)


def attribute_events(players: Iterable[Player], events: Iterable[FeedEvent], team_id: Optional[str] = None) -> None:
    """
    Set goals and card flags on players from the feed's event list.

    Events tagged with another team's id are skipped. Goals are counted;
    card flags are set when any matching card of that colour exists.
    """
    relevant = [
        event for event in events
        if team_id is None or event.team_id is None or event.team_id == team_id
    ]
    for player in players:
        goals = 0
        yellow = False
        red = False
        for event in relevant:
            if not _event_matches_player(event, player):
                continue
            if is_counted_goal(event):
                goals += 1
            event_yellow, event_red = card_flags(event)
            yellow = yellow or event_yellow
            red = red or event_red
        player.goals = goals
        player.yellow_card = yellow
        player.red_card = red


def build_roster(lineup: TeamLineup, seat_count: int, events: Iterable[FeedEvent]) -> List[Player]:
    """Roster from a feed lineup, sized to ``seat_count`` and with events attributed."""
    players = [
        Player(number=entry.number, name=entry.name, player_id=entry.player_id)
        for entry in lineup.starters[:seat_count]
    ]
    if len(players) < seat_count:
        logger.debug(
            "Lineup for %s has %d starters for %d seats; padding",
            lineup.team_name, len(players), seat_count,
        )
        players.extend(default_player(i) for i in range(len(players), seat_count))
    attribute_events(players, events, lineup.team_id)
    return players


def _slugify(name: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")


def logo_from_lineup(lineup: TeamLineup) -> Optional[TeamLogo]:
    if lineup.team_id is None and not lineup.team_name:
        return None
    return TeamLogo(
        id=lineup.team_id or _slugify(lineup.team_name),
        slug=_slugify(lineup.team_name),
        english_name=lineup.team_name,
        png=lineup.logo_url,
    )


class MatchFeedReconciler:
    """
    Polls the live-match feed and reconciles it into the session.

    Lifecycle: ``IDLE`` until a fixture is loaded, then ``POLLING`` with a
    refresh tick every ``refresh_interval`` seconds until ``stop``.
    """

    def __init__(
        self,
        session: Session,
        override_store: OverrideStore,
        client: FeedClient,
        scheduler: Scheduler,
        on_change: Optional[Callable[[], None]] = None,
        refresh_interval: float = FEED_REFRESH_INTERVAL_SECONDS,
    ):
        self.session = session
        self.override_store = override_store
        self.client = client
        self.scheduler = scheduler
        self.on_change = on_change
        self.refresh_interval = refresh_interval
        self._timer: Optional[TimerHandle] = None
        self._generation = 0
        self._load_token = 0
        self._pending_load: Optional[int] = None
        self._mergers = {
            UserLoad: self._merge_user_load,
            AutoTick: self._merge_auto_tick,
        }

    @property
    def state(self) -> FeedState:
        return FeedState.POLLING if self.session.live_binding is not None else FeedState.IDLE

    # ---------- Operator actions ---------- #

    def load_fixture(self, fixture_id: str, on_result: Optional[Callable[[LoadResult], None]] = None) -> None:
        """
        Load a fixture and start auto-refresh for it.

        On failure the session is left untouched (including any existing
        binding) and ``on_result`` receives the error.
        """
        fixture_id = str(fixture_id).strip()
        if not fixture_id:
            raise InputError("Fixture id is required")

        self._load_token += 1
        token = self._load_token
        self._pending_load = token
        request = UserLoad(fixture_id=fixture_id)
        logger.info("Loading fixture %s", fixture_id)

        def _done(snapshot: FixtureSnapshot) -> None:
            if token != self._load_token:
                logger.debug("Discarding superseded load of fixture %s", fixture_id)
                self._report(on_result, LoadResult(fixture_id, success=False, superseded=True))
                return
            self._pending_load = None
            self._cancel_timer()
            self.reconcile(request, snapshot)
            self._generation += 1
            self.session.live_binding = LiveFeedBinding(
                fixture_id=fixture_id, auto_refresh_enabled=True, generation=self._generation
            )
            self._schedule_tick()
            logger.info("Fixture %s loaded; auto-refresh every %.0fs", fixture_id, self.refresh_interval)
            self._notify()
            self._report(on_result, LoadResult(fixture_id, success=True))

        def _failed(exc: BaseException) -> None:
            if token != self._load_token:
                logger.debug("Discarding failure of superseded load of fixture %s", fixture_id)
                self._report(on_result, LoadResult(fixture_id, success=False, superseded=True))
                return
            self._pending_load = None
            error = self._as_feed_error(exc)
            logger.warning("Loading fixture %s failed: %s", fixture_id, error.message)
            self._report(on_result, LoadResult(fixture_id, success=False, error=error))

        self.scheduler.run_blocking(lambda: self.client.fetch_fixture(fixture_id), _done, _failed)

    def cancel_load(self) -> bool:
        """
        Abandon the operator load in flight, if any.

        Its fetch may still complete but the result is discarded, so the
        session and any existing binding stay as they are. Returns whether a
        load was pending.
        """
        if self._pending_load is None:
            return False
        logger.info("Abandoning pending fixture load")
        self._load_token += 1
        self._pending_load = None
        return True

    def stop(self) -> None:
        """Cancel auto-refresh and drop the binding; fetched state stays in place."""
        self._cancel_timer()
        self._generation += 1
        self._load_token += 1
        self._pending_load = None
        if self.session.live_binding is not None:
            logger.info("Stopped auto-refresh for fixture %s", self.session.live_binding.fixture_id)
        self.session.live_binding = None

    # ---------- Reconciliation ---------- #

    def reconcile(self, request: ReconcileRequest, snapshot: FixtureSnapshot) -> None:
        """Merge a fetched snapshot using the policy of the request kind."""
        merger = self._mergers.get(type(request))
        if merger is None:
            raise TypeError(f"Unsupported reconcile request: {request!r}")
        merger(request, snapshot)

    def _merge_user_load(self, request: UserLoad, snapshot: FixtureSnapshot) -> None:
        detail = snapshot.detail
        pairs = (
            (self.session.team_a, snapshot.lineups.home, detail.home_goals),
            (self.session.team_b, snapshot.lineups.away, detail.away_goals),
        )
        for state, lineup, goals in pairs:
            formation = parse_formation_string(lineup.formation)
            state.formation = formation
            state.roster = build_roster(lineup, formation.seat_count, detail.events)
            state.score = goals
            state.name = lineup.team_name or state.name
            state.logo = logo_from_lineup(lineup) or state.logo
            state.feed_team_id = lineup.team_id
            self.override_store.clear(state.side)

        self.session.status = detail.status or self.session.status
        self.session.elapsed = detail.elapsed

    def _merge_auto_tick(self, request: AutoTick, snapshot: FixtureSnapshot) -> None:
        detail = snapshot.detail
        pairs = (
            (self.session.team_a, snapshot.lineups.home, detail.home_goals),
            (self.session.team_b, snapshot.lineups.away, detail.away_goals),
        )
        for state, lineup, goals in pairs:
            # Formation, identity and overrides are left as the operator has them
            state.roster = build_roster(lineup, state.formation.seat_count, detail.events)
            state.score = goals

        self.session.status = detail.status or self.session.status
        self.session.elapsed = detail.elapsed

    # ---------- Auto-refresh ---------- #

    def _schedule_tick(self) -> None:
        binding = self.session.live_binding
        if binding is None or not binding.auto_refresh_enabled:
            return
        request = AutoTick(fixture_id=binding.fixture_id, generation=binding.generation)
        self._timer = self.scheduler.call_later(self.refresh_interval, lambda: self._tick(request))

    def _tick(self, request: AutoTick) -> None:
        if not self._is_current(request):
            return
        self._timer = None

        def _done(snapshot: FixtureSnapshot) -> None:
            if not self._is_current(request):
                logger.debug("Discarding stale refresh of fixture %s", request.fixture_id)
                return
            self.reconcile(request, snapshot)
            self._notify()
            self._schedule_tick()

        def _failed(exc: BaseException) -> None:
            if not self._is_current(request):
                return
            error = self._as_feed_error(exc)
            logger.warning("Auto-refresh of fixture %s failed, retrying next interval: %s",
                           request.fixture_id, error.message)
            self._schedule_tick()

        self.scheduler.run_blocking(lambda: self.client.fetch_fixture(request.fixture_id), _done, _failed)

    def _is_current(self, request: AutoTick) -> bool:
        binding = self.session.live_binding
        return (
            binding is not None
            and binding.generation == request.generation
            and binding.fixture_id == request.fixture_id
        )

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    # ---------- Internal helpers ---------- #

    def _notify(self) -> None:
        if self.on_change is not None:
            self.on_change()

    @staticmethod
    def _report(callback: Optional[Callable[[LoadResult], None]], result: LoadResult) -> None:
        if callback is not None:
            callback(result)

    @staticmethod
    def _as_feed_error(exc: BaseException) -> TransientFeedError:
        if isinstance(exc, TransientFeedError):
            return exc
        return TransientFeedError("match-feed", "unexpected", str(exc) or exc.__class__.__name__)
