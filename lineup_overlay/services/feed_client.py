"""
Live-match feed client.

Reads fixture lineups and fixture detail from an API-Football (v3) style
endpoint. Only the fields the reconciler consumes are parsed; everything
else in the payload is ignored.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ..errors import TransientFeedError
from ..utils.constants import (
    FEED_DEFAULT_BASE_URL, FEED_MAX_RETRIES, FEED_RETRY_BACKOFF,
    FEED_RETRY_STATUSES, FEED_TIMEOUT_SECONDS
)
from ..utils.logging_utils import setup_logger

logger = setup_logger(__name__)

SOURCE = "match-feed"


@dataclass
class LineupPlayer:
    player_id: Optional[str]
    name: str
    number: str


@dataclass
class TeamLineup:
    team_id: Optional[str]
    team_name: str
    logo_url: Optional[str]
    formation: Optional[str]
    starters: List[LineupPlayer] = field(default_factory=list)


@dataclass
class FixtureLineups:
    fixture_id: str
    home: TeamLineup
    away: TeamLineup


@dataclass
class FeedEvent:
    type: str
    detail: str
    player_id: Optional[str]
    player_name: Optional[str]
    team_id: Optional[str]
    minute: Optional[int] = None


@dataclass
class FixtureDetail:
    fixture_id: str
    home_goals: int
    away_goals: int
    status: str
    elapsed: Optional[int]
    home_team_id: Optional[str] = None
    away_team_id: Optional[str] = None
    events: List[FeedEvent] = field(default_factory=list)


@dataclass
class FixtureSnapshot:
    """Lineups and detail of one fixture, fetched together."""
    lineups: FixtureLineups
    detail: FixtureDetail

    @property
    def fixture_id(self) -> str:
        return self.detail.fixture_id


def _opt_str(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(value)


def _to_int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def create_retry_session(max_retries: int = FEED_MAX_RETRIES,
                         backoff_factor: float = FEED_RETRY_BACKOFF) -> requests.Session:
    """Session that retries idempotent reads on connection errors and busy statuses."""
    adapter = HTTPAdapter(
        max_retries=Retry(
            total=max_retries,
            backoff_factor=backoff_factor,
            status_forcelist=FEED_RETRY_STATUSES,
            allowed_methods=frozenset(["GET"]),
            raise_on_status=False,
        )
    )
    session = requests.Session()
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session


class FeedClient:
    """
    Thin requests-based client for the live-match feed.

    Every failure (network, HTTP status, JSON, missing sections) is raised
    as ``TransientFeedError`` so callers only handle one error type.
    """

    def __init__(
        self,
        base_url: str = FEED_DEFAULT_BASE_URL,
        api_key: Optional[str] = None,
        timeout: float = FEED_TIMEOUT_SECONDS,
        session: Optional[requests.Session] = None,
        max_retries: int = FEED_MAX_RETRIES,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self.http = session or create_retry_session(max_retries)

    # ---------- Public reads ---------- #

    def fetch_lineups(self, fixture_id: str) -> FixtureLineups:
        """Fetch both starting elevens and formations for a fixture."""
        entries = self._get("/fixtures/lineups", {"fixture": fixture_id})
        if len(entries) < 2:
            raise TransientFeedError(SOURCE, "lineups_missing", f"Lineups not available for fixture {fixture_id}")
        return FixtureLineups(
            fixture_id=str(fixture_id),
            home=self._parse_lineup(entries[0]),
            away=self._parse_lineup(entries[1]),
        )

    def fetch_detail(self, fixture_id: str) -> FixtureDetail:
        """Fetch score, status, elapsed minutes and events for a fixture."""
        entries = self._get("/fixtures", {"id": fixture_id})
        if not entries:
            raise TransientFeedError(SOURCE, "fixture_missing", f"Fixture {fixture_id} not found")
        return self._parse_detail(str(fixture_id), entries[0])

    def fetch_fixture(self, fixture_id: str) -> FixtureSnapshot:
        """Fetch lineups and detail, ordering lineups to match home/away."""
        lineups = self.fetch_lineups(fixture_id)
        detail = self.fetch_detail(fixture_id)
        if (
            detail.home_team_id is not None
            and lineups.away.team_id == detail.home_team_id
            and lineups.home.team_id != detail.home_team_id
        ):
            lineups = FixtureLineups(fixture_id=lineups.fixture_id, home=lineups.away, away=lineups.home)
        return FixtureSnapshot(lineups=lineups, detail=detail)

    # ---------- Internal helpers ---------- #

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.api_key:
            headers["x-apisports-key"] = self.api_key
        return headers

    def _get(self, path: str, params: Dict[str, Any]) -> List[Dict[str, Any]]:
        url = f"{self.base_url}{path}"
        try:
            response = self.http.get(url, headers=self._headers(), params=params, timeout=self.timeout)
            response.raise_for_status()
        except requests.exceptions.Timeout as exc:
            raise TransientFeedError(SOURCE, "timeout", f"Request to {path} timed out", str(exc)) from exc
        except requests.exceptions.HTTPError as exc:
            status = getattr(exc.response, "status_code", None)
            raise TransientFeedError(SOURCE, f"http_{status}", f"Feed returned HTTP {status} for {path}") from exc
        except requests.exceptions.RequestException as exc:
            raise TransientFeedError(SOURCE, "network", f"Request to {path} failed", str(exc)) from exc

        try:
            payload = response.json()
        except ValueError as exc:
            raise TransientFeedError(SOURCE, "bad_json", f"Feed returned invalid JSON for {path}") from exc

        if not isinstance(payload, dict):
            raise TransientFeedError(SOURCE, "bad_payload", f"Unexpected payload shape for {path}")
        errors = payload.get("errors")
        if errors:
            raise TransientFeedError(SOURCE, "api_error", f"Feed reported errors for {path}", str(errors))
        entries = payload.get("response")
        if not isinstance(entries, list):
            raise TransientFeedError(SOURCE, "bad_payload", f"Payload for {path} has no response list")
        return entries

    @staticmethod
    def _parse_lineup(entry: Dict[str, Any]) -> TeamLineup:
        if not isinstance(entry, dict):
            raise TransientFeedError(SOURCE, "bad_payload", "Lineup entry is not an object")
        team = entry.get("team") or {}
        starters = []
        for item in entry.get("startXI") or []:
            player = (item or {}).get("player") or {}
            name = player.get("name")
            if not name:
                continue
            number = player.get("number")
            starters.append(LineupPlayer(
                player_id=_opt_str(player.get("id")),
                name=str(name),
                number="" if number is None else str(number),
            ))
        return TeamLineup(
            team_id=_opt_str(team.get("id")),
            team_name=str(team.get("name") or ""),
            logo_url=team.get("logo"),
            formation=entry.get("formation"),
            starters=starters,
        )

    @staticmethod
    def _parse_detail(fixture_id: str, entry: Dict[str, Any]) -> FixtureDetail:
        if not isinstance(entry, dict):
            raise TransientFeedError(SOURCE, "bad_payload", "Fixture entry is not an object")
        fixture = entry.get("fixture") or {}
        status = fixture.get("status") or {}
        goals = entry.get("goals") or {}
        teams = entry.get("teams") or {}

        events = []
        for item in entry.get("events") or []:
            if not isinstance(item, dict):
                continue
            player = item.get("player") or {}
            team = item.get("team") or {}
            time_info = item.get("time") or {}
            events.append(FeedEvent(
                type=str(item.get("type") or ""),
                detail=str(item.get("detail") or ""),
                player_id=_opt_str(player.get("id")),
                player_name=player.get("name"),
                team_id=_opt_str(team.get("id")),
                minute=time_info.get("elapsed"),
            ))

        elapsed = status.get("elapsed")
        return FixtureDetail(
            fixture_id=fixture_id,
            home_goals=max(0, _to_int(goals.get("home"))),
            away_goals=max(0, _to_int(goals.get("away"))),
            status=str(status.get("short") or ""),
            elapsed=_to_int(elapsed) if elapsed is not None else None,
            home_team_id=_opt_str((teams.get("home") or {}).get("id")),
            away_team_id=_opt_str((teams.get("away") or {}).get("id")),
            events=events,
        )
