"""
Session model for the Lineup Overlay application.

A session aggregates both teams, the display mode and the optional
live-feed binding. It is the unit exported as a snapshot and the unit
serialized for broadcast.
"""
from dataclasses import dataclass, field
from typing import Dict, Optional

from .team_state import TeamState
from ..errors import InputError
from ..utils.constants import DEFAULT_MATCH_STATUS, TEAM_A, TEAM_B, TEAM_SIDES


@dataclass
class LiveFeedBinding:
    """Fixture the reconciler is bound to while auto-refresh runs."""
    fixture_id: str
    auto_refresh_enabled: bool = True
    generation: int = 0

    def to_dict(self) -> Dict:
        return {
            "fixtureId": self.fixture_id,
            "autoRefreshEnabled": self.auto_refresh_enabled,
        }


@dataclass
class Session:
    """
    Complete overlay state.

    Attributes:
        team_a: Home/left team
        team_b: Away/right team
        vertical_mode: Combined-vertical display when True, split otherwise
        status: Short match status code from the feed ("NS", "1H", "FT", ...)
        elapsed: Elapsed match minutes from the feed, if known
        live_binding: Fixture binding while auto-refresh is active
    """
    team_a: TeamState = field(default_factory=lambda: TeamState(side=TEAM_A))
    team_b: TeamState = field(default_factory=lambda: TeamState(side=TEAM_B))
    vertical_mode: bool = False
    status: str = DEFAULT_MATCH_STATUS
    elapsed: Optional[int] = None
    live_binding: Optional[LiveFeedBinding] = None

    def team(self, side: str) -> TeamState:
        """
        Get a team's state by side.

        Raises:
            InputError: If side is not "A" or "B"
        """
        if side == TEAM_A:
            return self.team_a
        if side == TEAM_B:
            return self.team_b
        raise InputError(f"Unknown team side: {side!r}")

    def teams(self) -> Dict[str, TeamState]:
        return {TEAM_A: self.team_a, TEAM_B: self.team_b}


def require_side(side: str) -> str:
    """Validate a team side string at the boundary."""
    if side not in TEAM_SIDES:
        raise InputError(f"Unknown team side: {side!r}")
    return side
