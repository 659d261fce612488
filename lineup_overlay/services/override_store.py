"""Per-team store of manually dragged seat positions."""

from typing import Optional

from ..errors import InputError
from ..models import FieldPosition, Session, require_side
from ..utils.logging_utils import setup_logger
from .layout_service import team_position_source

logger = setup_logger(__name__)


class OverrideStore:
    """
    Owns the override maps of both teams in a session.

    Overrides are always stored in split (mode-independent) coordinates.
    """

    def __init__(self, session: Session):
        self.session = session

    def get(self, team: str, seat_index: int) -> Optional[FieldPosition]:
        """Get the override for a seat, or None."""
        state = self.session.team(team)
        if not 0 <= seat_index < state.seat_count:
            return None
        return state.overrides.get(seat_index)

    def set(self, team: str, seat_index: int, position: FieldPosition) -> None:
        """
        Store an override for a seat, clamped to the pitch.

        Raises:
            InputError: If the seat index is outside the team's formation
        """
        state = self.session.team(require_side(team))
        if not state.has_seat(seat_index):
            raise InputError(f"Seat index {seat_index} outside team {team} formation")
        state.overrides[seat_index] = position.clamped()

    def clear(self, team: str) -> None:
        """Remove every override of a team."""
        self.session.team(team).overrides.clear()

    def clear_all(self) -> None:
        for state in self.session.teams().values():
            state.overrides.clear()

    def prune(self, team: str) -> int:
        """Drop overrides whose seat no longer exists; returns how many."""
        state = self.session.team(team)
        stale = [index for index in state.overrides if not 0 <= index < state.seat_count]
        for index in stale:
            del state.overrides[index]
        if stale:
            logger.debug("Pruned %d stale overrides for team %s", len(stale), team)
        return len(stale)

    def effective_position(self, team: str, seat_index: int) -> FieldPosition:
        """
        Override for the seat if one exists, else the formation default.

        Raises:
            InputError: If the seat index is outside the team's formation
        """
        state = self.session.team(team)
        if not 0 <= seat_index < state.seat_count:
            raise InputError(f"Seat index {seat_index} outside team {team} formation")
        return team_position_source(state.formation, state.overrides).position_for(seat_index)
