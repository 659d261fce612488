"""
Session editing service for the Lineup Overlay application.

Every operator edit goes through this service: it validates at the
boundary, mutates the session and then lets the broadcast publisher
observe the result.
"""
from __future__ import annotations

from typing import Any, Callable, Dict, Optional

from ..errors import InputError
from ..models import (
    CardState, Formation, FormationTemplates, Session, TeamLogo, require_side,
    resize_roster
)
from ..utils.constants import (
    MAX_NUMBER_LENGTH, MAX_PLAYER_NAME_LENGTH, MAX_TEAM_NAME_LENGTH, TEAM_SIDES
)
from ..utils.logging_utils import setup_logger
from .override_store import OverrideStore

logger = setup_logger(__name__)


def _check_length(label: str, value: str, limit: int) -> str:
    if not isinstance(value, str):
        raise InputError(f"{label} must be text")
    if len(value) > limit:
        raise InputError(f"{label} is longer than {limit} characters")
    return value


class SessionService:
    """
    Operator-facing editors for formations, rosters, scores and display mode.
    """

    def __init__(
        self,
        session: Session,
        override_store: OverrideStore,
        on_change: Optional[Callable[[], None]] = None,
        on_layout_change: Optional[Callable[[], None]] = None,
    ):
        self.session = session
        self.override_store = override_store
        self.on_change = on_change
        self.on_layout_change = on_layout_change
        self.selected: Dict[str, Optional[int]] = {side: None for side in TEAM_SIDES}

    # ---------- Formation ---------- #

    def change_formation(self, team: str, formation: Formation) -> Formation:
        """
        Switch a team to a new formation.

        The roster is resized to the new seat count (existing players keep
        their seat) and the team's overrides are cleared.

        Raises:
            InputError: If the team or formation is invalid
        """
        state = self.session.team(require_side(team))
        formation.validate()

        state.formation = formation
        state.roster = resize_roster(state.roster, formation.seat_count)
        self.override_store.clear(team)
        self.selected[team] = None
        logger.info("Team %s formation set to %s", team, formation.name)
        self._layout_changed()
        return formation

    def apply_preset(self, team: str, name: str) -> Formation:
        """Switch a team to one of the preset formations by name."""
        formation = FormationTemplates.get_template_by_name(name)
        if formation is None:
            raise InputError(f"Unknown formation preset: {name!r}")
        return self.change_formation(team, formation)

    def reset_layout(self, team: Optional[str] = None) -> None:
        """Drop manual positioning for one team, or both when team is None."""
        if team is None:
            self.override_store.clear_all()
        else:
            self.override_store.clear(require_side(team))
        self._layout_changed()

    # ---------- Players ---------- #

    def update_player(self, team: str, index: int, number: Optional[str] = None,
                      name: Optional[str] = None) -> None:
        """
        Edit a player's number and/or name.

        Raises:
            InputError: On unknown seat or over-long text
        """
        state = self.session.team(require_side(team))
        self._require_seat(team, index)
        if number is not None:
            _check_length("Number", number, MAX_NUMBER_LENGTH)
        if name is not None:
            _check_length("Name", name, MAX_PLAYER_NAME_LENGTH)

        player = state.roster[index]
        if number is not None:
            player.number = number
        if name is not None:
            player.name = name
        self._changed()

    def set_card(self, team: str, index: int, card: CardState) -> None:
        """Show a yellow or red card (never both) or clear it."""
        state = self.session.team(require_side(team))
        self._require_seat(team, index)
        if not isinstance(card, CardState):
            try:
                card = CardState(card)
            except ValueError as exc:
                raise InputError(f"Unknown card: {card!r}") from exc
        state.roster[index].apply_card(card)
        self._changed()

    def set_goals(self, team: str, index: int, goals: int) -> None:
        state = self.session.team(require_side(team))
        self._require_seat(team, index)
        if isinstance(goals, bool) or not isinstance(goals, int) or goals < 0:
            raise InputError("Goals must be a non-negative integer")
        state.roster[index].goals = goals
        self._changed()

    # ---------- Score and identity ---------- #

    def set_score(self, team: str, score: int) -> None:
        if isinstance(score, bool) or not isinstance(score, int) or score < 0:
            raise InputError("Score must be a non-negative integer")
        self.session.team(require_side(team)).score = score
        self._changed()

    def adjust_score(self, team: str, delta: int) -> int:
        """Add delta to a team's score, never going below zero."""
        state = self.session.team(require_side(team))
        if isinstance(delta, bool) or not isinstance(delta, int):
            raise InputError("Score delta must be an integer")
        state.score = max(0, state.score + delta)
        self._changed()
        return state.score

    def set_team_name(self, team: str, name: str) -> None:
        _check_length("Team name", name, MAX_TEAM_NAME_LENGTH)
        self.session.team(require_side(team)).name = name
        self._changed()

    def select_team(self, event: Any) -> bool:
        """
        Apply a catalog selection event ``{team, target}``.

        Malformed events are ignored. Returns True when applied.
        """
        if not isinstance(event, dict):
            logger.debug("Ignoring team selection event of type %s", type(event).__name__)
            return False
        target = str(event.get("target") or "")
        logo = TeamLogo.from_dict(event.get("team"))
        if target not in TEAM_SIDES or logo is None:
            logger.debug("Ignoring malformed team selection event for target %r", target)
            return False

        state = self.session.team(target)
        state.name = logo.display_name[:MAX_TEAM_NAME_LENGTH]
        state.logo = logo
        self._changed()
        return True

    def set_uniform_color(self, team: str, color: str) -> None:
        if not isinstance(color, str) or not color.strip():
            raise InputError("Uniform colour is required")
        self.session.team(require_side(team)).uniform_color = color.strip()
        self._changed()

    def swap_teams(self) -> None:
        """Swap both teams' complete state; manual positioning is discarded."""
        team_a, team_b = self.session.team_a, self.session.team_b
        team_a.side, team_b.side = team_b.side, team_a.side
        self.session.team_a, self.session.team_b = team_b, team_a
        self.override_store.clear_all()
        self.selected = {side: None for side in TEAM_SIDES}
        self._layout_changed()

    # ---------- Display ---------- #

    def set_vertical_mode(self, enabled: bool) -> None:
        self.session.vertical_mode = bool(enabled)
        self._changed()

    def toggle_vertical_mode(self) -> bool:
        self.set_vertical_mode(not self.session.vertical_mode)
        return self.session.vertical_mode

    # ---------- Selection ---------- #

    def select_seat(self, team: str, index: int) -> None:
        """Mark a seat as selected for editing (click on a player card)."""
        self._require_seat(require_side(team), index)
        self.selected[team] = index

    def clear_selection(self, team: Optional[str] = None) -> None:
        for side in ([require_side(team)] if team else TEAM_SIDES):
            self.selected[side] = None

    # ---------- Internal helpers ---------- #

    def _require_seat(self, team: str, index: int) -> None:
        if isinstance(index, bool) or not isinstance(index, int):
            raise InputError("Seat index must be an integer")
        if not self.session.team(team).has_seat(index):
            raise InputError(f"Seat index {index} outside team {team} formation")

    def _changed(self) -> None:
        if self.on_change is not None:
            self.on_change()

    def _layout_changed(self) -> None:
        # Positions are not part of the observed content, so ask for a refresh
        if self.on_layout_change is not None:
            self.on_layout_change()
        else:
            self._changed()
