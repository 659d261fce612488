"""
Display-mode projection for the Lineup Overlay application.

Split mode draws each team on its own pitch with coordinates unchanged.
Combined-vertical mode draws both teams on one pitch: team A compressed
into the top half, team B mirrored and compressed into the bottom half.
The projection is render-time only; overrides stay in split space.
"""
from enum import Enum

from ..models import FieldPosition
from ..utils.constants import (
    BOTTOM_HALF_SPAN, BOTTOM_HALF_START, COMBINED_WIDEN_FACTOR, TEAM_A, TEAM_B,
    TOP_HALF_SPAN, TOP_HALF_START
)


class DisplayMode(Enum):
    """How the pitch surfaces are laid out."""
    SPLIT = "split"
    COMBINED_VERTICAL = "combined_vertical"

    @classmethod
    def from_vertical_flag(cls, vertical_mode: bool) -> "DisplayMode":
        return cls.COMBINED_VERTICAL if vertical_mode else cls.SPLIT


def to_display(team: str, position: FieldPosition, mode: DisplayMode) -> FieldPosition:
    """Project a split-space position into the given display mode."""
    if mode is DisplayMode.SPLIT:
        return position

    x = 50 + (position.x - 50) * COMBINED_WIDEN_FACTOR
    if team == TEAM_A:
        y = TOP_HALF_START + (position.y / 100) * TOP_HALF_SPAN
    elif team == TEAM_B:
        mirrored_y = 100 - position.y
        y = BOTTOM_HALF_START + (mirrored_y / 100) * BOTTOM_HALF_SPAN
    else:
        raise ValueError(f"Unknown team side: {team!r}")
    return FieldPosition(x=x, y=y)


def from_display(team: str, position: FieldPosition, mode: DisplayMode) -> FieldPosition:
    """Map a display-space position back to split space (exact inverse of to_display)."""
    if mode is DisplayMode.SPLIT:
        return position

    x = 50 + (position.x - 50) / COMBINED_WIDEN_FACTOR
    if team == TEAM_A:
        y = (position.y - TOP_HALF_START) / TOP_HALF_SPAN * 100
    elif team == TEAM_B:
        mirrored_y = (position.y - BOTTOM_HALF_START) / BOTTOM_HALF_SPAN * 100
        y = 100 - mirrored_y
    else:
        raise ValueError(f"Unknown team side: {team!r}")
    return FieldPosition(x=x, y=y)
