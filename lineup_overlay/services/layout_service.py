"""
Layout service for the Lineup Overlay application.

Maps a formation to default seat coordinates and resolves each seat's
effective position by layering manual overrides on top of that layout.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from functools import lru_cache
from typing import Dict, List, Optional, Tuple

from ..models import FieldPosition, Formation, clamp_percent
from ..utils.constants import (
    DEFENSIVE_LINE_Y, GOALKEEPER_Y, LINE_WIDEN_FACTOR, OPPOSING_BASELINE_Y
)


def compute_positions(formation: Formation) -> Tuple[FieldPosition, ...]:
    """
    Compute default seat coordinates for a formation.

    Seats come back in roster order. The goalkeeper sits on the own
    baseline (largest y); outfield lines are evenly spaced from the line in
    front of the goalkeeper up towards the opposing baseline. Within a line
    seats are spread symmetrically about the centre and widened by 20%,
    with roster order reversed so the first player of a line sits on the
    right.

    Raises:
        InputError: If the formation is structurally invalid
    """
    formation.validate()
    return _positions_for_lines(formation.lines)


@lru_cache(maxsize=64)
def _positions_for_lines(lines: Tuple[int, ...]) -> Tuple[FieldPosition, ...]:
    positions: List[FieldPosition] = []
    outfield_lines = len(lines) - 1
    step = (DEFENSIVE_LINE_Y - OPPOSING_BASELINE_Y) / outfield_lines

    for line_index, count in enumerate(lines):
        if line_index == 0:
            y = GOALKEEPER_Y
        else:
            # Re-index so the line nearest the goalkeeper has the highest index
            distance_from_front = outfield_lines - line_index + 1
            y = OPPOSING_BASELINE_Y + step * distance_from_front

        for roster_offset in range(count):
            seat = count - 1 - roster_offset
            base_x = (seat + 1) / (count + 1) * 100
            x = 50 + (base_x - 50) * LINE_WIDEN_FACTOR
            positions.append(FieldPosition(x=clamp_percent(x), y=y))

    return tuple(positions)


class PositionSource(ABC):
    """Something that may know where a seat should be drawn."""

    @abstractmethod
    def position_for(self, seat_index: int) -> Optional[FieldPosition]:
        """Return the seat's position, or None when this source has no opinion."""
        pass


class FormationPositionSource(PositionSource):
    """Default coordinates computed from the formation."""

    def __init__(self, formation: Formation):
        self._positions = compute_positions(formation)

    def position_for(self, seat_index: int) -> Optional[FieldPosition]:
        if 0 <= seat_index < len(self._positions):
            return self._positions[seat_index]
        return None


class OverridePositionSource(PositionSource):
    """Manually dragged coordinates, limited to the formation's seats."""

    def __init__(self, overrides: Dict[int, FieldPosition], seat_count: int):
        self._overrides = overrides
        self._seat_count = seat_count

    def position_for(self, seat_index: int) -> Optional[FieldPosition]:
        # Overrides beyond the current seat count are inert
        if not 0 <= seat_index < self._seat_count:
            return None
        return self._overrides.get(seat_index)


class FallbackPositionSource(PositionSource):
    """Asks each source in turn and returns the first answer."""

    def __init__(self, *sources: PositionSource):
        self._sources = sources

    def position_for(self, seat_index: int) -> Optional[FieldPosition]:
        for source in self._sources:
            position = source.position_for(seat_index)
            if position is not None:
                return position
        return None


def team_position_source(formation: Formation, overrides: Dict[int, FieldPosition]) -> PositionSource:
    """Override-first position source for one team."""
    return FallbackPositionSource(
        OverridePositionSource(overrides, formation.seat_count),
        FormationPositionSource(formation),
    )


def effective_positions(formation: Formation, overrides: Dict[int, FieldPosition]) -> List[FieldPosition]:
    """Resolve every seat of a team to its final split-space position."""
    source = team_position_source(formation, overrides)
    return [source.position_for(index) for index in range(formation.seat_count)]
