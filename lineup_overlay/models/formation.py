"""Formation and pitch-coordinate models for the Lineup Overlay application."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from ..errors import InputError
from ..utils.constants import DEFAULT_FORMATION_LINES, DEFAULT_FORMATION_NAME

_SEPARATORS = re.compile(r"[^0-9]+")


@dataclass(frozen=True)
class FieldPosition:
    """A point on the pitch in percent of width (x) and height (y)."""
    x: float  # 0-100, left to right
    y: float  # 0-100, opposing goal to own goal

    def clamped(self) -> FieldPosition:
        """Return this position clamped to the pitch."""
        return FieldPosition(x=clamp_percent(self.x), y=clamp_percent(self.y))

    def to_dict(self) -> Dict[str, float]:
        """Convert to dictionary for serialization."""
        return {"x": self.x, "y": self.y}

    @classmethod
    def from_dict(cls, data: Dict) -> FieldPosition:
        """Create from dictionary."""
        return cls(x=float(data["x"]), y=float(data["y"]))


def clamp_percent(value: float) -> float:
    """Clamp a percentage to [0, 100]."""
    return max(0.0, min(100.0, float(value)))


@dataclass(frozen=True)
class Formation:
    """
    A tactical formation as an ordered list of line sizes.

    Line 0 is the goalkeeper line and always holds exactly one player.
    The remaining lines run from defence to attack.
    """
    name: str
    lines: Tuple[int, ...] = field(default=DEFAULT_FORMATION_LINES)

    def __post_init__(self):
        object.__setattr__(self, "lines", tuple(self.lines))

    @property
    def seat_count(self) -> int:
        """Total number of seats (players) in the formation."""
        return sum(self.lines)

    @property
    def line_count(self) -> int:
        return len(self.lines)

    def validate(self) -> None:
        """
        Check the structural rules of a formation.

        Raises:
            InputError: If the formation has fewer than two lines, a
                        goalkeeper line other than 1, or a non-positive line.
        """
        if len(self.lines) < 2:
            raise InputError(f"Formation '{self.name}' needs a goalkeeper line and at least one outfield line")
        for count in self.lines:
            if isinstance(count, bool) or not isinstance(count, int) or count <= 0:
                raise InputError(f"Formation '{self.name}' has an invalid line size: {count!r}")
        if self.lines[0] != 1:
            raise InputError(f"Formation '{self.name}' must start with a single goalkeeper")

    def is_valid(self) -> bool:
        try:
            self.validate()
        except InputError:
            return False
        return True

    def to_dict(self) -> Dict:
        """Convert formation to dictionary for serialization."""
        return {"name": self.name, "lines": list(self.lines)}

    @classmethod
    def from_dict(cls, data: Dict) -> Formation:
        """
        Create formation from dictionary.

        Raises:
            InputError: If the dictionary does not describe a valid formation
        """
        if not isinstance(data, dict):
            raise InputError("Formation must be an object with 'name' and 'lines'")
        lines = data.get("lines")
        if not isinstance(lines, (list, tuple)):
            raise InputError("Formation 'lines' must be a list of integers")
        name = data.get("name")
        if not isinstance(name, str) or not name.strip():
            name = formation_name_from_lines(lines)
        formation = cls(name=name, lines=tuple(lines))
        formation.validate()
        return formation


def formation_name_from_lines(lines: Sequence[int]) -> str:
    """Build the conventional name ("4-3-3") from line sizes, goalkeeper excluded."""
    return "-".join(str(count) for count in list(lines)[1:])


def default_formation() -> Formation:
    return Formation(name=DEFAULT_FORMATION_NAME, lines=DEFAULT_FORMATION_LINES)


def parse_formation_string(text: Optional[str]) -> Formation:
    """
    Parse a feed formation string such as "4-2-3-1".

    The string is split on any non-digit separator and prefixed with an
    implicit goalkeeper line. Missing or unparseable input falls back to
    the default 4-3-3.

    Example:
        >>> parse_formation_string("4-2-3-1").lines
        (1, 4, 2, 3, 1)
        >>> parse_formation_string(None).name
        '4-3-3'
    """
    if not text or not isinstance(text, str):
        return default_formation()
    parts = [part for part in _SEPARATORS.split(text.strip()) if part]
    if not parts:
        return default_formation()
    try:
        outfield = [int(part) for part in parts]
    except ValueError:
        return default_formation()
    formation = Formation(name=formation_name_from_lines([1] + outfield), lines=tuple([1] + outfield))
    if not formation.is_valid():
        return default_formation()
    return formation


class FormationTemplates:
    """Pre-defined formations offered to the operator."""

    PRESETS: Tuple[Formation, ...] = (
        Formation(name="4-4-2", lines=(1, 4, 4, 2)),
        Formation(name="4-3-3", lines=(1, 4, 3, 3)),
        Formation(name="3-5-2", lines=(1, 3, 5, 2)),
        Formation(name="4-2-3-1", lines=(1, 4, 2, 3, 1)),
        Formation(name="3-4-3", lines=(1, 3, 4, 3)),
        Formation(name="5-3-2", lines=(1, 5, 3, 2)),
    )

    @staticmethod
    def get_all_templates() -> List[Formation]:
        """Get all pre-defined formation templates."""
        return list(FormationTemplates.PRESETS)

    @staticmethod
    def get_template_by_name(name: str) -> Optional[Formation]:
        """Get template by name, or None when unknown."""
        for formation in FormationTemplates.PRESETS:
            if formation.name == name:
                return formation
        return None
