"""
Models package for the Lineup Overlay application.

This package contains the core data models used throughout the application.
"""
from .formation import (
    FieldPosition, Formation, FormationTemplates, clamp_percent,
    default_formation, parse_formation_string, formation_name_from_lines
)
from .player import Player, CardState, default_player
from .team_state import TeamState, TeamLogo, default_roster, resize_roster
from .session import Session, LiveFeedBinding, require_side

__all__ = [
    "FieldPosition", "Formation", "FormationTemplates", "clamp_percent",
    "default_formation", "parse_formation_string", "formation_name_from_lines",
    "Player", "CardState", "default_player",
    "TeamState", "TeamLogo", "default_roster", "resize_roster",
    "Session", "LiveFeedBinding", "require_side"
]
