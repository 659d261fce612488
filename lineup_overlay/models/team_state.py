"""Per-team match state: identity, score, formation, roster and overrides."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .formation import FieldPosition, Formation, default_formation
from .player import Player, default_player
from ..utils.constants import DEFAULT_UNIFORM_COLORS, TEAM_A


@dataclass
class TeamLogo:
    """A team catalog entry as delivered by the catalog collaborator."""
    id: str
    slug: str = ""
    country: str = ""
    english_name: str = ""
    svg: Optional[str] = None
    png: Optional[str] = None

    @property
    def display_name(self) -> str:
        return self.english_name or self.slug

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the catalog's JSON shape."""
        return {
            "id": self.id,
            "slug": self.slug,
            "country": self.country,
            "englishName": self.english_name,
            "logos": {"svg": self.svg, "png": self.png},
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional[TeamLogo]:
        """Create from the catalog's JSON shape; returns None for unusable input."""
        if not isinstance(data, dict):
            return None
        logos = data.get("logos") if isinstance(data.get("logos"), dict) else {}
        team_id = data.get("id")
        slug = data.get("slug") or ""
        english_name = data.get("englishName") or data.get("english_name") or ""
        if team_id is None and not slug and not english_name:
            return None
        return cls(
            id=str(team_id if team_id is not None else slug),
            slug=str(slug),
            country=str(data.get("country") or ""),
            english_name=str(english_name),
            svg=logos.get("svg"),
            png=logos.get("png"),
        )


def default_roster(size: int) -> List[Player]:
    return [default_player(i) for i in range(size)]


def resize_roster(roster: List[Player], size: int) -> List[Player]:
    """Keep existing players by seat index, padding new seats with placeholders."""
    resized = [player.copy() for player in roster[:size]]
    resized.extend(default_player(i) for i in range(len(resized), size))
    return resized


@dataclass
class TeamState:
    """
    Everything the overlay knows about one side of the match.

    Attributes:
        side: "A" or "B"
        name: Team display name
        logo: Catalog entry or feed-derived logo, if any
        score: Goals scored, never negative
        formation: Current formation
        roster: Players ordered by seat index
        overrides: Manually dragged positions keyed by seat index
        uniform_color: Card colour
        feed_team_id: Team identifier from the live-match feed
    """
    side: str = TEAM_A
    name: str = ""
    logo: Optional[TeamLogo] = None
    score: int = 0
    formation: Formation = field(default_factory=default_formation)
    roster: List[Player] = field(default_factory=list)
    overrides: Dict[int, FieldPosition] = field(default_factory=dict)
    uniform_color: str = ""
    feed_team_id: Optional[str] = None

    def __post_init__(self):
        if not self.roster:
            self.roster = default_roster(self.formation.seat_count)
        if not self.uniform_color:
            self.uniform_color = DEFAULT_UNIFORM_COLORS.get(self.side, DEFAULT_UNIFORM_COLORS[TEAM_A])

    @property
    def seat_count(self) -> int:
        return self.formation.seat_count

    def has_seat(self, seat_index: int) -> bool:
        return 0 <= seat_index < self.seat_count and seat_index < len(self.roster)

    def identity(self) -> tuple:
        """Fields that make up the team's identity on the scoreboard."""
        return (self.name, self.logo.to_dict() if self.logo else None)
