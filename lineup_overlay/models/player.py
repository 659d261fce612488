"""
Player model for the Lineup Overlay application.

A player occupies one seat of a team's roster. The seat index is the
player's position in the roster sequence.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class CardState(Enum):
    """Card shown next to a player, as set through the editor."""
    NONE = "none"
    YELLOW = "yellow"
    RED = "red"


@dataclass
class Player:
    """
    One roster entry.

    Attributes:
        number: Shirt number as shown on the card (short free text)
        name: Display name
        yellow_card: Whether a yellow card marker is shown
        red_card: Whether a red card marker is shown
        goals: Goals scored in the current match
        player_id: Identifier from the live-match feed, if known
    """
    number: str
    name: str
    yellow_card: bool = False
    red_card: bool = False
    goals: int = 0
    player_id: Optional[str] = None

    def apply_card(self, card: CardState) -> None:
        """Set the card marker; yellow and red exclude each other here."""
        self.yellow_card = card is CardState.YELLOW
        self.red_card = card is CardState.RED

    @property
    def card(self) -> CardState:
        # Feeds may set both flags; red wins for display purposes
        if self.red_card:
            return CardState.RED
        if self.yellow_card:
            return CardState.YELLOW
        return CardState.NONE

    def copy(self) -> "Player":
        return Player(
            number=self.number,
            name=self.name,
            yellow_card=self.yellow_card,
            red_card=self.red_card,
            goals=self.goals,
            player_id=self.player_id,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        data: Dict[str, Any] = {
            "number": self.number,
            "name": self.name,
            "yellowCard": self.yellow_card,
            "redCard": self.red_card,
            "goals": self.goals,
        }
        if self.player_id is not None:
            data["playerId"] = self.player_id
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Player":
        """Create from dictionary, tolerating missing optional fields."""
        goals = data.get("goals", 0)
        try:
            goals = max(0, int(goals))
        except (TypeError, ValueError):
            goals = 0
        player_id = data.get("playerId", data.get("player_id"))
        return cls(
            number=str(data.get("number", "")),
            name=str(data.get("name", "")),
            yellow_card=bool(data.get("yellowCard", data.get("yellow_card", False))),
            red_card=bool(data.get("redCard", data.get("red_card", False))),
            goals=goals,
            player_id=str(player_id) if player_id is not None else None,
        )


def default_player(seat_index: int) -> Player:
    """Placeholder player for an empty seat."""
    return Player(number=str(seat_index + 1), name=f"Player {seat_index + 1}")
