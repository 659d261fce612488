"""
Persistence service for the Lineup Overlay application.

This module handles saving and loading session snapshots to/from JSON files.
The snapshot format is flat, keyed per team with a "B" suffix for the
second team, and tolerant on load: only recognised fields that are present
with the expected type are restored.
"""
import datetime
import json
import os
from typing import Any, Dict, List, Optional

from ..errors import InputError
from ..models import (
    FieldPosition, Formation, Player, Session, TeamLogo, TeamState, resize_roster
)
from ..utils.logging_utils import setup_logger

logger = setup_logger(__name__)

_TEAM_KEYS = {
    "A": {
        "formation": "formation",
        "players": "players",
        "uniform_color": "uniformColor",
        "overrides": "overrides",
        "name": "teamNameA",
        "logo": "teamLogoA",
        "score": "scoreA",
    },
    "B": {
        "formation": "formationB",
        "players": "playersB",
        "uniform_color": "uniformColorB",
        "overrides": "overridesB",
        "name": "teamNameB",
        "logo": "teamLogoB",
        "score": "scoreB",
    },
}


def _overrides_to_json(overrides: Dict[int, FieldPosition]) -> Dict[str, Dict[str, float]]:
    return {str(index): position.to_dict() for index, position in sorted(overrides.items())}


def _overrides_from_json(data: Dict[str, Any]) -> Dict[int, FieldPosition]:
    overrides: Dict[int, FieldPosition] = {}
    for key, value in data.items():
        try:
            index = int(key)
            position = FieldPosition.from_dict(value)
        except (TypeError, ValueError, KeyError):
            logger.debug("Skipping malformed override entry %r", key)
            continue
        if index >= 0:
            overrides[index] = position.clamped()
    return overrides


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class SnapshotService:
    """
    Service for exporting and importing sessions as JSON snapshots.
    """

    @staticmethod
    def session_to_snapshot(session: Session) -> Dict[str, Any]:
        """
        Convert a session to its snapshot dictionary.

        Returns:
            Dictionary suitable for JSON serialization
        """
        snapshot: Dict[str, Any] = {}
        for side, keys in _TEAM_KEYS.items():
            state = session.team(side)
            snapshot[keys["formation"]] = state.formation.to_dict()
            snapshot[keys["players"]] = [player.to_dict() for player in state.roster]
            snapshot[keys["uniform_color"]] = state.uniform_color
            snapshot[keys["overrides"]] = _overrides_to_json(state.overrides)
            snapshot[keys["name"]] = state.name
            snapshot[keys["logo"]] = state.logo.to_dict() if state.logo else None
            snapshot[keys["score"]] = state.score
        snapshot["verticalMode"] = session.vertical_mode
        return snapshot

    @staticmethod
    def apply_snapshot(session: Session, data: Any) -> List[str]:
        """
        Restore the fields present in ``data`` onto ``session``.

        Unknown keys and fields of the wrong type are ignored. A snapshot
        formation that fails validation is skipped together with the
        roster that depends on it.

        Returns:
            Names of the snapshot keys that were applied
        """
        if not isinstance(data, dict):
            logger.warning("Snapshot ignored: expected an object, got %s", type(data).__name__)
            return []

        applied: List[str] = []
        for side, keys in _TEAM_KEYS.items():
            applied.extend(SnapshotService._apply_team(session.team(side), data, keys))

        if isinstance(data.get("verticalMode"), bool):
            session.vertical_mode = data["verticalMode"]
            applied.append("verticalMode")
        return applied

    @staticmethod
    def _apply_team(state: TeamState, data: Dict[str, Any], keys: Dict[str, str]) -> List[str]:
        applied = []

        raw_formation = data.get(keys["formation"])
        formation_ok = True
        if raw_formation is not None:
            try:
                state.formation = Formation.from_dict(raw_formation)
                applied.append(keys["formation"])
            except InputError as exc:
                formation_ok = False
                logger.warning("Snapshot formation %s ignored: %s", keys["formation"], exc)

        raw_players = data.get(keys["players"])
        if isinstance(raw_players, list) and formation_ok:
            players = [Player.from_dict(item) for item in raw_players if isinstance(item, dict)]
            if players:
                state.roster = players
                applied.append(keys["players"])

        color = data.get(keys["uniform_color"])
        if isinstance(color, str):
            state.uniform_color = color
            applied.append(keys["uniform_color"])

        raw_overrides = data.get(keys["overrides"])
        if isinstance(raw_overrides, dict):
            state.overrides = _overrides_from_json(raw_overrides)
            applied.append(keys["overrides"])

        name = data.get(keys["name"])
        if isinstance(name, str):
            state.name = name
            applied.append(keys["name"])

        logo = TeamLogo.from_dict(data.get(keys["logo"]))
        if logo is not None:
            state.logo = logo
            applied.append(keys["logo"])

        score = data.get(keys["score"])
        if _is_number(score):
            state.score = max(0, int(score))
            applied.append(keys["score"])

        if len(state.roster) != state.seat_count:
            state.roster = resize_roster(state.roster, state.seat_count)

        return applied

    @staticmethod
    def save_session_to_file(session: Session, file_path: str) -> None:
        """
        Save a session snapshot to a JSON file.

        Args:
            session: The session to save
            file_path: Path where to save the file

        Raises:
            IOError: If file cannot be written
            OSError: If path is invalid
        """
        snapshot = SnapshotService.session_to_snapshot(session)

        # Ensure directory exists
        directory = os.path.dirname(file_path)
        if directory and not os.path.exists(directory):
            os.makedirs(directory)

        with open(file_path, "w", encoding="utf-8") as f:
            json.dump(snapshot, f, indent=2, ensure_ascii=False)

    @staticmethod
    def load_snapshot_file(file_path: str) -> Any:
        """
        Read a snapshot file.

        Raises:
            FileNotFoundError: If file doesn't exist
            json.JSONDecodeError: If file contains invalid JSON
        """
        if not os.path.exists(file_path):
            raise FileNotFoundError(f"Snapshot file not found: {file_path}")

        with open(file_path, "r", encoding="utf-8") as f:
            return json.load(f)

    @staticmethod
    def auto_save(session: Session, auto_save_dir: str) -> Optional[str]:
        """
        Save the session with a timestamped file name.

        Returns:
            Path to saved file, or None if save failed
        """
        timestamp = datetime.datetime.now().strftime("%Y%m%d_%H%M%S")
        file_path = os.path.join(auto_save_dir, f"lineup_autosave_{timestamp}.json")
        try:
            SnapshotService.save_session_to_file(session, file_path)
        except OSError as exc:
            logger.warning("Auto-save to %s failed: %s", file_path, exc)
            return None
        logger.info("Auto-saved session to %s", file_path)
        return file_path

    @staticmethod
    def get_recent_saves(save_dir: str, limit: int = 10) -> List[Dict[str, Any]]:
        """Snapshot files in ``save_dir``, newest first, as name/path/modified entries."""
        if not os.path.isdir(save_dir):
            return []
        try:
            with os.scandir(save_dir) as entries:
                saves = [
                    {"name": entry.name, "path": entry.path, "modified": entry.stat().st_mtime}
                    for entry in entries
                    if entry.is_file() and entry.name.endswith(".json")
                ]
        except OSError as exc:
            logger.warning("Could not list snapshots in %s: %s", save_dir, exc)
            return []
        saves.sort(key=lambda save: save["modified"], reverse=True)
        return saves[:limit]
