"""
Web application module for the Lineup Overlay.

This module contains the Flask server that exposes the operator surface as
JSON API endpoints. Every request is marshalled onto the engine's event
loop through the runtime, so the session is only ever touched from one
thread.
"""
import concurrent.futures
import json
from typing import Any, Dict, Optional, Tuple

from flask import Flask, jsonify, request

from ..config import OverlayConfig, SurfaceConfig
from ..errors import InputError, TransientFeedError
from ..models import CardState, Formation, FormationTemplates
from ..services import OverlayEngine, PitchRect, ServiceFactory, build_payload
from ..utils.logging_utils import setup_logger
from .runtime import EngineRuntime, InlineRuntime

logger = setup_logger(__name__)


def _json_body() -> Dict[str, Any]:
    """Request body as a dict; empty bodies become {}."""
    data = request.get_json(silent=True)
    if data is None:
        if request.get_data():
            raise InputError("Request body must be valid JSON")
        return {}
    if not isinstance(data, dict):
        raise InputError("Request body must be a JSON object")
    return data


def _require(data: Dict[str, Any], key: str) -> Any:
    if key not in data or data[key] is None:
        raise InputError(f"Missing field: {key}")
    return data[key]


def _number(data: Dict[str, Any], key: str) -> float:
    value = _require(data, key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InputError(f"Field {key} must be a number")
    return float(value)


def _integer(data: Dict[str, Any], key: str) -> int:
    value = _require(data, key)
    if isinstance(value, bool) or not isinstance(value, int):
        raise InputError(f"Field {key} must be an integer")
    return value


def _formation_from_body(data: Dict[str, Any]) -> Formation:
    if "preset" in data:
        formation = FormationTemplates.get_template_by_name(str(data["preset"]))
        if formation is None:
            raise InputError(f"Unknown formation preset: {data['preset']!r}")
        return formation
    if "lines" in data:
        return Formation.from_dict({"name": data.get("name"), "lines": data["lines"]})
    raise InputError("Provide either 'preset' or 'lines'")


def _error_response(exc: Exception) -> Tuple[Any, int]:
    """Map an exception onto the JSON error envelope and a status code."""
    if isinstance(exc, InputError):
        logger.debug("Rejected %s %s: %s", request.method, request.path, exc)
        return jsonify({"success": False, "error": str(exc)}), 400
    if isinstance(exc, TransientFeedError):
        return jsonify({"success": False, "error": exc.message, "details": exc.to_dict()}), 502
    logger.exception("Unhandled error serving %s %s", request.method, request.path)
    return jsonify({"success": False, "error": str(exc)}), 500


def create_app(engine: OverlayEngine, runtime, surface: Optional[SurfaceConfig] = None) -> Flask:
    """
    Create and configure the Flask application with API endpoints.

    Args:
        engine: Wired engine services
        runtime: EngineRuntime or InlineRuntime that owns the event loop
        surface: Window presentation flags reported to the operator UI

    Returns:
        Configured Flask application instance
    """
    app = Flask(__name__)
    surface = surface or SurfaceConfig()
    editor = engine.editor

    def _session_response(**extra: Any):
        payload = {"success": True, "state": runtime.call(engine.state_dict)}
        payload.update(extra)
        return jsonify(payload)

    # ==================== Session ==================== #

    @app.route("/api/session", methods=["GET"])
    def get_session():
        """Current session as the operator sees it."""
        try:
            return _session_response(surface=surface.to_dict())
        except Exception as e:
            return _error_response(e)

    @app.route("/api/overlay", methods=["GET"])
    def get_overlay():
        """The payload as it would be broadcast now, plus the last one actually sent."""
        try:
            payload = runtime.call(build_payload, engine.session)
            return jsonify({
                "success": True,
                "overlay": payload,
                "lastBroadcast": runtime.call(lambda: engine.memory_sink.latest),
            })
        except Exception as e:
            return _error_response(e)

    @app.route("/api/formations", methods=["GET"])
    def get_formations():
        """List the formation presets."""
        return jsonify({
            "success": True,
            "formations": [f.to_dict() for f in FormationTemplates.get_all_templates()],
        })

    @app.route("/api/formation/<team>", methods=["POST"])
    def set_formation(team: str):
        """Switch a team to a preset ({"preset": "4-4-2"}) or custom lines."""
        try:
            formation = _formation_from_body(_json_body())
            runtime.call(editor.change_formation, team, formation)
            return _session_response(formation=formation.to_dict())
        except Exception as e:
            return _error_response(e)

    @app.route("/api/players/<team>/<int:index>", methods=["PUT"])
    def update_player(team: str, index: int):
        """Edit a player's number, name and goal count."""
        try:
            data = _json_body()
            if "goals" in data and _integer(data, "goals") < 0:
                raise InputError("Goals must be a non-negative integer")

            def _apply() -> None:
                editor.update_player(team, index, number=data.get("number"), name=data.get("name"))
                if "goals" in data:
                    editor.set_goals(team, index, data["goals"])

            runtime.call(_apply)
            return _session_response()
        except Exception as e:
            return _error_response(e)

    @app.route("/api/players/<team>/<int:index>/card", methods=["POST"])
    def set_card(team: str, index: int):
        """Show a card ({"card": "yellow" | "red" | "none"})."""
        try:
            card = str(_require(_json_body(), "card")).lower()
            try:
                card_state = CardState(card)
            except ValueError as exc:
                raise InputError(f"Unknown card: {card!r}") from exc
            runtime.call(editor.set_card, team, index, card_state)
            return _session_response()
        except Exception as e:
            return _error_response(e)

    @app.route("/api/score/<team>", methods=["POST"])
    def set_score(team: str):
        """Set ({"score": n}) or adjust ({"delta": n}) a team's score."""
        try:
            data = _json_body()
            if "delta" in data:
                runtime.call(editor.adjust_score, team, _integer(data, "delta"))
            else:
                runtime.call(editor.set_score, team, _integer(data, "score"))
            return _session_response()
        except Exception as e:
            return _error_response(e)

    @app.route("/api/team-name/<team>", methods=["POST"])
    def set_team_name(team: str):
        try:
            name = _require(_json_body(), "name")
            runtime.call(editor.set_team_name, team, name)
            return _session_response()
        except Exception as e:
            return _error_response(e)

    @app.route("/api/team-select", methods=["POST"])
    def select_team():
        """Apply a team catalog selection event ({"team": {...}, "target": "A"})."""
        try:
            applied = runtime.call(editor.select_team, _json_body())
            return _session_response(applied=applied)
        except Exception as e:
            return _error_response(e)

    @app.route("/api/uniform/<team>", methods=["POST"])
    def set_uniform(team: str):
        try:
            color = _require(_json_body(), "color")
            runtime.call(editor.set_uniform_color, team, color)
            return _session_response()
        except Exception as e:
            return _error_response(e)

    @app.route("/api/vertical-mode", methods=["POST"])
    def set_vertical_mode():
        """Set ({"enabled": bool}) or toggle (empty body) the combined vertical view."""
        try:
            data = _json_body()
            if "enabled" in data:
                runtime.call(editor.set_vertical_mode, bool(data["enabled"]))
            else:
                runtime.call(editor.toggle_vertical_mode)
            return _session_response()
        except Exception as e:
            return _error_response(e)

    @app.route("/api/reset-layout", methods=["POST"])
    def reset_layout():
        """Discard manual positioning for one team ({"team": "A"}) or both."""
        try:
            runtime.call(editor.reset_layout, _json_body().get("team"))
            return _session_response()
        except Exception as e:
            return _error_response(e)

    @app.route("/api/swap", methods=["POST"])
    def swap_teams():
        try:
            runtime.call(editor.swap_teams)
            return _session_response()
        except Exception as e:
            return _error_response(e)

    # ==================== Pointer input ==================== #

    @app.route("/api/pointer/<team>/<action>", methods=["POST"])
    def pointer(team: str, action: str):
        """
        Forward pointer events from the operator surface.

        Actions: down, move, up, cancel, dblclick.
        """
        try:
            data = _json_body()
            drag = engine.drag

            def _with_phase(handler, *args) -> Tuple[Any, str]:
                # Phase is read on the engine loop together with the mutation
                return handler(*args), drag.phase(team).value

            if action == "down":
                _, phase = runtime.call(
                    _with_phase,
                    drag.pointer_down,
                    team,
                    _integer(data, "seat"),
                    _integer(data, "pointerId"),
                    _number(data, "clientX"),
                    _number(data, "clientY"),
                    _number(data, "cardCenterX"),
                    _number(data, "cardCenterY"),
                    PitchRect.from_dict(_require(data, "surface")),
                )
                return jsonify({"success": True, "phase": phase})
            if action == "move":
                moved, phase = runtime.call(
                    _with_phase, drag.pointer_move, team, _integer(data, "pointerId"),
                    _number(data, "clientX"), _number(data, "clientY"),
                )
                return jsonify({"success": True, "moved": moved, "phase": phase})
            if action == "up":
                outcome = runtime.call(
                    drag.pointer_up, team, _integer(data, "pointerId"),
                    _number(data, "clientX"), _number(data, "clientY"),
                )
            elif action == "cancel":
                outcome = runtime.call(drag.pointer_cancel, team, _integer(data, "pointerId"))
            elif action == "dblclick":
                outcome = runtime.call(drag.double_click, team, _integer(data, "seat"))
            else:
                raise InputError(f"Unknown pointer action: {action}")
            return jsonify({"success": True, "outcome": outcome.value})
        except Exception as e:
            return _error_response(e)

    # ==================== Live feed ==================== #

    @app.route("/api/feed", methods=["GET"])
    def get_feed():
        try:
            def _status() -> Dict[str, Any]:
                binding = engine.session.live_binding
                return {
                    "state": engine.feed.state.value,
                    "binding": binding.to_dict() if binding else None,
                    "status": engine.session.status,
                    "elapsed": engine.session.elapsed,
                }

            return jsonify({"success": True, "feed": runtime.call(_status)})
        except Exception as e:
            return _error_response(e)

    @app.route("/api/feed/load", methods=["POST"])
    def load_feed():
        """Load a fixture ({"fixtureId": "12345"}) and start auto-refresh."""
        try:
            fixture_id = str(_require(_json_body(), "fixtureId"))
            try:
                result = runtime.call_with_callback(
                    lambda done: engine.feed.load_fixture(fixture_id, done),
                    timeout=engine.config.load_timeout,
                    on_timeout=engine.feed.cancel_load,
                )
            except (TimeoutError, concurrent.futures.TimeoutError):
                logger.warning("Loading fixture %s timed out; load abandoned", fixture_id)
                return jsonify({"success": False, "error": f"Loading fixture {fixture_id} timed out"}), 504
            if result.success:
                return _session_response(result=result.to_dict())
            if result.superseded:
                return jsonify({"success": False, "error": "Load superseded", "result": result.to_dict()}), 409
            return jsonify({
                "success": False,
                "error": result.error.message if result.error else "Load failed",
                "result": result.to_dict(),
            }), 502
        except Exception as e:
            return _error_response(e)

    @app.route("/api/feed/stop", methods=["POST"])
    def stop_feed():
        try:
            runtime.call(engine.feed.stop)
            return _session_response()
        except Exception as e:
            return _error_response(e)

    # ==================== Snapshots ==================== #

    @app.route("/api/snapshot/save", methods=["POST"])
    def save_snapshot():
        """Write the session to {"path": ...} or return it inline."""
        try:
            path = _json_body().get("path")
            if path:
                runtime.call(engine.snapshots.save_session_to_file, engine.session, str(path))
                logger.info("Session saved to %s", path)
                return jsonify({"success": True, "path": str(path)})
            snapshot = runtime.call(engine.snapshots.session_to_snapshot, engine.session)
            return jsonify({"success": True, "snapshot": snapshot})
        except OSError as e:
            return jsonify({"success": False, "error": f"Could not write snapshot: {e}"}), 500
        except Exception as e:
            return _error_response(e)

    @app.route("/api/snapshot/load", methods=["POST"])
    def load_snapshot():
        """Restore from {"path": ...} or an inline {"snapshot": {...}}."""
        try:
            data = _json_body()
            if data.get("path"):
                snapshot = engine.snapshots.load_snapshot_file(str(data["path"]))
            else:
                snapshot = _require(data, "snapshot")
            applied = runtime.call(engine.apply_snapshot, snapshot)
            return _session_response(applied=applied)
        except FileNotFoundError as e:
            return jsonify({"success": False, "error": str(e)}), 404
        except json.JSONDecodeError as e:
            return jsonify({"success": False, "error": f"Snapshot is not valid JSON: {e}"}), 400
        except Exception as e:
            return _error_response(e)

    @app.route("/api/snapshot/autosave", methods=["POST"])
    def autosave_snapshot():
        """Write a timestamped snapshot into the configured snapshot directory."""
        try:
            path = runtime.call(engine.auto_save)
            if path is None:
                return jsonify({"success": False, "error": "Auto-save failed"}), 500
            return jsonify({"success": True, "path": path})
        except Exception as e:
            return _error_response(e)

    @app.route("/api/snapshots", methods=["GET"])
    def list_snapshots():
        """Most recent snapshot files in the snapshot directory (?limit=N)."""
        try:
            limit = request.args.get("limit", default=10, type=int)
            if limit is None or limit <= 0:
                raise InputError("limit must be a positive integer")
            saves = engine.snapshots.get_recent_saves(engine.config.snapshot_dir, limit)
            return jsonify({"success": True, "directory": engine.config.snapshot_dir, "snapshots": saves})
        except Exception as e:
            return _error_response(e)

    # ==================== Surface ==================== #

    @app.route("/api/surface/transparent", methods=["POST"])
    def set_transparent():
        """Toggle the transparent background flag ({"enabled": bool} or empty to toggle)."""
        try:
            data = _json_body()
            surface.transparent = bool(data["enabled"]) if "enabled" in data else not surface.transparent
            return jsonify({"success": True, "surface": surface.to_dict()})
        except Exception as e:
            return _error_response(e)

    return app


def run_web_app(config: Optional[OverlayConfig] = None) -> None:
    """
    Run the web application with a background engine loop.

    Args:
        config: Runtime configuration (environment by default)
    """
    config = config or OverlayConfig.from_env()
    runtime = EngineRuntime()
    runtime.start()
    factory = ServiceFactory(config)
    engine = runtime.call(factory.create_engine, runtime.scheduler)
    app = create_app(engine, runtime, config.surface)

    logger.info("Serving operator API on http://%s:%s", config.host, config.port)
    try:
        app.run(host=config.host, port=config.port, debug=config.debug, use_reloader=False)
    finally:
        runtime.call(engine.shutdown)
        runtime.stop()


def create_test_app(engine: OverlayEngine, surface: Optional[SurfaceConfig] = None) -> Flask:
    """Flask app whose runtime runs work inline on the engine's manual scheduler."""
    return create_app(engine, InlineRuntime(engine.scheduler), surface)
