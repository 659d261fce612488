"""
UI package for the Lineup Overlay.

This package contains the engine runtimes and the Flask operator API.
"""
from .runtime import EngineRuntime, InlineRuntime
from .web_app import create_app, create_test_app, run_web_app

__all__ = ["EngineRuntime", "InlineRuntime", "create_app", "create_test_app", "run_web_app"]
