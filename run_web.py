#!/usr/bin/env python3
"""
Main entry point for the Lineup Overlay operator API.

This script launches the Flask-based web server with the engine loop
running in the background. Configuration comes from the environment.
"""
from lineup_overlay.ui.web_app import run_web_app

if __name__ == "__main__":
    run_web_app()
