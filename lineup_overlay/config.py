"""
Configuration for the Lineup Overlay application.

Runtime settings come from environment variables (a ``.env`` file in the
working directory or above is loaded first); fixed engine constants
live in ``utils.constants``.
"""
import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv

from .utils.constants import (
    BROADCAST_DEBOUNCE_SECONDS, DEFAULT_HOST, DEFAULT_PORT, DEFAULT_SNAPSHOT_DIR,
    FEED_DEFAULT_BASE_URL, FEED_LOAD_MARGIN_SECONDS, FEED_MAX_RETRIES,
    FEED_REFRESH_INTERVAL_SECONDS, FEED_TIMEOUT_SECONDS
)


def _get_bool(name: str, default: bool = False) -> bool:
    val = os.getenv(name)
    if val is None:
        return default
    return str(val).strip().lower() in {"1", "true", "yes", "on"}


def _get_float(name: str, default: float) -> float:
    val = os.getenv(name)
    if val is None or not str(val).strip():
        return default
    try:
        return float(val)
    except ValueError:
        return default


@dataclass
class SurfaceConfig:
    """Display-surface flags owned by whatever hosts the overlay window."""
    transparent: bool = False
    always_on_top: bool = False

    def to_dict(self) -> dict:
        return {"transparent": self.transparent, "always_on_top": self.always_on_top}


@dataclass
class OverlayConfig:
    """Runtime configuration for the engine and its operator surface."""
    feed_base_url: str = FEED_DEFAULT_BASE_URL
    feed_api_key: Optional[str] = None
    feed_timeout: float = FEED_TIMEOUT_SECONDS
    feed_retries: int = FEED_MAX_RETRIES
    refresh_interval: float = FEED_REFRESH_INTERVAL_SECONDS
    broadcast_debounce: float = BROADCAST_DEBOUNCE_SECONDS
    broadcast_url: Optional[str] = None
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    debug: bool = False
    snapshot_dir: str = DEFAULT_SNAPSHOT_DIR
    surface: SurfaceConfig = field(default_factory=SurfaceConfig)

    @property
    def load_timeout(self) -> float:
        """How long an operator fixture load may take: two requests, each retried."""
        return 2 * (self.feed_retries + 1) * self.feed_timeout + FEED_LOAD_MARGIN_SECONDS

    @classmethod
    def from_env(cls) -> "OverlayConfig":
        """Build a configuration from environment variables."""
        load_dotenv()
        return cls(
            feed_base_url=os.getenv("FEED_BASE_URL", FEED_DEFAULT_BASE_URL).rstrip("/"),
            feed_api_key=os.getenv("FEED_API_KEY") or None,
            feed_timeout=_get_float("FEED_TIMEOUT", FEED_TIMEOUT_SECONDS),
            feed_retries=max(0, int(_get_float("FEED_RETRIES", FEED_MAX_RETRIES))),
            refresh_interval=_get_float("FEED_REFRESH_INTERVAL", FEED_REFRESH_INTERVAL_SECONDS),
            broadcast_debounce=_get_float(
                "BROADCAST_DEBOUNCE_MS", BROADCAST_DEBOUNCE_SECONDS * 1000
            ) / 1000.0,
            broadcast_url=os.getenv("BROADCAST_URL") or None,
            host=os.getenv("OVERLAY_HOST", DEFAULT_HOST),
            port=int(_get_float("OVERLAY_PORT", DEFAULT_PORT)),
            debug=_get_bool("OVERLAY_DEBUG", False),
            snapshot_dir=os.getenv("OVERLAY_SNAPSHOT_DIR") or DEFAULT_SNAPSHOT_DIR,
            surface=SurfaceConfig(transparent=_get_bool("OVERLAY_TRANSPARENT", False)),
        )
