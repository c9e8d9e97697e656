"""Dashboard module: HTTP control surface and WebSocket event stream."""

from arbsim.dashboard.broadcaster import Broadcaster
from arbsim.dashboard.server import create_app, main


__all__ = [
    "Broadcaster",
    "create_app",
    "main",
]
