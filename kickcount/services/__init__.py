"""Services layer for KickCount application logic."""

from .session import RecordingSession, RecordingSessionController

__all__ = [
    "RecordingSession",
    "RecordingSessionController",
]
