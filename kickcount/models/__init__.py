"""Data models for the KickCount application."""

from .transcription import TranscriptionResult
from .audio import AudioStats
from .events import AudioEvent
from .session import SessionState
from .tally import KeywordTally, count_keyword
from .ui import DisplayState

__all__ = [
    "TranscriptionResult",
    "AudioStats",
    "AudioEvent",
    "SessionState",
    "KeywordTally",
    "count_keyword",
    "DisplayState",
]
