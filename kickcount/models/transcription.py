"""Transcription-related data models."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict


@dataclass
class TranscriptionResult:
    """Top transcript extracted from one streaming response."""
    text: str
    confidence: float
    timestamp: datetime
    service: str
    language: str = "en-AU"
    is_final: bool = True
    matches: Dict[str, int] = field(default_factory=dict)  # keyword -> increment from this transcript
