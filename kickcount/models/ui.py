"""UI-related data models."""

from dataclasses import dataclass, field
from typing import Dict


@dataclass
class DisplayState:
    """What the commentary screen currently shows.

    Only the latest transcript is kept.
    """
    transcript: str = ""
    counter_labels: Dict[str, str] = field(default_factory=dict)
    transcript_updates: int = 0  # bumps on every set_transcript so the panel can rotate

    def set_transcript(self, text: str) -> None:
        self.transcript = text
        self.transcript_updates += 1

    def set_counter_label(self, keyword: str, text: str) -> None:
        self.counter_labels[keyword] = text
