"""Keyword counters for a commentary session."""

import threading
from dataclasses import dataclass, field
from typing import Dict, List, Sequence, Tuple


DEFAULT_KEYWORDS: Tuple[Tuple[str, str], ...] = (
    ("kick", "Kicks"),
    ("tackle", "Tackles"),
    ("mark", "Marks"),
    ("hand", "Handballs"),
)


def count_keyword(transcript: str, keyword: str) -> int:
    """Count whitespace-delimited tokens that equal ``keyword`` ignoring case."""
    target = keyword.lower()
    return sum(1 for token in transcript.split() if token.lower() == target)


@dataclass
class KeywordTally:
    """Running totals per keyword.

    Lives for the whole process; pausing and resuming the screen does not
    reset it.
    """
    keywords: Sequence[Tuple[str, str]] = DEFAULT_KEYWORDS
    counts: Dict[str, int] = field(default_factory=dict)

    def __post_init__(self):
        self._lock = threading.Lock()
        for keyword, _ in self.keywords:
            self.counts.setdefault(keyword, 0)

    def add_transcript(self, transcript: str) -> Dict[str, int]:
        """Add keyword occurrences in ``transcript`` and return the increments."""
        increments = {keyword: count_keyword(transcript, keyword) for keyword, _ in self.keywords}
        with self._lock:
            for keyword, amount in increments.items():
                self.counts[keyword] += amount
        return increments

    def get(self, keyword: str) -> int:
        return self.counts[keyword]

    def label(self, keyword: str) -> str:
        """Render the on-screen label for a keyword, e.g. ``Kicks: 3``."""
        for word, title in self.keywords:
            if word == keyword:
                return f"{title}: {self.counts[word]}"
        raise KeyError(keyword)

    def labels(self) -> List[str]:
        return [self.label(keyword) for keyword, _ in self.keywords]

    @property
    def phrase_hints(self) -> List[str]:
        return [keyword for keyword, _ in self.keywords]
