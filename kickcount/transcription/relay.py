"""Turns recognition responses into transcript and keyword-counter updates."""

import logging
from datetime import datetime
from typing import Optional

from google.cloud import speech

from ..models.tally import KeywordTally
from ..models.transcription import TranscriptionResult
from ..models.ui import DisplayState

logger = logging.getLogger(__name__)


class TranscriptRelay:
    """Applies each response to the display and the keyword tally.

    Not thread-safe with respect to the display; call it on the UI thread.
    """

    def __init__(self,
                 display: DisplayState,
                 tally: KeywordTally,
                 api_error_text: str,
                 language: str = "en-AU"):
        self.display = display
        self.tally = tally
        self.api_error_text = api_error_text
        self.language = language
        self.service_name = "Google Speech-to-Text"
        self.refresh_counter_labels()

    def handle_response(self, response: speech.StreamingRecognizeResponse) -> Optional[TranscriptionResult]:
        """Show the top transcript and count keywords, or show the error text if empty."""
        if not response.results:
            logger.debug("Response carried no results")
            self.display.set_transcript(self.api_error_text)
            return None

        result = response.results[0]
        if not result.alternatives:
            logger.debug("First result carried no alternatives")
            self.display.set_transcript(self.api_error_text)
            return None

        alternative = result.alternatives[0]
        transcript = alternative.transcript
        logger.debug(f"Transcript: {transcript}")

        self.display.set_transcript(transcript)
        matches = self.tally.add_transcript(transcript)
        self.refresh_counter_labels()

        return TranscriptionResult(
            text=transcript,
            confidence=alternative.confidence,
            timestamp=datetime.now(),
            service=self.service_name,
            language=self.language,
            is_final=result.is_final,
            matches=matches,
        )

    def refresh_counter_labels(self) -> None:
        for keyword, _ in self.tally.keywords:
            self.display.set_counter_label(keyword, self.tally.label(keyword))
