"""Builds the outgoing StreamingRecognizeRequest messages for one session."""

import threading
import logging
from typing import List, Optional, Sequence

from google.cloud import speech

logger = logging.getLogger(__name__)


class FirstRequestFlag:
    """A boolean that starts True and can be claimed exactly once."""

    def __init__(self):
        self._lock = threading.Lock()
        self._value = True

    def get_and_clear(self) -> bool:
        """Atomically return the current value and set it to False."""
        with self._lock:
            value = self._value
            self._value = False
            return value

    @property
    def is_set(self) -> bool:
        with self._lock:
            return self._value


class StreamingRequestBuilder:
    """Wraps audio chunks as streaming requests.

    The streaming config is sent exactly once, ahead of the first chunk; the
    service keeps it for the rest of the stream. ``streaming_config`` and
    ``audio_content`` share a oneof in the request message, so the config
    travels in its own request instead of alongside the audio.
    """

    def __init__(self,
                 language_code: str = "en-AU",
                 sample_rate: int = 16000,
                 phrase_hints: Sequence[str] = (),
                 interim_results: bool = False,
                 single_utterance: bool = False,
                 model: Optional[str] = None):
        self.language_code = language_code
        self.sample_rate = sample_rate
        self.phrase_hints = list(phrase_hints)
        self.interim_results = interim_results
        self.single_utterance = single_utterance
        self.model = model
        self._first_request = FirstRequestFlag()

    def streaming_config(self) -> speech.StreamingRecognitionConfig:
        recognition_config = speech.RecognitionConfig(
            encoding=speech.RecognitionConfig.AudioEncoding.LINEAR16,
            sample_rate_hertz=self.sample_rate,
            language_code=self.language_code,
            speech_contexts=[speech.SpeechContext(phrases=self.phrase_hints)],
        )
        if self.model:
            recognition_config.model = self.model
        return speech.StreamingRecognitionConfig(
            config=recognition_config,
            interim_results=self.interim_results,
            single_utterance=self.single_utterance,
        )

    def build(self, audio_bytes: bytes) -> List[speech.StreamingRecognizeRequest]:
        """Wrap one chunk; the session's first chunk is preceded by the config request."""
        requests = []
        if self._first_request.get_and_clear():
            requests.append(speech.StreamingRecognizeRequest(streaming_config=self.streaming_config()))
            logger.debug(f"Attaching streaming config: language={self.language_code}, "
                         f"rate={self.sample_rate}, hints={self.phrase_hints}")
        requests.append(speech.StreamingRecognizeRequest(audio_content=audio_bytes))
        return requests
