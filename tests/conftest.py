"""Pytest configuration and fixtures for KickCount tests."""

import io
import logging
import threading
from unittest.mock import Mock, patch

import numpy as np
import pytest
from google.cloud import speech
from pubsub import pub
from rich.console import Console

from kickcount.config import KickCountConfig
from kickcount.models.audio import AudioStats
from kickcount.models.tally import KeywordTally
from kickcount.models.ui import DisplayState
from kickcount.transcription.relay import TranscriptRelay
from kickcount.ui.dispatcher import UiDispatcher


# Configure logging for tests
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

API_ERROR_TEXT = "Sorry, there was a problem with the speech service."


def make_response(*transcripts: str) -> speech.StreamingRecognizeResponse:
    """Build a response with one result per transcript, each with a single alternative."""
    return speech.StreamingRecognizeResponse(results=[
        speech.StreamingRecognitionResult(
            alternatives=[speech.SpeechRecognitionAlternative(transcript=text, confidence=0.9)],
            is_final=True,
        )
        for text in transcripts
    ])


class FakeSpeechClient:
    """Stands in for the GAPIC SpeechClient.

    Yields its scripted responses, then raises ``error`` if given, otherwise
    consumes requests until the caller half-closes.
    """

    def __init__(self, responses=(), error=None):
        self.responses = list(responses)
        self.error = error
        self.received = []
        self.calls = 0
        self.requests_drained = threading.Event()
        self.transport = Mock()

    def streaming_recognize(self, requests):
        self.calls += 1

        def response_iterator():
            for response in self.responses:
                yield response
            if self.error is not None:
                raise self.error
            for request in requests:
                self.received.append(request)
            self.requests_drained.set()

        return response_iterator()


class FakeCapture:
    """AudioCapture double: tests push chunks with ``emit``."""

    def __init__(self):
        self.callback = None
        self.start_calls = 0
        self.stop_calls = 0

    @property
    def is_recording(self):
        return self.callback is not None

    def start(self, callback):
        self.start_calls += 1
        self.callback = callback

    def stop(self):
        self.stop_calls += 1
        self.callback = None

    def emit(self, chunk: bytes):
        if self.callback is not None:
            self.callback(chunk)

    def get_recording_stats(self):
        return AudioStats(is_recording=self.is_recording, duration_seconds=0.0,
                          sample_rate=16000, chunk_size=1024, total_chunks=0, peak_level=0.25)


@pytest.fixture(autouse=True)
def reset_pubsub():
    """Drop pubsub listeners left behind by a test."""
    yield
    pub.unsubAll()


@pytest.fixture
def sample_audio_chunk():
    """Generate a sample audio chunk for testing."""
    # 1024 samples of 16-bit audio (sine wave)
    sample_rate = 16000
    duration = 1024 / sample_rate
    t = np.linspace(0, duration, 1024, False)
    wave_data = np.sin(2 * np.pi * 440 * t)
    audio_data = (wave_data * 32767).astype(np.int16)
    return audio_data.tobytes()


@pytest.fixture
def mock_pyaudio():
    """Mock PyAudio for testing without actual audio hardware."""
    with patch('pyaudio.PyAudio') as mock_pyaudio_class:
        mock_pyaudio_instance = Mock()
        mock_stream = Mock()

        mock_stream.read.return_value = b'\x00' * 2048  # Silent audio
        mock_stream.stop_stream.return_value = None
        mock_stream.close.return_value = None

        mock_pyaudio_instance.open.return_value = mock_stream
        mock_pyaudio_instance.terminate.return_value = None

        mock_pyaudio_class.return_value = mock_pyaudio_instance

        yield {
            'class': mock_pyaudio_class,
            'instance': mock_pyaudio_instance,
            'stream': mock_stream
        }


@pytest.fixture
def config():
    """Default configuration with permission pre-granted."""
    cfg = KickCountConfig()
    cfg.set('permissions.microphone', 'granted')
    return cfg


@pytest.fixture
def display():
    return DisplayState()


@pytest.fixture
def tally():
    return KeywordTally()


@pytest.fixture
def relay(display, tally):
    return TranscriptRelay(display=display, tally=tally, api_error_text=API_ERROR_TEXT)


@pytest.fixture
def dispatcher():
    ui = UiDispatcher()
    ui.bind_to_current_thread()
    return ui


@pytest.fixture
def fake_capture():
    return FakeCapture()


@pytest.fixture
def quiet_console():
    return Console(file=io.StringIO(), force_terminal=False)
