"""Microphone capture that hands successive byte chunks to a callback."""

import pyaudio
import logging
import threading
from threading import Thread, Event
from typing import Optional, Callable
from datetime import datetime
import numpy as np

from ..models.audio import AudioStats


logger = logging.getLogger(__name__)


class AudioCapture:
    """Continuous microphone capture on a background thread.

    ``start(callback)`` begins delivering raw LINEAR16 chunks; ``stop()`` may be
    called any number of times, before or after ``start``.
    """

    def __init__(
        self,
        sample_rate: int = 16000,
        chunk_size: int = 1024,
        channels: int = 1,
        format: int = pyaudio.paInt16,
    ):
        """Initialize audio capture with specified parameters.

        Args:
            sample_rate: Audio sample rate (16kHz to match the recognizer config)
            chunk_size: Size of each audio chunk in samples
            channels: Number of audio channels (1 for mono)
            format: Audio format (16-bit signed int)
        """
        self.sample_rate = sample_rate
        self.chunk_size = chunk_size
        self.channels = channels
        self.format = format

        self.chunk_callback: Optional[Callable[[bytes], None]] = None
        self.recording_thread: Optional[Thread] = None
        self.stop_event = Event()
        self.is_recording = False
        self._state_lock = threading.Lock()

        # Statistics tracking
        self.start_time: Optional[datetime] = None
        self.total_chunks = 0
        self.peak_level = 0.0

        self.pyaudio_instance: Optional[pyaudio.PyAudio] = None

    def start(self, callback: Callable[[bytes], None]) -> None:
        """Start capturing and call ``callback`` with each chunk from a background thread."""
        with self._state_lock:
            if self.is_recording:
                logger.warning("Recording already in progress")
                return

            logger.info("Starting audio capture")
            self.chunk_callback = callback
            self.stop_event.clear()
            self.start_time = datetime.now()
            self.total_chunks = 0
            self.peak_level = 0.0

            self.recording_thread = Thread(target=self._record_continuously, daemon=True)
            self.recording_thread.name = "AudioCaptureThread"
            self.is_recording = True
            self.recording_thread.start()

    def stop(self) -> None:
        """Stop capturing. Safe to call repeatedly or without a prior start."""
        with self._state_lock:
            if not self.is_recording:
                logger.debug("stop() called with no capture in progress")
                return
            self.is_recording = False
            self.stop_event.set()
            thread = self.recording_thread

        logger.info("Stopping audio capture")
        # The callback itself may call stop(); never join our own thread.
        if thread and thread.is_alive() and thread is not threading.current_thread():
            thread.join(timeout=2.0)
            if thread.is_alive():
                logger.warning("Capture thread did not stop cleanly")

        self.chunk_callback = None
        logger.info(f"Audio capture stopped. Total chunks: {self.total_chunks}")

    def __open_audio_stream(self):
        self.pyaudio_instance = pyaudio.PyAudio()
        stream = self.pyaudio_instance.open(
            format=self.format,
            channels=self.channels,
            rate=self.sample_rate,
            input=True,
            frames_per_buffer=self.chunk_size,
            stream_callback=None
        )
        logger.info(f"Audio stream opened: {self.sample_rate}Hz, "
                    f"{self.chunk_size} samples/chunk")
        return stream

    def __read_audio_chunk(self, stream) -> bytes:
        audio_chunk = stream.read(self.chunk_size, exception_on_overflow=False)
        self.total_chunks += 1
        self.peak_level = self._compute_peak_level(audio_chunk)
        return audio_chunk

    @staticmethod
    def _compute_peak_level(audio_chunk: bytes) -> float:
        """Peak absolute amplitude of a 16-bit chunk, normalised to 0.0-1.0."""
        samples = np.frombuffer(audio_chunk, dtype=np.int16)
        if samples.size == 0:
            return 0.0
        return float(np.max(np.abs(samples.astype(np.int32)))) / 32768.0

    def _record_continuously(self) -> None:
        """Internal method: continuous recording loop in background thread."""
        stream = None
        try:
            stream = self.__open_audio_stream()
            while not self.stop_event.is_set():
                audio_chunk = self.__read_audio_chunk(stream)
                callback = self.chunk_callback
                if callback is None or self.stop_event.is_set():
                    break
                callback(audio_chunk)
        except Exception as e:
            logger.error(f"Audio capture failed: {e}", exc_info=True)
            self.is_recording = False
        finally:
            if stream is not None:
                stream.stop_stream()
                stream.close()
            if self.pyaudio_instance:
                self.pyaudio_instance.terminate()
                self.pyaudio_instance = None

    def get_recording_stats(self) -> AudioStats:
        """Get current recording statistics."""
        duration = 0.0
        if self.start_time:
            duration = (datetime.now() - self.start_time).total_seconds()

        return AudioStats(
            is_recording=self.is_recording,
            duration_seconds=duration,
            sample_rate=self.sample_rate,
            chunk_size=self.chunk_size,
            total_chunks=self.total_chunks,
            peak_level=self.peak_level,
        )

    def __del__(self):
        """Ensure the capture thread is told to stop on deletion."""
        if getattr(self, "is_recording", False):
            self.stop()
