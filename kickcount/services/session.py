"""Recording session lifecycle: capture -> streaming requests -> relayed responses."""

import logging
import threading
from typing import Callable, Optional

from pubsub import pub

from ..audio.audio_pub import AudioPublisher, AUDIO_TOPIC
from ..audio.capture import AudioCapture
from ..config import KickCountConfig
from ..exceptions import PermissionDeniedError, RecognitionStreamError
from ..models.events import AudioEvent
from ..models.session import SessionState
from ..transcription.base import AbstractStreamingBackend, ResponseObserver
from ..transcription.relay import TranscriptRelay
from ..transcription.request_builder import StreamingRequestBuilder
from ..ui.dispatcher import UiDispatcher

logger = logging.getLogger(__name__)


class RecordingSession(ResponseObserver):
    """One resume-to-pause period of streaming recognition.

    Moves IDLE -> STREAMING -> STOPPED and never back. Use it as a context
    manager to guarantee the microphone and stream are released.
    """

    def __init__(self,
                 backend: AbstractStreamingBackend,
                 request_builder: StreamingRequestBuilder,
                 relay: TranscriptRelay,
                 dispatcher: UiDispatcher,
                 capture_factory: Callable[[], AudioCapture],
                 publisher: AudioPublisher):
        self.backend = backend
        self.request_builder = request_builder
        self.relay = relay
        self.dispatcher = dispatcher
        self.capture_factory = capture_factory
        self.publisher = publisher

        self.state = SessionState.IDLE
        self.stream = None
        self.audio_capture: Optional[AudioCapture] = None
        self.error: Optional[RecognitionStreamError] = None
        self._lock = threading.RLock()
        self._subscribed = False
        self.results_received = 0

    def start(self) -> None:
        with self._lock:
            if self.state is not SessionState.IDLE:
                logger.warning(f"Cannot start a session in state {self.state.value}")
                return
            try:
                self.stream = self.backend.open_stream(self)
                pub.subscribe(self._on_audio_event, self.publisher.topic)
                self._subscribed = True
                self.audio_capture = self.capture_factory()
                self.state = SessionState.STREAMING
                self.audio_capture.start(self.publisher.publish_chunk)
            except Exception:
                self.stop()
                raise
        logger.info("Recording session streaming")

    def stop(self) -> None:
        """Release microphone, subscription and stream. Idempotent."""
        with self._lock:
            if self.state is SessionState.STOPPED:
                return
            self.state = SessionState.STOPPED
            capture, self.audio_capture = self.audio_capture, None
            if capture is not None:
                capture.stop()
            if self._subscribed:
                pub.unsubscribe(self._on_audio_event, self.publisher.topic)
                self._subscribed = False
            if self.stream is not None:
                self.stream.close()
        logger.info("Recording session stopped")

    def _on_audio_event(self, event: AudioEvent) -> None:
        """Capture thread: turn a chunk into requests on the stream."""
        if self.state is not SessionState.STREAMING:
            return
        for request in self.request_builder.build(event.audio_data):
            self.stream.send(request)

    # ResponseObserver, called on the stream thread

    def on_next(self, response) -> None:
        self.dispatcher.run_on_ui_thread(lambda: self._apply_response(response))

    def _apply_response(self, response) -> None:
        """UI thread: relay the response and record what it matched."""
        result = self.relay.handle_response(response)
        if result is None:
            return
        self.results_received += 1
        hits = {keyword: count for keyword, count in result.matches.items() if count}
        if hits:
            logger.info(f"Keyword hits {hits} (confidence={result.confidence:.2f})")
        else:
            logger.debug(f"No keyword hits (confidence={result.confidence:.2f})")

    def on_error(self, error: RecognitionStreamError) -> None:
        logger.error(f"an error occurred: {error}", exc_info=error.cause)
        self.error = error
        self.stop()

    def on_completed(self) -> None:
        logger.info("stream closed")
        self.stop()

    def __enter__(self) -> "RecordingSession":
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.stop()


class RecordingSessionController:
    """Owns the recognition backend and the current session across resume/pause."""

    def __init__(self,
                 config: KickCountConfig,
                 backend: AbstractStreamingBackend,
                 relay: TranscriptRelay,
                 dispatcher: UiDispatcher,
                 capture_factory: Optional[Callable[[], AudioCapture]] = None):
        self.config = config
        self.backend = backend
        self.relay = relay
        self.dispatcher = dispatcher
        self.capture_factory = capture_factory or self._default_capture
        self.permitted = False
        self.session: Optional[RecordingSession] = None
        self._destroyed = False

    @property
    def state(self) -> SessionState:
        if self.session is None:
            return SessionState.IDLE
        return self.session.state

    def resume(self) -> RecordingSession:
        """Start a fresh session, which sends the streaming config again."""
        if not self.permitted:
            raise PermissionDeniedError("No permission to record")
        if self._destroyed:
            raise RuntimeError("Controller has been destroyed")
        if self.session is not None and self.session.state is SessionState.STREAMING:
            return self.session

        self.session = RecordingSession(
            backend=self.backend,
            request_builder=self._new_request_builder(),
            relay=self.relay,
            dispatcher=self.dispatcher,
            capture_factory=self.capture_factory,
            publisher=AudioPublisher(
                topic=AUDIO_TOPIC,
                sample_rate=self.config.get('audio.sample_rate', 16000),
                channels=self.config.get('audio.channels', 1),
            ),
        )
        self.session.start()
        return self.session

    def pause(self) -> None:
        if self.session is not None:
            self.session.stop()

    def destroy(self) -> None:
        if self._destroyed:
            return
        self.pause()
        self.backend.shutdown()
        self._destroyed = True
        logger.info("Recording controller destroyed")

    def _new_request_builder(self) -> StreamingRequestBuilder:
        return StreamingRequestBuilder(
            language_code=self.config.get('recognition.language_code', 'en-AU'),
            sample_rate=self.config.get('audio.sample_rate', 16000),
            phrase_hints=[keyword for keyword, _ in self.config.get_keywords()],
            interim_results=self.config.get('recognition.interim_results', False),
            single_utterance=self.config.get('recognition.single_utterance', False),
            model=self.config.get('recognition.model'),
        )

    def _default_capture(self) -> AudioCapture:
        return AudioCapture(
            sample_rate=self.config.get('audio.sample_rate', 16000),
            chunk_size=self.config.get('audio.chunk_size', 1024),
            channels=self.config.get('audio.channels', 1),
        )
