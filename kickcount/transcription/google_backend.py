"""Google Speech-to-Text bidirectional streaming backend."""

import queue
import logging
import threading
from typing import Iterator, Optional

from google.cloud import speech
from google.cloud.speech_v1.services.speech import SpeechClient
from google.api_core import exceptions as gax_exceptions
from google.oauth2 import service_account

from .base import AbstractStreamingBackend, ResponseObserver
from ..exceptions import RecognitionStreamError

logger = logging.getLogger(__name__)

_END_OF_STREAM = object()


class RecognitionStream:
    """Client half of one streaming_recognize call.

    Requests are queued by ``send`` and consumed by the library through a
    generator; responses are pushed to the observer from a worker thread.
    """

    def __init__(self, client, observer: ResponseObserver, name: str = "RecognitionStreamThread"):
        self.client = client
        self.observer = observer
        self._requests: "queue.Queue" = queue.Queue()
        self._closed = threading.Event()
        self._finished = threading.Event()
        self.requests_sent = 0
        self.responses_received = 0
        self.thread = threading.Thread(target=self._run, name=name, daemon=True)

    @property
    def is_open(self) -> bool:
        return not self._closed.is_set() and not self._finished.is_set()

    def start(self) -> "RecognitionStream":
        self.thread.start()
        return self

    def send(self, request: speech.StreamingRecognizeRequest) -> bool:
        """Queue a request. Returns False if the stream no longer accepts requests."""
        if not self.is_open:
            logger.debug("Dropping request on closed recognition stream")
            return False
        self._requests.put(request)
        self.requests_sent += 1
        return True

    def close(self) -> None:
        """Half-close: no more requests; responses already in flight still arrive."""
        if self._closed.is_set():
            return
        self._closed.set()
        self._requests.put(_END_OF_STREAM)
        logger.debug(f"Recognition stream half-closed after {self.requests_sent} requests")

    def join(self, timeout: Optional[float] = None) -> bool:
        self.thread.join(timeout)
        return not self.thread.is_alive()

    def _request_iterator(self) -> Iterator[speech.StreamingRecognizeRequest]:
        while True:
            request = self._requests.get()
            if request is _END_OF_STREAM:
                return
            yield request

    def _run(self) -> None:
        try:
            responses = self.client.streaming_recognize(requests=self._request_iterator())
            for response in responses:
                self.responses_received += 1
                self.observer.on_next(response)
        except gax_exceptions.GoogleAPICallError as e:
            self._fail(RecognitionStreamError(f"Google Speech streaming error: {e}", e))
        except Exception as e:
            self._fail(RecognitionStreamError(f"Recognition stream failed: {e}", e))
        else:
            self._finished.set()
            self.observer.on_completed()

    def _fail(self, error: RecognitionStreamError) -> None:
        self._finished.set()
        # Unblock the request generator if the library is still holding it.
        self._requests.put(_END_OF_STREAM)
        self.observer.on_error(error)


class GoogleStreamingBackend(AbstractStreamingBackend):
    """Google Speech-to-Text streaming recognition backend."""

    def __init__(self, credentials_path: Optional[str] = None, client=None):
        """Initialize Google streaming backend.

        Args:
            credentials_path: Path to a service account JSON file; when None,
                Application Default Credentials are used
            client: Pre-built client, mainly for tests
        """
        self.credentials_path = credentials_path
        self.client = client
        self.project_id = None
        self.service_name = "Google Speech-to-Text"
        self._shut_down = False

    def initialize(self) -> bool:
        """Create the Speech client."""
        if self.client is not None:
            return True

        if self.credentials_path:
            logger.info(f"Loading Google credentials from: {self.credentials_path}")
            credentials = service_account.Credentials.from_service_account_file(self.credentials_path)
            self.project_id = credentials.project_id
            self.client = SpeechClient(credentials=credentials)
            logger.info(f"Using Google Cloud project: {self.project_id}")
        else:
            logger.info("No credentials file configured, using Application Default Credentials")
            self.client = SpeechClient()

        logger.info("Google Speech streaming backend initialized successfully")
        return True

    def open_stream(self, observer: ResponseObserver) -> RecognitionStream:
        """Open a bidirectional stream whose responses go to ``observer``."""
        if self._shut_down:
            raise RuntimeError("Backend has been shut down")
        if self.client is None:
            self.initialize()
        logger.info("Opening streaming recognition call")
        return RecognitionStream(self.client, observer).start()

    def shutdown(self) -> None:
        """Close the client transport. Safe to call more than once."""
        if self._shut_down:
            return
        self._shut_down = True
        if self.client is None:
            return
        transport = getattr(self.client, "transport", None)
        if transport is not None:
            transport.close()
        logger.info("Google Speech client shut down")
