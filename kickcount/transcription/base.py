"""Abstract interfaces for streaming recognition."""

from abc import ABC, abstractmethod
import logging

from google.cloud import speech

from ..exceptions import RecognitionStreamError

logger = logging.getLogger(__name__)


class ResponseObserver(ABC):
    """Receives the server side of a bidirectional recognition stream.

    Every method is called from the stream's worker thread, never the UI thread.
    """

    @abstractmethod
    def on_next(self, response: speech.StreamingRecognizeResponse) -> None:
        """Handle one response pushed by the service."""
        pass

    @abstractmethod
    def on_error(self, error: RecognitionStreamError) -> None:
        """Handle a transport failure. No further callbacks follow."""
        pass

    @abstractmethod
    def on_completed(self) -> None:
        """Handle a clean end of the response stream."""
        pass


class AbstractStreamingBackend(ABC):
    """A recognition service that can open bidirectional streams."""

    @abstractmethod
    def initialize(self) -> bool:
        """Create the client connection.

        Returns:
            True if initialization successful
        """
        pass

    @abstractmethod
    def open_stream(self, observer: ResponseObserver):
        """Open a stream and return an object with ``send(request)`` and ``close()``."""
        pass

    @abstractmethod
    def shutdown(self) -> None:
        """Release the client connection."""
        pass
