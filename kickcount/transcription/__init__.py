"""Streaming recognition for KickCount."""

from .base import AbstractStreamingBackend, ResponseObserver
from .google_backend import GoogleStreamingBackend, RecognitionStream
from .request_builder import FirstRequestFlag, StreamingRequestBuilder
from .relay import TranscriptRelay

__all__ = [
    "AbstractStreamingBackend",
    "ResponseObserver",
    "GoogleStreamingBackend",
    "RecognitionStream",
    "FirstRequestFlag",
    "StreamingRequestBuilder",
    "TranscriptRelay",
]
