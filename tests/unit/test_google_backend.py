"""Unit tests for the Google streaming backend."""

import threading
from unittest.mock import Mock, patch

import pytest
from google.api_core import exceptions as gax_exceptions
from google.cloud import speech

from kickcount.exceptions import RecognitionStreamError
from kickcount.transcription.base import ResponseObserver
from kickcount.transcription.google_backend import GoogleStreamingBackend
from tests.conftest import FakeSpeechClient, make_response


class RecordingObserver(ResponseObserver):
    """Collects callbacks and the threads they arrived on."""

    def __init__(self):
        self.responses = []
        self.errors = []
        self.completed = threading.Event()
        self.failed = threading.Event()
        self.threads = set()

    def on_next(self, response):
        self.threads.add(threading.get_ident())
        self.responses.append(response)

    def on_error(self, error):
        self.errors.append(error)
        self.failed.set()

    def on_completed(self):
        self.completed.set()


def audio_request(data: bytes) -> speech.StreamingRecognizeRequest:
    return speech.StreamingRecognizeRequest(audio_content=data)


@pytest.mark.unit
class TestGoogleStreamingBackend:

    def test_responses_delivered_off_caller_thread(self):
        client = FakeSpeechClient(responses=[make_response("kick"), make_response("mark")])
        observer = RecordingObserver()
        backend = GoogleStreamingBackend(client=client)

        stream = backend.open_stream(observer)
        stream.close()

        assert observer.completed.wait(timeout=2.0)
        assert [r.results[0].alternatives[0].transcript for r in observer.responses] == ["kick", "mark"]
        assert threading.get_ident() not in observer.threads
        assert observer.errors == []

    def test_requests_reach_client_in_order(self):
        client = FakeSpeechClient()
        backend = GoogleStreamingBackend(client=client)

        stream = backend.open_stream(RecordingObserver())
        assert stream.send(audio_request(b"\x01"))
        assert stream.send(audio_request(b"\x02"))
        stream.close()

        assert client.requests_drained.wait(timeout=2.0)
        assert [r.audio_content for r in client.received] == [b"\x01", b"\x02"]
        assert stream.requests_sent == 2

    def test_send_after_close_is_dropped(self):
        client = FakeSpeechClient()
        stream = GoogleStreamingBackend(client=client).open_stream(RecordingObserver())

        stream.close()
        stream.close()

        assert stream.send(audio_request(b"\x01")) is False
        assert stream.join(timeout=2.0)
        assert client.received == []

    def test_transport_error_reported_once(self):
        cause = gax_exceptions.ServiceUnavailable("speech backend down")
        client = FakeSpeechClient(responses=[make_response("tackle")], error=cause)
        observer = RecordingObserver()

        stream = GoogleStreamingBackend(client=client).open_stream(observer)

        assert observer.failed.wait(timeout=2.0)
        assert stream.join(timeout=2.0)
        assert len(observer.responses) == 1
        assert len(observer.errors) == 1
        assert isinstance(observer.errors[0], RecognitionStreamError)
        assert observer.errors[0].cause is cause
        assert not observer.completed.is_set()
        assert stream.is_open is False
        assert stream.send(audio_request(b"\x01")) is False

    def test_unexpected_error_is_wrapped(self):
        client = FakeSpeechClient(error=ValueError("bad frame"))
        observer = RecordingObserver()

        GoogleStreamingBackend(client=client).open_stream(observer)

        assert observer.failed.wait(timeout=2.0)
        assert isinstance(observer.errors[0].cause, ValueError)

    def test_shutdown_is_idempotent(self):
        client = FakeSpeechClient()
        backend = GoogleStreamingBackend(client=client)

        backend.shutdown()
        backend.shutdown()

        client.transport.close.assert_called_once()
        with pytest.raises(RuntimeError):
            backend.open_stream(RecordingObserver())

    def test_shutdown_before_initialize(self):
        backend = GoogleStreamingBackend()

        backend.shutdown()

        assert backend.client is None

    def test_initialize_with_service_account(self):
        credentials = Mock(project_id="footy-demo")
        with patch("kickcount.transcription.google_backend.service_account.Credentials."
                   "from_service_account_file", return_value=credentials) as from_file, \
                patch("kickcount.transcription.google_backend.SpeechClient") as client_class:
            backend = GoogleStreamingBackend(credentials_path="/secrets/sa.json")

            assert backend.initialize() is True

        from_file.assert_called_once_with("/secrets/sa.json")
        client_class.assert_called_once_with(credentials=credentials)
        assert backend.project_id == "footy-demo"

    def test_initialize_with_default_credentials(self):
        with patch("kickcount.transcription.google_backend.SpeechClient") as client_class:
            backend = GoogleStreamingBackend()
            backend.initialize()

        client_class.assert_called_once_with()
        assert backend.client is client_class.return_value
