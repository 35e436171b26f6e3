"""Unit tests for the outgoing request builder."""

import threading

import pytest
from google.cloud import speech

from kickcount.transcription.request_builder import FirstRequestFlag, StreamingRequestBuilder


def has_config(request: speech.StreamingRecognizeRequest) -> bool:
    return "streaming_config" in request


@pytest.mark.unit
class TestFirstRequestFlag:

    def test_claimed_once(self):
        flag = FirstRequestFlag()

        assert flag.is_set is True
        assert flag.get_and_clear() is True
        assert flag.get_and_clear() is False
        assert flag.is_set is False

    def test_single_winner_across_threads(self):
        flag = FirstRequestFlag()
        winners = []
        barrier = threading.Barrier(8)

        def claim():
            barrier.wait()
            if flag.get_and_clear():
                winners.append(threading.get_ident())

        threads = [threading.Thread(target=claim) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(winners) == 1


@pytest.mark.unit
class TestStreamingRequestBuilder:

    def test_first_chunk_preceded_by_config(self):
        builder = StreamingRequestBuilder(phrase_hints=["kick", "tackle", "hand", "mark"])

        requests = builder.build(b"\x01\x02")

        assert len(requests) == 2
        assert has_config(requests[0])
        assert requests[0].audio_content == b""
        assert requests[1].audio_content == b"\x01\x02"
        assert not has_config(requests[1])

    def test_config_sent_exactly_once(self):
        builder = StreamingRequestBuilder()

        sent = []
        for i in range(50):
            sent.extend(builder.build(bytes([i % 256]) * 4))

        assert sum(1 for request in sent if has_config(request)) == 1
        assert has_config(sent[0])
        assert len(sent) == 51
        assert all(request.audio_content for request in sent[1:])

    def test_config_contents(self):
        builder = StreamingRequestBuilder(
            language_code="en-AU",
            sample_rate=16000,
            phrase_hints=["kick", "tackle", "hand", "mark"],
        )

        streaming_config = builder.build(b"\x00")[0].streaming_config
        config = streaming_config.config

        assert config.language_code == "en-AU"
        assert config.encoding == speech.RecognitionConfig.AudioEncoding.LINEAR16
        assert config.sample_rate_hertz == 16000
        assert list(config.speech_contexts[0].phrases) == ["kick", "tackle", "hand", "mark"]
        assert config.model == ""
        assert streaming_config.interim_results is False
        assert streaming_config.single_utterance is False

    def test_optional_model(self):
        builder = StreamingRequestBuilder(model="latest_long", interim_results=True)

        streaming_config = builder.build(b"\x00")[0].streaming_config

        assert streaming_config.config.model == "latest_long"
        assert streaming_config.interim_results is True

    def test_new_builder_sends_config_again(self):
        first = StreamingRequestBuilder()
        first.build(b"\x00")

        second = StreamingRequestBuilder()

        assert has_config(second.build(b"\x00")[0])

    def test_concurrent_builds_attach_config_once(self):
        builder = StreamingRequestBuilder()
        results = []
        lock = threading.Lock()

        def produce():
            for _ in range(20):
                built = builder.build(b"\x00\x00")
                with lock:
                    results.extend(built)

        threads = [threading.Thread(target=produce) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert sum(1 for request in results if has_config(request)) == 1
