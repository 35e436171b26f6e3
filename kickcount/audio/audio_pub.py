"""Audio publisher module for pub/sub event publishing."""

import itertools
import logging
import time

from pubsub import pub
from ..models.events import AudioEvent

logger = logging.getLogger(__name__)

AUDIO_TOPIC = "audio.chunk"


class AudioPublisher:
    """Wraps raw microphone chunks into AudioEvents and publishes them with pubsub.pub."""

    def __init__(self, topic: str = AUDIO_TOPIC, sample_rate: int = 16000, channels: int = 1):
        """Initialize audio publisher.

        Args:
            topic: Pub/sub topic name for audio events
            sample_rate: Sample rate stamped on every event
            channels: Channel count stamped on every event
        """
        self.topic = topic
        self.sample_rate = sample_rate
        self.channels = channels
        self._sequence = itertools.count(1)
        logger.info(f"AudioPublisher initialized with topic: {topic}")

    def publish_chunk(self, audio_data: bytes) -> AudioEvent:
        """Publish one captured chunk.

        Called from the capture thread; listeners run synchronously on it.
        """
        sequence_number = next(self._sequence)
        audio_event = AudioEvent(
            chunk_id=f"chunk_{sequence_number}",
            audio_data=audio_data,
            timestamp=time.time(),
            sequence_number=sequence_number,
            sample_rate=self.sample_rate,
            channels=self.channels,
        )
        pub.sendMessage(self.topic, event=audio_event)
        return audio_event
