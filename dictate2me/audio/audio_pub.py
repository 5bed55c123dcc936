"""Audio publisher module for pub/sub chunk publishing."""

import logging
from pubsub import pub
from ..models.audio import NormalizedChunk

logger = logging.getLogger(__name__)


class AudioPublisher:
    """Publishes normalized chunks using pubsub.pub."""

    def __init__(self, topic: str = "audio.chunk"):
        """Initialize audio publisher.

        Args:
            topic: Pub/sub topic name for normalized chunks
        """
        self.topic = topic
        logger.info(f"AudioPublisher initialized with topic: {topic}")

    def publish_chunk(self, chunk: NormalizedChunk) -> None:
        """Publish a normalized chunk to the pub/sub topic.

        Args:
            chunk: NormalizedChunk to publish
        """
        pub.sendMessage(self.topic, chunk=chunk)
        logger.debug(f"Published chunk #{chunk.sequence_number} to {self.topic}")
