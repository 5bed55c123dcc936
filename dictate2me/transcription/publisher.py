"""Transcription publisher module for pub/sub event publishing."""

import logging
from pubsub import pub
from ..errors import Dictate2MeError
from ..models.transcription import ModelStatus, TranscriptionResult

logger = logging.getLogger(__name__)


class TranscriptionPublisher:
    """Publishes bridge results, errors and model status using pubsub.pub."""

    def __init__(self,
                 result_topic: str = "transcription.result",
                 error_topic: str = "transcription.error",
                 status_topic: str = "model.status"):
        """Initialize transcription publisher.

        Args:
            result_topic: Topic for TranscriptionResult messages
            error_topic: Topic for Dictate2MeError messages
            status_topic: Topic for ModelStatus messages
        """
        self.result_topic = result_topic
        self.error_topic = error_topic
        self.status_topic = status_topic
        logger.info(f"TranscriptionPublisher initialized with topics: "
                    f"{result_topic}, {error_topic}, {status_topic}")

    def publish_result(self, result: TranscriptionResult) -> None:
        pub.sendMessage(self.result_topic, result=result)
        logger.debug(f"Published transcription result #{result.sequence_number}")

    def publish_error(self, error: Dictate2MeError) -> None:
        pub.sendMessage(self.error_topic, error=error)
        logger.debug(f"Published error: {error.reason}")

    def publish_status(self, status: ModelStatus) -> None:
        pub.sendMessage(self.status_topic, status=status)
