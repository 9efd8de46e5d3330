"""Publisher for raw microphone frames."""

import logging
from pubsub import pub
from ..models.events import AudioFrameEvent

logger = logging.getLogger(__name__)


class AudioPublisher:
    """Publishes microphone frames so recognition engines can listen in."""

    def __init__(self, topic: str = "audio.frame"):
        """Initialize audio publisher.

        Args:
            topic: Pub/sub topic name for audio frames
        """
        self.topic = topic
        logger.info(f"AudioPublisher initialized with topic: {self.topic}")

    def publish_frame(self, event: AudioFrameEvent) -> None:
        pub.sendMessage(self.topic, event=event)
