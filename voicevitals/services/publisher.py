"""Session state publisher for pub/sub listeners."""

import logging
from typing import Callable
from pubsub import pub
from ..models.session import Session

logger = logging.getLogger(__name__)


class SessionPublisher:
    """Publishes session snapshots using pubsub.pub."""

    def __init__(self, topic: str = "voice_session.state"):
        """Initialize session publisher.

        Args:
            topic: Pub/sub topic name for session snapshots
        """
        self.topic = topic
        logger.info(f"SessionPublisher initialized with topic: {topic}")

    def publish_session(self, session: Session) -> None:
        """Publish a session snapshot to the pub/sub topic.

        Args:
            session: Snapshot to publish (never the live session object)
        """
        pub.sendMessage(self.topic, session=session)
        logger.debug(f"Published session state: recording={session.is_recording}, active={session.is_active}")

    def subscribe(self, listener: Callable[[Session], None]) -> None:
        pub.subscribe(listener, self.topic)

    def unsubscribe(self, listener: Callable[[Session], None]) -> None:
        pub.unsubscribe(listener, self.topic)
