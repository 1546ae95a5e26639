"""
Google Cloud Pub/Sub implementation of the messaging service.
Supports both Pub/Sub (production) and the Pub/Sub emulator (local development).
"""

from typing import Iterator, List, Optional

from google.api_core import exceptions
from google.cloud import pubsub_v1

from pubsub_subscriptions.config import Config
from pubsub_subscriptions.logging import get_logger, log_info
from pubsub_subscriptions.models import ReceivedMessage, Subscription, Topic

logger = get_logger(__name__)


def _short_name(path: str) -> str:
    """Last segment of a resource path (projects/p/topics/name -> name)."""
    return path.rsplit("/", 1)[-1]


class GooglePubSubService:
    """Blocking topic/subscription management over pubsub_v1 clients."""

    def __init__(
        self,
        project_id: str,
        pull_timeout: Optional[float] = None,
        publish_timeout: Optional[float] = None,
        publisher: Optional[pubsub_v1.PublisherClient] = None,
        subscriber: Optional[pubsub_v1.SubscriberClient] = None,
    ):
        """
        Initialize the Pub/Sub clients.

        Args:
            project_id: GCP project ID all resources live in
            pull_timeout: Seconds to wait on a pull before treating the
                         subscription as drained
            publish_timeout: Seconds to wait for a publish to be accepted
            publisher: Optional pre-built publisher client
            subscriber: Optional pre-built subscriber client
        """
        self.project_id = project_id
        self.pull_timeout = (
            Config.PULL_TIMEOUT_SECONDS if pull_timeout is None else pull_timeout
        )
        self.publish_timeout = (
            Config.PUBLISH_TIMEOUT_SECONDS if publish_timeout is None else publish_timeout
        )

        # Both clients use the emulator if PUBSUB_EMULATOR_HOST is set
        self._publisher = publisher or pubsub_v1.PublisherClient()
        self._subscriber = subscriber or pubsub_v1.SubscriberClient()
        if Config.PUBSUB_EMULATOR_HOST:
            log_info(
                f"Created Pub/Sub clients (emulator mode: {Config.PUBSUB_EMULATOR_HOST})",
                project=project_id,
            )
        else:
            log_info("Created Pub/Sub clients (production mode)", project=project_id)

    @property
    def _project_path(self) -> str:
        return f"projects/{self.project_id}"

    def _topic_path(self, name: str) -> str:
        return self._publisher.topic_path(self.project_id, name)

    def _subscription_path(self, name: str) -> str:
        return self._subscriber.subscription_path(self.project_id, name)

    @staticmethod
    def _to_topic(proto) -> Topic:
        return Topic(name=_short_name(proto.name), path=proto.name)

    @staticmethod
    def _to_subscription(proto) -> Subscription:
        return Subscription(
            name=_short_name(proto.name),
            path=proto.name,
            topic=proto.topic,
            ack_deadline_seconds=proto.ack_deadline_seconds,
        )

    def list_subscriptions(self) -> Iterator[Subscription]:
        # The pager fetches further pages lazily while iterating.
        pager = self._subscriber.list_subscriptions(
            request={"project": self._project_path}
        )
        for proto in pager:
            yield self._to_subscription(proto)

    def list_topics(self) -> Iterator[Topic]:
        pager = self._publisher.list_topics(request={"project": self._project_path})
        for proto in pager:
            yield self._to_topic(proto)

    def create_topic(self, name: str) -> Topic:
        proto = self._publisher.create_topic(request={"name": self._topic_path(name)})
        logger.debug(f"Created topic {proto.name}")
        return self._to_topic(proto)

    def delete_topic(self, name: str) -> None:
        self._publisher.delete_topic(request={"topic": self._topic_path(name)})

    def create_subscription(
        self, name: str, topic: str, ack_deadline_seconds: int
    ) -> Subscription:
        proto = self._subscriber.create_subscription(
            request={
                "name": self._subscription_path(name),
                "topic": self._topic_path(topic),
                "ack_deadline_seconds": ack_deadline_seconds,
            }
        )
        logger.debug(f"Created subscription {proto.name} on {proto.topic}")
        return self._to_subscription(proto)

    def delete_subscription(self, name: str) -> None:
        self._subscriber.delete_subscription(
            request={"subscription": self._subscription_path(name)}
        )

    def publish(self, topic: str, data: bytes, **attributes: str) -> str:
        future = self._publisher.publish(self._topic_path(topic), data, **attributes)
        return future.result(timeout=self.publish_timeout)

    def pull(self, subscription: str, max_messages: int) -> List[ReceivedMessage]:
        try:
            response = self._subscriber.pull(
                request={
                    "subscription": self._subscription_path(subscription),
                    "max_messages": max_messages,
                },
                timeout=self.pull_timeout,
            )
        except exceptions.DeadlineExceeded:
            logger.debug(f"Pull on {subscription} timed out, no messages available")
            return []

        return [
            ReceivedMessage(
                ack_id=received.ack_id,
                message_id=received.message.message_id,
                data=received.message.data,
                attributes=dict(received.message.attributes),
            )
            for received in response.received_messages
        ]

    def acknowledge(self, subscription: str, ack_ids: List[str]) -> None:
        if not ack_ids:
            return
        self._subscriber.acknowledge(
            request={
                "subscription": self._subscription_path(subscription),
                "ack_ids": ack_ids,
            }
        )

    def close(self) -> None:
        self._subscriber.close()
        # Flushes any pending publish batches.
        self._publisher.stop()
