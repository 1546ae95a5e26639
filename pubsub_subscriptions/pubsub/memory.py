"""
In-process implementation of the messaging service.

Mirrors the behaviour of Pub/Sub that the subscription operations rely on:
resource name collisions, unknown resources and unknown ack ids raise the same
google.api_core exceptions the real service returns, published messages fan
out to every subscription bound to the topic, and pulled messages stay
outstanding until acknowledged.
"""

import itertools
from collections import OrderedDict, deque
from typing import Any, Deque, Dict, Iterator, List, Tuple

from google.api_core import exceptions

from pubsub_subscriptions.logging import get_logger
from pubsub_subscriptions.models import ReceivedMessage, Subscription, Topic

logger = get_logger(__name__)

DELETED_TOPIC = "_deleted-topic_"


class InMemoryPubSubService:
    """Messaging service kept entirely in memory, for tests and dry runs."""

    def __init__(self, project_id: str = "local-dev"):
        self.project_id = project_id
        self.topics: "OrderedDict[str, Topic]" = OrderedDict()
        self.subscriptions: "OrderedDict[str, Subscription]" = OrderedDict()
        self.closed = False
        # (method, args) for every call, in call order
        self.calls: List[Tuple[str, Tuple[Any, ...]]] = []

        self._backlog: Dict[str, Deque[Tuple[str, bytes, Dict[str, str]]]] = {}
        self._outstanding: Dict[str, Dict[str, ReceivedMessage]] = {}
        self._message_ids = itertools.count(1)
        self._ack_ids = itertools.count(1)

    def _record(self, method: str, *args: Any) -> None:
        self.calls.append((method, args))

    def _topic_path(self, name: str) -> str:
        return f"projects/{self.project_id}/topics/{name}"

    def _subscription_path(self, name: str) -> str:
        return f"projects/{self.project_id}/subscriptions/{name}"

    def _get_subscription(self, name: str) -> Subscription:
        try:
            return self.subscriptions[name]
        except KeyError:
            raise exceptions.NotFound(
                f"Subscription does not exist: {self._subscription_path(name)}"
            )

    def list_subscriptions(self) -> Iterator[Subscription]:
        self._record("list_subscriptions")
        yield from list(self.subscriptions.values())

    def list_topics(self) -> Iterator[Topic]:
        self._record("list_topics")
        yield from list(self.topics.values())

    def create_topic(self, name: str) -> Topic:
        self._record("create_topic", name)
        if name in self.topics:
            raise exceptions.AlreadyExists(
                f"Topic already exists: {self._topic_path(name)}"
            )
        topic = Topic(name=name, path=self._topic_path(name))
        self.topics[name] = topic
        return topic

    def delete_topic(self, name: str) -> None:
        self._record("delete_topic", name)
        topic = self.topics.pop(name, None)
        if topic is None:
            raise exceptions.NotFound(f"Topic not found: {self._topic_path(name)}")
        # Bound subscriptions survive; they are detached from the topic.
        for sub_name, subscription in self.subscriptions.items():
            if subscription.topic == topic.path:
                self.subscriptions[sub_name] = subscription.model_copy(
                    update={"topic": DELETED_TOPIC}
                )

    def create_subscription(
        self, name: str, topic: str, ack_deadline_seconds: int
    ) -> Subscription:
        self._record("create_subscription", name, topic, ack_deadline_seconds)
        if topic not in self.topics:
            raise exceptions.NotFound(f"Topic not found: {self._topic_path(topic)}")
        if name in self.subscriptions:
            raise exceptions.AlreadyExists(
                f"Subscription already exists: {self._subscription_path(name)}"
            )
        subscription = Subscription(
            name=name,
            path=self._subscription_path(name),
            topic=self.topics[topic].path,
            ack_deadline_seconds=ack_deadline_seconds,
        )
        self.subscriptions[name] = subscription
        self._backlog[name] = deque()
        self._outstanding[name] = {}
        return subscription

    def delete_subscription(self, name: str) -> None:
        self._record("delete_subscription", name)
        self._get_subscription(name)
        del self.subscriptions[name]
        del self._backlog[name]
        del self._outstanding[name]

    def publish(self, topic: str, data: bytes, **attributes: str) -> str:
        self._record("publish", topic, data)
        if topic not in self.topics:
            raise exceptions.NotFound(f"Topic not found: {self._topic_path(topic)}")
        message_id = str(next(self._message_ids))
        topic_path = self.topics[topic].path
        for sub_name, subscription in self.subscriptions.items():
            if subscription.topic == topic_path:
                self._backlog[sub_name].append((message_id, data, dict(attributes)))
        return message_id

    def pull(self, subscription: str, max_messages: int) -> List[ReceivedMessage]:
        self._record("pull", subscription, max_messages)
        self._get_subscription(subscription)
        backlog = self._backlog[subscription]
        received = []
        while backlog and len(received) < max_messages:
            message_id, data, attributes = backlog.popleft()
            message = ReceivedMessage(
                ack_id=f"ack-{next(self._ack_ids)}",
                message_id=message_id,
                data=data,
                attributes=attributes,
            )
            self._outstanding[subscription][message.ack_id] = message
            received.append(message)
        return received

    def acknowledge(self, subscription: str, ack_ids: List[str]) -> None:
        self._record("acknowledge", subscription, tuple(ack_ids))
        self._get_subscription(subscription)
        outstanding = self._outstanding[subscription]
        unknown = [ack_id for ack_id in ack_ids if ack_id not in outstanding]
        if unknown:
            raise exceptions.NotFound(f"Unknown ack ids: {', '.join(unknown)}")
        for ack_id in ack_ids:
            del outstanding[ack_id]

    def outstanding(self, subscription: str) -> List[ReceivedMessage]:
        """Messages pulled from ``subscription`` but not yet acknowledged."""
        return list(self._outstanding.get(subscription, {}).values())

    def backlog_size(self, subscription: str) -> int:
        return len(self._backlog.get(subscription, ()))

    def close(self) -> None:
        self._record("close")
        self.closed = True
        logger.debug(f"Closed in-memory service for {self.project_id}")
