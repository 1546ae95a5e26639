"""
Topic and subscription operations over a messaging service.

Every operation is a blocking call into the service. Service failures are
wrapped in the matching PubSubSubscriptionsError subclass with the original error
chained; nothing is retried.
"""

import json
from collections import deque
from contextlib import contextmanager
from typing import Deque, Iterator, List

from google.api_core import exceptions

from pubsub_subscriptions.config import Config
from pubsub_subscriptions.exceptions import (
    ListSubscriptionsError,
    ListTopicsError,
    PublishError,
    PullError,
    SubscriptionCreationError,
    SubscriptionDeletionError,
    TopicCreationError,
    TopicDeletionError,
)
from pubsub_subscriptions.logging import get_logger, log_debug, log_info, log_warning
from pubsub_subscriptions.models import ReceivedMessage, Subscription, Topic
from pubsub_subscriptions.pubsub.service import MessagingService

logger = get_logger(__name__)

# GoogleAPIError covers call errors and RetryError; TimeoutError comes from
# waiting on a publish future.
SERVICE_ERRORS = (exceptions.GoogleAPIError, TimeoutError)

MESSAGE_TEMPLATE = "hello world #{index}"


def list_subscriptions(service: MessagingService) -> List[Subscription]:
    """Drain the project's subscriptions, in the order the service returns them."""
    subscriptions = []
    try:
        for subscription in service.list_subscriptions():
            subscriptions.append(subscription)
    except SERVICE_ERRORS as err:
        raise ListSubscriptionsError(f"Failed to list subscriptions: {err}") from err
    log_debug("Listed subscriptions", count=len(subscriptions))
    return subscriptions


def list_topics(service: MessagingService) -> List[Topic]:
    """Drain the project's topics, in the order the service returns them."""
    try:
        return list(service.list_topics())
    except SERVICE_ERRORS as err:
        raise ListTopicsError(f"Failed to list topics: {err}") from err


def create_topic(service: MessagingService, name: str) -> Topic:
    try:
        topic = service.create_topic(name)
    except SERVICE_ERRORS as err:
        raise TopicCreationError(f"Failed to create the topic {name}: {err}") from err
    print(f"Created topic: {topic}")
    log_info("Created topic", topic=topic.path)
    return topic


def delete_topic(service: MessagingService, name: str) -> None:
    try:
        service.delete_topic(name)
    except SERVICE_ERRORS as err:
        raise TopicDeletionError(f"Failed to delete the topic {name}: {err}") from err
    print("Topic deleted.")
    log_info("Deleted topic", topic=name)


@contextmanager
def provisioned_topic(service: MessagingService, name: str) -> Iterator[Topic]:
    """
    Create a topic for the duration of the block and delete it on every exit.

    If the block raised, a failed delete is only logged so the block's error
    is the one that propagates. On a clean exit a failed delete raises
    TopicDeletionError.
    """
    topic = create_topic(service, name)
    try:
        yield topic
    except BaseException:
        try:
            delete_topic(service, name)
        except TopicDeletionError:
            log_warning("Could not clean up topic", topic=name, exc_info=True)
        raise
    delete_topic(service, name)


def create_subscription(
    service: MessagingService,
    name: str,
    topic: str,
    ack_deadline_seconds: int = Config.ACK_DEADLINE_SECONDS,
) -> Subscription:
    try:
        subscription = service.create_subscription(name, topic, ack_deadline_seconds)
    except SERVICE_ERRORS as err:
        raise SubscriptionCreationError(
            f"Failed to create a new subscription {name}: {err}"
        ) from err
    print(f"Created subscription: {subscription}")
    log_info(
        "Created subscription",
        subscription=subscription.path,
        topic=subscription.topic,
        ack_deadline_seconds=subscription.ack_deadline_seconds,
    )
    return subscription


def delete_subscription(service: MessagingService, name: str) -> None:
    try:
        service.delete_subscription(name)
    except SERVICE_ERRORS as err:
        raise SubscriptionDeletionError(
            f"Failed to delete the subscription {name}: {err}"
        ) from err
    print("Subscription deleted.")
    log_info("Deleted subscription", subscription=name)


@contextmanager
def provisioned_subscription(
    service: MessagingService,
    name: str,
    topic: str,
    ack_deadline_seconds: int = Config.ACK_DEADLINE_SECONDS,
) -> Iterator[Subscription]:
    """
    Create a subscription for the duration of the block.

    A clean exit deletes it and a failed delete is fatal. If the block raised,
    the delete is still attempted; its failure is logged and the block's
    error propagates.
    """
    subscription = create_subscription(service, name, topic, ack_deadline_seconds)
    try:
        yield subscription
    except BaseException:
        try:
            delete_subscription(service, name)
        except SubscriptionDeletionError:
            log_warning(
                "Could not clean up subscription", subscription=name, exc_info=True
            )
        raise
    delete_subscription(service, name)


def publish_messages(
    service: MessagingService, topic: str, count: int = Config.MESSAGE_COUNT
) -> List[str]:
    """
    Publish ``count`` messages "hello world #0" .. "hello world #<count-1>".

    Messages are published one at a time in index order. The first failure
    stops publishing.

    Returns:
        Message IDs, in publish order

    Raises:
        PublishError: With ``index`` set to the message that failed
    """
    message_ids = []
    for index in range(count):
        data = MESSAGE_TEMPLATE.format(index=index).encode("utf-8")
        try:
            message_ids.append(service.publish(topic, data))
        except SERVICE_ERRORS as err:
            raise PublishError(
                index, f"Failed to publish message #{index}: {err}"
            ) from err
    log_info(f"Published {len(message_ids)} messages", topic=topic)
    return message_ids


class MessageStream:
    """
    Lazy, finite sequence of messages pulled from a subscription.

    A pull request is issued only once the previously pulled messages have all
    been handed out, asking for no more than the number still allowed. The
    stream ends after ``limit`` messages or as soon as a pull comes back empty.
    """

    def __init__(self, service: MessagingService, subscription: str, limit: int):
        self.service = service
        self.subscription = subscription
        self.limit = limit
        self.delivered = 0
        self._buffer: Deque[ReceivedMessage] = deque()
        self._exhausted = False
        self._closed = False

    def __iter__(self) -> "MessageStream":
        return self

    def __next__(self) -> ReceivedMessage:
        if self._closed or self.delivered >= self.limit:
            raise StopIteration
        if not self._buffer:
            if self._exhausted:
                raise StopIteration
            batch = self.service.pull(self.subscription, self.limit - self.delivered)
            if not batch:
                self._exhausted = True
                raise StopIteration
            self._buffer.extend(batch)
        self.delivered += 1
        return self._buffer.popleft()

    def close(self) -> None:
        # Undelivered messages are redelivered once their ack deadline passes.
        if self._buffer:
            logger.debug(
                f"Dropping {len(self._buffer)} undelivered messages from {self.subscription}"
            )
        self._buffer.clear()
        self._closed = True

    def __enter__(self) -> "MessageStream":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def pull_messages(
    service: MessagingService, subscription: str, count: int = Config.MESSAGE_COUNT
) -> List[ReceivedMessage]:
    """
    Pull up to ``count`` messages, printing and acknowledging each in turn.

    Each message is acknowledged before the next one is taken from the
    stream. Running out of available messages early is not an error.

    Raises:
        PullError: If a pull or an acknowledgment fails
    """
    received = []
    with MessageStream(service, subscription, count) as stream:
        while True:
            try:
                message = next(stream)
            except StopIteration:
                break
            except SERVICE_ERRORS as err:
                raise PullError(f"Failed when iterating on messages: {err}") from err

            print(f"Got message: {json.dumps(message.text, ensure_ascii=False)}")
            try:
                service.acknowledge(subscription, [message.ack_id])
            except SERVICE_ERRORS as err:
                raise PullError(
                    f"Failed to acknowledge message {message.message_id}: {err}"
                ) from err
            received.append(message)

    log_info(f"Pulled {len(received)} messages", subscription=subscription)
    return received


def publish_and_pull(
    service: MessagingService,
    topic: str,
    subscription: str,
    count: int = Config.MESSAGE_COUNT,
) -> List[ReceivedMessage]:
    """Publish ``count`` messages to ``topic``, then pull them back."""
    publish_messages(service, topic, count)
    return pull_messages(service, subscription, count)
