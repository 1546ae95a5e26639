"""Messaging service protocol used by the subscription operations."""

from typing import Iterable, List, Protocol, runtime_checkable

from pubsub_subscriptions.models import ReceivedMessage, Subscription, Topic


@runtime_checkable
class MessagingService(Protocol):
    """
    Synchronous protocol over a managed publish/subscribe service.

    Resource arguments are short names (``example-topic``); implementations
    build full resource paths for their project. Failures surface as
    ``google.api_core.exceptions.GoogleAPICallError`` subclasses.
    """

    project_id: str

    def list_subscriptions(self) -> Iterable[Subscription]:
        """Enumerate the project's subscriptions in service order."""
        ...

    def list_topics(self) -> Iterable[Topic]:
        """Enumerate the project's topics in service order."""
        ...

    def create_topic(self, name: str) -> Topic:
        ...

    def delete_topic(self, name: str) -> None:
        ...

    def create_subscription(
        self, name: str, topic: str, ack_deadline_seconds: int
    ) -> Subscription:
        """Create a subscription bound to an existing topic."""
        ...

    def delete_subscription(self, name: str) -> None:
        ...

    def publish(self, topic: str, data: bytes, **attributes: str) -> str:
        """
        Publish one message and wait for the service to accept it.

        Returns:
            Message ID assigned by the service
        """
        ...

    def pull(self, subscription: str, max_messages: int) -> List[ReceivedMessage]:
        """
        Pull up to ``max_messages`` messages.

        Returns:
            Received messages; an empty list when none are currently available
        """
        ...

    def acknowledge(self, subscription: str, ack_ids: List[str]) -> None:
        ...

    def close(self) -> None:
        ...
