"""
Exceptions raised by the subscriptions tool.
"""


class PubSubSubscriptionsError(Exception):
    """Base class for every error the tool reports before exiting non-zero."""
    pass


class ConfigurationError(PubSubSubscriptionsError):
    """Required configuration is missing; raised before any client exists."""
    pass


class ClientError(PubSubSubscriptionsError):
    """The Pub/Sub clients could not be constructed (credentials, transport)."""
    pass


class ListSubscriptionsError(PubSubSubscriptionsError):
    """Enumerating the project's subscriptions failed part way or up front."""
    pass


class ListTopicsError(PubSubSubscriptionsError):
    """Enumerating the project's topics failed."""
    pass


class TopicCreationError(PubSubSubscriptionsError):
    """Topic could not be created: name collision, permissions, bad name."""
    pass


class TopicDeletionError(PubSubSubscriptionsError):
    pass


class SubscriptionCreationError(PubSubSubscriptionsError):
    """Subscription could not be created, e.g. name taken or topic missing."""
    pass


class SubscriptionDeletionError(PubSubSubscriptionsError):
    pass


class PublishError(PubSubSubscriptionsError):
    """A single publish failed; `index` is the position of the failing message."""

    def __init__(self, index: int, message: str):
        super().__init__(message)
        self.index = index


class PullError(PubSubSubscriptionsError):
    """Pulling or acknowledging a message failed."""
    pass
