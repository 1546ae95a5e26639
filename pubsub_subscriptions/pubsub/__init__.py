"""
Messaging service implementations: Google Cloud Pub/Sub and an in-memory fake.
"""

from pubsub_subscriptions.pubsub.service import MessagingService
from pubsub_subscriptions.pubsub.client import GooglePubSubService
from pubsub_subscriptions.pubsub.memory import InMemoryPubSubService

__all__ = [
    "MessagingService",
    "GooglePubSubService",
    "InMemoryPubSubService",
]
