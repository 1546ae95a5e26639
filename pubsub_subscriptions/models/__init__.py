"""
Data models for Pub/Sub resources.
"""

from .resources import (
    Topic,
    Subscription,
    ReceivedMessage,
    MIN_ACK_DEADLINE_SECONDS,
    MAX_ACK_DEADLINE_SECONDS,
)

__all__ = [
    "Topic",
    "Subscription",
    "ReceivedMessage",
    "MIN_ACK_DEADLINE_SECONDS",
    "MAX_ACK_DEADLINE_SECONDS",
]
