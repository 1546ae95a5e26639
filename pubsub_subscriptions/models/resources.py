"""
Resource models for Pub/Sub topics, subscriptions and pulled messages.
"""

from typing import Dict

from pydantic import BaseModel, Field

# Range accepted by Pub/Sub for a subscription's ack deadline.
MIN_ACK_DEADLINE_SECONDS = 10
MAX_ACK_DEADLINE_SECONDS = 600


class Topic(BaseModel):
    """A named channel messages are published to."""

    name: str
    path: str  # projects/{project}/topics/{name}

    def __str__(self) -> str:
        return self.path


class Subscription(BaseModel):
    """A named binding to exactly one topic, created with an ack deadline."""

    name: str
    path: str  # projects/{project}/subscriptions/{name}
    topic: str  # topic path; "_deleted-topic_" once the topic is gone
    ack_deadline_seconds: int = Field(
        default=MIN_ACK_DEADLINE_SECONDS,
        ge=MIN_ACK_DEADLINE_SECONDS,
        le=MAX_ACK_DEADLINE_SECONDS,
    )

    def __str__(self) -> str:
        return self.path


class ReceivedMessage(BaseModel):
    """A message delivered to a subscription and awaiting acknowledgment."""

    ack_id: str
    message_id: str
    data: bytes
    attributes: Dict[str, str] = Field(default_factory=dict)

    @property
    def text(self) -> str:
        return self.data.decode("utf-8", errors="replace")
