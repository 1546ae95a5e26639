"""
Command line entry point: provision a topic and subscription, publish a batch
of messages, pull them back, then tear everything down.
"""

import argparse
import sys
from typing import List, Optional

from google.api_core import exceptions
from google.auth import exceptions as auth_exceptions

from pubsub_subscriptions.config import Config
from pubsub_subscriptions.exceptions import (
    ClientError,
    ConfigurationError,
    PubSubSubscriptionsError,
)
from pubsub_subscriptions.logging import log_error, log_info, setup_logger
from pubsub_subscriptions.models import (
    MAX_ACK_DEADLINE_SECONDS,
    MIN_ACK_DEADLINE_SECONDS,
)
from pubsub_subscriptions.operations import (
    list_subscriptions,
    provisioned_subscription,
    provisioned_topic,
    publish_and_pull,
)
from pubsub_subscriptions.pubsub import (
    GooglePubSubService,
    InMemoryPubSubService,
    MessagingService,
)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _ack_deadline(value: str) -> int:
    seconds = int(value)
    if not MIN_ACK_DEADLINE_SECONDS <= seconds <= MAX_ACK_DEADLINE_SECONDS:
        raise argparse.ArgumentTypeError(
            f"must be between {MIN_ACK_DEADLINE_SECONDS} and {MAX_ACK_DEADLINE_SECONDS}"
        )
    return seconds


def _message_count(value: str) -> int:
    count = int(value)
    if count < 1:
        raise argparse.ArgumentTypeError("must be at least 1")
    return count


def _log_level(value: str) -> str:
    level = value.upper()
    if level not in LOG_LEVELS:
        raise argparse.ArgumentTypeError(f"must be one of {', '.join(LOG_LEVELS)}")
    return level


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="pubsub-subscriptions",
        description="Manage Pub/Sub subscriptions: list, create, publish/pull, delete.",
        epilog="The target project is read from GOOGLE_CLOUD_PROJECT.",
    )
    parser.add_argument("--topic", default=Config.TOPIC_NAME, help="topic to create")
    parser.add_argument(
        "--subscription",
        default=Config.SUBSCRIPTION_NAME,
        help="subscription to create on the topic",
    )
    parser.add_argument(
        "--ack-deadline",
        type=_ack_deadline,
        default=str(Config.ACK_DEADLINE_SECONDS),
        help="subscription ack deadline in seconds (default: %(default)s)",
    )
    parser.add_argument(
        "--messages",
        type=_message_count,
        default=str(Config.MESSAGE_COUNT),
        help="number of messages to publish and pull (default: %(default)s)",
    )
    parser.add_argument(
        "--log-level",
        type=_log_level,
        default=Config.LOG_LEVEL,
        help="one of DEBUG, INFO, WARNING, ERROR, CRITICAL (default: %(default)s)",
    )
    parser.add_argument(
        "--in-memory",
        action="store_true",
        help="run against an in-process fake instead of Google Cloud",
    )
    return parser.parse_args(argv)


def build_service(project_id: str, in_memory: bool = False) -> MessagingService:
    if in_memory:
        return InMemoryPubSubService(project_id)
    try:
        return GooglePubSubService(project_id)
    except (exceptions.GoogleAPIError, auth_exceptions.GoogleAuthError) as err:
        raise ClientError(f"Could not create pubsub client: {err}") from err


def run(
    service: MessagingService,
    topic_name: str = Config.TOPIC_NAME,
    subscription_name: str = Config.SUBSCRIPTION_NAME,
    ack_deadline_seconds: int = Config.ACK_DEADLINE_SECONDS,
    count: int = Config.MESSAGE_COUNT,
) -> None:
    """Run the list, create, publish/pull, delete sequence, stopping at the first error."""
    print("Listing all subscriptions from the project:")
    for subscription in list_subscriptions(service):
        print(subscription.path)

    with provisioned_topic(service, topic_name) as topic:
        with provisioned_subscription(
            service, subscription_name, topic.name, ack_deadline_seconds
        ) as subscription:
            publish_and_pull(service, topic.name, subscription.name, count)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    setup_logger(log_level=args.log_level)

    try:
        project_id = Config.get_project_id()
    except ConfigurationError as err:
        print(err, file=sys.stderr)
        return 1

    try:
        service = build_service(project_id, in_memory=args.in_memory)
    except ClientError as err:
        log_error(str(err), project=project_id)
        print(err, file=sys.stderr)
        return 1

    try:
        run(
            service,
            topic_name=args.topic,
            subscription_name=args.subscription,
            ack_deadline_seconds=args.ack_deadline,
            count=args.messages,
        )
    except PubSubSubscriptionsError as err:
        log_error(str(err), project=project_id, exc_info=True)
        print(err, file=sys.stderr)
        return 1
    finally:
        service.close()

    log_info("Run completed", project=project_id)
    return 0
