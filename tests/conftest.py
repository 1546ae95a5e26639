import pytest

from pubsub_subscriptions.pubsub import InMemoryPubSubService

PROJECT_ID = "test-project"


@pytest.fixture
def service():
    return InMemoryPubSubService(PROJECT_ID)


@pytest.fixture
def provisioned(service):
    """Service with example-topic and example-subscription already created."""
    service.create_topic("example-topic")
    service.create_subscription("example-subscription", "example-topic", 10)
    service.calls.clear()
    return service