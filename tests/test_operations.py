import pytest
from google.api_core import exceptions

from pubsub_subscriptions import operations
from pubsub_subscriptions.exceptions import (
    ListSubscriptionsError,
    PubSubSubscriptionsError,
    PublishError,
    PullError,
    SubscriptionCreationError,
    SubscriptionDeletionError,
    TopicCreationError,
    TopicDeletionError,
)


def test_list_subscriptions_preserves_service_order(service):
    service.create_topic("t")
    for name in ["zeta", "alpha", "mid"]:
        service.create_subscription(name, "t", 10)

    subscriptions = operations.list_subscriptions(service)

    assert [s.name for s in subscriptions] == ["zeta", "alpha", "mid"]
    assert [s.path for s in subscriptions] == [
        "projects/test-project/subscriptions/zeta",
        "projects/test-project/subscriptions/alpha",
        "projects/test-project/subscriptions/mid",
    ]


def test_list_subscriptions_empty(service):
    assert operations.list_subscriptions(service) == []


def test_list_subscriptions_error_mid_iteration(service, monkeypatch):
    service.create_topic("t")
    service.create_subscription("first", "t", 10)

    def broken_listing():
        yield from service.subscriptions.values()
        raise exceptions.ServiceUnavailable("backend down")

    monkeypatch.setattr(service, "list_subscriptions", broken_listing)

    with pytest.raises(ListSubscriptionsError, match="Failed to list subscriptions") as excinfo:
        operations.list_subscriptions(service)
    assert isinstance(excinfo.value.__cause__, exceptions.ServiceUnavailable)


def test_list_topics(service):
    service.create_topic("b")
    service.create_topic("a")
    assert [t.name for t in operations.list_topics(service)] == ["b", "a"]


def test_create_topic_prints_confirmation(service, capsys):
    topic = operations.create_topic(service, "example-topic")

    assert topic.path == "projects/test-project/topics/example-topic"
    assert "Created topic: projects/test-project/topics/example-topic" in capsys.readouterr().out


def test_create_topic_name_collision(service):
    service.create_topic("example-topic")
    with pytest.raises(TopicCreationError, match="example-topic") as excinfo:
        operations.create_topic(service, "example-topic")
    assert isinstance(excinfo.value.__cause__, exceptions.AlreadyExists)


def test_create_subscription(service, capsys):
    service.create_topic("example-topic")

    subscription = operations.create_subscription(
        service, "example-subscription", "example-topic", 10
    )

    assert subscription.topic == "projects/test-project/topics/example-topic"
    assert subscription.ack_deadline_seconds == 10
    out = capsys.readouterr().out
    assert "Created subscription: projects/test-project/subscriptions/example-subscription" in out


def test_create_subscription_requires_existing_topic(service):
    with pytest.raises(SubscriptionCreationError) as excinfo:
        operations.create_subscription(service, "example-subscription", "missing", 10)
    assert isinstance(excinfo.value.__cause__, exceptions.NotFound)


def test_delete_subscription(provisioned, capsys):
    operations.delete_subscription(provisioned, "example-subscription")

    assert "example-subscription" not in provisioned.subscriptions
    assert "Subscription deleted." in capsys.readouterr().out


def test_delete_missing_subscription(service):
    with pytest.raises(SubscriptionDeletionError, match="Failed to delete the subscription"):
        operations.delete_subscription(service, "nope")


def test_publish_ten_messages_in_order(provisioned):
    message_ids = operations.publish_messages(provisioned, "example-topic", 10)

    publishes = [args for name, args in provisioned.calls if name == "publish"]
    assert len(message_ids) == 10
    assert publishes == [
        ("example-topic", f"hello world #{i}".encode("utf-8")) for i in range(10)
    ]


def test_publish_failure_reports_index_and_stops(provisioned, monkeypatch):
    real_publish = provisioned.publish
    attempted = []

    def failing_publish(topic, data, **attributes):
        attempted.append(data)
        if data == b"hello world #4":
            raise exceptions.PermissionDenied("not allowed")
        return real_publish(topic, data, **attributes)

    monkeypatch.setattr(provisioned, "publish", failing_publish)

    with pytest.raises(PublishError, match="#4") as excinfo:
        operations.publish_messages(provisioned, "example-topic", 10)

    assert excinfo.value.index == 4
    assert len(attempted) == 5
    assert provisioned.backlog_size("example-subscription") == 4


def test_pull_acknowledges_every_message(provisioned, capsys):
    operations.publish_messages(provisioned, "example-topic", 10)

    received = operations.pull_messages(provisioned, "example-subscription", 10)

    assert [m.text for m in received] == [f"hello world #{i}" for i in range(10)]
    assert provisioned.outstanding("example-subscription") == []
    acked = [
        ack_id
        for name, args in provisioned.calls
        if name == "acknowledge"
        for ack_id in args[1]
    ]
    assert sorted(acked) == sorted(m.ack_id for m in received)
    assert len(set(acked)) == 10

    out = capsys.readouterr().out
    assert 'Got message: "hello world #0"' in out
    assert 'Got message: "hello world #9"' in out


def test_pull_stops_early_when_subscription_drained(provisioned):
    operations.publish_messages(provisioned, "example-topic", 4)

    received = operations.pull_messages(provisioned, "example-subscription", 10)

    assert len(received) == 4
    pulls = [args for name, args in provisioned.calls if name == "pull"]
    assert pulls == [("example-subscription", 10), ("example-subscription", 6)]


def test_pull_from_empty_subscription(provisioned):
    assert operations.pull_messages(provisioned, "example-subscription", 10) == []


def test_acknowledge_happens_before_next_pull(provisioned, monkeypatch):
    operations.publish_messages(provisioned, "example-topic", 7)
    real_pull = provisioned.pull

    def small_batches(subscription, max_messages):
        return real_pull(subscription, min(max_messages, 3))

    monkeypatch.setattr(provisioned, "pull", small_batches)
    provisioned.calls.clear()

    received = operations.pull_messages(provisioned, "example-subscription", 10)

    assert len(received) == 7
    sequence = [name for name, _ in provisioned.calls if name in ("pull", "acknowledge")]
    assert sequence == (
        ["pull"] + ["acknowledge"] * 3
        + ["pull"] + ["acknowledge"] * 3
        + ["pull"] + ["acknowledge"]
        + ["pull"]
    )


def test_pull_does_not_exceed_limit(provisioned):
    operations.publish_messages(provisioned, "example-topic", 10)

    received = operations.pull_messages(provisioned, "example-subscription", 3)

    assert len(received) == 3
    assert provisioned.backlog_size("example-subscription") == 7


def test_pull_failure_is_wrapped(provisioned, monkeypatch):
    def broken_pull(subscription, max_messages):
        raise exceptions.InternalServerError("boom")

    monkeypatch.setattr(provisioned, "pull", broken_pull)

    with pytest.raises(PullError, match="Failed when iterating on messages"):
        operations.pull_messages(provisioned, "example-subscription", 10)


def test_acknowledge_failure_is_wrapped(provisioned, monkeypatch):
    operations.publish_messages(provisioned, "example-topic", 2)

    def broken_ack(subscription, ack_ids):
        raise exceptions.FailedPrecondition("lease expired")

    monkeypatch.setattr(provisioned, "acknowledge", broken_ack)

    with pytest.raises(PullError, match="Failed to acknowledge message"):
        operations.pull_messages(provisioned, "example-subscription", 10)


def test_message_stream_is_fresh_per_call(provisioned):
    operations.publish_messages(provisioned, "example-topic", 2)
    stream = operations.MessageStream(provisioned, "example-subscription", 10)

    assert len(list(stream)) == 2
    assert list(stream) == []

    operations.publish_messages(provisioned, "example-topic", 1)
    again = operations.MessageStream(provisioned, "example-subscription", 10)
    assert [m.text for m in again] == ["hello world #0"]


def test_closed_message_stream_yields_nothing(provisioned):
    operations.publish_messages(provisioned, "example-topic", 3)

    with operations.MessageStream(provisioned, "example-subscription", 10) as stream:
        next(stream)
    assert list(stream) == []


def test_provisioned_topic_deleted_on_clean_exit(service):
    with operations.provisioned_topic(service, "example-topic") as topic:
        assert topic.name in service.topics

    assert service.topics == {}


def test_provisioned_topic_deleted_when_body_fails(service):
    with pytest.raises(RuntimeError):
        with operations.provisioned_topic(service, "example-topic"):
            raise RuntimeError("body failed")

    assert service.topics == {}


def test_provisioned_topic_keeps_original_error_when_cleanup_fails(service, monkeypatch):
    def broken_delete(name):
        raise exceptions.PermissionDenied("no delete")

    monkeypatch.setattr(service, "delete_topic", broken_delete)

    with pytest.raises(PublishError):
        with operations.provisioned_topic(service, "example-topic"):
            raise PublishError(0, "Failed to publish message #0")


def test_provisioned_topic_cleanup_failure_on_clean_exit(service, monkeypatch):
    def broken_delete(name):
        raise exceptions.PermissionDenied("no delete")

    monkeypatch.setattr(service, "delete_topic", broken_delete)

    with pytest.raises(TopicDeletionError):
        with operations.provisioned_topic(service, "example-topic"):
            pass


def test_provisioned_subscription_deleted_when_body_fails(service):
    service.create_topic("example-topic")

    with pytest.raises(PullError):
        with operations.provisioned_subscription(
            service, "example-subscription", "example-topic", 10
        ):
            raise PullError("Failed when iterating on messages")

    assert service.subscriptions == {}


def test_publish_and_pull(provisioned):
    received = operations.publish_and_pull(
        provisioned, "example-topic", "example-subscription", 10
    )
    assert [m.text for m in received] == [f"hello world #{i}" for i in range(10)]


def test_operation_errors_share_one_base_class(service):
    with pytest.raises(PubSubSubscriptionsError):
        operations.delete_topic(service, "missing")
