from unittest.mock import MagicMock

from vencode_client.models import ALL_JOBS
from vencode_client.registry import CloseReason, Subscription, SubscriptionRegistry, SubscriptionState


def make_subscription(topic):
    subscription = Subscription(topic, lambda event: None)
    subscription.attach(MagicMock())
    return subscription


def test_exclusive_add_returns_existing_sentinel():
    registry = SubscriptionRegistry()
    first = registry.add(make_subscription(ALL_JOBS), exclusive=True)
    second = registry.add(make_subscription("ALL"), exclusive=True)

    assert second is first
    assert len(registry) == 1


def test_sentinel_coexists_with_job_subscriptions():
    registry = SubscriptionRegistry()
    registry.add(make_subscription("job-1"))
    registry.add(make_subscription(ALL_JOBS), exclusive=True)

    assert registry.has("job-1")
    assert registry.has("All")
    assert not registry.has("job-2")


def test_job_id_is_matched_exactly():
    registry = SubscriptionRegistry()
    registry.add(make_subscription("Job-1"))

    assert registry.has("Job-1")
    assert not registry.has("job-1")


def test_remove_closes_first_match_only():
    registry = SubscriptionRegistry()
    first = registry.add(make_subscription("job-1"))
    second = registry.add(make_subscription("job-1"))

    removed = registry.remove("job-1")

    assert removed is first
    assert first.closed
    assert first.close_reason is CloseReason.STOPPED
    first.connection.close.assert_called_once()
    second.connection.close.assert_not_called()
    assert list(registry) == [second]


def test_remove_missing_topic():
    registry = SubscriptionRegistry()
    registry.add(make_subscription("job-1"))

    assert registry.remove("job-2") is None
    assert len(registry) == 1


def test_discard_is_identity_based():
    registry = SubscriptionRegistry()
    first = registry.add(make_subscription("job-1"))
    second = registry.add(make_subscription("job-1"))

    assert registry.discard(second) is True
    assert registry.discard(second) is False
    assert list(registry) == [first]
    second.connection.close.assert_not_called()


def test_close_all():
    registry = SubscriptionRegistry()
    subscriptions = [registry.add(make_subscription(t)) for t in ("a", "b")]

    assert registry.close_all() == 2
    assert len(registry) == 0
    assert all(s.close_reason is CloseReason.CLIENT_CLOSED for s in subscriptions)


def test_subscription_close_is_idempotent():
    subscription = make_subscription("job-1")

    assert subscription.close() is True
    assert subscription.close() is False
    subscription.connection.close.assert_called_once()


def test_transition_refused_after_close():
    subscription = make_subscription("job-1")
    subscription.close()

    assert subscription.transition(SubscriptionState.OPEN, 0) is False
    assert subscription.state is SubscriptionState.CLOSED


def test_attach_after_close_closes_connection():
    subscription = Subscription("job-1", lambda event: None)
    subscription.close()
    connection = MagicMock()

    subscription.attach(connection)

    connection.close.assert_called_once()
    assert subscription.connection is None
