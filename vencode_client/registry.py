"""
Active event subscriptions and the registry that tracks them.
"""

import logging
import threading
from enum import Enum
from typing import Any, Callable, Iterator, List, Optional

from .models import is_all_jobs, topics_match

logger = logging.getLogger(__name__)


class SubscriptionState(Enum):
    CONNECTING = "connecting"
    OPEN = "open"
    RETRYING = "retrying"
    CLOSED = "closed"


class CloseReason(Enum):
    STOPPED = "stopped"
    RETRIES_EXHAUSTED = "retries_exhausted"
    CLIENT_CLOSED = "client_closed"


class Subscription:
    """
    A listener on one topic and the stream connection it owns.

    The failure counter lives here, so errors on one topic never count
    against another.
    """

    def __init__(
        self,
        topic: str,
        callback: Callable[[Any], None],
        on_close: Optional[Callable[["Subscription"], None]] = None,
    ):
        self.topic = topic
        self.callback = callback
        self.on_close = on_close
        self.connection = None
        self.failures = 0
        self.state = SubscriptionState.CONNECTING
        self.close_reason: Optional[CloseReason] = None
        self._lock = threading.Lock()

    def __repr__(self) -> str:
        return f"Subscription(topic={self.topic!r}, state={self.state.value}, failures={self.failures})"

    @property
    def is_all_jobs(self) -> bool:
        return is_all_jobs(self.topic)

    @property
    def closed(self) -> bool:
        return self.state is SubscriptionState.CLOSED

    def matches(self, topic: str) -> bool:
        return topics_match(self.topic, topic)

    def transition(self, state: SubscriptionState, failures: Optional[int] = None) -> bool:
        """
        Move to ``state``, optionally updating the failure counter.

        Returns:
            False if the subscription is already closed; nothing changes then
        """
        with self._lock:
            if self.state is SubscriptionState.CLOSED:
                return False
            self.state = state
            if failures is not None:
                self.failures = failures
            return True

    def attach(self, connection):
        """Hand the subscription its connection; closes it at once if already stopped."""
        with self._lock:
            if self.state is not SubscriptionState.CLOSED:
                self.connection = connection
                return
        connection.close()

    def close(self, reason: CloseReason = CloseReason.STOPPED) -> bool:
        """
        Close the subscription and its connection.

        Returns:
            True if this call performed the close, False if already closed
        """
        with self._lock:
            if self.state is SubscriptionState.CLOSED:
                return False
            self.state = SubscriptionState.CLOSED
            self.close_reason = reason
            connection = self.connection

        if connection is not None:
            connection.close()
        return True


class SubscriptionRegistry:
    """
    The set of active subscriptions.

    At most one "all jobs" subscription may be registered through
    ``add(..., exclusive=True)``; subscriptions to the same job id are
    independent and may coexist.
    """

    def __init__(self):
        self._subscriptions: List[Subscription] = []
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._subscriptions)

    def __iter__(self) -> Iterator[Subscription]:
        with self._lock:
            snapshot = list(self._subscriptions)
        return iter(snapshot)

    def has(self, topic: str) -> bool:
        with self._lock:
            return any(s.matches(topic) for s in self._subscriptions)

    def add(self, subscription: Subscription, exclusive: bool = False) -> Subscription:
        """
        Register a subscription.

        Args:
            subscription: Subscription to register
            exclusive: Refuse to add when a subscription with the same topic
                is already registered

        Returns:
            The registered subscription; with ``exclusive`` this is the
            existing one when the topic was already taken
        """
        with self._lock:
            if exclusive:
                for existing in self._subscriptions:
                    if existing.matches(subscription.topic):
                        return existing
            self._subscriptions.append(subscription)
        return subscription

    def remove(self, topic: str, reason: CloseReason = CloseReason.STOPPED) -> Optional[Subscription]:
        """
        Remove the first subscription matching ``topic`` and close it.

        Returns:
            The removed subscription, or None if nothing matched
        """
        with self._lock:
            for index, subscription in enumerate(self._subscriptions):
                if subscription.matches(topic):
                    del self._subscriptions[index]
                    break
            else:
                return None

        subscription.close(reason)
        return subscription

    def discard(self, subscription: Subscription) -> bool:
        """Remove exactly this subscription without closing it."""
        with self._lock:
            for index, existing in enumerate(self._subscriptions):
                if existing is subscription:
                    del self._subscriptions[index]
                    return True
        return False

    def close_all(self, reason: CloseReason = CloseReason.CLIENT_CLOSED) -> int:
        """
        Close and remove every subscription.

        Returns:
            Number of subscriptions closed
        """
        with self._lock:
            subscriptions = self._subscriptions
            self._subscriptions = []

        closed = 0
        for subscription in subscriptions:
            if subscription.close(reason):
                closed += 1
        logger.debug(f"Closed {closed} subscriptions")
        return closed
