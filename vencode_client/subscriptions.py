"""
Public entry point for real-time job events.
"""

import logging
import re
from typing import Any, Callable, List, Optional

import requests

from .config import ClientConfig
from .dispatcher import EventDispatcher
from .exceptions import SubscriptionError
from .models import ALL_JOBS, is_all_jobs
from .registry import CloseReason, Subscription, SubscriptionRegistry, SubscriptionState
from .retry import RetryPolicy
from .stream import StreamConnection, build_stream_url

logger = logging.getLogger(__name__)

EventCallback = Callable[[Any], None]
CloseCallback = Callable[[Subscription], None]

_CREDS_PARAM = re.compile(r"creds=[^&\s]+")


def _describe(signal: Any) -> str:
    # Transport errors echo the request URL, which embeds the credentials.
    return _CREDS_PARAM.sub("creds=***", f"{type(signal).__name__}: {signal}")


class SubscriptionManager:
    """
    Opens, tracks and tears down event subscriptions.

    Example:
        manager = SubscriptionManager(config)
        manager.listen(job_id, lambda event: print(event["progress"]))
        ...
        manager.stop_listening(job_id)
    """

    def __init__(
        self,
        config: ClientConfig,
        session: Optional[requests.Session] = None,
        connection_factory: Callable[..., Any] = StreamConnection,
    ):
        self.config = config
        self.session = session
        self.connection_factory = connection_factory
        self.registry = SubscriptionRegistry()
        self.retry_policy = RetryPolicy(config.max_listen_retry)
        self.dispatcher = EventDispatcher(debug=config.debug)
        self._closed = False

    @property
    def subscriptions(self) -> List[Subscription]:
        return list(self.registry)

    def listen(self, job_id: str, callback: EventCallback, on_close: Optional[CloseCallback] = None) -> Subscription:
        """
        Receive events for a single job.

        Every call opens a new, independent subscription, even for a job id
        that is already being listened to.

        Args:
            job_id: ID of the job to follow
            callback: Called with each decoded event
            on_close: Called once if the subscription is closed after
                exhausting its retries

        Returns:
            The new Subscription
        """
        if not isinstance(job_id, str) or not job_id:
            raise ValueError("job_id must be a non-empty string")
        if is_all_jobs(job_id):
            raise ValueError(f"'{job_id}' is reserved; use listen_all() to follow every job")
        return self._subscribe(Subscription(job_id, callback, on_close), exclusive=False)

    def listen_all(self, callback: EventCallback, on_close: Optional[CloseCallback] = None) -> Subscription:
        """
        Receive events for every job of the account.

        Only one such subscription exists at a time; further calls return
        it unchanged and the new callback is not registered.

        Returns:
            The active "all jobs" Subscription
        """
        return self._subscribe(Subscription(ALL_JOBS, callback, on_close), exclusive=True)

    def stop_listening(self, topic: str) -> bool:
        """
        Close the first subscription for ``topic``.

        Returns:
            True if a subscription was found and closed
        """
        subscription = self.registry.remove(topic, CloseReason.STOPPED)
        if subscription is None:
            return False
        if self.config.debug:
            logger.info(f"Stopped listening to {subscription.topic}")
        return True

    def close(self):
        """Close every subscription; the manager cannot be used afterwards."""
        self._closed = True
        closed = self.registry.close_all(CloseReason.CLIENT_CLOSED)
        if self.config.debug and closed:
            logger.info(f"Closed {closed} event subscriptions")

    def _subscribe(self, subscription: Subscription, exclusive: bool) -> Subscription:
        if self._closed:
            raise SubscriptionError("Subscription manager is closed")
        if not callable(subscription.callback):
            raise TypeError("callback must be callable")

        registered = self.registry.add(subscription, exclusive=exclusive)
        if registered is not subscription:
            if self.config.debug:
                logger.info(f"Already listening to {registered.topic}; ignoring duplicate request")
            return registered

        url = build_stream_url(
            self.config.base_url,
            subscription.topic,
            self.config.access.api_key,
            self.config.access.user_id,
        )
        connection = self.connection_factory(
            url,
            on_open=lambda: self._handle_open(subscription),
            on_message=lambda raw: self._handle_message(subscription, raw),
            on_error=lambda signal: self._handle_error(subscription, signal),
            session=self.session,
            reconnect_delay=self.config.reconnect_delay,
            name=f"vencode-events-{subscription.topic}",
        )
        subscription.attach(connection)
        if subscription.closed:
            return subscription

        if self.config.debug:
            logger.info(f"Connecting to event stream for {subscription.topic}")
        connection.open()
        return subscription

    def _handle_open(self, subscription: Subscription):
        failures = self.retry_policy.on_open()
        if subscription.transition(SubscriptionState.OPEN, failures) and self.config.debug:
            logger.info(f"Event stream open for {subscription.topic}")

    def _handle_message(self, subscription: Subscription, raw: str):
        if subscription.closed:
            return
        self.dispatcher.dispatch(raw, subscription.callback)

    def _handle_error(self, subscription: Subscription, signal: Any):
        if subscription.closed:
            return

        retryable = self.retry_policy.is_retryable(signal)
        decision = self.retry_policy.on_error(signal, subscription.failures)

        if decision.should_close:
            subscription.failures = decision.counter
            self._expire(subscription)
            return

        if retryable:
            subscription.transition(SubscriptionState.RETRYING, decision.counter)
            if self.config.debug:
                logger.warning(
                    f"Event stream for {subscription.topic} failed "
                    f"({decision.counter}/{self.retry_policy.ceiling}): {_describe(signal)}"
                )
        elif self.config.debug:
            logger.warning(f"Event stream error for {subscription.topic}: {_describe(signal)}")

    def _expire(self, subscription: Subscription):
        if not subscription.close(CloseReason.RETRIES_EXHAUSTED):
            return
        self.registry.discard(subscription)
        logger.warning(
            f"Closed event stream for {subscription.topic} after "
            f"{subscription.failures} consecutive failures"
        )

        if subscription.on_close is not None:
            try:
                subscription.on_close(subscription)
            except Exception:
                logger.exception("Subscription close callback raised")
