"""
Retry policy for event-stream connections.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Tuple

from .config import DEFAULT_MAX_LISTEN_RETRY

# Only these failure signatures count against the ceiling.
RETRYABLE_SIGNATURES: Tuple[str, ...] = (
    "econnrefused",
    "connection refused",
    "not found",
)


class RetryAction(Enum):
    CONTINUE = "continue"
    CLOSE = "close"


@dataclass(frozen=True)
class RetryDecision:
    action: RetryAction
    counter: int

    @property
    def should_close(self) -> bool:
        return self.action is RetryAction.CLOSE


class RetryPolicy:
    """
    Decides whether a failing stream stays alive or is closed for good.

    Errors whose text matches a retryable signature increment the failure
    counter; once the counter reaches the ceiling the connection must be
    closed. Any other error leaves the counter untouched. A successful open
    resets the counter.
    """

    def __init__(self, ceiling: int = DEFAULT_MAX_LISTEN_RETRY, signatures: Tuple[str, ...] = RETRYABLE_SIGNATURES):
        if ceiling < 1:
            raise ValueError("ceiling must be at least 1")
        self.ceiling = ceiling
        self.signatures = tuple(s.lower() for s in signatures)

    def is_retryable(self, signal: Any) -> bool:
        # HTTPError text loses "Not Found" when the server sends no reason phrase.
        response = getattr(signal, "response", None)
        if getattr(response, "status_code", None) == 404:
            return True
        text = str(signal).lower()
        return any(signature in text for signature in self.signatures)

    def on_error(self, signal: Any, counter: int) -> RetryDecision:
        """
        Classify an error signal.

        Args:
            signal: Exception or other error value reported by the transport
            counter: Current consecutive failure count

        Returns:
            RetryDecision with the action to take and the updated counter
        """
        if self.is_retryable(signal):
            counter += 1
        if counter >= self.ceiling:
            return RetryDecision(RetryAction.CLOSE, counter)
        return RetryDecision(RetryAction.CONTINUE, counter)

    def on_open(self) -> int:
        return 0
