"""
Delivery of decoded stream events to user callbacks.
"""

import json
import logging
from typing import Any, Callable

logger = logging.getLogger(__name__)


class EventDispatcher:
    """Decodes message payloads and hands them to callbacks, containing failures."""

    def __init__(self, debug: bool = False):
        self.debug = debug

    def dispatch(self, raw: str, callback: Callable[[Any], None]) -> bool:
        """
        Decode ``raw`` as JSON and pass the result to ``callback``.

        Neither a malformed payload nor an exception raised by the callback
        propagates; both are logged and the stream keeps going.

        Args:
            raw: Message payload as received
            callback: Caller-supplied event handler

        Returns:
            True if the callback ran to completion
        """
        try:
            data = json.loads(raw)
        except (TypeError, ValueError) as e:
            if self.debug:
                logger.warning(f"Discarding malformed event payload: {e}")
            return False

        try:
            callback(data)
        except Exception:
            logger.exception("Event callback raised")
            return False
        return True
