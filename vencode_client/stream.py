"""
Server-push connection to the job event stream.
"""

import json
import logging
import threading
from typing import Any, Callable, Optional
from urllib.parse import urlencode

import requests

from .config import DEFAULT_RECONNECT_DELAY
from .exceptions import StreamEndedError
from .models import is_all_jobs
from .sse import parse_events

logger = logging.getLogger(__name__)

# (connect timeout, read timeout); the read side stays open indefinitely.
STREAM_TIMEOUT = (10, None)


def build_stream_url(base_url: str, topic: str, api_key: str, user_id: str) -> str:
    """
    Build the event stream URL for a topic.

    Args:
        base_url: Service base URL
        topic: Job ID or the "all jobs" sentinel
        api_key: API key embedded in the credential blob
        user_id: User ID embedded in the credential blob

    Returns:
        Absolute URL of the stream endpoint
    """
    if is_all_jobs(topic):
        params = [("all", "true")]
    else:
        params = [("jid", topic)]
    creds = json.dumps({"key": api_key, "id": user_id}, separators=(",", ":"))
    params.append(("creds", creds))
    return f"{base_url.rstrip('/')}/events?{urlencode(params)}"


class StreamConnection:
    """
    One server-sent event stream, read on a background daemon thread.

    Lifecycle is reported through three hooks, all called on the
    connection's own thread: ``on_open()`` once the server accepted the
    request, ``on_message(data)`` for every message event, and
    ``on_error(signal)`` for every failure, including the server ending the
    stream. After an error the connection reconnects by itself until
    ``close()`` is called; it never decides to give up on its own.
    """

    def __init__(
        self,
        url: str,
        on_open: Callable[[], None],
        on_message: Callable[[str], None],
        on_error: Callable[[Any], None],
        session: Optional[requests.Session] = None,
        reconnect_delay: float = DEFAULT_RECONNECT_DELAY,
        name: Optional[str] = None,
    ):
        self.url = url
        self.on_open = on_open
        self.on_message = on_message
        self.on_error = on_error
        self.reconnect_delay = reconnect_delay
        self.name = name or "vencode-stream"
        self.last_event_id: Optional[str] = None

        self._owns_session = session is None
        self._session = session or requests.Session()
        self._stop = threading.Event()
        self._lock = threading.Lock()
        self._response: Optional[requests.Response] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def closed(self) -> bool:
        return self._stop.is_set()

    def open(self) -> "StreamConnection":
        """Start reading in the background and return immediately."""
        with self._lock:
            if self._thread is not None or self._stop.is_set():
                return self
            self._thread = threading.Thread(target=self._run, name=self.name, daemon=True)
            self._thread.start()
        return self

    def close(self):
        """Stop the stream. Safe to call repeatedly and from any thread."""
        with self._lock:
            if self._stop.is_set():
                return
            self._stop.set()
            response = self._response
            self._response = None

        if response is not None:
            response.close()
        if self._owns_session:
            self._session.close()

    def join(self, timeout: Optional[float] = None) -> bool:
        """
        Wait for the reader thread to finish.

        Returns:
            True if the thread is no longer running
        """
        thread = self._thread
        if thread is None:
            return True
        if thread is threading.current_thread():
            raise RuntimeError("cannot join a stream connection from its own hook")
        thread.join(timeout)
        return not thread.is_alive()

    def _run(self):
        while not self._stop.is_set():
            try:
                self._read_stream()
            except Exception as e:
                if self._stop.is_set():
                    break
                self.on_error(e)
            if self._stop.wait(self.reconnect_delay):
                break

    def _read_stream(self):
        headers = {
            "Accept": "text/event-stream",
            "Cache-Control": "no-cache",
        }
        if self.last_event_id:
            headers["Last-Event-ID"] = self.last_event_id

        with self._session.get(self.url, headers=headers, stream=True, timeout=STREAM_TIMEOUT) as response:
            with self._lock:
                if self._stop.is_set():
                    return
                self._response = response

            try:
                response.raise_for_status()
                response.encoding = "utf-8"
                self.on_open()

                chunks = response.iter_content(chunk_size=None, decode_unicode=True)
                for event in parse_events(chunks):
                    if self._stop.is_set():
                        return
                    if event.retry is not None:
                        self.reconnect_delay = event.retry / 1000.0
                    if event.id is not None:
                        self.last_event_id = event.id
                    if event.data is not None and event.event == "message":
                        self.on_message(event.data)
            finally:
                with self._lock:
                    if self._response is response:
                        self._response = None

        if not self._stop.is_set():
            raise StreamEndedError(f"Event stream closed by server ({self.name})")
