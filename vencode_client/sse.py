"""
Parser for the server-sent events wire format.
"""

import re
from typing import Iterable, Iterator, List, Optional

from .models import ServerSentEvent

_LINE_BREAK = re.compile(r"\r\n|\r|\n")


def iter_lines(chunks: Iterable[str]) -> Iterator[str]:
    """
    Split a stream of text chunks into lines.

    Accepts CRLF, LF and CR line endings. A trailing CR is held back until
    the next chunk shows whether it starts a CRLF pair.

    Args:
        chunks: Decoded text chunks as they arrive

    Yields:
        Lines without their terminator
    """
    buffer = ""
    for chunk in chunks:
        if not chunk:
            continue
        buffer += chunk
        start = 0
        for match in _LINE_BREAK.finditer(buffer):
            if match.group() == "\r" and match.end() == len(buffer):
                break
            yield buffer[start:match.start()]
            start = match.end()
        buffer = buffer[start:]

    if buffer.endswith("\r"):
        yield buffer[:-1]


def parse_events(chunks: Iterable[str]) -> Iterator[ServerSentEvent]:
    """
    Parse server-sent events from a stream of text chunks.

    Args:
        chunks: Decoded text chunks as they arrive

    Yields:
        ServerSentEvent for each dispatched block. Blocks that only carry a
        ``retry`` field are yielded with ``data=None``.
    """
    data_lines: List[str] = []
    event_type = ""
    last_id: Optional[str] = None
    retry: Optional[int] = None

    for line in iter_lines(chunks):
        if not line:
            if data_lines:
                yield ServerSentEvent(
                    data="\n".join(data_lines),
                    event=event_type or "message",
                    id=last_id,
                    retry=retry,
                )
            elif retry is not None:
                yield ServerSentEvent(data=None, event=event_type or "message", id=last_id, retry=retry)
            data_lines = []
            event_type = ""
            retry = None
            continue

        if line.startswith(":"):
            continue

        name, _, value = line.partition(":")
        if value.startswith(" "):
            value = value[1:]

        if name == "data":
            data_lines.append(value)
        elif name == "event":
            event_type = value
        elif name == "id":
            if "\0" not in value:
                last_id = value
        elif name == "retry":
            if value.isascii() and value.isdigit():
                retry = int(value)
