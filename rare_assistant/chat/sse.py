"""Server-Sent Events framing over a line stream."""

from collections.abc import AsyncIterable, AsyncIterator
from typing import NamedTuple

DEFAULT_EVENT_NAME = "message"


class ServerEvent(NamedTuple):
    """One dispatched SSE frame: its event name and joined data lines."""

    event: str
    data: str


async def iter_sse_frames(lines: AsyncIterable[str]) -> AsyncIterator[ServerEvent]:
    """Group raw stream lines into SSE frames.

    A blank line dispatches the pending frame. Frames that name an event
    are dispatched even without data lines, since `done` and `error` may
    carry no payload. A frame left unterminated at end of stream is dropped.

    Args:
        lines: Decoded lines of the response body, with or without line endings.

    Yields:
        ServerEvent for every complete frame, in arrival order.
    """
    event_name = ""
    data_lines: list[str] = []

    async for raw in lines:
        line = raw.rstrip("\r\n")

        if not line:
            if event_name or data_lines:
                yield ServerEvent(event_name or DEFAULT_EVENT_NAME, "\n".join(data_lines))
            event_name = ""
            data_lines = []
            continue

        if line.startswith(":"):
            continue

        field, _, value = line.partition(":")
        value = value.removeprefix(" ")
        if field == "event":
            event_name = value
        elif field == "data":
            data_lines.append(value)
        # `id` and `retry` are not used by the analysis service
