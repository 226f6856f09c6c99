"""SSE Event Stream Adapters."""

from raid_scheduler.infrastructure.sse.client import (
    HttpxEventStream,
    HttpxEventStreamSource,
    to_live_event,
)
from raid_scheduler.infrastructure.sse.parser import RawSseEvent, parse_sse_lines

__all__ = [
    "HttpxEventStream",
    "HttpxEventStreamSource",
    "RawSseEvent",
    "parse_sse_lines",
    "to_live_event",
]
