"""SSE 라인 파서.

text/event-stream 라인 스트림을 이벤트 단위로 묶습니다.

- 빈 줄에서 이벤트 디스패치
- ':'로 시작하는 줄은 주석 (ping)
- data 필드가 여러 줄이면 '\\n'으로 연결
- event 필드가 없으면 "message"
"""

from __future__ import annotations

from collections.abc import AsyncIterable, AsyncIterator
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class RawSseEvent:
    event: str
    data: str
    id: str | None = None


async def parse_sse_lines(lines: AsyncIterable[str]) -> AsyncIterator[RawSseEvent]:
    """라인 스트림에서 SSE 이벤트를 순서대로 생성합니다."""
    event_name: str | None = None
    data_lines: list[str] = []
    event_id: str | None = None

    async for raw_line in lines:
        line = raw_line.rstrip("\r\n")

        if not line:
            if data_lines or event_name is not None:
                yield RawSseEvent(event=event_name or "message", data="\n".join(data_lines), id=event_id)
            event_name, data_lines, event_id = None, [], None
            continue

        if line.startswith(":"):
            continue

        field, _, value = line.partition(":")
        if value.startswith(" "):
            value = value[1:]

        if field == "event":
            event_name = value
        elif field == "data":
            data_lines.append(value)
        elif field == "id":
            event_id = value
        # retry 및 알 수 없는 필드는 무시

    if data_lines:
        yield RawSseEvent(event=event_name or "message", data="\n".join(data_lines), id=event_id)
