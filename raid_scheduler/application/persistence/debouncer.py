"""Keyed Debouncer.

키별 trailing-edge 디바운스입니다.

- 대기 중인 호출은 같은 키의 새 호출이 들어오면 폐기됩니다 (마지막 값만 전송).
- 이미 실행 중인(in-flight) 호출은 취소하지 않습니다.
- 같은 키의 다음 호출은 이전 in-flight 호출이 끝난 뒤 실행됩니다 (순서 역전 없음).
- in-flight 호출을 기다리는 동안 더 새로운 호출이 예약되면 기다리던 호출은 전송하지 않습니다.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Hashable

from raid_scheduler.metrics import DEBOUNCE_SUPERSEDED

logger = logging.getLogger(__name__)

AsyncCall = Callable[[], Awaitable[None]]


class KeyedDebouncer:
    """키별 디바운서.

    Attributes:
        delay: 마지막 호출 이후 대기 시간 (초)
        name: 로그 식별용 이름
    """

    def __init__(self, delay: float, name: str = "debounce") -> None:
        self.delay = delay
        self.name = name
        self._pending: dict[Hashable, asyncio.Task[None]] = {}
        self._running: dict[Hashable, asyncio.Task[None]] = {}
        self._latest: dict[Hashable, asyncio.Task[None]] = {}

    def schedule(self, key: Hashable, call: AsyncCall) -> asyncio.Task[None]:
        """key에 대한 호출을 예약합니다. 같은 키의 대기 중 호출은 폐기됩니다."""
        previous = self._pending.pop(key, None)
        if previous is not None and not previous.done():
            previous.cancel()
            DEBOUNCE_SUPERSEDED.inc()

        task = asyncio.create_task(self._run(key, call))
        self._pending[key] = task
        self._latest[key] = task
        return task

    async def _run(self, key: Hashable, call: AsyncCall) -> None:
        await asyncio.sleep(self.delay)

        current = asyncio.current_task()
        if self._pending.get(key) is current:
            del self._pending[key]

        # 여기부터 in-flight: schedule()로 취소되지 않음
        previous = self._running.get(key)
        self._running[key] = current
        try:
            if previous is not None and not previous.done():
                await asyncio.wait([previous])
            if self._latest.get(key) is not current:
                # 기다리는 동안 새 값이 예약됨
                DEBOUNCE_SUPERSEDED.inc()
                return
            await call()
        except Exception:
            logger.exception("debounced_call_failed", extra={"debouncer": self.name, "key": str(key)})
        finally:
            if self._running.get(key) is current:
                del self._running[key]
            if self._latest.get(key) is current:
                del self._latest[key]

    def has_pending(self, key: Hashable | None = None) -> bool:
        """대기 중이거나 실행 중인 호출이 있는지 여부."""
        if key is None:
            return bool(self._pending or self._running)
        return key in self._pending or key in self._running

    @property
    def pending_keys(self) -> list[Hashable]:
        return list(self._pending)

    def cancel(self, key: Hashable) -> bool:
        """대기 중인 호출을 취소합니다. in-flight 호출은 영향 없음."""
        task = self._pending.pop(key, None)
        if task is None:
            return False
        if self._latest.get(key) is task:
            del self._latest[key]
        task.cancel()
        return True

    def cancel_all(self) -> None:
        for key, task in self._pending.items():
            task.cancel()
            if self._latest.get(key) is task:
                del self._latest[key]
        self._pending.clear()

    async def wait_idle(self) -> None:
        """대기/실행 중인 모든 호출이 끝날 때까지 기다립니다."""
        while self._pending or self._running:
            tasks = [*self._pending.values(), *self._running.values()]
            await asyncio.gather(*tasks, return_exceptions=True)
