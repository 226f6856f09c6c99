"""Raid Scheduler 헤드리스 동기화 클라이언트.

초기 로드 후 라이브 채널로 원격 변경을 따라가며, 종료 신호를 받으면 정리합니다.

Usage:
    python -m raid_scheduler.main
"""

from __future__ import annotations

import asyncio
import logging
import signal

from raid_scheduler.setup.config import get_settings
from raid_scheduler.setup.dependencies import build_session
from raid_scheduler.setup.logging import setup_logging

logger = logging.getLogger(__name__)


async def run() -> None:
    settings = get_settings()
    session = build_session(settings)

    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop.set)
        except NotImplementedError:
            # Windows 이벤트 루프
            pass

    logger.info("raid_scheduler_starting", extra={"api_base_url": settings.api_base_url})
    await session.start()
    logger.info(
        "raid_scheduler_started",
        extra={
            "raids": len(session.grid.raids),
            "users": len(session.grid.users),
            "week1": session.week_info.week1_date_range,
            "week2": session.week_info.week2_date_range,
        },
    )

    try:
        await stop.wait()
    finally:
        logger.info("raid_scheduler_shutting_down")
        await session.aclose()
        logger.info("raid_scheduler_stopped")


def main() -> None:
    setup_logging()
    asyncio.run(run())


if __name__ == "__main__":
    main()
