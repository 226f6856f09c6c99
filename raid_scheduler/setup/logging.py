"""Logging Setup.

ECS 형식의 구조화된 JSON 로깅을 설정합니다.
"""

from __future__ import annotations

import logging
import sys

import ecs_logging

from raid_scheduler.setup.config import Settings, get_settings

NOISY_LOGGERS = ("httpx", "httpcore", "uvicorn.access", "sse_starlette")


def setup_logging(settings: Settings | None = None) -> None:
    """로깅 설정."""
    settings = settings or get_settings()

    # 루트 로거 설정
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))

    # 핸들러가 이미 있으면 제거
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(ecs_logging.StdlibFormatter())
    root_logger.addHandler(handler)

    # 외부 라이브러리 로그 레벨 조정
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    # 서비스 메타데이터 추가
    old_factory = logging.getLogRecordFactory()

    def record_factory(*args, **kwargs):
        record = old_factory(*args, **kwargs)
        record.service = settings.service_name
        record.service_version = settings.service_version
        record.environment = settings.environment
        return record

    logging.setLogRecordFactory(record_factory)
