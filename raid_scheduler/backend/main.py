"""Reference Backend 실행 엔트리포인트.

Usage:
    python -m raid_scheduler.backend.main
"""

from __future__ import annotations

import uvicorn

from raid_scheduler.backend.app import create_app
from raid_scheduler.setup.config import get_settings
from raid_scheduler.setup.logging import setup_logging


def main() -> None:
    settings = get_settings()
    setup_logging(settings)
    uvicorn.run(
        create_app(settings=settings),
        host=settings.backend_host,
        port=settings.backend_port,
        log_config=None,
    )


if __name__ == "__main__":
    main()
