"""Raid Scheduler 설정.

환경 변수:
- API_BASE_URL: 백엔드 API 주소 (default: http://localhost:8080/api)
- HTTP_TIMEOUT_SECONDS: HTTP 요청 타임아웃
- SCHEDULE_DEBOUNCE_SECONDS / USER_SCHEDULE_DEBOUNCE_SECONDS: auto-save 디바운스
- LIVE_RECONNECT_DELAY_SECONDS / LIVE_POLL_INTERVAL_SECONDS: 라이브 채널 재연결/폴링 주기
- AUTO_SAVE_ENABLED: false면 일괄 저장 전용
- LOG_LEVEL: 로그 레벨 (default: INFO)
"""

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Raid Scheduler 설정."""

    # Service Info
    service_name: str = "raid-scheduler"
    service_version: str = "1.0.0"
    environment: str = "development"

    # Backend API
    api_base_url: str = "http://localhost:8080/api"
    http_timeout_seconds: float = 10.0

    # Auto-save
    auto_save_enabled: bool = True
    schedule_debounce_seconds: float = 0.5  # 셀 변경 (500ms)
    user_schedule_debounce_seconds: float = 1.0  # 유저 일정 입력 (1000ms)

    # Live channel
    live_events_path: str = "/events/updates"
    live_reconnect_delay_seconds: float = 5.0
    live_poll_interval_seconds: float = 10.0

    # Grid
    default_parties: list[str] = ["1파티", "2파티", "3파티", "4파티", "5파티", "6파티"]

    # Reference backend
    backend_host: str = "0.0.0.0"
    backend_port: int = 8080
    sse_keepalive_interval: float = 15.0  # heartbeat 주기 (초)

    # 로깅
    log_level: str = "INFO"

    model_config = {
        "env_prefix": "",
        "case_sensitive": False,
        "extra": "ignore",
    }


@lru_cache
def get_settings() -> Settings:
    """설정 싱글톤."""
    return Settings()
