"""Raid Scheduler Prometheus 메트릭

측정 대상:
1. 저장 파이프라인 (auto-save / save-all 결과, 지연)
2. 리로드 (전체 재조회 결과)
3. 라이브 채널 (이벤트, 연결 상태, 재연결, 폴링)
4. 배치 판정 결과
5. 레퍼런스 백엔드 구독자 수
"""

import math

from fastapi import FastAPI
from fastapi.responses import Response
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

REGISTRY = CollectorRegistry(auto_describe=True)
METRICS_PATH = "/metrics"


def exponential_buckets_range(min_val: float, max_val: float, count: int) -> tuple:
    """min_val과 max_val 사이에 count개의 버킷을 지수적으로 분포시킵니다.

    Example:
        >>> exponential_buckets_range(0.01, 10.0, 4)
        (0.01, 0.1, 1.0, 10.0)
    """
    if count < 2:
        return (min_val, max_val)
    log_min = math.log(min_val)
    log_max = math.log(max_val)
    factor = (log_max - log_min) / (count - 1)
    return tuple(round(math.exp(log_min + factor * i), 4) for i in range(count))


# 저장/리로드 호출: 네트워크 왕복 (10ms ~ 10s, 12 buckets)
REQUEST_BUCKETS = exponential_buckets_range(0.01, 10.0, 12)


def register_metrics(app: FastAPI) -> None:
    """Prometheus /metrics 엔드포인트 등록"""

    @app.get(METRICS_PATH, include_in_schema=False)
    async def metrics_endpoint() -> Response:
        return Response(content=generate_latest(REGISTRY), media_type=CONTENT_TYPE_LATEST)


# ─────────────────────────────────────────────────────────────────────────────
# 1. 저장 파이프라인
# ─────────────────────────────────────────────────────────────────────────────

SAVE_TOTAL = Counter(
    "raid_scheduler_save_total",
    "Total save calls",
    labelnames=["mode", "target", "result"],  # mode: auto, batch / result: success, error
    registry=REGISTRY,
)

SAVE_LATENCY = Histogram(
    "raid_scheduler_save_latency_seconds",
    "Save call latency",
    labelnames=["mode", "target"],
    registry=REGISTRY,
    buckets=REQUEST_BUCKETS,
)

DEBOUNCE_SUPERSEDED = Counter(
    "raid_scheduler_debounce_superseded_total",
    "Pending debounced calls discarded by a newer edit",
    registry=REGISTRY,
)

# ─────────────────────────────────────────────────────────────────────────────
# 2. 리로드
# ─────────────────────────────────────────────────────────────────────────────

RELOAD_TOTAL = Counter(
    "raid_scheduler_reload_total",
    "Total full reloads",
    labelnames=["result"],  # success, fallback, collapsed
    registry=REGISTRY,
)

RELOAD_LATENCY = Histogram(
    "raid_scheduler_reload_latency_seconds",
    "Full reload latency",
    registry=REGISTRY,
    buckets=REQUEST_BUCKETS,
)

# ─────────────────────────────────────────────────────────────────────────────
# 3. 라이브 채널
# ─────────────────────────────────────────────────────────────────────────────

LIVE_CONNECTED = Gauge(
    "raid_scheduler_live_connected",
    "Live channel status (1=connected, 0=disconnected)",
    registry=REGISTRY,
)

LIVE_EVENTS_RECEIVED = Counter(
    "raid_scheduler_live_events_received_total",
    "Total events received from the push channel",
    labelnames=["event"],
    registry=REGISTRY,
)

LIVE_RECONNECT_ATTEMPTS = Counter(
    "raid_scheduler_live_reconnect_attempts_total",
    "Total reconnect attempts",
    labelnames=["trigger"],  # timer, visible
    registry=REGISTRY,
)

LIVE_POLL_TOTAL = Counter(
    "raid_scheduler_live_poll_total",
    "Total last-updated polls",
    labelnames=["result"],  # unchanged, changed, baseline, error
    registry=REGISTRY,
)

# ─────────────────────────────────────────────────────────────────────────────
# 4. 배치 판정
# ─────────────────────────────────────────────────────────────────────────────

PLACEMENT_TOTAL = Counter(
    "raid_scheduler_placement_total",
    "Placement attempts by result",
    labelnames=["result"],
    registry=REGISTRY,
)

# ─────────────────────────────────────────────────────────────────────────────
# 5. 레퍼런스 백엔드
# ─────────────────────────────────────────────────────────────────────────────

BACKEND_SUBSCRIBERS = Gauge(
    "raid_scheduler_backend_subscribers",
    "Active push channel subscribers on the reference backend",
    registry=REGISTRY,
)

BACKEND_EVENTS_BROADCAST = Counter(
    "raid_scheduler_backend_events_broadcast_total",
    "Events broadcast by the reference backend",
    labelnames=["event"],
    registry=REGISTRY,
)
