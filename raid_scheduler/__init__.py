"""Raid Scheduler - 레이드 스케줄 배치 및 동기화 엔진."""

__version__ = "1.0.0"
