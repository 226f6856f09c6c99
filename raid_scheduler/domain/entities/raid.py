"""Raid Entity."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Raid:
    """레이드 엔티티.

    Attributes:
        name: 레이드 이름 (전역 unique)
        seq: 컬럼 순서
    """

    name: str
    seq: int = 0
