"""User Entity."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class User:
    """유저 엔티티.

    Attributes:
        name: 유저 이름 (unique)
        color: 표시 색상 (#rrggbb)
    """

    name: str
    color: str = "#cccccc"
