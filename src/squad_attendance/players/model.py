from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import Position


@dataclass(frozen=True)
class Player:
    """Domain entity: a squad member.

    attendance_count and total_sessions are a running summary of the player's
    attendance records, maintained by the attendance recorder.
    """

    player_id: int
    name: str
    position: Position
    jersey_number: int
    always_available: bool = False
    image: Optional[str] = None
    attendance_count: int = 0
    total_sessions: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def attendance_rate(self) -> float:
        if self.total_sessions == 0:
            return 0.0
        return self.attendance_count / self.total_sessions * 100


@dataclass(frozen=True)
class PlayerChanges:
    """Partial update; None means "leave unchanged" (image uses clear_image)."""

    name: Optional[str] = None
    position: Optional[Position] = None
    jersey_number: Optional[int] = None
    always_available: Optional[bool] = None
    image: Optional[str] = None
    clear_image: bool = False
