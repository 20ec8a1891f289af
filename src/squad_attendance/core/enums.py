from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Account role used by the access gate."""

    COACH = "coach"
    STAFF = "staff"


class Position(str, Enum):
    GOALKEEPER = "Goalkeeper"
    DEFENDER = "Defender"
    MIDFIELDER = "Midfielder"
    FORWARD = "Forward"


class TrainingSession(str, Enum):
    """Daily training slot. Declaration order is the display order."""

    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING = "evening"

    @property
    def order(self) -> int:
        return list(TrainingSession).index(self)


class AttendanceStatus(str, Enum):
    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"

    @property
    def attended(self) -> bool:
        """Present and late both count towards a player's attendance."""
        return self in (AttendanceStatus.PRESENT, AttendanceStatus.LATE)
