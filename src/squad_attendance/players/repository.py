from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import Position
from .model import Player, PlayerChanges


class PlayerRepository(Protocol):
    """Repository interface for Player.

    Note (DIP): services depend on this interface, never on a concrete store.
    Implementations raise ConflictError when a jersey number is already taken.
    """

    def get_by_id(self, player_id: int) -> Optional[Player]:
        raise NotImplementedError

    def get_by_jersey_number(self, jersey_number: int) -> Optional[Player]:
        raise NotImplementedError

    def list_all(self) -> Sequence[Player]:
        """All players ordered by name."""
        raise NotImplementedError

    def create(
        self,
        *,
        name: str,
        position: Position,
        jersey_number: int,
        always_available: bool = False,
        image: Optional[str] = None,
    ) -> Player:
        raise NotImplementedError

    def update(self, player_id: int, changes: PlayerChanges) -> Optional[Player]:
        raise NotImplementedError

    def set_counters(self, player_id: int, *, attendance_count: int, total_sessions: int) -> bool:
        raise NotImplementedError

    def delete(self, player_id: int) -> bool:
        raise NotImplementedError
