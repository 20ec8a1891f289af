from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Optional, Sequence

from ..attendance.repository import AttendanceRepository
from ..common.validators import parse_bool, require_enum, require_int, require_non_empty
from ..core.constants import MAX_JERSEY_NUMBER, MIN_JERSEY_NUMBER
from ..core.enums import Position
from ..core.exceptions import ConflictError, NotFoundError, StoreError, ValidationError
from ..storage.image_storage import ImageStorage, ImageUpload, validate_image
from .model import Player, PlayerChanges
from .repository import PlayerRepository

logger = logging.getLogger(__name__)


class PlayerService:
    """Use case: manage the squad (registration, edits, availability, removal)."""

    def __init__(
        self,
        players: PlayerRepository,
        attendance: AttendanceRepository,
        images: Optional[ImageStorage] = None,
    ):
        self._players = players
        self._attendance = attendance
        self._images = images

    def list_players(self) -> Sequence[Player]:
        return self._players.list_all()

    def get_player(self, player_id: Any) -> Player:
        player = self._players.get_by_id(require_int(player_id, "player id", min_value=1))
        if not player:
            raise NotFoundError("Player not found")
        return player

    @staticmethod
    def _jersey(value: Any) -> int:
        return require_int(value, "jerseyNumber", min_value=MIN_JERSEY_NUMBER, max_value=MAX_JERSEY_NUMBER)

    def _ensure_jersey_free(self, jersey_number: int, *, player_id: Optional[int] = None) -> None:
        holder = self._players.get_by_jersey_number(jersey_number)
        if holder and holder.player_id != player_id:
            raise ConflictError("Jersey number already taken")

    def _require_images(self) -> ImageStorage:
        if self._images is None:
            raise ValidationError("Image uploads are not configured")
        return self._images

    def create_player(
        self,
        *,
        name: Any,
        position: Any,
        jersey_number: Any,
        always_available: Any = False,
        image: Optional[ImageUpload] = None,
    ) -> Player:
        name = require_non_empty(name, "name")
        position = require_enum(position, Position, "position")
        jersey_number = self._jersey(jersey_number)
        always_available = parse_bool(always_available, "alwaysAvailable") if always_available is not None else False
        if image is not None:
            validate_image(image)
            self._require_images()

        self._ensure_jersey_free(jersey_number)
        player = self._players.create(
            name=name,
            position=position,
            jersey_number=jersey_number,
            always_available=always_available,
        )
        logger.info("Player %s created (#%s %s)", player.player_id, jersey_number, name)

        if image is None:
            return player

        # The object name embeds the player id, so the upload happens after the insert.
        try:
            url = self._require_images().upload(image, player_id=player.player_id)
        except StoreError:
            self._players.delete(player.player_id)
            raise
        return self._players.update(player.player_id, PlayerChanges(image=url)) or player

    def update_player(
        self,
        player_id: Any,
        *,
        name: Any = None,
        position: Any = None,
        jersey_number: Any = None,
        always_available: Any = None,
        image: Optional[ImageUpload] = None,
        remove_image: bool = False,
    ) -> Player:
        current = self.get_player(player_id)

        changes = PlayerChanges(
            name=require_non_empty(name, "name") if name is not None else None,
            position=require_enum(position, Position, "position") if position is not None else None,
            jersey_number=self._jersey(jersey_number) if jersey_number not in (None, "") else None,
            always_available=parse_bool(always_available, "alwaysAvailable") if always_available is not None else None,
        )
        if changes.jersey_number is not None:
            self._ensure_jersey_free(changes.jersey_number, player_id=current.player_id)

        if image is not None:
            validate_image(image)
            storage = self._require_images()
            if current.image:
                storage.delete(current.image)
            url = storage.upload(image, player_id=current.player_id)
            changes = replace(changes, image=url)
        elif remove_image:
            if current.image and self._images is not None:
                self._images.delete(current.image)
            changes = replace(changes, clear_image=True)

        updated = self._players.update(current.player_id, changes)
        if not updated:
            raise NotFoundError("Player not found")
        return updated

    def set_availability(self, player_id: Any, always_available: Any) -> Player:
        if always_available is None:
            raise ValidationError("alwaysAvailable is required")
        return self.update_player(player_id, always_available=always_available)

    def delete_player(self, player_id: Any) -> int:
        """Remove the player, its image and every attendance record it owns.

        Returns the number of attendance records removed.
        """
        player = self.get_player(player_id)

        if player.image and self._images is not None:
            self._images.delete(player.image)

        removed = self._attendance.delete_by_player(player.player_id)
        if not self._players.delete(player.player_id):
            raise NotFoundError("Player not found")

        logger.info("Player %s deleted with %s attendance records", player.player_id, removed)
        return removed

    def rebuild_counters(self) -> int:
        """Recompute every player's counters from the attendance log.

        Returns how many players had drifted and were corrected.
        """
        counts = self._attendance.count_by_player()
        changed = 0
        for player in self._players.list_all():
            attended, total = counts.get(player.player_id, (0, 0))
            if (player.attendance_count, player.total_sessions) == (attended, total):
                continue
            logger.warning(
                "Player %s counters drifted: %s/%s -> %s/%s",
                player.player_id,
                player.attendance_count,
                player.total_sessions,
                attended,
                total,
            )
            self._players.set_counters(player.player_id, attendance_count=attended, total_sessions=total)
            changed += 1
        return changed
