from __future__ import annotations

from datetime import date

import pytest

from squad_attendance.attendance.model import AttendanceItem
from squad_attendance.core.enums import Position
from squad_attendance.core.exceptions import ConflictError, NotFoundError, StoreError, ValidationError
from squad_attendance.players.service import PlayerService
from squad_attendance.storage.image_storage import ImageUpload

PNG = ImageUpload(filename="face.png", content_type="image/png", data=b"\x89PNG...")


def test_create_player_validates_fields(player_service):
    with pytest.raises(ValidationError):
        player_service.create_player(name="  ", position="Forward", jersey_number=9)
    with pytest.raises(ValidationError):
        player_service.create_player(name="Nine", position="Striker", jersey_number=9)
    with pytest.raises(ValidationError):
        player_service.create_player(name="Nine", position="Forward", jersey_number=100)
    with pytest.raises(ValidationError):
        player_service.create_player(name="Nine", position="Forward", jersey_number=0)


def test_create_player_coerces_form_values(player_service):
    p = player_service.create_player(name=" Nine ", position="Forward", jersey_number="9", always_available="true")

    assert p.name == "Nine"
    assert p.position == Position.FORWARD
    assert p.jersey_number == 9
    assert p.always_available is True
    assert (p.attendance_count, p.total_sessions) == (0, 0)


def test_duplicate_jersey_number_conflicts(player_service, make_player):
    make_player("Alice", jersey_number=10)
    other = make_player("Bruno", jersey_number=11)

    with pytest.raises(ConflictError, match="Jersey number already taken"):
        player_service.create_player(name="Chen", position="Defender", jersey_number=10)
    with pytest.raises(ConflictError):
        player_service.update_player(other.player_id, jersey_number=10)

    # Keeping one's own number is not a conflict.
    assert player_service.update_player(other.player_id, jersey_number=11).jersey_number == 11


def test_update_is_partial(player_service, make_player):
    p = make_player("Alice", jersey_number=7, always_available=True)

    updated = player_service.update_player(p.player_id, position="Goalkeeper")

    assert updated.position == Position.GOALKEEPER
    assert updated.name == "Alice"
    assert updated.jersey_number == 7
    assert updated.always_available is True


def test_set_availability(player_service, make_player):
    p = make_player("Alice")

    assert player_service.set_availability(p.player_id, True).always_available is True
    assert player_service.set_availability(p.player_id, "false").always_available is False
    with pytest.raises(ValidationError):
        player_service.set_availability(p.player_id, None)
    with pytest.raises(NotFoundError):
        player_service.set_availability(999, True)


def test_image_upload_replace_and_remove(player_service, images):
    p = player_service.create_player(name="Alice", position="Forward", jersey_number=9, image=PNG)
    first = p.image
    assert first in images.objects

    p = player_service.update_player(p.player_id, image=ImageUpload("new.jpg", "image/jpeg", b"jpeg"))
    assert p.image != first
    assert first not in images.objects
    assert p.image in images.objects

    p = player_service.update_player(p.player_id, remove_image=True)
    assert p.image is None
    assert images.objects == {}


def test_non_image_upload_is_rejected(player_service):
    with pytest.raises(ValidationError, match="Only image files are allowed!"):
        player_service.create_player(
            name="Alice",
            position="Forward",
            jersey_number=9,
            image=ImageUpload("notes.txt", "text/plain", b"hello"),
        )


def test_failed_upload_does_not_leave_a_player_behind(players_repo, attendance_repo):
    class BrokenStorage:
        def upload(self, upload, *, player_id):
            raise StoreError("Image upload failed")

        def delete(self, url):
            pass

    service = PlayerService(players_repo, attendance_repo, BrokenStorage())
    with pytest.raises(StoreError):
        service.create_player(name="Alice", position="Forward", jersey_number=9, image=PNG)
    assert service.list_players() == []


def test_delete_player_removes_only_their_attendance(
    player_service, attendance_service, attendance_repo, make_player, fixed_now
):
    a, b = make_player("Alice"), make_player("Bruno")
    for day in ("2024-03-01", "2024-03-02"):
        attendance_service.record_attendance(
            att_date=day,
            session="morning",
            items=[AttendanceItem(a.player_id, "present"), AttendanceItem(b.player_id, "late")],
            now=fixed_now,
        )

    removed = player_service.delete_player(a.player_id)

    assert removed == 2
    assert attendance_repo.list_records(player_id=a.player_id) == []
    assert len(attendance_repo.list_records(player_id=b.player_id)) == 2
    with pytest.raises(NotFoundError):
        player_service.get_player(a.player_id)


def test_list_players_sorted_by_name(make_player, player_service):
    make_player("zoe")
    make_player("Adam")
    make_player("mia")
    assert [p.name for p in player_service.list_players()] == ["Adam", "mia", "zoe"]


def test_rebuild_counters_matches_incremental_counters(
    player_service, attendance_service, players_repo, make_player, fixed_now
):
    a, b = make_player("Alice"), make_player("Bruno")
    plan = [
        ("2024-03-01", "morning", "present", "absent"),
        ("2024-03-01", "evening", "late", "present"),
        ("2024-03-01", "morning", "absent", "absent"),
        ("2024-03-04", "afternoon", "present", "late"),
    ]
    for day, session, sa, sb in plan:
        attendance_service.record_attendance(
            att_date=day,
            session=session,
            items=[AttendanceItem(a.player_id, sa), AttendanceItem(b.player_id, sb)],
            now=fixed_now,
        )

    before = {p.player_id: (p.attendance_count, p.total_sessions) for p in players_repo.list_all()}
    assert player_service.rebuild_counters() == 0
    after = {p.player_id: (p.attendance_count, p.total_sessions) for p in players_repo.list_all()}
    assert before == after

    players_repo.set_counters(a.player_id, attendance_count=0, total_sessions=0)
    assert player_service.rebuild_counters() == 1
    assert players_repo.get_by_id(a.player_id).total_sessions == 3
