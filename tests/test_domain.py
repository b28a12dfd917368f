"""Tests for session and room domain helpers."""

from datetime import UTC, datetime, timedelta
from uuid import uuid4

import pytest

from gym_checkin.domain.models import (
    ADMIN_ROOM,
    TRAINER_ROOM,
    MemberSummary,
    Role,
    UserRecord,
    member_room,
    room_for,
)
from gym_checkin.domain.sessions import (
    GymSession,
    checkout_notes,
    compute_duration_minutes,
    force_checkout_notes,
)

START = datetime(2026, 1, 5, 18, 0, tzinfo=UTC)


@pytest.mark.parametrize(
    ("elapsed", "expected"),
    [
        (timedelta(seconds=29, milliseconds=999), 0),
        (timedelta(seconds=30), 1),
        (timedelta(minutes=27, seconds=30), 28),
        (timedelta(minutes=27, seconds=29, milliseconds=999), 27),
        (timedelta(minutes=2, seconds=30), 3),
        (timedelta(hours=1, seconds=90), 62),
        (timedelta(microseconds=999), 0),
    ],
)
def test_duration_rounds_half_away_from_zero(elapsed, expected) -> None:
    assert compute_duration_minutes(START, START + elapsed) == expected


def test_duration_negative_interval_rounds_away_from_zero() -> None:
    assert compute_duration_minutes(START, START - timedelta(seconds=90)) == -2


def test_room_mapping_is_total() -> None:
    member_id = uuid4()
    assert room_for(Role.ADMIN, member_id) == ADMIN_ROOM
    assert room_for(Role.TRAINER, member_id) == TRAINER_ROOM
    assert room_for(Role.MEMBER, member_id) == f"member-{member_id}"
    assert {room_for(role, "u1") for role in Role} == {
        "admin-room",
        "trainer-room",
        "member-u1",
    }


def test_member_room_uses_canonical_uuid_form() -> None:
    member_id = uuid4()
    expected = f"member-{member_id}"

    assert member_room(str(member_id).upper()) == expected
    assert member_room(member_id.hex) == expected
    assert member_room(f"{{{member_id}}}") == expected
    assert member_room("not-a-uuid") == "member-not-a-uuid"


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("admin", Role.ADMIN), (" Trainer ", Role.TRAINER), ("member", Role.MEMBER)],
)
def test_role_parse(raw, expected) -> None:
    assert Role.parse(raw) is expected


def test_role_parse_unknown() -> None:
    assert Role.parse("receptionist") is None


def test_user_eligibility() -> None:
    member = UserRecord(id=uuid4(), role="member", is_active=True)
    disabled = UserRecord(id=uuid4(), role="member", is_active=False)
    admin = UserRecord(id=uuid4(), role="admin", is_active=True)

    assert member.is_checkin_eligible
    assert not disabled.is_checkin_eligible
    assert not admin.is_checkin_eligible
    assert admin.is_admin


def test_notes_are_appended() -> None:
    assert checkout_notes("", "done") == " | Check-out: done"
    assert checkout_notes("arrived late", None) == "arrived late"
    assert checkout_notes(None, "") == ""
    assert force_checkout_notes("a", None) == "a | Force checkout: No reason provided"


def test_session_payload_and_live_duration() -> None:
    member = MemberSummary(id=uuid4(), first_name="Ada", last_name="Lovelace")
    session = GymSession(
        id=uuid4(),
        member_id=member.id,
        check_in_time=START,
        member=member,
    )

    payload = session.to_payload()

    assert session.is_active
    assert session.live_duration(START + timedelta(minutes=45)) == 45
    assert payload["checkOutTime"] is None
    assert payload["checkInTime"] == START.isoformat()
    assert payload["member"]["firstName"] == "Ada"
    assert member.display_name == "Ada Lovelace"
    assert MemberSummary(id=uuid4()).display_name == "Member"
