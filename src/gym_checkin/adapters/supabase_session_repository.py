"""Supabase-backed gym session repository."""

from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from supabase import Client, PostgrestAPIError

from gym_checkin.domain.errors import ActiveSessionConflictError
from gym_checkin.domain.models import MemberSummary
from gym_checkin.domain.sessions import GymSession
from gym_checkin.services.tracker import SessionRepository

_TABLE = "gym_sessions"
_UNIQUE_VIOLATION = "23505"
_COLUMNS = (
    "id, member_id, check_in_time, check_out_time, duration, notes, "
    "checked_in_by, checked_out_by, "
    "member:users!member_id(id, first_name, last_name, email, phone)"
)


@dataclass
class SupabaseSessionRepository(SessionRepository):
    """Supabase implementation for gym sessions.

    At most one open session per member is enforced by the partial unique
    index ``gym_sessions_one_open_per_member``.
    """

    client: Client

    def create_session(
        self,
        member_id: UUID,
        check_in_time: datetime,
        notes: str,
        checked_in_by: UUID | None,
    ) -> GymSession:
        """Insert an open session row and return it with member details."""
        try:
            response = (
                self.client.table(_TABLE)
                .insert(
                    {
                        "member_id": str(member_id),
                        "check_in_time": check_in_time.isoformat(),
                        "notes": notes,
                        "checked_in_by": str(checked_in_by) if checked_in_by else None,
                    }
                )
                .execute()
            )
        except PostgrestAPIError as exc:
            if exc.code == _UNIQUE_VIOLATION:
                raise ActiveSessionConflictError(str(member_id)) from exc
            raise
        if not response.data:
            raise RuntimeError("Failed to create gym session")
        created = _parse_session(response.data[0])
        return self.get_session(created.id) or created

    def get_session(self, session_id: UUID) -> GymSession | None:
        """Return a session by id, if present."""
        response = (
            self.client.table(_TABLE)
            .select(_COLUMNS)
            .eq("id", str(session_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_session(response.data[0])

    def get_active_session(self, member_id: UUID) -> GymSession | None:
        """Return the member's open session, if any."""
        response = (
            self.client.table(_TABLE)
            .select(_COLUMNS)
            .eq("member_id", str(member_id))
            .is_("check_out_time", "null")
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_session(response.data[0])

    def list_active_sessions(self) -> list[GymSession]:
        """Return open sessions, latest check-in first."""
        response = (
            self.client.table(_TABLE)
            .select(_COLUMNS)
            .is_("check_out_time", "null")
            .order("check_in_time", desc=True)
            .execute()
        )
        return [_parse_session(row) for row in response.data or []]

    def close_session(  # noqa: PLR0913
        self,
        session_id: UUID,
        check_out_time: datetime,
        duration: int,
        notes: str,
        checked_out_by: UUID | None,
    ) -> GymSession | None:
        """Set check-out fields only while the row is still open."""
        response = (
            self.client.table(_TABLE)
            .update(
                {
                    "check_out_time": check_out_time.isoformat(),
                    "duration": duration,
                    "notes": notes,
                    "checked_out_by": str(checked_out_by) if checked_out_by else None,
                    "updated_at": datetime.now(tz=UTC).isoformat(),
                }
            )
            .eq("id", str(session_id))
            .is_("check_out_time", "null")
            .execute()
        )
        if not response.data:
            return None
        return self.get_session(session_id) or _parse_session(response.data[0])

    def list_member_sessions(
        self, member_id: UUID, offset: int, limit: int
    ) -> list[GymSession]:
        """Return a page of a member's sessions."""
        response = (
            self.client.table(_TABLE)
            .select(_COLUMNS)
            .eq("member_id", str(member_id))
            .order("check_in_time", desc=True)
            .range(offset, offset + limit - 1)
            .execute()
        )
        return [_parse_session(row) for row in response.data or []]

    def count_member_sessions(self, member_id: UUID) -> int:
        """Return the number of sessions recorded for a member."""
        response = (
            self.client.table(_TABLE)
            .select("id", count="exact")
            .eq("member_id", str(member_id))
            .execute()
        )
        return response.count or 0

    def list_sessions_between(
        self, start: datetime, end: datetime
    ) -> list[GymSession]:
        """Return sessions checked in within the range."""
        response = (
            self.client.table(_TABLE)
            .select(_COLUMNS)
            .gte("check_in_time", start.isoformat())
            .lt("check_in_time", end.isoformat())
            .order("check_in_time", desc=True)
            .execute()
        )
        return [_parse_session(row) for row in response.data or []]


def _parse_session(row: dict[str, object]) -> GymSession:
    member = row.get("member")
    return GymSession(
        id=UUID(str(row["id"])),
        member_id=UUID(str(row["member_id"])),
        check_in_time=_parse_timestamp(row["check_in_time"]),
        check_out_time=(
            _parse_timestamp(row["check_out_time"])
            if row.get("check_out_time")
            else None
        ),
        duration=int(row["duration"]) if row.get("duration") is not None else None,
        notes=str(row.get("notes") or ""),
        checked_in_by=_parse_uuid(row.get("checked_in_by")),
        checked_out_by=_parse_uuid(row.get("checked_out_by")),
        member=_parse_member(member) if isinstance(member, dict) else None,
    )


def _parse_member(row: dict[str, object]) -> MemberSummary:
    return MemberSummary(
        id=UUID(str(row["id"])),
        first_name=row.get("first_name"),
        last_name=row.get("last_name"),
        email=row.get("email"),
        phone=row.get("phone"),
    )


def _parse_timestamp(value: object) -> datetime:
    parsed = datetime.fromisoformat(str(value))
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed


def _parse_uuid(value: object) -> UUID | None:
    if not value:
        return None
    return UUID(str(value))
