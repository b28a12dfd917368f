"""Domain models for gym visit sessions."""

from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from uuid import UUID

from gym_checkin.domain.models import MemberSummary

_MILLISECONDS_PER_MINUTE = 60_000


@dataclass(frozen=True)
class GymSession:
    """Represents a persisted check-in to check-out visit."""

    id: UUID
    member_id: UUID
    check_in_time: datetime
    check_out_time: datetime | None = None
    duration: int | None = None
    notes: str = ""
    checked_in_by: UUID | None = None
    checked_out_by: UUID | None = None
    member: MemberSummary | None = None

    @property
    def is_active(self) -> bool:
        return self.check_out_time is None

    def live_duration(self, now: datetime) -> int:
        """Return minutes since check-in without touching persisted state."""
        return compute_duration_minutes(self.check_in_time, now)

    def with_member(self, member: MemberSummary | None) -> "GymSession":
        return replace(self, member=member)

    def to_payload(self) -> dict[str, object]:
        """Serialize the session for realtime and REST responses."""
        return {
            "id": str(self.id),
            "memberId": str(self.member_id),
            "member": self.member.to_payload() if self.member else None,
            "checkInTime": self.check_in_time.isoformat(),
            "checkOutTime": (
                self.check_out_time.isoformat() if self.check_out_time else None
            ),
            "duration": self.duration,
            "notes": self.notes,
            "checkedInBy": str(self.checked_in_by) if self.checked_in_by else None,
            "checkedOutBy": str(self.checked_out_by) if self.checked_out_by else None,
        }


def compute_duration_minutes(check_in_time: datetime, check_out_time: datetime) -> int:
    """Return whole minutes between two instants, rounding halves away from zero.

    The difference is taken at millisecond resolution.
    """
    milliseconds = (check_out_time - check_in_time) // timedelta(milliseconds=1)
    minutes = Decimal(milliseconds) / Decimal(_MILLISECONDS_PER_MINUTE)
    return int(minutes.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def append_note(existing: str | None, label: str, text: str) -> str:
    """Append a labelled note, keeping prior content."""
    return f"{existing or ''} | {label}: {text}"


def checkout_notes(existing: str | None, notes: str | None) -> str:
    """Return notes after a regular check-out."""
    if not notes:
        return existing or ""
    return append_note(existing, "Check-out", notes)


def force_checkout_notes(existing: str | None, reason: str | None) -> str:
    """Return notes after a forced check-out."""
    return append_note(existing, "Force checkout", reason or "No reason provided")
