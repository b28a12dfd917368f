"""Domain models for users, roles and broadcast rooms."""

from dataclasses import dataclass
from enum import Enum
from uuid import UUID

ADMIN_ROOM = "admin-room"
TRAINER_ROOM = "trainer-room"


class Role(Enum):
    """Roles that can hold a realtime connection."""

    ADMIN = "admin"
    TRAINER = "trainer"
    MEMBER = "member"

    @classmethod
    def parse(cls, value: str) -> "Role | None":
        """Return the role for a raw string, or None when unrecognized."""
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


def canonical_user_id(user_id: UUID | str) -> str:
    """Return the hyphenated lowercase form of a UUID, or the value as given."""
    try:
        return str(UUID(str(user_id)))
    except ValueError:
        return str(user_id)


def member_room(member_id: UUID | str) -> str:
    """Return the personal room name for a member."""
    return f"member-{canonical_user_id(member_id)}"


def room_for(role: Role, user_id: UUID | str) -> str:
    """Map a role and identity to the single room its connection joins."""
    if role is Role.ADMIN:
        return ADMIN_ROOM
    if role is Role.TRAINER:
        return TRAINER_ROOM
    return member_room(user_id)


@dataclass(frozen=True)
class UserRecord:
    """Represents a user as seen by the check-in subsystem."""

    id: UUID
    role: str
    is_active: bool
    first_name: str | None = None
    last_name: str | None = None

    @property
    def is_admin(self) -> bool:
        return Role.parse(self.role) is Role.ADMIN

    @property
    def is_checkin_eligible(self) -> bool:
        """Return true when the user is an enabled member."""
        return self.is_active and Role.parse(self.role) is Role.MEMBER


@dataclass(frozen=True)
class MemberSummary:
    """Member details embedded into session payloads."""

    id: UUID
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    phone: str | None = None

    @property
    def display_name(self) -> str:
        parts = [part for part in (self.first_name, self.last_name) if part]
        return " ".join(parts) if parts else "Member"

    def to_payload(self) -> dict[str, object]:
        return {
            "id": str(self.id),
            "firstName": self.first_name,
            "lastName": self.last_name,
            "email": self.email,
            "phone": self.phone,
        }
