"""Supabase-backed user directory."""

from dataclasses import dataclass
from uuid import UUID

from supabase import Client

from gym_checkin.domain.models import UserRecord
from gym_checkin.services.tracker import UserDirectory


@dataclass
class SupabaseUserDirectory(UserDirectory):
    """Read-only role and status lookups against the users table."""

    client: Client

    def get_user(self, user_id: UUID) -> UserRecord | None:
        """Return the user for an id, if present."""
        response = (
            self.client.table("users")
            .select("id, role, is_active, first_name, last_name")
            .eq("id", str(user_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        row = response.data[0]
        return UserRecord(
            id=UUID(row["id"]),
            role=str(row.get("role") or ""),
            is_active=bool(row.get("is_active", False)),
            first_name=row.get("first_name"),
            last_name=row.get("last_name"),
        )
