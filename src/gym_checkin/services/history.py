"""Read-side queries over gym sessions."""

import asyncio
import math
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from uuid import UUID

from gym_checkin.domain.sessions import GymSession
from gym_checkin.services.tracker import SessionRepository

DEFAULT_PAGE_SIZE = 10


@dataclass(frozen=True)
class SessionPage:
    """A page of a member's session history."""

    sessions: list[GymSession]
    current: int
    pages: int
    total: int


@dataclass(frozen=True)
class DailySessionStats:
    """Counts for the sessions checked in on one day."""

    total: int
    active: int
    completed: int
    total_duration: int


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class SessionHistoryService:
    """Queries for current, historical and same-day sessions."""

    repository: SessionRepository
    clock: Callable[[], datetime] = field(default=_utcnow)

    async def current_session(self, member_id: UUID) -> GymSession | None:
        return await asyncio.to_thread(self.repository.get_active_session, member_id)

    async def member_history(
        self, member_id: UUID, page: int = 1, limit: int = DEFAULT_PAGE_SIZE
    ) -> SessionPage:
        """Return a member's sessions, latest first, paginated from page 1."""
        page = max(page, 1)
        limit = limit if limit > 0 else DEFAULT_PAGE_SIZE
        sessions = await asyncio.to_thread(
            self.repository.list_member_sessions,
            member_id,
            offset=(page - 1) * limit,
            limit=limit,
        )
        total = await asyncio.to_thread(
            self.repository.count_member_sessions, member_id
        )
        return SessionPage(
            sessions=sessions,
            current=page,
            pages=math.ceil(total / limit),
            total=total,
        )

    async def today(self) -> tuple[list[GymSession], DailySessionStats]:
        """Return sessions checked in since UTC midnight and their totals."""
        start = self.clock().astimezone(UTC).replace(
            hour=0, minute=0, second=0, microsecond=0
        )
        sessions = await asyncio.to_thread(
            self.repository.list_sessions_between,
            start,
            start + timedelta(days=1),
        )
        active = sum(1 for session in sessions if session.is_active)
        stats = DailySessionStats(
            total=len(sessions),
            active=active,
            completed=len(sessions) - active,
            total_duration=sum(session.duration or 0 for session in sessions),
        )
        return sessions, stats
