"""Check-in/check-out state machine for gym visits."""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Protocol
from uuid import UUID

from gym_checkin.domain.errors import (
    ActiveSessionConflictError,
    ActiveSessionExistsError,
    AdminRequiredError,
    MemberUnavailableError,
    SessionAlreadyClosedError,
    SessionNotFoundError,
)
from gym_checkin.domain.models import UserRecord
from gym_checkin.domain.sessions import (
    GymSession,
    checkout_notes,
    compute_duration_minutes,
    force_checkout_notes,
)
from gym_checkin.services.broadcast import CHECKIN, CHECKOUT, BroadcastDispatcher

logger = logging.getLogger(__name__)


class SessionRepository(Protocol):
    """Persistence interface for gym sessions.

    Reads return sessions with member details attached when available.
    """

    def create_session(
        self,
        member_id: UUID,
        check_in_time: datetime,
        notes: str,
        checked_in_by: UUID | None,
    ) -> GymSession:
        """Insert an open session; raise ActiveSessionConflictError on duplicates."""

    def get_session(self, session_id: UUID) -> GymSession | None:
        """Return a session by id, if present."""

    def get_active_session(self, member_id: UUID) -> GymSession | None:
        """Return the member's open session, if any."""

    def list_active_sessions(self) -> list[GymSession]:
        """Return open sessions, latest check-in first."""

    def close_session(  # noqa: PLR0913
        self,
        session_id: UUID,
        check_out_time: datetime,
        duration: int,
        notes: str,
        checked_out_by: UUID | None,
    ) -> GymSession | None:
        """Close an open session; return None if it was already closed."""

    def list_member_sessions(
        self, member_id: UUID, offset: int, limit: int
    ) -> list[GymSession]:
        """Return a page of a member's sessions, latest check-in first."""

    def count_member_sessions(self, member_id: UUID) -> int:
        """Return how many sessions a member has."""

    def list_sessions_between(
        self, start: datetime, end: datetime
    ) -> list[GymSession]:
        """Return sessions checked in within [start, end), latest first."""


class UserDirectory(Protocol):
    """Lookup interface for users and their roles."""

    def get_user(self, user_id: UUID) -> UserRecord | None:
        """Return a user by id, if present."""


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class SessionTracker:
    """Governs check-in -> active -> check-out transitions per member.

    Store and directory calls run in worker threads so one slow round-trip
    does not stall the other connections.
    """

    session_repository: SessionRepository
    user_directory: UserDirectory
    dispatcher: BroadcastDispatcher
    clock: Callable[[], datetime] = field(default=_utcnow)

    async def check_in(
        self,
        member_id: UUID,
        operator_id: UUID | None = None,
        notes: str | None = None,
    ) -> GymSession:
        """Open a session for an eligible member and announce it."""
        member = await asyncio.to_thread(self.user_directory.get_user, member_id)
        if member is None or not member.is_checkin_eligible:
            raise MemberUnavailableError
        active = await asyncio.to_thread(
            self.session_repository.get_active_session, member_id
        )
        if active is not None:
            raise ActiveSessionExistsError
        try:
            session = await asyncio.to_thread(
                self.session_repository.create_session,
                member_id=member_id,
                check_in_time=self.clock(),
                notes=notes or "",
                checked_in_by=operator_id or member_id,
            )
        except ActiveSessionConflictError as exc:
            raise ActiveSessionExistsError from exc
        logger.info(
            "Member checked in",
            extra={"member_id": str(member_id), "session_id": str(session.id)},
        )
        await self.dispatcher.session_update(CHECKIN, session)
        await self._refresh_active_sessions()
        return session

    async def check_out(
        self,
        session_id: UUID,
        operator_id: UUID | None = None,
        notes: str | None = None,
    ) -> GymSession:
        """Close an open session and announce it."""
        session = await self._require_open_session(session_id)
        return await self._close(
            session,
            operator_id=operator_id or session.member_id,
            notes=checkout_notes(session.notes, notes),
        )

    async def force_check_out(
        self,
        session_id: UUID,
        operator_id: UUID,
        reason: str | None = None,
    ) -> GymSession:
        """Close an open session on behalf of an admin."""
        operator = await asyncio.to_thread(self.user_directory.get_user, operator_id)
        if operator is None or not operator.is_admin:
            raise AdminRequiredError
        session = await self._require_open_session(session_id)
        return await self._close(
            session,
            operator_id=operator_id,
            notes=force_checkout_notes(session.notes, reason),
        )

    async def update_duration(self, session_id: UUID) -> int | None:
        """Broadcast the live duration of an open session.

        Closed or unknown sessions are ignored.
        """
        session = await asyncio.to_thread(
            self.session_repository.get_session, session_id
        )
        if session is None or not session.is_active:
            return None
        duration = session.live_duration(self.clock())
        await self.dispatcher.duration_update(session.id, session.member_id, duration)
        return duration

    async def list_active(self) -> list[GymSession]:
        """Return every open session, latest check-in first."""
        return await asyncio.to_thread(
            self.session_repository.list_active_sessions
        )

    async def broadcast_active_sessions(self) -> int:
        """Send the active-session snapshot to the admin room."""
        sessions = await self.list_active()
        await self.dispatcher.active_sessions(sessions)
        return len(sessions)

    async def _require_open_session(self, session_id: UUID) -> GymSession:
        session = await asyncio.to_thread(
            self.session_repository.get_session, session_id
        )
        if session is None:
            raise SessionNotFoundError
        if not session.is_active:
            raise SessionAlreadyClosedError
        return session

    async def _close(
        self, session: GymSession, operator_id: UUID, notes: str
    ) -> GymSession:
        check_out_time = self.clock()
        closed = await asyncio.to_thread(
            self.session_repository.close_session,
            session_id=session.id,
            check_out_time=check_out_time,
            duration=compute_duration_minutes(session.check_in_time, check_out_time),
            notes=notes,
            checked_out_by=operator_id,
        )
        if closed is None:
            raise SessionAlreadyClosedError
        logger.info(
            "Member checked out",
            extra={
                "member_id": str(closed.member_id),
                "session_id": str(closed.id),
                "duration": closed.duration,
            },
        )
        await self.dispatcher.session_update(CHECKOUT, closed)
        await self._refresh_active_sessions()
        return closed

    async def _refresh_active_sessions(self) -> None:
        try:
            await self.broadcast_active_sessions()
        except Exception:
            logger.exception("Failed to broadcast active sessions")
