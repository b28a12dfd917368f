"""Shared test fixtures."""

from dataclasses import dataclass, field, replace
from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import UUID, uuid4

import pytest

from gym_checkin.config import Settings
from gym_checkin.containers import AppContainer
from gym_checkin.domain.errors import ActiveSessionConflictError
from gym_checkin.domain.models import MemberSummary, UserRecord
from gym_checkin.domain.sessions import GymSession
from gym_checkin.services.broadcast import BroadcastDispatcher
from gym_checkin.services.broadcaster import PeriodicBroadcaster
from gym_checkin.services.connections import ConnectionRegistry
from gym_checkin.services.history import SessionHistoryService
from gym_checkin.services.tracker import (
    SessionRepository,
    SessionTracker,
    UserDirectory,
)

CHECK_IN_TIME = datetime(2026, 3, 2, 9, 0, tzinfo=UTC)


@dataclass
class FakeClock:
    """Controllable clock for duration math."""

    now: datetime = CHECK_IN_TIME

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now = self.now + timedelta(**kwargs)


@dataclass
class FakeConnection:
    """Connection that records every frame it is sent."""

    frames: list[dict[str, Any]] = field(default_factory=list)
    fail: bool = False

    async def send_json(self, data: Any) -> None:
        if self.fail:
            raise RuntimeError("connection closed")
        self.frames.append(data)

    def events(self, name: str) -> list[Any]:
        return [frame["data"] for frame in self.frames if frame["event"] == name]


@dataclass
class InMemoryUserDirectory(UserDirectory):
    """In-memory user directory for tests."""

    users: dict[UUID, UserRecord] = field(default_factory=dict)
    lookups: int = 0

    def get_user(self, user_id: UUID) -> UserRecord | None:
        self.lookups += 1
        return self.users.get(user_id)

    def add(
        self,
        role: str = "member",
        is_active: bool = True,
        first_name: str = "Ada",
        last_name: str = "Lovelace",
    ) -> UserRecord:
        user = UserRecord(
            id=uuid4(),
            role=role,
            is_active=is_active,
            first_name=first_name,
            last_name=last_name,
        )
        self.users[user.id] = user
        return user


@dataclass
class InMemorySessionRepository(SessionRepository):
    """In-memory session store enforcing one open session per member."""

    directory: InMemoryUserDirectory
    sessions: dict[UUID, GymSession] = field(default_factory=dict)
    fail_reads: bool = False

    def create_session(
        self,
        member_id: UUID,
        check_in_time: datetime,
        notes: str,
        checked_in_by: UUID | None,
    ) -> GymSession:
        if any(
            session.member_id == member_id and session.is_active
            for session in self.sessions.values()
        ):
            raise ActiveSessionConflictError(str(member_id))
        session = GymSession(
            id=uuid4(),
            member_id=member_id,
            check_in_time=check_in_time,
            notes=notes,
            checked_in_by=checked_in_by,
        )
        self.sessions[session.id] = session
        return self._populate(session)

    def get_session(self, session_id: UUID) -> GymSession | None:
        self._check_reads()
        session = self.sessions.get(session_id)
        return self._populate(session) if session else None

    def get_active_session(self, member_id: UUID) -> GymSession | None:
        self._check_reads()
        for session in self.sessions.values():
            if session.member_id == member_id and session.is_active:
                return self._populate(session)
        return None

    def list_active_sessions(self) -> list[GymSession]:
        self._check_reads()
        return self._sorted(s for s in self.sessions.values() if s.is_active)

    def close_session(  # noqa: PLR0913
        self,
        session_id: UUID,
        check_out_time: datetime,
        duration: int,
        notes: str,
        checked_out_by: UUID | None,
    ) -> GymSession | None:
        session = self.sessions.get(session_id)
        if session is None or not session.is_active:
            return None
        closed = replace(
            session,
            check_out_time=check_out_time,
            duration=duration,
            notes=notes,
            checked_out_by=checked_out_by,
        )
        self.sessions[session_id] = closed
        return self._populate(closed)

    def list_member_sessions(
        self, member_id: UUID, offset: int, limit: int
    ) -> list[GymSession]:
        sessions = self._sorted(
            s for s in self.sessions.values() if s.member_id == member_id
        )
        return sessions[offset : offset + limit]

    def count_member_sessions(self, member_id: UUID) -> int:
        return sum(1 for s in self.sessions.values() if s.member_id == member_id)

    def list_sessions_between(
        self, start: datetime, end: datetime
    ) -> list[GymSession]:
        return self._sorted(
            s for s in self.sessions.values() if start <= s.check_in_time < end
        )

    def _check_reads(self) -> None:
        if self.fail_reads:
            raise RuntimeError("store unavailable")

    def _sorted(self, sessions) -> list[GymSession]:  # type: ignore[no-untyped-def]
        ordered = sorted(sessions, key=lambda s: s.check_in_time, reverse=True)
        return [self._populate(session) for session in ordered]

    def _populate(self, session: GymSession) -> GymSession:
        user = self.directory.users.get(session.member_id)
        if user is None:
            return session
        return session.with_member(
            MemberSummary(
                id=user.id,
                first_name=user.first_name,
                last_name=user.last_name,
                email=f"{(user.first_name or 'member').lower()}@example.com",
            )
        )


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="test.service.key",
        active_sessions_interval_seconds=0,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def user_directory() -> InMemoryUserDirectory:
    return InMemoryUserDirectory()


@pytest.fixture
def session_repository(
    user_directory: InMemoryUserDirectory,
) -> InMemorySessionRepository:
    return InMemorySessionRepository(directory=user_directory)


@pytest.fixture
def registry() -> ConnectionRegistry:
    return ConnectionRegistry()


@pytest.fixture
def dispatcher(registry: ConnectionRegistry) -> BroadcastDispatcher:
    return BroadcastDispatcher(registry)


@pytest.fixture
def tracker(
    session_repository: InMemorySessionRepository,
    user_directory: InMemoryUserDirectory,
    dispatcher: BroadcastDispatcher,
    clock: FakeClock,
) -> SessionTracker:
    return SessionTracker(
        session_repository=session_repository,
        user_directory=user_directory,
        dispatcher=dispatcher,
        clock=clock,
    )


@pytest.fixture
def container(
    settings: Settings,
    registry: ConnectionRegistry,
    dispatcher: BroadcastDispatcher,
    tracker: SessionTracker,
    session_repository: InMemorySessionRepository,
    clock: FakeClock,
) -> AppContainer:
    periodic_broadcaster = PeriodicBroadcaster(
        tracker=tracker,
        interval_seconds=settings.active_sessions_interval_seconds,
    )

    async def close_resources() -> None:
        await periodic_broadcaster.stop()

    return AppContainer(
        settings=settings,
        connection_registry=registry,
        dispatcher=dispatcher,
        session_tracker=tracker,
        history_service=SessionHistoryService(session_repository, clock=clock),
        periodic_broadcaster=periodic_broadcaster,
        close_resources=close_resources,
    )
