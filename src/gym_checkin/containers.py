"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from gym_checkin.adapters.supabase_session_repository import (
    SupabaseSessionRepository,
)
from gym_checkin.adapters.supabase_user_directory import SupabaseUserDirectory
from gym_checkin.config import Settings
from gym_checkin.services.broadcast import BroadcastDispatcher
from gym_checkin.services.broadcaster import PeriodicBroadcaster
from gym_checkin.services.connections import ConnectionRegistry
from gym_checkin.services.history import SessionHistoryService
from gym_checkin.services.tracker import SessionTracker


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    connection_registry: ConnectionRegistry
    dispatcher: BroadcastDispatcher
    session_tracker: SessionTracker
    history_service: SessionHistoryService
    periodic_broadcaster: PeriodicBroadcaster
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    session_repository = SupabaseSessionRepository(supabase_client)
    user_directory = SupabaseUserDirectory(supabase_client)
    connection_registry = ConnectionRegistry()
    dispatcher = BroadcastDispatcher(connection_registry)
    session_tracker = SessionTracker(
        session_repository=session_repository,
        user_directory=user_directory,
        dispatcher=dispatcher,
    )
    periodic_broadcaster = PeriodicBroadcaster(
        tracker=session_tracker,
        interval_seconds=resolved_settings.active_sessions_interval_seconds,
    )

    async def close_resources() -> None:
        await periodic_broadcaster.stop()

    return AppContainer(
        settings=resolved_settings,
        connection_registry=connection_registry,
        dispatcher=dispatcher,
        session_tracker=session_tracker,
        history_service=SessionHistoryService(session_repository),
        periodic_broadcaster=periodic_broadcaster,
        close_resources=close_resources,
    )
