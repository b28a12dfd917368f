"""Room routing and fan-out of tracker events."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from uuid import UUID

from gym_checkin.domain.models import ADMIN_ROOM, TRAINER_ROOM, member_room
from gym_checkin.domain.sessions import GymSession
from gym_checkin.services.connections import ConnectionRegistry

logger = logging.getLogger(__name__)

SESSION_UPDATE = "session-update"
ACTIVE_SESSIONS_UPDATE = "active-sessions-update"
DURATION_UPDATE = "duration-update"
ERROR = "error"

CHECKIN = "checkin"
CHECKOUT = "checkout"

_STAFF_VERBS = {CHECKIN: "checked in", CHECKOUT: "checked out"}


def frame(event: str, data: object) -> dict[str, object]:
    """Build the wire frame for an outbound event."""
    return {"event": event, "data": data}


@dataclass
class BroadcastDispatcher:
    """Deliver events to rooms on a best-effort basis.

    Each connection receives an event at most once per dispatch. Rooms with
    no members and failed sends are skipped without retry.
    """

    registry: ConnectionRegistry

    async def emit(self, rooms: Iterable[str], event: str, data: object) -> int:
        """Send an event to every connection in the given rooms."""
        delivered = 0
        seen: set[str] = set()
        payload = frame(event, data)
        for room in dict.fromkeys(rooms):
            for connection_id in self.registry.members(room):
                if connection_id in seen:
                    continue
                seen.add(connection_id)
                if await self._deliver(connection_id, payload):
                    delivered += 1
        return delivered

    async def send(self, connection_id: str, event: str, data: object) -> bool:
        """Send an event to one connection, bound to a room or not."""
        return await self._deliver(connection_id, frame(event, data))

    async def send_error(self, connection_id: str, message: str) -> bool:
        return await self.send(connection_id, ERROR, {"message": message})

    async def session_update(self, kind: str, session: GymSession) -> None:
        """Announce a check-in or check-out to staff and to the member."""
        verb = _STAFF_VERBS[kind]
        name = session.member.display_name if session.member else "Member"
        serialized = session.to_payload()
        await self.emit(
            [ADMIN_ROOM, TRAINER_ROOM],
            SESSION_UPDATE,
            {"type": kind, "session": serialized, "message": f"{name} {verb}"},
        )
        await self.emit(
            [member_room(session.member_id)],
            SESSION_UPDATE,
            {
                "type": kind,
                "session": serialized,
                "message": f"You have successfully {verb}",
            },
        )

    async def active_sessions(self, sessions: list[GymSession]) -> None:
        """Send the full active-session snapshot to the admin room."""
        await self.emit(
            [ADMIN_ROOM],
            ACTIVE_SESSIONS_UPDATE,
            {
                "count": len(sessions),
                "sessions": [session.to_payload() for session in sessions],
            },
        )

    async def duration_update(
        self, session_id: UUID, member_id: UUID, duration: int
    ) -> None:
        await self.emit(
            [ADMIN_ROOM, member_room(member_id)],
            DURATION_UPDATE,
            {"sessionId": str(session_id), "duration": duration},
        )

    async def relay_session_update(self, data: dict[str, object]) -> None:
        """Forward a client-originated session update to staff and the member."""
        rooms = [ADMIN_ROOM, TRAINER_ROOM]
        member_id = data.get("memberId")
        if member_id:
            rooms.append(member_room(str(member_id)))
        await self.emit(rooms, SESSION_UPDATE, data)

    async def _deliver(self, connection_id: str, payload: dict[str, object]) -> bool:
        connection = self.registry.connection(connection_id)
        if connection is None:
            return False
        try:
            await connection.send_json(payload)
        except Exception:
            logger.warning(
                "Dropped realtime event",
                exc_info=True,
                extra={"connection_id": connection_id, "event": payload["event"]},
            )
            return False
        return True
