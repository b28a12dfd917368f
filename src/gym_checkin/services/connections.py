"""Registry of open realtime connections and their rooms."""

import logging
from dataclasses import dataclass, field
from typing import Any, Protocol

from gym_checkin.domain.errors import UnknownRoleError
from gym_checkin.domain.models import Role, canonical_user_id, room_for

logger = logging.getLogger(__name__)


class Connection(Protocol):
    """Transport handle able to push a JSON frame to one client."""

    async def send_json(self, data: Any) -> None:
        """Send a JSON-serializable frame."""


@dataclass(frozen=True)
class ConnectionBinding:
    """Room membership of a single connection."""

    connection_id: str
    user_id: str
    role: Role
    room: str


@dataclass
class ConnectionRegistry:
    """In-process table of connections and the room each one belongs to.

    Mutated only from the event loop thread. Bindings do not survive a
    restart; clients rejoin their room after reconnecting.
    """

    _connections: dict[str, Connection] = field(default_factory=dict)
    _bindings: dict[str, ConnectionBinding] = field(default_factory=dict)

    def attach(self, connection_id: str, connection: Connection) -> None:
        """Track an accepted connection that has not joined a room yet."""
        self._connections[connection_id] = connection

    def register(self, connection_id: str, user_id: str, role: str | Role) -> str:
        """Bind a connection to the room derived from its role and return it."""
        resolved = role if isinstance(role, Role) else Role.parse(role)
        if resolved is None:
            raise UnknownRoleError(str(role))
        user_id = canonical_user_id(user_id)
        room = room_for(resolved, user_id)
        self._bindings[connection_id] = ConnectionBinding(
            connection_id=connection_id,
            user_id=user_id,
            role=resolved,
            room=room,
        )
        logger.info(
            "User %s joined room %s", user_id, room, extra={"role": resolved.value}
        )
        return room

    def unregister(self, connection_id: str) -> None:
        """Forget a connection; unknown ids are ignored."""
        self._connections.pop(connection_id, None)
        self._bindings.pop(connection_id, None)

    def binding(self, connection_id: str) -> ConnectionBinding | None:
        return self._bindings.get(connection_id)

    def connection(self, connection_id: str) -> Connection | None:
        return self._connections.get(connection_id)

    def members(self, room: str) -> list[str]:
        """Return ids of connections currently bound to a room."""
        return [
            connection_id
            for connection_id, binding in self._bindings.items()
            if binding.room == room and connection_id in self._connections
        ]

    def __len__(self) -> int:
        return len(self._connections)
