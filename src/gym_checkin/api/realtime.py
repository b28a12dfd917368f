"""Websocket endpoint translating client events into tracker commands."""

import json
import logging
from collections.abc import Awaitable, Callable
from uuid import UUID, uuid4

from fastapi import WebSocket
from pydantic import ValidationError

from gym_checkin.api.realtime_models import (
    CheckInPayload,
    CheckOutPayload,
    InboundFrame,
    JoinRoomPayload,
)
from gym_checkin.containers import AppContainer
from gym_checkin.domain.errors import SessionTrackingError

logger = logging.getLogger(__name__)

INVALID_PAYLOAD = "Invalid payload"
CHECKIN_FAILED = "Check-in failed"
CHECKOUT_FAILED = "Check-out failed"

Handler = Callable[[AppContainer, str, object], Awaitable[None]]


async def serve_connection(websocket: WebSocket, container: AppContainer) -> None:
    """Run the receive loop for one client until it disconnects.

    Commands from one connection are handled in order; other connections
    interleave at store access points.
    """
    connection_id = uuid4().hex
    registry = container.connection_registry
    await websocket.accept()
    registry.attach(connection_id, websocket)
    logger.info("User connected: %s", connection_id)
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
            raw = message.get("text")
            if raw is None:
                raw = message.get("bytes") or b""
            await handle_message(container, connection_id, raw)
    finally:
        registry.unregister(connection_id)
        logger.info("User disconnected: %s", connection_id)


async def handle_message(
    container: AppContainer, connection_id: str, raw: str | bytes
) -> None:
    """Decode one text or binary frame and route it to its handler."""
    try:
        frame = InboundFrame.model_validate(json.loads(raw))
    except (ValueError, ValidationError):
        await container.dispatcher.send_error(connection_id, INVALID_PAYLOAD)
        return
    handler = _HANDLERS.get(frame.event)
    if handler is None:
        logger.warning(
            "Ignoring unknown realtime event",
            extra={"connection_id": connection_id, "event": frame.event},
        )
        return
    await handler(container, connection_id, frame.data)


async def _join_room(container: AppContainer, connection_id: str, data: object) -> None:
    try:
        payload = JoinRoomPayload.model_validate(data)
    except ValidationError:
        await container.dispatcher.send_error(connection_id, INVALID_PAYLOAD)
        return
    try:
        container.connection_registry.register(
            connection_id, payload.user_id, payload.role
        )
    except SessionTrackingError as exc:
        await container.dispatcher.send_error(connection_id, exc.message)


async def _checkin(container: AppContainer, connection_id: str, data: object) -> None:
    try:
        payload = CheckInPayload.model_validate(data)
    except ValidationError:
        await container.dispatcher.send_error(connection_id, INVALID_PAYLOAD)
        return
    try:
        await container.session_tracker.check_in(
            payload.member_id,
            operator_id=payload.checked_in_by,
            notes=payload.notes,
        )
    except SessionTrackingError as exc:
        await container.dispatcher.send_error(connection_id, exc.message)
    except Exception:
        logger.exception(
            "Check-in error", extra={"member_id": str(payload.member_id)}
        )
        await container.dispatcher.send_error(connection_id, CHECKIN_FAILED)


async def _checkout(container: AppContainer, connection_id: str, data: object) -> None:
    try:
        payload = CheckOutPayload.model_validate(data)
    except ValidationError:
        await container.dispatcher.send_error(connection_id, INVALID_PAYLOAD)
        return
    try:
        await container.session_tracker.check_out(
            payload.session_id,
            operator_id=payload.checked_out_by,
            notes=payload.notes,
        )
    except SessionTrackingError as exc:
        await container.dispatcher.send_error(connection_id, exc.message)
    except Exception:
        logger.exception(
            "Check-out error", extra={"session_id": str(payload.session_id)}
        )
        await container.dispatcher.send_error(connection_id, CHECKOUT_FAILED)


async def _update_duration(
    container: AppContainer, connection_id: str, data: object
) -> None:
    session_id = _parse_session_id(data)
    if session_id is None:
        return
    try:
        await container.session_tracker.update_duration(session_id)
    except Exception:
        logger.exception(
            "Duration update error", extra={"session_id": str(session_id)}
        )


async def _relay_session_update(
    container: AppContainer, connection_id: str, data: object
) -> None:
    if not isinstance(data, dict):
        await container.dispatcher.send_error(connection_id, INVALID_PAYLOAD)
        return
    await container.dispatcher.relay_session_update(data)


def _parse_session_id(data: object) -> UUID | None:
    """Accept a bare session id, or an object carrying sessionId."""
    raw = data.get("sessionId") if isinstance(data, dict) else data
    try:
        return UUID(str(raw))
    except ValueError:
        return None


_HANDLERS: dict[str, Handler] = {
    "join-room": _join_room,
    "checkin": _checkin,
    "checkout": _checkout,
    "update-duration": _update_duration,
    "session-update": _relay_session_update,
}
