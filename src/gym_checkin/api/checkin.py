"""Check-in REST endpoints."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TC003

from fastapi import APIRouter, Header, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from gym_checkin.domain.errors import (
    ActiveSessionExistsError,
    AdminRequiredError,
    MemberUnavailableError,
    SessionAlreadyClosedError,
    SessionNotFoundError,
    SessionTrackingError,
)

if TYPE_CHECKING:
    from gym_checkin.containers import AppContainer

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/checkin", tags=["checkin"])

_ERROR_STATUS: dict[type[SessionTrackingError], int] = {
    MemberUnavailableError: status.HTTP_404_NOT_FOUND,
    SessionNotFoundError: status.HTTP_404_NOT_FOUND,
    ActiveSessionExistsError: status.HTTP_400_BAD_REQUEST,
    SessionAlreadyClosedError: status.HTTP_400_BAD_REQUEST,
    AdminRequiredError: status.HTTP_403_FORBIDDEN,
}


class CheckInRequest(BaseModel):
    """Body of a check-in request."""

    model_config = ConfigDict(populate_by_name=True)

    member_id: UUID = Field(alias="memberId")
    notes: str | None = None


class CheckOutRequest(BaseModel):
    """Body of a check-out request."""

    notes: str | None = None


class ForceCheckOutRequest(BaseModel):
    """Body of a forced check-out request."""

    reason: str | None = None


def _container(request: Request) -> AppContainer:
    return request.app.state.container


def _failure(exc: Exception, fallback: str) -> JSONResponse:
    if isinstance(exc, SessionTrackingError):
        code = _ERROR_STATUS.get(type(exc), status.HTTP_400_BAD_REQUEST)
        return JSONResponse(
            status_code=code, content={"success": False, "message": exc.message}
        )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"success": False, "message": fallback},
    )


@router.post("/checkin", response_model=None)
async def check_in(
    body: CheckInRequest,
    request: Request,
    x_user_id: UUID | None = Header(default=None),
) -> dict[str, object] | JSONResponse:
    """Check a member in."""
    try:
        session = await _container(request).session_tracker.check_in(
            body.member_id, operator_id=x_user_id, notes=body.notes
        )
    except SessionTrackingError as exc:
        return _failure(exc, "")
    except Exception as exc:
        logger.exception("Check-in error", extra={"member_id": str(body.member_id)})
        return _failure(exc, "Server error during check-in")
    return {
        "success": True,
        "message": "Check-in successful",
        "data": {"session": session.to_payload()},
    }


@router.post("/checkout/{session_id}", response_model=None)
async def check_out(
    session_id: UUID,
    request: Request,
    body: CheckOutRequest | None = None,
    x_user_id: UUID | None = Header(default=None),
) -> dict[str, object] | JSONResponse:
    """Check a session out."""
    notes = body.notes if body else None
    try:
        session = await _container(request).session_tracker.check_out(
            session_id, operator_id=x_user_id, notes=notes
        )
    except SessionTrackingError as exc:
        return _failure(exc, "")
    except Exception as exc:
        logger.exception("Check-out error", extra={"session_id": str(session_id)})
        return _failure(exc, "Server error during check-out")
    return {
        "success": True,
        "message": "Check-out successful",
        "data": {"session": session.to_payload()},
    }


@router.post("/force-checkout/{session_id}", response_model=None)
async def force_check_out(
    session_id: UUID,
    request: Request,
    body: ForceCheckOutRequest | None = None,
    x_user_id: UUID | None = Header(default=None),
) -> dict[str, object] | JSONResponse:
    """Close a session on behalf of an admin."""
    if x_user_id is None:
        return _failure(AdminRequiredError(), "")
    reason = body.reason if body else None
    try:
        session = await _container(request).session_tracker.force_check_out(
            session_id, operator_id=x_user_id, reason=reason
        )
    except SessionTrackingError as exc:
        return _failure(exc, "")
    except Exception as exc:
        logger.exception(
            "Force checkout error", extra={"session_id": str(session_id)}
        )
        return _failure(exc, "Server error during force checkout")
    return {
        "success": True,
        "message": "Force checkout successful",
        "data": {"session": session.to_payload()},
    }


@router.get("/active")
async def active_sessions(request: Request) -> dict[str, object]:
    """Return every open session."""
    sessions = await _container(request).session_tracker.list_active()
    return {
        "success": True,
        "data": {"sessions": [session.to_payload() for session in sessions]},
    }


@router.get("/member/{member_id}/current")
async def current_session(member_id: UUID, request: Request) -> dict[str, object]:
    """Return the member's open session, if any."""
    session = await _container(request).history_service.current_session(member_id)
    return {
        "success": True,
        "data": {"session": session.to_payload() if session else None},
    }


@router.get("/member/{member_id}/history")
async def session_history(
    member_id: UUID, request: Request, page: int = 1, limit: int = 10
) -> dict[str, object]:
    """Return a member's past sessions, paginated."""
    result = await _container(request).history_service.member_history(
        member_id, page=page, limit=limit
    )
    return {
        "success": True,
        "data": {
            "sessions": [session.to_payload() for session in result.sessions],
            "pagination": {
                "current": result.current,
                "pages": result.pages,
                "total": result.total,
            },
        },
    }


@router.get("/today")
async def today_sessions(request: Request) -> dict[str, object]:
    """Return sessions checked in today with simple totals."""
    sessions, stats = await _container(request).history_service.today()
    return {
        "success": True,
        "data": {
            "sessions": [session.to_payload() for session in sessions],
            "stats": {
                "total": stats.total,
                "active": stats.active,
                "completed": stats.completed,
                "totalDuration": stats.total_duration,
            },
        },
    }
