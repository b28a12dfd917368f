"""Pydantic models for inbound realtime frames."""

from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class InboundFrame(BaseModel):
    """Envelope of every client frame."""

    event: str
    data: Any = None


class JoinRoomPayload(BaseModel):
    """Payload of a join-room event."""

    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    user_id: str = Field(alias="userId", min_length=1)
    role: str


class CheckInPayload(BaseModel):
    """Payload of a checkin event."""

    model_config = ConfigDict(populate_by_name=True)

    member_id: UUID = Field(alias="memberId")
    notes: str | None = None
    checked_in_by: UUID | None = Field(default=None, alias="checkedInBy")


class CheckOutPayload(BaseModel):
    """Payload of a checkout event."""

    model_config = ConfigDict(populate_by_name=True)

    session_id: UUID = Field(alias="sessionId")
    notes: str | None = None
    checked_out_by: UUID | None = Field(default=None, alias="checkedOutBy")
