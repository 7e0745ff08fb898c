"""
Pydantic schemas for boards, meetings and resolutions.
"""

from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List
from datetime import date, datetime

from boardguru.schemas.common import UuidStr


class BoardCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    board_type: str = Field("governance", pattern="^(executive|advisory|committee|governance)$")
    meeting_frequency: str = Field("quarterly", pattern="^(weekly|monthly|quarterly|annually|as_needed)$")


class BoardUpdateRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    board_type: Optional[str] = Field(None, pattern="^(executive|advisory|committee|governance)$")
    status: Optional[str] = Field(None, pattern="^(active|inactive|dissolved)$")
    meeting_frequency: Optional[str] = Field(None, pattern="^(weekly|monthly|quarterly|annually|as_needed)$")


class BoardMemberAddRequest(BaseModel):
    user_id: UuidStr
    role: str = Field("member", pattern="^(chair|vice_chair|secretary|treasurer|member|advisor)$")
    voting_rights: Optional[bool] = None
    term_start: Optional[date] = None
    term_end: Optional[date] = None


class AgendaItemRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    item_type: str = Field("discussion", pattern="^(discussion|decision|information|presentation)$")
    duration_minutes: Optional[int] = Field(None, ge=1)
    presenter_id: Optional[UuidStr] = None


class MeetingCreateRequest(BaseModel):
    """Request schema for scheduling a meeting."""

    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    board_id: Optional[UuidStr] = None
    meeting_type: str = Field("regular", pattern="^(regular|special|emergency|annual)$")
    scheduled_start: datetime
    scheduled_end: Optional[datetime] = None
    location: Optional[str] = None
    virtual_meeting_url: Optional[str] = None
    agenda_items: List[AgendaItemRequest] = Field(default_factory=list)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Q3 Board Meeting",
                "board_id": "550e8400-e29b-41d4-a716-446655440000",
                "meeting_type": "regular",
                "scheduled_start": "2026-11-05T14:00:00Z",
                "scheduled_end": "2026-11-05T16:00:00Z",
                "agenda_items": [{"title": "Approve minutes", "item_type": "decision"}]
            }
        }
    )


class MeetingStatusRequest(BaseModel):
    status: str = Field(..., pattern="^(scheduled|in_progress|completed|cancelled|postponed)$")
    minutes: Optional[str] = None


class AttendanceRequest(BaseModel):
    user_id: UuidStr
    status: str = Field(..., pattern="^(present|absent|excused|proxy)$")
    proxy_holder_id: Optional[UuidStr] = None


class ResolutionCreateRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    resolution_text: str = Field(..., min_length=1)
    resolution_type: str = Field("ordinary", pattern="^(ordinary|special|unanimous)$")
    seconded_by: Optional[str] = None


class VoteRequest(BaseModel):
    vote: str = Field(..., pattern="^(for|against|abstain)$")
    notes: Optional[str] = Field(None, max_length=1000)
