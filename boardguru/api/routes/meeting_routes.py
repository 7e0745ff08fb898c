"""
Meeting API Routes.
Meetings, agenda, attendance, resolutions and votes.
"""

from fastapi import APIRouter, HTTPException, Depends, Query, status
from typing import Dict, Any, Optional
from boardguru.schemas.governance import (
    MeetingCreateRequest,
    MeetingStatusRequest,
    AgendaItemRequest,
    AttendanceRequest,
    ResolutionCreateRequest,
    VoteRequest
)
from boardguru.core.meeting_service import MeetingService
from boardguru.core.responses import ResponseHandler
from boardguru.core.exceptions import AppException
from boardguru.api.dependencies import get_current_user, get_meeting_service, ResourceId
from boardguru.schemas.common import UUID_PATTERN
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/meetings", tags=["Meetings"])


@router.post("", response_model=Dict[str, Any], status_code=status.HTTP_201_CREATED)
async def schedule_meeting(
    request: MeetingCreateRequest,
    organization_id: str = Query(..., pattern=UUID_PATTERN),
    current_user: Dict = Depends(get_current_user),
    service: MeetingService = Depends(get_meeting_service)
):
    """
    Schedule a meeting with its agenda and notify the invitees.
    """
    try:
        result = service.schedule_meeting(
            organization_id, current_user["user_id"], request.model_dump(mode="json")
        )
        return ResponseHandler.success(data=result, status_code=201)

    except AppException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error(f"Unexpected error in schedule_meeting: {str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("", response_model=Dict[str, Any])
async def list_meetings(
    organization_id: str = Query(..., pattern=UUID_PATTERN),
    board_id: Optional[str] = Query(None, pattern=UUID_PATTERN),
    meeting_status: Optional[str] = Query(None, alias="status"),
    upcoming: bool = Query(False),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    current_user: Dict = Depends(get_current_user),
    service: MeetingService = Depends(get_meeting_service)
):
    try:
        result = service.list_meetings(
            organization_id, current_user["user_id"], board_id, meeting_status, upcoming, page, page_size
        )
        return ResponseHandler.list_response(
            data=result["items"], page=page, page_size=page_size, total_count=result["total"]
        )

    except AppException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error(f"Unexpected error in list_meetings: {str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/{meeting_id}", response_model=Dict[str, Any])
async def get_meeting(
    meeting_id: ResourceId,
    current_user: Dict = Depends(get_current_user),
    service: MeetingService = Depends(get_meeting_service)
):
    try:
        return ResponseHandler.success(data=service.get_meeting(meeting_id, current_user["user_id"]))

    except AppException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error(f"Unexpected error in get_meeting: {str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/{meeting_id}/status", response_model=Dict[str, Any])
async def update_meeting_status(
    meeting_id: ResourceId,
    request: MeetingStatusRequest,
    current_user: Dict = Depends(get_current_user),
    service: MeetingService = Depends(get_meeting_service)
):
    try:
        result = service.update_status(meeting_id, current_user["user_id"], request.status, request.minutes)
        return ResponseHandler.success(data=result)

    except AppException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error(f"Unexpected error in update_meeting_status: {str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/{meeting_id}/agenda", response_model=Dict[str, Any], status_code=status.HTTP_201_CREATED)
async def add_agenda_item(
    meeting_id: ResourceId,
    request: AgendaItemRequest,
    current_user: Dict = Depends(get_current_user),
    service: MeetingService = Depends(get_meeting_service)
):
    try:
        result = service.add_agenda_item(meeting_id, current_user["user_id"], request.model_dump())
        return ResponseHandler.success(data=result, status_code=201)

    except AppException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error(f"Unexpected error in add_agenda_item: {str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.put("/{meeting_id}/attendance", response_model=Dict[str, Any])
async def record_attendance(
    meeting_id: ResourceId,
    request: AttendanceRequest,
    current_user: Dict = Depends(get_current_user),
    service: MeetingService = Depends(get_meeting_service)
):
    try:
        result = service.record_attendance(
            meeting_id, current_user["user_id"], request.user_id, request.status, request.proxy_holder_id
        )
        return ResponseHandler.success(data=result)

    except AppException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error(f"Unexpected error in record_attendance: {str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/{meeting_id}/resolutions", response_model=Dict[str, Any], status_code=status.HTTP_201_CREATED)
async def propose_resolution(
    meeting_id: ResourceId,
    request: ResolutionCreateRequest,
    current_user: Dict = Depends(get_current_user),
    service: MeetingService = Depends(get_meeting_service)
):
    try:
        result = service.propose_resolution(meeting_id, current_user["user_id"], request.model_dump())
        return ResponseHandler.success(data=result, status_code=201)

    except AppException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error(f"Unexpected error in propose_resolution: {str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/resolutions/{resolution_id}/votes", response_model=Dict[str, Any], status_code=status.HTTP_201_CREATED)
async def cast_vote(
    resolution_id: ResourceId,
    request: VoteRequest,
    current_user: Dict = Depends(get_current_user),
    service: MeetingService = Depends(get_meeting_service)
):
    """
    Cast a vote. The resolution is decided once every eligible board member has voted.
    """
    try:
        result = service.cast_vote(resolution_id, current_user["user_id"], request.vote, request.notes)
        return ResponseHandler.success(data=result, status_code=201)

    except AppException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error(f"Unexpected error in cast_vote: {str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/resolutions/{resolution_id}/withdraw", response_model=Dict[str, Any])
async def withdraw_resolution(
    resolution_id: ResourceId,
    current_user: Dict = Depends(get_current_user),
    service: MeetingService = Depends(get_meeting_service)
):
    try:
        return ResponseHandler.success(
            data=service.withdraw_resolution(resolution_id, current_user["user_id"])
        )

    except AppException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error(f"Unexpected error in withdraw_resolution: {str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")
