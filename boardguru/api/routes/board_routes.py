"""
Board API Routes.
"""

from fastapi import APIRouter, HTTPException, Depends, Query, status
from typing import Dict, Any, Optional
from boardguru.schemas.governance import BoardCreateRequest, BoardUpdateRequest, BoardMemberAddRequest
from boardguru.core.board_service import BoardService
from boardguru.core.responses import ResponseHandler
from boardguru.core.exceptions import AppException
from boardguru.api.dependencies import get_current_user, get_board_service, ResourceId
from boardguru.schemas.common import UUID_PATTERN
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/boards", tags=["Boards"])


@router.post("", response_model=Dict[str, Any], status_code=status.HTTP_201_CREATED)
async def create_board(
    request: BoardCreateRequest,
    organization_id: str = Query(..., pattern=UUID_PATTERN),
    current_user: Dict = Depends(get_current_user),
    service: BoardService = Depends(get_board_service)
):
    try:
        result = service.create_board(organization_id, current_user["user_id"], request.model_dump())
        return ResponseHandler.success(data=result, status_code=201)

    except AppException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error(f"Unexpected error in create_board: {str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("", response_model=Dict[str, Any])
async def list_boards(
    organization_id: str = Query(..., pattern=UUID_PATTERN),
    board_status: Optional[str] = Query(None, alias="status"),
    current_user: Dict = Depends(get_current_user),
    service: BoardService = Depends(get_board_service)
):
    try:
        return ResponseHandler.success(
            data=service.list_boards(organization_id, current_user["user_id"], board_status)
        )

    except AppException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error(f"Unexpected error in list_boards: {str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/{board_id}", response_model=Dict[str, Any])
async def get_board(
    board_id: ResourceId,
    current_user: Dict = Depends(get_current_user),
    service: BoardService = Depends(get_board_service)
):
    try:
        return ResponseHandler.success(data=service.get_board(board_id, current_user["user_id"]))

    except AppException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error(f"Unexpected error in get_board: {str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.put("/{board_id}", response_model=Dict[str, Any])
async def update_board(
    board_id: ResourceId,
    request: BoardUpdateRequest,
    current_user: Dict = Depends(get_current_user),
    service: BoardService = Depends(get_board_service)
):
    try:
        result = service.update_board(board_id, current_user["user_id"], request.model_dump(exclude_none=True))
        return ResponseHandler.success(data=result)

    except AppException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error(f"Unexpected error in update_board: {str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/{board_id}/members", response_model=Dict[str, Any], status_code=status.HTTP_201_CREATED)
async def add_board_member(
    board_id: ResourceId,
    request: BoardMemberAddRequest,
    current_user: Dict = Depends(get_current_user),
    service: BoardService = Depends(get_board_service)
):
    try:
        result = service.add_member(
            board_id, current_user["user_id"], request.model_dump(mode="json", exclude_none=True)
        )
        return ResponseHandler.success(data=result, status_code=201)

    except AppException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error(f"Unexpected error in add_board_member: {str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.delete("/{board_id}/members/{member_user_id}", response_model=Dict[str, Any])
async def remove_board_member(
    board_id: ResourceId,
    member_user_id: ResourceId,
    current_user: Dict = Depends(get_current_user),
    service: BoardService = Depends(get_board_service)
):
    try:
        return ResponseHandler.success(
            data=service.remove_member(board_id, current_user["user_id"], member_user_id)
        )

    except AppException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error(f"Unexpected error in remove_board_member: {str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/{board_id}/analytics", response_model=Dict[str, Any])
async def get_board_analytics(
    board_id: ResourceId,
    current_user: Dict = Depends(get_current_user),
    service: BoardService = Depends(get_board_service)
):
    """
    Meeting, resolution, attendance and voting statistics for the board.
    """
    try:
        return ResponseHandler.success(data=service.get_analytics(board_id, current_user["user_id"]))

    except AppException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error(f"Unexpected error in get_board_analytics: {str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")
