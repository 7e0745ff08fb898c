"""
Notification API Routes.
The caller's own in-app notifications.
"""

from fastapi import APIRouter, HTTPException, Depends, Query
from typing import Dict, Any
from boardguru.core.notification_service import NotificationService
from boardguru.core.responses import ResponseHandler
from boardguru.core.exceptions import AppException
from boardguru.api.dependencies import get_current_user, get_notification_service, ResourceId
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get("", response_model=Dict[str, Any])
async def list_notifications(
    unread_only: bool = Query(False),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    current_user: Dict = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service)
):
    """
    List notifications, newest first. The response also carries unread_count.
    """
    try:
        result = service.list_notifications(current_user["user_id"], unread_only, page, page_size)
        return ResponseHandler.list_response(
            data=result["items"],
            page=page,
            page_size=page_size,
            total_count=result["total"],
            extra={"unread_count": result["unread_count"]}
        )

    except AppException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error(f"Unexpected error in list_notifications: {str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/read-all", response_model=Dict[str, Any])
async def mark_all_read(
    current_user: Dict = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service)
):
    try:
        updated = service.mark_all_as_read(current_user["user_id"])
        return ResponseHandler.success(data={"updated_count": updated})

    except AppException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error(f"Unexpected error in mark_all_read: {str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/{notification_id}/read", response_model=Dict[str, Any])
async def mark_read(
    notification_id: ResourceId,
    current_user: Dict = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service)
):
    try:
        return ResponseHandler.success(data=service.mark_as_read(notification_id, current_user["user_id"]))

    except AppException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error(f"Unexpected error in mark_read: {str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.delete("/{notification_id}", response_model=Dict[str, Any])
async def delete_notification(
    notification_id: ResourceId,
    current_user: Dict = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service)
):
    try:
        service.delete_notification(notification_id, current_user["user_id"])
        return ResponseHandler.success(data={"notification_id": notification_id})

    except AppException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error(f"Unexpected error in delete_notification: {str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")
