"""
Annotation API Routes.
"""

from fastapi import APIRouter, HTTPException, Depends, Query, status
from typing import Dict, Any, Optional
from boardguru.schemas.documents import (
    AnnotationCreateRequest,
    AnnotationUpdateRequest,
    AnnotationResolveRequest,
    ReplyCreateRequest
)
from boardguru.core.annotation_service import AnnotationService
from boardguru.core.responses import ResponseHandler
from boardguru.core.exceptions import AppException
from boardguru.api.dependencies import get_current_user, get_annotation_service, ResourceId
import logging

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Annotations"])


@router.post("/assets/{asset_id}/annotations", response_model=Dict[str, Any], status_code=status.HTTP_201_CREATED)
async def create_annotation(
    asset_id: ResourceId,
    request: AnnotationCreateRequest,
    current_user: Dict = Depends(get_current_user),
    service: AnnotationService = Depends(get_annotation_service)
):
    try:
        result = service.create_annotation(asset_id, current_user["user_id"], request.model_dump())
        return ResponseHandler.success(data=result, status_code=201)

    except AppException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error(f"Unexpected error in create_annotation: {str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/assets/{asset_id}/annotations", response_model=Dict[str, Any])
async def list_annotations(
    asset_id: ResourceId,
    page_number: Optional[int] = Query(None, ge=1),
    current_user: Dict = Depends(get_current_user),
    service: AnnotationService = Depends(get_annotation_service)
):
    """
    Annotations for the document, optionally for one page, with replies.
    """
    try:
        return ResponseHandler.success(
            data=service.list_annotations(asset_id, current_user["user_id"], page_number)
        )

    except AppException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error(f"Unexpected error in list_annotations: {str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.put("/annotations/{annotation_id}", response_model=Dict[str, Any])
async def update_annotation(
    annotation_id: ResourceId,
    request: AnnotationUpdateRequest,
    current_user: Dict = Depends(get_current_user),
    service: AnnotationService = Depends(get_annotation_service)
):
    try:
        result = service.update_annotation(
            annotation_id, current_user["user_id"], request.model_dump(exclude_none=True)
        )
        return ResponseHandler.success(data=result)

    except AppException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error(f"Unexpected error in update_annotation: {str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/annotations/{annotation_id}/resolve", response_model=Dict[str, Any])
async def resolve_annotation(
    annotation_id: ResourceId,
    request: AnnotationResolveRequest,
    current_user: Dict = Depends(get_current_user),
    service: AnnotationService = Depends(get_annotation_service)
):
    try:
        result = service.set_resolved(annotation_id, current_user["user_id"], request.resolved)
        return ResponseHandler.success(data=result)

    except AppException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error(f"Unexpected error in resolve_annotation: {str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.delete("/annotations/{annotation_id}", response_model=Dict[str, Any])
async def delete_annotation(
    annotation_id: ResourceId,
    current_user: Dict = Depends(get_current_user),
    service: AnnotationService = Depends(get_annotation_service)
):
    try:
        service.delete_annotation(annotation_id, current_user["user_id"])
        return ResponseHandler.success(data={"annotation_id": annotation_id, "message": "Annotation deleted"})

    except AppException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error(f"Unexpected error in delete_annotation: {str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/annotations/{annotation_id}/replies", response_model=Dict[str, Any], status_code=status.HTTP_201_CREATED)
async def add_reply(
    annotation_id: ResourceId,
    request: ReplyCreateRequest,
    current_user: Dict = Depends(get_current_user),
    service: AnnotationService = Depends(get_annotation_service)
):
    try:
        result = service.add_reply(annotation_id, current_user["user_id"], request.reply_text)
        return ResponseHandler.success(data=result, status_code=201)

    except AppException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error(f"Unexpected error in add_reply: {str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")
