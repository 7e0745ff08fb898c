"""
Asset API Routes.
Document upload, listing, signed downloads and sharing.
"""

from fastapi import APIRouter, Depends, HTTPException, Query, status, UploadFile, File, Form
from typing import Dict, Any, Optional
from boardguru.schemas.documents import AssetUpdateRequest, AssetShareRequest
from boardguru.core.asset_service import AssetService
from boardguru.core.responses import ResponseHandler
from boardguru.core.exceptions import AppException
from boardguru.api.dependencies import get_current_user, get_asset_service, ResourceId
from boardguru.schemas.common import UUID_PATTERN
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/assets", tags=["Assets"])


@router.post("", response_model=Dict[str, Any], status_code=status.HTTP_201_CREATED)
async def upload_asset(
    file: UploadFile = File(...),
    organization_id: str = Form(..., pattern=UUID_PATTERN),
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    category: Optional[str] = Form(None),
    tags: Optional[str] = Form(None, description="Comma-separated tags"),
    vault_id: Optional[str] = Form(None, pattern=UUID_PATTERN),
    current_user: Dict = Depends(get_current_user),
    service: AssetService = Depends(get_asset_service)
):
    """
    Upload a document (multipart form). Optionally attach it to a vault.
    """
    try:
        file_content = await file.read()

        result = service.upload_asset(
            organization_id=organization_id,
            user_id=current_user["user_id"],
            file_name=file.filename or "",
            content=file_content,
            content_type=file.content_type or "application/octet-stream",
            title=title,
            description=description,
            category=category,
            tags=[t.strip() for t in tags.split(",") if t.strip()] if tags else [],
            vault_id=vault_id
        )
        return ResponseHandler.success(data=result, status_code=201)

    except AppException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error(f"Unexpected error in upload_asset: {str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("", response_model=Dict[str, Any])
async def list_assets(
    organization_id: str = Query(..., pattern=UUID_PATTERN),
    vault_id: Optional[str] = Query(None, pattern=UUID_PATTERN),
    owner_id: Optional[str] = Query(None, pattern=UUID_PATTERN),
    category: Optional[str] = Query(None),
    asset_status: str = Query("ready", alias="status"),
    search: Optional[str] = Query(None),
    sort_by: str = Query("created_at"),
    sort_order: str = Query("desc", pattern="^(asc|desc)$"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    current_user: Dict = Depends(get_current_user),
    service: AssetService = Depends(get_asset_service)
):
    try:
        result = service.list_assets(
            organization_id,
            current_user["user_id"],
            vault_id=vault_id,
            owner_id=owner_id,
            category=category,
            status=asset_status,
            search=search,
            sort_by=sort_by,
            sort_desc=sort_order == "desc",
            page=page,
            page_size=page_size
        )
        return ResponseHandler.list_response(
            data=result["items"], page=page, page_size=page_size, total_count=result["total"]
        )

    except AppException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error(f"Unexpected error in list_assets: {str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/{asset_id}", response_model=Dict[str, Any])
async def get_asset(
    asset_id: ResourceId,
    current_user: Dict = Depends(get_current_user),
    service: AssetService = Depends(get_asset_service)
):
    try:
        return ResponseHandler.success(data=service.get_asset(asset_id, current_user["user_id"]))

    except AppException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error(f"Unexpected error in get_asset: {str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/{asset_id}/download", response_model=Dict[str, Any])
async def get_download_url(
    asset_id: ResourceId,
    current_user: Dict = Depends(get_current_user),
    service: AssetService = Depends(get_asset_service)
):
    """
    Get a time-limited signed URL for downloading the file.
    """
    try:
        return ResponseHandler.success(data=service.get_download_url(asset_id, current_user["user_id"]))

    except AppException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error(f"Unexpected error in get_download_url: {str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.put("/{asset_id}", response_model=Dict[str, Any])
async def update_asset(
    asset_id: ResourceId,
    request: AssetUpdateRequest,
    current_user: Dict = Depends(get_current_user),
    service: AssetService = Depends(get_asset_service)
):
    try:
        result = service.update_asset(asset_id, current_user["user_id"], request.model_dump(exclude_none=True))
        return ResponseHandler.success(data=result)

    except AppException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error(f"Unexpected error in update_asset: {str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.delete("/{asset_id}", response_model=Dict[str, Any])
async def delete_asset(
    asset_id: ResourceId,
    current_user: Dict = Depends(get_current_user),
    service: AssetService = Depends(get_asset_service)
):
    try:
        service.delete_asset(asset_id, current_user["user_id"])
        return ResponseHandler.success(data={"asset_id": asset_id, "message": "Asset deleted successfully"})

    except AppException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error(f"Unexpected error in delete_asset: {str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/{asset_id}/restore", response_model=Dict[str, Any])
async def restore_asset(
    asset_id: ResourceId,
    current_user: Dict = Depends(get_current_user),
    service: AssetService = Depends(get_asset_service)
):
    try:
        return ResponseHandler.success(data=service.restore_asset(asset_id, current_user["user_id"]))

    except AppException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error(f"Unexpected error in restore_asset: {str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/{asset_id}/shares", response_model=Dict[str, Any])
async def list_shares(
    asset_id: ResourceId,
    current_user: Dict = Depends(get_current_user),
    service: AssetService = Depends(get_asset_service)
):
    try:
        return ResponseHandler.success(data=service.list_shares(asset_id, current_user["user_id"]))

    except AppException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error(f"Unexpected error in list_shares: {str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/{asset_id}/shares", response_model=Dict[str, Any])
async def share_asset(
    asset_id: ResourceId,
    request: AssetShareRequest,
    current_user: Dict = Depends(get_current_user),
    service: AssetService = Depends(get_asset_service)
):
    try:
        result = service.share_asset(asset_id, current_user["user_id"], request.user_ids, request.permission)
        return ResponseHandler.success(data=result)

    except AppException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error(f"Unexpected error in share_asset: {str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.delete("/{asset_id}/shares/{target_user_id}", response_model=Dict[str, Any])
async def unshare_asset(
    asset_id: ResourceId,
    target_user_id: ResourceId,
    current_user: Dict = Depends(get_current_user),
    service: AssetService = Depends(get_asset_service)
):
    try:
        service.unshare_asset(asset_id, current_user["user_id"], target_user_id)
        return ResponseHandler.success(data={"asset_id": asset_id, "user_id": target_user_id})

    except AppException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error(f"Unexpected error in unshare_asset: {str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")
