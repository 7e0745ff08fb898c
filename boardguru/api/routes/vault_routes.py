"""
Vault API Routes.
"""

from fastapi import APIRouter, HTTPException, Depends, Query, status
from typing import Dict, Any, Optional
from boardguru.schemas.documents import (
    VaultCreateRequest,
    VaultUpdateRequest,
    VaultInviteRequest,
    VaultAssetRequest
)
from boardguru.schemas.organization import AcceptInvitationRequest
from boardguru.core.vault_service import VaultService
from boardguru.core.responses import ResponseHandler
from boardguru.core.exceptions import AppException
from boardguru.api.dependencies import get_current_user, get_vault_service, ResourceId
from boardguru.schemas.common import UUID_PATTERN
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/vaults", tags=["Vaults"])


@router.post("", response_model=Dict[str, Any], status_code=status.HTTP_201_CREATED)
async def create_vault(
    request: VaultCreateRequest,
    organization_id: str = Query(..., pattern=UUID_PATTERN),
    current_user: Dict = Depends(get_current_user),
    service: VaultService = Depends(get_vault_service)
):
    try:
        result = service.create_vault(organization_id, current_user["user_id"], request.model_dump(mode="json"))
        return ResponseHandler.success(data=result, status_code=201)

    except AppException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error(f"Unexpected error in create_vault: {str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("", response_model=Dict[str, Any])
async def list_vaults(
    organization_id: Optional[str] = Query(None, pattern=UUID_PATTERN),
    vault_status: Optional[str] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    current_user: Dict = Depends(get_current_user),
    service: VaultService = Depends(get_vault_service)
):
    """
    Vaults the caller is a member of, newest activity first.
    """
    try:
        result = service.list_user_vaults(
            current_user["user_id"], organization_id, vault_status, page, page_size
        )
        return ResponseHandler.list_response(
            data=result["items"], page=page, page_size=page_size, total_count=result["total"]
        )

    except AppException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error(f"Unexpected error in list_vaults: {str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/invitations/accept", response_model=Dict[str, Any])
async def accept_vault_invitation(
    request: AcceptInvitationRequest,
    current_user: Dict = Depends(get_current_user),
    service: VaultService = Depends(get_vault_service)
):
    try:
        return ResponseHandler.success(data=service.accept_invitation(request.token, current_user["user_id"]))

    except AppException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error(f"Unexpected error in accept_vault_invitation: {str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/{vault_id}", response_model=Dict[str, Any])
async def get_vault(
    vault_id: ResourceId,
    current_user: Dict = Depends(get_current_user),
    service: VaultService = Depends(get_vault_service)
):
    try:
        return ResponseHandler.success(data=service.get_vault(vault_id, current_user["user_id"]))

    except AppException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error(f"Unexpected error in get_vault: {str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.put("/{vault_id}", response_model=Dict[str, Any])
async def update_vault(
    vault_id: ResourceId,
    request: VaultUpdateRequest,
    current_user: Dict = Depends(get_current_user),
    service: VaultService = Depends(get_vault_service)
):
    try:
        result = service.update_vault(
            vault_id, current_user["user_id"], request.model_dump(mode="json", exclude_none=True)
        )
        return ResponseHandler.success(data=result)

    except AppException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error(f"Unexpected error in update_vault: {str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.delete("/{vault_id}", response_model=Dict[str, Any])
async def delete_vault(
    vault_id: ResourceId,
    current_user: Dict = Depends(get_current_user),
    service: VaultService = Depends(get_vault_service)
):
    try:
        service.delete_vault(vault_id, current_user["user_id"])
        return ResponseHandler.success(data={"vault_id": vault_id, "message": "Vault archived successfully"})

    except AppException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error(f"Unexpected error in delete_vault: {str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/{vault_id}/invitations", response_model=Dict[str, Any])
async def invite_to_vault(
    vault_id: ResourceId,
    request: VaultInviteRequest,
    current_user: Dict = Depends(get_current_user),
    service: VaultService = Depends(get_vault_service)
):
    """
    Add existing users by id and invite others by email.
    """
    try:
        result = service.invite(
            vault_id,
            current_user["user_id"],
            user_ids=request.user_ids,
            emails=[str(e) for e in request.emails],
            role=request.role,
            message=request.message
        )
        return ResponseHandler.success(data=result)

    except AppException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error(f"Unexpected error in invite_to_vault: {str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/{vault_id}/assets", response_model=Dict[str, Any], status_code=status.HTTP_201_CREATED)
async def add_vault_asset(
    vault_id: ResourceId,
    request: VaultAssetRequest,
    current_user: Dict = Depends(get_current_user),
    service: VaultService = Depends(get_vault_service)
):
    try:
        result = service.add_asset(vault_id, current_user["user_id"], request.asset_id)
        return ResponseHandler.success(data=result, status_code=201)

    except AppException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error(f"Unexpected error in add_vault_asset: {str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.delete("/{vault_id}/assets/{asset_id}", response_model=Dict[str, Any])
async def remove_vault_asset(
    vault_id: ResourceId,
    asset_id: ResourceId,
    current_user: Dict = Depends(get_current_user),
    service: VaultService = Depends(get_vault_service)
):
    try:
        service.remove_asset(vault_id, current_user["user_id"], asset_id)
        return ResponseHandler.success(data={"vault_id": vault_id, "asset_id": asset_id})

    except AppException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error(f"Unexpected error in remove_vault_asset: {str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")
