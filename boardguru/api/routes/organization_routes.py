"""
Organization API Routes.
Organizations, members, invitations and bulk actions.
"""

from fastapi import APIRouter, HTTPException, Depends, Query, Response, status
from typing import Dict, Any, Optional
from boardguru.schemas.organization import (
    OrganizationCreateRequest,
    OrganizationUpdateRequest,
    InviteMemberRequest,
    BulkInviteRequest,
    AcceptInvitationRequest,
    MemberUpdateRequest,
    BulkActionRequest
)
from boardguru.core.organization_service import OrganizationService
from boardguru.core.responses import ResponseHandler
from boardguru.core.exceptions import AppException
from boardguru.api.dependencies import get_current_user, get_organization_service, ResourceId
from boardguru.schemas.common import UUID_PATTERN
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/organizations", tags=["Organizations"])


@router.post("", response_model=Dict[str, Any], status_code=status.HTTP_201_CREATED)
async def create_organization(
    request: OrganizationCreateRequest,
    current_user: Dict = Depends(get_current_user),
    service: OrganizationService = Depends(get_organization_service)
):
    """
    Create an organization. The caller becomes its owner.
    """
    try:
        result = service.create_organization(current_user["user_id"], request.model_dump())
        return ResponseHandler.success(data=result, status_code=201)

    except AppException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error(f"Unexpected error in create_organization: {str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("", response_model=Dict[str, Any])
async def list_organizations(
    role: Optional[str] = Query(None),
    org_status: Optional[str] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    current_user: Dict = Depends(get_current_user),
    service: OrganizationService = Depends(get_organization_service)
):
    try:
        result = service.list_organizations(current_user["user_id"], role, org_status, page, page_size)
        return ResponseHandler.list_response(
            data=result["items"], page=page, page_size=page_size, total_count=result["total"]
        )

    except AppException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error(f"Unexpected error in list_organizations: {str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/check-slug", response_model=Dict[str, Any])
async def check_slug(
    slug: str = Query(..., min_length=1),
    exclude_id: Optional[str] = Query(None, pattern=UUID_PATTERN),
    current_user: Dict = Depends(get_current_user),
    service: OrganizationService = Depends(get_organization_service)
):
    try:
        return ResponseHandler.success(data=service.check_slug_availability(slug.lower(), exclude_id))

    except AppException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error(f"Unexpected error in check_slug: {str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/bulk-actions")
async def bulk_action(
    request: BulkActionRequest,
    current_user: Dict = Depends(get_current_user),
    service: OrganizationService = Depends(get_organization_service)
):
    """
    Export, archive, share or delete several organizations.
    Export responds with a CSV attachment instead of JSON.
    """
    try:
        result = service.bulk_action(
            current_user["user_id"],
            request.action,
            request.organization_ids,
            emails=[str(e) for e in request.emails],
            permission=request.permission
        )
        if request.action == "export":
            return Response(
                content=result["content"],
                media_type=result["content_type"],
                headers={"Content-Disposition": f'attachment; filename="{result["filename"]}"'}
            )
        return ResponseHandler.success(data=result)

    except AppException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error(f"Unexpected error in bulk_action: {str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/invitations/accept", response_model=Dict[str, Any])
async def accept_invitation(
    request: AcceptInvitationRequest,
    current_user: Dict = Depends(get_current_user),
    service: OrganizationService = Depends(get_organization_service)
):
    try:
        return ResponseHandler.success(data=service.accept_invitation(request.token, current_user["user_id"]))

    except AppException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error(f"Unexpected error in accept_invitation: {str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/{organization_id}", response_model=Dict[str, Any])
async def get_organization(
    organization_id: ResourceId,
    current_user: Dict = Depends(get_current_user),
    service: OrganizationService = Depends(get_organization_service)
):
    try:
        return ResponseHandler.success(data=service.get_organization(organization_id, current_user["user_id"]))

    except AppException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error(f"Unexpected error in get_organization: {str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.put("/{organization_id}", response_model=Dict[str, Any])
async def update_organization(
    organization_id: ResourceId,
    request: OrganizationUpdateRequest,
    current_user: Dict = Depends(get_current_user),
    service: OrganizationService = Depends(get_organization_service)
):
    try:
        result = service.update_organization(
            organization_id, current_user["user_id"], request.model_dump(exclude_none=True)
        )
        return ResponseHandler.success(data=result)

    except AppException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error(f"Unexpected error in update_organization: {str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.delete("/{organization_id}", response_model=Dict[str, Any])
async def delete_organization(
    organization_id: ResourceId,
    current_user: Dict = Depends(get_current_user),
    service: OrganizationService = Depends(get_organization_service)
):
    try:
        service.delete_organization(organization_id, current_user["user_id"])
        return ResponseHandler.success(data={
            "organization_id": organization_id,
            "message": "Organization deleted successfully"
        })

    except AppException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error(f"Unexpected error in delete_organization: {str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/{organization_id}/activity", response_model=Dict[str, Any])
async def get_activity(
    organization_id: ResourceId,
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=200),
    current_user: Dict = Depends(get_current_user),
    service: OrganizationService = Depends(get_organization_service)
):
    try:
        result = service.get_activity(organization_id, current_user["user_id"], page, page_size)
        return ResponseHandler.list_response(
            data=result["items"], page=page, page_size=page_size, total_count=result["total"]
        )

    except AppException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error(f"Unexpected error in get_activity: {str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")


# Members

@router.get("/{organization_id}/members", response_model=Dict[str, Any])
async def list_members(
    organization_id: ResourceId,
    role: Optional[str] = Query(None),
    member_status: Optional[str] = Query(None, alias="status"),
    current_user: Dict = Depends(get_current_user),
    service: OrganizationService = Depends(get_organization_service)
):
    try:
        members = service.list_members(organization_id, current_user["user_id"], role, member_status)
        return ResponseHandler.success(data=members)

    except AppException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error(f"Unexpected error in list_members: {str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.put("/{organization_id}/members/{member_user_id}", response_model=Dict[str, Any])
async def update_member(
    organization_id: ResourceId,
    member_user_id: ResourceId,
    request: MemberUpdateRequest,
    current_user: Dict = Depends(get_current_user),
    service: OrganizationService = Depends(get_organization_service)
):
    try:
        result = service.update_member(
            organization_id, current_user["user_id"], member_user_id, request.role, request.status
        )
        return ResponseHandler.success(data=result)

    except AppException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error(f"Unexpected error in update_member: {str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.delete("/{organization_id}/members/{member_user_id}", response_model=Dict[str, Any])
async def remove_member(
    organization_id: ResourceId,
    member_user_id: ResourceId,
    current_user: Dict = Depends(get_current_user),
    service: OrganizationService = Depends(get_organization_service)
):
    try:
        service.remove_member(organization_id, current_user["user_id"], member_user_id)
        return ResponseHandler.success(data={
            "organization_id": organization_id,
            "user_id": member_user_id,
            "message": "Member removed successfully"
        })

    except AppException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error(f"Unexpected error in remove_member: {str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/{organization_id}/invitations", response_model=Dict[str, Any], status_code=status.HTTP_201_CREATED)
async def invite_member(
    organization_id: ResourceId,
    request: InviteMemberRequest,
    current_user: Dict = Depends(get_current_user),
    service: OrganizationService = Depends(get_organization_service)
):
    try:
        result = service.invite_member(
            organization_id, current_user["user_id"], str(request.email), request.role, request.message
        )
        return ResponseHandler.success(data=result, status_code=201)

    except AppException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error(f"Unexpected error in invite_member: {str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/{organization_id}/invitations/bulk", response_model=Dict[str, Any])
async def bulk_invite(
    organization_id: ResourceId,
    request: BulkInviteRequest,
    current_user: Dict = Depends(get_current_user),
    service: OrganizationService = Depends(get_organization_service)
):
    try:
        result = service.bulk_invite(
            organization_id,
            current_user["user_id"],
            [item.model_dump(mode="json") for item in request.invitations]
        )
        return ResponseHandler.success(data=result)

    except AppException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error(f"Unexpected error in bulk_invite: {str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")
