"""
Registration API Routes.
Public access requests and their review, either by a platform
administrator or through the signed links in the review email.
"""

from fastapi import APIRouter, HTTPException, Depends, Query, status
from fastapi.responses import HTMLResponse
from html import escape
from typing import Dict, Any, Optional
from boardguru.schemas.auth import RegistrationCreateRequest, RegistrationRejectRequest
from boardguru.core.registration_service import RegistrationService
from boardguru.core.responses import ResponseHandler
from boardguru.core.exceptions import AppException
from boardguru.api.dependencies import get_registration_service, require_platform_admin, ResourceId
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/registrations", tags=["Registration"])

EMAIL_LINK_REVIEWER = "email-link"


def _review_page(title: str, message: str, status_code: int = 200) -> HTMLResponse:
    return HTMLResponse(
        content=(
            f"<html><head><title>{escape(title)}</title></head>"
            f"<body style=\"font-family: Arial, sans-serif; max-width: 560px; margin: 40px auto;\">"
            f"<h2>{escape(title)}</h2><p>{escape(message)}</p></body></html>"
        ),
        status_code=status_code
    )


@router.post("", response_model=Dict[str, Any], status_code=status.HTTP_201_CREATED)
async def submit_registration(
    request: RegistrationCreateRequest,
    service: RegistrationService = Depends(get_registration_service)
):
    """
    Submit a request for access. A platform administrator reviews it.
    """
    try:
        result = service.submit_registration(
            request.email, request.full_name, request.company, request.position, request.message
        )
        return ResponseHandler.success(data=result, status_code=201)

    except AppException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error(f"Unexpected error in submit_registration: {str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/pending", response_model=Dict[str, Any])
async def list_pending_registrations(
    admin: Dict = Depends(require_platform_admin),
    service: RegistrationService = Depends(get_registration_service)
):
    try:
        return ResponseHandler.success(data=service.list_pending_registrations())

    except AppException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error(f"Unexpected error in list_pending_registrations: {str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/{registration_id}", response_model=Dict[str, Any])
async def get_registration(
    registration_id: ResourceId,
    admin: Dict = Depends(require_platform_admin),
    service: RegistrationService = Depends(get_registration_service)
):
    try:
        return ResponseHandler.success(data=service.get_registration(registration_id))

    except AppException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error(f"Unexpected error in get_registration: {str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/{registration_id}/approve", response_model=Dict[str, Any])
async def approve_registration(
    registration_id: ResourceId,
    admin: Dict = Depends(require_platform_admin),
    service: RegistrationService = Depends(get_registration_service)
):
    try:
        result = service.approve_registration(registration_id, admin["user_id"])
        return ResponseHandler.success(data=result)

    except AppException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error(f"Unexpected error in approve_registration: {str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/{registration_id}/reject", response_model=Dict[str, Any])
async def reject_registration(
    registration_id: ResourceId,
    request: Optional[RegistrationRejectRequest] = None,
    admin: Dict = Depends(require_platform_admin),
    service: RegistrationService = Depends(get_registration_service)
):
    try:
        reason = request.reason if request else None
        result = service.reject_registration(registration_id, admin["user_id"], reason)
        return ResponseHandler.success(data=result)

    except AppException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error(f"Unexpected error in reject_registration: {str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/{registration_id}/approve", response_class=HTMLResponse)
async def approve_registration_link(
    registration_id: ResourceId,
    token: str = Query(..., min_length=1),
    service: RegistrationService = Depends(get_registration_service)
):
    """
    Approve link from the review email. The token is the credential.
    """
    try:
        result = service.approve_registration(registration_id, EMAIL_LINK_REVIEWER, token=token)
        return _review_page(
            "Registration approved",
            f"{result['email']} has been approved and sent sign-in instructions."
        )

    except AppException as e:
        return _review_page("Unable to approve registration", e.message, e.status_code)
    except Exception as e:
        logger.error(f"Unexpected error in approve_registration_link: {str(e)}")
        return _review_page("Unable to approve registration", "Internal server error", 500)


@router.get("/{registration_id}/reject", response_class=HTMLResponse)
async def reject_registration_link(
    registration_id: ResourceId,
    token: str = Query(..., min_length=1),
    reason: Optional[str] = Query(None, max_length=500),
    service: RegistrationService = Depends(get_registration_service)
):
    try:
        result = service.reject_registration(registration_id, EMAIL_LINK_REVIEWER, reason, token=token)
        return _review_page("Registration rejected", f"{result['email']} has been notified.")

    except AppException as e:
        return _review_page("Unable to reject registration", e.message, e.status_code)
    except Exception as e:
        logger.error(f"Unexpected error in reject_registration_link: {str(e)}")
        return _review_page("Unable to reject registration", "Internal server error", 500)
