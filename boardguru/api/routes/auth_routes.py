"""
Authentication API Routes.
Password login, first-login code exchange and password setup.
"""

from fastapi import APIRouter, HTTPException, Depends
from typing import Dict, Any
from boardguru.schemas.auth import LoginRequest, OtpLoginRequest, SetPasswordRequest
from boardguru.core.auth_service import AuthService
from boardguru.core.responses import ResponseHandler
from boardguru.core.exceptions import AppException
from boardguru.api.dependencies import get_auth_service, get_current_user
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/login", response_model=Dict[str, Any])
async def login(
    request: LoginRequest,
    service: AuthService = Depends(get_auth_service)
):
    """
    Login with email and password and get a JWT access token.
    """
    try:
        result = service.login(request.email, request.password)
        return ResponseHandler.success(data=result)

    except AppException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error(f"Unexpected error in login: {str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/otp", response_model=Dict[str, Any])
async def login_with_code(
    request: OtpLoginRequest,
    service: AuthService = Depends(get_auth_service)
):
    """
    Exchange the one-time code from the approval email for an access token.
    The response tells the client whether a password still has to be set.
    """
    try:
        result = service.login_with_code(request.email, request.code)
        return ResponseHandler.success(data=result)

    except AppException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error(f"Unexpected error in login_with_code: {str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/password", response_model=Dict[str, Any])
async def set_password(
    request: SetPasswordRequest,
    current_user: Dict = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service)
):
    try:
        user = service.set_password(current_user["user_id"], request.password)
        return ResponseHandler.success(data={
            "user_id": user["user_id"],
            "status": user["status"],
            "message": "Password updated successfully"
        })

    except AppException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error(f"Unexpected error in set_password: {str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/me", response_model=Dict[str, Any])
async def get_me(
    current_user: Dict = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service)
):
    try:
        return ResponseHandler.success(data=service.get_profile(current_user["user_id"]))

    except AppException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error(f"Unexpected error in get_me: {str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")
