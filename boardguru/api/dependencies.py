"""
API Dependencies.
Authentication of bearer tokens and construction of the services used by
the route handlers.
"""

from fastapi import Depends, HTTPException, Path, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from typing import Annotated, Dict, Any
from boardguru.core.annotation_service import AnnotationService
from boardguru.core.asset_service import AssetService
from boardguru.core.auth_service import AuthService
from boardguru.core.board_service import BoardService
from boardguru.core.email_service import get_email_service
from boardguru.core.exceptions import AuthenticationException
from boardguru.core.meeting_service import MeetingService
from boardguru.core.notification_service import NotificationService
from boardguru.core.organization_service import OrganizationService
from boardguru.core.rbac_service import ActivityLogger, RBACService
from boardguru.core.registration_service import RegistrationService
from boardguru.core.security import JWTHandler
from boardguru.core.storage import get_storage_client
from boardguru.core.vault_service import VaultService
from boardguru.repositories.annotation_repository import AnnotationRepository
from boardguru.repositories.asset_repository import AssetRepository
from boardguru.repositories.board_repository import BoardRepository
from boardguru.repositories.meeting_repository import MeetingRepository
from boardguru.repositories.notification_repository import ActivityRepository, NotificationRepository
from boardguru.repositories.organization_repository import OrganizationRepository
from boardguru.repositories.registration_repository import RegistrationRepository
from boardguru.repositories.user_repository import OtpRepository, UserRepository
from boardguru.repositories.vault_repository import VaultRepository
from boardguru.schemas.common import UUID_PATTERN
import logging

logger = logging.getLogger(__name__)

security = HTTPBearer()

# Path ids are UUIDs; anything else is rejected before it reaches a query
ResourceId = Annotated[str, Path(pattern=UUID_PATTERN)]


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security)
) -> Dict[str, Any]:
    """
    Dependency to get the authenticated user from the JWT bearer token.

    Returns:
        Dictionary with user_id, email and platform_role

    Raises:
        HTTPException: 401 if the token is missing, expired or malformed
    """
    try:
        payload = JWTHandler.verify_token(credentials.credentials)

        user_id = payload.get("user_id")
        if not user_id:
            raise AuthenticationException("Invalid token: missing user_id")

        return {
            "user_id": user_id,
            "email": payload.get("email"),
            "platform_role": payload.get("platform_role", "user")
        }

    except AuthenticationException as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=e.message,
            headers={"WWW-Authenticate": "Bearer"}
        )
    except Exception as e:
        logger.error(f"Authentication error: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
            headers={"WWW-Authenticate": "Bearer"}
        )


async def require_platform_admin(
    current_user: Dict[str, Any] = Depends(get_current_user)
) -> Dict[str, Any]:
    """Only platform administrators may review registrations."""
    if current_user.get("platform_role") != "admin":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Platform administrator access required"
        )
    return current_user


# Services

def _rbac() -> RBACService:
    return RBACService(OrganizationRepository())


def _activity() -> ActivityLogger:
    return ActivityLogger(ActivityRepository())


def get_notification_service() -> NotificationService:
    return NotificationService(NotificationRepository(), UserRepository(), get_email_service())


def get_auth_service() -> AuthService:
    return AuthService(UserRepository(), OtpRepository())


def get_registration_service() -> RegistrationService:
    return RegistrationService(
        RegistrationRepository(), UserRepository(), get_auth_service(), get_email_service()
    )


def get_organization_service() -> OrganizationService:
    return OrganizationService(
        OrganizationRepository(),
        UserRepository(),
        _rbac(),
        _activity(),
        get_notification_service(),
        get_email_service()
    )


def get_board_service() -> BoardService:
    return BoardService(BoardRepository(), MeetingRepository(), _rbac(), _activity())


def get_meeting_service() -> MeetingService:
    return MeetingService(
        MeetingRepository(),
        BoardRepository(),
        OrganizationRepository(),
        _rbac(),
        _activity(),
        get_notification_service()
    )


def get_vault_service() -> VaultService:
    return VaultService(
        VaultRepository(),
        AssetRepository(),
        UserRepository(),
        _rbac(),
        _activity(),
        get_notification_service(),
        get_email_service()
    )


def get_asset_service() -> AssetService:
    return AssetService(
        AssetRepository(),
        VaultRepository(),
        UserRepository(),
        _rbac(),
        _activity(),
        get_notification_service(),
        get_storage_client()
    )


def get_annotation_service() -> AnnotationService:
    return AnnotationService(
        AnnotationRepository(),
        get_asset_service(),
        _rbac(),
        _activity(),
        get_notification_service()
    )
