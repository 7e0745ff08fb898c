"""
RBAC (Role-Based Access Control) Service.
Organization membership checks used by every organization-scoped service,
plus the activity log writer.
"""

from typing import Any, Dict, Optional
import uuid
import logging

from boardguru.core.exceptions import AuthorizationException
from boardguru.repositories.notification_repository import ActivityRepository
from boardguru.repositories.organization_repository import OrganizationRepository

logger = logging.getLogger(__name__)

ROLE_RANK = {
    "guest": 0,
    "viewer": 1,
    "member": 2,
    "admin": 3,
    "owner": 4,
}


class RBACService:
    """Answers "may this user act on this organization at this level?"."""

    def __init__(self, organization_repo: OrganizationRepository):
        self.organization_repo = organization_repo

    @staticmethod
    def role_at_least(role: Optional[str], min_role: str) -> bool:
        if role not in ROLE_RANK:
            return False
        return ROLE_RANK[role] >= ROLE_RANK[min_role]

    def get_membership(self, organization_id: str, user_id: str) -> Optional[Dict[str, Any]]:
        """Active membership row, or None."""
        member = self.organization_repo.get_member(organization_id, user_id)
        if not member or member.get("status") != "active":
            return None
        return member

    def has_role(self, organization_id: str, user_id: str, min_role: str = "guest") -> bool:
        member = self.get_membership(organization_id, user_id)
        return bool(member) and self.role_at_least(member["role"], min_role)

    def require_role(self, organization_id: str, user_id: str, min_role: str = "guest") -> Dict[str, Any]:
        """
        Return the caller's active membership or raise.

        Args:
            organization_id: Organization being accessed
            user_id: Caller
            min_role: Lowest role allowed (guest < viewer < member < admin < owner)

        Raises:
            AuthorizationException: Not an active member, or role too low
        """
        member = self.get_membership(organization_id, user_id)
        if not member:
            logger.warning(f"User {user_id} denied access to organization {organization_id}")
            raise AuthorizationException("You do not have access to this organization")
        if not self.role_at_least(member["role"], min_role):
            logger.warning(
                f"User {user_id} has role {member['role']} in {organization_id}, {min_role} required"
            )
            raise AuthorizationException(f"This action requires the {min_role} role or higher")
        return member


class ActivityLogger:
    """Writes activity_logs rows; failures never reach the caller."""

    def __init__(self, activity_repo: Optional[ActivityRepository] = None):
        self.activity_repo = activity_repo

    def record(
        self,
        user_id: Optional[str],
        action: str,
        entity_type: str,
        entity_id: Optional[str],
        organization_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ) -> None:
        if self.activity_repo is None:
            return
        try:
            self.activity_repo.log({
                "log_id": str(uuid.uuid4()),
                "organization_id": organization_id,
                "user_id": user_id,
                "action": action,
                "entity_type": entity_type,
                "entity_id": entity_id,
                "details": details or {},
            })
        except Exception as e:
            logger.warning(f"Failed to record activity {action} on {entity_type} {entity_id}: {str(e)}")
