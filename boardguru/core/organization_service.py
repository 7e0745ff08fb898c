"""
Organization Service.
Organizations, memberships, invitations and bulk actions over several
organizations at once.
"""

from typing import Any, Dict, List, Optional
import re
import uuid
import logging

import pandas as pd

from boardguru.config import settings
from boardguru.core import email_templates
from boardguru.core.email_service import EmailService
from boardguru.core.exceptions import (
    AppException,
    AuthorizationException,
    BusinessRuleException,
    ConflictException,
    NotFoundException,
    ValidationException
)
from boardguru.core.notification_service import NotificationService
from boardguru.core.rbac_service import ROLE_RANK, ActivityLogger, RBACService
from boardguru.core.security import TokenGenerator
from boardguru.core.time_utils import expires_in, is_expired, utc_now_iso
from boardguru.repositories.organization_repository import OrganizationRepository
from boardguru.repositories.user_repository import UserRepository
from boardguru.schemas.common import is_uuid

logger = logging.getLogger(__name__)

SLUG_PATTERN = re.compile(r"^[a-z0-9-]+$")
ORGANIZATION_SIZES = ("startup", "small", "medium", "large", "enterprise")
MEMBER_STATUSES = ("active", "invited", "suspended")
INVITABLE_ROLES = ("admin", "member", "viewer", "guest")
SHARE_PERMISSION_ROLES = {"view": "viewer", "edit": "member", "admin": "admin"}
BULK_ACTIONS = ("export", "archive", "share", "delete")
MAX_BULK_ITEMS = 100
UPDATABLE_FIELDS = ("name", "slug", "description", "industry", "size", "website", "settings")


class OrganizationService:
    """Business rules for organizations and their members."""

    def __init__(
        self,
        organization_repo: OrganizationRepository,
        user_repo: UserRepository,
        rbac: RBACService,
        activity: ActivityLogger,
        notifications: NotificationService,
        email_service: EmailService
    ):
        self.organization_repo = organization_repo
        self.user_repo = user_repo
        self.rbac = rbac
        self.activity = activity
        self.notifications = notifications
        self.email_service = email_service

    # Validation

    @staticmethod
    def validate_slug(slug: str) -> None:
        if not slug or len(slug) < 3 or len(slug) > 50:
            raise ValidationException("Slug must be between 3 and 50 characters")
        if not SLUG_PATTERN.match(slug):
            raise ValidationException("Slug can only contain lowercase letters, numbers, and hyphens")

    @classmethod
    def validate_fields(cls, fields: Dict[str, Any]) -> None:
        if "name" in fields:
            name = (fields["name"] or "").strip()
            if not name or len(name) > 100:
                raise ValidationException("Organization name must be between 1 and 100 characters")
        if "slug" in fields:
            cls.validate_slug(fields["slug"])
        if fields.get("description") and len(fields["description"]) > 500:
            raise ValidationException("Description must be at most 500 characters")
        if fields.get("size") and fields["size"] not in ORGANIZATION_SIZES:
            raise ValidationException(f"Invalid organization size: {fields['size']}")

    # Organizations

    def check_slug_availability(self, slug: str, exclude_organization_id: Optional[str] = None) -> Dict[str, Any]:
        self.validate_slug(slug)
        existing = self.organization_repo.get_by_slug(slug)
        available = existing is None or existing["organization_id"] == exclude_organization_id
        return {"slug": slug, "available": available}

    def create_organization(self, user_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Create an organization; the creator becomes its owner.

        Raises:
            ValidationException: Invalid name, slug, description or size
            ConflictException: Slug already taken
        """
        fields = {k: data.get(k) for k in UPDATABLE_FIELDS if data.get(k) is not None}
        fields.setdefault("name", data.get("name"))
        fields.setdefault("slug", data.get("slug"))
        self.validate_fields(fields)

        if not self.check_slug_availability(fields["slug"])["available"]:
            raise ConflictException("Organization slug is not available")

        organization = self.organization_repo.create({
            "organization_id": str(uuid.uuid4()),
            **fields,
            "name": fields["name"].strip(),
            "settings": fields.get("settings") or {},
            "status": "active",
            "created_by": user_id,
        })
        self.organization_repo.add_member({
            "organization_id": organization["organization_id"],
            "user_id": user_id,
            "role": "owner",
            "status": "active",
        })

        self.activity.record(
            user_id, "organization.created", "organization", organization["organization_id"],
            organization_id=organization["organization_id"], details={"name": organization["name"]}
        )
        logger.info(f"Organization created: {organization['slug']} by {user_id}")
        return {**organization, "user_role": "owner", "member_count": 1}

    def get_organization(self, organization_id: str, user_id: str) -> Dict[str, Any]:
        organization = self._get_existing(organization_id)
        member = self.rbac.require_role(organization_id, user_id)
        return {
            **organization,
            "user_role": member["role"],
            "member_count": self.organization_repo.count_members(organization_id),
        }

    def list_organizations(
        self,
        user_id: str,
        role: Optional[str] = None,
        status: Optional[str] = None,
        page: int = 1,
        page_size: int = 20
    ) -> Dict[str, Any]:
        items, total = self.organization_repo.list_for_user(
            user_id, role=role, status=status, limit=page_size, offset=(page - 1) * page_size
        )
        return {"items": items, "total": total}

    def update_organization(self, organization_id: str, user_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        organization = self._get_existing(organization_id)
        self.rbac.require_role(organization_id, user_id, "admin")

        fields = {k: data[k] for k in UPDATABLE_FIELDS if k in data and data[k] is not None}
        if not fields:
            return organization
        self.validate_fields(fields)

        if "slug" in fields and fields["slug"] != organization["slug"]:
            if not self.check_slug_availability(fields["slug"], organization_id)["available"]:
                raise ConflictException("Organization slug is not available")
        if "settings" in fields:
            fields["settings"] = {**(organization.get("settings") or {}), **fields["settings"]}

        updated = self.organization_repo.update(organization_id, fields)
        self.activity.record(
            user_id, "organization.updated", "organization", organization_id,
            organization_id=organization_id, details={"fields": sorted(fields)}
        )
        return updated

    def delete_organization(self, organization_id: str, user_id: str) -> Dict[str, Any]:
        self._get_existing(organization_id)
        self.rbac.require_role(organization_id, user_id, "owner")
        updated = self.organization_repo.update(organization_id, {"status": "deleted"})
        self.activity.record(user_id, "organization.deleted", "organization", organization_id,
                             organization_id=organization_id)
        logger.info(f"Organization {organization_id} deleted by {user_id}")
        return updated

    def archive_organization(self, organization_id: str, user_id: str) -> Dict[str, Any]:
        self._get_existing(organization_id)
        self.rbac.require_role(organization_id, user_id, "admin")
        updated = self.organization_repo.update(
            organization_id, {"status": "archived", "archived_at": utc_now_iso()}
        )
        self.activity.record(user_id, "organization.archived", "organization", organization_id,
                             organization_id=organization_id)
        return updated

    def get_activity(self, organization_id: str, user_id: str, page: int = 1, page_size: int = 50) -> Dict[str, Any]:
        self.rbac.require_role(organization_id, user_id, "admin")
        if self.activity.activity_repo is None:
            return {"items": [], "total": 0}
        items, total = self.activity.activity_repo.list_for_organization(
            organization_id, limit=page_size, offset=(page - 1) * page_size
        )
        return {"items": items, "total": total}

    # Members

    def list_members(
        self,
        organization_id: str,
        user_id: str,
        role: Optional[str] = None,
        status: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        self._get_existing(organization_id)
        self.rbac.require_role(organization_id, user_id)
        return self.organization_repo.list_members(organization_id, role=role, status=status)

    def invite_member(
        self,
        organization_id: str,
        inviter_id: str,
        email: str,
        role: str = "member",
        message: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Invite someone by email. The invitation token is valid for
        INVITATION_EXPIRATION_DAYS and is only delivered by email.

        Raises:
            ValidationException: Role is not invitable
            ConflictException: Already an active member, or an invitation is pending
        """
        organization = self._get_existing(organization_id)
        self.rbac.require_role(organization_id, inviter_id, "admin")

        if role not in INVITABLE_ROLES:
            raise ValidationException(f"Invalid role for invitation: {role}")
        email = email.strip().lower()

        invitee = self.user_repo.get_by_email(email)
        if invitee and self.rbac.get_membership(organization_id, invitee["user_id"]):
            raise ConflictException("User is already a member of this organization")
        if self.organization_repo.get_pending_invitation(organization_id, email):
            raise ConflictException("An invitation is already pending for this email")

        token = TokenGenerator.secure_token()
        invitation = self.organization_repo.create_invitation({
            "invitation_id": str(uuid.uuid4()),
            "organization_id": organization_id,
            "email": email,
            "role": role,
            "token": token,
            "status": "pending",
            "message": message,
            "invited_by": inviter_id,
            "expires_at": expires_in(days=settings.INVITATION_EXPIRATION_DAYS),
        })

        inviter = self.user_repo.get_by_id(inviter_id) or {}
        subject, html = email_templates.invitation(
            "organization", organization["name"], inviter.get("full_name") or "A colleague",
            role, token, message
        )
        email_sent = self.email_service.send_email(email, subject, html)

        if invitee:
            self.notifications.notify_users(
                [invitee["user_id"]], "organization_invitation",
                f"You have been invited to {organization['name']}",
                organization_id=organization_id,
                metadata={"invitation_id": invitation["invitation_id"], "role": role}
            )

        self.activity.record(
            inviter_id, "member.invited", "organization_invitation", invitation["invitation_id"],
            organization_id=organization_id, details={"email": email, "role": role}
        )
        return {**self._public_invitation(invitation), "email_sent": email_sent}

    def bulk_invite(self, organization_id: str, inviter_id: str, invitations: List[Dict[str, Any]]) -> Dict[str, Any]:
        if not invitations or len(invitations) > MAX_BULK_ITEMS:
            raise ValidationException(f"Between 1 and {MAX_BULK_ITEMS} invitations are required")
        self.rbac.require_role(organization_id, inviter_id, "admin")

        results = []
        for item in invitations:
            try:
                invitation = self.invite_member(
                    organization_id, inviter_id, item["email"],
                    item.get("role", "member"), item.get("message")
                )
                results.append({"email": item["email"], "status": "invited",
                                "invitation_id": invitation["invitation_id"]})
            except AppException as e:
                results.append({"email": item["email"], "status": "error", "error": e.message})

        success_count = sum(1 for r in results if r["status"] == "invited")
        return {
            "results": results,
            "success_count": success_count,
            "error_count": len(results) - success_count,
        }

    def accept_invitation(self, token: str, user_id: str) -> Dict[str, Any]:
        invitation = self.organization_repo.get_invitation_by_token(token)
        if not invitation:
            raise NotFoundException("Invitation", "token")
        if invitation["status"] != "pending":
            raise BusinessRuleException("Invitation is no longer valid")
        if is_expired(invitation["expires_at"]):
            raise BusinessRuleException("Invitation has expired")

        user = self.user_repo.get_by_id(user_id)
        if not user or user["email"].lower() != invitation["email"].lower():
            raise AuthorizationException("This invitation was sent to a different email address")

        member = self.organization_repo.add_member({
            "organization_id": invitation["organization_id"],
            "user_id": user_id,
            "role": invitation["role"],
            "status": "active",
            "invited_by": invitation.get("invited_by"),
        })
        self.organization_repo.update_invitation(
            invitation["invitation_id"], {"status": "accepted", "accepted_at": utc_now_iso()}
        )
        self.activity.record(
            user_id, "member.joined", "organization", invitation["organization_id"],
            organization_id=invitation["organization_id"], details={"role": invitation["role"]}
        )
        logger.info(f"User {user_id} joined organization {invitation['organization_id']}")
        return member

    def update_member(
        self,
        organization_id: str,
        actor_id: str,
        member_user_id: str,
        role: Optional[str] = None,
        status: Optional[str] = None
    ) -> Dict[str, Any]:
        actor = self.rbac.require_role(organization_id, actor_id, "admin")
        target = self.organization_repo.get_member(organization_id, member_user_id)
        if not target:
            raise NotFoundException("Organization member", member_user_id)

        if role is not None and role not in ROLE_RANK:
            raise ValidationException(f"Invalid role: {role}")
        if status is not None and status not in MEMBER_STATUSES:
            raise ValidationException(f"Invalid member status: {status}")
        if (role == "owner" or target["role"] == "owner") and actor["role"] != "owner":
            raise AuthorizationException("Only owners can change owner memberships")

        loses_owner = target["role"] == "owner" and (
            (role is not None and role != "owner") or (status is not None and status != "active")
        )
        if loses_owner:
            self._ensure_other_owner(organization_id, target)

        fields = {}
        if role is not None:
            fields["role"] = role
        if status is not None:
            fields["status"] = status
        updated = self.organization_repo.update_member(organization_id, member_user_id, fields)

        self.activity.record(
            actor_id, "member.updated", "organization_member", member_user_id,
            organization_id=organization_id, details=fields
        )
        return updated

    def remove_member(self, organization_id: str, actor_id: str, member_user_id: str) -> None:
        """Admins remove others; anyone may remove themselves."""
        if actor_id != member_user_id:
            actor = self.rbac.require_role(organization_id, actor_id, "admin")
        else:
            actor = self.rbac.require_role(organization_id, actor_id)

        target = self.organization_repo.get_member(organization_id, member_user_id)
        if not target:
            raise NotFoundException("Organization member", member_user_id)
        if target["role"] == "owner":
            if actor["role"] != "owner":
                raise AuthorizationException("Only owners can remove an owner")
            self._ensure_other_owner(organization_id, target)

        self.organization_repo.remove_member(organization_id, member_user_id)
        self.activity.record(
            actor_id, "member.removed", "organization_member", member_user_id,
            organization_id=organization_id
        )

    # Bulk actions

    def bulk_action(
        self,
        user_id: str,
        action: str,
        organization_ids: List[str],
        emails: Optional[List[str]] = None,
        permission: str = "view"
    ) -> Dict[str, Any]:
        """
        Apply one action to several organizations, collecting per-item errors.

        Returns:
            For export: {"filename", "content_type", "content"} with CSV content.
            Otherwise a summary with processed/successful/failed counts,
            per-item errors and the action-specific counters
            (archivedCount, deletedCount, sharedCount, invitationsSent).
        """
        if action not in BULK_ACTIONS:
            raise ValidationException(f"Unsupported bulk action: {action}")
        if not organization_ids or len(organization_ids) > MAX_BULK_ITEMS:
            raise ValidationException(f"Between 1 and {MAX_BULK_ITEMS} organizations are required")
        organization_ids = list(dict.fromkeys(organization_ids))

        if action == "export":
            return self._export_csv(user_id, organization_ids)
        if action == "archive":
            return self._bulk_archive(user_id, organization_ids)
        if action == "delete":
            return self._bulk_delete(user_id, organization_ids)
        return self._bulk_share(user_id, organization_ids, emails or [], permission)

    def _export_csv(self, user_id: str, organization_ids: List[str]) -> Dict[str, Any]:
        organization_ids = [org_id for org_id in organization_ids if is_uuid(org_id)]
        if not organization_ids:
            rows = []
        else:
            rows, _ = self.organization_repo.list_for_user(
                user_id, organization_ids=organization_ids, limit=MAX_BULK_ITEMS, offset=0
            )
        frame = pd.DataFrame(
            [
                {
                    "Name": row["name"],
                    "Members": int(row.get("member_count") or 0),
                    "Role": row.get("user_role"),
                    "Status": row["status"],
                }
                for row in rows
            ],
            columns=["Name", "Members", "Role", "Status"]
        )
        logger.info(f"Exported {len(frame)} organizations for user {user_id}")
        return {
            "filename": f"organizations-{utc_now_iso()[:10]}.csv",
            "content_type": "text/csv",
            "content": frame.to_csv(index=False, lineterminator="\n"),
        }

    def _bulk_archive(self, user_id: str, organization_ids: List[str]) -> Dict[str, Any]:
        summary = self._run_bulk(organization_ids, lambda org_id: self.archive_organization(org_id, user_id))
        summary["archivedCount"] = summary["successful"]
        return summary

    def _bulk_delete(self, user_id: str, organization_ids: List[str]) -> Dict[str, Any]:
        if not any(self.rbac.has_role(org_id, user_id, "owner") for org_id in organization_ids if is_uuid(org_id)):
            raise AuthorizationException("Insufficient permission to delete organizations")
        summary = self._run_bulk(organization_ids, lambda org_id: self.delete_organization(org_id, user_id))
        summary["deletedCount"] = summary["successful"]
        return summary

    def _bulk_share(self, user_id: str, organization_ids: List[str], emails: List[str], permission: str) -> Dict[str, Any]:
        if not emails:
            raise ValidationException("At least one email is required to share")
        role = SHARE_PERMISSION_ROLES.get(permission)
        if role is None:
            raise ValidationException(f"Invalid share permission: {permission}")

        invitations_sent = 0

        def share(org_id: str) -> None:
            nonlocal invitations_sent
            self.rbac.require_role(org_id, user_id, "admin")
            failures = []
            for email in emails:
                try:
                    invitation = self.invite_member(org_id, user_id, email, role)
                    if invitation.get("email_sent"):
                        invitations_sent += 1
                except AppException as e:
                    failures.append(f"{email}: {e.message}")
            if len(failures) == len(emails):
                raise BusinessRuleException("; ".join(failures))

        summary = self._run_bulk(organization_ids, share)
        summary["sharedCount"] = summary["successful"]
        summary["invitationsSent"] = invitations_sent
        return summary

    @staticmethod
    def _run_bulk(organization_ids: List[str], operation) -> Dict[str, Any]:
        errors = []
        for org_id in organization_ids:
            try:
                if not is_uuid(org_id):
                    raise NotFoundException("Organization", org_id)
                operation(org_id)
            except AppException as e:
                errors.append({"organization_id": org_id, "error": e.message})
        successful = len(organization_ids) - len(errors)
        return {
            "success": not errors,
            "processed": len(organization_ids),
            "successful": successful,
            "failed": len(errors),
            "errors": errors,
        }

    # Helpers

    def _get_existing(self, organization_id: str) -> Dict[str, Any]:
        organization = self.organization_repo.get_by_id(organization_id)
        if not organization or organization["status"] == "deleted":
            raise NotFoundException("Organization", organization_id)
        return organization

    def _ensure_other_owner(self, organization_id: str, target: Dict[str, Any]) -> None:
        """Refuse to take away the last active owner. Inactive owners never count."""
        if target["role"] != "owner" or target["status"] != "active":
            return
        if self.organization_repo.count_members(organization_id, role="owner") <= 1:
            raise BusinessRuleException("Organization must have at least one owner")

    @staticmethod
    def _public_invitation(invitation: Dict[str, Any]) -> Dict[str, Any]:
        return {k: v for k, v in invitation.items() if k != "token"}
