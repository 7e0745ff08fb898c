"""
Vault Service.
Vaults are curated document collections (board packs) shared with a set of
members. Organization admins can manage every vault in their organization.
"""

from typing import Any, Dict, List, Optional
import uuid
import logging

from boardguru.config import settings
from boardguru.core import email_templates
from boardguru.core.email_service import EmailService
from boardguru.core.exceptions import (
    AuthorizationException,
    BusinessRuleException,
    ConflictException,
    NotFoundException,
    ValidationException
)
from boardguru.core.notification_service import NotificationService
from boardguru.core.rbac_service import ActivityLogger, RBACService
from boardguru.core.security import TokenGenerator
from boardguru.core.time_utils import expires_in, is_expired, parse_timestamp, utc_now_iso
from boardguru.repositories.asset_repository import AssetRepository
from boardguru.repositories.user_repository import UserRepository
from boardguru.repositories.vault_repository import VaultRepository

logger = logging.getLogger(__name__)

VAULT_ROLE_RANK = {"viewer": 0, "editor": 1, "admin": 2, "owner": 3}
VAULT_STATUSES = ("draft", "active", "archived", "published")
VAULT_PRIORITIES = ("low", "medium", "high", "urgent")
INVITABLE_VAULT_ROLES = ("admin", "editor", "viewer")
UPDATABLE_FIELDS = ("name", "description", "status", "priority", "meeting_date", "tags")


def resolve_vault_role(
    vault_repo: VaultRepository,
    rbac: RBACService,
    vault: Dict[str, Any],
    user_id: str
) -> Optional[str]:
    """Caller's effective vault role; organization admins act as vault admins."""
    member = vault_repo.get_member(vault["vault_id"], user_id)
    if member:
        return member["role"]
    if rbac.has_role(vault["organization_id"], user_id, "admin"):
        return "admin"
    return None


def vault_role_at_least(role: Optional[str], min_role: str) -> bool:
    return role is not None and VAULT_ROLE_RANK.get(role, -1) >= VAULT_ROLE_RANK[min_role]


class VaultService:
    """Vault lifecycle, membership, invitations and contents."""

    def __init__(
        self,
        vault_repo: VaultRepository,
        asset_repo: AssetRepository,
        user_repo: UserRepository,
        rbac: RBACService,
        activity: ActivityLogger,
        notifications: NotificationService,
        email_service: EmailService
    ):
        self.vault_repo = vault_repo
        self.asset_repo = asset_repo
        self.user_repo = user_repo
        self.rbac = rbac
        self.activity = activity
        self.notifications = notifications
        self.email_service = email_service

    @staticmethod
    def _validate(fields: Dict[str, Any]) -> None:
        if "name" in fields:
            name = (fields["name"] or "").strip()
            if not name or len(name) > 255:
                raise ValidationException("Vault name must be between 1 and 255 characters")
        if fields.get("description") and len(fields["description"]) > 1000:
            raise ValidationException("Vault description must be at most 1000 characters")
        if fields.get("status") and fields["status"] not in VAULT_STATUSES:
            raise ValidationException(f"Invalid vault status: {fields['status']}")
        if fields.get("priority") and fields["priority"] not in VAULT_PRIORITIES:
            raise ValidationException(f"Invalid vault priority: {fields['priority']}")
        if fields.get("tags") is not None and not isinstance(fields["tags"], list):
            raise ValidationException("Tags must be a list")
        if fields.get("meeting_date"):
            try:
                parse_timestamp(fields["meeting_date"])
            except (TypeError, ValueError):
                raise ValidationException("Invalid meeting date")

    def create_vault(self, organization_id: str, user_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Create a vault; the creator becomes its owner.

        A failure to add the owner membership is logged and the vault is
        still returned.
        """
        self.rbac.require_role(organization_id, user_id, "member")
        self._validate({"name": data.get("name"), **data})

        vault = self.vault_repo.create({
            "vault_id": str(uuid.uuid4()),
            "organization_id": organization_id,
            "name": data["name"].strip(),
            "description": data.get("description"),
            "status": data.get("status") or "draft",
            "priority": data.get("priority") or "medium",
            "meeting_date": data.get("meeting_date"),
            "tags": data.get("tags") or [],
            "created_by": user_id,
        })

        try:
            self.vault_repo.add_member({
                "vault_id": vault["vault_id"],
                "user_id": user_id,
                "role": "owner",
                "added_by": user_id,
            })
        except Exception as e:
            logger.error(f"Failed to add owner to vault {vault['vault_id']}: {str(e)}")

        self.activity.record(
            user_id, "vault.created", "vault", vault["vault_id"],
            organization_id=organization_id, details={"name": vault["name"]}
        )
        logger.info(f"Vault created: {vault['name']} ({vault['vault_id']})")
        return {**vault, "user_role": "owner"}

    def get_vault(self, vault_id: str, user_id: str) -> Dict[str, Any]:
        vault, role = self._get_with_role(vault_id, user_id, "viewer")
        return {
            **vault,
            "user_role": role,
            "members": self.vault_repo.list_members(vault_id),
            "assets": self.vault_repo.list_assets(vault_id),
        }

    def list_user_vaults(
        self,
        user_id: str,
        organization_id: Optional[str] = None,
        status: Optional[str] = None,
        page: int = 1,
        page_size: int = 20
    ) -> Dict[str, Any]:
        if organization_id:
            self.rbac.require_role(organization_id, user_id)
        items, total = self.vault_repo.list_for_user(
            user_id,
            organization_id=organization_id,
            status=status,
            limit=page_size,
            offset=(page - 1) * page_size
        )
        return {"items": items, "total": total}

    def update_vault(self, vault_id: str, user_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        vault, _ = self._get_with_role(vault_id, user_id, "admin")
        fields = {k: data[k] for k in UPDATABLE_FIELDS if data.get(k) is not None}
        if not fields:
            raise ValidationException("No fields to update")
        self._validate(fields)
        if "name" in fields:
            fields["name"] = fields["name"].strip()

        updated = self.vault_repo.update(vault_id, fields)
        self.activity.record(
            user_id, "vault.updated", "vault", vault_id,
            organization_id=vault["organization_id"], details={"fields": sorted(fields)}
        )
        return updated

    def delete_vault(self, vault_id: str, user_id: str) -> Dict[str, Any]:
        vault, _ = self._get_with_role(vault_id, user_id, "owner")
        updated = self.vault_repo.update(vault_id, {"status": "archived"})
        self.activity.record(
            user_id, "vault.archived", "vault", vault_id, organization_id=vault["organization_id"]
        )
        logger.info(f"Vault archived: {vault_id} by {user_id}")
        return updated

    # Invitations

    def invite(
        self,
        vault_id: str,
        inviter_id: str,
        user_ids: Optional[List[str]] = None,
        emails: Optional[List[str]] = None,
        role: str = "viewer",
        message: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Add existing users directly and invite others by email.

        Returns:
            Dict with per-target results (added, already_member, user_not_found,
            invited or error), success_count and error_count
        """
        user_ids = list(dict.fromkeys(user_ids or []))
        emails = list(dict.fromkeys(e.strip().lower() for e in emails or [] if e and e.strip()))
        if not user_ids and not emails:
            raise ValidationException("At least one user or email is required")
        if role not in INVITABLE_VAULT_ROLES:
            raise ValidationException(f"Invalid vault role: {role}")

        vault, _ = self._get_with_role(vault_id, inviter_id, "admin")
        inviter = self.user_repo.get_by_id(inviter_id) or {}
        results = []

        for target_id in user_ids:
            try:
                if not self.user_repo.get_by_id(target_id):
                    results.append({"user_id": target_id, "status": "user_not_found"})
                    continue
                if self.vault_repo.get_member(vault_id, target_id):
                    results.append({"user_id": target_id, "status": "already_member"})
                    continue
                self.vault_repo.add_member({
                    "vault_id": vault_id,
                    "user_id": target_id,
                    "role": role,
                    "added_by": inviter_id,
                })
                self.notifications.create_notification(
                    target_id, "vault_access_granted",
                    f"You were added to the vault {vault['name']}",
                    organization_id=vault["organization_id"],
                    metadata={"vault_id": vault_id, "role": role}
                )
                results.append({"user_id": target_id, "status": "added"})
            except Exception as e:
                logger.error(f"Failed to add user {target_id} to vault {vault_id}: {str(e)}")
                results.append({"user_id": target_id, "status": "error", "error": str(e)})

        for email in emails:
            try:
                token = TokenGenerator.secure_token()
                invitation = self.vault_repo.create_invitation({
                    "invitation_id": str(uuid.uuid4()),
                    "vault_id": vault_id,
                    "email": email,
                    "role": role,
                    "token": token,
                    "status": "pending",
                    "message": message,
                    "invited_by": inviter_id,
                    "expires_at": expires_in(days=settings.INVITATION_EXPIRATION_DAYS),
                })
                subject, html = email_templates.invitation(
                    "vault", vault["name"], inviter.get("full_name") or "A colleague",
                    role, token, message
                )
                email_sent = self.email_service.send_email(email, subject, html)
                results.append({
                    "email": email,
                    "status": "invited",
                    "invitation_id": invitation["invitation_id"],
                    "email_sent": email_sent,
                })
            except Exception as e:
                logger.error(f"Failed to invite {email} to vault {vault_id}: {str(e)}")
                results.append({"email": email, "status": "error", "error": str(e)})

        success_count = sum(1 for r in results if r["status"] in ("added", "invited"))
        self.activity.record(
            inviter_id, "vault.members_invited", "vault", vault_id,
            organization_id=vault["organization_id"],
            details={"success_count": success_count, "role": role}
        )
        return {
            "results": results,
            "success_count": success_count,
            "error_count": len(results) - success_count,
        }

    def accept_invitation(self, token: str, user_id: str) -> Dict[str, Any]:
        invitation = self.vault_repo.get_invitation_by_token(token)
        if not invitation:
            raise NotFoundException("Vault invitation", "token")
        if invitation["status"] != "pending":
            raise BusinessRuleException("Invitation is no longer valid")
        if is_expired(invitation["expires_at"]):
            raise BusinessRuleException("Invitation has expired")

        user = self.user_repo.get_by_id(user_id)
        if not user or user["email"].lower() != invitation["email"].lower():
            raise AuthorizationException("This invitation was sent to a different email address")

        vault_id = invitation["vault_id"]
        member = self.vault_repo.get_member(vault_id, user_id)
        if not member:
            member = self.vault_repo.add_member({
                "vault_id": vault_id,
                "user_id": user_id,
                "role": invitation["role"],
                "added_by": invitation.get("invited_by"),
            })
        self.vault_repo.update_invitation(
            invitation["invitation_id"], {"status": "accepted", "accepted_at": utc_now_iso()}
        )

        vault = self.vault_repo.get_by_id(vault_id) or {}
        self.activity.record(
            user_id, "vault.invitation_accepted", "vault", vault_id,
            organization_id=vault.get("organization_id")
        )
        return member

    # Contents

    def add_asset(self, vault_id: str, user_id: str, asset_id: str) -> Dict[str, Any]:
        vault, _ = self._get_with_role(vault_id, user_id, "editor")
        asset = self.asset_repo.get_by_id(asset_id)
        if not asset or asset["status"] == "deleted":
            raise NotFoundException("Asset", asset_id)
        if asset["organization_id"] != vault["organization_id"]:
            raise ValidationException("Asset belongs to a different organization")
        if not self.vault_repo.add_asset(vault_id, asset_id, user_id):
            raise ConflictException("Asset is already in this vault")

        self.activity.record(
            user_id, "vault.asset_added", "vault", vault_id,
            organization_id=vault["organization_id"], details={"asset_id": asset_id}
        )
        return {"vault_id": vault_id, "asset_id": asset_id, "added_by": user_id}

    def remove_asset(self, vault_id: str, user_id: str, asset_id: str) -> None:
        vault, _ = self._get_with_role(vault_id, user_id, "editor")
        if not self.vault_repo.remove_asset(vault_id, asset_id):
            raise NotFoundException("Vault asset", asset_id)
        self.activity.record(
            user_id, "vault.asset_removed", "vault", vault_id,
            organization_id=vault["organization_id"], details={"asset_id": asset_id}
        )

    def _get_with_role(self, vault_id: str, user_id: str, min_role: str):
        vault = self.vault_repo.get_by_id(vault_id)
        if not vault:
            raise NotFoundException("Vault", vault_id)
        role = resolve_vault_role(self.vault_repo, self.rbac, vault, user_id)
        if role is None:
            raise AuthorizationException("You do not have access to this vault")
        if not vault_role_at_least(role, min_role):
            raise AuthorizationException(f"This action requires the vault {min_role} role or higher")
        return vault, role
