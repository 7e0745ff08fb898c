"""
Asset Service.
Upload, access control, signed downloads and sharing of board documents.
"""

from typing import Any, Dict, List, Optional
import os
import re
import uuid
import logging

from boardguru.config import settings
from boardguru.core.exceptions import (
    AuthorizationException,
    BusinessRuleException,
    NotFoundException,
    ValidationException
)
from boardguru.core.notification_service import NotificationService
from boardguru.core.rbac_service import ActivityLogger, RBACService
from boardguru.core.storage import StorageClient
from boardguru.core.time_utils import utc_now_iso
from boardguru.core.vault_service import resolve_vault_role, vault_role_at_least
from boardguru.repositories.asset_repository import AssetRepository
from boardguru.repositories.user_repository import UserRepository
from boardguru.repositories.vault_repository import VaultRepository

logger = logging.getLogger(__name__)

SHARE_PERMISSIONS = ("view", "download", "edit")
ASSET_STATUSES = ("processing", "ready", "deleted")
UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def safe_file_name(file_name: str) -> str:
    """Strip directories and anything outside [A-Za-z0-9._-] from a client file name."""
    base = os.path.basename((file_name or "").replace("\\", "/"))
    cleaned = UNSAFE_FILENAME_CHARS.sub("_", base).strip("._")
    return cleaned or "file"


class AssetService:
    """Board documents stored in object storage."""

    def __init__(
        self,
        asset_repo: AssetRepository,
        vault_repo: VaultRepository,
        user_repo: UserRepository,
        rbac: RBACService,
        activity: ActivityLogger,
        notifications: NotificationService,
        storage: StorageClient
    ):
        self.asset_repo = asset_repo
        self.vault_repo = vault_repo
        self.user_repo = user_repo
        self.rbac = rbac
        self.activity = activity
        self.notifications = notifications
        self.storage = storage

    @staticmethod
    def validate_upload(file_name: str, content: bytes, content_type: str) -> None:
        """
        Raises:
            ValidationException: Empty file, oversized file or MIME type not allowed
        """
        if not file_name:
            raise ValidationException("File name is required")
        if not content:
            raise ValidationException("File is empty")
        max_bytes = settings.MAX_UPLOAD_SIZE_MB * 1024 * 1024
        if len(content) > max_bytes:
            raise ValidationException(f"File exceeds the {settings.MAX_UPLOAD_SIZE_MB} MB upload limit")
        if content_type not in settings.ALLOWED_UPLOAD_TYPES:
            raise ValidationException(f"File type not allowed: {content_type}")

    def upload_asset(
        self,
        organization_id: str,
        user_id: str,
        file_name: str,
        content: bytes,
        content_type: str,
        title: Optional[str] = None,
        description: Optional[str] = None,
        category: Optional[str] = None,
        tags: Optional[List[str]] = None,
        vault_id: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Store the file, then record the asset.

        The object is written first; if storage fails no row is created, and
        if the row cannot be created the object is removed again.
        """
        self.rbac.require_role(organization_id, user_id, "member")
        self.validate_upload(file_name, content, content_type)

        vault = None
        if vault_id:
            vault = self.vault_repo.get_by_id(vault_id)
            if not vault or vault["organization_id"] != organization_id:
                raise NotFoundException("Vault", vault_id)
            role = resolve_vault_role(self.vault_repo, self.rbac, vault, user_id)
            if not vault_role_at_least(role, "editor"):
                raise AuthorizationException("This action requires the vault editor role or higher")

        asset_id = str(uuid.uuid4())
        stored_name = safe_file_name(file_name)
        file_path = f"{organization_id}/{user_id}/{asset_id}/{stored_name}"

        self.storage.upload_bytes(file_path, content, content_type)

        try:
            asset = self.asset_repo.create({
                "asset_id": asset_id,
                "organization_id": organization_id,
                "owner_id": user_id,
                "title": (title or "").strip() or os.path.splitext(stored_name)[0],
                "description": description,
                "file_name": os.path.basename(file_name),
                "file_path": file_path,
                "file_size": len(content),
                "mime_type": content_type,
                "category": category or "general",
                "tags": tags or [],
                "status": "ready",
            })
        except Exception:
            logger.error(f"Asset row creation failed, removing uploaded object {file_path}")
            self.storage.delete(file_path)
            raise

        if vault:
            self.vault_repo.add_asset(vault["vault_id"], asset_id, user_id)

        self.activity.record(
            user_id, "asset.uploaded", "asset", asset_id,
            organization_id=organization_id,
            details={"file_name": asset["file_name"], "file_size": len(content), "vault_id": vault_id}
        )
        logger.info(f"Asset uploaded: {asset['file_name']} ({len(content)} bytes) as {asset_id}")
        return asset

    def get_asset(self, asset_id: str, user_id: str) -> Dict[str, Any]:
        """Load an asset the caller may view and count the view."""
        asset, access = self.check_view_access(asset_id, user_id)
        self.asset_repo.increment_counter(asset_id, "view_count")
        return {**asset, "view_count": (asset.get("view_count") or 0) + 1, "access": access}

    def check_view_access(self, asset_id: str, user_id: str):
        """
        Returns:
            (asset, access) where access is "organization" or the share permission

        Raises:
            NotFoundException: Unknown or deleted asset
            AuthorizationException: Neither an organization member nor shared with
        """
        asset = self._get_existing(asset_id)
        if self.rbac.get_membership(asset["organization_id"], user_id):
            return asset, "organization"
        share = self.asset_repo.get_share(asset_id, user_id)
        if share:
            return asset, share["permission"]
        raise AuthorizationException("You do not have access to this asset")

    def list_assets(
        self,
        organization_id: str,
        user_id: str,
        vault_id: Optional[str] = None,
        owner_id: Optional[str] = None,
        category: Optional[str] = None,
        status: str = "ready",
        search: Optional[str] = None,
        sort_by: str = "created_at",
        sort_desc: bool = True,
        page: int = 1,
        page_size: int = 20
    ) -> Dict[str, Any]:
        self.rbac.require_role(organization_id, user_id)
        if status not in ASSET_STATUSES:
            raise ValidationException(f"Invalid asset status: {status}")
        items, total = self.asset_repo.list_assets(
            organization_id,
            vault_id=vault_id,
            owner_id=owner_id,
            category=category,
            status=status,
            search=search,
            sort_by=sort_by,
            sort_desc=sort_desc,
            limit=page_size,
            offset=(page - 1) * page_size
        )
        return {"items": items, "total": total}

    def get_download_url(self, asset_id: str, user_id: str) -> Dict[str, Any]:
        asset, access = self.check_view_access(asset_id, user_id)
        if access == "view":
            raise AuthorizationException("Download is not permitted for this share")

        expires = settings.SIGNED_URL_EXPIRATION_SECONDS
        url = self.storage.presign_get(asset["file_path"], expires_in=expires, download_name=asset["file_name"])
        self.asset_repo.increment_counter(asset_id, "download_count")
        self.activity.record(
            user_id, "asset.downloaded", "asset", asset_id, organization_id=asset["organization_id"]
        )
        return {"asset_id": asset_id, "url": url, "expires_in": expires, "file_name": asset["file_name"]}

    def update_asset(self, asset_id: str, user_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        asset = self._get_managed(asset_id, user_id)
        fields = {k: data[k] for k in ("title", "description", "category", "tags") if data.get(k) is not None}
        if not fields:
            raise ValidationException("No fields to update")
        if "title" in fields:
            fields["title"] = fields["title"].strip()
            if not fields["title"] or len(fields["title"]) > 255:
                raise ValidationException("Title must be between 1 and 255 characters")

        updated = self.asset_repo.update(asset_id, fields)
        self.activity.record(
            user_id, "asset.updated", "asset", asset_id,
            organization_id=asset["organization_id"], details={"fields": sorted(fields)}
        )
        return updated

    def delete_asset(self, asset_id: str, user_id: str) -> Dict[str, Any]:
        asset = self._get_managed(asset_id, user_id)
        updated = self.asset_repo.update(asset_id, {"status": "deleted", "deleted_at": utc_now_iso()})
        self.activity.record(
            user_id, "asset.deleted", "asset", asset_id, organization_id=asset["organization_id"]
        )
        return updated

    def restore_asset(self, asset_id: str, user_id: str) -> Dict[str, Any]:
        asset = self._get_managed(asset_id, user_id, include_deleted=True)
        if asset["status"] != "deleted":
            raise BusinessRuleException("Only deleted assets can be restored")
        updated = self.asset_repo.update(asset_id, {"status": "ready", "deleted_at": None})
        self.activity.record(
            user_id, "asset.restored", "asset", asset_id, organization_id=asset["organization_id"]
        )
        return updated

    # Sharing

    def share_asset(self, asset_id: str, user_id: str, target_user_ids: List[str],
                    permission: str = "view") -> Dict[str, Any]:
        asset = self._get_managed(asset_id, user_id)
        if permission not in SHARE_PERMISSIONS:
            raise ValidationException(f"Invalid share permission: {permission}")
        if not target_user_ids:
            raise ValidationException("At least one user is required")

        results = []
        for target_id in dict.fromkeys(target_user_ids):
            if target_id == asset["owner_id"]:
                results.append({"user_id": target_id, "status": "owner"})
                continue
            if not self.user_repo.get_by_id(target_id):
                results.append({"user_id": target_id, "status": "user_not_found"})
                continue
            self.asset_repo.add_share({
                "asset_id": asset_id,
                "user_id": target_id,
                "permission": permission,
                "shared_by": user_id,
            })
            results.append({"user_id": target_id, "status": "shared"})

        shared = [r["user_id"] for r in results if r["status"] == "shared"]
        self.notifications.notify_users(
            shared, "asset_shared", f"A document was shared with you: {asset['title']}",
            organization_id=asset["organization_id"],
            metadata={"asset_id": asset_id, "permission": permission}
        )
        self.activity.record(
            user_id, "asset.shared", "asset", asset_id,
            organization_id=asset["organization_id"], details={"users": shared, "permission": permission}
        )
        return {"results": results, "shared_count": len(shared)}

    def unshare_asset(self, asset_id: str, user_id: str, target_user_id: str) -> None:
        asset = self._get_managed(asset_id, user_id)
        if not self.asset_repo.remove_share(asset_id, target_user_id):
            raise NotFoundException("Asset share", target_user_id)
        self.activity.record(
            user_id, "asset.unshared", "asset", asset_id,
            organization_id=asset["organization_id"], details={"user_id": target_user_id}
        )

    def list_shares(self, asset_id: str, user_id: str) -> List[Dict[str, Any]]:
        self._get_managed(asset_id, user_id)
        return self.asset_repo.list_shares(asset_id)

    # Helpers

    def _get_existing(self, asset_id: str, include_deleted: bool = False) -> Dict[str, Any]:
        asset = self.asset_repo.get_by_id(asset_id)
        if not asset or (asset["status"] == "deleted" and not include_deleted):
            raise NotFoundException("Asset", asset_id)
        return asset

    def _get_managed(self, asset_id: str, user_id: str, include_deleted: bool = False) -> Dict[str, Any]:
        """Owner or organization admin."""
        asset = self._get_existing(asset_id, include_deleted)
        if asset["owner_id"] != user_id:
            self.rbac.require_role(asset["organization_id"], user_id, "admin")
        return asset
