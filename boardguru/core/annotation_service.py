"""
Annotation Service.
Highlights, comments and drawings on asset pages, with reply threads.
"""

from typing import Any, Dict, List, Optional
import re
import uuid
import logging

from boardguru.core.asset_service import AssetService
from boardguru.core.exceptions import (
    AuthorizationException,
    NotFoundException,
    ValidationException
)
from boardguru.core.notification_service import NotificationService
from boardguru.core.rbac_service import ActivityLogger, RBACService
from boardguru.repositories.annotation_repository import AnnotationRepository

logger = logging.getLogger(__name__)

ANNOTATION_TYPES = ("highlight", "comment", "drawing", "area")
COLOR_PATTERN = re.compile(r"^#[0-9A-Fa-f]{6}$")
MAX_REPLY_LENGTH = 2000


class AnnotationService:

    def __init__(
        self,
        annotation_repo: AnnotationRepository,
        asset_service: AssetService,
        rbac: RBACService,
        activity: ActivityLogger,
        notifications: NotificationService
    ):
        self.annotation_repo = annotation_repo
        self.asset_service = asset_service
        self.rbac = rbac
        self.activity = activity
        self.notifications = notifications

    @staticmethod
    def _validate(fields: Dict[str, Any], annotation_type: str) -> None:
        if annotation_type not in ANNOTATION_TYPES:
            raise ValidationException(f"Invalid annotation type: {annotation_type}")
        if "page_number" in fields:
            page = fields["page_number"]
            if not isinstance(page, int) or isinstance(page, bool) or page < 1:
                raise ValidationException("Page number must be a positive integer")
        if annotation_type == "comment" and "comment_text" in fields and not (fields["comment_text"] or "").strip():
            raise ValidationException("Comment annotations require comment text")
        if fields.get("color") is not None and not COLOR_PATTERN.match(fields["color"]):
            raise ValidationException("Color must be a hex value like #FFFF00")
        if fields.get("opacity") is not None:
            opacity = fields["opacity"]
            if not isinstance(opacity, (int, float)) or not 0 <= opacity <= 1:
                raise ValidationException("Opacity must be between 0 and 1")
        if fields.get("position") is not None and not isinstance(fields["position"], dict):
            raise ValidationException("Position must be an object")

    def create_annotation(self, asset_id: str, user_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        asset, _ = self.asset_service.check_view_access(asset_id, user_id)
        annotation_type = data.get("annotation_type") or "highlight"
        fields = {
            "page_number": data.get("page_number"),
            "comment_text": data.get("comment_text"),
            "color": data.get("color"),
            "opacity": data.get("opacity"),
            "position": data.get("position"),
        }
        self._validate(fields, annotation_type)

        annotation = self.annotation_repo.create({
            "annotation_id": str(uuid.uuid4()),
            "asset_id": asset_id,
            "organization_id": asset["organization_id"],
            "created_by": user_id,
            "annotation_type": annotation_type,
            "page_number": fields["page_number"],
            "position": fields["position"] or {},
            "selected_text": data.get("selected_text"),
            "comment_text": fields["comment_text"],
            "color": fields["color"] or "#FFFF00",
            "opacity": 0.3 if fields["opacity"] is None else fields["opacity"],
            "is_resolved": False,
        })

        if annotation_type == "comment" and asset["owner_id"] != user_id:
            self.notifications.create_notification(
                asset["owner_id"], "annotation_comment",
                f"New comment on {asset['title']}",
                (fields["comment_text"] or "")[:200],
                organization_id=asset["organization_id"],
                metadata={"asset_id": asset_id, "annotation_id": annotation["annotation_id"],
                          "page_number": fields["page_number"]}
            )

        self.activity.record(
            user_id, "annotation.created", "annotation", annotation["annotation_id"],
            organization_id=asset["organization_id"],
            details={"asset_id": asset_id, "type": annotation_type}
        )
        return annotation

    def list_annotations(self, asset_id: str, user_id: str, page_number: Optional[int] = None) -> List[Dict[str, Any]]:
        """Annotations on an asset, each with its replies in posting order."""
        self.asset_service.check_view_access(asset_id, user_id)
        annotations = self.annotation_repo.list_for_asset(asset_id, page_number)

        replies: Dict[str, List[Dict[str, Any]]] = {}
        for reply in self.annotation_repo.list_replies([a["annotation_id"] for a in annotations]):
            replies.setdefault(reply["annotation_id"], []).append(reply)

        return [{**a, "replies": replies.get(a["annotation_id"], [])} for a in annotations]

    def update_annotation(self, annotation_id: str, user_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        annotation = self._get_visible(annotation_id, user_id)
        if annotation["created_by"] != user_id:
            raise AuthorizationException("Only the author can edit this annotation")

        fields = {
            k: data[k] for k in ("comment_text", "color", "opacity", "position", "selected_text")
            if data.get(k) is not None
        }
        if not fields:
            raise ValidationException("No fields to update")
        self._validate(fields, annotation["annotation_type"])
        return self.annotation_repo.update(annotation_id, fields)

    def set_resolved(self, annotation_id: str, user_id: str, resolved: bool = True) -> Dict[str, Any]:
        annotation = self._get_visible(annotation_id, user_id)
        updated = self.annotation_repo.update(annotation_id, {
            "is_resolved": resolved,
            "resolved_by": user_id if resolved else None,
        })
        self.activity.record(
            user_id, "annotation.resolved" if resolved else "annotation.reopened",
            "annotation", annotation_id, organization_id=annotation["organization_id"]
        )
        return updated

    def delete_annotation(self, annotation_id: str, user_id: str) -> None:
        annotation = self._get_visible(annotation_id, user_id)
        if annotation["created_by"] != user_id and not self.rbac.has_role(
            annotation["organization_id"], user_id, "admin"
        ):
            raise AuthorizationException("Only the author or an organization admin can delete this annotation")

        self.annotation_repo.delete(annotation_id)
        self.activity.record(
            user_id, "annotation.deleted", "annotation", annotation_id,
            organization_id=annotation["organization_id"], details={"asset_id": annotation["asset_id"]}
        )

    def add_reply(self, annotation_id: str, user_id: str, reply_text: str) -> Dict[str, Any]:
        annotation = self._get_visible(annotation_id, user_id)
        text = (reply_text or "").strip()
        if not text or len(text) > MAX_REPLY_LENGTH:
            raise ValidationException(f"Reply must be between 1 and {MAX_REPLY_LENGTH} characters")

        reply = self.annotation_repo.add_reply({
            "reply_id": str(uuid.uuid4()),
            "annotation_id": annotation_id,
            "created_by": user_id,
            "reply_text": text,
        })

        if annotation["created_by"] != user_id:
            self.notifications.create_notification(
                annotation["created_by"], "annotation_reply",
                "New reply to your annotation", text[:200],
                organization_id=annotation["organization_id"],
                metadata={"asset_id": annotation["asset_id"], "annotation_id": annotation_id}
            )
        return reply

    def _get_visible(self, annotation_id: str, user_id: str) -> Dict[str, Any]:
        annotation = self.annotation_repo.get_by_id(annotation_id)
        if not annotation:
            raise NotFoundException("Annotation", annotation_id)
        self.asset_service.check_view_access(annotation["asset_id"], user_id)
        return annotation
