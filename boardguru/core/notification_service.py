"""
Notification Service.
In-app notifications with optional email delivery.
"""

from typing import Any, Dict, Iterable, Optional
import uuid
import logging

from boardguru.core import email_templates
from boardguru.core.email_service import EmailService
from boardguru.core.exceptions import NotFoundException, ValidationException
from boardguru.repositories.notification_repository import NotificationRepository
from boardguru.repositories.user_repository import UserRepository

logger = logging.getLogger(__name__)

PRIORITIES = ("low", "medium", "high", "urgent")


class NotificationService:
    """Creates, lists and updates notifications for users."""

    def __init__(
        self,
        notification_repo: NotificationRepository,
        user_repo: Optional[UserRepository] = None,
        email_service: Optional[EmailService] = None
    ):
        self.notification_repo = notification_repo
        self.user_repo = user_repo
        self.email_service = email_service

    def create_notification(
        self,
        user_id: str,
        notification_type: str,
        title: str,
        message: Optional[str] = None,
        organization_id: Optional[str] = None,
        priority: str = "medium",
        metadata: Optional[Dict[str, Any]] = None,
        send_email: bool = False
    ) -> Dict[str, Any]:
        """
        Create a notification for one user.

        Args:
            user_id: Recipient
            notification_type: Free-form category (board_meeting_invitation, annotation_reply, ...)
            title: Short heading
            message: Body text
            organization_id: Organization the notification relates to
            priority: low, medium, high or urgent
            metadata: Extra JSON for clients (entity ids, links)
            send_email: Also email the recipient; delivery failure is only logged

        Returns:
            The stored notification
        """
        if priority not in PRIORITIES:
            raise ValidationException(f"Invalid priority: {priority}")
        if not title or not title.strip():
            raise ValidationException("Notification title is required")

        notification = self.notification_repo.create({
            "notification_id": str(uuid.uuid4()),
            "user_id": user_id,
            "organization_id": organization_id,
            "type": notification_type,
            "title": title.strip(),
            "message": message,
            "priority": priority,
            "metadata": metadata or {},
        })
        logger.debug(f"Created {notification_type} notification for user {user_id}")

        if send_email:
            self._email_user(user_id, title, message)

        return notification

    def notify_users(
        self,
        user_ids: Iterable[str],
        notification_type: str,
        title: str,
        message: Optional[str] = None,
        organization_id: Optional[str] = None,
        priority: str = "medium",
        metadata: Optional[Dict[str, Any]] = None,
        exclude_user_id: Optional[str] = None
    ) -> int:
        """Fan a notification out; returns how many were created. Individual failures are logged."""
        created = 0
        for user_id in dict.fromkeys(user_ids):
            if user_id == exclude_user_id:
                continue
            try:
                self.create_notification(
                    user_id, notification_type, title, message,
                    organization_id=organization_id, priority=priority, metadata=metadata
                )
                created += 1
            except Exception as e:
                logger.error(f"Failed to notify user {user_id}: {str(e)}")
        return created

    def list_notifications(
        self,
        user_id: str,
        unread_only: bool = False,
        page: int = 1,
        page_size: int = 20
    ) -> Dict[str, Any]:
        items, total = self.notification_repo.list_for_user(
            user_id, unread_only=unread_only, limit=page_size, offset=(page - 1) * page_size
        )
        return {
            "items": items,
            "total": total,
            "unread_count": self.notification_repo.count_unread(user_id),
        }

    def mark_as_read(self, notification_id: str, user_id: str) -> Dict[str, Any]:
        notification = self.notification_repo.mark_read(notification_id, user_id)
        if not notification:
            raise NotFoundException("Notification", notification_id)
        return notification

    def mark_all_as_read(self, user_id: str) -> int:
        updated = self.notification_repo.mark_all_read(user_id)
        logger.info(f"Marked {updated} notifications read for user {user_id}")
        return updated

    def delete_notification(self, notification_id: str, user_id: str) -> None:
        if not self.notification_repo.delete(notification_id, user_id):
            raise NotFoundException("Notification", notification_id)

    def _email_user(self, user_id: str, title: str, message: Optional[str]) -> None:
        if not self.email_service or not self.user_repo:
            return
        try:
            user = self.user_repo.get_by_id(user_id)
            if not user:
                return
            subject, html = email_templates.notification(title, message)
            self.email_service.send_email(user["email"], subject, html, text=message)
        except Exception as e:
            logger.error(f"Failed to email notification to user {user_id}: {str(e)}")
