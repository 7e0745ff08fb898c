"""
In-app notifications and the activity log.
"""

from typing import Any, Dict, List, Optional, Tuple

from boardguru.repositories.base import BaseRepository


class NotificationRepository(BaseRepository):
    table = "notifications"
    key_column = "notification_id"

    def create(self, notification: Dict[str, Any]) -> Dict[str, Any]:
        return self.insert(notification)

    def list_for_user(
        self,
        user_id: str,
        unread_only: bool = False,
        limit: int = 20,
        offset: int = 0
    ) -> Tuple[List[Dict[str, Any]], int]:
        query = "SELECT * FROM notifications WHERE user_id = %s"
        if unread_only:
            query += " AND read_at IS NULL"
        return self.fetch_page(query, [user_id], "created_at DESC", limit, offset)

    def count_unread(self, user_id: str) -> int:
        row = self.fetch_one(
            "SELECT COUNT(*) AS total FROM notifications WHERE user_id = %s AND read_at IS NULL",
            (user_id,)
        )
        return row["total"]

    def mark_read(self, notification_id: str, user_id: str) -> Optional[Dict[str, Any]]:
        """Only the recipient's own notification is touched."""
        return self.fetch_one(
            """
            UPDATE notifications SET read_at = COALESCE(read_at, CURRENT_TIMESTAMP)
            WHERE notification_id = %s AND user_id = %s
            RETURNING *
            """,
            (notification_id, user_id)
        )

    def mark_all_read(self, user_id: str) -> int:
        return self.execute(
            "UPDATE notifications SET read_at = CURRENT_TIMESTAMP WHERE user_id = %s AND read_at IS NULL",
            (user_id,)
        )

    def delete(self, notification_id: str, user_id: str) -> bool:
        return self.execute(
            "DELETE FROM notifications WHERE notification_id = %s AND user_id = %s",
            (notification_id, user_id)
        ) > 0


class ActivityRepository(BaseRepository):
    table = "activity_logs"
    key_column = "log_id"

    def log(self, entry: Dict[str, Any]) -> Dict[str, Any]:
        return self.insert(entry)

    def list_for_organization(
        self, organization_id: str, limit: int = 50, offset: int = 0
    ) -> Tuple[List[Dict[str, Any]], int]:
        return self.fetch_page(
            "SELECT * FROM activity_logs WHERE organization_id = %s",
            [organization_id], "performed_at DESC", limit, offset
        )
