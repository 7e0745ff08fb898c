"""
User accounts and one-time login codes.
"""

from typing import Any, Dict, Optional

from boardguru.core.time_utils import utc_now_iso
from boardguru.repositories.base import BaseRepository
from boardguru.schemas.common import is_uuid

USER_COLUMNS = """
    user_id, email, full_name, company, position, platform_role,
    status, last_login, created_at, updated_at
"""


class UserRepository(BaseRepository):
    table = "users"
    key_column = "user_id"

    def get_by_id(self, user_id: str, include_secret: bool = False) -> Optional[Dict[str, Any]]:
        if not is_uuid(user_id):
            return None
        columns = "*" if include_secret else USER_COLUMNS
        return self.fetch_one(f"SELECT {columns} FROM users WHERE user_id = %s", (user_id,))

    def get_by_email(self, email: str, include_secret: bool = False) -> Optional[Dict[str, Any]]:
        columns = "*" if include_secret else USER_COLUMNS
        return self.fetch_one(
            f"SELECT {columns} FROM users WHERE LOWER(email) = LOWER(%s)", (email,)
        )

    def create(self, user: Dict[str, Any]) -> Dict[str, Any]:
        row = self.insert(user)
        row.pop("password_hash", None)
        return row

    def update(self, user_id: str, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        row = self.update_by_key(user_id, {**fields, "updated_at": utc_now_iso()})
        if row:
            row.pop("password_hash", None)
        return row


class OtpRepository(BaseRepository):
    table = "otp_codes"
    key_column = "otp_id"

    def create(self, otp: Dict[str, Any]) -> Dict[str, Any]:
        return self.insert(otp)

    def get_latest_active(self, email: str, purpose: str) -> Optional[Dict[str, Any]]:
        return self.fetch_one(
            """
            SELECT * FROM otp_codes
            WHERE LOWER(email) = LOWER(%s) AND purpose = %s
              AND used_at IS NULL AND expires_at > CURRENT_TIMESTAMP
            ORDER BY created_at DESC
            LIMIT 1
            """,
            (email, purpose)
        )

    def increment_attempts(self, otp_id: str) -> int:
        row = self.fetch_one(
            "UPDATE otp_codes SET attempts = attempts + 1 WHERE otp_id = %s RETURNING attempts",
            (otp_id,)
        )
        return row["attempts"] if row else 0

    def mark_used(self, otp_id: str) -> None:
        self.execute("UPDATE otp_codes SET used_at = CURRENT_TIMESTAMP WHERE otp_id = %s", (otp_id,))

    def invalidate(self, email: str, purpose: str) -> int:
        return self.execute(
            """
            UPDATE otp_codes SET used_at = CURRENT_TIMESTAMP
            WHERE LOWER(email) = LOWER(%s) AND purpose = %s AND used_at IS NULL
            """,
            (email, purpose)
        )
