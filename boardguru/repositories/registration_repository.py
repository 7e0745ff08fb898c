"""
Registration requests awaiting admin review.
"""

from typing import Any, Dict, List, Optional

from boardguru.core.time_utils import utc_now_iso
from boardguru.repositories.base import BaseRepository


class RegistrationRepository(BaseRepository):
    table = "registration_requests"
    key_column = "registration_id"

    def get_by_id(self, registration_id: str) -> Optional[Dict[str, Any]]:
        return self.get_by_key(registration_id)

    def get_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        return self.fetch_one(
            "SELECT * FROM registration_requests WHERE LOWER(email) = LOWER(%s)", (email,)
        )

    def create(self, registration: Dict[str, Any]) -> Dict[str, Any]:
        return self.insert(registration)

    def update(self, registration_id: str, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        return self.update_by_key(registration_id, {**fields, "updated_at": utc_now_iso()})

    def list_by_status(self, status: str) -> List[Dict[str, Any]]:
        return self.fetch_all(
            "SELECT * FROM registration_requests WHERE status = %s ORDER BY created_at ASC",
            (status,)
        )
