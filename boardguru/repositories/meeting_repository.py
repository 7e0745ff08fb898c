"""
Meetings, agenda items, attendance, resolutions and votes.
"""

from typing import Any, Dict, List, Optional, Tuple

from boardguru.core.time_utils import utc_now_iso
from boardguru.repositories.base import BaseRepository


class MeetingRepository(BaseRepository):
    table = "meetings"
    key_column = "meeting_id"

    # Meetings

    def create(self, meeting: Dict[str, Any]) -> Dict[str, Any]:
        return self.insert(meeting)

    def get_by_id(self, meeting_id: str) -> Optional[Dict[str, Any]]:
        return self.get_by_key(meeting_id)

    def update(self, meeting_id: str, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        return self.update_by_key(meeting_id, {**fields, "updated_at": utc_now_iso()})

    def list_meetings(
        self,
        organization_id: str,
        board_id: Optional[str] = None,
        status: Optional[str] = None,
        starts_after: Optional[str] = None,
        limit: int = 20,
        offset: int = 0
    ) -> Tuple[List[Dict[str, Any]], int]:
        conditions = ["organization_id = %s"]
        params: List[Any] = [organization_id]
        if board_id:
            conditions.append("board_id = %s")
            params.append(board_id)
        if status:
            conditions.append("status = %s")
            params.append(status)
        if starts_after:
            conditions.append("scheduled_start >= %s")
            params.append(starts_after)
        query = f"SELECT * FROM meetings WHERE {' AND '.join(conditions)}"
        return self.fetch_page(query, params, "scheduled_start ASC", limit, offset)

    def list_by_board(self, board_id: str) -> List[Dict[str, Any]]:
        return self.fetch_all(
            "SELECT * FROM meetings WHERE board_id = %s ORDER BY scheduled_start ASC", (board_id,)
        )

    # Agenda

    def add_agenda_item(self, item: Dict[str, Any]) -> Dict[str, Any]:
        return self.insert(item, table="meeting_agenda_items")

    def list_agenda_items(self, meeting_id: str) -> List[Dict[str, Any]]:
        return self.fetch_all(
            "SELECT * FROM meeting_agenda_items WHERE meeting_id = %s ORDER BY position ASC",
            (meeting_id,)
        )

    # Attendance

    def upsert_attendance(self, attendance: Dict[str, Any]) -> Dict[str, Any]:
        return self.fetch_one(
            """
            INSERT INTO meeting_attendance (meeting_id, user_id, status, proxy_holder_id)
            VALUES (%s, %s, %s, %s)
            ON CONFLICT (meeting_id, user_id)
            DO UPDATE SET status = EXCLUDED.status, proxy_holder_id = EXCLUDED.proxy_holder_id,
                          recorded_at = CURRENT_TIMESTAMP
            RETURNING *
            """,
            (
                attendance["meeting_id"], attendance["user_id"],
                attendance["status"], attendance.get("proxy_holder_id")
            )
        )

    def list_attendance(self, meeting_id: str) -> List[Dict[str, Any]]:
        return self.fetch_all(
            "SELECT * FROM meeting_attendance WHERE meeting_id = %s ORDER BY recorded_at ASC",
            (meeting_id,)
        )

    # Resolutions

    def create_resolution(self, resolution: Dict[str, Any]) -> Dict[str, Any]:
        return self.insert(resolution, table="resolutions")

    def get_resolution(self, resolution_id: str) -> Optional[Dict[str, Any]]:
        return self.fetch_one("SELECT * FROM resolutions WHERE resolution_id = %s", (resolution_id,))

    def update_resolution(self, resolution_id: str, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        return self.update_where(fields, {"resolution_id": resolution_id}, table="resolutions")

    def list_resolutions(self, meeting_id: str) -> List[Dict[str, Any]]:
        return self.fetch_all(
            "SELECT * FROM resolutions WHERE meeting_id = %s ORDER BY proposed_at ASC", (meeting_id,)
        )

    # Votes

    def add_vote(self, vote: Dict[str, Any]) -> Dict[str, Any]:
        return self.insert(vote, table="resolution_votes")

    def get_vote(self, resolution_id: str, user_id: str) -> Optional[Dict[str, Any]]:
        return self.fetch_one(
            "SELECT * FROM resolution_votes WHERE resolution_id = %s AND user_id = %s",
            (resolution_id, user_id)
        )

    def list_votes(self, resolution_id: str) -> List[Dict[str, Any]]:
        return self.fetch_all(
            "SELECT * FROM resolution_votes WHERE resolution_id = %s ORDER BY voted_at ASC",
            (resolution_id,)
        )
