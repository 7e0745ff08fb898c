"""
Boards and their members.
"""

from typing import Any, Dict, List, Optional

from boardguru.core.time_utils import utc_now_iso
from boardguru.repositories.base import BaseRepository


class BoardRepository(BaseRepository):
    table = "boards"
    key_column = "board_id"

    def create(self, board: Dict[str, Any]) -> Dict[str, Any]:
        return self.insert(board)

    def get_by_id(self, board_id: str) -> Optional[Dict[str, Any]]:
        return self.get_by_key(board_id)

    def get_by_name(self, organization_id: str, name: str) -> Optional[Dict[str, Any]]:
        return self.fetch_one(
            "SELECT * FROM boards WHERE organization_id = %s AND LOWER(name) = LOWER(%s)",
            (organization_id, name)
        )

    def list_by_organization(self, organization_id: str, status: Optional[str] = None) -> List[Dict[str, Any]]:
        query = """
            SELECT b.*,
                   (SELECT COUNT(*) FROM board_members bm
                     WHERE bm.board_id = b.board_id AND bm.status = 'active') AS member_count
            FROM boards b
            WHERE b.organization_id = %s
        """
        params: List[Any] = [organization_id]
        if status:
            query += " AND b.status = %s"
            params.append(status)
        query += " ORDER BY b.name ASC"
        return self.fetch_all(query, params)

    def update(self, board_id: str, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        return self.update_by_key(board_id, {**fields, "updated_at": utc_now_iso()})

    def add_member(self, member: Dict[str, Any]) -> Dict[str, Any]:
        """Insert a member, reactivating a previous membership row for the same user."""
        return self.fetch_one(
            """
            INSERT INTO board_members
                (board_member_id, board_id, user_id, role, status, voting_rights, term_start, term_end)
            VALUES (%s, %s, %s, %s, 'active', %s, %s, %s)
            ON CONFLICT (board_id, user_id)
            DO UPDATE SET role = EXCLUDED.role, status = 'active', voting_rights = EXCLUDED.voting_rights,
                          term_start = EXCLUDED.term_start, term_end = EXCLUDED.term_end,
                          appointed_at = CURRENT_TIMESTAMP
            RETURNING *
            """,
            (
                member["board_member_id"], member["board_id"], member["user_id"], member["role"],
                member.get("voting_rights", True), member.get("term_start"), member.get("term_end")
            )
        )

    def get_member(self, board_id: str, user_id: str) -> Optional[Dict[str, Any]]:
        return self.fetch_one(
            "SELECT * FROM board_members WHERE board_id = %s AND user_id = %s",
            (board_id, user_id)
        )

    def update_member(self, board_member_id: str, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        return self.update_where(fields, {"board_member_id": board_member_id}, table="board_members")

    def list_members(self, board_id: str, status: Optional[str] = "active") -> List[Dict[str, Any]]:
        query = """
            SELECT bm.*, u.email, u.full_name
            FROM board_members bm
            JOIN users u ON u.user_id = bm.user_id
            WHERE bm.board_id = %s
        """
        params: List[Any] = [board_id]
        if status:
            query += " AND bm.status = %s"
            params.append(status)
        query += " ORDER BY bm.appointed_at ASC"
        return self.fetch_all(query, params)
