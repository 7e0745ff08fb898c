"""
Organizations, their memberships and pending invitations.
"""

from typing import Any, Dict, List, Optional, Tuple

from boardguru.core.time_utils import utc_now_iso
from boardguru.repositories.base import BaseRepository


class OrganizationRepository(BaseRepository):
    table = "organizations"
    key_column = "organization_id"

    # Organizations

    def create(self, organization: Dict[str, Any]) -> Dict[str, Any]:
        return self.insert(organization)

    def get_by_id(self, organization_id: str) -> Optional[Dict[str, Any]]:
        return self.get_by_key(organization_id)

    def get_by_slug(self, slug: str) -> Optional[Dict[str, Any]]:
        return self.fetch_one("SELECT * FROM organizations WHERE slug = %s", (slug,))

    def update(self, organization_id: str, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        return self.update_by_key(organization_id, {**fields, "updated_at": utc_now_iso()})

    def list_for_user(
        self,
        user_id: str,
        role: Optional[str] = None,
        status: Optional[str] = None,
        organization_ids: Optional[List[str]] = None,
        limit: int = 20,
        offset: int = 0
    ) -> Tuple[List[Dict[str, Any]], int]:
        """Organizations the user actively belongs to, with the user's role and member count."""
        conditions = ["m.user_id = %s", "m.status = 'active'", "o.status <> 'deleted'"]
        params: List[Any] = [user_id]
        if role:
            conditions.append("m.role = %s")
            params.append(role)
        if status:
            conditions.append("o.status = %s")
            params.append(status)
        if organization_ids:
            conditions.append("o.organization_id = ANY(%s::uuid[])")
            params.append(list(organization_ids))

        query = f"""
            SELECT o.*, m.role AS user_role,
                   (SELECT COUNT(*) FROM organization_members mc
                     WHERE mc.organization_id = o.organization_id AND mc.status = 'active') AS member_count
            FROM organizations o
            JOIN organization_members m ON m.organization_id = o.organization_id
            WHERE {' AND '.join(conditions)}
        """
        return self.fetch_page(query, params, "name ASC", limit, offset)

    # Members

    def add_member(self, member: Dict[str, Any]) -> Dict[str, Any]:
        return self.fetch_one(
            """
            INSERT INTO organization_members (organization_id, user_id, role, status, invited_by)
            VALUES (%s, %s, %s, %s, %s)
            ON CONFLICT (organization_id, user_id)
            DO UPDATE SET role = EXCLUDED.role, status = EXCLUDED.status, updated_at = CURRENT_TIMESTAMP
            RETURNING *
            """,
            (
                member["organization_id"], member["user_id"], member["role"],
                member.get("status", "active"), member.get("invited_by")
            )
        )

    def get_member(self, organization_id: str, user_id: str) -> Optional[Dict[str, Any]]:
        return self.fetch_one(
            "SELECT * FROM organization_members WHERE organization_id = %s AND user_id = %s",
            (organization_id, user_id)
        )

    def list_members(
        self,
        organization_id: str,
        role: Optional[str] = None,
        status: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        conditions = ["m.organization_id = %s"]
        params: List[Any] = [organization_id]
        if role:
            conditions.append("m.role = %s")
            params.append(role)
        if status:
            conditions.append("m.status = %s")
            params.append(status)
        return self.fetch_all(
            f"""
            SELECT m.*, u.email, u.full_name
            FROM organization_members m
            JOIN users u ON u.user_id = m.user_id
            WHERE {' AND '.join(conditions)}
            ORDER BY m.joined_at ASC
            """,
            params
        )

    def update_member(self, organization_id: str, user_id: str, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        return self.update_where(
            {**fields, "updated_at": utc_now_iso()},
            {"organization_id": organization_id, "user_id": user_id},
            table="organization_members"
        )

    def remove_member(self, organization_id: str, user_id: str) -> bool:
        return self.execute(
            "DELETE FROM organization_members WHERE organization_id = %s AND user_id = %s",
            (organization_id, user_id)
        ) > 0

    def count_members(self, organization_id: str, role: Optional[str] = None) -> int:
        query = "SELECT COUNT(*) AS total FROM organization_members WHERE organization_id = %s AND status = 'active'"
        params: List[Any] = [organization_id]
        if role:
            query += " AND role = %s"
            params.append(role)
        return self.fetch_one(query, params)["total"]

    # Invitations

    def create_invitation(self, invitation: Dict[str, Any]) -> Dict[str, Any]:
        return self.insert(invitation, table="organization_invitations")

    def get_invitation_by_token(self, token: str) -> Optional[Dict[str, Any]]:
        return self.fetch_one(
            """
            SELECT i.*, o.name AS organization_name
            FROM organization_invitations i
            JOIN organizations o ON o.organization_id = i.organization_id
            WHERE i.token = %s
            """,
            (token,)
        )

    def get_pending_invitation(self, organization_id: str, email: str) -> Optional[Dict[str, Any]]:
        return self.fetch_one(
            """
            SELECT * FROM organization_invitations
            WHERE organization_id = %s AND LOWER(email) = LOWER(%s) AND status = 'pending'
              AND expires_at > CURRENT_TIMESTAMP
            """,
            (organization_id, email)
        )

    def update_invitation(self, invitation_id: str, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        return self.update_where(fields, {"invitation_id": invitation_id}, table="organization_invitations")
