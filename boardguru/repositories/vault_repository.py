"""
Vaults, vault membership, email invitations and vault contents.
"""

from typing import Any, Dict, List, Optional, Tuple

from boardguru.core.time_utils import utc_now_iso
from boardguru.repositories.base import BaseRepository


class VaultRepository(BaseRepository):
    table = "vaults"
    key_column = "vault_id"

    def create(self, vault: Dict[str, Any]) -> Dict[str, Any]:
        return self.insert(vault)

    def get_by_id(self, vault_id: str) -> Optional[Dict[str, Any]]:
        return self.get_by_key(vault_id)

    def update(self, vault_id: str, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        return self.update_by_key(vault_id, {**fields, "updated_at": utc_now_iso()})

    def list_for_user(
        self,
        user_id: str,
        organization_id: Optional[str] = None,
        status: Optional[str] = None,
        limit: int = 20,
        offset: int = 0
    ) -> Tuple[List[Dict[str, Any]], int]:
        conditions = ["vm.user_id = %s", "v.status <> 'archived'"]
        params: List[Any] = [user_id]
        if organization_id:
            conditions.append("v.organization_id = %s")
            params.append(organization_id)
        if status:
            conditions[1] = "v.status = %s"
            params.append(status)
        query = f"""
            SELECT v.*, vm.role AS user_role,
                   (SELECT COUNT(*) FROM vault_members c WHERE c.vault_id = v.vault_id) AS member_count,
                   (SELECT COUNT(*) FROM vault_assets a WHERE a.vault_id = v.vault_id) AS asset_count
            FROM vaults v
            JOIN vault_members vm ON vm.vault_id = v.vault_id
            WHERE {' AND '.join(conditions)}
        """
        return self.fetch_page(query, params, "updated_at DESC", limit, offset)

    # Members

    def add_member(self, member: Dict[str, Any]) -> Dict[str, Any]:
        return self.insert(member, table="vault_members")

    def get_member(self, vault_id: str, user_id: str) -> Optional[Dict[str, Any]]:
        return self.fetch_one(
            "SELECT * FROM vault_members WHERE vault_id = %s AND user_id = %s", (vault_id, user_id)
        )

    def list_members(self, vault_id: str) -> List[Dict[str, Any]]:
        return self.fetch_all(
            """
            SELECT vm.*, u.email, u.full_name
            FROM vault_members vm
            JOIN users u ON u.user_id = vm.user_id
            WHERE vm.vault_id = %s
            ORDER BY vm.added_at ASC
            """,
            (vault_id,)
        )

    # Invitations

    def create_invitation(self, invitation: Dict[str, Any]) -> Dict[str, Any]:
        return self.insert(invitation, table="vault_invitations")

    def get_invitation_by_token(self, token: str) -> Optional[Dict[str, Any]]:
        return self.fetch_one("SELECT * FROM vault_invitations WHERE token = %s", (token,))

    def update_invitation(self, invitation_id: str, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        return self.update_where(fields, {"invitation_id": invitation_id}, table="vault_invitations")

    # Contents

    def add_asset(self, vault_id: str, asset_id: str, added_by: str) -> bool:
        return self.execute(
            """
            INSERT INTO vault_assets (vault_id, asset_id, added_by)
            VALUES (%s, %s, %s)
            ON CONFLICT (vault_id, asset_id) DO NOTHING
            """,
            (vault_id, asset_id, added_by)
        ) > 0

    def remove_asset(self, vault_id: str, asset_id: str) -> bool:
        return self.execute(
            "DELETE FROM vault_assets WHERE vault_id = %s AND asset_id = %s", (vault_id, asset_id)
        ) > 0

    def list_assets(self, vault_id: str) -> List[Dict[str, Any]]:
        return self.fetch_all(
            """
            SELECT a.*, va.added_by, va.added_at
            FROM vault_assets va
            JOIN assets a ON a.asset_id = va.asset_id
            WHERE va.vault_id = %s AND a.status <> 'deleted'
            ORDER BY va.added_at DESC
            """,
            (vault_id,)
        )
