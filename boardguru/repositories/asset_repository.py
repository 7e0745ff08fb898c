"""
Uploaded documents and per-user shares.
"""

from typing import Any, Dict, List, Optional, Tuple

from boardguru.core.time_utils import utc_now_iso
from boardguru.repositories.base import BaseRepository

SORTABLE_COLUMNS = {"created_at", "updated_at", "title", "file_size", "view_count", "download_count"}


class AssetRepository(BaseRepository):
    table = "assets"
    key_column = "asset_id"

    def create(self, asset: Dict[str, Any]) -> Dict[str, Any]:
        return self.insert(asset)

    def get_by_id(self, asset_id: str) -> Optional[Dict[str, Any]]:
        return self.get_by_key(asset_id)

    def update(self, asset_id: str, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        return self.update_by_key(asset_id, {**fields, "updated_at": utc_now_iso()})

    def list_assets(
        self,
        organization_id: str,
        vault_id: Optional[str] = None,
        owner_id: Optional[str] = None,
        category: Optional[str] = None,
        status: str = "ready",
        search: Optional[str] = None,
        sort_by: str = "created_at",
        sort_desc: bool = True,
        limit: int = 20,
        offset: int = 0
    ) -> Tuple[List[Dict[str, Any]], int]:
        conditions = ["a.organization_id = %s", "a.status = %s"]
        params: List[Any] = [organization_id, status]
        if vault_id:
            conditions.append("EXISTS (SELECT 1 FROM vault_assets va WHERE va.asset_id = a.asset_id AND va.vault_id = %s)")
            params.append(vault_id)
        if owner_id:
            conditions.append("a.owner_id = %s")
            params.append(owner_id)
        if category:
            conditions.append("a.category = %s")
            params.append(category)
        if search:
            conditions.append("(a.title ILIKE %s OR a.file_name ILIKE %s)")
            params.extend([f"%{search}%", f"%{search}%"])

        column = sort_by if sort_by in SORTABLE_COLUMNS else "created_at"
        order_by = f"{column} {'DESC' if sort_desc else 'ASC'}"
        query = f"SELECT a.* FROM assets a WHERE {' AND '.join(conditions)}"
        return self.fetch_page(query, params, order_by, limit, offset)

    def increment_counter(self, asset_id: str, column: str) -> None:
        if column not in ("view_count", "download_count"):
            raise ValueError(f"Unknown counter column: {column}")
        self.execute(
            f"UPDATE assets SET {column} = {column} + 1, last_accessed_at = CURRENT_TIMESTAMP WHERE asset_id = %s",
            (asset_id,)
        )

    # Shares

    def add_share(self, share: Dict[str, Any]) -> Dict[str, Any]:
        return self.fetch_one(
            """
            INSERT INTO asset_shares (asset_id, user_id, permission, shared_by)
            VALUES (%s, %s, %s, %s)
            ON CONFLICT (asset_id, user_id)
            DO UPDATE SET permission = EXCLUDED.permission, shared_by = EXCLUDED.shared_by,
                          shared_at = CURRENT_TIMESTAMP
            RETURNING *
            """,
            (share["asset_id"], share["user_id"], share["permission"], share["shared_by"])
        )

    def get_share(self, asset_id: str, user_id: str) -> Optional[Dict[str, Any]]:
        return self.fetch_one(
            "SELECT * FROM asset_shares WHERE asset_id = %s AND user_id = %s", (asset_id, user_id)
        )

    def remove_share(self, asset_id: str, user_id: str) -> bool:
        return self.execute(
            "DELETE FROM asset_shares WHERE asset_id = %s AND user_id = %s", (asset_id, user_id)
        ) > 0

    def list_shares(self, asset_id: str) -> List[Dict[str, Any]]:
        return self.fetch_all(
            """
            SELECT s.*, u.email, u.full_name
            FROM asset_shares s
            JOIN users u ON u.user_id = s.user_id
            WHERE s.asset_id = %s
            ORDER BY s.shared_at ASC
            """,
            (asset_id,)
        )
