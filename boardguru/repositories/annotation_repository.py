"""
Document annotations and their reply threads.
"""

from typing import Any, Dict, List, Optional

from boardguru.core.time_utils import utc_now_iso
from boardguru.repositories.base import BaseRepository


class AnnotationRepository(BaseRepository):
    table = "asset_annotations"
    key_column = "annotation_id"

    def create(self, annotation: Dict[str, Any]) -> Dict[str, Any]:
        return self.insert(annotation)

    def get_by_id(self, annotation_id: str) -> Optional[Dict[str, Any]]:
        return self.get_by_key(annotation_id)

    def update(self, annotation_id: str, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        return self.update_by_key(annotation_id, {**fields, "updated_at": utc_now_iso()})

    def delete(self, annotation_id: str) -> bool:
        return self.execute(
            "DELETE FROM asset_annotations WHERE annotation_id = %s", (annotation_id,)
        ) > 0

    def list_for_asset(self, asset_id: str, page_number: Optional[int] = None) -> List[Dict[str, Any]]:
        query = """
            SELECT a.*, u.full_name AS author_name
            FROM asset_annotations a
            JOIN users u ON u.user_id = a.created_by
            WHERE a.asset_id = %s
        """
        params: List[Any] = [asset_id]
        if page_number is not None:
            query += " AND a.page_number = %s"
            params.append(page_number)
        query += " ORDER BY a.page_number ASC, a.created_at ASC"
        return self.fetch_all(query, params)

    def add_reply(self, reply: Dict[str, Any]) -> Dict[str, Any]:
        return self.insert(reply, table="annotation_replies")

    def list_replies(self, annotation_ids: List[str]) -> List[Dict[str, Any]]:
        if not annotation_ids:
            return []
        return self.fetch_all(
            """
            SELECT r.*, u.full_name AS author_name
            FROM annotation_replies r
            JOIN users u ON u.user_id = r.created_by
            WHERE r.annotation_id = ANY(%s::uuid[])
            ORDER BY r.created_at ASC
            """,
            (list(annotation_ids),)
        )
