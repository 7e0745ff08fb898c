"""
Base repository.
Wraps the pooled connection with dict-row helpers and converts driver
types (UUID, datetime, Decimal) into JSON-friendly values.
"""

from contextlib import contextmanager
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Tuple
import uuid
import logging

from psycopg2 import sql
import psycopg2.extras as extras
from psycopg2.extras import Json

from boardguru.core.database import DatabaseManager, get_db_manager
from boardguru.schemas.common import is_uuid

logger = logging.getLogger(__name__)


def serialize_value(value: Any) -> Any:
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return float(value)
    return value


def serialize_row(row: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if row is None:
        return None
    return {key: serialize_value(value) for key, value in dict(row).items()}


def adapt_value(value: Any) -> Any:
    """Wrap dicts and lists so psycopg2 writes them as JSONB."""
    if isinstance(value, (dict, list)):
        return Json(value)
    return value


class BaseRepository:
    """Shared SQL helpers; subclasses hold the table-specific queries."""

    table: str = ""
    key_column: str = ""

    def __init__(self, db_manager: Optional[DatabaseManager] = None):
        self._db_manager = db_manager

    @property
    def db(self) -> DatabaseManager:
        if self._db_manager is None:
            self._db_manager = get_db_manager()
        return self._db_manager

    @contextmanager
    def cursor(self):
        with self.db.get_connection() as conn:
            cursor = conn.cursor(cursor_factory=extras.RealDictCursor)
            try:
                yield cursor
            finally:
                cursor.close()

    def fetch_one(self, query, params: Iterable = ()) -> Optional[Dict[str, Any]]:
        with self.cursor() as cursor:
            cursor.execute(query, tuple(params))
            return serialize_row(cursor.fetchone())

    def fetch_all(self, query, params: Iterable = ()) -> List[Dict[str, Any]]:
        with self.cursor() as cursor:
            cursor.execute(query, tuple(params))
            return [serialize_row(row) for row in cursor.fetchall()]

    def fetch_page(self, query, params: Iterable, order_by: str,
                   limit: int, offset: int) -> Tuple[List[Dict[str, Any]], int]:
        """
        Run `query` as a subselect with a window count.

        `order_by` is a trusted fragment over the subselect's columns.
        Returns (rows, total).
        """
        paged = sql.SQL(
            "SELECT *, COUNT(*) OVER() AS _total FROM ({}) AS page_source ORDER BY {} LIMIT %s OFFSET %s"
        ).format(
            query if isinstance(query, sql.Composable) else sql.SQL(query),
            sql.SQL(order_by)
        )
        rows = self.fetch_all(paged, tuple(params) + (limit, offset))
        total = rows[0]["_total"] if rows else 0
        for row in rows:
            row.pop("_total", None)
        return rows, total

    def execute(self, query, params: Iterable = ()) -> int:
        with self.cursor() as cursor:
            cursor.execute(query, tuple(params))
            return cursor.rowcount

    def insert(self, values: Dict[str, Any], table: Optional[str] = None) -> Dict[str, Any]:
        table = table or self.table
        columns = list(values.keys())
        query = sql.SQL("INSERT INTO {} ({}) VALUES ({}) RETURNING *").format(
            sql.Identifier(table),
            sql.SQL(", ").join(sql.Identifier(c) for c in columns),
            sql.SQL(", ").join(sql.Placeholder() for _ in columns)
        )
        return self.fetch_one(query, [adapt_value(values[c]) for c in columns])

    def update_where(self, fields: Dict[str, Any], where: Dict[str, Any],
                     table: Optional[str] = None) -> Optional[Dict[str, Any]]:
        """UPDATE ... SET fields WHERE all `where` columns match; returns the updated row."""
        table = table or self.table
        if not fields:
            return self.fetch_one(
                sql.SQL("SELECT * FROM {} WHERE {}").format(sql.Identifier(table), self._where(where)),
                list(where.values())
            )
        query = sql.SQL("UPDATE {} SET {} WHERE {} RETURNING *").format(
            sql.Identifier(table),
            sql.SQL(", ").join(
                sql.SQL("{} = {}").format(sql.Identifier(c), sql.Placeholder()) for c in fields
            ),
            self._where(where)
        )
        params = [adapt_value(v) for v in fields.values()] + list(where.values())
        return self.fetch_one(query, params)

    def get_by_key(self, key_value: str) -> Optional[Dict[str, Any]]:
        # Keys are UUIDs; a malformed id cannot match any row
        if not is_uuid(key_value):
            return None
        return self.fetch_one(
            sql.SQL("SELECT * FROM {} WHERE {} = %s").format(
                sql.Identifier(self.table), sql.Identifier(self.key_column)
            ),
            (key_value,)
        )

    def update_by_key(self, key_value: str, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        return self.update_where(fields, {self.key_column: key_value})

    @staticmethod
    def _where(where: Dict[str, Any]) -> sql.Composable:
        return sql.SQL(" AND ").join(
            sql.SQL("{} = {}").format(sql.Identifier(c), sql.Placeholder()) for c in where
        )
