"""
Database connection and management module.
A single PostgreSQL database shared by all organizations; tenancy is
expressed through organization_id columns and enforced by the services.
"""

from psycopg2 import errors, pool
import psycopg2.extras as extras
from psycopg2.extensions import connection as Connection
from contextlib import contextmanager
from typing import Generator, Optional, Dict, Any
import logging

from boardguru.config import settings
from boardguru.core.exceptions import AppException, DatabaseException, ValidationException

logger = logging.getLogger(__name__)

class DatabaseManager:
    """Owns the psycopg2 connection pool."""

    _instance: Optional["DatabaseManager"] = None
    _pool: Optional[pool.SimpleConnectionPool] = None

    def __new__(cls):
        """Singleton pattern for DatabaseManager."""
        if cls._instance is None:
            instance = super(DatabaseManager, cls).__new__(cls)
            instance._initialize_pool()
            cls._instance = instance
        return cls._instance

    def _initialize_pool(self) -> None:
        """Initialize the connection pool from settings.DATABASE_URL."""
        try:
            self._pool = pool.SimpleConnectionPool(
                minconn=settings.DB_POOL_MIN,
                maxconn=settings.DB_POOL_SIZE,
                dsn=settings.DATABASE_URL
            )
            logger.info("Database connection pool initialized successfully")
        except Exception as e:
            logger.error(f"Failed to initialize database pool: {str(e)}")
            raise DatabaseException(f"Database pool initialization failed: {str(e)}")

    @contextmanager
    def get_connection(self) -> Generator[Connection, None, None]:
        """
        Get a pooled connection.

        Commits when the block exits normally and rolls back otherwise.
        Application exceptions raised inside the block propagate unchanged;
        anything else is wrapped in DatabaseException.

        Yields:
            Database connection
        """
        connection = None
        try:
            if not self._pool:
                raise DatabaseException("Connection pool not initialized")

            connection = self._pool.getconn()
            extras.register_uuid(conn_or_curs=connection)
            yield connection
            connection.commit()

        except AppException:
            if connection:
                connection.rollback()
            raise
        except errors.InvalidTextRepresentation as e:
            if connection:
                connection.rollback()
            logger.warning(f"Rejected malformed value: {str(e).strip()}")
            raise ValidationException("Invalid identifier format")
        except Exception as e:
            if connection:
                connection.rollback()
            logger.error(f"Database error: {str(e)}")
            raise DatabaseException("Database operation failed")
        finally:
            if connection and self._pool:
                self._pool.putconn(connection)

    def execute_query(self, query: str, params: tuple = (), fetch_one: bool = False):
        """
        Execute a query and return dict rows.

        Args:
            query: SQL query string
            params: Query parameters
            fetch_one: Whether to fetch a single row

        Returns:
            A row dict, a list of row dicts, or None for statements without results
        """
        with self.get_connection() as conn:
            cursor = conn.cursor(cursor_factory=extras.RealDictCursor)
            try:
                cursor.execute(query, params)
                if cursor.description is None:
                    return None
                if fetch_one:
                    row = cursor.fetchone()
                    return dict(row) if row else None
                return [dict(row) for row in cursor.fetchall()]
            finally:
                cursor.close()

    def get_pool_status(self) -> Dict[str, Any]:
        """Get status of the connection pool."""
        return {
            "initialized": self._pool is not None,
            "closed": bool(self._pool.closed) if self._pool else True,
            "max_connections": settings.DB_POOL_SIZE
        }

    def check_connection(self) -> bool:
        """
        Run a trivial query against the database.

        Raises:
            DatabaseException: If the database cannot be reached
        """
        try:
            self.execute_query("SELECT 1 AS ok", fetch_one=True)
            return True
        except Exception as e:
            logger.error(f"Connection validation failed: {str(e)}")
            raise DatabaseException(f"Connection validation failed: {str(e)}")

    def close_pool(self) -> None:
        """Close all pooled connections."""
        if self._pool:
            self._pool.closeall()
            logger.info("Database connection pool closed")

def get_db_manager() -> DatabaseManager:
    """Get DatabaseManager singleton instance."""
    return DatabaseManager()
