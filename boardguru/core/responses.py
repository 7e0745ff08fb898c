"""
Response envelopes.

    {"success": true,  "data": ..., "metadata": {"timestamp", "status_code"}}
    {"success": true,  "data": [...], "pagination": {...}, "metadata": {...}}
    {"success": false, "error": {"code", "message", "details"}, "metadata": {...}}
"""

from typing import Any, Dict, List, Optional

from boardguru.core.time_utils import utc_now_iso


def _metadata(status_code: int) -> Dict[str, Any]:
    return {"timestamp": utc_now_iso(), "status_code": status_code}


def pagination(page: int, page_size: int, total_count: int) -> Dict[str, Any]:
    """Page counters for a 1-based page of `page_size` rows out of `total_count`."""
    total_pages = -(-total_count // page_size) if page_size else 0
    return {
        "page": page,
        "page_size": page_size,
        "total_count": total_count,
        "total_pages": total_pages,
        "has_next": page < total_pages,
        "has_prev": page > 1
    }


class ResponseHandler:
    """Builds the envelopes the routes return."""

    @staticmethod
    def success(data: Any = None, status_code: int = 200) -> Dict[str, Any]:
        return {"success": True, "data": data, "metadata": _metadata(status_code)}

    @staticmethod
    def list_response(
        data: List[Any],
        page: int,
        page_size: int,
        total_count: int,
        status_code: int = 200,
        extra: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """
        Paginated list. `extra` adds top-level keys next to the data,
        e.g. unread_count on the notification inbox.
        """
        response = {
            "success": True,
            "data": data,
            "pagination": pagination(page, page_size, total_count),
            "metadata": _metadata(status_code)
        }
        if extra:
            response.update(extra)
        return response

    @staticmethod
    def error(
        code: str,
        message: str,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        return {
            "success": False,
            "error": {"code": code, "message": message, "details": details or {}},
            "metadata": _metadata(status_code)
        }
