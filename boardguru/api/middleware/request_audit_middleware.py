"""
Request audit middleware.
Writes one api_request_logs row per API call: who called what, how long it
took, whether it succeeded and a redacted copy of the request payload.
Passwords, one-time codes and tokens never reach the table.
"""

from __future__ import annotations

import json
import time
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, Optional

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from boardguru.core.database import get_db_manager
from boardguru.core.exceptions import AuthenticationException, DatabaseException
from boardguru.core.security import JWTHandler
from psycopg2.extras import Json
import logging

logger = logging.getLogger(__name__)

SENSITIVE_KEYS = {
    "password",
    "password_hash",
    "token",
    "code",
    "access_token",
    "approval_token",
    "authorization",
    "secret",
}
REDACTED = "***redacted***"

INSERT_SQL = """
    INSERT INTO api_request_logs (
        request_id, request_path, request_method, start_time, duration_seconds,
        request_payload, response_status, success, error_message,
        user_id, client_ip, user_agent
    )
    VALUES (
        %(request_id)s, %(request_path)s, %(request_method)s, %(start_time)s, %(duration_seconds)s,
        %(request_payload)s, %(response_status)s, %(success)s, %(error_message)s,
        %(user_id)s, %(client_ip)s, %(user_agent)s
    )
"""


@dataclass
class AuditEntry:
    request_id: Optional[str]
    request_path: str
    request_method: str
    start_time: datetime
    duration_seconds: float
    request_payload: Optional[Any]
    response_status: int
    success: bool
    error_message: Optional[str]
    user_id: Optional[str]
    client_ip: Optional[str]
    user_agent: Optional[str]


def store_audit_entry(entry: AuditEntry) -> None:
    """Default sink: insert the entry into api_request_logs."""
    params = asdict(entry)
    params["request_payload"] = Json(entry.request_payload) if entry.request_payload is not None else None
    try:
        with get_db_manager().get_connection() as conn:
            conn.cursor().execute(INSERT_SQL, params)
    except DatabaseException:
        logger.exception(f"Failed to store audit entry for {entry.request_method} {entry.request_path}")


class RequestAuditMiddleware(BaseHTTPMiddleware):
    """
    Audits every request except exact matches in exclude_paths.
    `sink` receives the finished AuditEntry (database insert by default).
    """

    def __init__(
        self,
        app: ASGIApp,
        exclude_paths: Optional[Iterable[str]] = None,
        sink: Callable[[AuditEntry], None] = store_audit_entry,
    ) -> None:
        super().__init__(app)
        self.exclude_paths = set(exclude_paths or [])
        self.sink = sink

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.url.path in self.exclude_paths:
            return await call_next(request)

        started_at = datetime.now(timezone.utc)
        started = time.perf_counter()
        payload = await _get_request_payload(request)

        def record(status_code: int, success: bool, error: Optional[str]) -> None:
            self.sink(AuditEntry(
                request_id=getattr(request.state, "request_id", None),
                request_path=request.url.path,
                request_method=request.method,
                start_time=started_at,
                duration_seconds=round(time.perf_counter() - started, 6),
                request_payload=payload,
                response_status=status_code,
                success=success,
                error_message=error,
                user_id=_extract_user_id(request.headers.get("authorization")),
                client_ip=request.client.host if request.client else None,
                user_agent=request.headers.get("user-agent"),
            ))

        try:
            response = await call_next(request)
        except Exception as exc:
            record(500, False, str(exc))
            raise

        body, response = await _read_response_body(response)
        parsed = _safe_json_loads(body)
        record(
            response.status_code,
            _extract_success(response.status_code, parsed),
            _extract_error_message(response.status_code, parsed),
        )
        return response


async def _get_request_payload(request: Request) -> Optional[Dict[str, Any]]:
    """Query parameters for reads, the redacted JSON body for writes, a size summary for uploads."""
    query = _redact_data(dict(request.query_params)) if request.query_params else None
    if request.method in {"GET", "DELETE", "HEAD"}:
        return query

    body = await request.body()
    if not body:
        return query

    content_type = (request.headers.get("content-type") or "").lower()
    if content_type.startswith("multipart/"):
        return {"upload": True, "content_length": len(body), "query": query}

    parsed = _safe_json_loads(body)
    if isinstance(parsed, (dict, list)):
        return _redact_data(parsed)
    return {"content_type": content_type or None, "content_length": len(body)}


def _redact_data(payload: Any) -> Any:
    if isinstance(payload, dict):
        return {
            key: REDACTED if isinstance(key, str) and key.lower() in SENSITIVE_KEYS else _redact_data(value)
            for key, value in payload.items()
        }
    if isinstance(payload, list):
        return [_redact_data(item) for item in payload]
    return payload


def _extract_user_id(auth_header: Optional[str]) -> Optional[str]:
    scheme, _, token = (auth_header or "").partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    try:
        user_id = JWTHandler.verify_token(token.strip()).get("user_id")
    except AuthenticationException:
        return None
    return str(user_id) if user_id is not None else None


async def _read_response_body(response: Response) -> tuple[bytes, Response]:
    """Drain the streamed body so it can be inspected, and rebuild the response."""
    chunks = [chunk async for chunk in response.body_iterator]
    body = b"".join(chunks)
    return body, Response(
        content=body,
        status_code=response.status_code,
        headers=dict(response.headers),
        media_type=response.media_type,
    )


def _safe_json_loads(payload: Any) -> Any:
    if not payload:
        return None
    if isinstance(payload, bytes):
        payload = payload.decode("utf-8", errors="ignore")
    try:
        return json.loads(payload)
    except ValueError:
        return None


def _extract_success(status_code: int, payload: Any) -> bool:
    if isinstance(payload, dict) and isinstance(payload.get("success"), bool):
        return payload["success"]
    return status_code < 400


def _extract_error_message(status_code: int, payload: Any) -> Optional[str]:
    """Error text from our envelope ({"error": {"message"}}) or FastAPI's {"detail"}."""
    if status_code < 400 or not isinstance(payload, dict):
        return None
    error = payload.get("error")
    if isinstance(error, dict) and isinstance(error.get("message"), str):
        return error["message"]
    detail = payload.get("detail")
    if isinstance(detail, str) and detail.strip():
        return detail
    if isinstance(detail, list) and detail:
        # pydantic validation errors
        return "; ".join(str(item.get("msg", item)) for item in detail if isinstance(item, dict)) or None
    return None
