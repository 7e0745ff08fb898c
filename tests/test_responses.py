import pytest

from boardguru.core.exceptions import ConflictException, NotFoundException
from boardguru.core.responses import ResponseHandler, pagination


@pytest.mark.parametrize("page,total,pages,has_next", [
    (1, 0, 0, False),
    (1, 20, 1, False),
    (1, 21, 2, True),
    (3, 45, 3, False),
])
def test_pagination(page, total, pages, has_next):
    result = pagination(page, 20, total)
    assert result["total_pages"] == pages
    assert result["has_next"] is has_next
    assert result["has_prev"] is (page > 1)


def test_list_response_extra_keys():
    body = ResponseHandler.list_response([{"id": 1}], 1, 20, 1, extra={"unread_count": 4})
    assert body["unread_count"] == 4
    assert body["pagination"]["total_count"] == 1


def test_error_envelope_from_exception():
    exc = ConflictException("Organization slug is not available", {"slug": "acme"})
    body = ResponseHandler.error(exc.error_code, exc.message, exc.status_code, exc.details)

    assert body["success"] is False
    assert body["error"] == {"code": "CONFLICT", "message": "Organization slug is not available",
                             "details": {"slug": "acme"}}
    assert body["metadata"]["status_code"] == 409


def test_not_found_message():
    exc = NotFoundException("Vault", "v-1")
    assert (exc.status_code, exc.message) == (404, "Vault not found: v-1")
    assert exc.details == {"resource_type": "Vault", "resource_id": "v-1"}
