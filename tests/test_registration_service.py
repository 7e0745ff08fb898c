import pytest

from boardguru.config import settings
from boardguru.core.exceptions import (
    AuthenticationException,
    ConflictException,
    NotFoundException,
    ValidationException
)
from boardguru.core.time_utils import utc_now_iso


def submit(service, email="jane@board.test"):
    return service.submit_registration(email, "Jane Director", "Acme", "Chair", "Please add me")


def stored(backend, registration_id):
    return backend.registrations.rows[registration_id]


class TestSubmitRegistration:
    def test_new_request_is_pending_with_token(self, backend):
        result = submit(backend.registration_service(), "Jane@Board.test")

        assert result["status"] == "submitted"
        assert result["email"] == "jane@board.test"
        row = stored(backend, result["registration_id"])
        assert row["status"] == "pending"
        assert len(row["approval_token"]) == 64

    def test_admin_and_applicant_are_emailed(self, backend):
        result = submit(backend.registration_service())
        token = stored(backend, result["registration_id"])["approval_token"]

        admin_mail = backend.email.sent_to(settings.ADMIN_EMAIL)
        assert len(admin_mail) == 1
        assert token in admin_mail[0]["html"]
        assert len(backend.email.sent_to("jane@board.test")) == 1

    def test_email_failure_does_not_fail_submission(self, backend):
        backend.email.deliver = False
        result = submit(backend.registration_service())
        assert result["status"] == "submitted"

    def test_invalid_fields_are_reported_together(self, backend):
        with pytest.raises(ValidationException) as exc:
            backend.registration_service().submit_registration("not-an-email", "J", "Acme", "", "x" * 501)
        assert set(exc.value.details) == {"email", "full_name", "position", "message"}

    def test_pending_request_conflicts(self, backend):
        service = backend.registration_service()
        submit(service)
        with pytest.raises(ConflictException, match="already pending"):
            submit(service)

    def test_approved_request_conflicts(self, backend):
        service = backend.registration_service()
        result = submit(service)
        service.approve_registration(result["registration_id"], "admin-1")
        with pytest.raises(ConflictException, match="already been approved"):
            submit(service)

    def test_rejected_request_can_be_resubmitted(self, backend):
        service = backend.registration_service()
        first = submit(service)
        old_token = stored(backend, first["registration_id"])["approval_token"]
        service.reject_registration(first["registration_id"], "admin-1", "Incomplete")

        again = submit(service)

        assert again["status"] == "resubmitted"
        assert again["registration_id"] == first["registration_id"]
        row = stored(backend, first["registration_id"])
        assert row["status"] == "pending"
        assert row["rejection_reason"] is None
        assert row["approval_token"] != old_token


class TestReviewRegistration:
    def test_approval_creates_user_and_emails_login_code(self, backend):
        service = backend.registration_service()
        result = submit(service)

        approved = service.approve_registration(result["registration_id"], "admin-1")

        user = backend.users.get_by_email("jane@board.test")
        assert approved["user_id"] == user["user_id"]
        assert user["status"] == "pending_password"
        row = stored(backend, result["registration_id"])
        assert row["status"] == "approved"
        assert row["approval_token"] is None
        assert row["user_id"] == user["user_id"]
        assert backend.otps.get_latest_active("jane@board.test", "first_login") is not None
        assert len(backend.email.sent_to("jane@board.test")) == 2

    def test_approval_reuses_existing_user(self, backend):
        existing = backend.add_user("jane@board.test", "Jane Director")
        service = backend.registration_service()
        result = submit(service)

        approved = service.approve_registration(result["registration_id"], "admin-1")

        assert approved["user_id"] == existing["user_id"]
        assert len(backend.users.users) == 1

    def test_token_review(self, backend):
        service = backend.registration_service()
        result = submit(service)
        token = stored(backend, result["registration_id"])["approval_token"]

        rejected = service.reject_registration(result["registration_id"], "email-link", token=token)
        assert rejected["status"] == "rejected"

    def test_wrong_token_is_rejected(self, backend):
        service = backend.registration_service()
        result = submit(service)
        with pytest.raises(AuthenticationException):
            service.approve_registration(result["registration_id"], "email-link", token="0" * 64)
        assert stored(backend, result["registration_id"])["status"] == "pending"

    def test_expired_token_is_rejected(self, backend):
        service = backend.registration_service()
        result = submit(service)
        row = stored(backend, result["registration_id"])
        row["token_expires_at"] = utc_now_iso()
        with pytest.raises(AuthenticationException):
            service.approve_registration(result["registration_id"], "email-link", token=row["approval_token"])

    def test_reviewing_twice_conflicts(self, backend):
        service = backend.registration_service()
        result = submit(service)
        service.reject_registration(result["registration_id"], "admin-1")
        with pytest.raises(ConflictException, match="already been rejected"):
            service.approve_registration(result["registration_id"], "admin-1")

    def test_unknown_registration(self, backend):
        with pytest.raises(NotFoundException):
            backend.registration_service().approve_registration("missing", "admin-1")

    def test_failed_user_creation_reverts_to_pending(self, backend, monkeypatch):
        service = backend.registration_service()
        result = submit(service)
        token = stored(backend, result["registration_id"])["approval_token"]

        def broken_create(user):
            raise RuntimeError("users table unavailable")
        monkeypatch.setattr(backend.users, "create", broken_create)

        with pytest.raises(Exception):
            service.approve_registration(result["registration_id"], "admin-1")
        row = stored(backend, result["registration_id"])
        assert row["status"] == "pending"
        assert row["reviewed_by"] is None
        assert row["approval_token"] == token
        assert row["token_expires_at"] is not None

        monkeypatch.undo()
        approved = service.approve_registration(result["registration_id"], "email-link", token=token)
        assert approved["status"] == "approved"

    def test_pending_list_hides_tokens(self, backend):
        service = backend.registration_service()
        submit(service, "a@board.test")
        submit(service, "b@board.test")

        pending = service.list_pending_registrations()

        assert {r["email"] for r in pending} == {"a@board.test", "b@board.test"}
        assert all("approval_token" not in r for r in pending)
