"""
Registration Service.
Access requests are reviewed by a platform administrator, either from the
admin console or through the signed approve/reject links emailed to the
administrator. Approval creates the user account and emails a first-login
code.
"""

from typing import Any, Dict, List, Optional
import re
import uuid
import logging

from boardguru.config import settings
from boardguru.core import email_templates
from boardguru.core.auth_service import AuthService
from boardguru.core.email_service import EmailService
from boardguru.core.exceptions import (
    AppException,
    AuthenticationException,
    ConflictException,
    DatabaseException,
    NotFoundException,
    ValidationException
)
from boardguru.core.security import TokenGenerator
from boardguru.core.time_utils import expires_in, is_expired, utc_now_iso
from boardguru.repositories.registration_repository import RegistrationRepository
from boardguru.repositories.user_repository import UserRepository

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class RegistrationService:
    """Submission and admin review of registration requests."""

    def __init__(
        self,
        registration_repo: RegistrationRepository,
        user_repo: UserRepository,
        auth_service: AuthService,
        email_service: EmailService
    ):
        self.registration_repo = registration_repo
        self.user_repo = user_repo
        self.auth_service = auth_service
        self.email_service = email_service

    @staticmethod
    def validate_registration(
        email: str,
        full_name: str,
        company: str,
        position: str,
        message: Optional[str] = None
    ) -> None:
        """
        Raises:
            ValidationException: Listing every invalid field in details
        """
        errors: Dict[str, str] = {}
        if not email or not EMAIL_PATTERN.match(email):
            errors["email"] = "A valid email address is required"
        for field, value in (("full_name", full_name), ("company", company), ("position", position)):
            length = len((value or "").strip())
            if length < 2 or length > 100:
                errors[field] = "Must be between 2 and 100 characters"
        if message and len(message) > 500:
            errors["message"] = "Must be at most 500 characters"
        if errors:
            raise ValidationException("Invalid registration data provided", details=errors)

    def submit_registration(
        self,
        email: str,
        full_name: str,
        company: str,
        position: str,
        message: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Submit (or resubmit after rejection) a registration request.

        Returns:
            Dict with registration_id, email, status (submitted or resubmitted) and message

        Raises:
            ValidationException: Invalid fields
            ConflictException: A pending or approved request already exists for the email
        """
        self.validate_registration(email, full_name, company, position, message)
        email = email.strip().lower()

        details = {
            "full_name": full_name.strip(),
            "company": company.strip(),
            "position": position.strip(),
            "message": message,
            "approval_token": TokenGenerator.secure_token(),
            "token_expires_at": expires_in(hours=settings.APPROVAL_TOKEN_HOURS),
        }

        try:
            existing = self.registration_repo.get_by_email(email)
            if existing and existing["status"] == "pending":
                raise ConflictException("A registration request for this email is already pending review")
            if existing and existing["status"] == "approved":
                raise ConflictException("This email has already been approved. Please sign in.")

            if existing:
                registration = self.registration_repo.update(existing["registration_id"], {
                    **details,
                    "status": "pending",
                    "reviewed_by": None,
                    "reviewed_at": None,
                    "rejection_reason": None,
                })
                is_resubmission = True
            else:
                registration = self.registration_repo.create({
                    "registration_id": str(uuid.uuid4()),
                    "email": email,
                    "status": "pending",
                    **details,
                })
                is_resubmission = False

        except AppException:
            raise
        except Exception as e:
            logger.error(f"Failed to store registration for {email}: {str(e)}")
            raise DatabaseException("Failed to submit registration")

        self._send_submission_emails(registration, details["approval_token"])

        logger.info(
            f"Registration {'resubmitted' if is_resubmission else 'submitted'}: "
            f"{email} ({registration['company']})"
        )
        return {
            "registration_id": registration["registration_id"],
            "email": registration["email"],
            "status": "resubmitted" if is_resubmission else "submitted",
            "message": (
                "Your registration request has been resubmitted successfully"
                if is_resubmission
                else "Your registration request has been submitted successfully"
            ),
        }

    def approve_registration(
        self,
        registration_id: str,
        approved_by: str,
        token: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Approve a pending request and create the user account.

        If creating the account fails the request goes back to pending so it
        can be approved again.
        """
        registration = self._get_reviewable(registration_id, token)

        self.registration_repo.update(registration_id, {
            "status": "approved",
            "reviewed_by": approved_by,
            "reviewed_at": utc_now_iso(),
            "approval_token": None,
            "token_expires_at": None,
        })

        try:
            user = self._ensure_user(registration)
        except Exception as e:
            logger.error(f"User creation failed for {registration['email']}, reverting approval: {str(e)}")
            self.registration_repo.update(registration_id, {
                "status": "pending",
                "reviewed_by": None,
                "reviewed_at": None,
                "approval_token": registration.get("approval_token"),
                "token_expires_at": registration.get("token_expires_at"),
            })
            if isinstance(e, AppException):
                raise
            raise DatabaseException("Failed to create user account")

        self.registration_repo.update(registration_id, {"user_id": user["user_id"]})

        otp_code = None
        try:
            otp_code = self.auth_service.create_login_code(registration["email"])
        except Exception as e:
            logger.error(f"Failed to issue login code for {registration['email']}: {str(e)}")

        subject, html = email_templates.registration_approved(registration, otp_code)
        if not self.email_service.send_email(registration["email"], subject, html):
            logger.warning(f"Approval email not delivered to {registration['email']}")

        logger.info(f"Registration approved: {registration['email']} by {approved_by}")
        return {
            "registration_id": registration_id,
            "email": registration["email"],
            "status": "approved",
            "user_id": user["user_id"],
            "message": f"Registration for {registration['full_name']} approved",
        }

    def reject_registration(
        self,
        registration_id: str,
        rejected_by: str,
        reason: Optional[str] = None,
        token: Optional[str] = None
    ) -> Dict[str, Any]:
        registration = self._get_reviewable(registration_id, token)

        self.registration_repo.update(registration_id, {
            "status": "rejected",
            "reviewed_by": rejected_by,
            "reviewed_at": utc_now_iso(),
            "rejection_reason": reason,
            "approval_token": None,
            "token_expires_at": None,
        })

        subject, html = email_templates.registration_rejected(registration, reason)
        if not self.email_service.send_email(registration["email"], subject, html):
            logger.warning(f"Rejection email not delivered to {registration['email']}")

        logger.info(f"Registration rejected: {registration['email']} by {rejected_by}")
        return {
            "registration_id": registration_id,
            "email": registration["email"],
            "status": "rejected",
            "message": f"Registration for {registration['full_name']} rejected",
        }

    def list_pending_registrations(self) -> List[Dict[str, Any]]:
        return [self._public(r) for r in self.registration_repo.list_by_status("pending")]

    def get_registration(self, registration_id: str) -> Dict[str, Any]:
        registration = self.registration_repo.get_by_id(registration_id)
        if not registration:
            raise NotFoundException("Registration request", registration_id)
        return self._public(registration)

    def _get_reviewable(self, registration_id: str, token: Optional[str]) -> Dict[str, Any]:
        registration = self.registration_repo.get_by_id(registration_id)

        if token is not None:
            valid = (
                registration is not None
                and TokenGenerator.tokens_match(token, registration.get("approval_token"))
                and not is_expired(registration.get("token_expires_at"))
            )
            if not valid:
                raise AuthenticationException("Invalid or expired approval token")

        if not registration:
            raise NotFoundException("Registration request", registration_id)
        if registration["status"] != "pending":
            raise ConflictException(f"Registration has already been {registration['status']}")
        return registration

    def _ensure_user(self, registration: Dict[str, Any]) -> Dict[str, Any]:
        existing = self.user_repo.get_by_email(registration["email"])
        if existing:
            logger.info(f"Reusing existing user account for {registration['email']}")
            return existing
        return self.user_repo.create({
            "user_id": str(uuid.uuid4()),
            "email": registration["email"],
            "full_name": registration["full_name"],
            "company": registration["company"],
            "position": registration["position"],
            "platform_role": "user",
            "status": "pending_password",
        })

    def _send_submission_emails(self, registration: Dict[str, Any], approval_token: str) -> None:
        urls = email_templates.approval_urls(registration["registration_id"], approval_token)
        subject, html = email_templates.admin_registration_notice(
            registration, urls["approve_url"], urls["reject_url"]
        )
        if not self.email_service.send_email(settings.ADMIN_EMAIL, subject, html):
            logger.warning(f"Admin notification for {registration['email']} not delivered")

        subject, html = email_templates.registration_received(registration)
        if not self.email_service.send_email(registration["email"], subject, html):
            logger.warning(f"Confirmation email to {registration['email']} not delivered")

    @staticmethod
    def _public(registration: Dict[str, Any]) -> Dict[str, Any]:
        return {k: v for k, v in registration.items() if k != "approval_token"}
