"""
Authentication Service.
Password login, first-login one-time codes and password setup.
"""

from typing import Any, Dict
import uuid
import logging

from boardguru.config import settings
from boardguru.core.exceptions import (
    AuthenticationException,
    NotFoundException,
    ValidationException
)
from boardguru.core.security import JWTHandler, PasswordHandler, TokenGenerator
from boardguru.core.time_utils import expires_in, utc_now_iso
from boardguru.repositories.user_repository import OtpRepository, UserRepository

logger = logging.getLogger(__name__)

FIRST_LOGIN = "first_login"
MIN_PASSWORD_LENGTH = 8


class AuthService:
    """Authentication for platform users."""

    def __init__(self, user_repo: UserRepository, otp_repo: OtpRepository):
        self.user_repo = user_repo
        self.otp_repo = otp_repo

    @staticmethod
    def issue_token(user: Dict[str, Any]) -> Dict[str, Any]:
        token = JWTHandler.create_token({
            "user_id": str(user["user_id"]),
            "email": user["email"],
            "platform_role": user.get("platform_role", "user"),
        })
        return {
            "access_token": token,
            "token_type": "bearer",
            "expires_in": settings.JWT_EXPIRATION_HOURS * 3600,
            "user": {
                "user_id": str(user["user_id"]),
                "email": user["email"],
                "full_name": user.get("full_name"),
                "platform_role": user.get("platform_role", "user"),
                "status": user.get("status"),
            },
        }

    def login(self, email: str, password: str) -> Dict[str, Any]:
        """
        Exchange email and password for an access token.

        Raises:
            AuthenticationException: Unknown user, no password set, wrong password
                or suspended account
        """
        user = self.user_repo.get_by_email(email, include_secret=True)
        if not user or not user.get("password_hash"):
            raise AuthenticationException("Invalid credentials")
        if not PasswordHandler.verify_password(password, user["password_hash"]):
            raise AuthenticationException("Invalid credentials")
        if user["status"] == "suspended":
            raise AuthenticationException("User account is suspended")

        self.user_repo.update(user["user_id"], {"last_login": utc_now_iso()})
        logger.info(f"User logged in: {user['email']}")
        return self.issue_token(user)

    def create_login_code(self, email: str, purpose: str = FIRST_LOGIN) -> str:
        """Issue a fresh code, invalidating earlier unused ones. Returns the plain code."""
        self.otp_repo.invalidate(email, purpose)
        code = TokenGenerator.otp_code()
        self.otp_repo.create({
            "otp_id": str(uuid.uuid4()),
            "email": email.lower(),
            "code_hash": TokenGenerator.hash_code(code),
            "purpose": purpose,
            "expires_at": expires_in(hours=settings.OTP_EXPIRATION_HOURS),
        })
        logger.info(f"Issued {purpose} code for {email}")
        return code

    def login_with_code(self, email: str, code: str) -> Dict[str, Any]:
        """
        Sign in with the one-time code emailed on approval.

        The code is single use. More than OTP_MAX_ATTEMPTS wrong guesses burn it.
        """
        otp = self.otp_repo.get_latest_active(email, FIRST_LOGIN)
        if not otp:
            raise AuthenticationException("Invalid or expired code")

        if not TokenGenerator.tokens_match(TokenGenerator.hash_code(code), otp["code_hash"]):
            attempts = self.otp_repo.increment_attempts(otp["otp_id"])
            if attempts > settings.OTP_MAX_ATTEMPTS:
                self.otp_repo.mark_used(otp["otp_id"])
                logger.warning(f"Login code for {email} burned after {attempts} failed attempts")
            raise AuthenticationException("Invalid or expired code")

        user = self.user_repo.get_by_email(email)
        if not user:
            raise AuthenticationException("Invalid or expired code")
        if user["status"] == "suspended":
            raise AuthenticationException("User account is suspended")

        self.otp_repo.mark_used(otp["otp_id"])
        self.user_repo.update(user["user_id"], {"last_login": utc_now_iso()})

        result = self.issue_token(user)
        result["requires_password_setup"] = user["status"] == "pending_password"
        return result

    def set_password(self, user_id: str, password: str) -> Dict[str, Any]:
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationException(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")

        user = self.user_repo.get_by_id(user_id)
        if not user:
            raise NotFoundException("User", user_id)

        fields = {"password_hash": PasswordHandler.hash_password(password)}
        if user["status"] == "pending_password":
            fields["status"] = "active"
        updated = self.user_repo.update(user_id, fields)
        logger.info(f"Password set for user {user_id}")
        return updated

    def get_profile(self, user_id: str) -> Dict[str, Any]:
        user = self.user_repo.get_by_id(user_id)
        if not user:
            raise NotFoundException("User", user_id)
        return user
