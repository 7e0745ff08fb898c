"""
Security and authentication utilities.
Handles JWT tokens, password hashing and one-time secrets
(approval tokens, invitation tokens, OTP codes).
"""

from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
import hashlib
import hmac
import secrets
import jwt
from passlib.context import CryptContext
import logging

from boardguru.config import settings
from boardguru.core.exceptions import AuthenticationException

logger = logging.getLogger(__name__)

# New hashes use pbkdf2_sha256; bcrypt hashes from imported accounts still verify
pwd_context = CryptContext(schemes=["pbkdf2_sha256", "bcrypt"], deprecated="auto")

class JWTHandler:
    """
    Access tokens for the API. Claims: user_id, email, platform_role,
    plus iat/exp and the application name as issuer.
    """

    @staticmethod
    def create_token(
        data: Dict[str, Any],
        expires_delta: Optional[timedelta] = None
    ) -> str:
        issued_at = datetime.now(timezone.utc)
        claims = {
            **data,
            "iss": settings.APP_NAME,
            "iat": issued_at,
            "exp": issued_at + (expires_delta or timedelta(hours=settings.JWT_EXPIRATION_HOURS)),
        }
        try:
            return jwt.encode(claims, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)
        except jwt.PyJWTError as e:
            logger.error(f"Token creation failed for {data.get('user_id')}: {str(e)}")
            raise AuthenticationException("Failed to create authentication token")

    @staticmethod
    def verify_token(token: str) -> Dict[str, Any]:
        """
        Decode a token issued by this service.

        Raises:
            AuthenticationException: expired, tampered, foreign issuer or missing exp/iat
        """
        try:
            return jwt.decode(
                token,
                settings.JWT_SECRET_KEY,
                algorithms=[settings.JWT_ALGORITHM],
                issuer=settings.APP_NAME,
                options={"require": ["exp", "iat", "iss"]}
            )
        except jwt.ExpiredSignatureError:
            raise AuthenticationException("Token has expired")
        except jwt.InvalidTokenError:
            raise AuthenticationException("Invalid token")


class PasswordHandler:
    """Handles password hashing and verification."""

    @staticmethod
    def hash_password(password: str) -> str:
        return pwd_context.hash(password)

    @staticmethod
    def verify_password(plain_password: str, hashed_password: str) -> bool:
        return pwd_context.verify(plain_password, hashed_password)

class TokenGenerator:
    """Random secrets for emailed links and one-time codes."""

    @staticmethod
    def secure_token(num_bytes: int = 32) -> str:
        """Hex token; 32 bytes gives 64 characters."""
        return secrets.token_hex(num_bytes)

    @staticmethod
    def otp_code(length: int = 6) -> str:
        return "".join(str(secrets.randbelow(10)) for _ in range(length))

    @staticmethod
    def hash_code(code: str) -> str:
        return hashlib.sha256(code.encode("utf-8")).hexdigest()

    @staticmethod
    def tokens_match(supplied: Optional[str], stored: Optional[str]) -> bool:
        if not supplied or not stored:
            return False
        return hmac.compare_digest(supplied, stored)
