"""
Pydantic schemas for authentication and registration endpoints.
"""

from pydantic import BaseModel, Field, EmailStr, ConfigDict
from typing import Optional


class RegistrationCreateRequest(BaseModel):
    """Request schema for an access request.

    Field rules are enforced by the registration service so that every
    invalid field is reported together.
    """

    email: str = Field(..., description="Applicant email")
    full_name: str = Field(..., description="Applicant full name")
    company: str = Field(..., description="Company or organization")
    position: str = Field(..., description="Job title")
    message: Optional[str] = Field(None, description="Optional note to the reviewer")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "email": "jane.doe@acme.com",
                "full_name": "Jane Doe",
                "company": "Acme Corporation",
                "position": "Company Secretary",
                "message": "We would like to trial BoardGuru for our next board cycle."
            }
        }
    )


class RegistrationRejectRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=500)


class LoginRequest(BaseModel):
    """Request schema for password login."""

    email: EmailStr = Field(..., description="Email")
    password: str = Field(..., description="Password")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "email": "jane.doe@acme.com",
                "password": "securepassword123"
            }
        }
    )


class OtpLoginRequest(BaseModel):
    """Request schema for signing in with the emailed one-time code."""

    email: EmailStr
    code: str = Field(..., min_length=6, max_length=6, pattern=r"^\d{6}$")


class SetPasswordRequest(BaseModel):
    password: str = Field(..., min_length=8, description="New password")
