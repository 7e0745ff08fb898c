"""
Pydantic schemas for organization endpoints.
"""

from pydantic import BaseModel, Field, EmailStr, field_validator, ConfigDict
from typing import Optional, List, Dict, Any


class OrganizationCreateRequest(BaseModel):
    """Request schema for creating an organization."""

    name: str = Field(..., min_length=1, max_length=100)
    slug: str = Field(..., min_length=3, max_length=50, description="URL identifier")
    description: Optional[str] = Field(None, max_length=500)
    industry: Optional[str] = None
    size: Optional[str] = Field(None, pattern="^(startup|small|medium|large|enterprise)$")
    website: Optional[str] = None
    settings: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("slug")
    @classmethod
    def normalize_slug(cls, v: str) -> str:
        return v.strip().lower()

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "name": "Acme Corporation",
                "slug": "acme-corp",
                "description": "Board of directors workspace",
                "industry": "Manufacturing",
                "size": "medium"
            }
        }
    )


class OrganizationUpdateRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    slug: Optional[str] = Field(None, min_length=3, max_length=50)
    description: Optional[str] = Field(None, max_length=500)
    industry: Optional[str] = None
    size: Optional[str] = Field(None, pattern="^(startup|small|medium|large|enterprise)$")
    website: Optional[str] = None
    settings: Optional[Dict[str, Any]] = None


class InviteMemberRequest(BaseModel):
    email: EmailStr
    role: str = Field("member", pattern="^(admin|member|viewer|guest)$")
    message: Optional[str] = Field(None, max_length=500)


class BulkInviteRequest(BaseModel):
    invitations: List[InviteMemberRequest] = Field(..., min_length=1, max_length=100)


class AcceptInvitationRequest(BaseModel):
    token: str = Field(..., min_length=1)


class MemberUpdateRequest(BaseModel):
    role: Optional[str] = Field(None, pattern="^(owner|admin|member|viewer|guest)$")
    status: Optional[str] = Field(None, pattern="^(active|invited|suspended)$")


class BulkActionRequest(BaseModel):
    """Request schema for actions over several organizations."""

    action: str = Field(..., pattern="^(export|archive|share|delete)$")
    organization_ids: List[str] = Field(..., min_length=1, max_length=100)
    emails: List[EmailStr] = Field(default_factory=list, description="Recipients for share")
    permission: str = Field("view", pattern="^(view|edit|admin)$")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "action": "share",
                "organization_ids": ["550e8400-e29b-41d4-a716-446655440000"],
                "emails": ["director@acme.com"],
                "permission": "view"
            }
        }
    )
