"""
Pydantic schemas for vaults, assets and annotations.
"""

from pydantic import BaseModel, Field, EmailStr, ConfigDict
from typing import Optional, List, Dict, Any
from datetime import datetime

from boardguru.schemas.common import UuidStr


class VaultCreateRequest(BaseModel):
    """Request schema for creating a vault."""

    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=1000)
    status: str = Field("draft", pattern="^(draft|active|archived|published)$")
    priority: str = Field("medium", pattern="^(low|medium|high|urgent)$")
    meeting_date: Optional[datetime] = None
    tags: List[str] = Field(default_factory=list)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "name": "November Board Pack",
                "description": "Papers for the November board meeting",
                "priority": "high",
                "meeting_date": "2026-11-05T14:00:00Z",
                "tags": ["board-pack", "q3"]
            }
        }
    )


class VaultUpdateRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=1000)
    status: Optional[str] = Field(None, pattern="^(draft|active|archived|published)$")
    priority: Optional[str] = Field(None, pattern="^(low|medium|high|urgent)$")
    meeting_date: Optional[datetime] = None
    tags: Optional[List[str]] = None


class VaultInviteRequest(BaseModel):
    user_ids: List[str] = Field(default_factory=list)
    emails: List[EmailStr] = Field(default_factory=list)
    role: str = Field("viewer", pattern="^(admin|editor|viewer)$")
    message: Optional[str] = Field(None, max_length=500)


class VaultAssetRequest(BaseModel):
    asset_id: UuidStr


class AssetUpdateRequest(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    category: Optional[str] = Field(None, max_length=50)
    tags: Optional[List[str]] = None


class AssetShareRequest(BaseModel):
    user_ids: List[str] = Field(..., min_length=1)
    permission: str = Field("view", pattern="^(view|download|edit)$")


class AnnotationCreateRequest(BaseModel):
    """Request schema for annotating a document page."""

    annotation_type: str = Field(..., pattern="^(highlight|comment|drawing|area)$")
    page_number: int = Field(..., ge=1)
    position: Dict[str, Any] = Field(default_factory=dict)
    selected_text: Optional[str] = None
    comment_text: Optional[str] = None
    color: str = Field("#FFFF00", pattern="^#[0-9A-Fa-f]{6}$")
    opacity: float = Field(0.3, ge=0, le=1)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "annotation_type": "comment",
                "page_number": 3,
                "position": {"x": 120, "y": 340, "width": 200, "height": 18},
                "selected_text": "capital expenditure",
                "comment_text": "Can we see the breakdown?",
                "color": "#FFD700",
                "opacity": 0.4
            }
        }
    )


class AnnotationUpdateRequest(BaseModel):
    comment_text: Optional[str] = None
    color: Optional[str] = Field(None, pattern="^#[0-9A-Fa-f]{6}$")
    opacity: Optional[float] = Field(None, ge=0, le=1)
    position: Optional[Dict[str, Any]] = None
    selected_text: Optional[str] = None


class AnnotationResolveRequest(BaseModel):
    resolved: bool = True


class ReplyCreateRequest(BaseModel):
    reply_text: str = Field(..., min_length=1, max_length=2000)
