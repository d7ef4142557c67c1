from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import Optional, List, Dict, Any
from datetime import datetime

from thesishub.models.user import UserRole


class UserResponse(BaseModel):
    """Own profile, includes private fields"""
    id: str
    email: str
    name: str
    role: Optional[UserRole] = None
    is_admin: bool = False
    photo_url: Optional[str] = None
    bio: Optional[str] = None
    location: Optional[str] = None
    website: Optional[str] = None
    department: Optional[str] = None
    skills: List[str] = []
    designation: Optional[str] = None
    research_areas: List[str] = []
    office_hours: Optional[str] = None
    max_students: int = 5
    social_links: Dict[str, Any] = {}
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @field_validator("skills", "research_areas", mode="before")
    @classmethod
    def none_to_list(cls, v):
        return v or []

    @field_validator("social_links", mode="before")
    @classmethod
    def none_to_dict(cls, v):
        return v or {}


class PublicUserResponse(BaseModel):
    """Profile fields visible to anyone"""
    id: str
    name: str
    role: Optional[UserRole] = None
    photo_url: Optional[str] = None
    bio: Optional[str] = None
    location: Optional[str] = None
    website: Optional[str] = None
    department: Optional[str] = None
    designation: Optional[str] = None
    research_areas: List[str] = []
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_validator("research_areas", mode="before")
    @classmethod
    def none_to_list(cls, v):
        return v or []


class UserUpsert(BaseModel):
    """Sent by the frontend right after sign-in"""
    name: Optional[str] = Field(None, max_length=100)
    photo_url: Optional[str] = Field(None, max_length=500)
    role: Optional[UserRole] = None


class ProfileUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=100)
    photo_url: Optional[str] = Field(None, max_length=500)
    bio: Optional[str] = Field(None, max_length=500)
    location: Optional[str] = Field(None, max_length=100)
    website: Optional[str] = Field(None, max_length=200)
    department: Optional[str] = Field(None, max_length=100)
    skills: Optional[List[str]] = Field(None, max_length=30)


class SupervisorProfileUpdate(BaseModel):
    designation: Optional[str] = Field(None, max_length=100)
    department: Optional[str] = Field(None, max_length=100)
    bio: Optional[str] = Field(None, max_length=500)
    research_areas: Optional[List[str]] = Field(None, max_length=20)
    office_hours: Optional[str] = Field(None, max_length=200)
    max_students: Optional[int] = Field(None, ge=0, le=100)
    social_links: Optional[Dict[str, str]] = None
    photo_url: Optional[str] = Field(None, max_length=500)
