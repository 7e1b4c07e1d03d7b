"""Pydantic schemas for user endpoints."""
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from models.enums import AuthProvider, Cuisine, DietaryRestriction, SkillLevel


class ProviderInfo(BaseModel):
    provider_id: AuthProvider
    uid: str | None = None
    email: str | None = None


class IdentityHints(BaseModel):
    """
    Profile data reported by the identity provider at sign-in.

    email is required by the resolver; it is optional here so the service,
    not the schema, decides and reports the error kind.
    """

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    email: str | None = None
    display_name: str | None = Field(default=None, max_length=100)
    photo_url: str | None = None
    email_verified: bool | None = None
    providers: list[ProviderInfo] | None = None


class ProfileUpdate(BaseModel):
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    bio: str | None = Field(default=None, max_length=500)
    location: str | None = Field(default=None, max_length=100)
    website: str | None = Field(default=None, max_length=200)
    dietary_restrictions: list[DietaryRestriction] | None = None
    # "other" is a recipe classification, not a preference
    cuisine_preferences: list[Cuisine] | None = None
    skill_level: SkillLevel | None = None


class PreferencesUpdate(BaseModel):
    model_config = ConfigDict(extra="ignore")

    is_public: bool | None = None
    allow_followers: bool | None = None
    email_notifications: bool | None = None
    push_notifications: bool | None = None


class UserProfile(BaseModel):
    bio: str
    location: str
    website: str
    dietary_restrictions: list[DietaryRestriction]
    cuisine_preferences: list[Cuisine]
    skill_level: SkillLevel


class UserStats(BaseModel):
    recipes_created: int
    recipes_liked: int
    followers: int
    following: int


class UserPreferences(BaseModel):
    is_public: bool
    allow_followers: bool
    email_notifications: bool
    push_notifications: bool


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    subject: str
    email: str
    display_name: str
    photo_url: str | None
    email_verified: bool
    providers: list[ProviderInfo]
    profile: UserProfile
    stats: UserStats
    preferences: UserPreferences
    is_active: bool
    last_login_at: datetime
    created_at: datetime
    updated_at: datetime


class ResolveIdentityResponse(BaseModel):
    user: UserResponse
    created: bool  # True when this call created the user
