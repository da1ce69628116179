"""
Account Schemas - Pydantic models for account data validation and serialization.

JSON payloads use camelCase keys (``firstName``, ``contributorProfile``); the
models accept either camelCase or snake_case and always serialize by alias.
"""
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

from .models import AccountRole, Gender

MIN_PASSWORD_LENGTH = 6


class CamelModel(BaseModel):
    """Base schema with camelCase aliases."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


def _strip(value):
    if isinstance(value, str):
        return value.strip()
    return value


# ============================================================================
# ROLE-SPECIFIC PROFILES
# ============================================================================

class ContributorProfile(CamelModel):
    """
    Contributor Profile Schema - Stage 2 data for contributors

    Fields:
    - expertise: Area of expertise
    - bio: Short biography
    - country_of_residence: Country the contributor lives in
    - organization_name, job_title, organization_type: Organization details
    """
    expertise: Optional[str] = None
    bio: Optional[str] = None
    country_of_residence: Optional[str] = None
    organization_name: Optional[str] = None
    job_title: Optional[str] = None
    organization_type: Optional[str] = None


class ParticipantProfile(CamelModel):
    """
    Participant Profile Schema - Stage 2 data for participants

    Covers interests and goals, origin and language, education, employment
    and availability.
    """
    interests: Optional[List[str]] = None
    about: Optional[str] = None
    goals: Optional[str] = None
    country_of_residence: Optional[str] = None
    country_of_birth: Optional[str] = None
    place_of_birth: Optional[str] = None
    ethnic_group: Optional[str] = None
    language: Optional[str] = None
    language_fluent: Optional[List[str]] = None
    regional_dialect: Optional[str] = None
    education_level: Optional[str] = None
    education_current_status: Optional[str] = None
    education_field_of_study: Optional[str] = None
    education_year_completed: Optional[str] = None
    employment_status: Optional[str] = None
    employment_years_experience: Optional[float] = Field(None, ge=0)
    employment_sector: Optional[str] = None
    employment_industry: Optional[str] = None
    employment_job_title: Optional[str] = None
    linked_in_profile: Optional[str] = None
    availability_to_participate: Optional[str] = None
    participate_hours_per_week: Optional[float] = Field(None, ge=0)
    currency: Optional[str] = None


PROFILE_SCHEMAS = {
    "contributor_profile": ContributorProfile,
    "participant_profile": ParticipantProfile,
}


# ============================================================================
# REQUESTS
# ============================================================================

class AccountCreate(CamelModel):
    """
    Account Creation Schema - Stage 1 registration data

    Fields:
    - first_name, last_name, email, password, role: always required
    - gender, date_of_birth, identity_document, supporting_document, phone_number:
      demographic fields, required only when the deployment asks for them at stage 1
    - contributor_profile / participant_profile: optional early profile data;
      only the one matching role is kept
    """
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    email: EmailStr
    password: str
    role: AccountRole
    gender: Optional[Gender] = None
    date_of_birth: Optional[date] = None
    identity_document: Optional[str] = None
    supporting_document: Optional[str] = None
    phone_number: Optional[str] = None
    contributor_profile: Optional[ContributorProfile] = None
    participant_profile: Optional[ParticipantProfile] = None

    @field_validator(
        "first_name", "last_name", "phone_number", "identity_document", "supporting_document",
        mode="before",
    )
    @classmethod
    def strip_text(cls, value):
        return _strip(value)

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value):
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("password")
    @classmethod
    def check_password_length(cls, value: str) -> str:
        if len(value) < MIN_PASSWORD_LENGTH:
            raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
        return value

    @field_validator("gender", "role", mode="before")
    @classmethod
    def lower_enum(cls, value):
        if isinstance(value, str):
            return value.strip().lower()
        return value


class LoginRequest(BaseModel):
    """
    Login Schema - Used for authentication

    Both fields are optional at the schema level so that a missing value
    produces the login-specific error instead of a generic validation error.
    """
    email: Optional[str] = None
    password: Optional[str] = None


class ResendVerificationRequest(BaseModel):
    """
    Resend Verification Schema - Used to resend verification email

    Fields:
    - email: Account email address
    """
    email: EmailStr


class CompleteProfileRequest(CamelModel):
    """
    Profile Completion Schema - Stage 2 data

    Only the profile matching the account's role is applied. Demographic
    fields deferred from stage 1 may be supplied here as well.
    """
    contributor_profile: Optional[ContributorProfile] = None
    participant_profile: Optional[ParticipantProfile] = None
    gender: Optional[Gender] = None
    date_of_birth: Optional[date] = None
    identity_document: Optional[str] = None
    supporting_document: Optional[str] = None
    phone_number: Optional[str] = None

    @field_validator("phone_number", "identity_document", "supporting_document", mode="before")
    @classmethod
    def strip_text(cls, value):
        return _strip(value)

    @field_validator("gender", mode="before")
    @classmethod
    def lower_gender(cls, value):
        if isinstance(value, str):
            return value.strip().lower()
        return value


class UpdateProfileRequest(CamelModel):
    """
    Profile Update Schema - Partial update of allow-listed fields

    Unknown keys (including role, email and password) are ignored.
    """
    first_name: Optional[str] = Field(None, min_length=1)
    last_name: Optional[str] = Field(None, min_length=1)
    phone_number: Optional[str] = None
    gender: Optional[Gender] = None
    contributor_profile: Optional[ContributorProfile] = None
    participant_profile: Optional[ParticipantProfile] = None

    @field_validator("first_name", "last_name", "phone_number", mode="before")
    @classmethod
    def strip_text(cls, value):
        return _strip(value)

    @field_validator("gender", mode="before")
    @classmethod
    def lower_gender(cls, value):
        if isinstance(value, str):
            return value.strip().lower()
        return value


# ============================================================================
# RESPONSES
# ============================================================================

class AccountSummary(CamelModel):
    """
    Account Summary Schema - Returned by registration, login and profile routes

    Never carries the password digest or verification token fields.
    """
    id: int
    first_name: str
    last_name: str
    email: str
    phone_number: Optional[str] = None
    role: AccountRole
    is_verified: bool
    profile_completed: bool
    contributor_profile: Optional[ContributorProfile] = None
    participant_profile: Optional[ParticipantProfile] = None


class AccountResponse(AccountSummary):
    """
    Account Response Schema - Full account view for GET /me
    """
    gender: Optional[Gender] = None
    date_of_birth: Optional[date] = None
    identity_document: Optional[str] = None
    supporting_document: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


def summarize(account, schema=AccountSummary) -> Dict[str, Any]:
    """Serialize an account for a client response."""
    return schema.model_validate(account).model_dump(by_alias=True, mode="json")
