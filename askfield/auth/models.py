"""
Account Model - Stores user identity, verification state and role-specific profiles.

An account moves through three states:
- registered (is_verified = False)
- verified, profile incomplete (is_verified = True, profile_completed = False)
- verified, profile complete (is_verified = True, profile_completed = True)
"""
import enum
from typing import Optional

from sqlalchemy import Boolean, Column, Date, DateTime, Enum, Integer, JSON, String
from sqlalchemy.orm import validates
from sqlalchemy.sql import func

from ..database import Base


class AccountRole(str, enum.Enum):
    """
    Enumeration for account roles.

    Roles:
    - CONTRIBUTOR: Domain experts and organizations publishing work
    - PARTICIPANT: People taking part in contributor activities
    """
    CONTRIBUTOR = "contributor"
    PARTICIPANT = "participant"


class Gender(str, enum.Enum):
    """Enumeration for the self-reported gender field."""
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"
    PREFER_NOT_TO_SAY = "prefer-not-to-say"


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class Account(Base):
    """
    Account Model - One row per user, uniquely keyed by normalized email

    Fields:
    - id: Primary key for account identification
    - first_name, last_name: User's name (trimmed)
    - email: Unique, lower-cased, trimmed email address
    - password_hash: bcrypt digest (never store or return raw passwords)
    - gender, date_of_birth, identity_document, supporting_document, phone_number:
      demographic fields, optional at stage 1 unless configured otherwise
    - role: contributor or participant; immutable once set
    - is_verified: Whether email has been verified
    - verification_token_hash / verification_token_expiry: pending verification, if any
    - profile_completed: Whether stage 2 has been completed
    - contributor_profile / participant_profile: role-specific profile data
    - created_at / updated_at: timestamps maintained by the store
    """
    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True, index=True)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)

    gender = Column(Enum(Gender, values_callable=_enum_values, name="gender"), nullable=True)
    date_of_birth = Column(Date, nullable=True)
    identity_document = Column(String, nullable=True)
    supporting_document = Column(String, nullable=True)
    phone_number = Column(String, nullable=True)

    role = Column(Enum(AccountRole, values_callable=_enum_values, name="account_role"), nullable=False)

    is_verified = Column(Boolean, default=False, nullable=False)
    verification_token_hash = Column(String, nullable=True, index=True)
    verification_token_expiry = Column(DateTime(timezone=True), nullable=True)

    profile_completed = Column(Boolean, default=False, nullable=False)
    contributor_profile = Column(JSON, nullable=True)
    participant_profile = Column(JSON, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<Account(id={self.id}, email='{self.email}', role='{self.role}')>"

    @validates("role")
    def _validate_role(self, key, value):
        value = AccountRole(value)
        if self.role is not None and value != AccountRole(self.role):
            raise ValueError("Account role cannot be changed after creation")
        return value

    # Password handling: callers assign plaintext here and the store hashes it
    # in its prepare-for-write step. Loaded instances skip __init__, hence getattr.
    @property
    def password(self):
        raise AttributeError("Account passwords are write-only")

    @password.setter
    def password(self, plaintext: str) -> None:
        self._pending_password = plaintext

    @property
    def password_is_dirty(self) -> bool:
        """Whether a new password is waiting to be hashed."""
        return getattr(self, "_pending_password", None) is not None

    def take_pending_password(self) -> Optional[str]:
        """Return the pending plaintext password and clear the dirty flag."""
        plaintext = getattr(self, "_pending_password", None)
        self._pending_password = None
        return plaintext

    @property
    def has_pending_verification(self) -> bool:
        return self.verification_token_hash is not None

    @property
    def active_profile_field(self) -> str:
        """Name of the profile column that matches this account's role."""
        if AccountRole(self.role) == AccountRole.CONTRIBUTOR:
            return "contributor_profile"
        return "participant_profile"

    def mark_profile_completed(self) -> None:
        """Profile completion is one-way."""
        self.profile_completed = True
