"""
Account Store - Persistence layer for accounts.

The store is the sole arbiter of consistency: email uniqueness is enforced by
the database constraint and verification consumption is a single conditional
UPDATE, so concurrent requests cannot race past either check.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, defer

from ..core.security import CredentialHasher
from ..exceptions import format_validation_errors
from .exceptions import ConflictError, ValidationError
from .models import Account
from .schemas import PROFILE_SCHEMAS, AccountCreate
from .tokens import VerificationRecord

# Set up logging
logger = logging.getLogger(__name__)

# Stage 1 fields that become mandatory when demographics are collected up front
DEMOGRAPHIC_FIELDS = {
    "gender": "Gender",
    "date_of_birth": "Date of birth",
    "identity_document": "Identity document",
    "supporting_document": "Supporting document",
    "phone_number": "Phone number",
}

FIELD_LABELS = {
    "firstName": "First name",
    "lastName": "Last name",
    "email": "Email",
    "password": "Password",
    "role": "Role",
}


def normalize_email(email: Optional[str]) -> str:
    """Lower-case and trim an email address."""
    return (email or "").strip().lower()


def _to_camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


class AccountStore:
    """
    Keyed record store for accounts on top of a SQLAlchemy session.

    Args:
        db: Database session
        hasher: Hasher used by the prepare-for-write step
    """

    def __init__(self, db: Session, hasher: CredentialHasher):
        self.db = db
        self.hasher = hasher

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate_new_account(self, fields: Dict[str, Any], require_demographics: bool = False) -> AccountCreate:
        """
        Validate stage 1 fields, collecting every failure.

        Raises:
            ValidationError: With one entry per failing field
        """
        errors: List[Dict[str, str]] = []
        data = None
        try:
            data = AccountCreate.model_validate(fields)
        except PydanticValidationError as e:
            for error in format_validation_errors(e.errors()):
                label = FIELD_LABELS.get(error["field"])
                if label and error["message"] in ("Field required", "String should have at least 1 character"):
                    error["message"] = f"{label} is required"
                errors.append(error)

        if require_demographics:
            failing = {error["field"] for error in errors}
            for name, label in DEMOGRAPHIC_FIELDS.items():
                camel = _to_camel(name)
                if camel in failing:
                    continue
                if _is_blank(fields.get(camel, fields.get(name))):
                    errors.append({"field": camel, "message": f"{label} is required"})

        if errors:
            raise ValidationError(errors)
        return data

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create(
        self,
        fields: Dict[str, Any],
        require_demographics: bool = False,
        verification: Optional[VerificationRecord] = None,
    ) -> Account:
        """
        Create a new account.

        Args:
            fields: Raw stage 1 payload (camelCase or snake_case keys)
            require_demographics: Whether demographic/document fields are mandatory
            verification: Pending verification to store with the new account

        Returns:
            Account: The persisted account

        Raises:
            ValidationError: If any field is invalid
            ConflictError: If the email is already registered
        """
        data = self.validate_new_account(fields, require_demographics)

        account = Account(
            first_name=data.first_name,
            last_name=data.last_name,
            email=normalize_email(data.email),
            role=data.role,
            gender=data.gender,
            date_of_birth=data.date_of_birth,
            identity_document=data.identity_document,
            supporting_document=data.supporting_document,
            phone_number=data.phone_number,
            is_verified=False,
            profile_completed=False,
        )
        account.password = data.password
        if verification is not None:
            account.verification_token_hash = verification.token_hash
            account.verification_token_expiry = verification.expires_at

        # Only the profile matching the role is kept
        profile_field = account.active_profile_field
        profile = getattr(data, profile_field)
        if profile is not None:
            setattr(account, profile_field, profile.model_dump(exclude_unset=True))

        self.prepare_for_write(account)
        self.db.add(account)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            logger.warning(f"Account creation rejected, email already registered: {account.email}")
            raise ConflictError()
        self.db.refresh(account)
        logger.info(f"Account created: {account.id} ({account.role.value})")
        return account

    def prepare_for_write(self, account: Account) -> None:
        """
        Explicit pre-write step: hash a newly assigned password and stamp updated_at.

        The password is hashed only when it was assigned since the last write,
        so unrelated saves never re-hash the stored digest.
        """
        if account.password_is_dirty:
            account.password_hash = self.hasher.hash(account.take_pending_password())
        account.updated_at = datetime.now(timezone.utc)

    def save(self, account: Account) -> Account:
        """
        Persist the full record.

        Args:
            account: Account to persist

        Returns:
            Account: The refreshed account
        """
        self.prepare_for_write(account)
        self.db.add(account)
        self.db.commit()
        self.db.refresh(account)
        return account

    def update_allowed_fields(self, account: Account, patch: Dict[str, Any], allow_list: Iterable[str]) -> Account:
        """
        Apply a partial update restricted to allow-listed keys.

        Keys outside the allow list are ignored without error. Profile
        sub-records are merged into the existing one, and only the profile
        matching the account's role is ever written.

        Args:
            account: Account to update
            patch: snake_case field values
            allow_list: Field names that may be changed

        Returns:
            Account: The saved account
        """
        allowed = set(allow_list)
        for key, value in patch.items():
            if key not in allowed:
                logger.debug(f"Ignoring non-updatable field '{key}' for account {account.id}")
                continue
            if key in PROFILE_SCHEMAS:
                if key != account.active_profile_field or value is None:
                    continue
                self.merge_profile(account, value)
                continue
            if value is None and not Account.__table__.c[key].nullable:
                continue
            if isinstance(value, str):
                value = value.strip()
            setattr(account, key, value)
        return self.save(account)

    def merge_profile(self, account: Account, values: Dict[str, Any]) -> None:
        """Merge values into the role-matching profile sub-record."""
        field = account.active_profile_field
        merged = dict(getattr(account, field) or {})
        merged.update(values)
        # Assign a new dict so the JSON column is flagged as modified
        setattr(account, field, merged)

    def set_verification(self, account: Account, record: VerificationRecord) -> Account:
        """
        Store a new pending verification, replacing any previous one.
        """
        account.verification_token_hash = record.token_hash
        account.verification_token_expiry = record.expires_at
        return self.save(account)

    def consume_verification(self, account: Account, token_hash: str) -> bool:
        """
        Mark an account verified and clear its token in one conditional write.

        Returns:
            bool: False if the token no longer matches (already consumed)
        """
        result = self.db.execute(
            update(Account)
            .where(Account.id == account.id, Account.verification_token_hash == token_hash)
            .values(
                is_verified=True,
                verification_token_hash=None,
                verification_token_expiry=None,
                updated_at=datetime.now(timezone.utc),
            )
            .execution_options(synchronize_session=False)
        )
        self.db.commit()
        if result.rowcount != 1:
            return False
        self.db.refresh(account)
        return True

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def find_by_email(self, email: Optional[str]) -> Optional[Account]:
        normalized = normalize_email(email)
        if not normalized:
            return None
        return self.db.query(Account).filter(Account.email == normalized).first()

    def find_by_id(self, account_id: int) -> Optional[Account]:
        return self.db.query(Account).filter(Account.id == account_id).first()

    def find_authenticated(self, account_id: int) -> Optional[Account]:
        """
        Load the account behind a session token without its password digest.

        Reading ``password_hash`` on the returned instance raises instead of
        lazily loading it.
        """
        return (
            self.db.query(Account)
            .options(defer(Account.password_hash, raiseload=True))
            .filter(Account.id == account_id)
            .first()
        )

    def find_by_verification_hash(self, token_hash: str, now: datetime) -> Optional[Account]:
        """Find the account holding this token digest, if it has not expired."""
        return (
            self.db.query(Account)
            .filter(
                Account.verification_token_hash == token_hash,
                Account.verification_token_expiry > now,
            )
            .first()
        )
