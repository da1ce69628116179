"""
Authentication service layer for business logic.

Accounts move through three states:

    registered (unverified) -> verified (profile incomplete) -> verified (profile complete)

Registration never issues a session token; an account must verify its email
and then log in before it can reach any authenticated route.
"""
import logging
from typing import Any, Dict, Optional

from fastapi import Request
from sqlalchemy.orm import Session

from ..core.audit_service import create_audit_log
from ..core.security import SessionIssuer
from ..notifications import Notification, NotificationKind, NotificationSink
from .exceptions import (
    ConflictError,
    InvalidCredentialsError,
    InvalidVerificationTokenError,
    MissingCredentialsError,
    NotFoundError,
    AlreadyVerifiedError,
    UpstreamNotificationError,
    ValidationError,
    VerificationRequiredError,
)
from .models import Account
from .schemas import AccountResponse, CompleteProfileRequest, UpdateProfileRequest, summarize
from .store import AccountStore
from .tokens import VerificationTokenManager

# Set up logging
logger = logging.getLogger(__name__)

# Fields a signed-in user may change through update-profile
UPDATABLE_FIELDS = (
    "first_name",
    "last_name",
    "phone_number",
    "gender",
    "contributor_profile",
    "participant_profile",
)

# Stage 2 accepts the demographic fields that registration may have deferred
COMPLETION_FIELDS = (
    "gender",
    "date_of_birth",
    "identity_document",
    "supporting_document",
    "phone_number",
    "contributor_profile",
    "participant_profile",
)

# JSON field name for each profile column, used in validation errors
PROFILE_FIELD_NAMES = {
    "contributor_profile": "contributorProfile",
    "participant_profile": "participantProfile",
}


class AuthService:
    """
    Orchestrates registration, verification, login and profile flows.

    Args:
        db: Database session (used for audit records)
        store: Account store
        tokens: Verification token manager
        sessions: Session token issuer
        notifier: Notification sink
        frontend_url: Base URL for links in emails
        require_demographics: Whether stage 1 requires demographic/document fields
    """

    def __init__(
        self,
        db: Session,
        store: AccountStore,
        tokens: VerificationTokenManager,
        sessions: SessionIssuer,
        notifier: NotificationSink,
        frontend_url: str,
        require_demographics: bool = False,
    ):
        self.db = db
        self.store = store
        self.tokens = tokens
        self.sessions = sessions
        self.notifier = notifier
        self.frontend_url = frontend_url.rstrip("/")
        self.require_demographics = require_demographics

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------

    def verification_notification(self, account: Account, raw_token: str) -> Notification:
        return Notification(
            recipient=account.email,
            kind=NotificationKind.VERIFICATION,
            token=raw_token,
            link=f"{self.frontend_url}/verify-email?token={raw_token}",
            context={
                "first_name": account.first_name,
                "last_name": account.last_name,
                "role": account.role.value,
                "expires_in_hours": int(self.tokens.ttl.total_seconds() // 3600),
            },
        )

    def welcome_notification(self, account: Account) -> Notification:
        return Notification(
            recipient=account.email,
            kind=NotificationKind.WELCOME,
            link=f"{self.frontend_url}/{account.role.value}/dashboard",
            context={"first_name": account.first_name, "role": account.role.value},
        )

    async def send_best_effort(self, notification: Notification) -> bool:
        """
        Deliver a notification without letting a failure escape.

        Runs as a background task after the response has been sent, so it
        must not touch the request's database session.

        Returns:
            bool: Whether the notification was delivered
        """
        try:
            await self.notifier.send(notification)
        except UpstreamNotificationError as e:
            logger.error(
                f"Failed to send {notification.kind.value} email to {notification.recipient}: "
                f"{e.extra.get('error', e.message)}"
            )
            return False
        except Exception:
            logger.exception(f"Unexpected error sending {notification.kind.value} email to {notification.recipient}")
            return False
        return True

    # ------------------------------------------------------------------
    # Flows
    # ------------------------------------------------------------------

    async def register(self, payload: Dict[str, Any], request: Optional[Request] = None) -> Dict[str, Any]:
        """
        Register a new account (stage 1).

        Args:
            payload: Raw registration payload
            request: FastAPI request object for audit logging

        Returns:
            Dict with the account summary and the pending verification
            notification; the caller delivers it best-effort.

        Raises:
            ValidationError: If any field is invalid
            ConflictError: If email already exists
        """
        email = payload.get("email") if isinstance(payload, dict) else None
        logger.info(f"Registration attempt for email: {email}")

        raw_token, record = self.tokens.issue()
        try:
            account = self.store.create(
                payload,
                require_demographics=self.require_demographics,
                verification=record,
            )
        except ConflictError:
            create_audit_log(self.db, action="REGISTRATION_FAILED_EMAIL_EXISTS", request=request, details={"email": email})
            raise

        create_audit_log(
            self.db,
            action="REGISTRATION_SUCCESS",
            user_id=account.id,
            request=request,
            details={"email": account.email, "role": account.role.value},
        )

        return {
            "message": "Registration successful! Please check your email to verify your account.",
            "user": summarize(account),
            "notification": self.verification_notification(account, raw_token),
        }

    async def verify_email(self, raw_token: str, request: Optional[Request] = None) -> Dict[str, Any]:
        """
        Verify an email address with the token from the verification link.

        Returns:
            Dict with verification success message and the welcome notification

        Raises:
            InvalidVerificationTokenError: If the token is wrong, expired or already used
        """
        account = self.tokens.validate(self.store, raw_token)
        if account is None or not self.tokens.consume(self.store, account, raw_token):
            logger.warning("Verification failed: invalid or expired token")
            create_audit_log(self.db, action="EMAIL_VERIFICATION_FAILED_INVALID_TOKEN", request=request)
            raise InvalidVerificationTokenError()

        logger.info(f"Email verified: {account.email}")
        create_audit_log(
            self.db,
            action="EMAIL_VERIFICATION_SUCCESS",
            user_id=account.id,
            request=request,
            details={"email": account.email},
        )
        return {
            "message": "Email verified successfully! You can now access all features.",
            "notification": self.welcome_notification(account),
        }

    async def resend_verification(self, email: str, request: Optional[Request] = None) -> Dict[str, Any]:
        """
        Issue a fresh verification token and send it.

        The new token replaces the previous one. Unlike registration, a
        delivery failure here is reported to the caller.

        Raises:
            NotFoundError: If no account has this email
            AlreadyVerifiedError: If the account is already verified
            UpstreamNotificationError: If the email could not be sent
        """
        account = self.store.find_by_email(email)
        if account is None:
            logger.warning(f"Resend verification failed: Email {email} not found")
            raise NotFoundError()

        if account.is_verified:
            logger.info(f"Resend verification rejected, account already verified: {account.email}")
            raise AlreadyVerifiedError()

        raw_token, record = self.tokens.issue()
        self.store.set_verification(account, record)

        try:
            await self.notifier.send(self.verification_notification(account, raw_token))
        except UpstreamNotificationError as e:
            logger.error(f"Failed to resend verification email to {account.email}: {e.extra.get('error', e.message)}")
            create_audit_log(
                self.db,
                action="RESEND_VERIFICATION_FAILED",
                user_id=account.id,
                request=request,
                details={"email": account.email},
            )
            raise UpstreamNotificationError("Failed to resend verification email", error=e.extra.get("error")) from e

        logger.info(f"Verification email resent to {account.email}")
        create_audit_log(
            self.db,
            action="RESEND_VERIFICATION_SENT",
            user_id=account.id,
            request=request,
            details={"email": account.email},
        )
        return {"message": "Verification email sent! Please check your inbox."}

    async def login(
        self,
        email: Optional[str],
        password: Optional[str],
        request: Optional[Request] = None
    ) -> Dict[str, Any]:
        """
        Authenticate an account and generate a session token.

        Unknown email and wrong password produce the same error so that
        registered addresses cannot be enumerated.

        Returns:
            Dict with session token and account summary

        Raises:
            MissingCredentialsError: If email or password is missing
            InvalidCredentialsError: If credentials are invalid
            VerificationRequiredError: If the account has not verified its email
        """
        if not email or not email.strip() or not password:
            raise MissingCredentialsError()

        account = self.store.find_by_email(email)
        if account is not None and not account.is_verified:
            # Unverified accounts are refused before the password is checked
            logger.warning(f"Login failed: Email not verified for {account.email}")
            create_audit_log(self.db, action="LOGIN_FAILED_UNVERIFIED", user_id=account.id, request=request)
            raise VerificationRequiredError()

        if account is None or not self.store.hasher.verify(password, account.password_hash):
            logger.warning(f"Login failed: Invalid credentials for {email}")
            create_audit_log(
                self.db,
                action="LOGIN_FAILED_INVALID_CREDENTIALS",
                user_id=account.id if account else None,
                request=request,
                details={"email": email},
            )
            raise InvalidCredentialsError()

        token = self.sessions.issue(account.id)
        logger.info(f"Login successful: Account {account.id} ({account.email})")
        create_audit_log(self.db, action="LOGIN_SUCCESS", user_id=account.id, request=request)

        return {
            "message": "Login successful",
            "token": token,
            "user": summarize(account),
        }

    async def complete_profile(
        self,
        account_id: int,
        payload: CompleteProfileRequest,
        request: Optional[Request] = None
    ) -> Dict[str, Any]:
        """
        Stage 2: store the role-specific profile and mark the profile complete.

        The profile for the other role is ignored, so it does not count
        towards completion.

        Raises:
            NotFoundError: If the account no longer exists
            ValidationError: If the profile matching the account's role is missing
        """
        account = self.store.find_by_id(account_id)
        if account is None:
            raise NotFoundError()

        patch = payload.model_dump(exclude_unset=True)
        profile_field = account.active_profile_field
        if patch.get(profile_field) is None:
            logger.warning(f"Profile completion rejected for account {account.id}: no {profile_field}")
            raise ValidationError([{
                "field": PROFILE_FIELD_NAMES[profile_field],
                "message": f"{profile_field.replace('_', ' ').capitalize()} is required",
            }])

        account.mark_profile_completed()
        account = self.store.update_allowed_fields(account, patch, COMPLETION_FIELDS)

        logger.info(f"Profile completed for account {account.id}")
        create_audit_log(self.db, action="PROFILE_COMPLETED", user_id=account.id, request=request)
        return {"message": "Profile completed successfully", "user": summarize(account)}

    async def update_profile(
        self,
        account_id: int,
        payload: UpdateProfileRequest,
        request: Optional[Request] = None
    ) -> Dict[str, Any]:
        """
        Apply a partial update of allow-listed fields.

        Raises:
            NotFoundError: If the account no longer exists
        """
        account = self.store.find_by_id(account_id)
        if account is None:
            raise NotFoundError()

        patch = payload.model_dump(exclude_unset=True)
        account = self.store.update_allowed_fields(account, patch, UPDATABLE_FIELDS)

        create_audit_log(
            self.db,
            action="PROFILE_UPDATED",
            user_id=account.id,
            request=request,
            details={"fields": sorted(key for key in patch if key in UPDATABLE_FIELDS)},
        )
        return {"message": "Profile updated successfully", "user": summarize(account)}

    def get_profile(self, account: Account) -> Dict[str, Any]:
        return {"message": "User profile fetched successfully", "user": summarize(account, AccountResponse)}

    def logout(self) -> Dict[str, Any]:
        """Sessions are stateless; the client discards its token."""
        return {"message": "Logout successful. Please delete your token on the client side."}
