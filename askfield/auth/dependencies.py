"""
FastAPI dependencies for authentication and authorization.

Collaborators (hasher, store, token managers, notification sink) are built
per request from settings; tests replace them through
``app.dependency_overrides``.
"""
from datetime import timedelta
import logging
from typing import Optional

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from ..config import Settings, get_settings
from ..core.security import CredentialHasher, SessionIssuer
from ..database import get_db
from ..notifications import MailConfig, NotificationSink, SmtpNotificationSink
from .exceptions import AuthenticationError, AuthorizationError, InvalidSessionTokenError
from .models import Account, AccountRole
from .service import AuthService
from .store import AccountStore
from .tokens import VerificationTokenManager

# Set up logging
logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


def get_hasher(settings: Settings = Depends(get_settings)) -> CredentialHasher:
    return CredentialHasher(rounds=settings.bcrypt_rounds)


def get_session_issuer(settings: Settings = Depends(get_settings)) -> SessionIssuer:
    return SessionIssuer(
        secret_key=settings.secret_key,
        algorithm=settings.algorithm,
        ttl=timedelta(days=settings.session_token_expire_days),
    )


def get_notifier(settings: Settings = Depends(get_settings)) -> NotificationSink:
    return SmtpNotificationSink(MailConfig.from_settings(settings))


def get_store(
    db: Session = Depends(get_db),
    hasher: CredentialHasher = Depends(get_hasher),
) -> AccountStore:
    return AccountStore(db, hasher)


def get_auth_service(
    db: Session = Depends(get_db),
    store: AccountStore = Depends(get_store),
    sessions: SessionIssuer = Depends(get_session_issuer),
    notifier: NotificationSink = Depends(get_notifier),
    settings: Settings = Depends(get_settings),
) -> AuthService:
    return AuthService(
        db=db,
        store=store,
        tokens=VerificationTokenManager(ttl=timedelta(hours=settings.verification_token_expire_hours)),
        sessions=sessions,
        notifier=notifier,
        frontend_url=settings.frontend_url,
        require_demographics=settings.require_demographics_at_registration,
    )


def authenticate(authorization: Optional[str], sessions: SessionIssuer, store: AccountStore) -> Account:
    """
    Resolve the account behind an ``Authorization: Bearer <token>`` header.

    Args:
        authorization: Raw Authorization header value
        sessions: Session token issuer
        store: Account store

    Returns:
        Account: The authenticated account, loaded without its password digest

    Raises:
        AuthenticationError: If the header is missing, the token is invalid
            or expired, or the account no longer exists
    """
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        raise AuthenticationError("Not authorized, no token provided")

    token = authorization[len(BEARER_PREFIX):].strip()
    if not token:
        raise AuthenticationError("Not authorized, no token provided")

    try:
        account_id = sessions.validate(token)
    except InvalidSessionTokenError as e:
        logger.warning(f"Token verification error: {str(e)}")
        raise AuthenticationError("Not authorized, token failed")

    account = store.find_authenticated(account_id)
    if account is None:
        logger.warning(f"Token references missing account {account_id}")
        raise AuthenticationError("User not found")
    return account


def get_current_account(
    request: Request,
    sessions: SessionIssuer = Depends(get_session_issuer),
    store: AccountStore = Depends(get_store),
) -> Account:
    """
    Get current authenticated account from the bearer token.

    The account is also attached to ``request.state.account`` for downstream
    use. Its password digest is never loaded, so it cannot leak from there.

    Returns:
        Account: Current authenticated account
    """
    account = authenticate(request.headers.get("Authorization"), sessions, store)
    request.state.account = account
    return account


def require_roles(*allowed_roles: AccountRole):
    """
    Dependency factory to require specific roles.

    Args:
        allowed_roles: Roles that are allowed access

    Returns:
        Function that checks if the account has a required role
    """
    allowed = {AccountRole(role) for role in allowed_roles}

    def role_checker(current_account: Account = Depends(get_current_account)) -> Account:
        role = AccountRole(current_account.role)
        if role not in allowed:
            raise AuthorizationError(role.value)
        return current_account
    return role_checker


# Convenience dependencies for specific roles
require_contributor = require_roles(AccountRole.CONTRIBUTOR)
require_participant = require_roles(AccountRole.PARTICIPANT)
