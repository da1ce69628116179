"""
Email verification tokens.

The raw token only ever travels to the user; the database keeps its SHA-256
digest and an expiry timestamp.
"""
import hashlib
import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple

from .models import Account

logger = logging.getLogger(__name__)

TOKEN_BYTES = 32
DEFAULT_VERIFICATION_TTL = timedelta(hours=24)


@dataclass(frozen=True)
class VerificationRecord:
    """What gets persisted for a pending verification."""
    token_hash: str
    expires_at: datetime


def hash_token(token: str) -> str:
    """
    Hash a token for secure storage.

    Args:
        token: Token to hash

    Returns:
        str: Hex encoded SHA-256 digest
    """
    return hashlib.sha256(token.encode()).hexdigest()


class VerificationTokenManager:
    """Issues, validates and consumes email verification tokens."""

    def __init__(self, ttl: timedelta = DEFAULT_VERIFICATION_TTL):
        self.ttl = ttl

    def issue(self) -> Tuple[str, VerificationRecord]:
        """
        Generate a new verification token.

        Returns:
            The raw token (hex, 64 chars) and the record to store
        """
        raw_token = secrets.token_hex(TOKEN_BYTES)
        record = VerificationRecord(
            token_hash=hash_token(raw_token),
            expires_at=datetime.now(timezone.utc) + self.ttl,
        )
        return raw_token, record

    def validate(self, store, raw_token: str) -> Optional[Account]:
        """
        Find the account a presented token belongs to.

        Wrong, expired and already consumed tokens are indistinguishable:
        all of them return None.

        Args:
            store: AccountStore to look the digest up in
            raw_token: Token as received from the user

        Returns:
            The matching account, or None
        """
        if not raw_token:
            return None
        return store.find_by_verification_hash(hash_token(raw_token), datetime.now(timezone.utc))

    def consume(self, store, account: Account, raw_token: str) -> bool:
        """
        Mark the account verified and clear the token in one write.

        Returns:
            bool: False if the token was consumed concurrently
        """
        return store.consume_verification(account, hash_token(raw_token))
