"""
Core security utilities for password hashing and session tokens.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional
import logging

from jose import jwt, JWTError
from passlib.context import CryptContext

from ..auth.exceptions import InvalidSessionTokenError

# Set up logging
logger = logging.getLogger(__name__)

DEFAULT_BCRYPT_ROUNDS = 10
DEFAULT_SESSION_TTL = timedelta(days=30)


class CredentialHasher:
    """
    One-way password hashing backed by bcrypt.

    Every call to ``hash`` draws a fresh salt; the work factor is fixed per
    instance so all digests written by a deployment cost the same to check.
    """

    def __init__(self, rounds: int = DEFAULT_BCRYPT_ROUNDS):
        self.rounds = rounds
        self._context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=rounds,
        )

    def hash(self, plaintext: str) -> str:
        """
        Hash a password using bcrypt.

        Args:
            plaintext: Plain text password

        Returns:
            str: Hashed password
        """
        return self._context.hash(plaintext)

    def verify(self, plaintext: Optional[str], digest: Optional[str]) -> bool:
        """
        Verify a password against a hash.

        Never raises: a mismatch, a missing value or a malformed digest all
        return False.

        Args:
            plaintext: Plain text password
            digest: Hashed password to compare against

        Returns:
            bool: True if password matches hash
        """
        if not plaintext or not digest:
            return False
        try:
            return self._context.verify(plaintext, digest)
        except (ValueError, TypeError):
            logger.warning("Stored password digest could not be parsed")
            return False


class SessionIssuer:
    """
    Mints and validates signed bearer tokens.

    The account id is the only identity claim; tokens are stateless and
    there is no server-side revocation.
    """

    def __init__(self, secret_key: str, algorithm: str = "HS256", ttl: timedelta = DEFAULT_SESSION_TTL):
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.ttl = ttl

    def issue(self, account_id: int) -> str:
        """
        Create a JWT session token.

        Args:
            account_id: Identifier of the authenticated account

        Returns:
            str: Encoded JWT token
        """
        now = datetime.now(timezone.utc)
        to_encode = {
            "id": account_id,
            "iat": now,
            "exp": now + self.ttl,
        }
        return jwt.encode(to_encode, self.secret_key, algorithm=self.algorithm)

    def validate(self, token: str) -> int:
        """
        Verify and decode a JWT session token.

        Args:
            token: JWT token string

        Returns:
            int: The account id carried by the token

        Raises:
            InvalidSessionTokenError: For malformed, forged or expired tokens
        """
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except JWTError as e:
            raise InvalidSessionTokenError(str(e)) from e

        account_id = payload.get("id")
        if isinstance(account_id, bool) or not isinstance(account_id, int):
            raise InvalidSessionTokenError("Token payload has no account id")
        return account_id
