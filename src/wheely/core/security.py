"""
Credential codec: one-way hashing and verification of account secrets.
"""

import bcrypt
import structlog

from .exceptions import InvalidInputError

logger = structlog.get_logger(__name__)

# bcrypt only looks at the first 72 bytes of its input
BCRYPT_MAX_BYTES = 72


class CredentialCodec:
    """
    bcrypt based hashing with a fixed cost factor.

    A cost of 10 keeps a hash around the tens of milliseconds on current
    hardware; tests run with the minimum cost of 4.
    """

    def __init__(self, rounds: int = 10, min_length: int = 6) -> None:
        self.rounds = rounds
        self.min_length = min_length

    def hash(self, secret: str) -> str:
        """
        Hash a plain secret.

        Raises InvalidInputError for a blank secret or one bcrypt cannot
        take in full.
        """
        if secret is None or not secret.strip():
            raise InvalidInputError("Password cannot be empty")

        secret_bytes = secret.encode("utf-8")
        if len(secret_bytes) > BCRYPT_MAX_BYTES:
            raise InvalidInputError(f"Password cannot exceed {BCRYPT_MAX_BYTES} bytes")

        salt = bcrypt.gensalt(rounds=self.rounds)
        return bcrypt.hashpw(secret_bytes, salt).decode("utf-8")

    def verify(self, secret: str, digest: str) -> bool:
        """Check a plain secret against a stored digest. Never raises."""
        if not secret or not digest:
            return False

        try:
            return bcrypt.checkpw(secret.encode("utf-8"), digest.encode("utf-8"))
        except Exception as e:
            # Malformed digest, oversized secret: fail closed
            logger.warning("Password verification failed", error_type=type(e).__name__)
            return False

    def meets_policy(self, secret: str) -> bool:
        """Minimum length is the only strength rule."""
        if secret is None:
            return False
        return len(secret) >= self.min_length
