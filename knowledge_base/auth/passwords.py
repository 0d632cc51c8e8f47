import logging

import bcrypt

from knowledge_base.errors import EncodingError

logger = logging.getLogger(__name__)

# bcrypt only looks at the first 72 bytes of its input.
MAX_SECRET_BYTES = 72


class PasswordHasher:
    """
    One-way password hashing with bcrypt.

    Each hash embeds its own random salt and cost factor, so ``verify``
    needs nothing but the stored string.  ``rounds`` is the log2 work
    factor; 10 costs tens of milliseconds on commodity hardware.
    """

    def __init__(self, rounds: int = 10) -> None:
        self._rounds = rounds
        # Used by dummy_verify to equalise timing for unknown accounts.
        self._dummy_hash = bcrypt.hashpw(b"dummy-password", bcrypt.gensalt(rounds=rounds))

    def hash(self, secret: str) -> str:
        encoded = secret.encode("utf-8")
        if len(encoded) > MAX_SECRET_BYTES:
            raise EncodingError(f"Password must be at most {MAX_SECRET_BYTES} bytes")
        return bcrypt.hashpw(encoded, bcrypt.gensalt(rounds=self._rounds)).decode("ascii")

    def verify(self, secret: str, hashed: str) -> bool:
        """Return True when *secret* matches *hashed*; never raises on mismatch."""
        encoded = secret.encode("utf-8")
        if len(encoded) > MAX_SECRET_BYTES or not hashed:
            return False
        try:
            return bcrypt.checkpw(encoded, hashed.encode("ascii"))
        except ValueError:
            logger.warning("Stored password hash is malformed")
            return False

    def dummy_verify(self, secret: str) -> None:
        bcrypt.checkpw(secret.encode("utf-8")[:MAX_SECRET_BYTES], self._dummy_hash)
