"""
Session token codec.

Tokens are HS256-signed JWTs carrying the subject id, email and role plus
``iat``/``exp``.  There is no refresh flow: once a token expires the user
logs in again.
"""
import logging
from datetime import datetime, timedelta, timezone

import jwt

from knowledge_base.auth.claims import IdentityClaim, Role

logger = logging.getLogger(__name__)

_BEARER_PREFIX = "bearer "


def strip_bearer(credential: str | None) -> str | None:
    """Return the raw token from ``"Bearer <token>"`` or a bare token."""
    if not credential:
        return None
    value = credential.strip()
    if value[: len(_BEARER_PREFIX)].lower() == _BEARER_PREFIX:
        value = value[len(_BEARER_PREFIX):].strip()
    return value or None


class TokenCodec:
    def __init__(
        self,
        secret_key: str,
        ttl: timedelta = timedelta(days=7),
        algorithm: str = "HS256",
    ) -> None:
        self._secret_key = secret_key
        self._ttl = ttl
        self._algorithm = algorithm

    def __repr__(self) -> str:
        return f"TokenCodec(algorithm={self._algorithm!r}, ttl={self._ttl!r})"

    def issue(self, claim: IdentityClaim, now: datetime | None = None) -> str:
        issued_at = now or datetime.now(timezone.utc)
        payload = {
            "sub": str(claim.subject_id),
            "email": claim.email,
            "role": claim.role.value,
            "iat": issued_at,
            "exp": issued_at + self._ttl,
        }
        return jwt.encode(payload, self._secret_key, algorithm=self._algorithm)

    def decode(self, token: str | None) -> IdentityClaim | None:
        """
        Verify *token* and return its claim, or None.

        Missing, malformed, tampered and expired tokens all yield None so
        callers can treat "no identity" uniformly.
        """
        raw = strip_bearer(token)
        if raw is None:
            return None

        try:
            payload = jwt.decode(
                raw,
                self._secret_key,
                algorithms=[self._algorithm],
                options={"require": ["sub", "exp", "iat"]},
            )
        except jwt.ExpiredSignatureError:
            logger.debug("Rejected expired session token")
            return None
        except jwt.InvalidTokenError as exc:
            logger.debug("Rejected invalid session token: %s", type(exc).__name__)
            return None

        try:
            return IdentityClaim(
                subject_id=int(payload["sub"]),
                email=str(payload["email"]),
                role=Role(payload["role"]),
            )
        except (KeyError, TypeError, ValueError):
            logger.debug("Rejected session token with malformed claims")
            return None
