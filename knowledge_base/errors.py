"""Domain exception types.

Every failure the API reports on purpose is a ``KnowledgeBaseError``.  The
``code`` attribute is copied into the GraphQL error's ``extensions.code`` so
clients can tell an authentication failure from a missing record without
parsing messages.
"""


class KnowledgeBaseError(Exception):
    """Base class for errors that are safe to show to API clients."""

    code = "INTERNAL_SERVER_ERROR"
    default_message = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthenticated(KnowledgeBaseError):
    code = "UNAUTHENTICATED"
    default_message = "Authentication required"


class Forbidden(KnowledgeBaseError):
    code = "FORBIDDEN"
    default_message = "Insufficient permissions"


class NotFound(KnowledgeBaseError):
    code = "NOT_FOUND"
    default_message = "Not found"


class Conflict(KnowledgeBaseError):
    code = "CONFLICT"
    default_message = "Resource already exists"


class ValidationError(KnowledgeBaseError):
    code = "BAD_USER_INPUT"
    default_message = "Invalid input"


class EncodingError(ValidationError):
    """Raised when a secret cannot be hashed (e.g. longer than bcrypt accepts)."""

    default_message = "Secret exceeds the supported length"


__all__ = [
    "Conflict",
    "EncodingError",
    "Forbidden",
    "KnowledgeBaseError",
    "NotFound",
    "Unauthenticated",
    "ValidationError",
]
