from dataclasses import dataclass
from enum import Enum


class Role(str, Enum):
    ADMIN = "ADMIN"
    EDITOR = "EDITOR"
    VIEWER = "VIEWER"


@dataclass(frozen=True)
class IdentityClaim:
    """Identity decoded from a verified session token.

    Lives for a single request; never persisted.
    """

    subject_id: int
    email: str
    role: Role
