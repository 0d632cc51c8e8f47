from knowledge_base.auth.claims import IdentityClaim, Role
from knowledge_base.auth.guard import Action, authorize, can, require_auth, require_owner_or_role, require_role
from knowledge_base.auth.passwords import PasswordHasher
from knowledge_base.auth.tokens import TokenCodec

__all__ = [
    "Action",
    "IdentityClaim",
    "PasswordHasher",
    "Role",
    "TokenCodec",
    "authorize",
    "can",
    "require_auth",
    "require_owner_or_role",
    "require_role",
]
