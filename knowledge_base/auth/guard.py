"""
Access policy guard.

Every query and mutation maps to one ``Action``; ``PERMISSIONS`` holds the
roles allowed to perform it.  ``None`` marks a public action.  Roles are not
ranked: EDITOR and VIEWER are incomparable and ADMIN simply appears in
every row.

Nothing here is cached.  Each operation passes the claim it decoded for the
current request.
"""
import logging
from collections.abc import Collection, Mapping
from enum import Enum

from knowledge_base.auth.claims import IdentityClaim, Role
from knowledge_base.errors import Forbidden, Unauthenticated

logger = logging.getLogger(__name__)


class Action(str, Enum):
    READ_PUBLISHED = "read_published"
    READ_OWN = "read_own"
    READ_DRAFTS = "read_drafts"
    LIST_USERS = "list_users"
    WRITE_CONTENT = "write_content"
    DELETE_ARTICLE = "delete_article"
    DELETE_TAXONOMY = "delete_taxonomy"
    PUBLISH_ARTICLE = "publish_article"
    CREATE_COMMENT = "create_comment"
    DELETE_COMMENT = "delete_comment"
    MANAGE_USERS = "manage_users"


ANY_ROLE: frozenset[Role] = frozenset(Role)
STAFF: frozenset[Role] = frozenset({Role.ADMIN, Role.EDITOR})
ADMIN_ONLY: frozenset[Role] = frozenset({Role.ADMIN})

PERMISSIONS: Mapping[Action, frozenset[Role] | None] = {
    Action.READ_PUBLISHED: None,
    Action.READ_OWN: ANY_ROLE,
    Action.READ_DRAFTS: STAFF,
    Action.LIST_USERS: ADMIN_ONLY,
    Action.WRITE_CONTENT: STAFF,
    Action.DELETE_ARTICLE: STAFF,
    Action.DELETE_TAXONOMY: ADMIN_ONLY,
    Action.PUBLISH_ARTICLE: STAFF,
    Action.CREATE_COMMENT: ANY_ROLE,
    # Authors may also delete their own comments; see require_owner_or_role.
    Action.DELETE_COMMENT: ADMIN_ONLY,
    Action.MANAGE_USERS: ADMIN_ONLY,
}


def require_auth(claim: IdentityClaim | None) -> IdentityClaim:
    if claim is None:
        raise Unauthenticated()
    return claim


def require_role(claim: IdentityClaim | None, allowed: Collection[Role]) -> IdentityClaim:
    claim = require_auth(claim)
    if claim.role not in allowed:
        logger.info(
            "Access denied: role %s not in %s (subject=%s)",
            claim.role.value,
            sorted(r.value for r in allowed),
            claim.subject_id,
        )
        raise Forbidden()
    return claim


def authorize(claim: IdentityClaim | None, action: Action) -> IdentityClaim | None:
    """Apply the permission table row for *action*; returns the claim."""
    allowed = PERMISSIONS[action]
    if allowed is None:
        return claim
    return require_role(claim, allowed)


def require_owner_or_role(
    claim: IdentityClaim | None,
    owner_id: int,
    allowed: Collection[Role] = ADMIN_ONLY,
) -> IdentityClaim:
    """Pass when the caller owns the resource or holds one of *allowed*."""
    claim = require_auth(claim)
    if claim.subject_id == owner_id or claim.role in allowed:
        return claim
    logger.info(
        "Access denied: subject %s does not own resource of user %s",
        claim.subject_id,
        owner_id,
    )
    raise Forbidden()


def can(claim: IdentityClaim | None, action: Action) -> bool:
    allowed = PERMISSIONS[action]
    if allowed is None:
        return True
    return claim is not None and claim.role in allowed
