"""
User service: registration, credential checks and admin CRUD for the User
aggregate.

Password hashing is CPU bound (bcrypt), so it runs in a worker thread to
keep the event loop responsive.  The stored hash never leaves this module:
serialised users carry no credential fields.
"""
import asyncio
import logging

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from knowledge_base.auth.claims import IdentityClaim, Role
from knowledge_base.auth.passwords import PasswordHasher
from knowledge_base.cache import CacheManager
from knowledge_base.errors import Conflict, Unauthenticated
from knowledge_base.models import User
from knowledge_base.schemas import RegisterInput, UpdateUserInput

logger = logging.getLogger(__name__)

_DUPLICATE_USER = "User with this email or username already exists"


# ---------------------------------------------------------------------------
# Serialisation helpers
# ---------------------------------------------------------------------------

def _user_to_dict(user: User) -> dict:
    return {
        "id": user.id,
        "email": user.email,
        "username": user.username,
        "name": user.name,
        "role": user.role.value,
        "created_at": user.created_at.isoformat(),
        "updated_at": user.updated_at.isoformat(),
    }


def claim_for(user: dict) -> IdentityClaim:
    """Build the token claim for a serialised user."""
    return IdentityClaim(subject_id=user["id"], email=user["email"], role=Role(user["role"]))


async def _ensure_unique(
    db: AsyncSession, email: str | None, username: str | None, exclude_id: int | None = None
) -> None:
    conditions = []
    if email is not None:
        conditions.append(User.email == email)
    if username is not None:
        conditions.append(User.username == username)
    if not conditions:
        return
    q = select(User.id).where(or_(*conditions))
    if exclude_id is not None:
        q = q.where(User.id != exclude_id)
    if (await db.execute(q.limit(1))).scalar_one_or_none() is not None:
        raise Conflict(_DUPLICATE_USER)


# ---------------------------------------------------------------------------
# Public service functions
# ---------------------------------------------------------------------------

async def get_users(db: AsyncSession) -> list[dict]:
    """Return all users ordered by creation date (newest first)."""
    result = await db.execute(select(User).order_by(User.created_at.desc(), User.id.desc()))
    return [_user_to_dict(u) for u in result.scalars().all()]


async def get_user(db: AsyncSession, user_id: int) -> dict | None:
    user = await db.get(User, user_id)
    return _user_to_dict(user) if user else None


async def create_user(
    db: AsyncSession,
    data: RegisterInput,
    hasher: PasswordHasher,
    role: Role = Role.VIEWER,
) -> dict:
    """
    Create a user with a freshly hashed password.

    Public registration always yields a VIEWER; other roles are granted
    by an admin (``update_user``) or by the seed script.
    """
    await _ensure_unique(db, data.email, data.username)
    password_hash = await asyncio.to_thread(hasher.hash, data.password)

    user = User(
        email=data.email,
        username=data.username,
        name=data.name,
        password_hash=password_hash,
        role=role,
    )
    db.add(user)
    try:
        await db.flush()
    except IntegrityError as exc:
        raise Conflict(_DUPLICATE_USER) from exc

    logger.info("Registered user id=%s role=%s", user.id, role.value)
    return _user_to_dict(user)


async def authenticate(db: AsyncSession, email: str, password: str, hasher: PasswordHasher) -> dict:
    """
    Return the user matching *email* / *password*.

    Unknown email and wrong password raise the same ``Unauthenticated``
    error and take comparable time, so callers cannot probe for accounts.
    """
    result = await db.execute(select(User).where(User.email == email))
    user = result.scalar_one_or_none()

    if user is None:
        await asyncio.to_thread(hasher.dummy_verify, password)
        valid = False
    else:
        valid = await asyncio.to_thread(hasher.verify, password, user.password_hash)

    if not valid:
        logger.info("Failed login attempt")
        raise Unauthenticated("Invalid credentials")
    return _user_to_dict(user)


async def update_user(db: AsyncSession, user_id: int, data: UpdateUserInput) -> dict | None:
    """
    Apply the fields present in *data* to the user.

    Returns None when the user does not exist.  ``name: null`` clears the
    display name; absent fields are left alone.
    """
    user = await db.get(User, user_id)
    if user is None:
        return None

    changes = data.changes()
    await _ensure_unique(db, changes.get("email"), changes.get("username"), exclude_id=user_id)

    for field, value in changes.items():
        setattr(user, field, value)

    try:
        await db.flush()
    except IntegrityError as exc:
        raise Conflict(_DUPLICATE_USER) from exc
    return _user_to_dict(user)


async def delete_user(db: AsyncSession, user_id: int, cache: CacheManager | None = None) -> bool:
    """
    Delete the user; their articles and comments go with them (FK cascade).

    Returns False when the user does not exist.
    """
    user = await db.get(User, user_id)
    if user is None:
        return False

    await db.delete(user)
    await db.flush()
    if cache is not None:
        await cache.invalidate_articles()
    logger.info("Deleted user id=%s", user_id)
    return True
