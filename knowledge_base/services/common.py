"""Helpers shared by the services that own titled (slugged) entities."""
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from knowledge_base.errors import Conflict, ValidationError
from knowledge_base.slugs import slugify


def derive_slug(text: str, field: str) -> str:
    """Slugify *text*, rejecting input that leaves nothing URL-safe."""
    slug = slugify(text)
    if not slug:
        raise ValidationError(f"{field} must contain at least one letter or digit")
    return slug


async def ensure_slug_available(
    db: AsyncSession, model, slug: str, exclude_id: int | None = None
) -> None:
    """Raise ``Conflict`` when another row of *model* already uses *slug*."""
    q = select(model.id).where(model.slug == slug)
    if exclude_id is not None:
        q = q.where(model.id != exclude_id)
    if (await db.execute(q.limit(1))).scalar_one_or_none() is not None:
        raise Conflict(f"{model.__name__} with slug '{slug}' already exists")


def isoformat(value) -> str | None:
    return value.isoformat() if value is not None else None
