"""Tag service: CRUD for tags plus the Article -> tags lookup."""
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from knowledge_base.errors import Conflict, ValidationError
from knowledge_base.models import Tag, article_tags
from knowledge_base.schemas import CreateTagInput, UpdateTagInput
from knowledge_base.services.common import derive_slug, ensure_slug_available, isoformat

_DUPLICATE_TAG = "Tag with this name already exists"


def _tag_to_dict(tag: Tag) -> dict:
    return {
        "id": tag.id,
        "name": tag.name,
        "slug": tag.slug,
        "created_at": isoformat(tag.created_at),
        "updated_at": isoformat(tag.updated_at),
    }


async def _ensure_name_available(db: AsyncSession, name: str, exclude_id: int | None = None) -> None:
    q = select(Tag.id).where(Tag.name == name)
    if exclude_id is not None:
        q = q.where(Tag.id != exclude_id)
    if (await db.execute(q.limit(1))).scalar_one_or_none() is not None:
        raise Conflict(_DUPLICATE_TAG)


async def _flush(db: AsyncSession) -> None:
    try:
        await db.flush()
    except IntegrityError as exc:
        raise Conflict(_DUPLICATE_TAG) from exc


async def get_tags(db: AsyncSession) -> list[dict]:
    result = await db.execute(select(Tag).order_by(Tag.name.asc()))
    return [_tag_to_dict(t) for t in result.scalars().all()]


async def get_tag(
    db: AsyncSession, *, tag_id: int | None = None, slug: str | None = None
) -> dict | None:
    if tag_id is None and slug is None:
        raise ValidationError("Either id or slug must be provided")
    if tag_id is not None:
        tag = await db.get(Tag, tag_id)
    else:
        result = await db.execute(select(Tag).where(Tag.slug == slug))
        tag = result.scalar_one_or_none()
    return _tag_to_dict(tag) if tag else None


async def get_tags_for_article(db: AsyncSession, article_id: int) -> list[dict]:
    q = (
        select(Tag)
        .join(article_tags, article_tags.c.tag_id == Tag.id)
        .where(article_tags.c.article_id == article_id)
        .order_by(Tag.name.asc())
    )
    result = await db.execute(q)
    return [_tag_to_dict(t) for t in result.scalars().all()]


async def create_tag(db: AsyncSession, data: CreateTagInput) -> dict:
    slug = derive_slug(data.name, "name")
    await _ensure_name_available(db, data.name)
    await ensure_slug_available(db, Tag, slug)

    tag = Tag(name=data.name, slug=slug)
    db.add(tag)
    await _flush(db)
    return _tag_to_dict(tag)


async def update_tag(db: AsyncSession, tag_id: int, data: UpdateTagInput) -> dict | None:
    """Rename a tag; the slug follows the new name."""
    tag = await db.get(Tag, tag_id)
    if tag is None:
        return None

    slug = derive_slug(data.name, "name")
    await _ensure_name_available(db, data.name, exclude_id=tag_id)
    await ensure_slug_available(db, Tag, slug, exclude_id=tag_id)

    tag.name = data.name
    tag.slug = slug
    await _flush(db)
    return _tag_to_dict(tag)


async def delete_tag(db: AsyncSession, tag_id: int) -> bool:
    tag = await db.get(Tag, tag_id)
    if tag is None:
        return False

    await db.delete(tag)
    await db.flush()
    return True
