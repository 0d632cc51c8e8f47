"""
Category service: CRUD for article categories.

Categories are small reference data and are read straight from the DB.
Deleting a category leaves its articles in place with ``category_id``
cleared (FK ``ON DELETE SET NULL``), so the article cache is invalidated.
"""
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from knowledge_base.cache import CacheManager
from knowledge_base.errors import Conflict, ValidationError
from knowledge_base.models import Category
from knowledge_base.schemas import CreateCategoryInput, UpdateCategoryInput
from knowledge_base.services.common import derive_slug, ensure_slug_available, isoformat


def _category_to_dict(category: Category) -> dict:
    return {
        "id": category.id,
        "name": category.name,
        "slug": category.slug,
        "description": category.description,
        "created_at": isoformat(category.created_at),
        "updated_at": isoformat(category.updated_at),
    }


async def _flush(db: AsyncSession, slug: str) -> None:
    try:
        await db.flush()
    except IntegrityError as exc:
        raise Conflict(f"Category with slug '{slug}' already exists") from exc


async def get_categories(db: AsyncSession) -> list[dict]:
    result = await db.execute(select(Category).order_by(Category.name.asc()))
    return [_category_to_dict(c) for c in result.scalars().all()]


async def get_category(
    db: AsyncSession, *, category_id: int | None = None, slug: str | None = None
) -> dict | None:
    if category_id is None and slug is None:
        raise ValidationError("Either id or slug must be provided")
    if category_id is not None:
        category = await db.get(Category, category_id)
    else:
        result = await db.execute(select(Category).where(Category.slug == slug))
        category = result.scalar_one_or_none()
    return _category_to_dict(category) if category else None


async def create_category(db: AsyncSession, data: CreateCategoryInput) -> dict:
    slug = derive_slug(data.name, "name")
    await ensure_slug_available(db, Category, slug)

    category = Category(name=data.name, slug=slug, description=data.description)
    db.add(category)
    await _flush(db, slug)
    return _category_to_dict(category)


async def update_category(
    db: AsyncSession, category_id: int, data: UpdateCategoryInput
) -> dict | None:
    category = await db.get(Category, category_id)
    if category is None:
        return None

    changes = data.changes()
    if "name" in changes:
        slug = derive_slug(changes["name"], "name")
        await ensure_slug_available(db, Category, slug, exclude_id=category_id)
        category.slug = slug

    for field, value in changes.items():
        setattr(category, field, value)

    await _flush(db, category.slug)
    return _category_to_dict(category)


async def delete_category(
    db: AsyncSession, category_id: int, cache: CacheManager | None = None
) -> bool:
    category = await db.get(Category, category_id)
    if category is None:
        return False

    await db.delete(category)
    await db.flush()
    if cache is not None:
        await cache.invalidate_articles()
    return True
