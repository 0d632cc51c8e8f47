"""
Article service: business logic for the Article aggregate.

Design notes
------------
- Published-article reads used by anonymous and VIEWER callers go through
  the cache-aside pattern (Redis, falling back to the DB).  Drafts are never
  cached because whether they are visible depends on the caller.
- Every write invalidates the whole ``articles:*`` key space; list pages
  are keyed by limit/offset and any write can shift them.
- The slug is derived from the title on create and recomputed on rename.
  Collisions raise ``Conflict``; a title with nothing URL-safe in it raises
  ``ValidationError``.
- Service functions flush but do not commit; the transaction boundary is
  owned by the ``get_db`` dependency in the router layer.
"""
import logging
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from knowledge_base.cache import CacheManager
from knowledge_base.config import settings
from knowledge_base.errors import Conflict, NotFound, ValidationError
from knowledge_base.models import Article, Category, Tag, article_tags
from knowledge_base.schemas import CreateArticleInput, UpdateArticleInput
from knowledge_base.services.common import derive_slug, ensure_slug_available, isoformat

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Serialisation helpers
# ---------------------------------------------------------------------------

def _article_to_dict(article: Article) -> dict:
    return {
        "id": article.id,
        "title": article.title,
        "slug": article.slug,
        "content": article.content,
        "excerpt": article.excerpt,
        "is_published": article.is_published,
        "published_at": isoformat(article.published_at),
        "created_at": isoformat(article.created_at),
        "updated_at": isoformat(article.updated_at),
        "author_id": article.author_id,
        "category_id": article.category_id,
    }


# ---------------------------------------------------------------------------
# Relation resolution helpers (used by create / update)
# ---------------------------------------------------------------------------

async def _ensure_category(db: AsyncSession, category_id: int | None) -> None:
    if category_id is not None and await db.get(Category, category_id) is None:
        raise NotFound("Category not found")


async def _load_tags(db: AsyncSession, tag_ids: list[int]) -> list[Tag]:
    """Return the Tag rows for *tag_ids*; every id must exist."""
    wanted = list(dict.fromkeys(tag_ids))
    if not wanted:
        return []
    result = await db.execute(select(Tag).where(Tag.id.in_(wanted)))
    tags = list(result.scalars().all())
    if len(tags) != len(wanted):
        raise NotFound("Tag not found")
    return tags


async def _flush(db: AsyncSession, slug: str) -> None:
    try:
        await db.flush()
    except IntegrityError as exc:
        raise Conflict(f"Article with slug '{slug}' already exists") from exc


def _clamp_limit(limit: int | None) -> int:
    if limit is None:
        return settings.DEFAULT_PAGE_SIZE
    return min(limit, settings.MAX_PAGE_SIZE)


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

async def list_articles(
    db: AsyncSession,
    *,
    limit: int | None = None,
    offset: int = 0,
    is_published: bool | None = None,
    author_id: int | None = None,
    category_id: int | None = None,
    tag_id: int | None = None,
) -> list[dict]:
    """
    Return articles newest first, optionally filtered.

    ``limit=None`` on the nested-relation filters (author/category/tag)
    means "all of them"; top-level listings always pass a page size.
    """
    q = select(Article).order_by(Article.created_at.desc(), Article.id.desc())
    if is_published is not None:
        q = q.where(Article.is_published.is_(is_published))
    if author_id is not None:
        q = q.where(Article.author_id == author_id)
    if category_id is not None:
        q = q.where(Article.category_id == category_id)
    if tag_id is not None:
        q = q.join(article_tags, article_tags.c.article_id == Article.id).where(
            article_tags.c.tag_id == tag_id
        )
    if offset:
        q = q.offset(offset)
    if limit is not None:
        q = q.limit(_clamp_limit(limit))

    result = await db.execute(q)
    return [_article_to_dict(a) for a in result.scalars().all()]


async def list_published_articles(
    db: AsyncSession, cache: CacheManager | None, limit: int = 10, offset: int = 0
) -> list[dict]:
    """Public article feed, served from Redis when possible."""
    limit = _clamp_limit(limit)
    cache_key = f"articles:list:{limit}:{offset}"
    if cache is not None:
        cached = await cache.get(cache_key)
        if cached is not None:
            return cached

    items = await list_articles(db, limit=limit, offset=offset, is_published=True)
    if cache is not None:
        await cache.set(cache_key, items, ttl=settings.CACHE_TTL_LIST)
    return items


async def get_article(
    db: AsyncSession, *, article_id: int | None = None, slug: str | None = None
) -> dict | None:
    """Look an article up by id, or by slug when no id is given."""
    if article_id is None and slug is None:
        raise ValidationError("Either id or slug must be provided")
    if article_id is not None:
        article = await db.get(Article, article_id)
    else:
        result = await db.execute(select(Article).where(Article.slug == slug))
        article = result.scalar_one_or_none()
    return _article_to_dict(article) if article else None


async def get_published_article(
    db: AsyncSession,
    cache: CacheManager | None,
    *,
    article_id: int | None = None,
    slug: str | None = None,
) -> dict | None:
    """Like ``get_article`` but only returns published articles, via the cache."""
    cache_key = (
        f"articles:detail:id:{article_id}" if article_id is not None else f"articles:detail:slug:{slug}"
    )
    if cache is not None:
        cached = await cache.get(cache_key)
        if cached is not None:
            return cached

    article = await get_article(db, article_id=article_id, slug=slug)
    if article is None or not article["is_published"]:
        return None
    if cache is not None:
        await cache.set(cache_key, article, ttl=settings.CACHE_TTL_DETAIL)
    return article


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------

async def create_article(
    db: AsyncSession,
    author_id: int,
    data: CreateArticleInput,
    cache: CacheManager | None = None,
) -> dict:
    """Create a draft article owned by *author_id* and return it."""
    slug = derive_slug(data.title, "title")
    await ensure_slug_available(db, Article, slug)
    await _ensure_category(db, data.category_id)

    article = Article(
        title=data.title,
        slug=slug,
        content=data.content,
        excerpt=data.excerpt,
        author_id=author_id,
        category_id=data.category_id,
    )
    if data.tag_ids:
        article.tags = await _load_tags(db, data.tag_ids)

    db.add(article)
    await _flush(db, slug)

    if cache is not None:
        await cache.invalidate_articles()
    logger.info("Created article id=%s slug=%s author=%s", article.id, slug, author_id)
    return _article_to_dict(article)


async def update_article(
    db: AsyncSession,
    article_id: int,
    data: UpdateArticleInput,
    cache: CacheManager | None = None,
) -> dict | None:
    """
    Partially update an article and return it; None when it does not exist.

    Only fields the client sent are touched.  A new title recomputes the
    slug; ``tag_ids`` replaces the whole tag set.
    """
    q = (
        select(Article)
        .where(Article.id == article_id)
        .options(selectinload(Article.tags))
        .execution_options(populate_existing=True)
    )
    article = (await db.execute(q)).scalar_one_or_none()
    if article is None:
        return None

    changes = data.changes()
    tag_ids: list[int] | None = changes.pop("tag_ids", None)

    if "title" in changes:
        slug = derive_slug(changes["title"], "title")
        await ensure_slug_available(db, Article, slug, exclude_id=article_id)
        article.slug = slug
    if "category_id" in changes:
        await _ensure_category(db, changes["category_id"])

    for field, value in changes.items():
        setattr(article, field, value)

    if tag_ids is not None:
        article.tags = await _load_tags(db, tag_ids)

    await _flush(db, article.slug)
    if cache is not None:
        await cache.invalidate_articles()
    return _article_to_dict(article)


async def publish_article(
    db: AsyncSession, article_id: int, cache: CacheManager | None = None
) -> dict | None:
    """Mark the article published; ``published_at`` is stamped only once."""
    article = await db.get(Article, article_id)
    if article is None:
        return None

    article.is_published = True
    if article.published_at is None:
        article.published_at = datetime.now(timezone.utc)
    await db.flush()

    if cache is not None:
        await cache.invalidate_articles()
    logger.info("Published article id=%s", article_id)
    return _article_to_dict(article)


async def delete_article(
    db: AsyncSession, article_id: int, cache: CacheManager | None = None
) -> bool:
    """Delete the article (comments and tag links cascade); False if missing."""
    article = await db.get(Article, article_id)
    if article is None:
        return False

    await db.delete(article)
    await db.flush()
    if cache is not None:
        await cache.invalidate_articles()
    return True
