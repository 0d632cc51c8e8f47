"""
Comment service: comments on articles.

Any signed-in user may comment; deletion is limited to the comment's
author and admins, which the resolver checks against ``author_id``
before calling ``delete_comment``.
"""
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from knowledge_base.models import Article, Comment
from knowledge_base.schemas import CreateCommentInput
from knowledge_base.services.common import isoformat


def _comment_to_dict(comment: Comment) -> dict:
    return {
        "id": comment.id,
        "content": comment.content,
        "article_id": comment.article_id,
        "author_id": comment.author_id,
        "created_at": isoformat(comment.created_at),
        "updated_at": isoformat(comment.updated_at),
    }


async def get_comment(db: AsyncSession, comment_id: int) -> dict | None:
    comment = await db.get(Comment, comment_id)
    return _comment_to_dict(comment) if comment else None


async def list_comments(
    db: AsyncSession,
    *,
    article_id: int | None = None,
    author_id: int | None = None,
    include_drafts: bool = True,
    reader_id: int | None = None,
) -> list[dict]:
    """
    Return comments newest first, filtered by article and/or author.

    With ``include_drafts=False`` only comments on published articles are
    returned, plus those on drafts written by *reader_id*.
    """
    q = select(Comment).order_by(Comment.created_at.desc(), Comment.id.desc())
    if not include_drafts:
        visible = Article.is_published.is_(True)
        if reader_id is not None:
            visible = or_(visible, Article.author_id == reader_id)
        q = q.join(Article, Article.id == Comment.article_id).where(visible)
    if article_id is not None:
        q = q.where(Comment.article_id == article_id)
    if author_id is not None:
        q = q.where(Comment.author_id == author_id)
    result = await db.execute(q)
    return [_comment_to_dict(c) for c in result.scalars().all()]


async def add_comment(db: AsyncSession, author_id: int, data: CreateCommentInput) -> dict:
    """
    Append a comment by *author_id*.

    The caller has already checked that the target article exists and is
    visible to the author.
    """
    comment = Comment(
        content=data.content,
        article_id=data.article_id,
        author_id=author_id,
    )
    db.add(comment)
    await db.flush()
    return _comment_to_dict(comment)


async def delete_comment(db: AsyncSession, comment_id: int) -> bool:
    comment = await db.get(Comment, comment_id)
    if comment is None:
        return False

    await db.delete(comment)
    await db.flush()
    return True
