"""
Query, mutation and object-field resolvers.

Each resolver follows the same shape: authorize against the request's
claim, validate arguments into a typed input model, then hand off to the
service layer through ``RequestContext.run``.  Services return plain dicts
whose snake_case keys match the schema after name conversion, so scalar
fields use ariadne's default resolver.
"""
from ariadne import MutationType, ObjectType, QueryType
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from knowledge_base.auth.claims import IdentityClaim
from knowledge_base.auth.guard import PERMISSIONS, Action, authorize, can, require_auth, require_owner_or_role
from knowledge_base.errors import NotFound, ValidationError
from knowledge_base.schemas import (
    ArticleListArgs,
    CreateArticleInput,
    CreateCategoryInput,
    CreateCommentInput,
    CreateTagInput,
    LoginInput,
    RegisterInput,
    UpdateArticleInput,
    UpdateCategoryInput,
    UpdateTagInput,
    UpdateUserInput,
)
from knowledge_base.services import (
    article_service,
    category_service,
    comment_service,
    tag_service,
    user_service,
)

query = QueryType()
mutation = MutationType()
user_type = ObjectType("User")
article_type = ObjectType("Article")
category_type = ObjectType("Category")
tag_type = ObjectType("Tag")
comment_type = ObjectType("Comment")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def parse_input(model: type[BaseModel], data: dict | None) -> BaseModel:
    try:
        return model.model_validate(data or {})
    except PydanticValidationError as exc:
        first = exc.errors()[0]
        location = ".".join(str(part) for part in first["loc"])
        message = f"{location}: {first['msg']}" if location else first["msg"]
        raise ValidationError(message) from exc


def parse_id(value, name: str = "id") -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid {name}: {value!r}") from None


def _optional_id(value) -> int | None:
    return parse_id(value) if value is not None else None


def _sees_drafts_of(claim: IdentityClaim | None, author_id: int) -> bool:
    return can(claim, Action.READ_DRAFTS) or (claim is not None and claim.subject_id == author_id)


def _can_view(claim: IdentityClaim | None, article: dict) -> bool:
    return article["is_published"] or _sees_drafts_of(claim, article["author_id"])


def _auth_payload(ctx, user: dict) -> dict:
    return {"token": ctx.tokens.issue(user_service.claim_for(user)), "user": user}


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------

@query.field("hello")
def resolve_hello(*_):
    return "Hello from Knowledge Base API!"


@query.field("me")
async def resolve_me(_, info):
    ctx = info.context
    claim = authorize(ctx.claim, Action.READ_OWN)
    return await ctx.run(user_service.get_user, claim.subject_id)


@query.field("users")
async def resolve_users(_, info):
    ctx = info.context
    authorize(ctx.claim, Action.LIST_USERS)
    return await ctx.run(user_service.get_users)


@query.field("user")
async def resolve_user(_, info, id):
    ctx = info.context
    authorize(ctx.claim, Action.LIST_USERS)
    return await ctx.run(user_service.get_user, parse_id(id))


@query.field("articles")
async def resolve_articles(_, info, **kwargs):
    """
    Newest-first article listing.

    Staff see drafts and may filter on ``isPublished``.  Everyone else only
    ever gets the published feed, which is served from the cache.
    """
    ctx = info.context
    args = parse_input(ArticleListArgs, kwargs)

    if can(ctx.claim, Action.READ_DRAFTS):
        return await ctx.run(
            article_service.list_articles,
            limit=args.limit,
            offset=args.offset,
            is_published=args.is_published,
        )
    if args.is_published is False:
        return []
    return await ctx.run(article_service.list_published_articles, ctx.cache, args.limit, args.offset)


@query.field("article")
async def resolve_article(_, info, id=None, slug=None):
    ctx = info.context
    article_id = _optional_id(id)
    if article_id is None and slug is None:
        raise ValidationError("Either id or slug must be provided")

    if can(ctx.claim, Action.READ_DRAFTS):
        return await ctx.run(article_service.get_article, article_id=article_id, slug=slug)

    article = await ctx.run(
        article_service.get_published_article, ctx.cache, article_id=article_id, slug=slug
    )
    if article is None and ctx.claim is not None:
        # Authors can always open their own drafts.
        draft = await ctx.run(article_service.get_article, article_id=article_id, slug=slug)
        if draft is not None and draft["author_id"] == ctx.claim.subject_id:
            return draft
    return article


@query.field("categories")
async def resolve_categories(_, info):
    return await info.context.run(category_service.get_categories)


@query.field("category")
async def resolve_category(_, info, id=None, slug=None):
    return await info.context.run(
        category_service.get_category, category_id=_optional_id(id), slug=slug
    )


@query.field("tags")
async def resolve_tags(_, info):
    return await info.context.run(tag_service.get_tags)


@query.field("tag")
async def resolve_tag(_, info, id=None, slug=None):
    return await info.context.run(tag_service.get_tag, tag_id=_optional_id(id), slug=slug)


# ---------------------------------------------------------------------------
# Auth mutations
# ---------------------------------------------------------------------------

@mutation.field("register")
async def resolve_register(_, info, input):
    ctx = info.context
    data = parse_input(RegisterInput, input)
    user = await ctx.run(user_service.create_user, data, ctx.passwords)
    return _auth_payload(ctx, user)


@mutation.field("login")
async def resolve_login(_, info, input):
    ctx = info.context
    data = parse_input(LoginInput, input)
    user = await ctx.run(user_service.authenticate, data.email, data.password, ctx.passwords)
    return _auth_payload(ctx, user)


# ---------------------------------------------------------------------------
# User mutations
# ---------------------------------------------------------------------------

@mutation.field("updateUser")
async def resolve_update_user(_, info, id, input):
    ctx = info.context
    authorize(ctx.claim, Action.MANAGE_USERS)
    data = parse_input(UpdateUserInput, input)
    user = await ctx.run(user_service.update_user, parse_id(id), data)
    if user is None:
        raise NotFound("User not found")
    return user


@mutation.field("deleteUser")
async def resolve_delete_user(_, info, id):
    ctx = info.context
    authorize(ctx.claim, Action.MANAGE_USERS)
    if not await ctx.run(user_service.delete_user, parse_id(id), ctx.cache):
        raise NotFound("User not found")
    return True


# ---------------------------------------------------------------------------
# Article mutations
# ---------------------------------------------------------------------------

@mutation.field("createArticle")
async def resolve_create_article(_, info, input):
    ctx = info.context
    claim = authorize(ctx.claim, Action.WRITE_CONTENT)
    data = parse_input(CreateArticleInput, input)
    return await ctx.run(article_service.create_article, claim.subject_id, data, ctx.cache)


@mutation.field("updateArticle")
async def resolve_update_article(_, info, id, input):
    ctx = info.context
    authorize(ctx.claim, Action.WRITE_CONTENT)
    data = parse_input(UpdateArticleInput, input)
    article = await ctx.run(article_service.update_article, parse_id(id), data, ctx.cache)
    if article is None:
        raise NotFound("Article not found")
    return article


@mutation.field("deleteArticle")
async def resolve_delete_article(_, info, id):
    ctx = info.context
    authorize(ctx.claim, Action.DELETE_ARTICLE)
    if not await ctx.run(article_service.delete_article, parse_id(id), ctx.cache):
        raise NotFound("Article not found")
    return True


@mutation.field("publishArticle")
async def resolve_publish_article(_, info, id):
    ctx = info.context
    authorize(ctx.claim, Action.PUBLISH_ARTICLE)
    article = await ctx.run(article_service.publish_article, parse_id(id), ctx.cache)
    if article is None:
        raise NotFound("Article not found")
    return article


# ---------------------------------------------------------------------------
# Category mutations
# ---------------------------------------------------------------------------

@mutation.field("createCategory")
async def resolve_create_category(_, info, input):
    ctx = info.context
    authorize(ctx.claim, Action.WRITE_CONTENT)
    data = parse_input(CreateCategoryInput, input)
    return await ctx.run(category_service.create_category, data)


@mutation.field("updateCategory")
async def resolve_update_category(_, info, id, input):
    ctx = info.context
    authorize(ctx.claim, Action.WRITE_CONTENT)
    data = parse_input(UpdateCategoryInput, input)
    category = await ctx.run(category_service.update_category, parse_id(id), data)
    if category is None:
        raise NotFound("Category not found")
    return category


@mutation.field("deleteCategory")
async def resolve_delete_category(_, info, id):
    ctx = info.context
    authorize(ctx.claim, Action.DELETE_TAXONOMY)
    if not await ctx.run(category_service.delete_category, parse_id(id), ctx.cache):
        raise NotFound("Category not found")
    return True


# ---------------------------------------------------------------------------
# Tag mutations
# ---------------------------------------------------------------------------

@mutation.field("createTag")
async def resolve_create_tag(_, info, input):
    ctx = info.context
    authorize(ctx.claim, Action.WRITE_CONTENT)
    data = parse_input(CreateTagInput, input)
    return await ctx.run(tag_service.create_tag, data)


@mutation.field("updateTag")
async def resolve_update_tag(_, info, id, input):
    ctx = info.context
    authorize(ctx.claim, Action.WRITE_CONTENT)
    data = parse_input(UpdateTagInput, input)
    tag = await ctx.run(tag_service.update_tag, parse_id(id), data)
    if tag is None:
        raise NotFound("Tag not found")
    return tag


@mutation.field("deleteTag")
async def resolve_delete_tag(_, info, id):
    ctx = info.context
    authorize(ctx.claim, Action.DELETE_TAXONOMY)
    if not await ctx.run(tag_service.delete_tag, parse_id(id)):
        raise NotFound("Tag not found")
    return True


# ---------------------------------------------------------------------------
# Comment mutations
# ---------------------------------------------------------------------------

@mutation.field("createComment")
async def resolve_create_comment(_, info, input):
    ctx = info.context
    claim = authorize(ctx.claim, Action.CREATE_COMMENT)
    data = parse_input(CreateCommentInput, input)

    article = await ctx.run(article_service.get_article, article_id=data.article_id)
    if article is None or not _can_view(claim, article):
        raise NotFound("Article not found")
    return await ctx.run(comment_service.add_comment, claim.subject_id, data)


@mutation.field("deleteComment")
async def resolve_delete_comment(_, info, id):
    ctx = info.context
    claim = require_auth(ctx.claim)
    comment = await ctx.run(comment_service.get_comment, parse_id(id))
    if comment is None:
        raise NotFound("Comment not found")

    require_owner_or_role(claim, comment["author_id"], PERMISSIONS[Action.DELETE_COMMENT])
    await ctx.run(comment_service.delete_comment, comment["id"])
    return True


# ---------------------------------------------------------------------------
# Object field resolvers
# ---------------------------------------------------------------------------

@user_type.field("articles")
async def resolve_user_articles(user, info):
    ctx = info.context
    is_published = None if _sees_drafts_of(ctx.claim, user["id"]) else True
    return await ctx.run(article_service.list_articles, author_id=user["id"], is_published=is_published)


@user_type.field("comments")
async def resolve_user_comments(user, info):
    ctx = info.context
    return await ctx.run(
        comment_service.list_comments,
        author_id=user["id"],
        include_drafts=can(ctx.claim, Action.READ_DRAFTS),
        reader_id=ctx.claim.subject_id if ctx.claim else None,
    )


@article_type.field("author")
async def resolve_article_author(article, info):
    return await info.context.run(user_service.get_user, article["author_id"])


@article_type.field("category")
async def resolve_article_category(article, info):
    if article["category_id"] is None:
        return None
    return await info.context.run(category_service.get_category, category_id=article["category_id"])


@article_type.field("tags")
async def resolve_article_tags(article, info):
    return await info.context.run(tag_service.get_tags_for_article, article["id"])


@article_type.field("comments")
async def resolve_article_comments(article, info):
    return await info.context.run(comment_service.list_comments, article_id=article["id"])


@category_type.field("articles")
async def resolve_category_articles(category, info):
    ctx = info.context
    is_published = None if can(ctx.claim, Action.READ_DRAFTS) else True
    return await ctx.run(article_service.list_articles, category_id=category["id"], is_published=is_published)


@tag_type.field("articles")
async def resolve_tag_articles(tag, info):
    ctx = info.context
    is_published = None if can(ctx.claim, Action.READ_DRAFTS) else True
    return await ctx.run(article_service.list_articles, tag_id=tag["id"], is_published=is_published)


@comment_type.field("article")
async def resolve_comment_article(comment, info):
    ctx = info.context
    article = await ctx.run(article_service.get_article, article_id=comment["article_id"])
    if article is None or not _can_view(ctx.claim, article):
        raise NotFound("Article not found")
    return article


@comment_type.field("author")
async def resolve_comment_author(comment, info):
    return await info.context.run(user_service.get_user, comment["author_id"])


bindables = [query, mutation, user_type, article_type, category_type, tag_type, comment_type]
