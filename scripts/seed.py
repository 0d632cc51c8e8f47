"""Database seeder: creates the schema, the first admin and optional demo content.

``register`` only ever creates VIEWER accounts, so this script is how a fresh
deployment gets its first ADMIN.
"""
import asyncio
import argparse
import logging
import os
import time

from knowledge_base.auth import PasswordHasher, Role
from knowledge_base.config import settings
from knowledge_base.database import engine, async_session, Base
from knowledge_base.schemas import (
    CreateArticleInput,
    CreateCategoryInput,
    CreateCommentInput,
    CreateTagInput,
    RegisterInput,
)
from knowledge_base.services import (
    article_service,
    category_service,
    comment_service,
    tag_service,
    user_service,
)

logger = logging.getLogger("seed")

CATEGORIES = {
    "Getting Started": "Installation guides and first steps",
    "How-To Guides": "Task-oriented walkthroughs",
    "Reference": "API and configuration reference",
}

TAGS = ["python", "fastapi", "graphql", "postgresql", "redis", "docker", "security", "testing"]


async def seed_demo_content(session, admin: dict, hasher: PasswordHasher, num_articles: int) -> None:
    editor = await user_service.create_user(
        session,
        RegisterInput(email="editor@example.com", username="editor", password="editor-pass", name="Demo Editor"),
        hasher,
        role=Role.EDITOR,
    )
    viewer = await user_service.create_user(
        session,
        RegisterInput(email="viewer@example.com", username="viewer", password="viewer-pass", name="Demo Viewer"),
        hasher,
    )

    categories = [
        await category_service.create_category(session, CreateCategoryInput(name=name, description=description))
        for name, description in CATEGORIES.items()
    ]
    tags = [await tag_service.create_tag(session, CreateTagInput(name=name)) for name in TAGS]
    logger.info("Created %d categories and %d tags", len(categories), len(tags))

    for i in range(num_articles):
        author = admin if i % 3 == 0 else editor
        article = await article_service.create_article(
            session,
            author["id"],
            CreateArticleInput(
                title=f"Guide {i + 1}: working with {TAGS[i % len(TAGS)]}",
                content=f"This is the full content of guide {i + 1}. " * 20,
                excerpt=f"A short guide to {TAGS[i % len(TAGS)]}.",
                category_id=categories[i % len(categories)]["id"],
                tag_ids=[tags[i % len(tags)]["id"], tags[(i + 1) % len(tags)]["id"]],
            ),
        )
        # Every fifth article stays a draft.
        if i % 5 != 4:
            await article_service.publish_article(session, article["id"])
            await comment_service.add_comment(
                session,
                viewer["id"],
                CreateCommentInput(content=f"Thanks, guide {i + 1} helped a lot.", article_id=article["id"]),
            )

    logger.info("Created %d articles", num_articles)


async def seed(admin_email: str, admin_username: str, admin_password: str, demo: bool, num_articles: int):
    start = time.perf_counter()
    hasher = PasswordHasher(rounds=settings.BCRYPT_ROUNDS)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    async with async_session() as session:
        admin = await user_service.create_user(
            session,
            RegisterInput(email=admin_email, username=admin_username, password=admin_password, name="Administrator"),
            hasher,
            role=Role.ADMIN,
        )
        logger.info("Created admin %s (id=%d)", admin["email"], admin["id"])

        if demo:
            await seed_demo_content(session, admin, hasher, num_articles)

        await session.commit()

    await engine.dispose()
    logger.info("Seeding complete in %.1fs", time.perf_counter() - start)


def main():
    parser = argparse.ArgumentParser(description="Seed the knowledge base database")
    parser.add_argument("--admin-email", default="admin@example.com")
    parser.add_argument("--admin-username", default="admin")
    parser.add_argument(
        "--admin-password",
        default=os.environ.get("SEED_ADMIN_PASSWORD", "admin-pass"),
        help="Defaults to $SEED_ADMIN_PASSWORD",
    )
    parser.add_argument("--demo", action="store_true", help="Also create demo users, taxonomy and articles")
    parser.add_argument("--articles", type=int, default=20, help="Number of demo articles")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    asyncio.run(seed(args.admin_email, args.admin_username, args.admin_password, args.demo, args.articles))


if __name__ == "__main__":
    main()
