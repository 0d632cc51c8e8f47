"""
Test infrastructure for the Knowledge Base API.

Strategy
--------
- Environment variables are set before anything from ``knowledge_base`` is
  imported: settings are read once at import time.  bcrypt runs at its
  minimum cost so hashing does not dominate the suite.
- SQLite in-memory via aiosqlite with StaticPool: every session shares the
  one connection, so the in-memory database is visible to all of them.
  Foreign keys are switched on so cascades match PostgreSQL.
- The app's get_db dependency is overridden with the test session factory.
- All tables are created fresh before each test and dropped after.
- The app's lifespan is not run by ASGITransport, so the CacheManager on
  ``app.state`` is never connected and degrades to a no-op.
"""
import os

os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["APP_ENV"] = "test"
os.environ["BCRYPT_ROUNDS"] = "4"

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import AsyncClient, ASGITransport  # noqa: E402
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from knowledge_base.auth import PasswordHasher, Role  # noqa: E402
from knowledge_base.database import Base, enable_sqlite_foreign_keys, get_db  # noqa: E402
from knowledge_base.main import app  # noqa: E402
from knowledge_base.middleware import install_query_counter  # noqa: E402
from knowledge_base.schemas import RegisterInput  # noqa: E402
from knowledge_base.services import user_service  # noqa: E402

# ---------------------------------------------------------------------------
# Test database engine: SQLite in-memory with aiosqlite
# ---------------------------------------------------------------------------

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

engine_test = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

install_query_counter(engine_test)
enable_sqlite_foreign_keys(engine_test)

async_session_test = async_sessionmaker(
    engine_test,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def override_get_db():
    async with async_session_test() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


app.dependency_overrides[get_db] = override_get_db


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture(autouse=True)
async def setup_db():
    """Create all tables before each test, drop after to guarantee isolation."""
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture
async def db_session() -> AsyncSession:
    """A live AsyncSession for seeding data and asserting state directly."""
    async with async_session_test() as session:
        yield session


@pytest_asyncio.fixture
async def async_client() -> AsyncClient:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def hasher() -> PasswordHasher:
    return app.state.passwords


@pytest.fixture
def make_user(db_session: AsyncSession, hasher: PasswordHasher):
    """
    Factory fixture: create a committed user with the given role and return
    ``(user_dict, headers)`` where *headers* carry a valid bearer token.
    """

    async def _make_user(username: str, role: Role = Role.VIEWER, password: str = "secret-pass"):
        user = await user_service.create_user(
            db_session,
            RegisterInput(email=f"{username}@example.com", username=username, password=password),
            hasher,
            role=role,
        )
        await db_session.commit()
        token = app.state.tokens.issue(user_service.claim_for(user))
        return user, {"Authorization": f"Bearer {token}"}

    return _make_user


@pytest.fixture
def gql(async_client: AsyncClient):
    """POST a GraphQL document and return ``(status_code, body)``."""

    async def _gql(query: str, variables: dict | None = None, headers: dict | None = None):
        resp = await async_client.post(
            "/graphql",
            json={"query": query, "variables": variables or {}},
            headers=headers or {},
        )
        return resp.status_code, resp.json()

    return _gql