import logging
from contextlib import asynccontextmanager
from datetime import timedelta

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from knowledge_base import __version__
from knowledge_base.auth import PasswordHasher, TokenCodec
from knowledge_base.cache import CacheManager
from knowledge_base.config import settings
from knowledge_base.middleware import TimingMiddleware
from knowledge_base.routers import graphql

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info("Starting knowledge base API (env=%s)", settings.APP_ENV)
    await app.state.cache.connect()  # App works without Redis
    yield
    # Shutdown
    await app.state.cache.disconnect()
    logger.info("Knowledge base API stopped")


def create_app() -> FastAPI:
    app = FastAPI(
        title="Knowledge Base API",
        description="GraphQL API for publishing articles, categories, tags and comments",
        version=__version__,
        lifespan=lifespan,
    )

    app.state.passwords = PasswordHasher(rounds=settings.BCRYPT_ROUNDS)
    app.state.tokens = TokenCodec(
        settings.SECRET_KEY.get_secret_value(),
        ttl=timedelta(seconds=settings.TOKEN_TTL_SECONDS),
        algorithm=settings.JWT_ALGORITHM,
    )
    app.state.cache = CacheManager(settings.REDIS_URL)

    # Middleware
    app.add_middleware(TimingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routers
    app.include_router(graphql.router)

    @app.get("/health")
    async def health():
        return {"status": "healthy", "version": __version__, "cache": app.state.cache.stats}

    return app


configure_logging()
app = create_app()
