import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession
from starlette.requests import Request

from knowledge_base.auth.claims import IdentityClaim
from knowledge_base.auth.passwords import PasswordHasher
from knowledge_base.auth.tokens import TokenCodec
from knowledge_base.cache import CacheManager


@dataclass
class RequestContext:
    """
    Everything a resolver may touch, built once per GraphQL request.

    The decoded claim belongs to this request only.  The session is shared
    by every resolver of the operation, and GraphQL resolves sibling fields
    concurrently, so all database work goes through ``run`` which holds
    ``lock`` for the duration of one service call.
    """

    db: AsyncSession
    claim: IdentityClaim | None
    passwords: PasswordHasher
    tokens: TokenCodec
    cache: CacheManager
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)

    async def run(self, operation: Callable[..., Awaitable[Any]], *args, **kwargs) -> Any:
        async with self.lock:
            return await operation(self.db, *args, **kwargs)


def build_context(request: Request, db: AsyncSession) -> RequestContext:
    state = request.app.state
    return RequestContext(
        db=db,
        claim=state.tokens.decode(request.headers.get("Authorization")),
        passwords=state.passwords,
        tokens=state.tokens,
        cache=state.cache,
    )
