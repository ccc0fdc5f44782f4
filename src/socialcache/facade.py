"""Query facade - the entry point for external callers."""

from __future__ import annotations

import logging
from collections.abc import Awaitable
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, TypeVar

from socialcache.aggregation import AggregationEngine
from socialcache.errors import InvalidArgument, ServiceError
from socialcache.types import EnrichedPost

logger = logging.getLogger(__name__)

T = TypeVar("T")

POSTS_KINDS = ("popular", "latest")
DEFAULT_POSTS_KIND = "latest"


class QueryFacade:
    """Delegates to the engine and hides failure detail from callers."""

    def __init__(self, engine: AggregationEngine) -> None:
        self._engine = engine

    @property
    def engine(self) -> AggregationEngine:
        return self._engine

    async def top_users(self) -> list[dict[str, Any]]:
        users = await self._guard("top users", self._engine.top_users())
        return [user.as_dict() for user in users]

    async def posts(self, kind: str | None = DEFAULT_POSTS_KIND) -> list[EnrichedPost]:
        """Popular or latest posts.

        Raises:
            InvalidArgument: ``kind`` is not "popular" or "latest". Checked
                before the cache or upstream is touched.
            ServiceError: the posts could not be assembled.
        """
        kind = kind or DEFAULT_POSTS_KIND
        if kind not in POSTS_KINDS:
            raise InvalidArgument(
                f'Invalid type parameter {kind!r}. Use "popular" or "latest".'
            )
        if kind == "popular":
            return await self._guard("popular posts", self._engine.popular_posts())
        return await self._guard("latest posts", self._engine.latest_posts())

    async def dashboard_stats(self) -> dict[str, Any]:
        """Summary figures over the three views.

        Posts are de-duplicated by id across the popular and latest sets.
        """
        top_users = await self.top_users()
        popular = await self.posts("popular")
        latest = await self.posts("latest")

        unique_posts = list({post.get("id"): post for post in [*popular, *latest]}.values())
        total_comments = sum(post.get("commentCount", 0) for post in unique_posts)
        avg_comments = _one_decimal(total_comments, len(unique_posts)) if unique_posts else 0
        active_users = {post.get("userid") for post in unique_posts}

        return {
            "totalUsers": len(top_users),
            "totalPosts": len(unique_posts),
            "avgComments": avg_comments,
            "activeUsers": len(active_users),
        }

    async def _guard(self, what: str, call: Awaitable[T]) -> T:
        try:
            return await call
        except Exception as e:
            logger.exception("Failed to fetch %s", what)
            raise ServiceError(f"Failed to fetch {what}") from e


def _one_decimal(total: int, count: int) -> float:
    """``total / count`` to one decimal place, halves rounded up (0.25 -> 0.3)."""
    average = Decimal(total) / Decimal(count)
    return float(average.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


__all__ = ["QueryFacade", "POSTS_KINDS"]
