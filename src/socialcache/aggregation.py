"""Aggregation engine - read-through queries over users, posts and comments.

Provides:
- top_users(): users ranked by post count (not cached as a whole)
- popular_posts(): every post tied for the most comments
- latest_posts(): the newest posts by id, with comment counts
- users(), user_posts(), post_comments(): the underlying read-through slots
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable, Sequence
from typing import Any, Protocol, TypeVar, runtime_checkable

from socialcache.store import TTLStore
from socialcache.types import Comment, EnrichedPost, Post, TopUser, UserMap

logger = logging.getLogger(__name__)

A = TypeVar("A")
R = TypeVar("R")

TOP_USERS_LIMIT = 5
LATEST_POSTS_LIMIT = 5

USERS_KEY = "users"
POPULAR_POSTS_KEY = "popular_posts"
LATEST_POSTS_KEY = "latest_posts"


def user_posts_key(user_id: str) -> str:
    return f"user_posts:{user_id}"


def post_comments_key(post_id: Any) -> str:
    return f"post_comments:{post_id}"


@runtime_checkable
class SocialSource(Protocol):
    """The three raw fetches the engine needs from upstream."""

    async def fetch_all_users(self) -> UserMap:
        """Fetch every user as an ordered ``{user_id: name}`` mapping."""
        ...

    async def fetch_user_posts(self, user_id: str) -> list[Post]:
        """Fetch the posts written by one user."""
        ...

    async def fetch_post_comments(self, post_id: Any) -> list[Comment]:
        """Fetch the comments on one post."""
        ...


def _post_id_key(post: Post) -> tuple[int, int | str]:
    """Sort key for "newest first": numeric ids rank above anything else."""
    post_id = post.get("id")
    try:
        return (1, int(post_id))  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return (0, str(post_id))


def _copy_posts(posts: Sequence[EnrichedPost]) -> list[EnrichedPost]:
    """Hand callers their own copies so the cached view stays intact."""
    return [dict(post) for post in posts]


class AggregationEngine:
    """Derived views over the upstream API, backed by a TTL store.

    Usage:
        engine = AggregationEngine(store=TTLStore(ttl="30s"), source=client)
        top = await engine.top_users()
        popular = await engine.popular_posts()
    """

    def __init__(
        self,
        *,
        store: TTLStore,
        source: SocialSource,
        max_concurrency: int = 10,
    ) -> None:
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        self._store = store
        self._source = source
        # Shared by every query, so the cap holds across concurrent callers
        self._semaphore = asyncio.Semaphore(max_concurrency)

    @property
    def store(self) -> TTLStore:
        return self._store

    # -------------------------------------------------------------------------
    # Read-through slots
    # -------------------------------------------------------------------------

    async def users(self) -> UserMap:
        return await self._store.read_through(USERS_KEY, self._source.fetch_all_users)

    async def user_posts(self, user_id: str) -> list[Post]:
        return await self._store.read_through(
            user_posts_key(user_id),
            lambda: self._source.fetch_user_posts(user_id),
        )

    async def post_comments(self, post_id: Any) -> list[Comment]:
        # Comment slots are filled once and never refreshed
        return await self._store.read_through(
            post_comments_key(post_id),
            lambda: self._source.fetch_post_comments(post_id),
            check_freshness=False,
        )

    # -------------------------------------------------------------------------
    # Derived views
    # -------------------------------------------------------------------------

    async def top_users(self, limit: int = TOP_USERS_LIMIT) -> list[TopUser]:
        """Users with the most posts, most first.

        Ties keep the order users appear in upstream. Recomputed on every
        call; only the per-user post lists are cached.
        """
        users = await self.users()
        post_lists = await self._fan_out(users, self.user_posts)

        ranked = [
            TopUser(id=user_id, name=name, post_count=len(posts))
            for (user_id, name), posts in zip(users.items(), post_lists)
        ]
        # sorted() is stable, so equal counts stay in upstream order
        ranked = sorted(ranked, key=lambda u: u.post_count, reverse=True)
        return ranked[:limit]

    async def popular_posts(self) -> list[EnrichedPost]:
        """Every post that shares the highest comment count."""
        cached = await self._fresh_value(POPULAR_POSTS_KEY)
        if cached is not None:
            return _copy_posts(cached)

        posts = await self._all_posts()
        counted = await self._with_comment_counts(posts)

        max_count = max((post["commentCount"] for post in counted), default=0)
        popular = [post for post in counted if post["commentCount"] == max_count]

        logger.info(
            "Computed popular posts: %d of %d posts with %d comments",
            len(popular),
            len(counted),
            max_count,
        )
        await self._store.put(POPULAR_POSTS_KEY, popular)
        return _copy_posts(popular)

    async def latest_posts(self, limit: int = LATEST_POSTS_LIMIT) -> list[EnrichedPost]:
        """The newest posts by id, each with its comment count.

        Comments are only fetched for the posts that make the cut.
        """
        cached = await self._fresh_value(LATEST_POSTS_KEY)
        if cached is not None:
            return _copy_posts(cached)

        posts = await self._all_posts()
        newest = sorted(posts, key=_post_id_key, reverse=True)[:limit]
        latest = await self._with_comment_counts(newest)

        logger.info("Computed latest posts: %d of %d posts", len(latest), len(posts))
        await self._store.put(LATEST_POSTS_KEY, latest)
        return _copy_posts(latest)

    # -------------------------------------------------------------------------
    # Internal helpers
    # -------------------------------------------------------------------------

    async def _fresh_value(self, key: str) -> Any | None:
        entry = await self._store.entry(key)
        if entry is None or not await self._store.is_fresh(key):
            return None
        return entry.value

    async def _all_posts(self) -> list[EnrichedPost]:
        """All posts of all users, each tagged with its owner's name."""
        users = await self.users()
        post_lists = await self._fan_out(users, self.user_posts)

        return [
            {**post, "userName": users.get(str(post.get("userid")))}
            for posts in post_lists
            for post in posts
        ]

    async def _with_comment_counts(self, posts: Sequence[EnrichedPost]) -> list[EnrichedPost]:
        comment_lists = await self._fan_out(
            [post.get("id") for post in posts], self.post_comments
        )
        return [
            {**post, "commentCount": len(comments)}
            for post, comments in zip(posts, comment_lists)
        ]

    async def _fan_out(
        self, items: Iterable[A], worker: Callable[[A], Awaitable[R]]
    ) -> list[R]:
        """Run ``worker`` over ``items`` concurrently, results in input order.

        At most ``max_concurrency`` calls are in flight across the whole
        engine, however many queries run at once. The first failure
        fails the whole batch.
        """

        async def bounded(item: A) -> R:
            async with self._semaphore:
                return await worker(item)

        return list(await asyncio.gather(*(bounded(item) for item in items)))


__all__ = ["AggregationEngine", "SocialSource"]
