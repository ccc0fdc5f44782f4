"""Shared pytest fixtures."""

from typing import Any

import pytest

from socialcache import AggregationEngine, QueryFacade, TTLStore, UpstreamError


class ManualClock:
    """Clock that only moves when told to."""

    def __init__(self, start: int = 1_000_000) -> None:
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


class FakeSource:
    """In-memory stand-in for the upstream API that records every fetch."""

    def __init__(
        self,
        users: dict[str, str] | None = None,
        posts: dict[str, list[dict[str, Any]]] | None = None,
        comments: dict[Any, int] | None = None,
    ) -> None:
        self.users = users or {}
        self.posts = posts or {}
        self.comments = comments or {}
        self.calls: list[tuple[str, Any]] = []
        self.failing = False

    def fail(self) -> None:
        self.failing = True

    def count(self, kind: str, arg: Any = None) -> int:
        return sum(1 for c in self.calls if c[0] == kind and (arg is None or c[1] == arg))

    def _check(self, kind: str, arg: Any) -> None:
        self.calls.append((kind, arg))
        if self.failing:
            raise UpstreamError(f"{kind} unavailable")

    async def fetch_all_users(self) -> dict[str, str]:
        self._check("users", None)
        return dict(self.users)

    async def fetch_user_posts(self, user_id: str) -> list[dict[str, Any]]:
        self._check("posts", user_id)
        return list(self.posts.get(user_id, []))

    async def fetch_post_comments(self, post_id: Any) -> list[dict[str, Any]]:
        self._check("comments", post_id)
        return [{"id": f"{post_id}-{i}", "postid": post_id} for i in range(self.comments.get(post_id, 0))]


def post(post_id: int, user_id: str) -> dict[str, Any]:
    return {"id": post_id, "userid": user_id, "content": f"post {post_id}"}


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def store(clock: ManualClock) -> TTLStore:
    """Create a fresh TTLStore on a manual clock for each test."""
    return TTLStore(ttl="30s", clock=clock)


@pytest.fixture
def source() -> FakeSource:
    """Three users, five posts, varied comment counts."""
    return FakeSource(
        users={"1": "Alice", "2": "Bob", "3": "Carol"},
        posts={
            "1": [post(1, "1"), post(4, "1")],
            "2": [post(2, "2"), post(5, "2"), post(6, "2")],
            "3": [post(3, "3")],
        },
        comments={1: 2, 2: 4, 3: 4, 4: 0, 5: 1, 6: 3},
    )


@pytest.fixture
def engine(store: TTLStore, source: FakeSource) -> AggregationEngine:
    return AggregationEngine(store=store, source=source, max_concurrency=3)


@pytest.fixture
def facade(engine: AggregationEngine) -> QueryFacade:
    return QueryFacade(engine)
