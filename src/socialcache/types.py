"""Core types for the socialcache aggregation layer."""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

T = TypeVar("T")

# Upstream records are passed through untouched; only a few keys are read.
Post = dict[str, Any]
Comment = dict[str, Any]
EnrichedPost = dict[str, Any]

# user id -> display name, in upstream order
UserMap = dict[str, str]

# Returns the current wall-clock time in milliseconds
Clock = Callable[[], int]

# Duration type alias
Duration = str | int  # "30s", "500ms", "5m" or milliseconds


@dataclass(frozen=True, slots=True)
class CacheEntry(Generic[T]):
    """A cached value with the time it was last written."""

    value: T
    stored_at: int  # Unix timestamp ms

    def age(self, now: int) -> int:
        return now - self.stored_at


@dataclass(frozen=True, slots=True)
class TopUser:
    """A user ranked by how many posts they have."""

    id: str
    name: str
    post_count: int

    def as_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "postCount": self.post_count}
