"""socialcache - read-through aggregation cache for a social-data API."""

from contextlib import suppress

# Aggregation
from socialcache.aggregation import AggregationEngine, SocialSource

# Configuration
from socialcache.config import Settings
from socialcache.duration import parse_duration

# Errors
from socialcache.errors import (
    InvalidArgument,
    ServiceError,
    SocialCacheError,
    UpstreamError,
)
from socialcache.facade import QueryFacade
from socialcache.store import TTLStore

# Core types
from socialcache.types import CacheEntry, Duration, TopUser
from socialcache.upstream import UpstreamClient

# The HTTP surface is only available when FastAPI is installed
with suppress(ImportError):
    from socialcache.api import create_app

__version__ = "0.1.0"

__all__ = [
    "AggregationEngine",
    "CacheEntry",
    "Duration",
    "InvalidArgument",
    "QueryFacade",
    "ServiceError",
    "Settings",
    "SocialCacheError",
    "SocialSource",
    "TTLStore",
    "TopUser",
    "UpstreamClient",
    "UpstreamError",
    "create_app",
    "parse_duration",
]
