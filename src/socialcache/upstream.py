"""HTTP client for the remote social-data API.

Translates upstream JSON into the data model. No caching, no joining,
no retries: every failure surfaces as ``UpstreamError``.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from socialcache.config import DEFAULT_BASE_URL, DEFAULT_TIMEOUT_S
from socialcache.errors import UpstreamError
from socialcache.types import Comment, Post, UserMap

logger = logging.getLogger(__name__)


class UpstreamClient:
    """Async client for ``/users``, ``/users/{id}/posts`` and ``/posts/{id}/comments``."""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        *,
        timeout: float = DEFAULT_TIMEOUT_S,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._owns_client = client is None
        self._client = client if client is not None else httpx.AsyncClient(timeout=timeout)

    @property
    def base_url(self) -> str:
        return self._base_url

    async def __aenter__(self) -> UpstreamClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()

    async def _get_field(self, path: str, field: str) -> Any:
        """GET a path and return one top-level field of the JSON body."""
        url = f"{self._base_url}{path}"
        logger.debug("GET %s", url)
        try:
            response = await self._client.get(url)
        except httpx.HTTPError as e:
            logger.warning("Upstream request to %s failed: %s", url, e)
            raise UpstreamError(f"Request to {url} failed: {e}", url=url) from e

        if not response.is_success:
            logger.warning("Upstream %s returned HTTP %d", url, response.status_code)
            raise UpstreamError(
                f"HTTP {response.status_code} from {url}",
                url=url,
                upstream_status=response.status_code,
            )

        try:
            body = response.json()
        except ValueError as e:
            raise UpstreamError(f"Invalid JSON from {url}", url=url) from e

        if not isinstance(body, dict) or field not in body:
            raise UpstreamError(f"Missing '{field}' in response from {url}", url=url)
        return body[field]

    async def fetch_all_users(self) -> UserMap:
        """Fetch every user as an ordered ``{user_id: name}`` mapping."""
        users = await self._get_field("/users", "users")
        if users is None:
            return {}
        if not isinstance(users, dict):
            raise UpstreamError("Expected 'users' to be an object", url=f"{self._base_url}/users")
        return {str(user_id): name for user_id, name in users.items()}

    async def fetch_user_posts(self, user_id: str | int) -> list[Post]:
        """Fetch the posts written by one user."""
        path = f"/users/{user_id}/posts"
        return _as_list(await self._get_field(path, "posts"), "posts", self._base_url + path)

    async def fetch_post_comments(self, post_id: str | int) -> list[Comment]:
        """Fetch the comments on one post."""
        path = f"/posts/{post_id}/comments"
        return _as_list(await self._get_field(path, "comments"), "comments", self._base_url + path)


def _as_list(value: Any, field: str, url: str) -> list[dict[str, Any]]:
    # A null collection counts as empty
    if value is None:
        return []
    if not isinstance(value, list):
        raise UpstreamError(f"Expected '{field}' to be a list", url=url)
    return value


__all__ = ["UpstreamClient"]
