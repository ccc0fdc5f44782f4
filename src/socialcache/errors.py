"""Exception hierarchy for socialcache."""

from __future__ import annotations


class SocialCacheError(Exception):
    """Base exception with an HTTP status code."""

    status_code = 500

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        if status_code is not None:
            self.status_code = status_code


class UpstreamError(SocialCacheError):
    """The remote social-data API could not be read.

    Raised on transport failure, a non-2xx status, or a malformed body.
    Never retried.
    """

    status_code = 502

    def __init__(
        self,
        message: str,
        *,
        url: str | None = None,
        upstream_status: int | None = None,
    ) -> None:
        super().__init__(message)
        self.url = url
        self.upstream_status = upstream_status


class InvalidArgument(SocialCacheError):
    """A caller passed a value outside the accepted set."""

    status_code = 400


class ServiceError(SocialCacheError):
    """Generic failure surfaced to external callers.

    The underlying cause is logged and chained, never put in the message.
    """

    status_code = 500
