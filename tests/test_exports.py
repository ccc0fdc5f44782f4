"""Tests for package exports."""


def test_public_api_available() -> None:
    """Test that the components are importable from the package root."""
    from socialcache import (
        AggregationEngine,
        QueryFacade,
        TTLStore,
        UpstreamClient,
        parse_duration,
    )

    # Just verify they're importable
    assert AggregationEngine is not None
    assert QueryFacade is not None
    assert TTLStore is not None
    assert UpstreamClient is not None
    assert parse_duration is not None


def test_errors_share_a_base() -> None:
    from socialcache import (
        InvalidArgument,
        ServiceError,
        SocialCacheError,
        UpstreamError,
    )

    for error in (InvalidArgument, ServiceError, UpstreamError):
        assert issubclass(error, SocialCacheError)
