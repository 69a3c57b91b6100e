import pytest

from github_exporter.context import RefreshContext
from github_exporter.errors import FetchError, FetchTimeoutError


def test_unbounded_context_never_expires():
    ctx = RefreshContext()

    ctx.check()
    assert ctx.remaining() is None
    assert ctx.timeout(60) == 60


def test_cancel_makes_check_fail():
    ctx = RefreshContext()
    ctx.cancel()

    assert ctx.cancelled
    with pytest.raises(FetchTimeoutError, match="cancelled"):
        ctx.check()


def test_timeout_errors_are_fetch_errors():
    ctx = RefreshContext(deadline=0.0)

    with pytest.raises(FetchError, match="deadline"):
        ctx.check()


def test_request_timeout_is_clamped():
    ctx = RefreshContext.with_timeout(5)

    assert 0 < ctx.timeout(60) <= 5
