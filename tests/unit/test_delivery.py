"""
Unit tests for BoundedCaller.
"""

import threading

import pytest

from gatekeeper.domain.delivery import BoundedCaller
from gatekeeper.domain.exceptions import AuthenticationError, DependencyError


@pytest.fixture
def fast_caller():
    caller = BoundedCaller(timeout_seconds=0.2, max_workers=2)
    yield caller
    caller.shutdown()


class TestBoundedCaller:
    """Tests for BoundedCaller.call()."""

    def test_returns_result(self, fast_caller: BoundedCaller) -> None:
        assert fast_caller.call("sum", lambda a, b: a + b, 2, 3) == 5

    def test_timeout_becomes_dependency_error(self, fast_caller: BoundedCaller) -> None:
        release = threading.Event()
        try:
            with pytest.raises(DependencyError, match="slow call timed out"):
                fast_caller.call("slow call", release.wait, 5)
        finally:
            release.set()

    def test_unexpected_exception_becomes_dependency_error(
        self, fast_caller: BoundedCaller
    ) -> None:
        def boom() -> None:
            raise ConnectionError("refused")

        with pytest.raises(DependencyError) as exc_info:
            fast_caller.call("provider", boom)
        assert isinstance(exc_info.value.__cause__, ConnectionError)

    def test_domain_errors_propagate_unchanged(self, fast_caller: BoundedCaller) -> None:
        def reject() -> None:
            raise AuthenticationError("bad token")

        with pytest.raises(AuthenticationError, match="bad token"):
            fast_caller.call("verifier", reject)

    def test_non_positive_timeout_rejected(self) -> None:
        with pytest.raises(ValueError):
            BoundedCaller(timeout_seconds=0)
