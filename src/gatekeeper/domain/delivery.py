"""
Bounded calls to external collaborators.

Mail, SMS, and identity-verifier calls run on a worker pool and are waited
on for at most a fixed timeout. A slow or failing collaborator becomes a
DependencyError instead of a hung request. No domain lock is held while
these calls run.
"""

import logging
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import TypeVar

from .exceptions import AuthError, DependencyError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class BoundedCaller:
    """Runs collaborator calls with a timeout on a shared thread pool."""

    def __init__(self, timeout_seconds: float = 10.0, max_workers: int = 8) -> None:
        if timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be positive")
        self.timeout_seconds = timeout_seconds
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="gatekeeper-delivery"
        )

    def call(self, description: str, fn: Callable[..., T], *args: object) -> T:
        """
        Invoke fn(*args) and wait at most timeout_seconds for its result.

        Domain errors raised by the collaborator propagate unchanged.

        Raises:
            DependencyError: On timeout or any non-domain exception
        """
        future = self._executor.submit(fn, *args)
        try:
            return future.result(timeout=self.timeout_seconds)
        except FutureTimeoutError:
            future.cancel()
            logger.warning("%s timed out after %.1fs", description, self.timeout_seconds)
            raise DependencyError(f"{description} timed out") from None
        except AuthError:
            raise
        except Exception as e:
            logger.error("%s failed: %s", description, e)
            raise DependencyError(f"{description} failed") from e

    def shutdown(self) -> None:
        """Stop accepting work; in-flight calls finish in the background."""
        self._executor.shutdown(wait=False, cancel_futures=True)
