"""One-time-code store adapters."""

from .memory import InMemoryOneTimeCodeStore

__all__ = ["InMemoryOneTimeCodeStore"]
