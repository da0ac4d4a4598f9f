"""
In-process one-time-code store - Implements OneTimeCodeStore protocol.

Concurrency Design:
------------------
Entries live in a fixed number of shards. A subject always hashes to the
same shard, and each shard has its own lock and dict, so:

1. **Same subject**: operations serialize on one lock and are linearizable.
   Two concurrent verify() calls for one issued code cannot both succeed;
   the loser finds the entry already consumed.

2. **Different subjects**: operations on different shards never contend.
   Critical sections are a dict lookup and a compare, with no I/O.

Expiry is checked lazily on access. sweep() reclaims abandoned entries.
Nothing is persisted; codes vanish on restart.
"""

import logging
import secrets
import threading
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta

from gatekeeper.domain.sessions import utc_now

logger = logging.getLogger(__name__)

CODE_MIN = 100_000
CODE_MAX = 999_999


@dataclass(frozen=True)
class CodeEntry:
    subject_id: str
    code: str
    created_at: datetime
    expires_at: datetime


class _Shard:
    __slots__ = ("lock", "entries")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.entries: dict[str, CodeEntry] = {}


def generate_code() -> str:
    """Uniformly random 6-digit code in 100000-999999."""
    return str(CODE_MIN + secrets.randbelow(CODE_MAX - CODE_MIN + 1))


class InMemoryOneTimeCodeStore:
    """
    Implements OneTimeCodeStore protocol with lock-striped dicts.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(
        self,
        ttl: timedelta = timedelta(minutes=10),
        shards: int = 64,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """
        Initialize an empty store.

        Args:
            ttl: Lifetime of an issued code
            shards: Number of independently locked partitions
            clock: Time source, injectable for tests
        """
        if shards < 1:
            raise ValueError("shards must be >= 1")
        self.ttl = ttl
        self._clock = clock
        self._shards = [_Shard() for _ in range(shards)]

    def _shard_for(self, subject_id: str) -> _Shard:
        return self._shards[hash(subject_id) % len(self._shards)]

    def issue(self, subject_id: str) -> str:
        code = generate_code()
        now = self._clock()
        entry = CodeEntry(
            subject_id=subject_id, code=code, created_at=now, expires_at=now + self.ttl
        )
        shard = self._shard_for(subject_id)
        with shard.lock:
            shard.entries[subject_id] = entry
        logger.debug("Issued one-time code for subject %s", subject_id)
        return code

    def verify(self, subject_id: str, candidate: str) -> bool:
        shard = self._shard_for(subject_id)
        with shard.lock:
            entry = shard.entries.get(subject_id)
            if entry is None:
                return False

            if self._clock() > entry.expires_at:
                del shard.entries[subject_id]
                logger.info("One-time code for subject %s has expired", subject_id)
                return False

            if not secrets.compare_digest(entry.code.encode(), str(candidate).encode()):
                return False

            del shard.entries[subject_id]
            return True

    def discard(self, subject_id: str, code: str | None = None) -> bool:
        shard = self._shard_for(subject_id)
        with shard.lock:
            entry = shard.entries.get(subject_id)
            if entry is None or (code is not None and entry.code != code):
                return False
            del shard.entries[subject_id]
            return True

    def sweep(self) -> int:
        removed = 0
        now = self._clock()
        for shard in self._shards:
            with shard.lock:
                expired = [key for key, entry in shard.entries.items() if now > entry.expires_at]
                for key in expired:
                    del shard.entries[key]
                removed += len(expired)
        if removed:
            logger.info("Swept %d expired one-time code(s)", removed)
        return removed

    def __len__(self) -> int:
        return sum(len(shard.entries) for shard in self._shards)
