"""
Run-scoped deduplication of job targets.
"""

import threading
from typing import Set


class Deduplicator:
    """
    Set of job identities already claimed during one run.

    ``try_claim`` is an atomic check-and-set: when several workers discover
    the same link concurrently exactly one of them gets True. Membership is
    never evicted, so a target is crawled at most once per run.

    Example:
        >>> dedup = Deduplicator()
        >>> dedup.try_claim("place:0x1:0x2")
        True
        >>> dedup.try_claim("place:0x1:0x2")
        False
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._seen: Set[str] = set()

    def try_claim(self, identity: str) -> bool:
        with self._lock:
            if identity in self._seen:
                return False
            self._seen.add(identity)
            return True

    def __contains__(self, identity: str) -> bool:
        with self._lock:
            return identity in self._seen

    def __len__(self) -> int:
        with self._lock:
            return len(self._seen)
