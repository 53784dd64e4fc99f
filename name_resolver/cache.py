"""
Bounded in-memory caches used by the name resolution search
"""
from typing import Optional

from cachetools import LRUCache

from .constants import ResolutionConstants


def _lru(capacity: int) -> Optional[LRUCache]:
    """LRU store for a capacity, None when the cache is disabled (capacity 0)"""
    if capacity < 0:
        raise ValueError("capacity must not be negative")
    if capacity == 0:
        return None
    return LRUCache(maxsize=capacity)


class SuffixAllocator:
    """
    Remembers the last numeric suffix issued per lower-cased base name

    Only an optimization: an evicted or missing entry restarts the count
    at 1, and every candidate is re-checked against the registry anyway.
    """

    def __init__(self, capacity: int = ResolutionConstants.SUFFIX_CACHE_SIZE):
        self._last_suffixes = _lru(capacity)

    def next_suffix(self, base_lower: str) -> int:
        """One more than the last suffix issued for the base, or 1"""
        return self.last_suffix(base_lower) + 1

    def last_suffix(self, base_lower: str) -> int:
        """Last suffix issued or tried for the base, 0 if unknown"""
        if self._last_suffixes is None:
            return ResolutionConstants.FIRST_SUFFIX - 1
        return self._last_suffixes.get(base_lower, ResolutionConstants.FIRST_SUFFIX - 1)

    def record_suffix(self, base_lower: str, suffix: int):
        if self._last_suffixes is not None:
            self._last_suffixes[base_lower] = suffix

    def __len__(self) -> int:
        return len(self._last_suffixes) if self._last_suffixes is not None else 0


class TruncationCache:
    """
    Remembers how far a long base had to be truncated to fit its suffix

    Keyed by the original lower-cased base and the maximum length in force.
    """

    def __init__(self, capacity: int = ResolutionConstants.TRUNCATION_CACHE_SIZE):
        self._truncations = _lru(capacity)

    def get(self, base_lower: str, max_length: int) -> Optional[int]:
        if self._truncations is None:
            return None
        return self._truncations.get((base_lower, max_length))

    def record(self, base_lower: str, max_length: int, truncated_length: int):
        if self._truncations is not None:
            self._truncations[(base_lower, max_length)] = truncated_length

    def __len__(self) -> int:
        return len(self._truncations) if self._truncations is not None else 0
