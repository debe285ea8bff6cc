"""
One-shot latch set.

Centralizes the "already fired" bookkeeping for every threshold alert:
a (key, threshold) pair fires once and stays latched until its key is
dropped with ``retain``.
"""

from typing import Hashable, Iterable


class LatchSet:
    """Set of (key, threshold) pairs that have already fired."""

    def __init__(self):
        self._fired: set[tuple[Hashable, Hashable]] = set()

    def fire_once(self, key: Hashable, threshold: Hashable) -> bool:
        """Latch the pair; True only the first time."""
        marker = (key, threshold)
        if marker in self._fired:
            return False
        self._fired.add(marker)
        return True

    def is_set(self, key: Hashable, threshold: Hashable) -> bool:
        return (key, threshold) in self._fired

    def fired_for(self, key: Hashable) -> set[Hashable]:
        return {threshold for k, threshold in self._fired if k == key}

    def __len__(self) -> int:
        return len(self._fired)

    def retain(self, keys: Iterable[Hashable]) -> int:
        """Drop every pair whose key is not in ``keys``; returns how many went."""
        keep = set(keys)
        stale = {marker for marker in self._fired if marker[0] not in keep}
        self._fired -= stale
        return len(stale)
