"""
splice.ids - Namespaced monotonic identifiers.

Ids look like ``clip_0003``. Each namespace keeps its own counter and never
reuses a value, even after the entity it named is removed.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable


class IdGenerator:
    """Hands out unique ids per namespace."""

    def __init__(self, width: int = 4) -> None:
        self.width = width
        self._counters: dict[str, int] = defaultdict(int)
        self._issued: set[str] = set()

    def next(self, namespace: str) -> str:
        """Return the next unused id in ``namespace``."""
        while True:
            self._counters[namespace] += 1
            candidate = f"{namespace}_{self._counters[namespace]:0{self.width}d}"
            if candidate not in self._issued:
                self._issued.add(candidate)
                return candidate

    def reserve(self, ids: Iterable[str]) -> None:
        """Mark externally supplied ids as taken."""
        self._issued.update(ids)
