from collections.abc import Callable
from typing import Generic, TypeVar

from docs_precompute.models import FileArtifact

V = TypeVar("V")


class _MemoCache(Generic[V]):
    """Insert-if-absent memo table.

    Concurrent callers racing on the same key may both compute, ``dict.setdefault``
    keeps the first stored value so every caller sees the same result.
    """

    def __init__(self) -> None:
        self._entries: dict[str, V] = {}

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: str) -> V | None:
        return self._entries.get(key)

    def get_or_compute(self, key: str, compute: Callable[[], V]) -> V:
        if key in self._entries:
            return self._entries[key]
        return self._entries.setdefault(key, compute())


class PathCache(_MemoCache[str | None]):
    """Resolved on-disk module URLs keyed by import URL; ``None`` marks an unresolvable import."""


class ArtifactCache(_MemoCache[FileArtifact]):
    pass
