from docs_precompute.store.memory import ArtifactCache, PathCache

__all__ = [
    "ArtifactCache",
    "PathCache",
]
