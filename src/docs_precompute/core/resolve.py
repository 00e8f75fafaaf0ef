import logging
import re
from pathlib import Path

from docs_precompute.core.paths import to_file_url, to_portable_path
from docs_precompute.store.memory import PathCache

logger = logging.getLogger(__name__)

# Tried in order for extensionless specifiers, first for the file itself and then for an index file
MODULE_EXTENSIONS = (".ts", ".tsx", ".js", ".jsx", ".mjs", ".mts", ".mdx", ".css")

_PORTABLE_DRIVE = re.compile(r"^/[a-zA-Z]:/")


def file_system_path(url: str) -> Path:
    """Local path for a ``file://`` URL or portable path."""
    portable = to_portable_path(url)
    if _PORTABLE_DRIVE.match(portable):
        portable = portable[1:]
    return Path(portable)


def resolve_module_url(url: str) -> str | None:
    """Find the file an import URL refers to, or ``None`` when nothing on disk matches."""
    path = file_system_path(url)
    if path.is_file():
        return url
    base = url.rstrip("/")
    for candidate in (
        *(base + extension for extension in MODULE_EXTENSIONS),
        *(f"{base}/index{extension}" for extension in MODULE_EXTENSIONS),
    ):
        if file_system_path(candidate).is_file():
            return to_file_url(candidate)
    logger.debug("No module found for %s", url)
    return None


def resolve_import_url(url: str, cache: PathCache | None = None) -> str | None:
    if cache is None:
        return resolve_module_url(url)
    return cache.get_or_compute(url, lambda: resolve_module_url(url))


def read_source(url: str) -> str:
    path = file_system_path(url)
    if not path.is_file():
        raise FileNotFoundError(f"File not found: {path}")
    return path.read_text(encoding="utf-8")
