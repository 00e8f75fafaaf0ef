"""Conversion between file paths and portable ``file://`` identities.

A portable path is ``/``-separated and rooted at ``/`` on every platform; Windows
drives are kept as ``/C:/...`` with the drive letter case preserved.
"""

import posixpath
import re

from docs_precompute.errors import UnresolvedPathError

_FILE_SCHEME = "file://"
_PASSTHROUGH_SCHEMES = ("file://", "http://", "https://")
_WINDOWS_DRIVE = re.compile(r"^[a-zA-Z]:/")
_URL_SCHEME = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]+:")


def to_portable_path(value: str) -> str:
    """Convert a file URL or a Unix/Windows path to its portable form.

    Relative paths only get their separators normalized.
    """
    if not value:
        raise UnresolvedPathError(value, "empty path")

    if value.startswith(_FILE_SCHEME):
        path = value[len(_FILE_SCHEME) :].replace("\\", "/")
        if path.startswith("localhost/"):
            path = path[len("localhost") :]
        if not path.startswith("/"):
            path = "/" + path
        return path

    path = value.replace("\\", "/")
    if _WINDOWS_DRIVE.match(path):
        return "/" + path
    if _URL_SCHEME.match(path):
        raise UnresolvedPathError(value, "only file:// URLs have a portable path")
    return path


def to_file_url(value: str) -> str:
    """Convert a portable path to a ``file://`` URL; existing URLs pass through unchanged."""
    if not value:
        raise UnresolvedPathError(value, "empty path")
    if value.startswith(_PASSTHROUGH_SCHEMES):
        return value

    path = to_portable_path(value)
    if not path.startswith("/"):
        raise UnresolvedPathError(value, "relative paths have no file URL")
    return _FILE_SCHEME + path


def resolve_relative(base_url: str, specifier: str) -> str:
    """Resolve a relative import specifier against the URL of the importing module."""
    base = to_portable_path(base_url)
    resolved = posixpath.normpath(posixpath.join(posixpath.dirname(base), specifier.replace("\\", "/")))
    return to_file_url(resolved)


def relative_path(from_url: str, to_url: str) -> str:
    """Posix path of ``to_url`` relative to the directory containing ``from_url``."""
    start = posixpath.dirname(to_portable_path(from_url))
    return posixpath.relpath(to_portable_path(to_url), start)


def file_name_from_url(url: str) -> tuple[str, str]:
    """Return ``(file_name, extension)`` for the last segment of a URL or path."""
    path = url.replace("\\", "/").split("?", 1)[0].split("#", 1)[0]
    file_name = path.rstrip("/").rsplit("/", 1)[-1]
    dot = file_name.rfind(".")
    extension = file_name[dot:] if dot > 0 else ""
    return file_name, extension
