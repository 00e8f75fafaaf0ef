"""Unit tests for path and URL normalization."""

import pytest

from docs_precompute.core.paths import (
    file_name_from_url,
    relative_path,
    resolve_relative,
    to_file_url,
    to_portable_path,
)
from docs_precompute.errors import UnresolvedPathError


class TestToPortablePath:
    """Tests for to_portable_path."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("file:///home/user/demo.ts", "/home/user/demo.ts"),
            ("file:///C:/Users/demo.ts", "/C:/Users/demo.ts"),
            ("file://localhost/srv/demo.ts", "/srv/demo.ts"),
            ("C:\\Users\\demo.ts", "/C:/Users/demo.ts"),
            ("d:/work/demo.ts", "/d:/work/demo.ts"),
            ("/home/user/demo.ts", "/home/user/demo.ts"),
            ("src\\demo.ts", "src/demo.ts"),
        ],
        ids=["unix-url", "windows-url", "localhost-url", "windows-path", "lower-drive", "unix-path", "relative"],
    )
    def test_converts_to_portable_form(self, value: str, expected: str) -> None:
        """URLs and native paths map to the same rooted, slash-separated form."""
        assert to_portable_path(value) == expected

    def test_windows_path_and_url_agree(self) -> None:
        """A Windows path and its file URL share one identity."""
        assert to_portable_path("C:\\a\\b.ts") == to_portable_path("file:///C:/a/b.ts")

    def test_empty_input_raises(self) -> None:
        """Empty input is never defaulted."""
        with pytest.raises(UnresolvedPathError):
            to_portable_path("")

    def test_other_schemes_raise(self) -> None:
        """Only file URLs have a portable path."""
        with pytest.raises(UnresolvedPathError, match="https://example.com/a.ts"):
            to_portable_path("https://example.com/a.ts")


class TestToFileUrl:
    """Tests for to_file_url."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("/home/user/demo.ts", "file:///home/user/demo.ts"),
            ("C:\\Users\\demo.ts", "file:///C:/Users/demo.ts"),
            ("file:///already/url.ts", "file:///already/url.ts"),
            ("https://cdn.example.com/a.css", "https://cdn.example.com/a.css"),
        ],
        ids=["unix", "windows", "file-url", "https-url"],
    )
    def test_converts_to_url(self, value: str, expected: str) -> None:
        """Absolute paths gain the file scheme; URLs pass through."""
        assert to_file_url(value) == expected

    def test_round_trip_is_stable(self) -> None:
        """Converting back and forth reaches a fixed point."""
        url = to_file_url("C:\\Users\\demo.ts")
        assert to_file_url(to_portable_path(url)) == url

    def test_relative_path_raises(self) -> None:
        """A relative path has no file URL."""
        with pytest.raises(UnresolvedPathError):
            to_file_url("src/demo.ts")

    def test_empty_input_raises(self) -> None:
        """Empty input raises instead of defaulting."""
        with pytest.raises(UnresolvedPathError):
            to_file_url("")


class TestHelpers:
    """Tests for the relative-resolution and file-name helpers."""

    def test_resolve_relative_sibling(self) -> None:
        """A ./ specifier resolves next to the importing file."""
        assert resolve_relative("file:///demo/button/index.ts", "./Basic") == "file:///demo/button/Basic"

    def test_resolve_relative_parent(self) -> None:
        """A ../ specifier climbs out of the importing directory."""
        assert resolve_relative("file:///demo/button/index.ts", "../shared/util.ts") == "file:///demo/shared/util.ts"

    def test_resolve_relative_windows_base(self) -> None:
        """Windows drives survive resolution."""
        assert resolve_relative("file:///C:/demo/index.ts", "./a.ts") == "file:///C:/demo/a.ts"

    def test_relative_path(self) -> None:
        """Paths are relative to the directory of the first file."""
        assert relative_path("file:///demo/a/Basic.tsx", "file:///demo/a/utils/x.ts") == "utils/x.ts"
        assert relative_path("file:///demo/a/Basic.tsx", "file:///demo/shared.ts") == "../shared.ts"

    @pytest.mark.parametrize(
        ("url", "expected"),
        [
            ("file:///demo/Button.tsx", ("Button.tsx", ".tsx")),
            ("file:///demo/styles.module.css?inline", ("styles.module.css", ".css")),
            ("C:\\demo\\README", ("README", "")),
            ("file:///demo/.eslintrc", (".eslintrc", "")),
        ],
        ids=["tsx", "query-string", "no-extension", "dotfile"],
    )
    def test_file_name_from_url(self, url: str, expected: tuple[str, str]) -> None:
        """The last segment and its extension are returned."""
        assert file_name_from_url(url) == expected
