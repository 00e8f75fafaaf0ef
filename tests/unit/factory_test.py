"""Unit tests for demo factory-call discovery."""

import pytest

from docs_precompute.core.factory import find_factory_calls
from docs_precompute.errors import MalformedInputError

_IMPORTS = "import Basic from './Basic';\nimport { Styled as Themed } from './Styled';\nimport * as Css from './Css';\n"


class TestFindFactoryCalls:
    """Tests for find_factory_calls."""

    def test_single_variant_identifier(self) -> None:
        """A bare identifier becomes the Default variant."""
        source = _IMPORTS + "export const Demo = createDemo(import.meta.url, Basic);\n"
        (call,) = find_factory_calls(source, "/demo/index.ts")
        assert call.function_name == "createDemo"
        assert call.url_expression == "import.meta.url"
        assert call.variants == {"Default": "file:///demo/Basic"}
        assert call.named_exports == {"Default": None}
        assert call.options == {}
        assert source[call.start : call.end] == "createDemo(import.meta.url, Basic)"

    def test_variant_object_and_options(self) -> None:
        """Object variants map names to import URLs and options are decoded."""
        source = _IMPORTS + (
            "export const Demo = createDemoWithVariants(\n"
            "  import.meta.url,\n"
            "  { Basic, Themed: Themed as unknown as Component, Css },\n"
            "  { name: 'Themed button', skipPrecompute: false, order: 2 },\n"
            ");\n"
        )
        (call,) = find_factory_calls(source, "/demo/index.ts")
        assert call.function_name == "createDemoWithVariants"
        assert call.variants == {
            "Basic": "file:///demo/Basic",
            "Themed": "file:///demo/Styled",
            "Css": "file:///demo/Css",
        }
        assert call.named_exports == {"Basic": None, "Themed": "Styled", "Css": None}
        assert call.options == {"name": "Themed button", "skipPrecompute": False, "order": 2}

    def test_calls_in_comments_and_strings_are_ignored(self) -> None:
        """Only calls in code count."""
        source = _IMPORTS + (
            "// createDemo(import.meta.url, Basic)\n"
            "const s = 'createDemo(import.meta.url, Basic)';\n"
        )
        assert find_factory_calls(source, "/demo/index.ts") == []

    def test_unrelated_create_calls_are_ignored(self) -> None:
        """create* calls that never pass the module URL are not factories."""
        source = _IMPORTS + "const Ctx = createContext(null);\nconst s = createStore({ a: 1 });\n"
        assert find_factory_calls(source, "/demo/index.ts") == []

    def test_factory_definition_is_not_a_call(self) -> None:
        """A function named create* is a definition, not a call."""
        source = "export function createDemo(url: string, variants: unknown) {\n  return { url, variants };\n}\n"
        assert find_factory_calls(source, "/demo/createDemo.ts") == []

    def test_virtual_path_keeps_specifier(self) -> None:
        """Without an absolute path the variant keeps its import specifier."""
        source = _IMPORTS + "createDemo(import.meta.url, Basic);\n"
        (call,) = find_factory_calls(source, "index.ts")
        assert call.variants == {"Default": "./Basic"}

    def test_calls_are_in_source_order(self) -> None:
        """Multiple calls are returned in order."""
        source = _IMPORTS + "createDemo(import.meta.url, Basic);\ncreateOther(import.meta.url, { Css });\n"
        calls = find_factory_calls(source, "/demo/index.ts")
        assert [c.function_name for c in calls] == ["createDemo", "createOther"]


class TestMalformedCalls:
    """Tests for rejected factory calls."""

    @pytest.mark.parametrize(
        ("call", "message"),
        [
            ("createDemo(import.meta.url)", "expected 2 or 3 arguments, got 1"),
            ("createDemo(import.meta.url, Basic, {}, extra)", "expected 2 or 3 arguments, got 4"),
            ("createDemo(Basic, import.meta.url)", "first argument must be import.meta.url"),
            ("createDemo(import.meta.url, Missing)", "'Missing' is not imported"),
            ("createDemo(import.meta.url, Basic, 'opts')", "options must be an object literal"),
            ("createDemo(import.meta.url, {})", "variants object is empty"),
            ("createDemo(import.meta.url, getVariant())", "must be an imported identifier"),
        ],
        ids=["too-few", "too-many", "url-not-first", "not-imported", "bad-options", "empty-variants", "expression"],
    )
    def test_malformed_calls_raise(self, call: str, message: str) -> None:
        """Each violation names the file, function and line."""
        source = _IMPORTS + "\n" + call + ";\n"
        with pytest.raises(MalformedInputError, match=message) as excinfo:
            find_factory_calls(source, "/demo/index.ts")
        assert excinfo.value.path == "/demo/index.ts"
        assert excinfo.value.line == 5
        assert "createDemo()" in str(excinfo.value)

    def test_unclosed_call_raises(self) -> None:
        """A call missing its closing parenthesis is malformed."""
        with pytest.raises(MalformedInputError, match="never closed"):
            find_factory_calls(_IMPORTS + "createDemo(import.meta.url, Basic\n", "/demo/index.ts")

    def test_type_only_import_is_not_a_variant(self) -> None:
        """Variants must be runtime imports."""
        source = "import type { Basic } from './Basic';\ncreateDemo(import.meta.url, Basic);\n"
        with pytest.raises(MalformedInputError, match="'Basic' is not imported"):
            find_factory_calls(source, "/demo/index.ts")
