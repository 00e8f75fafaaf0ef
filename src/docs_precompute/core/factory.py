"""Static discovery of ``create*(import.meta.url, variants, options?)`` demo factory calls."""

import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from docs_precompute.config import ExtractorConfig
from docs_precompute.core.arguments import (
    ArgumentPart,
    code_positions,
    find_balanced_end,
    literal_value,
    parse_object_entries,
    split_arguments,
)
from docs_precompute.core.directives import extract_directives
from docs_precompute.errors import MalformedInputError
from docs_precompute.models import FactoryCall, ImportRecord

logger = logging.getLogger(__name__)

DEFAULT_VARIANT = "Default"
URL_EXPRESSION = "import.meta.url"

_FACTORY_CALL = re.compile(r"\b(create\w*)\s*\(")
_TYPE_CAST = re.compile(r"\s+as\s+.*$", re.DOTALL)
_IDENTIFIER = re.compile(r"^[A-Za-z_$][\w$]*$")


@dataclass(frozen=True)
class _ImportedBinding:
    url: str
    export: str | None


def _relative_bindings(imports: Sequence[ImportRecord]) -> dict[str, _ImportedBinding]:
    bindings: dict[str, _ImportedBinding] = {}
    for record in imports:
        if not record.is_relative or record.is_type_only:
            continue
        target = record.url or record.specifier
        for name in record.names:
            if name.is_type:
                continue
            local = name.alias or name.name
            bindings[local] = _ImportedBinding(target, name.name if name.kind == "named" else None)
    return bindings


def _is_definition(source: str, position: int) -> bool:
    before = source[:position].rstrip()
    return before.endswith(("function", "function*")) or before.endswith(".")


class _CallReader:
    def __init__(self, source: str, file_path: str, bindings: dict[str, _ImportedBinding]) -> None:
        self.source = source
        self.file_path = file_path
        self.bindings = bindings

    def _error(self, function_name: str, position: int, problem: str) -> MalformedInputError:
        line = self.source.count("\n", 0, position) + 1
        return MalformedInputError(
            f"Invalid {function_name}() call in {self.file_path} at line {line}: {problem}",
            path=self.file_path,
            line=line,
        )

    def _variant_binding(self, function_name: str, position: int, expression: str) -> _ImportedBinding:
        identifier = _TYPE_CAST.sub("", expression.strip())
        if not _IDENTIFIER.match(identifier):
            raise self._error(function_name, position, f"variant '{expression.strip()}' must be an imported identifier")
        binding = self.bindings.get(identifier)
        if binding is None:
            raise self._error(function_name, position, f"'{identifier}' is not imported from a relative module")
        return binding

    def _variants(self, function_name: str, position: int, part: ArgumentPart) -> tuple[dict[str, str], dict[str, str | None]]:
        if part.object_literal is None:
            entries = [(DEFAULT_VARIANT, part.text)]
        else:
            entries = parse_object_entries(part.object_literal)
            if not entries:
                raise self._error(function_name, position, "the variants object is empty")

        variants: dict[str, str] = {}
        named_exports: dict[str, str | None] = {}
        for name, expression in entries:
            binding = self._variant_binding(function_name, position, expression)
            variants[name] = binding.url
            named_exports[name] = binding.export
        return variants, named_exports

    def read(self, match: re.Match[str]) -> FactoryCall | None:
        """Read the call at ``match``; calls that never mention the module URL are not factories."""
        function_name = match.group(1)
        position = match.start()
        open_index = match.end() - 1
        close_index = find_balanced_end(self.source, open_index)
        arguments = self.source[open_index + 1 : close_index]
        if URL_EXPRESSION not in arguments:
            return None
        if close_index >= len(self.source):
            raise self._error(function_name, position, "the argument list is never closed")

        parts = split_arguments(arguments)
        if parts and not parts[-1].text:
            parts.pop()
        if len(parts) not in (2, 3):
            raise self._error(function_name, position, f"expected 2 or 3 arguments, got {len(parts)}")
        if parts[0].text != URL_EXPRESSION:
            raise self._error(function_name, position, f"the first argument must be {URL_EXPRESSION}")

        variants, named_exports = self._variants(function_name, position, parts[1])
        options: dict[str, Any] = {}
        if len(parts) == 3:
            if parts[2].object_literal is None:
                raise self._error(function_name, position, "options must be an object literal")
            options = {key: literal_value(value) for key, value in parse_object_entries(parts[2].object_literal)}

        return FactoryCall(
            function_name=function_name,
            start=position,
            end=close_index + 1,
            url_expression=parts[0].text,
            variants=variants,
            named_exports=named_exports,
            options=options,
        )


def find_factory_calls(
    source: str,
    file_path: str,
    config: ExtractorConfig | None = None,
    imports: Sequence[ImportRecord] | None = None,
) -> list[FactoryCall]:
    """Find every demo factory call in a module, in source order.

    Variant identifiers are resolved through the module's relative imports;
    pass ``imports`` when they are already known.
    """
    if imports is None:
        imports = extract_directives(source, file_path, config).imports
    reader = _CallReader(source, file_path, _relative_bindings(imports))

    code = {index for index, _ in code_positions(source)}
    calls: list[FactoryCall] = []
    for match in _FACTORY_CALL.finditer(source):
        if match.start() not in code or _is_definition(source, match.start()):
            continue
        call = reader.read(match)
        if call is not None:
            calls.append(call)
    logger.debug("Found %d factory call(s) in %s", len(calls), file_path)
    return calls
