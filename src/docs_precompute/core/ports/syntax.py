from typing import Protocol

from tree_sitter import Tree

from docs_precompute.config import PrintOptions


class SyntaxParser(Protocol):
    """Parses source into a concrete syntax tree with byte offsets and comment nodes."""

    def parse(self, source: bytes, grammar: str) -> Tree: ...


class SourcePrinter(Protocol):
    def print(self, source: str, options: PrintOptions) -> str: ...
