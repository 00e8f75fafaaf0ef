from typing import cast

from tree_sitter import Tree
from tree_sitter_language_pack import SupportedLanguage, get_parser


class TreeSitterParser:
    """Parse TypeScript and TSX with the tree-sitter grammars.

    Implements the ``SyntaxParser`` protocol.
    """

    def parse(self, source: bytes, grammar: str) -> Tree:
        parser = get_parser(cast(SupportedLanguage, grammar))
        return parser.parse(source)
