"""TypeScript to JavaScript type erasure.

The source is parsed by a :class:`SyntaxParser`, type-only syntax is cut out of
the original text with byte-range edits and the result is handed to a
:class:`SourcePrinter`. Blank-line runs are swapped for sentinel comment lines
before parsing and restored afterwards so the printer cannot collapse them.
"""

import logging
import re

from tree_sitter import Node

from docs_precompute.config import PrintOptions, resolve_print_options
from docs_precompute.core.arguments import literal_newlines
from docs_precompute.core.languages import javascript_file_name, typescript_grammar
from docs_precompute.core.ports.syntax import SourcePrinter, SyntaxParser
from docs_precompute.errors import MalformedInputError
from docs_precompute.models import TransformResult
from docs_precompute.parsing.line_printer import LinePrinter
from docs_precompute.parsing.treesitter_adapter import TreeSitterParser

logger = logging.getLogger(__name__)

_SENTINEL_PREFIX = "//__docs_precompute_blank_lines__:"
_SENTINEL_LINE = re.compile(r"^[ \t]*//__docs_precompute_blank_lines__:(\d+)[ \t]*$")
_BLANK_RUN = re.compile(r"\n(?:[ \t]*\n)+(?=[ \t]*\S)")
_LEADING_BLANK_LINES = re.compile(r"(?:[ \t]*\n)+")

_REMOVED_STATEMENTS = frozenset(
    {"interface_declaration", "type_alias_declaration", "ambient_declaration", "function_signature"}
)
_REMOVED_MEMBERS = frozenset({"abstract_method_signature", "index_signature", "method_signature"})
_REMOVED_NODES = frozenset(
    {
        "type_annotation",
        "opting_type_annotation",
        "omitting_type_annotation",
        "adding_type_annotation",
        "type_predicate_annotation",
        "asserts_annotation",
        "type_parameters",
        "type_arguments",
        "implements_clause",
    }
)
_MODIFIER_NODES = frozenset({"accessibility_modifier", "override_modifier"})
_NAMESPACE_NODES = frozenset({"internal_module", "module"})
_PARAMETER_NODES = frozenset({"required_parameter", "optional_parameter"})


# ----- blank-line sentinels -----


def _sentinel(count: int) -> str:
    return f"{_SENTINEL_PREFIX}{count}"


def mark_blank_lines(source: str) -> str:
    """Replace every run of n >= 2 newlines with one sentinel line recording n.

    Blank lines inside template literals are part of the string and stay as they are.
    """
    prefix = ""
    leading = _LEADING_BLANK_LINES.match(source)
    if leading and source[leading.end() :].strip():
        prefix = _sentinel(leading.group().count("\n") + 1) + "\n"
        source = source[leading.end() :]
    protected = literal_newlines(source)

    def replace(match: re.Match[str]) -> str:
        if match.start() in protected:
            return match.group()
        return "\n" + _sentinel(match.group().count("\n")) + "\n"

    return prefix + _BLANK_RUN.sub(replace, source)


def restore_blank_lines(text: str) -> str:
    """Turn each group of adjacent sentinel lines back into its blank lines."""
    lines: list[str] = []
    pending = 0
    for line in text.split("\n"):
        match = _SENTINEL_LINE.match(line)
        if match:
            pending = max(pending, int(match.group(1)))
            continue
        if pending:
            if not line.strip():
                continue
            lines.extend([""] * (pending - 1))
            pending = 0
        lines.append(line)
    if pending:
        lines.extend([""] * (pending - 1))
    return "\n".join(lines)


def _original_line(marked: str, row: int) -> int:
    """Map a 0-based row of the marked text back to the source row."""
    shift = 0
    for line in marked.split("\n")[:row]:
        match = _SENTINEL_LINE.match(line)
        if match:
            shift += int(match.group(1)) - 2
    return row + shift


def _number(text: str) -> int | float | None:
    try:
        return int(text.replace("_", ""), 0)
    except ValueError:
        pass
    try:
        return float(text)
    except ValueError:
        return None


# ----- erasure -----


class _TypeEraser:
    def __init__(self, source: bytes, file_name: str, single_quote: bool) -> None:
        self.src = source
        self.file_name = file_name
        self.quote = "'" if single_quote else '"'
        self.single_quote = single_quote
        self.edits: list[tuple[int, int, bytes]] = []
        self.class_temps = 0

    def erase(self, root: Node) -> bytes:
        self._visit(root)
        return self._apply()

    # ----- edit helpers -----

    def _text(self, node: Node) -> str:
        return self.src[node.start_byte : node.end_byte].decode("utf-8")

    def _line_start(self, position: int) -> int:
        return self.src.rfind(b"\n", 0, position) + 1

    def _indent_of(self, node: Node) -> str:
        line_start = self._line_start(node.start_byte)
        line = self.src[line_start : node.start_byte].decode("utf-8")
        return line[: len(line) - len(line.lstrip())]

    def _remove(self, start: int, end: int) -> None:
        """Cut ``[start, end)``, taking the whole line when nothing else is left on it."""
        line_start = self._line_start(start)
        line_end = self.src.find(b"\n", end)
        line_end = len(self.src) if line_end == -1 else line_end
        if not self.src[line_start:start].strip() and not self.src[end:line_end].strip():
            start, end = line_start, min(line_end + 1, len(self.src))
        self.edits.append((start, end, b""))

    def _remove_node(self, node: Node, strip_leading: bool = False) -> None:
        start = node.start_byte
        while strip_leading and start > 0 and self.src[start - 1 : start] in (b" ", b"\t"):
            start -= 1
        self._remove(start, node.end_byte)

    def _remove_token(self, node: Node) -> None:
        end = node.end_byte
        while end < len(self.src) and self.src[end : end + 1] in (b" ", b"\t"):
            end += 1
        self._remove(node.start_byte, end)

    def _remove_list_item(self, node: Node) -> None:
        following = node.next_sibling
        preceding = node.prev_sibling
        if following is not None and following.type == ",":
            end = following.end_byte
            while end < len(self.src) and self.src[end : end + 1] in (b" ", b"\t"):
                end += 1
            self._remove(node.start_byte, end)
        elif preceding is not None and preceding.type == ",":
            self._remove(preceding.start_byte, node.end_byte)
        else:
            self._remove(node.start_byte, node.end_byte)

    def _remove_leading_comments(self, node: Node) -> None:
        sibling = node.prev_sibling
        while sibling is not None and sibling.type == "comment":
            if _SENTINEL_LINE.match(self._text(sibling)):
                break
            if self.src[self._line_start(sibling.start_byte) : sibling.start_byte].strip():
                break
            self._remove(sibling.start_byte, sibling.end_byte)
            sibling = sibling.prev_sibling

    def _remove_statement(self, node: Node) -> None:
        self._remove(node.start_byte, node.end_byte)
        self._remove_leading_comments(node)

    def _remove_member(self, node: Node) -> None:
        end = node.end_byte
        following = node.next_sibling
        if following is not None and following.type in (";", ","):
            end = following.end_byte
        self._remove(node.start_byte, end)
        self._remove_leading_comments(node)

    def _apply(self) -> bytes:
        pieces: list[bytes] = []
        cursor = 0
        for start, end, replacement in sorted(self.edits, key=lambda edit: (edit[0], -edit[1])):
            if start < cursor:
                continue
            pieces.append(self.src[cursor:start])
            pieces.append(replacement)
            cursor = end
        pieces.append(self.src[cursor:])
        return b"".join(pieces)

    # ----- traversal -----

    def _visit(self, node: Node) -> None:
        if node.type in _REMOVED_STATEMENTS:
            self._remove_statement(node)
            return
        if node.type in _REMOVED_MEMBERS:
            self._remove_member(node)
            return
        if node.type in _REMOVED_NODES:
            self._remove_node(node, strip_leading=node.type == "implements_clause")
            return
        handler = getattr(self, f"_visit_{node.type}", None)
        if handler is not None and handler(node):
            return
        for child in node.children:
            self._visit(child)

    # ----- modules -----

    def _visit_import_statement(self, node: Node) -> bool:
        if any(not child.is_named and child.type == "type" for child in node.children):
            self._remove_statement(node)
            return True
        clause = next((child for child in node.named_children if child.type == "import_clause"), None)
        named = None
        if clause is not None:
            named = next((child for child in clause.named_children if child.type == "named_imports"), None)
        if named is not None:
            specifiers = [child for child in named.named_children if child.type == "import_specifier"]
            type_only = [spec for spec in specifiers if self._has_type_keyword(spec)]
            if type_only and len(type_only) == len(specifiers):
                others = [child for child in clause.named_children if child.type != "named_imports"]
                if not others:
                    self._remove_statement(node)
                    return True
                comma = named.prev_sibling
                start = comma.start_byte if comma is not None and comma.type == "," else named.start_byte
                self._remove(start, named.end_byte)
            else:
                for spec in type_only:
                    self._remove_list_item(spec)
        return False

    def _visit_export_statement(self, node: Node) -> bool:
        tokens = [child.type for child in node.children if not child.is_named]
        if "type" in tokens or "=" in tokens or "namespace" in tokens:
            self._remove_statement(node)
            return True
        declaration = node.child_by_field_name("declaration")
        if declaration is not None and (
            declaration.type in _REMOVED_STATEMENTS or self._is_type_only_namespace(declaration)
        ):
            self._remove_statement(node)
            return True
        clause = next((child for child in node.named_children if child.type == "export_clause"), None)
        if clause is not None:
            specifiers = [child for child in clause.named_children if child.type == "export_specifier"]
            type_only = [spec for spec in specifiers if self._has_type_keyword(spec)]
            if type_only and len(type_only) == len(specifiers):
                self._remove_statement(node)
                return True
            for spec in type_only:
                self._remove_list_item(spec)
        exported = declaration if declaration is not None else node.child_by_field_name("value")
        if exported is not None and exported.type in ("class_declaration", "class"):
            self._lower_class_decorators(node, exported)
        return False

    @staticmethod
    def _has_type_keyword(node: Node) -> bool:
        return any(not child.is_named and child.type == "type" for child in node.children)

    def _is_type_only_namespace(self, node: Node) -> bool:
        if node.type not in _NAMESPACE_NODES:
            return False
        body = node.child_by_field_name("body")
        if body is None:
            return True
        for statement in body.named_children:
            if statement.type == "comment" or statement.type in _REMOVED_STATEMENTS:
                continue
            if statement.type == "export_statement":
                declaration = statement.child_by_field_name("declaration")
                if declaration is not None and (
                    declaration.type in _REMOVED_STATEMENTS or self._is_type_only_namespace(declaration)
                ):
                    continue
            if statement.type == "expression_statement" and statement.named_children:
                if self._is_type_only_namespace(statement.named_children[0]):
                    continue
            if self._is_type_only_namespace(statement):
                continue
            return False
        return True

    def _erase_namespace(self, module: Node, statement: Node) -> bool:
        if not self._is_type_only_namespace(module):
            row, column = module.start_point
            raise MalformedInputError(
                f"Namespace with runtime code in {self.file_name} at row {row + 1} cannot be erased",
                path=self.file_name,
                line=row + 1,
                column=column + 1,
            )
        self._remove_statement(statement)
        return True

    def _visit_expression_statement(self, node: Node) -> bool:
        if node.named_children and node.named_children[0].type in _NAMESPACE_NODES:
            return self._erase_namespace(node.named_children[0], node)
        return False

    def _visit_internal_module(self, node: Node) -> bool:
        return self._erase_namespace(node, node)

    _visit_module = _visit_internal_module

    # ----- classes -----

    def _visit_class_declaration(self, node: Node) -> bool:
        if node.parent is None or node.parent.type != "export_statement":
            self._lower_class_decorators(node, node)
        return False

    def _lower_class_decorators(self, statement: Node, class_node: Node) -> None:
        """Rewrite ``@dec class K {}`` to ``let K = dec(_class = class K {}) || _class;``."""
        decorators = [child for child in statement.children if child.type == "decorator"]
        if class_node is not statement:
            decorators.extend(child for child in class_node.children if child.type == "decorator")
        keyword = next((child for child in class_node.children if child.type == "class"), None)
        if not decorators or keyword is None:
            return

        self.class_temps += 1
        temp = "_class" if self.class_temps == 1 else f"_class{self.class_temps}"
        tokens = {child.type for child in statement.children if not child.is_named}
        name_node = class_node.child_by_field_name("name")
        head = [f"var {temp};\n{self._indent_of(statement)}"]
        if "export" in tokens:
            head.append("export default " if "default" in tokens else "export ")
        if "default" not in tokens and name_node is not None:
            head.append(f"let {self._text(name_node)} = ")
        for decorator in decorators:
            head.append(f"{self._text(decorator)[1:].strip()}({temp} = ")
        self.edits.append((statement.start_byte, keyword.start_byte, "".join(head).encode()))
        tail = f") || {temp}" * len(decorators) + ";"
        self.edits.append((class_node.end_byte, class_node.end_byte, tail.encode()))

    def _visit_abstract_class_declaration(self, node: Node) -> bool:
        for child in node.children:
            if not child.is_named and child.type == "abstract":
                self._remove_token(child)
        return False

    def _visit_class_heritage(self, node: Node) -> bool:
        if all(child.type == "implements_clause" for child in node.named_children):
            self._remove_node(node, strip_leading=True)
            return True
        return False

    def _visit_public_field_definition(self, node: Node) -> bool:
        tokens = {child.type for child in node.children if not child.is_named}
        if "declare" in tokens or "abstract" in tokens:
            self._remove_member(node)
            return True
        for child in node.children:
            if child.type in _MODIFIER_NODES or (not child.is_named and child.type in ("readonly", "?", "!")):
                self._remove_token(child)
        return False

    def _visit_method_definition(self, node: Node) -> bool:
        for child in node.children:
            if child.type in _MODIFIER_NODES or (not child.is_named and child.type in ("readonly", "?")):
                self._remove_token(child)
        name = node.child_by_field_name("name")
        if name is not None and self._text(name) == "constructor":
            self._rewrite_parameter_properties(node)
        return False

    def _rewrite_parameter_properties(self, method: Node) -> None:
        parameters = method.child_by_field_name("parameters")
        body = method.child_by_field_name("body")
        if parameters is None or body is None:
            return
        names = []
        for parameter in parameters.named_children:
            if parameter.type not in _PARAMETER_NODES:
                continue
            is_property = any(
                child.type in _MODIFIER_NODES or (not child.is_named and child.type == "readonly")
                for child in parameter.children
            )
            pattern = parameter.child_by_field_name("pattern")
            if is_property and pattern is not None and pattern.type == "identifier":
                names.append(self._text(pattern))
        if not names:
            return

        statements = [child for child in body.named_children if child.type != "comment"]
        if not statements:
            base = self._indent_of(method)
            assignments = "".join(f"\n{base}  this.{name} = {name};" for name in names)
            self.edits.append((body.start_byte, body.end_byte, f"{{{assignments}\n{base}}}".encode()))
            return

        indent = self._indent_of(statements[0])
        anchor = body.start_byte + 1
        for statement in statements:
            call = statement.named_children[0] if statement.named_children else None
            if statement.type == "expression_statement" and call is not None and call.type == "call_expression":
                function = call.child_by_field_name("function")
                if function is not None and function.type == "super":
                    anchor = statement.end_byte
                    break
        assignments = "".join(f"\n{indent}this.{name} = {name};" for name in names)
        self.edits.append((anchor, anchor, assignments.encode()))

    # ----- parameters and expressions -----

    def _visit_required_parameter(self, node: Node) -> bool:
        pattern = node.child_by_field_name("pattern")
        if pattern is not None and pattern.type == "this":
            self._remove_list_item(node)
            return True
        for child in node.children:
            if child.type == "decorator" or child.type in _MODIFIER_NODES:
                self._remove_token(child)
            elif not child.is_named and child.type in ("readonly", "?"):
                self._remove_token(child)
        return False

    _visit_optional_parameter = _visit_required_parameter

    def _visit_variable_declarator(self, node: Node) -> bool:
        for child in node.children:
            if not child.is_named and child.type == "!":
                self._remove(child.start_byte, child.end_byte)
        return False

    def _visit_non_null_expression(self, node: Node) -> bool:
        bang = node.children[-1]
        if bang.type == "!":
            self._remove(bang.start_byte, bang.end_byte)
        return False

    def _visit_as_expression(self, node: Node) -> bool:
        expression = node.children[0]
        self._remove(expression.end_byte, node.end_byte)
        self._visit(expression)
        return True

    _visit_satisfies_expression = _visit_as_expression

    def _visit_type_assertion(self, node: Node) -> bool:
        type_arguments, expression = node.children[0], node.children[-1]
        self._remove(type_arguments.start_byte, type_arguments.end_byte)
        self._visit(expression)
        return True

    def _visit_string(self, node: Node) -> bool:
        if not self.single_quote or (node.parent is not None and node.parent.type == "jsx_attribute"):
            return True
        text = self._text(node)
        if len(text) >= 2 and text[0] == '"' and text[-1] == '"' and "'" not in text:
            inner = text[1:-1].replace('\\"', '"')
            self.edits.append((node.start_byte, node.end_byte, f"'{inner}'".encode()))
        return True

    # ----- enums -----

    def _visit_enum_declaration(self, node: Node) -> bool:
        name_node = node.child_by_field_name("name")
        body = node.child_by_field_name("body")
        if name_node is None or body is None:
            return False
        name = self._text(name_node)
        q = self.quote
        base = self._indent_of(node)
        statements = []
        next_value: int | float | None = 0
        for member in body.named_children:
            if member.type == "comment":
                continue
            if member.type == "enum_assignment":
                key_node = member.child_by_field_name("name")
                value_node = member.child_by_field_name("value")
                key = self._text(key_node).strip("'\"") if key_node is not None else ""
                value_text = self._text(value_node) if value_node is not None else "undefined"
                number = _number(value_text)
                if value_node is not None and value_node.type in ("string", "template_string"):
                    statements.append(f"{name}[{q}{key}{q}] = {value_text};")
                    next_value = None
                    continue
                next_value = None if number is None else number + 1
                statements.append(f"{name}[{name}[{q}{key}{q}] = {value_text}] = {q}{key}{q};")
                continue
            key = self._text(member).strip("'\"")
            if next_value is None:
                raise MalformedInputError(
                    f"Enum member {name}.{key} in {self.file_name} needs an initializer",
                    path=self.file_name,
                    line=member.start_point[0] + 1,
                    column=member.start_point[1] + 1,
                )
            statements.append(f"{name}[{name}[{q}{key}{q}] = {next_value}] = {q}{key}{q};")
            next_value += 1

        lines = [f"var {name} = /*#__PURE__*/function ({name}) {{"]
        lines.extend(f"{base}  {statement}" for statement in statements)
        lines.append(f"{base}  return {name};")
        lines.append(f"{base}}}({name} || {{}});")
        self.edits.append((node.start_byte, node.end_byte, "\n".join(lines).encode()))
        return True


def _first_error(node: Node) -> Node | None:
    if node.type == "ERROR" or node.is_missing:
        return node
    for child in node.children:
        if child.has_error or child.is_missing:
            found = _first_error(child)
            if found is not None:
                return found
    return None


def erase_types(
    source: str,
    file_name: str,
    format: str | PrintOptions = "default",
    parser: SyntaxParser | None = None,
    printer: SourcePrinter | None = None,
) -> TransformResult:
    """Convert TypeScript/TSX ``source`` to JavaScript/JSX.

    ``format`` is ``"skip"``, ``"default"`` or explicit :class:`PrintOptions`.
    """
    grammar = typescript_grammar(file_name)
    options = resolve_print_options(format)
    parser = parser or TreeSitterParser()
    printer = printer or LinePrinter()

    marked = mark_blank_lines(source.replace("\r\n", "\n"))
    encoded = marked.encode("utf-8")
    tree = parser.parse(encoded, grammar)
    if tree.root_node.has_error:
        error = _first_error(tree.root_node) or tree.root_node
        row, column = error.start_point
        line = _original_line(marked, row) + 1
        raise MalformedInputError(
            f"Failed to parse {file_name}: unexpected syntax at line {line}, column {column + 1}",
            path=file_name,
            line=line,
            column=column + 1,
        )

    eraser = _TypeEraser(encoded, file_name, single_quote=options is not None and options.single_quote)
    code = eraser.erase(tree.root_node).decode("utf-8")
    if options is not None:
        code = printer.print(code, options)
    code = restore_blank_lines(code)
    if options is not None:
        # a removed leading declaration leaves its blank-line group behind
        leading = _LEADING_BLANK_LINES.match(code)
        if leading:
            code = code[leading.end() :]

    logger.debug("Erased types from %s with %d edit(s)", file_name, len(eraser.edits))
    return TransformResult(file_name=javascript_file_name(file_name), source=code)
