"""Split the text between a call's parentheses into its top-level arguments.

The scanner understands strings, template literals (including ``${}``
substitutions), regular expression literals, line and block comments, and
bracket nesting over ``()``, ``{}`` and ``[]``. Anything left unterminated
simply runs to the end of the input.
"""

import json
import re
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any

_OPENERS = "([{"
_CLOSERS = ")]}"

_NORMAL = 0
_SINGLE_QUOTE = 1
_DOUBLE_QUOTE = 2
_TEMPLATE = 3
_LINE_COMMENT = 4
_BLOCK_COMMENT = 5

_QUOTE_MODES = {"'": _SINGLE_QUOTE, '"': _DOUBLE_QUOTE, "`": _TEMPLATE}
_QUOTE_CHARS = {_SINGLE_QUOTE: "'", _DOUBLE_QUOTE: '"'}

_REGEX_PRECEDERS = "(,=:[!&|?{};+-*%~^"
_REGEX_KEYWORD = re.compile(r"(?<![\w$.])(?:return|typeof|case|do|else|in|of|new|delete|void|throw|yield|await)$")


@dataclass(frozen=True)
class ArgumentPart:
    raw: str
    text: str
    start: int
    end: int
    object_literal: str | None = None


def regex_literal_end(text: str, i: int) -> int | None:
    """Return the index just past a regular expression literal starting at ``i``, or ``None``.

    A ``/`` only opens a regex after an operator, an opening bracket, a separator,
    an arrow or a keyword such as ``return``; anywhere else it is a division or a
    JSX closing tag.
    """
    if text[i] != "/" or text.startswith("//", i) or text.startswith("/*", i):
        return None
    j = i - 1
    while j >= 0 and text[j] in " \t\r\n":
        j -= 1
    if j >= 0:
        prev = text[j]
        if prev == ">":
            if j == 0 or text[j - 1] != "=":
                return None
        elif prev not in _REGEX_PRECEDERS and not _REGEX_KEYWORD.search(text[max(0, j - 7) : j + 1]):
            return None

    in_class = False
    k = i + 1
    n = len(text)
    while k < n:
        ch = text[k]
        if ch == "\n":
            return None
        if ch == "\\":
            k += 2
            continue
        if in_class:
            if ch == "]":
                in_class = False
        elif ch == "[":
            in_class = True
        elif ch == "/":
            k += 1
            while k < n and text[k].isalpha():
                k += 1
            return k
        k += 1
    return None


def _scan(text: str, start: int = 0) -> Iterator[tuple[int, int, int]]:
    """Yield ``(index, depth, mode)`` for code characters and template literal text."""
    depth = 0
    mode = _NORMAL
    substitutions: list[int] = []
    i = start
    n = len(text)
    while i < n:
        ch = text[i]
        if mode == _NORMAL:
            if text.startswith("//", i):
                mode = _LINE_COMMENT
                i += 2
                continue
            if text.startswith("/*", i):
                mode = _BLOCK_COMMENT
                i += 2
                continue
            if ch == "/":
                regex_end = regex_literal_end(text, i)
                if regex_end is not None:
                    i = regex_end
                    continue
            if ch in _QUOTE_MODES:
                mode = _QUOTE_MODES[ch]
                i += 1
                continue
            if ch == "}" and substitutions and substitutions[-1] == depth:
                # end of a ${...} substitution, back inside the template literal
                substitutions.pop()
                depth -= 1
                mode = _TEMPLATE
                i += 1
                continue
            yield i, depth, _NORMAL
            if ch in _OPENERS:
                depth += 1
            elif ch in _CLOSERS:
                depth = max(depth - 1, 0)
            i += 1
        elif mode in _QUOTE_CHARS:
            if ch == "\n":
                # quoted strings never span lines; an apostrophe in JSX text ends here
                mode = _NORMAL
                continue
            if ch == "\\":
                i += 2
                continue
            if ch == _QUOTE_CHARS[mode]:
                mode = _NORMAL
            i += 1
        elif mode == _TEMPLATE:
            if ch == "\\":
                i += 2
                continue
            if ch == "`":
                mode = _NORMAL
            elif text.startswith("${", i):
                depth += 1
                substitutions.append(depth)
                mode = _NORMAL
                i += 2
                continue
            else:
                yield i, depth, _TEMPLATE
            i += 1
        elif mode == _LINE_COMMENT:
            if ch == "\n":
                mode = _NORMAL
            i += 1
        else:
            if text.startswith("*/", i):
                mode = _NORMAL
                i += 2
                continue
            i += 1


def code_positions(text: str, start: int = 0) -> Iterator[tuple[int, int]]:
    """Yield ``(index, depth)`` for each character outside strings, regexes and comments.

    ``depth`` is the bracket nesting in effect before the character.
    """
    for index, depth, mode in _scan(text, start):
        if mode == _NORMAL:
            yield index, depth


def literal_newlines(text: str) -> set[int]:
    """Offsets of the newlines that belong to template literal text."""
    return {index for index, _, mode in _scan(text) if mode == _TEMPLATE and text[index] == "\n"}


def find_balanced_end(text: str, open_index: int) -> int:
    """Return the index of the bracket closing the one at ``open_index``, or ``len(text)``."""
    for index, depth in code_positions(text, open_index):
        if index != open_index and depth == 1 and text[index] in _CLOSERS:
            return index
    return len(text)


def skip_trivia(text: str, index: int = 0) -> int:
    """Return the first index at or after ``index`` that is not whitespace or a comment."""
    n = len(text)
    while index < n:
        if text[index].isspace():
            index += 1
        elif text.startswith("//", index):
            newline = text.find("\n", index)
            index = n if newline == -1 else newline + 1
        elif text.startswith("/*", index):
            close = text.find("*/", index + 2)
            index = n if close == -1 else close + 2
        else:
            break
    return index


def _object_literal(raw: str) -> str | None:
    start = skip_trivia(raw)
    if start >= len(raw) or raw[start] != "{":
        return None
    end = find_balanced_end(raw, start)
    return raw[start : end + 1]


def _make_part(text: str, start: int, end: int) -> ArgumentPart:
    raw = text[start:end]
    return ArgumentPart(raw=raw, text=raw.strip(), start=start, end=end, object_literal=_object_literal(raw))


def split_arguments(text: str) -> list[ArgumentPart]:
    """Split call-argument text on commas at depth zero.

    Joining the ``raw`` of every part with ``","`` gives back ``text``.
    """
    if not text.strip():
        return []
    parts: list[ArgumentPart] = []
    start = 0
    for index, depth in code_positions(text):
        if depth == 0 and text[index] == ",":
            parts.append(_make_part(text, start, index))
            start = index + 1
    parts.append(_make_part(text, start, len(text)))
    return parts


def _find_top_level(text: str, char: str) -> int:
    for index, depth in code_positions(text):
        if depth == 0 and text[index] == char:
            return index
    return -1


def _unquote(text: str) -> str:
    if len(text) >= 2 and text[0] == text[-1] and text[0] in "'\"`":
        return text[1:-1]
    return text


def parse_object_entries(literal: str) -> list[tuple[str, str]]:
    """Split an object literal into ordered ``(key, value)`` pairs.

    Shorthand properties map to themselves and spread entries are skipped.
    """
    body = literal.strip()
    if body.startswith("{"):
        body = body[1:-1] if body.endswith("}") else body[1:]
    entries: list[tuple[str, str]] = []
    for part in split_arguments(body):
        entry = part.raw[skip_trivia(part.raw) :].strip()
        if not entry or entry.startswith("..."):
            continue
        colon = _find_top_level(entry, ":")
        if colon == -1:
            entries.append((entry, entry))
        else:
            entries.append((_unquote(entry[:colon].strip()), entry[colon + 1 :].strip()))
    return entries


def literal_value(expression: str) -> Any:
    """Decode a simple JavaScript literal, returning the expression text when it is not one."""
    text = expression.strip()
    if text in ("true", "false"):
        return text == "true"
    if text in ("null", "undefined"):
        return None
    if len(text) >= 2 and text[0] == text[-1] and text[0] in "'\"`":
        inner = text[1:-1]
        if text[0] == "'":
            inner = inner.replace("\\'", "'").replace('"', '\\"')
        elif text[0] == "`":
            if "${" in inner:
                return text
            inner = inner.replace("\\`", "`").replace('"', '\\"')
        try:
            return json.loads(f'"{inner}"')
        except ValueError:
            return inner
    if not text or text[0] not in "0123456789-+.":
        return text
    try:
        return int(text)
    except ValueError:
        pass
    try:
        return float(text)
    except ValueError:
        return text
