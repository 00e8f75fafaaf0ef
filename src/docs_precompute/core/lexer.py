"""Single-pass lexer producing a stream of code, comment and import events.

Consumers (the import collector and the directive classifier) read the same
stream instead of re-scanning the source.
"""

import re
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Literal

from docs_precompute.core.arguments import find_balanced_end, regex_literal_end, skip_trivia
from docs_precompute.core.languages import CommentSyntax
from docs_precompute.models import CommentKind

EventKind = Literal["code", "comment", "import"]

_IDENTIFIER_CHAR = re.compile(r"[\w$]")
_QUOTES = "'\""


@dataclass(frozen=True)
class LexEvent:
    kind: EventKind
    start: int
    end: int
    comment_kind: CommentKind | None = None
    specifier_start: int = -1
    specifier_end: int = -1


def lex(source: str, syntax: CommentSyntax) -> Iterator[LexEvent]:
    """Yield events covering ``source`` from start to end without gaps."""
    return _Lexer(source, syntax).events()


class _Lexer:
    def __init__(self, source: str, syntax: CommentSyntax) -> None:
        self.source = source
        self.syntax = syntax
        self.n = len(source)

    # ----- event loop -----

    def events(self) -> Iterator[LexEvent]:
        src = self.source
        code_start = 0
        i = 0
        while i < self.n:
            token = self._token_at(i)
            if token is None:
                i += 1
                continue
            event, end = token
            if event is None:
                i = end
                continue
            if code_start < event.start:
                yield LexEvent("code", code_start, event.start)
            yield event
            code_start = end
            i = end
        if code_start < len(src):
            yield LexEvent("code", code_start, len(src))

    def _token_at(self, i: int) -> tuple[LexEvent | None, int] | None:
        """Return the event starting at ``i`` (or ``None`` for skipped code) and where it ends."""
        src = self.source
        ch = src[i]
        if self.syntax == "css":
            if src.startswith("/*", i):
                return self._block_comment(i)
            if ch in _QUOTES:
                return None, self._skip_string(i)
            if src.startswith("@import", i) and self._boundary_before(i):
                return self._css_import(i)
            return None

        if src.startswith("/*", i):
            return self._block_comment(i)
        if src.startswith("//", i) and self._line_comment_allowed(i):
            end = src.find("\n", i)
            end = self.n if end == -1 else end
            return LexEvent("comment", i, end, comment_kind="line"), end
        if self.syntax == "mdx":
            if src.startswith("```", i) and self._at_line_start(i):
                return None, self._skip_fence(i)
        elif ch in _QUOTES:
            return None, self._skip_string(i)
        elif ch == "`":
            return None, self._skip_template(i)
        elif ch == "/":
            regex_end = regex_literal_end(src, i)
            if regex_end is not None:
                return None, regex_end
        if (src.startswith("import", i) or src.startswith("export", i)) and self._boundary_before(i):
            if self.syntax == "mdx" and not self._at_line_start(i):
                return None
            return self._js_import(i)
        return None

    # ----- helpers -----

    def _boundary_before(self, i: int) -> bool:
        if i == 0:
            return True
        prev = self.source[i - 1]
        return not (_IDENTIFIER_CHAR.match(prev) or prev in ".@#")

    def _at_line_start(self, i: int) -> bool:
        line_start = self.source.rfind("\n", 0, i) + 1
        return not self.source[line_start:i].strip()

    def _line_comment_allowed(self, i: int) -> bool:
        # prose in MDX is full of URLs, only treat `//` after whitespace as a comment there
        if self.syntax != "mdx" or i == 0:
            return True
        return self.source[i - 1].isspace()

    def _block_comment(self, i: int) -> tuple[LexEvent, int]:
        close = self.source.find("*/", i + 2)
        end = self.n if close == -1 else close + 2
        return LexEvent("comment", i, end, comment_kind="block"), end

    def _skip_string(self, i: int) -> int:
        src = self.source
        quote = src[i]
        j = i + 1
        while j < self.n:
            ch = src[j]
            if ch == "\\":
                j += 2
                continue
            if ch == quote:
                return j + 1
            if ch == "\n":
                return j
            j += 1
        return self.n

    def _skip_template(self, i: int) -> int:
        src = self.source
        j = i + 1
        while j < self.n:
            ch = src[j]
            if ch == "\\":
                j += 2
                continue
            if ch == "`":
                return j + 1
            if src.startswith("${", j):
                j = self._skip_substitution(j + 2)
                continue
            j += 1
        return self.n

    def _skip_substitution(self, j: int) -> int:
        src = self.source
        depth = 0
        while j < self.n:
            ch = src[j]
            if ch in _QUOTES:
                j = self._skip_string(j)
                continue
            if ch == "`":
                j = self._skip_template(j)
                continue
            if src.startswith("//", j) or src.startswith("/*", j):
                j = skip_trivia(src, j)
                continue
            if ch == "{":
                depth += 1
            elif ch == "}":
                if depth == 0:
                    return j + 1
                depth -= 1
            j += 1
        return self.n

    def _skip_fence(self, i: int) -> int:
        src = self.source
        line_end = src.find("\n", i)
        if line_end == -1:
            return self.n
        close = src.find("\n```", line_end)
        if close == -1:
            return self.n
        end = src.find("\n", close + 4)
        return self.n if end == -1 else end

    # ----- import statements -----

    def _js_import(self, i: int) -> tuple[LexEvent, int] | None:
        src = self.source
        keyword = src[i : i + 6]
        j = i + 6
        if j < self.n and _IDENTIFIER_CHAR.match(src[j]):
            return None
        k = skip_trivia(src, j)
        if k >= self.n:
            return None
        if keyword == "import":
            if src[k] in _QUOTES:
                return self._finish_import(i, k, self._skip_string(k))
            if src[k] in "(.":
                return None
        else:
            if src.startswith("type", k):
                k = skip_trivia(src, k + 4)
            if k >= self.n or src[k] not in "{*":
                return None

        depth = 0
        while k < self.n:
            ch = src[k]
            if ch in _QUOTES or ch == "`":
                k = self._skip_string(k)
                continue
            if src.startswith("//", k) or src.startswith("/*", k):
                k = skip_trivia(src, k)
                continue
            if ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
                if depth < 0:
                    return None
            elif depth == 0 and ch in ";=(":
                return None
            elif depth == 0 and src.startswith("from", k) and self._boundary_before(k):
                after = k + 4
                if after < self.n and _IDENTIFIER_CHAR.match(src[after]):
                    k = after
                    continue
                spec = skip_trivia(src, after)
                if spec < self.n and src[spec] in _QUOTES:
                    return self._finish_import(i, spec, self._skip_string(spec))
                return None
            k += 1
        return None

    def _finish_import(self, start: int, spec_start: int, spec_end: int) -> tuple[LexEvent, int]:
        src = self.source
        end = spec_end
        k = self._skip_inline_space(end)
        for attribute_keyword in ("with", "assert"):
            if src.startswith(attribute_keyword, k):
                brace = skip_trivia(src, k + len(attribute_keyword))
                if brace < self.n and src[brace] == "{":
                    end = min(find_balanced_end(src, brace) + 1, self.n)
                    k = self._skip_inline_space(end)
                break
        if k < self.n and src[k] == ";":
            end = k + 1
        return LexEvent("import", start, end, specifier_start=spec_start, specifier_end=spec_end), end

    def _skip_inline_space(self, k: int) -> int:
        while k < self.n and self.source[k] in " \t":
            k += 1
        return k

    def _css_import(self, i: int) -> tuple[LexEvent | None, int] | None:
        src = self.source
        k = skip_trivia(src, i + len("@import"))
        if k >= self.n:
            return None
        if src[k] in _QUOTES:
            spec_start, spec_end = k, self._skip_string(k)
        elif src.startswith("url(", k):
            close = src.find(")", k)
            if close == -1:
                return None
            spec_start, spec_end = k + 4, close
            inner = src[spec_start:spec_end].strip()
            if inner[:1] in _QUOTES:
                spec_start = src.index(inner[0], spec_start)
                spec_end = self._skip_string(spec_start)
        else:
            return None
        end = src.find(";", spec_end)
        newline = src.find("\n", spec_end)
        if end == -1 or (newline != -1 and newline < end):
            end = self.n if newline == -1 else newline
        else:
            end += 1
        return LexEvent("import", i, end, specifier_start=spec_start, specifier_end=spec_end), end
