"""Import & directive extraction.

Consumes the event stream from :mod:`docs_precompute.core.lexer`: comments
matching ``remove_comments_with_prefix`` are cut from the displayed code and
comments matching ``notable_comments_prefix`` become :class:`DirectiveComment`
entries, with ``@highlight-start``/``@highlight-end`` pairs merged into one entry.
"""

import bisect
import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass

from docs_precompute.config import ExtractorConfig
from docs_precompute.core.arguments import split_arguments
from docs_precompute.core.languages import CommentSyntax, comment_syntax_for
from docs_precompute.core.lexer import LexEvent, lex
from docs_precompute.core.paths import resolve_relative, to_file_url, to_portable_path
from docs_precompute.errors import ConfigurationError
from docs_precompute.models import AnnotatedSource, DirectiveComment, ImportName, ImportRecord

logger = logging.getLogger(__name__)

RANGE_START = "@highlight-start"
RANGE_END = "@highlight-end"
HIGHLIGHT_TEXT = "@highlight-text"

_DESCRIPTION = re.compile(r"\"([^\"]*)\"|'([^']*)'")
_CONTINUATION_STAR = re.compile(r"^\*\s?")
_NAMED_BINDING = re.compile(r"^(?:(type)\s+)?([\w$]+|'[^']*'|\"[^\"]*\")(?:\s+as\s+([\w$]+))?$")
_NAMESPACE_BINDING = re.compile(r"^\*\s*(?:as\s+([\w$]+))?$")
_EXTERNAL_CSS = ("http://", "https://", "//")


@dataclass
class _Comment:
    start: int
    end: int
    kind: str
    content: str
    body: list[str]
    stripped: bool
    notable: bool
    removal: tuple[int, int] | None = None
    standalone: bool = False


class _OffsetMap:
    """Maps offsets in the raw source to offsets in the stripped code."""

    def __init__(self, kept: list[tuple[int, int, int]], code: str) -> None:
        self._kept = kept
        self._starts = [start for start, _, _ in kept]
        self._newlines = [i for i, ch in enumerate(code) if ch == "\n"]

    def offset(self, position: int) -> int:
        index = bisect.bisect_right(self._starts, position) - 1
        if index < 0:
            return 0
        start, end, out = self._kept[index]
        return out + min(position, end) - start

    def line(self, position: int) -> int:
        return bisect.bisect_right(self._newlines, self.offset(position) - 1)


def _line_start(source: str, position: int) -> int:
    return source.rfind("\n", 0, position) + 1


def _line_end(source: str, position: int) -> int:
    end = source.find("\n", position)
    return len(source) if end == -1 else end


def _source_line(source: str, position: int) -> int:
    return source.count("\n", 0, position)


def _starts_with_any(content: str, prefixes: Sequence[str]) -> bool:
    return any(content.startswith(prefix) for prefix in prefixes)


def _read_comment(source: str, event: LexEvent, config: ExtractorConfig) -> _Comment:
    text = source[event.start : event.end]
    if event.comment_kind == "line":
        inner = text[2:]
        body = [inner.strip()] if inner.strip() else []
    else:
        inner = text[2:-2] if len(text) >= 4 and text.endswith("*/") else text[2:]
        body = []
        for raw_line in inner.split("\n"):
            line = _CONTINUATION_STAR.sub("", raw_line.strip())
            if line:
                body.append(line)
    content = "\n".join(body)
    return _Comment(
        start=event.start,
        end=event.end,
        kind=event.comment_kind or "line",
        content=content,
        body=body,
        stripped=_starts_with_any(content, config.remove_comments_with_prefix),
        notable=_starts_with_any(content, config.notable_comments_prefix),
    )


def _comment_extent(source: str, comment: _Comment, syntax: CommentSyntax) -> tuple[int, int]:
    """Widen a comment to its ``{/* ... */}`` JSX wrapper when it has one."""
    start, end = comment.start, comment.end
    if syntax == "css" or comment.kind != "block":
        return start, end
    before = source[_line_start(source, start) : start].rstrip()
    after = source[end : _line_end(source, end)].lstrip()
    if before.endswith("{") and after.startswith("}"):
        start = source.rindex("{", 0, start)
        end = source.index("}", end) + 1
    return start, end


def _plan_removals(source: str, comments: list[_Comment], syntax: CommentSyntax) -> list[tuple[int, int]]:
    """Work out which source ranges disappear from the displayed code."""
    for comment in comments:
        start, end = _comment_extent(source, comment, syntax)
        line_start, line_end = _line_start(source, start), _line_end(source, end)
        comment.standalone = not (source[line_start:start] + source[end:line_end]).strip()
        if comment.stripped:
            comment.removal = (start, end)

    # comments sharing a line are handled together
    regions: list[tuple[int, int, list[tuple[int, int]]]] = []
    for comment in comments:
        if comment.removal is None:
            continue
        start, end = comment.removal
        line_start, line_end = _line_start(source, start), _line_end(source, end)
        if regions and line_start <= regions[-1][1]:
            previous_start, previous_end, spans = regions[-1]
            regions[-1] = (previous_start, max(previous_end, line_end), [*spans, (start, end)])
        else:
            regions.append((line_start, line_end, [(start, end)]))

    removals: list[tuple[int, int]] = []
    for line_start, line_end, spans in regions:
        cursor = line_start
        remaining = []
        for start, end in spans:
            remaining.append(source[cursor:start])
            cursor = end
        remaining.append(source[cursor:line_end])
        if not "".join(remaining).strip():
            removals.append((line_start, min(line_end + 1, len(source))))
            continue
        cursor = line_start
        for start, end in spans:
            before = source[cursor:start]
            if not before.strip():
                trailing = end
                while trailing < line_end and source[trailing] in " \t":
                    trailing += 1
                removals.append((start, trailing))
            else:
                removals.append((start - (len(before) - len(before.rstrip(" \t"))), end))
            cursor = end
    return removals


def _apply_removals(source: str, removals: list[tuple[int, int]]) -> tuple[str, _OffsetMap]:
    pieces: list[str] = []
    kept: list[tuple[int, int, int]] = []
    cursor = 0
    out = 0
    for start, end in sorted(removals):
        if start < cursor:
            start = cursor
        if start > cursor:
            pieces.append(source[cursor:start])
            kept.append((cursor, start, out))
            out += start - cursor
        cursor = max(cursor, end)
    if cursor < len(source) or not kept:
        pieces.append(source[cursor:])
        kept.append((cursor, len(source), out))
    code = "".join(pieces)
    return code, _OffsetMap(kept, code)


# ----- imports -----


def _parse_bindings(clause: str) -> tuple[list[ImportName], bool]:
    clause = clause.strip()
    if clause.endswith("from"):
        clause = clause[:-4].rstrip()
    type_only = False
    if re.match(r"^type\s+\S", clause) and not re.match(r"^type\s*,", clause):
        type_only = True
        clause = clause[4:].strip()

    names: list[ImportName] = []
    for part in split_arguments(clause):
        text = part.text
        if not text:
            continue
        if text.startswith("{"):
            for entry in split_arguments(text[1:].rstrip("}")):
                match = _NAMED_BINDING.match(entry.text)
                if match:
                    is_type, name, alias = match.groups()
                    names.append(
                        ImportName(name=name.strip("'\""), alias=alias, kind="named", is_type=type_only or bool(is_type))
                    )
        elif text.startswith("*"):
            match = _NAMESPACE_BINDING.match(text)
            if match and match.group(1):
                names.append(ImportName(name=match.group(1), kind="namespace", is_type=type_only))
        else:
            names.append(ImportName(name=text, kind="default", is_type=type_only))

    unique: dict[tuple[str, str | None], ImportName] = {}
    for name in names:
        unique.setdefault((name.name, name.alias), name)
    return list(unique.values()), type_only


def _base_url(path: str) -> str | None:
    portable = to_portable_path(path)
    return to_file_url(portable) if portable.startswith("/") else None


def _read_import(source: str, event: LexEvent, syntax: CommentSyntax, base_url: str | None, offsets: _OffsetMap) -> ImportRecord:
    raw = source[event.specifier_start : event.specifier_end]
    specifier = raw.strip().strip("'\"")
    start, end = offsets.offset(event.specifier_start), offsets.offset(event.specifier_end)

    if syntax == "css":
        external = specifier.startswith(_EXTERNAL_CSS)
        relative_specifier = specifier
        if not external and not specifier.startswith(("./", "../", "/")):
            relative_specifier = "./" + specifier
        url = resolve_relative(base_url, relative_specifier) if base_url and not external else None
        return ImportRecord(specifier=specifier, start=start, end=end, is_relative=not external, url=url)

    keyword_end = event.start + len("import")
    names, type_only = _parse_bindings(source[keyword_end : event.specifier_start])
    is_relative = specifier.startswith(("./", "../"))
    url = resolve_relative(base_url, specifier) if is_relative and base_url else None
    return ImportRecord(
        specifier=specifier,
        start=start,
        end=end,
        names=names,
        is_relative=is_relative,
        url=url,
        is_type_only=type_only,
    )


# ----- directive registry -----


def _tags(content: str, vocabulary: Sequence[str]) -> list[str]:
    tags: list[str] = []
    for token in content.split():
        if token in vocabulary and token not in tags:
            tags.append(token)
    return tags


def _description(content: str) -> str | None:
    match = _DESCRIPTION.search(content)
    if match is None:
        return None
    return match.group(1) if match.group(1) is not None else match.group(2)


def _emphasis(content: str, tags: Sequence[str]) -> tuple[str | None, bool, str | None]:
    """Split the quoted string of a directive into ``(description, strong, highlight_text)``."""
    quoted = _description(content)
    if HIGHLIGHT_TEXT in tags:
        return None, False, quoted or None
    if quoted is not None and quoted.endswith("!"):
        return quoted[:-1].rstrip() or None, True, None
    return quoted, False, None


def _build_registry(
    source: str,
    path: str,
    comments: list[_Comment],
    offsets: _OffsetMap,
    total_lines: int,
    config: ExtractorConfig,
) -> list[DirectiveComment]:
    entries: list[DirectiveComment] = []
    open_ranges: list[int] = []

    for comment in comments:
        if not comment.notable:
            continue
        tags = _tags(comment.content, config.directive_tags)
        line = _source_line(source, comment.start)
        end_line = _source_line(source, comment.end)

        if RANGE_END in tags and RANGE_START not in tags:
            last_line = offsets.line(comment.start) - (1 if comment.standalone else 0)
            if open_ranges:
                index = open_ranges.pop()
                opened = entries[index]
                description, strong = opened.description, opened.strong
                if description is None:
                    description, strong, _ = _emphasis(comment.content, tags)
                entries[index] = opened.model_copy(
                    update={
                        "tags": [*opened.tags, *(tag for tag in tags if tag not in opened.tags)],
                        "body": [*opened.body, *comment.body],
                        "description": description,
                        "strong": strong,
                        "end": comment.end,
                        "end_line": end_line,
                        "display_end_line": last_line,
                        "stripped": opened.stripped and comment.stripped,
                    }
                )
                continue
            logger.warning("Unmatched %s in %s at line %d", RANGE_END, path, line + 1)

        anchor = offsets.line(comment.end) + (1 if comment.standalone and not comment.stripped else 0)
        display_end_line = anchor
        if RANGE_START in tags:
            open_ranges.append(len(entries))
            display_end_line = total_lines - 1
            end_line = _source_line(source, len(source))
        elif RANGE_END in tags:
            display_end_line = anchor - 1

        description, strong, highlight_text = _emphasis(comment.content, tags)
        entries.append(
            DirectiveComment(
                tags=tags,
                body=comment.body,
                description=description,
                strong=strong,
                highlight_text=highlight_text,
                kind="line" if comment.kind == "line" else "block",
                start=comment.start,
                end=len(source) if RANGE_START in tags else comment.end,
                line=line,
                end_line=end_line,
                display_line=anchor,
                display_end_line=display_end_line,
                stripped=comment.stripped,
            )
        )

    for index in open_ranges:
        logger.debug("%s in %s at line %d runs to end of file", RANGE_START, path, entries[index].line + 1)
    return entries


def extract_directives(source: str, path: str, config: ExtractorConfig | None = None) -> AnnotatedSource:
    """Strip directive comments from ``source`` and collect the directive registry and imports.

    ``path`` may be virtual; it only selects the comment syntax and anchors relative imports.
    """
    if not path or not path.strip():
        raise ConfigurationError("A file path is required to select the comment syntax")
    source = source.replace("\r\n", "\n")
    config = config or ExtractorConfig()
    syntax = comment_syntax_for(path, config.default_language)

    events = list(lex(source, syntax))
    comments = [_read_comment(source, event, config) for event in events if event.kind == "comment"]
    removals = _plan_removals(source, comments, syntax)
    code, offsets = _apply_removals(source, removals)

    base_url = _base_url(path)
    imports = [
        _read_import(source, event, syntax, base_url, offsets) for event in events if event.kind == "import"
    ]
    stripped = AnnotatedSource(code=code, imports=imports)
    registry = _build_registry(source, path, comments, offsets, stripped.total_lines, config)

    logger.debug(
        "Extracted %d directive(s) and %d import(s) from %s, %d comment range(s) stripped",
        len(registry),
        len(imports),
        path,
        len(removals),
    )
    return stripped.model_copy(update={"comments": registry})
