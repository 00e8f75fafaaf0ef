from docs_precompute.config import PrintOptions
from docs_precompute.core.arguments import literal_newlines


class LinePrinter:
    """Line-level formatting of a transcript.

    Text inside template literals is left as written. Leading blank lines are
    always dropped.

    Implements the ``SourcePrinter`` protocol.
    """

    def print(self, source: str, options: PrintOptions) -> str:
        protected = literal_newlines(source)
        lines: list[str] = []
        offset = 0
        in_literal = False
        for line in source.split("\n"):
            end = offset + len(line)
            continues_literal = end in protected
            if options.trim_trailing_whitespace and not continues_literal:
                line = line.rstrip()
            blank = not in_literal and not line.strip()
            if not (blank and (options.remove_empty_lines or not lines)):
                lines.append(line)
            in_literal = continues_literal
            offset = end + 1
        text = "\n".join(lines)
        if options.final_newline:
            text = text.rstrip("\n") + "\n" if text.strip() else ""
        return text
