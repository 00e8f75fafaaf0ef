from collections.abc import Sequence
from pathlib import Path
from typing import Annotated, Any

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from docs_precompute.config import FORMAT_CHOICES, load_config
from docs_precompute.core.directives import extract_directives
from docs_precompute.core.emphasis import emphasize
from docs_precompute.core.erasure import erase_types
from docs_precompute.errors import PrecomputeError

console = Console()
err_console = Console(stderr=True)

FileArgument = Annotated[
    Path,
    typer.Argument(exists=True, dir_okay=False, readable=True, resolve_path=True, help="Source file to process."),
]


def _render_table(headers: Sequence[str], rows: Sequence[tuple[Any, ...]]) -> None:
    table = Table(show_lines=False)
    for h in headers:
        table.add_column(h)
    for row in rows:
        table.add_row(*(escape(str(v)) for v in row))
    console.print(table)
    console.print(f"({len(rows)} rows)")


def _fail(error: PrecomputeError) -> typer.Exit:
    err_console.print(f"[red]Error:[/red] {escape(str(error))}", highlight=False)
    return typer.Exit(1)


def strip(
    file: FileArgument,
    show_directives: Annotated[bool, typer.Option("--show-directives", help="List the directive registry instead of the code.")] = False,
) -> None:
    """Print a file with its directive comments stripped."""
    try:
        annotated = extract_directives(file.read_text(encoding="utf-8"), str(file), load_config().extractor)
    except PrecomputeError as exc:
        raise _fail(exc) from None

    if not show_directives:
        typer.echo(annotated.code, nl=False)
        return
    _render_table(
        ["tags", "kind", "line", "display lines", "description"],
        [
            (
                " ".join(c.tags),
                c.kind,
                c.line + 1,
                f"{c.display_line + 1}-{c.display_end_line + 1}",
                c.description or "",
            )
            for c in annotated.comments
        ],
    )


def frames(
    file: FileArgument,
    padding: Annotated[int | None, typer.Option(min=0, help="Maximum padding frame size around highlights.")] = None,
    focus_max_length: Annotated[
        int | None, typer.Option("--focus-max-length", min=0, help="Maximum lines of the focused highlight with its padding.")
    ] = None,
    focused_only: Annotated[bool, typer.Option("--focused-only", help="Pad only the focused highlight.")] = False,
) -> None:
    """Show how a file's display lines split into emphasis frames."""
    try:
        config = load_config(
            padding_frame_max_size=padding,
            focus_frames_max_length=focus_max_length,
            padding_scope="focused" if focused_only else "all",
        )
        annotated = extract_directives(file.read_text(encoding="utf-8"), str(file), config.extractor)
        result = emphasize(annotated, config.emphasis)
    except PrecomputeError as exc:
        raise _fail(exc) from None

    _render_table(
        ["kind", "start", "end", "focused"],
        [(f.kind, f.start_line + 1, f.end_line + 1, "yes" if f.focused else "") for f in result.frames],
    )


def erase(
    file: FileArgument,
    format: Annotated[str, typer.Option("--format", help=f"Printer pass: {' or '.join(FORMAT_CHOICES)}.")] = "default",
    output: Annotated[Path | None, typer.Option("--output", "-o", help="Write the JavaScript to this file.")] = None,
) -> None:
    """Convert a TypeScript file to JavaScript."""
    try:
        result = erase_types(file.read_text(encoding="utf-8"), file.name, load_config(format=format).format)
    except PrecomputeError as exc:
        raise _fail(exc) from None

    if output is None:
        typer.echo(result.source, nl=False)
        return
    output.write_text(result.source, encoding="utf-8")
    err_console.print(f"[green]Wrote[/green] {result.file_name} to {output}")
