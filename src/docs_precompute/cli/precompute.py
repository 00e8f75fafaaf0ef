import logging
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape

from docs_precompute.config import load_config
from docs_precompute.core.paths import to_file_url, to_portable_path
from docs_precompute.core.precompute import build_precompute_artifact, load_source_file
from docs_precompute.errors import PrecomputeError
from docs_precompute.store import ArtifactCache, PathCache

logger = logging.getLogger(__name__)
console = Console(stderr=True)

OUTPUT_SUFFIX = ".precompute.json"
INDEX_STEM = "index"


def output_name(file: Path) -> str:
    """Artifact file name for a demo module; ``<demo>/index.ts`` is named after its directory."""
    stem = file.name.split(".", 1)[0]
    if stem == INDEX_STEM and file.parent.name:
        stem = file.parent.name
    return f"{stem}{OUTPUT_SUFFIX}"


def precompute(
    files: Annotated[
        list[Path],
        typer.Argument(exists=True, dir_okay=False, readable=True, resolve_path=True, help="Demo modules to precompute."),
    ],
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", file_okay=False, help="Directory for <name>.precompute.json files."),
    ] = None,
    padding: Annotated[int | None, typer.Option(min=0, help="Maximum padding frame size around highlights.")] = None,
    format: Annotated[str | None, typer.Option("--format", help="Printer pass for type-erased transcripts.")] = None,
) -> None:
    """Precompute the code artifacts of demo modules.

    A failing file is reported and the remaining files are still processed.
    """
    try:
        config = load_config(padding_frame_max_size=padding, format=format)
    except PrecomputeError as exc:
        console.print(f"[red]Error:[/red] {escape(str(exc))}", highlight=False)
        raise typer.Exit(1) from None

    if output is not None:
        output.mkdir(parents=True, exist_ok=True)
    path_cache = PathCache()
    artifact_cache = ArtifactCache()

    failed: list[Path] = []
    written: dict[Path, Path] = {}
    for file in files:
        url = to_file_url(to_portable_path(str(file)))
        try:
            artifact = build_precompute_artifact(
                load_source_file(url, config).text,
                url,
                config,
                path_cache=path_cache,
                artifact_cache=artifact_cache,
            )
        except (PrecomputeError, OSError) as exc:
            logger.exception("Failed to precompute %s", file)
            console.print(f"[red]Failed[/red] {escape(str(file))}: {escape(str(exc))}", highlight=False)
            failed.append(file)
            continue

        if artifact is None:
            console.print(f"[yellow]Skipped[/yellow] {escape(str(file))}: no factory call to precompute")
            continue
        if output is None:
            typer.echo(artifact.to_json())
            continue

        target = output / output_name(file)
        if target in written:
            logger.error("Output %s of %s was already written for %s", target, file, written[target])
            console.print(
                f"[red]Failed[/red] {escape(str(file))}: {escape(target.name)} was already written for "
                f"{escape(str(written[target]))}",
                highlight=False,
            )
            failed.append(file)
            continue
        target.write_text(artifact.to_json() + "\n", encoding="utf-8")
        written[target] = file
        console.print(f"[green]Wrote[/green] {len(artifact.variants)} variant(s) to {escape(str(target))}")

    if failed:
        console.print(f"[red]{len(failed)} of {len(files)} file(s) failed[/red]")
        raise typer.Exit(1)
