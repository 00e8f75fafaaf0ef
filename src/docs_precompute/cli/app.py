import logging
from enum import Enum
from typing import Annotated

import typer

from docs_precompute.cli.inspect import erase, frames, strip
from docs_precompute.cli.precompute import precompute


class LogLevel(str, Enum):
    debug = "DEBUG"
    info = "INFO"
    warning = "WARNING"
    error = "ERROR"


app = typer.Typer(
    name="docs-precompute",
    help="Docs precompute CLI: strip directives, split emphasis frames and erase types from code examples.",
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)


@app.callback()
def configure(
    log_level: Annotated[LogLevel, typer.Option("--log-level", case_sensitive=False, help="Logging verbosity.")] = LogLevel.warning,
) -> None:
    logging.basicConfig(level=log_level.value, format="%(levelname)s %(name)s: %(message)s")


app.command("strip")(strip)
app.command("frames")(frames)
app.command("erase-types")(erase)
app.command("precompute")(precompute)


def main() -> None:
    app()
