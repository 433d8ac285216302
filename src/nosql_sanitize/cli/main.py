"""Main CLI entry point for nosql-sanitize.

Provides commands for:
- sanitize: Remove injection markers from a JSON document
- validate: Check JSON documents for injection markers
"""

from __future__ import annotations

try:
    import typer
except ImportError as e:
    raise ImportError("CLI dependencies not installed. Install with: pip install nosql-sanitize[cli]") from e

from nosql_sanitize.cli.sanitize import sanitize
from nosql_sanitize.cli.validate import validate

app = typer.Typer(
    name="nosql-sanitize",
    help="Strip injection markers from JSON documents.",
    no_args_is_help=True,
)

app.command()(sanitize)
app.command()(validate)


def version_callback(value: bool) -> None:
    """Print version and exit.

    Args:
        value: True if --version flag was provided
    """
    if value:
        from nosql_sanitize import __version__

        typer.echo(f"nosql-sanitize {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    r"""Strip injection markers from JSON documents.

    \b
    Examples:
        nosql-sanitize sanitize payload.json
        nosql-sanitize sanitize payload.json --replace-with _ --output clean.json
        nosql-sanitize validate payload.json
        nosql-sanitize validate --dir ./fixtures --recursive
    """


if __name__ == "__main__":
    app()
