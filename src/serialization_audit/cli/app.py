from typing import Annotated

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape

from serialization_audit.cli.check import check, registry, solution
from serialization_audit.settings import configure_logging, get_settings

app = typer.Typer(
    name="serialization-audit",
    help="Find SerializationModel records missing from the JSON source generation context.",
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)
console = Console()


@app.callback()
def _configure(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log progress at INFO level.")] = False,
) -> None:
    try:
        settings = get_settings()
    except ValidationError as exc:
        console.print(f"[red]Invalid configuration: {escape(str(exc))}[/red]")
        raise typer.Exit(code=2) from exc
    configure_logging("INFO" if verbose else settings.log_level)


app.command("check")(check)
app.command("registry")(registry)
app.command("solution")(solution)


def main() -> None:
    app()
