import json
from collections.abc import Sequence
from enum import Enum
from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from serialization_audit.core.analysis import ProgramAnalysis, analyze_programs
from serialization_audit.core.reporting import describe, format_finding
from serialization_audit.models import Finding, TypeSymbol
from serialization_audit.settings import get_settings
from serialization_audit.symbols.csharp import CSharpProgram, load_csharp_program, load_projects

console = Console()


class OutputFormat(str, Enum):
    table = "table"
    text = "text"
    json = "json"


def _load(paths: Sequence[str], assembly_name: str | None) -> CSharpProgram:
    try:
        return load_csharp_program(paths, assembly_name)
    except (FileNotFoundError, ValueError) as exc:
        console.print(f"[red]{escape(str(exc))}[/red]")
        raise typer.Exit(2) from None


def _render_findings(findings: Sequence[Finding]) -> None:
    table = Table(show_lines=False)
    for header in ("location", "rule", "severity", "type"):
        table.add_column(header)
    for finding in findings:
        rule = describe(finding)
        table.add_row(str(finding.location) if finding.location else "", rule.id, rule.severity, finding.subject)
    console.print(table)
    if findings:
        console.print(escape(describe(findings[0]).message))
    console.print(f"({len(findings)} findings)")


def check(
    paths: Annotated[list[str], typer.Argument(help="C# files or project directories.")],
    assembly_name: Annotated[
        str | None, typer.Option("--assembly-name", help="Assembly name; defaults to the project file name.")
    ] = None,
    output: Annotated[OutputFormat, typer.Option("--format", help="Output format.")] = OutputFormat.table,
    strict: Annotated[bool, typer.Option(help="Exit with status 1 when findings are reported.")] = False,
) -> None:
    """Report SerializationModel records missing from the source generation context."""
    program = _load(paths, assembly_name)
    analysis = ProgramAnalysis(program)
    findings = analysis.run()

    if output is OutputFormat.json:
        payload = {
            "assembly": program.assembly_name,
            "registry": analysis.registry.full_name if analysis.registry else None,
            "findings": [finding.model_dump(mode="json") for finding in findings],
        }
        typer.echo(json.dumps(payload, indent=2))
    elif output is OutputFormat.text:
        for finding in findings:
            typer.echo(format_finding(finding))
    else:
        if analysis.registry is None:
            console.print(f"[yellow]No serialization registry found in {program.assembly_name}.[/yellow]")
        _render_findings(findings)

    if strict and findings:
        raise typer.Exit(1)


def registry(
    paths: Annotated[list[str], typer.Argument(help="C# files or project directories.")],
    assembly_name: Annotated[
        str | None, typer.Option("--assembly-name", help="Assembly name; defaults to the project file name.")
    ] = None,
) -> None:
    """Show the located source generation context and the types it registers."""
    program = _load(paths, assembly_name)
    analysis = ProgramAnalysis(program)
    if analysis.registry is None:
        console.print(f"[yellow]No serialization registry found in {program.assembly_name}.[/yellow]")
        raise typer.Exit(1)

    console.print(f"[green]Registry[/green] {analysis.registry.full_name}")
    table = Table(show_lines=False)
    table.add_column("registered type")
    for entry in analysis.entries:
        first = entry.arguments[0] if entry.arguments else None
        table.add_row(first.full_name if isinstance(first, TypeSymbol) else repr(first))
    console.print(table)
    console.print(f"({len(analysis.entries)} entries)")


def solution(
    root: Annotated[str, typer.Argument(help="Directory holding one or more .csproj projects.")],
    strict: Annotated[bool, typer.Option(help="Exit with status 1 when findings are reported.")] = False,
) -> None:
    """Check every project below a directory, each as its own program."""
    try:
        programs = load_projects(root)
    except FileNotFoundError as exc:
        console.print(f"[red]{escape(str(exc))}[/red]")
        raise typer.Exit(2) from None

    if not programs:
        console.print(f"[yellow]No .csproj projects found under {root}.[/yellow]")
        return

    results = analyze_programs(programs, max_workers=get_settings().max_workers)
    total = 0
    for program, findings in zip(programs, results, strict=True):
        console.print(f"[bold]{program.assembly_name}[/bold]")
        _render_findings(findings)
        total += len(findings)

    if strict and total:
        raise typer.Exit(1)
