"""
Kinx Language Server CLI

serve    - run the language server over stdio
check    - index one file and print its diagnostics
symbols  - index one file and list its definitions
"""

import asyncio
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from kinx_lsp import __version__
from kinx_lsp.common.exceptions import KinxLspError
from kinx_lsp.common.observability import setup_logging
from kinx_lsp.config.settings import KinxSettings, get_settings
from kinx_lsp.indexing.application.build_pass import BuildResult, build_document_index
from kinx_lsp.indexing.domain.models import DiagnosticSeverity, SourceDocument
from kinx_lsp.indexing.domain.uris import path_to_uri
from kinx_lsp.indexing.infrastructure.compiler import KinxCompiler
from kinx_lsp.indexing.infrastructure.source_loader import SourceLoader

app = typer.Typer(
    name="kinx-lsp",
    help="Kinx language server and one-shot indexing tools",
    add_completion=False,
)

console = Console()

_SEVERITY_STYLES = {
    DiagnosticSeverity.ERROR: "[red]error[/red]",
    DiagnosticSeverity.WARNING: "[yellow]warning[/yellow]",
    DiagnosticSeverity.INFORMATION: "[cyan]info[/cyan]",
    DiagnosticSeverity.HINT: "[dim]hint[/dim]",
}


def _settings(compiler: str | None, timeout: float | None) -> KinxSettings:
    return get_settings().with_overrides(compiler_path=compiler, compile_timeout=timeout)


def _run_pass(path: Path, settings: KinxSettings) -> BuildResult:
    path = path.absolute()
    text = path.read_text(encoding="utf-8")
    document = SourceDocument.from_text(path_to_uri(path), text)
    compiler = KinxCompiler(
        executable=settings.compiler_path,
        timeout=settings.compile_timeout,
        end_marker=settings.end_marker,
    )
    report = asyncio.run(compiler.compile(text, document.path))
    return build_document_index(document, report.output, SourceLoader(document.workdir))


def _index_file(path: Path, settings: KinxSettings) -> BuildResult:
    try:
        return _run_pass(path, settings)
    except KinxLspError as e:
        console.print(f"[bold red]Indexing failed:[/bold red] {e}")
        raise typer.Exit(code=2)
    except OSError as e:
        console.print(f"[bold red]Cannot read {path}:[/bold red] {e}")
        raise typer.Exit(code=2)


@app.callback()
def main(
    log_level: str | None = typer.Option(None, "--log-level", help="Override KINX_LOG_LEVEL"),
) -> None:
    settings = get_settings()
    setup_logging(level=log_level or settings.log_level, format=settings.log_format)


@app.command()
def serve(
    compiler: str | None = typer.Option(None, "--compiler", "-c", help="Path to the kinx executable"),
    timeout: float | None = typer.Option(None, "--timeout", help="Compile timeout in seconds"),
):
    """Run the language server over stdio."""
    from kinx_lsp.server.language_server import serve as serve_stdio

    serve_stdio(_settings(compiler, timeout))


@app.command()
def check(
    file: Path = typer.Argument(..., help="Kinx source file", exists=True, dir_okay=False),
    compiler: str | None = typer.Option(None, "--compiler", "-c", help="Path to the kinx executable"),
    timeout: float | None = typer.Option(None, "--timeout", help="Compile timeout in seconds"),
):
    """
    Index one file and print its diagnostics.

    Exits with code 1 when any error is reported.
    """
    result = _index_file(file, _settings(compiler, timeout))

    if result.diagnostics:
        table = Table(title=f"Diagnostics: {file.name}")
        table.add_column("Line", justify="right", style="cyan")
        table.add_column("Col", justify="right")
        table.add_column("Severity")
        table.add_column("Source", style="dim")
        table.add_column("Message")
        for diagnostic in sorted(result.diagnostics, key=lambda d: d.range.start):
            start = diagnostic.range.start
            table.add_row(
                str(start.line + 1),
                str(start.character + 1),
                _SEVERITY_STYLES[diagnostic.severity],
                diagnostic.source,
                diagnostic.message,
            )
        console.print(table)

    console.print(f"{result.error_count} error(s), {result.warning_count} warning(s)")
    if result.error_count:
        raise typer.Exit(code=1)


@app.command()
def symbols(
    file: Path = typer.Argument(..., help="Kinx source file", exists=True, dir_okay=False),
    compiler: str | None = typer.Option(None, "--compiler", "-c", help="Path to the kinx executable"),
    timeout: float | None = typer.Option(None, "--timeout", help="Compile timeout in seconds"),
):
    """Index one file and list its definitions."""
    result = _index_file(file, _settings(compiler, timeout))
    index = result.index

    table = Table(title=f"Symbols: {file.name}")
    table.add_column("Line", justify="right", style="cyan")
    table.add_column("Kind")
    table.add_column("Name", style="bold")
    table.add_column("Type")
    table.add_column("Uses", justify="right")
    for entry in index.definitions:
        counter = index.usage_counts.get((entry.name, entry.line))
        table.add_row(
            str(entry.line + 1),
            entry.kind.value,
            entry.qualified_name,
            entry.return_type if entry.callable and entry.return_type else (entry.type_name or ""),
            str(counter.count) if counter is not None else "-",
        )
    console.print(table)
    console.print(f"{len(index.definitions)} definition(s), {len(index.references)} reference(s)")


@app.command()
def version():
    """Show the version."""
    console.print(f"kinx-lsp {__version__}")


if __name__ == "__main__":
    app()
