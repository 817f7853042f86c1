"""Smells Code Analyzer CLI - dead declarations and useless name prefixes via a language server."""
import asyncio
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.markup import escape

from sca.analyzer.files import load_target_file_set
from sca.analyzer.project import run_analysis
from sca.config import __version__, load_config
from sca.errors import GateFailure, SmellsError
from sca.utils.logger import configure_logging
from sca.utils.safe_console import SafeConsole

# Exit codes: findings fail the gate vs. the tool could not run
EXIT_GATE_FAILED = 1
EXIT_ERROR = 2

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="sca",
    help="Find dead declarations and useless name prefixes with a language server",
    add_completion=False
)
# Use SafeConsole for terminals without UTF-8 support
console = SafeConsole()


@app.command()
def analyze(
    config_file: Path = typer.Option(..., "--config-file", "-c", help="Path to JSON configuration file"),
    threshold: Optional[int] = typer.Option(None, "--threshold", "-t", min=0, help="Max amount of dead code entities (overrides config)"),
    files_from: Optional[Path] = typer.Option(None, "--files-from", help="File with newline separated paths to analyze"),
    generate_snapshot: Optional[Path] = typer.Option(None, "--generate-snapshot", help="Write current errors to a JSON snapshot"),
    compare_snapshot: Optional[Path] = typer.Option(None, "--compare-snapshot", help="Fail only on errors missing from a JSON snapshot"),
    show_all: bool = typer.Option(False, "--show-all", help="Show passed declarations too"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """Analyze the configured directory and gate on the dead-entity threshold."""
    configure_logging(console, verbose)

    try:
        config = load_config(config_file, threshold)
        logger.debug("Loaded config: %s", config.summary())
        only_files = load_target_file_set(files_from) if files_from else None

        console.print(f"[bold blue]Analyzing project:[/bold blue] {escape(str(config.project_root_path))}\n")

        asyncio.run(run_analysis(
            config,
            console,
            only_files=only_files,
            show_all=show_all or None,
            generate_snapshot_path=generate_snapshot,
            compare_snapshot_path=compare_snapshot,
        ))
    except GateFailure as e:
        console.print(f"[bold red]Failed:[/bold red] {escape(str(e))}")
        raise typer.Exit(EXIT_GATE_FAILED)
    except (SmellsError, OSError) as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(EXIT_ERROR)


@app.command()
def version():
    """Print the analyzer version."""
    console.print(f"sca {__version__}")


@app.callback()
def main():
    """Smells Code Analyzer - dead code and naming smells backed by a language server."""
    pass


if __name__ == "__main__":
    app()
