"""typesnap CLI entry point."""

import logging
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel

from typesnap import __version__

console = Console()


def _configure_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _load(project: Path | None, config: Path | None):
    """Load and resolve the config, then build the provider and frontend."""
    from typesnap.adapters.mypy import MypyFrontend
    from typesnap.config import load_config, resolve_paths
    from typesnap.files import FileProvider

    project_root = project or Path.cwd()
    cfg = resolve_paths(load_config(config_path=config, project_root=project_root), project_root)
    provider = FileProvider.from_config(cfg.provider)
    frontend = MypyFrontend(cfg.checker)
    return cfg, provider, frontend


@click.group()
@click.version_option(__version__, prog_name="typesnap")
def cli() -> None:
    """typesnap - snapshot tests for type-checker diagnostics."""
    pass


@cli.command()
@click.argument("paths", nargs=-1, type=click.Path(exists=True, path_type=Path))
@click.option(
    "--project",
    "-p",
    type=click.Path(exists=True, path_type=Path),
    help="Project root directory. Defaults to current directory.",
)
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, path_type=Path),
    help="Path to typesnap.yaml config file.",
)
@click.option("--update", "-u", is_flag=True, help="Overwrite mismatching snapshots.")
@click.option("--verbose", "-v", is_flag=True, help="Show diagnostics for passing cases.")
@click.option("--debug", is_flag=True, help="Enable debug logging.")
def run(
    paths: tuple[Path, ...],
    project: Path | None,
    config: Path | None,
    update: bool,
    verbose: bool,
    debug: bool,
) -> None:
    """Run case files.

    PATHS are case files or directories; defaults to the configured case_paths.
    """
    from typesnap.diagnostics import ConstructionError
    from typesnap.runner import discover_cases, format_results, load_cases, run_cases
    from typesnap.snapshot import SnapshotStore

    _configure_logging(debug)

    try:
        cfg, provider, frontend = _load(project, config)
    except ConstructionError as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        raise SystemExit(1)

    case_files = discover_cases([str(p) for p in paths] or cfg.case_paths)
    if not case_files:
        console.print("[yellow]No case files found[/yellow]")
        raise SystemExit(1)

    snapshots = SnapshotStore(cfg.snapshot_path, update=update)
    results = []

    for case_file in case_files:
        try:
            document = load_cases(case_file)
        except Exception as e:
            console.print(f"[red]Error loading {case_file}:[/red] {e}")
            raise SystemExit(1)

        console.print(f"[dim]Running {len(document.cases)} case(s) from {case_file}[/dim]")
        results.extend(run_cases(document, frontend, provider, snapshots=snapshots))

    if snapshots.save():
        console.print(f"[dim]Snapshots written to {snapshots.path}[/dim]")

    output = format_results(results, verbose=verbose)

    has_failures = any(r.status.value in ("failed", "error") for r in results)
    if has_failures:
        console.print(Panel(output, title="[red]Cases Failed[/red]", border_style="red"))
        raise SystemExit(1)
    else:
        console.print(Panel(output, title="[green]Cases Passed[/green]", border_style="green"))


@cli.command()
@click.argument("snippet", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--project",
    "-p",
    type=click.Path(exists=True, path_type=Path),
    help="Project root directory. Defaults to current directory.",
)
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, path_type=Path),
    help="Path to typesnap.yaml config file.",
)
@click.option("--json", "as_json", is_flag=True, help="Print diagnostics as JSON.")
@click.option("--debug", is_flag=True, help="Enable debug logging.")
def check(snippet: Path, project: Path | None, config: Path | None, as_json: bool, debug: bool) -> None:
    """Compile a single snippet and print its diagnostics.

    SNIPPET is a Python source file, compiled as the entry module.
    """
    from typesnap.diagnostics import ConstructionError
    from typesnap.runner import compile_code

    _configure_logging(debug)

    try:
        _, provider, frontend = _load(project, config)
        result = compile_code(snippet.read_text(encoding="utf-8"), provider, frontend)
    except ConstructionError as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        raise SystemExit(1)

    if as_json:
        click.echo(result.model_dump_json(indent=2))
    elif result.diagnostics:
        for line in result.lines():
            click.echo(line)
    else:
        console.print("[green]✓[/green] No diagnostics")

    if not result.is_clean:
        raise SystemExit(1)


@cli.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--output",
    "-o",
    type=click.Path(path_type=Path),
    help="Output file for the JSON document. Defaults to stdout.",
)
def compile(path: Path, output: Path | None) -> None:
    """Parse a case file and dump it as JSON.

    PATH is the path to a case file.
    """
    from typesnap.compiler.parser import parse_file

    try:
        document = parse_file(path)
    except Exception as e:
        console.print(f"[red]Parse error:[/red] {e}")
        raise SystemExit(1)

    json_output = document.model_dump_json(indent=2)

    if output:
        output.write_text(json_output)
        console.print(f"[green]✓[/green] Compiled to {output}")
    else:
        click.echo(json_output)


@cli.command()
def init() -> None:
    """Initialize typesnap in the current directory.

    Creates:
    - stubs/
    - typecases/
    - typesnap.yaml
    """
    project_root = Path.cwd()

    dirs = [
        project_root / "stubs",
        project_root / "typecases",
    ]

    for d in dirs:
        d.mkdir(parents=True, exist_ok=True)
        console.print(f"[green]✓[/green] Created {d.relative_to(project_root)}/")

    config_file = project_root / "typesnap.yaml"
    if not config_file.exists():
        config_file.write_text(
            """\
# typesnap configuration
version: "0.1"

provider:
  # Directories scanned for .pyi stub files (later directories win on name clashes)
  search_paths:
    - stubs

  # Synthetic files: module file name -> file to read its contents from
  # files:
  #   my_library.pyi: src/my_library/__init__.pyi

checker:
  # Target Python version (defaults to the running interpreter)
  # python_version: "3.12"

  # Keep mypy notes in the collected diagnostics
  # include_notes: true

  # Extra mypy options
  # options:
  #   disallow_untyped_defs: true

# Directories to search for .typecase files
# case_paths:
#   - typecases

# Snapshots for cases without an [out] section
# snapshot_path: typecases/__snapshots__/snapshots.yaml
"""
        )
        console.print(f"[green]✓[/green] Created {config_file.name}")
    else:
        console.print(f"[yellow]-[/yellow] {config_file.name} already exists")

    console.print("\n[dim]typesnap initialized. Add stubs to stubs/ and cases to typecases/[/dim]")


@cli.command()
@click.option(
    "--project",
    "-p",
    type=click.Path(exists=True, path_type=Path),
    help="Project root directory. Defaults to current directory.",
)
def config(project: Path | None) -> None:
    """Show the current configuration."""
    from typesnap.config import load_config

    project_root = project or Path.cwd()
    cfg = load_config(project_root=project_root)

    console.print(Panel(cfg.model_dump_json(indent=2), title="typesnap Config"))


if __name__ == "__main__":
    cli()
