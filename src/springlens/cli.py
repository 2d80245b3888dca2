"""SpringLens CLI interface.

Commands:
- analyze: Analyze an extracted Spring source tree and write a report
- init: Initialize SpringLens configuration

Global options:
- --config: Path to configuration file
- --verbose: Enable verbose output with timestamps
- --quiet: Suppress info messages
- --ci: JSON log output
- --version: Show version and exit
"""

from pathlib import Path
from typing import Annotated

import typer

from springlens import __version__
from springlens.config import SpringLensConfig, create_default_config, load_config
from springlens.utils.logging import configure_from_cli, get_logger

# Create Typer app
app = typer.Typer(
    name="springlens",
    help="Source code intelligence for Java/Spring code bases",
    add_completion=False,
    no_args_is_help=True,
)

# Global state
_config: SpringLensConfig | None = None
_logger = get_logger()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"springlens {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    config: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to configuration file",
            exists=True,
            dir_okay=False,
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable verbose output with timestamps",
        ),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Suppress info messages (warnings and errors only)",
        ),
    ] = False,
    ci: Annotated[
        bool,
        typer.Option(
            "--ci",
            help="Enable CI mode with JSON output",
        ),
    ] = False,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit",
        ),
    ] = False,
) -> None:
    """SpringLens - Java/Spring source code intelligence.

    Extracts classes, endpoints, relationships, microservice topology,
    security findings, metrics and data flow from a Spring code base.
    """
    global _config

    # Configure logging based on CLI flags
    configure_from_cli(verbose=verbose, quiet=quiet, ci=ci)

    # Load configuration
    try:
        _config = load_config(config_path=config)
        if _config.config_path:
            _logger.debug(f"Loaded config from: {_config.config_path}")
    except FileNotFoundError as e:
        _logger.error(str(e))
        raise typer.Exit(1)
    except Exception as e:
        _logger.error(f"Failed to load config: {e}")
        raise typer.Exit(1)

    # Config file logging settings apply unless a flag overrides them
    configure_from_cli(
        verbose=verbose,
        quiet=quiet,
        ci=ci,
        default_mode=_config.logging.mode,
        default_level=_config.logging.level,
    )


# =============================================================================
# analyze command
# =============================================================================


@app.command()
def analyze(
    path: Annotated[
        Path,
        typer.Argument(
            help="Root of the extracted source tree",
            exists=True,
            file_okay=False,
        ),
    ] = Path("."),
    output: Annotated[
        Path | None,
        typer.Option(
            "--output",
            "-o",
            help="Output file path (overrides config)",
        ),
    ] = None,
    format: Annotated[
        str | None,
        typer.Option(
            "--format",
            "-f",
            help="Output format: markdown, json",
        ),
    ] = None,
    dry_run: Annotated[
        bool,
        typer.Option(
            "--dry-run",
            help="Print the report instead of writing it",
        ),
    ] = False,
) -> None:
    """Analyze a source tree and write a report.

    Exit codes:
        0: Report generated successfully
        1: Error during analysis
        2: Generated with recoverable errors
    """
    from springlens.analyzers import SpringLensError
    from springlens.loader import load_corpus
    from springlens.pipeline import AnalysisPipeline
    from springlens.templates import ReportRenderer

    config = _config or SpringLensConfig()
    output_path = output or Path(config.output.path)
    output_format = format or config.output.format
    if output_format not in {"markdown", "json"}:
        _logger.error(f"Invalid format: {output_format}. Use 'markdown' or 'json'")
        raise typer.Exit(1)

    root = path.resolve()
    _logger.info(f"Analyzing: {root}")

    try:
        corpus = load_corpus(root, config.analyzer)
        result = AnalysisPipeline(config=config).run(corpus)
    except SpringLensError as e:
        _logger.error(f"Analysis failed: {e}")
        raise typer.Exit(1)

    if result.errors:
        _logger.warning(f"Encountered {len(result.errors)} error(s)")
        for error in result.errors:
            _logger.warning(f"  [{error.component}] {error.message}")

    renderer = ReportRenderer()
    try:
        if dry_run:
            if output_format == "json":
                typer.echo(renderer.render_json(result))
            else:
                typer.echo(renderer.render(result))
            _logger.info("Dry run complete - no files written")
        else:
            written = renderer.render_to_file(result, output_path, output_format)
            typer.echo(f"Report written to: {written}")
    except (OSError, ValueError) as e:
        _logger.error(f"Rendering failed: {e}")
        raise typer.Exit(1)

    # Exit with appropriate code
    if result.errors:
        raise typer.Exit(2)
    raise typer.Exit(0)


# =============================================================================
# init command
# =============================================================================


@app.command()
def init(
    force: Annotated[
        bool,
        typer.Option(
            "--force",
            help="Overwrite existing config",
        ),
    ] = False,
) -> None:
    """Initialize SpringLens configuration.

    Creates .springlens/config.yaml with the default settings.
    """
    config_dir = Path(".springlens")
    config_file = config_dir / "config.yaml"

    if config_file.exists() and not force:
        _logger.error(f"Config already exists: {config_file}")
        _logger.info("Use --force to overwrite")
        raise typer.Exit(1)

    config_dir.mkdir(exist_ok=True)
    config_file.write_text(create_default_config(), encoding="utf-8")
    _logger.info(f"Created config: {config_file}")

    typer.echo("SpringLens configuration initialized")
    typer.echo(f"   Config: {config_file}")
    raise typer.Exit(0)
