"""Main CLI application."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
from typing_extensions import Annotated

from .. import __version__
from ..context.builder import load_record
from ..core.errors import IdpgenError
from ..core.models import DataSource, GenerateConfig
from ..pipeline import build_store, generate as run_generate
from ..settings import Settings
from .display import format_variables, next_steps_guidance
from .parsers import parse_file_mode, require_path

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="idpgen",
    help="Generate infrastructure-as-code from IDP blueprints and stacks using templates.",
)

SourceArg = Annotated[
    DataSource,
    typer.Argument(help="Data source type (blueprint or stack)."),
]
RecordArg = Annotated[
    Path,
    typer.Argument(
        help="JSON or YAML file holding the blueprint/stack record.",
        metavar="RECORD",
    ),
]
VariablesFileOpt = Annotated[
    Optional[Path],
    typer.Option(
        "--variables-file",
        help="JSON/YAML file whose variables override the record's (default: $IDP_VARIABLES_FILE).",
        metavar="FILE",
    ),
]
VerboseOpt = Annotated[
    bool,
    typer.Option(
        "--verbose",
        "-v",
        help="Enable verbose logging.",
    ),
]


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="[%(levelname)s] %(message)s",
    )


def _fail(error: IdpgenError) -> typer.Exit:
    logger.debug("Error occurred", exc_info=error)
    typer.echo(f"Error: {error}", err=True)
    return typer.Exit(code=1)


@app.command()
def generate(
    source: SourceArg,
    record_file: RecordArg,
    template_dir: Annotated[
        Optional[Path],
        typer.Option(
            "--template-dir",
            help="Directory of .tf/.yaml/.yml/.json templates (default: $IDP_TEMPLATE_DIR).",
            metavar="DIR",
        ),
    ] = None,
    variables_file: VariablesFileOpt = None,
    output_dir: Annotated[
        Optional[Path],
        typer.Option(
            "--output-dir",
            help="Output directory for generated files (default: $IDP_OUTPUT_DIR or ./output).",
            metavar="DIR",
        ),
    ] = None,
    file_mode: Annotated[
        Optional[str],
        typer.Option(
            "--mode",
            help="File permissions in octal (default: 0600).",
            metavar="OCTAL",
        ),
    ] = None,
    verbose: VerboseOpt = False,
) -> None:
    """Render templates with blueprint or stack variables."""
    _configure_logging(verbose)
    settings = Settings()

    config = GenerateConfig(
        template_dir=require_path(
            template_dir or settings.template_dir, "--template-dir", "IDP_TEMPLATE_DIR"
        ),
        output_dir=output_dir or settings.output_dir,
        variables_file=variables_file or settings.variables_file,
        file_mode=parse_file_mode(file_mode or settings.file_mode),
    )
    logger.debug(f"Config: {config}")

    try:
        record = load_record(record_file, source)
        logger.info(f"Loaded {source.value}: {record.name}")
        written = run_generate(config, record)
    except IdpgenError as e:
        raise _fail(e) from e

    typer.echo(f"\n✓ Successfully generated {len(written)} file(s) from templates")
    typer.echo("\nGenerated files:")
    for path in written:
        typer.echo(f"  ✓ {path}")
    typer.echo(f"\n{next_steps_guidance(written, config.template_dir)}")


@app.command("list-variables")
def list_variables(
    source: SourceArg,
    record_file: RecordArg,
    variables_file: VariablesFileOpt = None,
    verbose: VerboseOpt = False,
) -> None:
    """List the variables available to templates for a blueprint or stack."""
    _configure_logging(verbose)
    settings = Settings()

    try:
        record = load_record(record_file, source)
        store = build_store(record, variables_file or settings.variables_file)
    except IdpgenError as e:
        raise _fail(e) from e

    typer.echo(format_variables(store, source.value.capitalize()))


@app.command()
def version() -> None:
    """Display version information."""
    typer.echo(f"idpgen version {__version__}")
    typer.echo("Infrastructure-as-code template generator for IDP")


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
