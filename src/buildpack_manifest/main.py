import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

import click
from rich.console import Console
from rich.panel import Panel

from .cli_config import (
    build_config,
    config_structure_errors,
    create_sample_config,
    get_config,
    load_config,
    load_config_file,
    validate_config_values,
)
from .error_handling import ErrorCategory, SchemaLoadError, setup_error_handling
from .reporting import ValidationReporter, report_to_json
from .structured_logging import configure_logging
from .validator import ValidationReport, validate_manifest

__version__ = "1.0.0"

console = Console()
error_console = Console(stderr=True)


def _setup_logging(verbose: bool) -> None:
    config = get_config()
    log_level = "INFO" if verbose else config.logging.log_level
    configure_logging(log_level, config.logging.structured)
    setup_error_handling(log_level=getattr(logging, log_level.upper(), logging.WARNING))


def _run_validation(manifest: str, schema: Optional[str]) -> ValidationReport:
    try:
        return validate_manifest(manifest, schema_path=schema, config=get_config())
    except SchemaLoadError as e:
        raise click.ClickException(str(e))


def output_json_results(
    reports: List[ValidationReport],
    output_file: Optional[str] = None,
    as_list: bool = False,
) -> None:
    """Export one report, or a list of reports for batch runs, as JSON."""
    if as_list:
        json_output = json.dumps(
            [report.to_dict() for report in reports], indent=2, ensure_ascii=False
        )
    else:
        json_output = report_to_json(reports[0])

    if output_file:
        with open(output_file, "w", encoding="utf-8") as f:
            f.write(json_output)
        error_console.print(f"✅ Results saved to {output_file}", style="green")
    else:
        click.echo(json_output)


@click.group(invoke_without_command=True)
@click.option("--version", is_flag=True, help="Show version information")
@click.pass_context
def cli(ctx, version):
    """
    📦 Buildpack Manifest Validator

    Checks a buildpack manifest.yml against the manifest schema and verifies
    that every 'default_versions' entry points at a declared dependency.
    """
    if version:
        console.print(f"Buildpack Manifest Validator version {__version__}", style="bold blue")
        ctx.exit()

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())


@cli.command()
@click.argument("manifest", type=click.Path(dir_okay=False))
@click.option(
    "--schema",
    type=click.Path(exists=True, dir_okay=False),
    help="JSON Schema to validate against (default: bundled manifest schema)",
)
@click.option(
    "--output-format",
    type=click.Choice(["console", "json"], case_sensitive=False),
    default=None,
    help="Output format for results (default from config or console)",
)
@click.option(
    "--output-file",
    "-o",
    type=click.Path(),
    help="Save results to file (JSON format only)",
)
@click.option("--quiet", "-q", is_flag=True, help="Only print problems")
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose output and INFO level logging",
)
def validate(
    manifest: str,
    schema: Optional[str],
    output_format: Optional[str],
    output_file: Optional[str],
    quiet: bool,
    verbose: bool,
) -> None:
    """
    Validate a buildpack manifest.

    Exits with status 1 when the manifest is malformed.

    Examples:

      buildpack-manifest validate manifest.yml

      buildpack-manifest validate manifest.yml --output-format json -o report.json

      buildpack-manifest validate manifest.yml --schema my_schema.json --quiet
    """
    config = load_config()
    final_format = (output_format or config.validation.output_format).lower()
    quiet = quiet or config.validation.quiet
    verbose = verbose or config.validation.verbose

    if output_file and final_format != "json":
        raise click.ClickException("Output file can only be used with JSON format")

    _setup_logging(verbose)
    report = _run_validation(manifest, schema)

    if final_format == "json":
        output_json_results([report], output_file)
    elif quiet:
        if not report.valid:
            _print_quiet_failure(report)
    else:
        ValidationReporter(console, error_console).print_report(report, verbose=verbose)

    if not report.valid:
        sys.exit(1)


def _print_quiet_failure(report: ValidationReport) -> None:
    for issue in report.issues:
        if issue.category == ErrorCategory.DEFAULT_VERSIONS:
            continue
        location = f"{issue.path}: " if issue.path else ""
        error_console.print(
            f"{report.manifest_path}: {location}{issue.message}",
            markup=False,
            highlight=False,
            soft_wrap=True,
        )
    if report.consistency_report:
        ValidationReporter(console, error_console).print_consistency_report(report)


@cli.command()
@click.argument("manifests", nargs=-1, required=True, type=click.Path(dir_okay=False))
@click.option(
    "--schema",
    type=click.Path(exists=True, dir_okay=False),
    help="JSON Schema to validate against (default: bundled manifest schema)",
)
@click.option(
    "--output-format",
    type=click.Choice(["console", "json"], case_sensitive=False),
    default=None,
    help="Output format for results (default from config or console)",
)
@click.option("--quiet", "-q", is_flag=True, help="Only print problems")
def batch(
    manifests: tuple, schema: Optional[str], output_format: Optional[str], quiet: bool
):
    """
    Validate several buildpack manifests.

    Exits with status 1 when any manifest is malformed.
    """
    config = load_config()
    final_format = (output_format or config.validation.output_format).lower()
    quiet = quiet or config.validation.quiet
    _setup_logging(False)

    reports = [_run_validation(manifest, schema) for manifest in manifests]
    invalid = [report for report in reports if not report.valid]

    if final_format == "json":
        output_json_results(reports, as_list=True)
    else:
        reporter = ValidationReporter(console, error_console)
        for report in reports:
            if quiet and report.valid:
                continue
            if quiet:
                _print_quiet_failure(report)
            else:
                reporter.print_report(report)

        if not quiet:
            console.print("\n📊 Batch validation complete:", style="bold")
            console.print(f"   Manifests checked: {len(reports)}")
            console.print(f"   Valid: {len(reports) - len(invalid)}")
            console.print(f"   Malformed: {len(invalid)}")

    if invalid:
        sys.exit(1)


@cli.command()
def info():
    """Show the checks performed and configuration options."""
    info_text = """
[bold blue]📋 Structural Checks (JSON Schema):[/bold blue]

• [green]language[/green] and [green]dependencies[/green] are required
• every dependency needs [green]name[/green], [green]version[/green] and [green]uri[/green]
• [green]md5[/green] / [green]sha256[/green] must be hex digests
• unknown top-level keys are rejected

[bold blue]🔗 Default Version Checks:[/bold blue]

• [yellow]Unique names[/yellow] - each name has at most one 'default_versions' entry
• [yellow]Known dependency[/yellow] - each name appears under 'dependencies'
• [yellow]Known version[/yellow] - each default version is a declared dependency version

[bold blue]🌍 Environment Variables:[/bold blue]

• [cyan]BUILDPACK_MANIFEST_SCHEMA[/cyan] - Schema file to validate against
• [cyan]BUILDPACK_MANIFEST_OUTPUT_FORMAT[/cyan] - console or json
• [cyan]BUILDPACK_MANIFEST_MAX_FILE_SIZE_MB[/cyan] - Manifest size limit
• [cyan]BUILDPACK_MANIFEST_LOG_LEVEL[/cyan] - Log level for structured logs

[bold blue]📄 Configuration Files:[/bold blue]

• [green].buildpack-manifest.json[/green] / [green].yml[/green] - Project-level config
• [green]~/.config/buildpack-manifest/config.json[/green] - User-level config

[bold blue]💡 Usage Examples:[/bold blue]

  buildpack-manifest validate manifest.yml
  buildpack-manifest validate manifest.yml --output-format json
  buildpack-manifest batch */manifest.yml --quiet
  buildpack-manifest config init
"""
    console.print(
        Panel(
            info_text,
            title="[bold]Buildpack Manifest Validator Information[/bold]",
            border_style="blue",
        )
    )


@cli.group()
def config():
    """Configuration management commands."""
    pass


@config.command("init")
@click.option(
    "--path",
    type=click.Path(),
    default=".buildpack-manifest.json",
    help="Path where to create the config file",
    show_default=True,
)
@click.option("--force", is_flag=True, help="Overwrite existing config file")
def config_init(path: str, force: bool):
    """Create a sample configuration file."""
    config_path = Path(path)

    if config_path.exists() and not force:
        console.print(f"⚠️  Config file already exists at {config_path}", style="yellow")
        console.print("Use --force to overwrite", style="dim")
        return

    try:
        with open(config_path, "w", encoding="utf-8") as f:
            f.write(create_sample_config())
    except OSError as e:
        raise click.ClickException(f"Failed to create config file: {e}")

    console.print(f"✅ Created configuration file at {config_path}", style="green")
    console.print("Edit this file to customize your settings", style="dim")


@config.command("show")
def config_show():
    """Show current configuration settings."""
    current_config = get_config()

    console.print(Panel("[bold blue]🔧 Configuration[/bold blue]", border_style="blue"))

    console.print("\n[bold cyan]📋 Validation Settings:[/bold cyan]")
    console.print(
        f"  Schema: {current_config.validation.schema_path or 'bundled manifest schema'}",
        markup=False,
    )
    console.print(f"  Output Format: {current_config.validation.output_format}")
    console.print(f"  Quiet: {current_config.validation.quiet}")
    console.print(f"  Verbose: {current_config.validation.verbose}")

    console.print("\n[bold cyan]🔒 Security Settings:[/bold cyan]")
    console.print(f"  Max File Size: {current_config.security.max_file_size_mb} MB")
    console.print(
        f"  Allowed Extensions: {', '.join(current_config.security.allowed_file_extensions)}"
    )

    console.print("\n[bold cyan]📝 Logging Settings:[/bold cyan]")
    console.print(f"  Log Level: {current_config.logging.log_level}")
    console.print(f"  Structured Logs: {current_config.logging.structured}")


@config.command("validate")
@click.argument("config_file", type=click.Path(exists=True, dir_okay=False))
def config_validate(config_file: str):
    """Validate a configuration file."""
    config_data = load_config_file(Path(config_file))

    if not isinstance(config_data, dict):
        raise click.ClickException(f"Could not load config from {config_file}")

    errors = config_structure_errors(config_data) + validate_config_values(
        build_config(config_data)
    )
    if errors:
        console.print(f"❌ Configuration file {config_file} is invalid:", style="red")
        for error in errors:
            console.print(f"  • {error}", style="red", markup=False)
        sys.exit(1)

    console.print(f"✅ Configuration file {config_file} is valid", style="green")


if __name__ == "__main__":
    cli()
