"""Main CLI entry point using Typer.

This module defines the root CLI application and global options.
Command groups are registered from submodules.
"""

from typing import Annotated

import typer
from rich.console import Console

from psimport import __version__
from psimport.commands.common import (
    ConfigOption,
    ForceOption,
    NoColorOption,
    VerboseOption,
    handle_error,
)
from psimport.commands.data_imports import app as data_imports_app
from psimport.core.config import AppConfig, ClientConfig, get_example_config, init_config
from psimport.core.context import create_context
from psimport.core.exceptions import PSImportError


# Create the main Typer app
app = typer.Typer(
    name="psimport",
    help="Import external MySQL databases into PlanetScale.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    pretty_exceptions_enable=True,
    pretty_exceptions_show_locals=False,
)

config_app = typer.Typer(
    name="config",
    help="Configuration management.",
    no_args_is_help=True,
)

# Register command groups
app.add_typer(data_imports_app, name="data-imports")
app.add_typer(config_app, name="config")


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console = Console()
        console.print(f"psimport version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = False,
) -> None:
    """Import external MySQL databases into PlanetScale.

    [bold]Workflow:[/bold]
    - lint: check connectivity and schema compatibility
    - start: begin copying data (dry run by default)
    - get: follow progress through the stages
    - make-primary: switch traffic to PlanetScale
    - detach-external-database: finish the import

    [bold]Examples:[/bold]
        psimport data-imports lint -n employees --host db.example.com --database employees --username importer
        psimport data-imports get -n employees
        psimport config show
    """


# ============================================================================
# Config commands
# ============================================================================

@config_app.command("show")
def config_show(
    config: ConfigOption = None,
    verbose: VerboseOption = 0,
    no_color: NoColorOption = False,
) -> None:
    """Show current configuration.

    Displays the loaded configuration file. The service token is not shown.
    """
    ctx = create_context(verbose=verbose, no_color=no_color, config=config)

    try:
        app_config = ctx.config

        ctx.console.print()
        ctx.console.print(f"[bold]Configuration file:[/bold] {ctx.config_path}")
        ctx.console.print(f"[bold]File exists:[/bold] {ctx.config_path.exists()}")
        ctx.console.print()

        ctx.console.yaml(app_config.config.to_yaml(), title="Configuration")

        ctx.console.summary("Environment", {
            "PLANETSCALE_ORG": app_config.secrets.organization or "Not set",
            "PLANETSCALE_SERVICE_TOKEN_ID": "Set" if app_config.secrets.service_token_id else "Not set",
            "PLANETSCALE_SERVICE_TOKEN": "Set" if app_config.secrets.service_token else "Not set",
        })

    except PSImportError as e:
        handle_error(e)


@config_app.command("init")
def config_init(
    config: ConfigOption = None,
    force: ForceOption = False,
    no_color: NoColorOption = False,
) -> None:
    """Initialize a new configuration file.

    Creates a configuration file with defaults and comments.
    """
    ctx = create_context(force=force, no_color=no_color, config=config)

    try:
        init_config(ctx.config_path, force=force)
        ctx.console.success(f"Configuration file created: {ctx.config_path}")
        ctx.console.info("Edit the file to set your organization, then run commands.")
        ctx.console.hint(
            "Set PLANETSCALE_SERVICE_TOKEN_ID and PLANETSCALE_SERVICE_TOKEN in the environment"
        )

    except PSImportError as e:
        handle_error(e)


@config_app.command("validate")
def config_validate(
    config: ConfigOption = None,
    verbose: VerboseOption = 0,
    no_color: NoColorOption = False,
) -> None:
    """Validate configuration file.

    Checks that the configuration file exists, is valid YAML,
    and all values pass validation.
    """
    ctx = create_context(verbose=verbose, no_color=no_color, config=config)

    try:
        app_config = AppConfig(
            config_path=ctx.config_path,
            config=ClientConfig.load(ctx.config_path),
        )

        ctx.console.success(f"Configuration is valid: {ctx.config_path}")

        if ctx.is_verbose:
            ctx.console.yaml(app_config.config.to_yaml())

        warnings = []

        if not app_config.organization:
            warnings.append("No organization set (organization or PLANETSCALE_ORG)")

        if not app_config.has_service_token():
            warnings.append(
                "Service token not set (PLANETSCALE_SERVICE_TOKEN_ID, PLANETSCALE_SERVICE_TOKEN)"
            )

        for warning in warnings:
            ctx.console.warn(warning)

    except PSImportError as e:
        handle_error(e)


@config_app.command("example")
def config_example(no_color: NoColorOption = False) -> None:
    """Print example configuration file."""
    ctx = create_context(no_color=no_color)
    ctx.console.print(get_example_config(), markup=False)


if __name__ == "__main__":
    app()
