"""Options and error handling shared by all commands."""

from pathlib import Path
from typing import Annotated, NoReturn, Optional

import typer

from psimport.core.config import DEFAULT_CONFIG_PATH
from psimport.core.exceptions import PSImportError
from psimport.core.output import console


# Type aliases for common options
OrgOption = Annotated[
    Optional[str],
    typer.Option(
        "--org",
        "-o",
        help="PlanetScale organization. Default: PLANETSCALE_ORG or the config file.",
    ),
]

ForceOption = Annotated[
    bool,
    typer.Option(
        "--force",
        "-f",
        help="Skip the confirmation prompt for this one-way operation.",
        is_flag=True,
    ),
]

VerboseOption = Annotated[
    int,
    typer.Option(
        "--verbose",
        "-v",
        count=True,
        help="Increase output verbosity. Can be repeated (-v, -vv).",
    ),
]

QuietOption = Annotated[
    bool,
    typer.Option(
        "--quiet",
        "-q",
        help="Suppress non-essential output. Only show errors.",
        is_flag=True,
    ),
]

NoColorOption = Annotated[
    bool,
    typer.Option(
        "--no-color",
        help="Disable colored output.",
        is_flag=True,
    ),
]

ConfigOption = Annotated[
    Optional[Path],
    typer.Option(
        "--config",
        "-c",
        help=f"Path to configuration file. Default: {DEFAULT_CONFIG_PATH}",
        exists=False,
        file_okay=True,
        dir_okay=False,
    ),
]


def handle_error(error: PSImportError) -> NoReturn:
    """Handle a PSImportError by printing formatted error and exiting."""
    console.error(error.message.rstrip("\n"))

    for detail in error.details:
        console.detail(detail)

    if error.hint:
        console.hint(error.hint)

    raise typer.Exit(error.exit_code)
