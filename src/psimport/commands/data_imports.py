"""External database import commands.

Commands:
- psimport data-imports lint                       # Check an external database
- psimport data-imports start                      # Check, then start the import
- psimport data-imports get                        # Show import progress
- psimport data-imports make-primary               # Switch traffic to PlanetScale
- psimport data-imports detach-external-database   # Finish the import
"""

from typing import Annotated

import typer

from psimport.commands.common import (
    ConfigOption,
    ForceOption,
    NoColorOption,
    OrgOption,
    QuietOption,
    VerboseOption,
    handle_error,
)
from psimport.core import ExecutionContext, PSImportError, create_context
from psimport.services.orchestrator import ImportOrchestrator
from psimport.services.planetscale import DataImportsAPI
from psimport.services.source import DEFAULT_MYSQL_PORT, SSLMode, SourceConnection


app = typer.Typer(
    name="data-imports",
    help="Import an external MySQL database into PlanetScale.",
    no_args_is_help=True,
)


NameOption = Annotated[
    str,
    typer.Option("--name", "-n", help="PlanetScale database to import into."),
]
HostOption = Annotated[
    str,
    typer.Option("--host", help="Host name of the external database."),
]
PortOption = Annotated[
    int,
    typer.Option("--port", help="Port of the external database."),
]
DatabaseOption = Annotated[
    str,
    typer.Option("--database", help="Name of the external database to import."),
]
UsernameOption = Annotated[
    str,
    typer.Option("--username", help="User for connecting to the external database."),
]
PasswordOption = Annotated[
    str,
    typer.Option(
        "--password",
        help="Password for connecting to the external database.",
        envvar="PSIMPORT_SOURCE_PASSWORD",
        prompt=True,
        hide_input=True,
    ),
]
SSLModeOption = Annotated[
    str,
    typer.Option(
        "--ssl-mode",
        help=f"TLS mode: {', '.join(m.value for m in SSLMode)}.",
    ),
]


def _get_api(ctx: ExecutionContext) -> DataImportsAPI:
    """Create the API client for a command."""
    return ctx.client()


def _get_orchestrator(ctx: ExecutionContext) -> ImportOrchestrator:
    """Create the import orchestrator for a command."""
    return ImportOrchestrator(
        _get_api(ctx),
        ctx.console,
        ctx.org,
        audit=ctx.audit,
    )


def _build_source(
    database: str,
    host: str,
    port: int,
    username: str,
    password: str,
    ssl_mode: str,
) -> SourceConnection:
    return SourceConnection(
        database=database,
        host=host,
        port=port,
        username=username,
        password=password,
        ssl_mode=SSLMode.parse(ssl_mode),
    )


@app.command("lint")
def lint_cmd(
    name: NameOption,
    host: HostOption,
    database: DatabaseOption,
    username: UsernameOption,
    password: PasswordOption,
    port: PortOption = DEFAULT_MYSQL_PORT,
    ssl_mode: SSLModeOption = SSLMode.PREFERRED.value,
    org: OrgOption = None,
    config: ConfigOption = None,
    verbose: VerboseOption = 0,
    quiet: QuietOption = False,
    no_color: NoColorOption = False,
) -> None:
    """Check that an external database can be imported.

    Tests connectivity from PlanetScale to the external database and
    reports schema problems that would block the import.

    [bold]Examples:[/bold]

        psimport data-imports lint -n employees --host db.example.com \\
            --database employees --username importer
    """
    ctx = create_context(verbose=verbose, quiet=quiet, no_color=no_color, config=config, org=org)

    try:
        source = _build_source(database, host, port, username, password, ssl_mode)
        lines = _get_orchestrator(ctx).lint(name, source)
        ctx.console.results(lines)
    except PSImportError as e:
        handle_error(e)


@app.command("start")
def start_cmd(
    name: NameOption,
    host: HostOption,
    database: DatabaseOption,
    username: UsernameOption,
    password: PasswordOption,
    port: PortOption = DEFAULT_MYSQL_PORT,
    ssl_mode: SSLModeOption = SSLMode.PREFERRED.value,
    dry_run: Annotated[
        bool,
        typer.Option(
            "--dry-run/--no-dry-run",
            help="Only check compatibility. Pass --no-dry-run to start the import.",
        ),
    ] = True,
    org: OrgOption = None,
    config: ConfigOption = None,
    verbose: VerboseOption = 0,
    quiet: QuietOption = False,
    no_color: NoColorOption = False,
) -> None:
    """Start importing an external database into PlanetScale.

    The external database is always checked first. By default this is a
    dry run that stops after the check.

    [bold]Examples:[/bold]

        psimport data-imports start -n employees --host db.example.com \\
            --database employees --username importer --no-dry-run
    """
    ctx = create_context(
        dry_run=dry_run, verbose=verbose, quiet=quiet, no_color=no_color,
        config=config, org=org,
    )

    try:
        source = _build_source(database, host, port, username, password, ssl_mode)
        lines = _get_orchestrator(ctx).start(name, source, dry_run=ctx.dry_run)
        ctx.console.results(lines)
    except PSImportError as e:
        handle_error(e)


@app.command("get")
def get_cmd(
    name: NameOption,
    org: OrgOption = None,
    config: ConfigOption = None,
    verbose: VerboseOption = 0,
    quiet: QuietOption = False,
    no_color: NoColorOption = False,
) -> None:
    """Show the progress of an import.

    [bold]Examples:[/bold]

        psimport data-imports get -n employees
    """
    ctx = create_context(verbose=verbose, quiet=quiet, no_color=no_color, config=config, org=org)

    try:
        lines = _get_orchestrator(ctx).status(name)
        ctx.console.results(lines)
    except PSImportError as e:
        handle_error(e)


@app.command("make-primary")
def make_primary_cmd(
    name: NameOption,
    force: ForceOption = False,
    org: OrgOption = None,
    config: ConfigOption = None,
    verbose: VerboseOption = 0,
    quiet: QuietOption = False,
    no_color: NoColorOption = False,
) -> None:
    """Switch traffic from the external database to PlanetScale.

    Only possible while the PlanetScale database runs as a replica. This
    cannot be undone by this tool.

    [bold]Examples:[/bold]

        psimport data-imports make-primary -n employees
        psimport data-imports make-primary -n employees --force
    """
    ctx = create_context(
        force=force, verbose=verbose, quiet=quiet, no_color=no_color,
        config=config, org=org,
    )

    try:
        orchestrator = _get_orchestrator(ctx)

        if not ctx.console.confirm(
            f"Make PlanetScale database {ctx.org}/{name} the Primary?",
            skip_confirm=ctx.force,
        ):
            ctx.console.warn("Operation cancelled")
            raise typer.Exit(0)

        lines = orchestrator.make_primary(name)
        ctx.console.results(lines)
    except PSImportError as e:
        handle_error(e)


@app.command("detach-external-database")
def detach_cmd(
    name: NameOption,
    force: ForceOption = False,
    org: OrgOption = None,
    config: ConfigOption = None,
    verbose: VerboseOption = 0,
    quiet: QuietOption = False,
    no_color: NoColorOption = False,
) -> None:
    """Detach the external database and complete the import.

    Only possible once the PlanetScale database runs as primary.

    [bold]Examples:[/bold]

        psimport data-imports detach-external-database -n employees --force
    """
    ctx = create_context(
        force=force, verbose=verbose, quiet=quiet, no_color=no_color,
        config=config, org=org,
    )

    try:
        orchestrator = _get_orchestrator(ctx)

        if not ctx.console.confirm(
            f"Detach the external database from PlanetScale database {ctx.org}/{name}?",
            skip_confirm=ctx.force,
        ):
            ctx.console.warn("Operation cancelled")
            raise typer.Exit(0)

        lines = orchestrator.detach_external_database(name)
        ctx.console.results(lines)
    except PSImportError as e:
        handle_error(e)
