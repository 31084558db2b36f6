"""Output utilities using Rich for console output.

Provides:
- Colored, formatted console output
- Verbosity level control
- An injectable output stream so command output can be captured
- Confirmation prompts for one-way operations
"""

from enum import IntEnum
from typing import IO, Any, Optional

from rich.console import Console as RichConsole
from rich.markup import escape
from rich.panel import Panel
from rich.syntax import Syntax


class Verbosity(IntEnum):
    """Output verbosity levels."""
    QUIET = 0    # Errors only
    NORMAL = 1   # Standard output
    VERBOSE = 2  # Additional details
    DEBUG = 3    # Everything


class Console:
    """Centralized console output with Rich integration.

    Plain text lines (``line``) are written without markup parsing or
    wrapping, so server-supplied text reaches the user unchanged.
    """

    def __init__(
        self,
        file: Optional[IO[str]] = None,
        err_file: Optional[IO[str]] = None,
    ) -> None:
        self._file = file
        self._err_file = err_file
        self.verbosity = Verbosity.NORMAL
        self.no_color = False
        self._console = self._build(file)
        self._err_console = self._build(err_file, stderr=True)

    def _build(self, file: Optional[IO[str]], stderr: bool = False) -> RichConsole:
        return RichConsole(
            file=file,
            stderr=stderr,
            highlight=False,
            emoji=False,
            soft_wrap=True,
            no_color=self.no_color,
        )

    def configure(
        self,
        verbosity: int = 1,
        no_color: bool = False,
    ) -> None:
        """Configure console output settings."""
        self.verbosity = Verbosity(max(Verbosity.QUIET, min(verbosity, Verbosity.DEBUG)))
        if no_color != self.no_color:
            self.no_color = no_color
            self._console = self._build(self._file)
            self._err_console = self._build(self._err_file, stderr=True)

    # Basic output methods
    def line(self, message: str = "") -> None:
        """Print a plain text line, exactly as given."""
        if self.verbosity >= Verbosity.NORMAL:
            self._console.print(message, markup=False)

    def results(self, messages: list[str]) -> None:
        """Print command result lines. Shown even in quiet mode."""
        for message in messages:
            self._console.print(message, markup=False)

    def info(self, message: str) -> None:
        """Print info message (green)."""
        if self.verbosity >= Verbosity.NORMAL:
            self._console.print(f"[green][INFO][/green] {escape(message)}")

    def success(self, message: str) -> None:
        """Print success message (green checkmark)."""
        if self.verbosity >= Verbosity.NORMAL:
            self._console.print(f"[green][OK][/green] {escape(message)}")

    def warn(self, message: str) -> None:
        """Print warning message (yellow) to stderr."""
        self._err_console.print(f"[yellow][WARN][/yellow] {escape(message)}")

    def error(self, message: str) -> None:
        """Print error message (red) to stderr."""
        self._err_console.print(f"[red][ERROR][/red] {escape(message)}")

    def debug(self, message: str) -> None:
        """Print debug message (cyan) - only in debug mode."""
        if self.verbosity >= Verbosity.DEBUG:
            self._err_console.print(f"[cyan][DEBUG][/cyan] {escape(message)}")

    def verbose(self, message: str) -> None:
        """Print verbose message (dim) - only in verbose mode."""
        if self.verbosity >= Verbosity.VERBOSE:
            self._console.print(f"[dim]{escape(message)}[/dim]")

    def hint(self, message: str) -> None:
        """Print a helpful hint (cyan) to stderr."""
        self._err_console.print(f"[cyan]Hint:[/cyan] {escape(message)}")

    def detail(self, message: str) -> None:
        """Print an indented error detail (dim) to stderr."""
        self._err_console.print(f"  [dim]{escape(message)}[/dim]")

    # Structured output
    def print(self, message: Any = "", **kwargs: Any) -> None:
        """Print raw message or Rich renderable with formatting."""
        self._console.print(message, **kwargs)

    def yaml(self, yaml_text: str, title: str = "Configuration") -> None:
        """Print formatted YAML."""
        syntax = Syntax(yaml_text, "yaml", theme="monokai", line_numbers=False)
        self._console.print(Panel(syntax, title=title, border_style="cyan"))

    def summary(self, title: str, items: dict[str, Any]) -> None:
        """Print a summary panel with key-value pairs."""
        content_lines = []
        for key, value in items.items():
            if isinstance(value, bool):
                value_str = "[green]Yes[/green]" if value else "[red]No[/red]"
            else:
                value_str = escape(str(value))
            content_lines.append(f"[bold]{escape(key)}:[/bold] {value_str}")

        content = "\n".join(content_lines)
        self._console.print(Panel(content, title=title, border_style="blue"))

    # Confirmation prompts
    def confirm(
        self,
        message: str,
        default: bool = False,
        skip_confirm: bool = False,
    ) -> bool:
        """Ask for confirmation.

        Args:
            message: Question to ask
            default: Default answer if user just presses Enter
            skip_confirm: If True, return True without prompting

        Returns:
            True if confirmed, False otherwise
        """
        if skip_confirm:
            return True

        suffix = "[Y/n]" if default else "[y/N]"
        try:
            response = self._console.input(
                f"{escape(message)} {escape(suffix)}: "
            ).strip().lower()
        except (EOFError, KeyboardInterrupt):
            return False

        if not response:
            return default
        return response in ("y", "yes")


# Global console instance
console = Console()
