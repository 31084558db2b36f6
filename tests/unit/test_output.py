"""Unit tests for console output gating."""


class TestQuietConsole:
    """Tests for what quiet mode hides."""

    def test_results_shown_when_quiet(self, captured_console):
        """Result lines are printed even at verbosity 0."""
        captured_console.configure(verbosity=0)

        captured_console.results(["> 1. Started Data Copy", "2. Copied Data"])

        assert captured_console.output.splitlines() == [
            "> 1. Started Data Copy",
            "2. Copied Data",
        ]

    def test_notices_hidden_when_quiet(self, captured_console):
        """Progress lines are suppressed at verbosity 0."""
        captured_console.configure(verbosity=0)

        captured_console.line("Getting current import status...")

        assert captured_console.output == ""

    def test_results_printed_verbatim(self, captured_console):
        """Rich markup in result text should not be interpreted."""
        captured_console.results(["[bold]employees[/bold]"])

        assert captured_console.output == "[bold]employees[/bold]\n"
