"""Rich console output formatting."""

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn, TimeElapsedColumn

from dirhasher.models.digest import AggregateReport, DigestOutcome


def _printable(text: str) -> str:
    """Escape markup and replace undecodable file-name bytes for display."""
    return escape(text.encode("utf-8", "surrogateescape").decode("utf-8", "replace"))


class RichOutput:
    """Rich console output formatting."""

    def __init__(self, console: Console | None = None) -> None:
        """Initialize with Rich console.

        Args:
            console: Rich Console instance. Defaults to one writing to stderr.
        """
        self.console = console or Console(stderr=True)

    def print_outcome(self, outcome: DigestOutcome, show_ok: bool = False) -> None:
        """Display a single verification result.

        Mismatches and errors are always shown; successes only with show_ok.

        Args:
            outcome: Outcome to display.
            show_ok: Also display files that verified correctly.
        """
        path = _printable(outcome.path)
        if outcome.is_error:
            self.console.print(f"[red]{path}: ERROR[/red] [dim]{_printable(outcome.message or '')}[/dim]")
        elif outcome.is_mismatch:
            self.console.print(f"[bold red]{path}: FAILED[/bold red]")
            self.console.print(
                f"[dim]    expected: {outcome.expected_digest}\n"
                f"    got:      {outcome.computed_digest}[/dim]"
            )
        elif show_ok:
            self.console.print(f"[green]{path}: OK[/green]")

    def print_calculation_error(self, outcome: DigestOutcome) -> None:
        """Display a file that could not be hashed in calculate mode.

        Args:
            outcome: Failed outcome.
        """
        if outcome.is_error:
            self.console.print(f"[red]Error:[/red] {_printable(outcome.message or outcome.path)}")

    def print_check_summary(self, report: AggregateReport) -> None:
        """Display check mode summary.

        Args:
            report: Final report.
        """
        status_color = "green" if report.success else "red"

        panel_content = f"""
[bold]Files Checked:[/bold] {report.total}
[bold]Valid:[/bold] [green]{report.succeeded}[/green]
[bold]Mismatched:[/bold] [{status_color}]{report.mismatched}[/{status_color}]
[bold]Errors:[/bold] [{status_color}]{report.errored}[/{status_color}]

[bold]Duration:[/bold] {report.duration_seconds:.1f} seconds ({report.files_per_second:.0f} files/s)
"""
        self.console.print(Panel(panel_content, title="Check Complete"))

        if report.mismatched:
            noun = "hash" if report.mismatched == 1 else "hashes"
            self.print_warning(f"{report.mismatched} computed {noun} did not match")

    def print_calculation_summary(self, report: AggregateReport, destination: str) -> None:
        """Display calculate mode summary.

        Args:
            report: Final report.
            destination: Where the manifest was written.
        """
        if report.errored:
            noun = "error" if report.errored == 1 else "errors"
            self.print_warning(f"Encountered {report.errored} {noun} during hash calculation")
            return

        noun = "file" if report.succeeded == 1 else "files"
        self.print_success(
            f"Calculated hashes for {report.succeeded} {noun} "
            f"in {report.duration_seconds:.1f}s ({_printable(destination)})"
        )

    def print_error(self, message: str, details: str | None = None) -> None:
        """Display error message.

        Args:
            message: Error message.
            details: Optional additional details.
        """
        self.console.print(f"[bold red]Error:[/bold red] {_printable(message)}")
        if details:
            self.console.print(f"[dim]{_printable(details)}[/dim]")

    def print_success(self, message: str) -> None:
        """Display success message.

        Args:
            message: Success message.
        """
        self.console.print(f"[bold green]Success:[/bold green] {message}")

    def print_warning(self, message: str) -> None:
        """Display warning message.

        Args:
            message: Warning message.
        """
        self.console.print(f"[bold yellow]Warning:[/bold yellow] {message}")

    def print_info(self, message: str) -> None:
        """Display informational message."""
        self.console.print(f"[cyan]Info:[/cyan] {message}")

    def create_progress_bar(self, enabled: bool = True) -> Progress:
        """Create a Rich progress bar.

        The bar is only drawn on an interactive terminal.

        Args:
            enabled: Set to False to never draw the bar.

        Returns:
            Progress instance.
        """
        return Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TextColumn("{task.completed}/{task.total}"),
            TimeElapsedColumn(),
            console=self.console,
            transient=True,
            disable=not (enabled and self.console.is_terminal),
        )
