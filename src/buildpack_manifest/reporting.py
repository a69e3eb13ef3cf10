"""
Reporting and output formatting for manifest validation results.

Provides color-coded console output using Rich library and a JSON form
for CI tooling.
"""

import json
from typing import Optional

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .error_handling import ErrorCategory
from .validator import ValidationReport


class ValidationReporter:
    """Formats and displays manifest validation reports."""

    def __init__(
        self, console: Optional[Console] = None, error_console: Optional[Console] = None
    ):
        self.console = console or Console()
        self.error_console = error_console or Console(stderr=True)

    def print_report(self, report: ValidationReport, verbose: bool = False) -> None:
        """
        Print a validation report in a user-friendly format.

        Schema problems go to the regular console as a table. The default
        versions diagnostic is written to the error console as plain text so
        it can be read in build logs.

        Args:
            report: The report to display
            verbose: Also print the header panel for valid manifests
        """
        if report.valid:
            if verbose:
                self._print_header(report)
            self.console.print(
                f"✅ {report.manifest_path} is a valid buildpack manifest",
                style="green",
                soft_wrap=True,
            )
            return

        self._print_header(report)

        load_issues = report.issues_for(ErrorCategory.LOAD)
        if load_issues:
            for issue in load_issues:
                self.console.print(
                    f"❌ {issue.message}", style="red", markup=False, soft_wrap=True
                )

        parser_issues = report.issues_for(ErrorCategory.PARSING)
        if parser_issues:
            self._print_parser_errors(report)

        if report.consistency_report:
            self.print_consistency_report(report)

        self._print_footer(report)

    def print_consistency_report(self, report: ValidationReport) -> None:
        """Write the default versions diagnostic block to the error console."""
        self.error_console.print(
            report.consistency_report, markup=False, highlight=False, soft_wrap=True
        )

    def _print_header(self, report: ValidationReport) -> None:
        self.console.print(
            Panel(
                f"📄 Manifest: {report.manifest_path}",
                title="[bold blue]Buildpack Manifest Validator[/bold blue]",
                border_style="blue",
            )
        )

    def _print_parser_errors(self, report: ValidationReport) -> None:
        table = Table(title="Schema Errors", box=box.ROUNDED, title_style="bold cyan")
        table.add_column("Path", style="bold", overflow="fold")
        table.add_column("Problem", overflow="fold")

        for issue in report.issues_for(ErrorCategory.PARSING):
            table.add_row(Text(issue.path or "-"), Text(issue.message))

        self.console.print(table)

    def _print_footer(self, report: ValidationReport) -> None:
        counts = report.error_counts()
        summary = ", ".join(f"{count} {category}" for category, count in counts.items())
        self.console.print(
            f"❌ {report.manifest_path} is malformed ({summary})",
            style="bold red",
            soft_wrap=True,
        )


def report_to_json(report: ValidationReport) -> str:
    """Serialize a report for machine consumption."""
    return json.dumps(report.to_dict(), indent=2, ensure_ascii=False)
