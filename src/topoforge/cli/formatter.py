# src/topoforge/cli/formatter.py
import difflib
from typing import Any, Dict

from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

console = Console()


class TopoFormatter:
    """
    TopoFormatter: rendering for the CLI.
    Responsible for diffs, the generation report and the capacity table.
    """

    def __init__(self, out: Console = console):
        self.console = out

    def print_header(self, subtitle: str, version: str):
        self.console.print(Panel.fit(
            f"[bold cyan]TopoForge v{version}[/bold cyan]\n"
            "══════════════════════════════════════════════",
            title=f"[bold white]{subtitle}[/bold white]",
            border_style="cyan"
        ))

    def display_diff(self, original_text: str, generated_text: str, file_name: str):
        """Renders a colorized unified diff between the original and generated manifest."""
        diff = difflib.unified_diff(
            original_text.splitlines(),
            generated_text.splitlines(),
            fromfile=f"original/{file_name}",
            tofile=f"generated/{file_name}",
            lineterm=""
        )
        diff_list = list(diff)

        if not diff_list:
            self.console.print(f"[dim]No changes needed for {file_name}.[/dim]")
            return

        syntax = Syntax("\n".join(diff_list), "diff", theme="monokai", line_numbers=True)
        self.console.print(Panel(syntax, title=f"Proposed Topology: {file_name}", border_style="green"))

    def print_generation_report(self, report: Dict[str, Any]):
        status = report["status"]
        color = {"MODIFIED": "green", "PREVIEW": "cyan", "UNCHANGED": "yellow"}.get(status, "white")

        table = Table(title="Topology Generation Report", show_lines=True, header_style="bold magenta")
        table.add_column("Field", style="cyan")
        table.add_column("Value", style="white")
        table.add_row("Manifest", report["file_path"])
        table.add_row("GPUs", str(report["device_count"]))
        table.add_row("Status", f"[{color}]{status}[/{color}]")
        table.add_row("Workers Added", ", ".join(report["workers_added"]) or "-")
        table.add_row("Dependencies", "\n".join(report["dependencies"]) or "-")
        table.add_row("Backup", report["backup_created"] or "-")
        self.console.print(table)

        if status == "UNCHANGED":
            self.console.print("[dim]Single GPU or none detected, no manifest modification needed.[/dim]")

    def print_capacity(self, report: Dict[str, Any]):
        plan = report["plan"]
        table = Table(title="Broker Capacity", header_style="bold magenta")
        table.add_column("Setting", style="cyan")
        table.add_column("Value", justify="right")
        for key, value in plan.as_settings().items():
            table.add_row(key, str(value))
        self.console.print(table)
        if report["written"]:
            self.console.print(f"[green]Updated {report['file_path']}[/green]")

    def print_error(self, error: Exception):
        self.console.print(f"[bold red]{type(error).__name__}:[/bold red] {error}")
