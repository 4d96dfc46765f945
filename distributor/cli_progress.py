"""Console rendering and progress helpers for distributor CLI."""
from __future__ import annotations

from typing import Any, Dict, Optional, Sequence

from rich.console import Console
from rich.panel import Panel
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
)
from rich.table import Table

from .models import DistributionResult, ValidatedRow, format_usd
from .orchestrator.models import BatchState, RunMode


RECENT_RESULTS_LIMIT = 5

console = Console()


def _short_address(address: str) -> str:
    if len(address) <= 14:
        return address
    return f"{address[:8]}...{address[-4:]}"


def render_configuration_summary(config: Dict[str, Any]) -> None:
    """Render startup configuration summary."""
    table = Table.grid(padding=(0, 2))
    table.add_column(style="bold cyan", justify="right")
    table.add_column(style="white")

    for key, value in config.items():
        rendered = "-" if value is None else str(value)
        table.add_row(key, rendered)

    panel = Panel(
        table,
        title="[bold green]token-distribute[/bold green]",
        subtitle="[dim]distributor CLI[/dim]",
        border_style="blue",
    )
    console.print(panel)


def render_validation_table(rows: Sequence[ValidatedRow]) -> None:
    """Show every loaded row, invalid ones included, with its USD value."""
    table = Table(title="Distribution rows", show_lines=False)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Address")
    table.add_column("Tokens", justify="right")
    table.add_column("USD", justify="right")
    table.add_column("Status")
    table.add_column("Error", style="red")

    valid_count = 0
    valid_tokens = 0.0
    for index, row in enumerate(rows, start=1):
        if row.is_valid:
            valid_count += 1
            valid_tokens += row.token_amount
            status = "[green]valid[/green]"
            usd = f"${format_usd(row.token_amount)}"
        else:
            status = "[red]invalid[/red]"
            usd = "-"
        table.add_row(str(index), row.recipient_address, str(row.token_amount), usd, status, row.error or "")

    console.print(table)
    console.print(
        f"[bold]{valid_count}[/bold] valid, [bold]{len(rows) - valid_count}[/bold] invalid, "
        f"{valid_tokens:g} tokens (${format_usd(valid_tokens)}) to distribute"
    )


def render_result(result: DistributionResult) -> None:
    """Render the outcome of a single distribution."""
    table = Table.grid(padding=(0, 2))
    table.add_column(style="bold cyan", justify="right")
    table.add_column(style="white")
    table.add_row("Recipient", result.address)
    table.add_row("Tokens", f"{result.tokens:g} (${format_usd(result.tokens)})")
    if result.transaction_hash:
        table.add_row("Transaction", result.transaction_hash)
    if result.distribution_id:
        table.add_row("Distribution ID", result.distribution_id)
    if result.message:
        table.add_row("Message", result.message)
    if result.error:
        table.add_row("Error", f"[red]{result.error}[/red]")
    if result.details:
        table.add_row("Details", result.details)

    if result.success:
        console.print(Panel(table, title="[bold green]Distribution successful[/bold green]", border_style="green"))
    else:
        console.print(Panel(table, title="[bold red]Distribution failed[/bold red]", border_style="red"))


def render_recent_results(results: Sequence[DistributionResult], limit: int = RECENT_RESULTS_LIMIT) -> None:
    """Last results, newest first."""
    if not results:
        return
    table = Table(title=f"Recent results (last {min(limit, len(results))})")
    table.add_column("Address")
    table.add_column("Tokens", justify="right")
    table.add_column("Outcome")
    table.add_column("Transaction / Error")

    for result in list(results)[-limit:][::-1]:
        if result.success:
            outcome = "[green]sent[/green]"
            detail = result.transaction_hash or "-"
        else:
            outcome = "[red]failed[/red]"
            detail = result.error or "-"
            if result.details:
                detail = f"{detail}: {result.details}"
        table.add_row(_short_address(result.address), f"{result.tokens:g}", outcome, detail)
    console.print(table)


class BatchProgressDisplay:
    """Rich progress renderer for batch runs. Subscribe with ``process.subscribe(display)``."""

    def __init__(self):
        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("[bold cyan]{task.description}", justify="left"),
            BarColumn(bar_width=36),
            MofNCompleteColumn(),
            TextColumn("[green]{task.fields[sent]} sent[/green] [red]{task.fields[failed]} failed[/red]"),
            TimeElapsedColumn(),
            console=console,
            expand=False,
        )
        self._task_id: Optional[TaskID] = None

    def on_start(self, state: BatchState) -> None:
        self._progress.start()
        self._task_id = self._progress.add_task("Distributing", total=state.total, sent=0, failed=0)

    def on_item_start(self, row: ValidatedRow, state: BatchState) -> None:
        self._update(state, description=_short_address(row.recipient_address))

    def on_item(self, result: DistributionResult, state: BatchState) -> None:
        if result.success:
            self._progress.console.print(
                f"[green]sent[/green] {result.address} ({result.tokens:g} tokens) {result.transaction_hash or ''}"
            )
        else:
            detail = f" - {result.details}" if result.details else ""
            self._progress.console.print(
                f"[red]failed[/red] {result.address} ({result.tokens:g} tokens): {result.error}{detail}"
            )
        self._update(state)

    def on_pause(self, state: BatchState) -> None:
        self._update(state, description="Paused")
        self._progress.console.print("[yellow]Paused[/yellow] (send SIGUSR1 to resume, Ctrl+C to stop)")

    def on_resume(self, state: BatchState) -> None:
        self._update(state, description="Distributing")
        self._progress.console.print("[cyan]Resumed[/cyan]")

    def on_finish(self, state: BatchState) -> None:
        self._update(state, description=state.current)
        self._progress.stop()
        render_recent_results(state.results)
        if state.mode is RunMode.STOPPED:
            title = "[bold yellow]Distribution stopped[/bold yellow]"
        elif state.mode is RunMode.FAILED:
            title = "[bold red]Distribution aborted[/bold red]"
        elif state.failed:
            title = "[bold red]Distribution finished with failures[/bold red]"
        else:
            title = "[bold green]Distribution completed[/bold green]"
        summary = Table.grid(padding=(0, 2))
        summary.add_column(style="bold cyan", justify="right")
        summary.add_column()
        summary.add_row("Total", str(state.total))
        summary.add_row("Sent", str(state.completed))
        summary.add_row("Failed", str(state.failed))
        summary.add_row("Remaining", str(state.remaining))
        console.print(Panel(summary, title=title, border_style="blue"))

    def _update(self, state: BatchState, description: Optional[str] = None) -> None:
        if self._task_id is None:
            return
        fields: Dict[str, Any] = {"sent": state.completed, "failed": state.failed}
        if description is not None:
            fields["description"] = description
        self._progress.update(self._task_id, completed=state.processed, **fields)


def render_status(message: str):
    """Spinner shown while a single transfer is in flight."""
    return console.status(message)
