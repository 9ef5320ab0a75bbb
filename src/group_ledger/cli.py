"""CLI for group-ledger using Typer."""

import logging
import sys
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from .config import Settings, load_settings
from .models import LedgerResult, MonthComparison, Participant
from .scope import AllTime, CurrentMonth, DateRange, LastMonths, ScopeWindow
from .service import LedgerService
from .snapshot import Snapshot, load_snapshot

app = typer.Typer(
    name="group-ledger",
    help="Work out who owes whom in a shared expense group",
)

console = Console()

WINDOW_CHOICES = ("current-month", "last-months", "range", "all")
MASK = "•••••"


def setup_logging(verbose: bool = False):
    """Setup logging configuration."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


def build_window(
    window: str | None,
    months: int,
    start: datetime | None,
    end: datetime | None,
    default: str = "current_month",
) -> ScopeWindow:
    """Build a scope window from CLI options."""
    window = window or default.replace("_", "-")

    if window == "current-month":
        return CurrentMonth()
    if window == "all":
        return AllTime()
    if window == "last-months":
        if months < 1:
            raise typer.BadParameter("--months must be at least 1")
        return LastMonths(months=months)
    if window == "range":
        if start is None or end is None:
            raise typer.BadParameter("--window range needs --start and --end")
        if start > end:
            raise typer.BadParameter("--start must not be after --end")
        return DateRange(start=start.date(), end=end.date())

    raise typer.BadParameter(
        f"Unknown window {window!r}, expected one of: {', '.join(WINDOW_CHOICES)}"
    )


def resolve_snapshot(
    path: Path | None, settings: Settings, today: date | None
) -> Snapshot:
    """Load the snapshot given on the command line or configured in settings."""
    path = path or settings.snapshot_path
    if path is None:
        raise typer.BadParameter(
            "No snapshot given. Pass a path or set GROUP_LEDGER_SNAPSHOT_PATH."
        )
    return load_snapshot(path, settings.placeholder_names, reference_date=today)


def format_money(
    amount: Decimal,
    currency_symbol: str = "R$",
    use_color: bool = True,
    hidden: bool = False,
) -> str:
    """
    Format money in accounting style with alignment.

    Negative amounts use parentheses: (R$85.02)
    Positive amounts have spaces:      R$85.02
    The spaces ensure decimal points align in tables.
    """
    if hidden:
        return f" {currency_symbol}{MASK} "

    abs_amount = abs(amount)
    if amount < 0:
        if use_color:
            formatted = f"({currency_symbol}[red]{abs_amount:,.2f}[/red])"
        else:
            formatted = f"({currency_symbol}{abs_amount:,.2f})"
    else:
        if use_color:
            formatted = f" [green]{currency_symbol}{abs_amount:,.2f}[/green] "
        else:
            formatted = f" {currency_symbol}{abs_amount:,.2f} "
    return formatted


def display_result(
    result: LedgerResult,
    participants: list[Participant],
    settings: Settings,
    hidden: bool = False,
):
    """Display balances, transfers and diagnostics in table format."""
    names = {p.id: p.display_name for p in participants}

    def money(amount: Decimal) -> str:
        return format_money(amount, settings.currency_symbol, hidden=hidden)

    if result.start and result.end:
        period = f"{result.start} to {result.end}"
    else:
        period = "all time"
    console.print(f"\n[bold]Ledger ({period}):[/bold]\n")

    table = Table(title="Balances", show_header=True, header_style="bold magenta")
    table.add_column("Participant", style="cyan", width=20)
    table.add_column("Owes", justify="right", width=16)
    table.add_column("Position", justify="right", width=16)

    for participant in participants:
        table.add_row(
            participant.display_name,
            money(result.balances.get(participant.id, Decimal("0"))),
            money(result.positions.get(participant.id, Decimal("0"))),
        )

    console.print(table)
    console.print()

    if result.is_settled:
        console.print("[bold green]✓ All settled, nobody owes anything[/bold green]")
    else:
        transfers = Table(
            title="Suggested Transfers", show_header=True, header_style="bold magenta"
        )
        transfers.add_column("From", style="cyan", width=20)
        transfers.add_column("To", style="cyan", width=20)
        transfers.add_column("Amount", justify="right", width=16)

        for transfer in result.transfers:
            transfers.add_row(
                names.get(transfer.from_id, transfer.from_id),
                names.get(transfer.to_id, transfer.to_id),
                money(transfer.amount),
            )

        console.print(transfers)

    if result.diagnostics:
        console.print()
        console.print(f"[yellow]⚠️  {len(result.diagnostics)} data warnings:[/yellow]")
        for diagnostic in result.diagnostics:
            record = diagnostic.transaction_id or "?"
            console.print(f"  [dim]{record}[/dim] {diagnostic.message}")


def display_comparison(
    comparison: MonthComparison, settings: Settings, hidden: bool = False
):
    """Display a month-over-month spending comparison."""
    arrows = {"up": "[red]↑[/red]", "down": "[green]↓[/green]", "neutral": "→"}
    symbol = settings.currency_symbol

    console.print("\n[bold]Monthly Spending:[/bold]")
    console.print(
        f"  Previous month: "
        f"{format_money(comparison.previous_total, symbol, hidden=hidden)}"
    )
    console.print(
        f"  Current month:  "
        f"{format_money(comparison.current_total, symbol, hidden=hidden)}"
    )
    console.print(f"  Trend: {arrows[comparison.trend]} {comparison.percent_change}%\n")


@app.command()
def balance(
    snapshot_path: Path | None = typer.Argument(
        None, help="Snapshot JSON file (defaults to GROUP_LEDGER_SNAPSHOT_PATH)"
    ),
    window: str | None = typer.Option(
        None, "--window", "-w", help=f"Scope: {', '.join(WINDOW_CHOICES)}"
    ),
    months: int = typer.Option(3, "--months", "-m", help="Months for last-months"),
    start: datetime | None = typer.Option(
        None, "--start", formats=["%Y-%m-%d"], help="Range start (inclusive)"
    ),
    end: datetime | None = typer.Option(
        None, "--end", formats=["%Y-%m-%d"], help="Range end (inclusive)"
    ),
    today: datetime | None = typer.Option(
        None, "--today", formats=["%Y-%m-%d"], help="Reference date for the window"
    ),
    hide_values: bool = typer.Option(
        False, "--hide-values", help="Mask amounts in the output"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """
    Show balances and the transfers that would settle them.

    Loads a snapshot of the group's records, narrows it to the requested
    window and prints who owes what and who should pay whom.
    """
    setup_logging(verbose)

    try:
        settings = load_settings()
        reference = today.date() if today else None
        scope = build_window(window, months, start, end, settings.default_window)
        snapshot = resolve_snapshot(snapshot_path, settings, reference)

        service = LedgerService()
        result = service.evaluate(
            snapshot.transactions, snapshot.participants, scope, today=reference
        )

        display_result(
            result,
            snapshot.participants,
            settings,
            hidden=hide_values or settings.hide_values,
        )

    except typer.BadParameter:
        raise
    except Exception as e:
        console.print(f"\n[bold red]Error:[/bold red] {e}")
        if verbose:
            raise
        sys.exit(1)


@app.command()
def compare(
    snapshot_path: Path | None = typer.Argument(
        None, help="Snapshot JSON file (defaults to GROUP_LEDGER_SNAPSHOT_PATH)"
    ),
    today: datetime | None = typer.Option(
        None, "--today", formats=["%Y-%m-%d"], help="Reference date"
    ),
    hide_values: bool = typer.Option(
        False, "--hide-values", help="Mask amounts in the output"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Compare this month's spending with last month's."""
    setup_logging(verbose)

    try:
        settings = load_settings()
        reference = today.date() if today else None
        snapshot = resolve_snapshot(snapshot_path, settings, reference)

        comparison = LedgerService().compare_months(
            snapshot.transactions, today=reference
        )
        display_comparison(
            comparison, settings, hidden=hide_values or settings.hide_values
        )

    except typer.BadParameter:
        raise
    except Exception as e:
        console.print(f"\n[bold red]Error:[/bold red] {e}")
        if verbose:
            raise
        sys.exit(1)


if __name__ == "__main__":
    app()
