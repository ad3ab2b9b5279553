"""CLI for ledger-split using Typer."""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import date, datetime
from decimal import Decimal
from typing import cast

import typer
from rich.console import Console
from rich.table import Table

from .config import load_settings
from .db import Database
from .exceptions import (
    ExternalDependencyError,
    InternalInvariantViolation,
    LedgerSplitError,
    NotFoundError,
    ValidationError,
)
from .models import (
    AssembleOptions,
    ListTransactionView,
    TransactionDraft,
    TransactionFilters,
)
from .service import LedgerService
from .ui import select_category_interactive
from .validation import EXPENSE_TYPES

app = typer.Typer(
    name="ledger-split",
    help="Track shared expenses in ledgers and settle up with few transfers",
)

console = Console()
logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False):
    """Setup logging configuration."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


@contextmanager
def open_service(verbose: bool = False) -> Iterator[LedgerService]:
    """
    Open the database, yield a service, and report errors uniformly.

    User errors print a message and exit with status 1. Internal consistency
    failures are logged with a traceback before exiting.
    """
    setup_logging(verbose)
    db = None
    try:
        settings = load_settings()
        db = Database(settings.database_path)
        yield LedgerService(settings, db)
    except (ValidationError, NotFoundError) as e:
        console.print(f"\n[bold red]Error:[/bold red] {e}")
        if verbose:
            raise
        raise typer.Exit(code=1) from e
    except InternalInvariantViolation as e:
        logger.exception("Internal consistency failure")
        console.print(
            f"\n[bold red]Internal error:[/bold red] {e}. "
            f"Please contact the maintainer."
        )
        if verbose:
            raise
        raise typer.Exit(code=1) from e
    except ExternalDependencyError as e:
        console.print(f"\n[bold red]Internal error:[/bold red] {e}")
        if verbose:
            raise
        raise typer.Exit(code=1) from e
    except LedgerSplitError as e:
        console.print(f"\n[bold red]Error:[/bold red] {e}")
        if verbose:
            raise
        raise typer.Exit(code=1) from e
    finally:
        if db is not None:
            db.close()


def format_money(amount: Decimal | float, use_color: bool = True) -> str:
    """
    Format money in accounting style with alignment.

    Negative amounts use parentheses: ($85.02)
    Positive amounts have spaces:      $85.02
    """
    abs_amount = abs(amount)
    if amount < 0:
        if use_color:
            return f"($[red]{abs_amount:,.2f}[/red])"
        return f"(${abs_amount:,.2f})"
    if use_color:
        return f" [green]${abs_amount:,.2f}[/green] "
    return f" ${abs_amount:,.2f} "


def parse_date(value: str | None) -> date | None:
    """Parse an optional YYYY-MM-DD option."""
    if value is None:
        return None
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError as e:
        raise typer.BadParameter(f"Invalid date '{value}', use YYYY-MM-DD") from e


def parse_expense_type(value: str | None) -> str | None:
    """Check an optional --type option against the known expense types."""
    if value is not None and value not in EXPENSE_TYPES:
        raise typer.BadParameter(
            f"Invalid type '{value}', use one of: {', '.join(EXPENSE_TYPES)}"
        )
    return value


def build_draft(
    service: LedgerService,
    ledger: str,
    name: str | None,
    category: str | None,
    currency: str | None,
    expense_type: str,
    on: str | None,
    members: list[str],
    weights: list[float],
    paid: list[float],
) -> TransactionDraft:
    """Assemble a draft from command line options, prompting for a category."""
    if not name and not category:
        category = select_category_interactive(
            service.list_categories(ledger), transaction_label=f"new {expense_type}"
        )

    return TransactionDraft(
        name=name,
        category=category,
        ledger=ledger,
        currency=currency or service.get_ledger(ledger).currency,
        expense_type=expense_type,
        date=parse_date(on),
        members=members,
        weights=weights,
        paid=[Decimal(str(amount)) for amount in paid],
    )


def display_transaction(view: ListTransactionView):
    """Display a single transaction with its per-member lines."""
    title = view.name or view.category or view.id
    console.print(f"\n[bold]{title}[/bold] [dim]({view.id})[/dim]")
    console.print(f"  Date: {view.date}")
    console.print(f"  Type: {view.expense_type}")
    if view.category:
        console.print(f"  Category: {view.category}")
    console.print(f"  Total: {format_money(view.amount)} {view.currency}")

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Member", style="cyan")
    table.add_column("Weight", justify="right")
    table.add_column("Paid", justify="right")
    table.add_column("Owes", justify="right")

    for member, weight, paid, owed in zip(
        view.members, view.weights, view.paid, view.owed, strict=True
    ):
        table.add_row(member, f"{weight:g}", format_money(paid), format_money(owed))

    console.print(table)


# ============================================================================
# Ledgers and members
# ============================================================================


@app.command()
def ledgers(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """List all ledgers."""
    with open_service(verbose) as service:
        all_ledgers = service.list_ledgers()
        if not all_ledgers:
            console.print("[yellow]No ledgers yet.[/yellow]")
            return

        table = Table(title="Ledgers", show_header=True, header_style="bold magenta")
        table.add_column("Name", style="cyan")
        table.add_column("Currency")
        for ledger in all_ledgers:
            table.add_row(ledger.name, ledger.currency)
        console.print(table)


@app.command("ledger-set")
def ledger_set(
    name: str = typer.Argument(..., help="Ledger name"),
    currency: str | None = typer.Option(
        None, "--currency", help="Default currency for new transactions"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Create a ledger, or change its default currency."""
    with open_service(verbose) as service:
        created = service.save_ledger(name, currency)
        action = "created" if created else "updated"
        console.print(f"[green]✓ Ledger '{name}' {action}[/green]")


@app.command("ledger-delete")
def ledger_delete(
    name: str = typer.Argument(..., help="Ledger name"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation prompt"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Delete a ledger with all of its members and transactions."""
    if not yes and not typer.confirm(
        f"Delete ledger '{name}' and everything in it?", default=False
    ):
        console.print("[yellow]Cancelled.[/yellow]")
        return

    with open_service(verbose) as service:
        service.delete_ledger(name)
        console.print(f"[green]✓ Ledger '{name}' deleted[/green]")


@app.command()
def members(
    ledger: str = typer.Argument(..., help="Ledger name"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """List the members of a ledger."""
    with open_service(verbose) as service:
        table = Table(
            title=f"Members of {ledger}", show_header=True, header_style="bold magenta"
        )
        table.add_column("Name", style="cyan")
        table.add_column("Active", justify="center")
        for member in service.list_members(ledger):
            table.add_row(member.name, "✓" if member.active else "[dim]✗[/dim]")
        console.print(table)


@app.command("member-set")
def member_set(
    ledger: str = typer.Argument(..., help="Ledger name"),
    name: str = typer.Argument(..., help="Member name"),
    inactive: bool = typer.Option(
        False, "--inactive", help="Mark the member inactive (requires zero balance)"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Add a member to a ledger, or change whether they are active."""
    with open_service(verbose) as service:
        created = service.save_member(ledger, name, active=not inactive)
        action = "added to" if created else "updated in"
        console.print(f"[green]✓ Member '{name}' {action} '{ledger}'[/green]")


@app.command()
def categories(
    ledger: str = typer.Argument(..., help="Ledger name"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """List categories available in a ledger."""
    with open_service(verbose) as service:
        for category in service.list_categories(ledger):
            console.print(f"  {category}")


# ============================================================================
# Transactions
# ============================================================================


@app.command()
def add(
    ledger: str = typer.Argument(..., help="Ledger name"),
    member: list[str] = typer.Option(
        ..., "--member", "-m", help="Member taking part (repeat for each member)"
    ),
    weight: list[float] = typer.Option(
        ..., "--weight", "-w", help="Share weight, one per --member"
    ),
    paid: list[float] = typer.Option(
        ..., "--paid", "-p", help="Amount paid in dollars, one per --member"
    ),
    name: str | None = typer.Option(None, "--name", "-n", help="Transaction name"),
    category: str | None = typer.Option(None, "--category", "-c", help="Category"),
    currency: str | None = typer.Option(
        None, "--currency", help="Currency (defaults to the ledger's)"
    ),
    expense_type: str = typer.Option(
        "expense", "--type", "-t", help="expense, income or transfer"
    ),
    on: str | None = typer.Option(None, "--date", "-d", help="Date (YYYY-MM-DD)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """
    Record a new transaction.

    Example:
        ledger-split add home -n Groceries -m alice -w 1 -p 30 -m bob -w 1 -p 0
    """
    with open_service(verbose) as service:
        draft = build_draft(
            service, ledger, name, category, currency, expense_type, on,
            member, weight, paid,
        )
        transaction_id = service.create_transaction(draft)
        console.print(f"[green]✓ Transaction {transaction_id} created[/green]")

        view = service.assemble_transactions(TransactionFilters(id=transaction_id))
        if view:
            display_transaction(cast(ListTransactionView, view[0]))


@app.command()
def edit(
    transaction_id: str = typer.Argument(..., help="Transaction id"),
    ledger: str = typer.Option(..., "--ledger", "-l", help="Ledger name"),
    member: list[str] = typer.Option(
        ..., "--member", "-m", help="Member taking part (repeat for each member)"
    ),
    weight: list[float] = typer.Option(
        ..., "--weight", "-w", help="Share weight, one per --member"
    ),
    paid: list[float] = typer.Option(
        ..., "--paid", "-p", help="Amount paid in dollars, one per --member"
    ),
    name: str | None = typer.Option(None, "--name", "-n", help="Transaction name"),
    category: str | None = typer.Option(None, "--category", "-c", help="Category"),
    currency: str | None = typer.Option(
        None, "--currency", help="Currency (default: unchanged)"
    ),
    expense_type: str | None = typer.Option(
        None, "--type", "-t", help="expense, income or transfer (default: unchanged)"
    ),
    on: str | None = typer.Option(None, "--date", "-d", help="Date (YYYY-MM-DD)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Replace an existing transaction and its member lines."""
    with open_service(verbose) as service:
        expense_type = parse_expense_type(expense_type)
        if expense_type is None or currency is None:
            current = service.get_transaction(transaction_id)
            expense_type = expense_type or current.expense_type
            currency = currency or current.currency

        draft = build_draft(
            service, ledger, name, category, currency, expense_type, on,
            member, weight, paid,
        )
        service.update_transaction(transaction_id, draft)
        console.print(f"[green]✓ Transaction {transaction_id} updated[/green]")


@app.command()
def delete(
    transaction_id: str = typer.Argument(..., help="Transaction id"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Delete a transaction."""
    with open_service(verbose) as service:
        service.delete_transaction(transaction_id)
        console.print(f"[green]✓ Transaction {transaction_id} deleted[/green]")


@app.command()
def show(
    transaction_id: str = typer.Argument(..., help="Transaction id"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Show one transaction with each member's paid and owed amounts."""
    with open_service(verbose) as service:
        views = service.assemble_transactions(TransactionFilters(id=transaction_id))
        if not views:
            raise NotFoundError(
                "transaction", f"Transaction '{transaction_id}' not found"
            )
        display_transaction(cast(ListTransactionView, views[0]))


@app.command()
def transactions(
    ledger: str | None = typer.Argument(None, help="Ledger name"),
    name: str | None = typer.Option(None, "--name", "-n", help="Filter by name"),
    category: str | None = typer.Option(
        None, "--category", "-c", help="Filter by category"
    ),
    currency: str | None = typer.Option(None, "--currency", help="Filter by currency"),
    expense_type: str | None = typer.Option(
        None, "--type", "-t", help="Filter by expense type"
    ),
    after: str | None = typer.Option(None, "--after", help="On or after YYYY-MM-DD"),
    before: str | None = typer.Option(
        None, "--before", help="On or before YYYY-MM-DD"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """List transactions, newest first."""
    with open_service(verbose) as service:
        filters = TransactionFilters(
            ledger=ledger,
            name=name,
            category=category,
            currency=currency,
            expense_type=parse_expense_type(expense_type),
            date_after=parse_date(after),
            date_before=parse_date(before),
        )
        views = service.assemble_transactions(filters, AssembleOptions(shape="list"))

        if not views:
            console.print("[yellow]No transactions found.[/yellow]")
            return

        table = Table(
            title="Transactions", show_header=True, header_style="bold magenta"
        )
        table.add_column("ID", style="dim", width=10)
        table.add_column("Date")
        table.add_column("Description", style="cyan", width=40)
        table.add_column("Type")
        table.add_column("Amount", justify="right", width=14)
        table.add_column("Members", style="yellow")

        for view in views:
            desc = view.name or view.category or ""
            table.add_row(
                view.id,
                str(view.date),
                desc[:40] + "..." if len(desc) > 40 else desc,
                view.expense_type,
                f"{format_money(view.amount)} {view.currency}",
                ", ".join(view.members),
            )

        console.print(table)


# ============================================================================
# Balances and settlement
# ============================================================================


@app.command()
def balance(
    ledger: str = typer.Argument(..., help="Ledger name"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Show what each active member has paid, owes, and their balance."""
    with open_service(verbose) as service:
        currency = service.get_ledger(ledger).currency
        balances = service.compute_balances(ledger)

        table = Table(
            title=f"Balances ({currency})",
            show_header=True,
            header_style="bold magenta",
        )
        table.add_column("Member", style="cyan")
        table.add_column("Paid", justify="right")
        table.add_column("Owes", justify="right")
        table.add_column("Balance", justify="right")

        for entry in balances:
            table.add_row(
                entry.name,
                format_money(entry.paid),
                format_money(entry.owed),
                format_money(entry.balance),
            )

        console.print(table)


@app.command()
def settle(
    ledger: str = typer.Argument(..., help="Ledger name"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Show the transfers that settle every balance in a ledger."""
    with open_service(verbose) as service:
        currency = service.get_ledger(ledger).currency
        transfers = service.compute_settlement(ledger)

        if not transfers:
            console.print("[green]✓ Everyone is settled up[/green]")
            return

        table = Table(
            title=f"Settlement ({currency})",
            show_header=True,
            header_style="bold magenta",
        )
        table.add_column("Payer", style="red")
        table.add_column("Payee", style="green")
        table.add_column("Amount", justify="right")

        for transfer in transfers:
            table.add_row(
                transfer.payer, transfer.payee, format_money(transfer.amount)
            )

        console.print(table)


if __name__ == "__main__":
    app()
