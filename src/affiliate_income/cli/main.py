"""Main CLI entry point for the affiliates command."""

import json
import sys
import click
from datetime import timedelta
from pathlib import Path
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich.markup import escape
from typing import Optional

from .. import __version__
from ..commissions.calculator import CommissionCalculator
from ..core.config import ProgramConfig, ProgramConfigManager
from ..core.exceptions import InvalidReferralCodeError, LedgerValidationError
from ..core.money import format_cents
from ..ledger.models import AffiliateStatus, LedgerSnapshot
from ..ledger.readers import read_snapshot
from ..payouts.planner import PayoutPlanner
from ..referrals.codes import normalize_referral_code, referral_link
from ..reporting.filters import DashboardFilter, filter_incomes, filter_snapshot
from ..reporting.rollup import AffiliateIncomeReport

console = Console()

DEFAULT_DATA_PATH = "data/affiliates"


def get_config(config_path: Optional[str] = None) -> ProgramConfig:
    """Get programme configuration."""
    path = Path(config_path) if config_path else None
    return ProgramConfigManager(path).config


def load_snapshot(data_path: str) -> LedgerSnapshot:
    """Read the ledger directory, exiting with a report on malformed data."""
    try:
        return read_snapshot(data_path)
    except LedgerValidationError as e:
        console.print(f"[red]Error:[/red] {e}")
        for error in e.errors[:20]:
            where = f"{error.get('ledger')}[{error.get('index')}]"
            console.print(f"  [red]{escape(where)}[/red] {escape('; '.join(error.get('errors', [])))}")
        sys.exit(1)


def money(cents: int, config: ProgramConfig) -> str:
    return format_cents(cents, config.currency_symbol)


@click.group()
@click.version_option(version=__version__, prog_name="affiliates")
def cli():
    """Affiliate Income Engine - commission reporting for the admin back-office.

    \b
    Quick Start:
      affiliates report -d ./ledger                 # Income per affiliate
      affiliates top -d ./ledger                    # Top performers
      affiliates hierarchy -d ./ledger              # Main and sub-affiliates
      affiliates validate-code REF12345             # Check a referral code
    """
    pass


# ============================================================================
# REPORTING
# ============================================================================

@cli.command()
@click.option("--data", "-d", "data_path", default=DEFAULT_DATA_PATH, show_default=True,
              help="Ledger directory")
@click.option("--search", "-q", default="", help="Search name, email or username")
@click.option("--status", type=click.Choice(["all"] + [s.value for s in AffiliateStatus]), default="all")
@click.option("--type", "affiliate_type", type=click.Choice(["all", "main", "sub"]), default="all")
@click.option("--from", "date_from", type=click.DateTime(formats=["%Y-%m-%d"]),
              help="Only commissions created on or after this day")
@click.option("--to", "date_to", type=click.DateTime(formats=["%Y-%m-%d"]),
              help="Only commissions created on or before this day")
@click.option("--json", "as_json", is_flag=True, help="Print the full report as JSON")
@click.option("--config", "config_path", help="Programme config file")
def report(data_path: str, search: str, status: str, affiliate_type: str, date_from, date_to,
           as_json: bool, config_path: Optional[str]):
    """Show income per affiliate, highest earners first."""
    config = get_config(config_path)
    if date_to:
        date_to = date_to + timedelta(days=1) - timedelta(microseconds=1)
    try:
        criteria = DashboardFilter(
            search=search,
            status=status,
            affiliate_type=affiliate_type,
            date_from=date_from,
            date_to=date_to,
        )
    except ValueError as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)

    snapshot = filter_snapshot(load_snapshot(data_path), criteria)
    income_report = AffiliateIncomeReport(config).build(snapshot)

    if as_json:
        click.echo(json.dumps(income_report.to_dict(), indent=2))
        return

    incomes = filter_incomes(income_report.affiliate_incomes, snapshot.affiliates, criteria)

    if not incomes:
        console.print("[yellow]No affiliates found matching criteria.[/yellow]")
    else:
        names = {a.id: a.name or a.email or a.id for a in snapshot.affiliates}
        table = Table(title=f"Affiliate Income ({len(incomes)})")
        table.add_column("Affiliate", style="cyan", max_width=30)
        table.add_column("Total", justify="right", style="bold green")
        table.add_column("Subscriptions", justify="right")
        table.add_column("Transactions", justify="right")
        table.add_column("Refunds", justify="right", style="red")
        table.add_column("Paid", justify="right")
        table.add_column("Pending", justify="right", style="yellow")
        table.add_column("Available", justify="right", style="blue")

        for income in incomes:
            table.add_row(
                names.get(income.affiliate_id, income.affiliate_id),
                money(income.total_income, config),
                money(income.direct_subscription_income, config),
                money(income.direct_transaction_income, config),
                money(-income.refund_amount, config) if income.refund_amount else "-",
                money(income.paid_out, config),
                money(income.pending, config),
                money(income.available, config),
            )
        console.print(table)

    totals = income_report.totals
    console.print(Panel.fit(
        f"Total income: [bold green]{money(totals['total_income'], config)}[/bold green]\n"
        f"Sub-affiliate income: [cyan]{money(totals['sub_affiliate_income'], config)}[/cyan]\n"
        f"Parent commissions: [cyan]{money(totals['parent_income'], config)}[/cyan]\n"
        f"Paid out: [cyan]{money(totals['paid_out'], config)}[/cyan]",
        title="Programme Totals"
    ))

    for issue in income_report.inconsistencies:
        console.print(f"[yellow]Warning:[/yellow] {issue.message}")
    for row in income_report.unattributed_commissions:
        console.print(
            f"[yellow]Warning:[/yellow] commission {escape(row['id'])} "
            f"({money(row['amount_cents'], config)}) references unknown affiliate {escape(row['affiliate_id'])}"
        )


@cli.command()
@click.option("--data", "-d", "data_path", default=DEFAULT_DATA_PATH, show_default=True,
              help="Ledger directory")
@click.option("--limit", "-n", type=click.IntRange(min=1), help="Number of affiliates to show")
@click.option("--config", "config_path", help="Programme config file")
def top(data_path: str, limit: Optional[int], config_path: Optional[str]):
    """Show the top performing affiliates."""
    config = get_config(config_path)
    if limit:
        config.top_performers_limit = limit
    snapshot = load_snapshot(data_path)
    income_report = AffiliateIncomeReport(config).build(snapshot)

    if not income_report.top_performers:
        console.print("[yellow]No affiliates in the ledger.[/yellow]")
        return

    names = {a.id: a.name or a.email or a.id for a in snapshot.affiliates}
    table = Table(title="Top Performers")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Affiliate", style="cyan")
    table.add_column("Total", justify="right", style="bold green")
    table.add_column("Commissions", justify="right")

    for rank, income in enumerate(income_report.top_performers, 1):
        table.add_row(
            str(rank),
            names.get(income.affiliate_id, income.affiliate_id),
            money(income.total_income, config),
            str(income.commission_count),
        )
    console.print(table)


@cli.command()
@click.option("--data", "-d", "data_path", default=DEFAULT_DATA_PATH, show_default=True,
              help="Ledger directory")
@click.option("--config", "config_path", help="Programme config file")
def hierarchy(data_path: str, config_path: Optional[str]):
    """Show main affiliates with their sub-affiliates and combined income."""
    config = get_config(config_path)
    snapshot = load_snapshot(data_path)
    income_report = AffiliateIncomeReport(config).build(snapshot)
    resolved = income_report.hierarchy
    names = {a.id: a.name or a.email or a.id for a in snapshot.affiliates}

    table = Table(title="Affiliate Hierarchy")
    table.add_column("Affiliate", style="cyan")
    table.add_column("Own income", justify="right")
    table.add_column("With subs", justify="right", style="bold green")

    for item in income_report.rollups:
        table.add_row(
            names.get(item.affiliate_id, item.affiliate_id),
            money(item.own_income, config),
            money(item.total_with_subs, config),
        )
        for child in resolved.children_of(item.affiliate_id):
            child_income = income_report.income_for(child.id)
            table.add_row(
                f"  └ {names.get(child.id, child.id)}",
                money(child_income.total_income, config) if child_income else "-",
                "",
            )
    console.print(table)

    for issue in resolved.inconsistencies:
        console.print(f"[yellow]Warning:[/yellow] {issue.message}")


# ============================================================================
# ADMIN TOOLS
# ============================================================================

@cli.command("validate-code")
@click.argument("code")
@click.option("--origin", help="Site origin; prints the signup link for the code")
def validate_code(code: str, origin: Optional[str]):
    """Check a referral code before saving it."""
    try:
        normalized = normalize_referral_code(code)
    except InvalidReferralCodeError as e:
        console.print(f"[red]✗ {e.code or code}[/red]: {e.message}")
        sys.exit(1)
    console.print(f"[green]✓ {normalized}[/green] is a valid referral code")
    if origin:
        console.print(f"Signup link: [cyan]{referral_link(origin, normalized)}[/cyan]")


@cli.command()
@click.option("--data", "-d", "data_path", default=DEFAULT_DATA_PATH, show_default=True,
              help="Ledger directory")
@click.option("--config", "config_path", help="Programme config file")
def payouts(data_path: str, config_path: Optional[str]):
    """Preview the next payout batch."""
    config = get_config(config_path)
    snapshot = load_snapshot(data_path)
    plan = PayoutPlanner(config).plan(snapshot.commissions, snapshot.affiliates, snapshot.payouts)

    if plan.candidates:
        table = Table(title="Next Payout Batch")
        table.add_column("Affiliate", style="cyan")
        table.add_column("Amount", justify="right", style="bold green")
        table.add_column("Commissions", justify="right")
        table.add_column("Period")
        for candidate in plan.candidates:
            table.add_row(
                candidate.affiliate_id,
                money(candidate.amount_cents, config),
                str(len(candidate.commission_ids)),
                f"{candidate.period_start:%Y-%m-%d} → {candidate.period_end:%Y-%m-%d}",
            )
        console.print(table)
    else:
        console.print("[yellow]No payouts due.[/yellow]")

    for skipped in plan.skipped:
        console.print(
            f"[dim]Skipped {skipped.affiliate_id} ({money(skipped.amount_cents, config)}): "
            f"{skipped.reason.value}[/dim]"
        )


@cli.command()
@click.option("--fee-cents", type=int, required=True, help="Platform or subscription fee in cents")
@click.option("--kind", type=click.Choice(["subscription", "transaction"]), default="subscription")
@click.option("--discount", type=click.IntRange(0, 100), default=0, help="Promo discount % of the affiliate share")
@click.option("--buyer", is_flag=True, help="Buyer was referred")
@click.option("--seller", is_flag=True, help="Seller was referred")
@click.option("--sub", "sub_affiliate", is_flag=True, help="Referring affiliate is a sub-affiliate")
@click.option("--config", "config_path", help="Programme config file")
def commission(fee_cents: int, kind: str, discount: int, buyer: bool, seller: bool, sub_affiliate: bool,
               config_path: Optional[str]):
    """Calculate the commission for a subscription payment or an order."""
    config = get_config(config_path)
    calculator = CommissionCalculator(config)

    try:
        if kind == "subscription":
            breakdown = calculator.business_subscription_commission(fee_cents, discount, sub_affiliate)
            parent = calculator.parent_business_commission(fee_cents) if sub_affiliate else 0
            output = (
                f"Affiliate share: [cyan]{money(breakdown.affiliate_commission_cents, config)}[/cyan]\n"
                f"Discount: [yellow]{money(breakdown.discount_cents, config)}[/yellow]\n"
                f"Business pays: [cyan]{money(breakdown.final_price_cents, config)}[/cyan]\n"
                f"Affiliate keeps: [bold green]{money(breakdown.final_affiliate_commission_cents, config)}[/bold green]"
            )
        else:
            amount = calculator.user_transaction_commission(fee_cents, buyer, seller, sub_affiliate)
            parent = calculator.parent_user_transaction_commission(fee_cents, buyer, seller) if sub_affiliate else 0
            output = f"Affiliate commission: [bold green]{money(amount, config)}[/bold green]"
    except ValueError as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)

    if sub_affiliate:
        output += f"\nParent commission: [cyan]{money(parent, config)}[/cyan]"
    console.print(Panel.fit(output, title=f"{kind.title()} Commission"))


@cli.command("config")
@click.option("--config", "config_path", help="Programme config file")
def show_config(config_path: Optional[str]):
    """Show the programme configuration."""
    config = get_config(config_path)
    table = Table(title="Programme Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", justify="right")
    for key, value in config.to_dict().items():
        table.add_row(key, str(value))
    console.print(table)


def main():
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
