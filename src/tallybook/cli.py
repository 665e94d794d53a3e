"""Flask CLI commands for Tallybook."""

from __future__ import annotations

from datetime import date, timedelta

import click

from .context import AppContext, current_context
from .infra.database import init_database


def run_demo_seed(ctx: AppContext) -> int:
    """Seed the local profile with demo data; return the number of transactions written.

    Everything goes through the services so balances stay consistent. Running it
    against a profile that already has accounts is a no-op.
    """

    user_id = ctx.require_user_id()
    if ctx.accounts.list_accounts(user_id=user_id):
        return 0

    checking = ctx.accounts.create_account(user_id=user_id, name="Everyday Checking", balance="1200.00")
    savings = ctx.accounts.create_account(
        user_id=user_id, name="Rainy Day Savings", account_type="savings", balance="5000.00"
    )
    ctx.accounts.create_account(
        user_id=user_id,
        name="Travel Card",
        account_type="credit",
        credit_limit="3000.00",
        bill_generation_date=20,
        payment_due_date=5,
    )

    groceries = ctx.categories.create_category(user_id=user_id, name="Groceries", color="#22c55e")
    salary = ctx.categories.create_category(user_id=user_id, name="Salary", color="#3b82f6")
    utilities = ctx.categories.create_category(user_id=user_id, name="Utilities")
    market = ctx.payees.create_payee(user_id=user_id, name="Fresh Market")
    employer = ctx.payees.create_payee(user_id=user_id, name="Acme Corp", email="payroll@acme.example")

    today = date.today()
    rows = [
        dict(amount="4200.00", direction="deposit", category_id=salary.id, payee_id=employer.id,
             description="Salary", days_ago=20),
        dict(amount="125.34", direction="withdrawal", category_id=groceries.id, payee_id=market.id,
             description="Weekly groceries", days_ago=14),
        dict(amount="89.50", direction="withdrawal", category_id=utilities.id, payee_id=None,
             description="City Power", days_ago=9),
        dict(amount="118.75", direction="withdrawal", category_id=groceries.id, payee_id=market.id,
             description="Weekly groceries", days_ago=7),
    ]
    for row in rows:
        ctx.ledger.create_transaction(
            user_id=user_id,
            account_id=checking.id,
            amount=row["amount"],
            direction=row["direction"],
            date=today - timedelta(days=row["days_ago"]),
            category_id=row["category_id"],
            payee_id=row["payee_id"],
            description=row["description"],
        )
    ctx.transfers.create_transfer(
        user_id=user_id,
        from_account_id=checking.id,
        to_account_id=savings.id,
        amount="500.00",
        date=today - timedelta(days=3),
        description="Monthly savings",
    )
    return len(rows) + 2


def init_app(app) -> None:
    """Register CLI commands on the Flask app."""

    @app.cli.command("tallybook-init-db")
    def tallybook_init_db() -> None:
        """Create the database schema."""

        init_database(current_context().engine)
        click.echo("Database schema is up to date.")

    @app.cli.command("tallybook-seed")
    @click.option("--demo", is_flag=True, default=False, help="Seed demo data for the local profile")
    def tallybook_seed(demo: bool) -> None:
        """Seed application data (demo)."""

        if not demo:
            click.echo("No action specified. Use --demo to seed demo data.")
            return
        written = run_demo_seed(current_context())
        if written:
            click.echo(f"Demo seed completed: {written} transactions written.")
        else:
            click.echo("Local profile already has accounts; nothing seeded.")

    @app.cli.command("tallybook-reconcile")
    @click.option("--repair", is_flag=True, default=False, help="Rewrite drifted balances from the ledger")
    def tallybook_reconcile(repair: bool) -> None:
        """Report accounts whose balance disagrees with their transactions."""

        from .services.reconcile import recompute_balances, reconcile_balances

        ctx = current_context()
        user_id = ctx.require_user_id()
        if repair:
            drifts = recompute_balances(ctx.session_factory, user_id=user_id)
        else:
            drifts = reconcile_balances(ctx.session_factory, user_id=user_id)

        if not drifts:
            click.echo("All balances reconcile.")
            return
        for drift in drifts:
            click.echo(
                f"{drift.name} (#{drift.account_id}): stored {drift.stored}, "
                f"expected {drift.expected}, difference {drift.difference}"
            )
        click.echo(f"{len(drifts)} account(s) {'repaired' if repair else 'drifted'}.")
