"""Command-line interface for BrandCollab."""

from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from brandcollab.admin.auth import admin_auth_service
from brandcollab.admin.models import AdminRole
from brandcollab.auth.rules import validate_password_complexity
from brandcollab.errors import ServiceError
from brandcollab.logging_config import setup_logging
from brandcollab.master_data.seed import seed_master_data
from brandcollab.notifications.device_tokens import INACTIVE_TOKEN_DAYS, device_token_service
from brandcollab.payments.stripe_service import check_and_expire_subscriptions, cleanup_processed_events
from brandcollab.settings import settings
from brandcollab.storage.db import db

setup_logging()

app = typer.Typer(
    name="brandcollab",
    help="BrandCollab - influencer and brand collaboration marketplace",
    no_args_is_help=True,
)

console = Console()


@app.command("init")
def init_database(
    drop: Annotated[bool, typer.Option("--drop", help="Drop every table first (local databases only)")] = False,
) -> None:
    """Create all tables."""
    if drop:
        if settings.env == "production":
            console.print("[bold red]✗[/bold red] --drop is disabled in production")
            raise typer.Exit(1)
        db.drop_tables()
    db.create_tables()
    console.print("[bold green]✓[/bold green] Database initialized")


@app.command("seed")
def seed() -> None:
    """Insert countries, cities, company types and niches."""
    db.create_tables()
    with db.session() as session:
        counts = seed_master_data(session)

    table = Table(title="Seeded reference data")
    table.add_column("Table", style="cyan")
    table.add_column("Inserted", justify="right", style="green")
    for name, count in counts.items():
        table.add_row(name, str(count))
    console.print(table)


@app.command("create-admin")
def create_admin(
    email: Annotated[str, typer.Option("--email", "-e", help="Admin email")],
    name: Annotated[str, typer.Option("--name", "-n", help="Display name")],
    password: Annotated[str, typer.Option(prompt=True, hide_input=True, confirmation_prompt=True)],
    role: Annotated[AdminRole, typer.Option("--role", "-r", help="Admin role")] = AdminRole.SUPER_ADMIN,
) -> None:
    """Create a back-office admin account."""
    try:
        validate_password_complexity(password)
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    try:
        admin = admin_auth_service.create_admin(name, email, password, role)
    except ServiceError as e:
        console.print(f"[red]{e.message}[/red]")
        raise typer.Exit(1)

    console.print(f"[bold green]✓[/bold green] Admin {admin['email']} created (ID: {admin['id']}, role: {admin['role']})")


@app.command("expire-subscriptions")
def expire_subscriptions() -> None:
    """Clear Pro for influencers whose paid period has elapsed."""
    count = check_and_expire_subscriptions()
    console.print(f"[bold green]✓[/bold green] {count} Pro subscription(s) expired")


@app.command("cleanup-device-tokens")
def cleanup_device_tokens(
    days: Annotated[int, typer.Option("--days", "-d", help="Days of inactivity")] = INACTIVE_TOKEN_DAYS,
) -> None:
    """Delete push tokens not used recently."""
    removed = device_token_service.cleanup_old_tokens(days)
    console.print(f"[bold green]✓[/bold green] Removed {removed} inactive device token(s)")


@app.command("cleanup-webhook-events")
def cleanup_webhook_events(
    days: Annotated[int, typer.Option("--days", "-d", help="Days to keep")] = 30,
) -> None:
    """Delete old webhook idempotency records."""
    removed = cleanup_processed_events(days)
    console.print(f"[bold green]✓[/bold green] Removed {removed} processed webhook event(s)")


if __name__ == "__main__":
    app()
