"""CLI tools for Krisefikser administration and scheduled jobs."""

import click

from krisefikser.core.errors import ValidationError
from krisefikser.core.security import create_access_token
from krisefikser.core.structured_logging import configure_logging
from krisefikser.db.enums import Role
from krisefikser.db.session import SessionLocal
from krisefikser.services import storage_expiry_service, user_service


@click.group()
def cli():
    """Krisefikser CLI tools."""
    configure_logging()


@cli.command()
@click.option("--email", required=True, help="Account email address")
@click.option("--full-name", required=True, help="Display name")
@click.option(
    "--role",
    type=click.Choice([r.value for r in Role]),
    default=Role.USER.value,
    show_default=True,
)
def create_user(email: str, full_name: str, role: str):
    """
    Create an account (bootstrap admins, seed data).

    Example:
        krisefikser create-user --email admin@example.no --full-name "Kari Nordmann" --role admin
    """
    with SessionLocal() as db:
        try:
            user = user_service.create_user(db, email, full_name, Role(role))
        except ValidationError as e:
            raise click.ClickException(str(e))
        click.echo(f"✓ Created user {user.email} ({user.role})")
        click.echo(f"  ID: {user.id}")


@cli.command()
@click.option("--email", required=True, help="Account email address")
def issue_token(email: str):
    """Print an access token for an existing user (local development)."""
    with SessionLocal() as db:
        user = user_service.get_user_by_email(db, email)
        if not user:
            raise click.ClickException(f"No user with email {email}")
        click.echo(create_access_token(user.id, user.role))


@cli.command()
@click.option("--window-days", type=int, default=None, help="Override STORAGE_EXPIRY_WINDOW_DAYS")
def check_expiring_items(window_days: int | None):
    """
    Run the daily storage expiry scan once.

    Schedule with cron, e.g. ``0 8 * * * krisefikser check-expiring-items``.
    """
    with SessionLocal() as db:
        result = storage_expiry_service.check_for_expiring_items(db, window_days=window_days)
    click.echo(
        f"✓ {result.items_found} expiring item(s), {result.items_notified} notified, "
        f"{result.notifications_sent} notification(s) sent"
    )
    if result.failed_item_ids:
        click.echo(f"❌ Failed items: {', '.join(result.failed_item_ids)}")
        raise SystemExit(1)


if __name__ == "__main__":
    cli()
