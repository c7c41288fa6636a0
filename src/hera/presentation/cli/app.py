"""HERA CLI application using Typer.

This module provides command-line utilities for the HERA backend:
secret generation, integration token minting, database initialization
and the end-of-day batch sweep.
"""

import asyncio
import secrets
from datetime import date, datetime
from typing import Optional
from uuid import UUID

import typer
from rich.console import Console
from rich.table import Table
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from hera.application.commands import SweepBatchGroupsCommand
from hera.application.commands.posting import SweepResult
from hera.application.context import OrganizationContext
from hera.domain.shared.exceptions import DomainException
from hera.infrastructure.persistence.sqlalchemy import create_engine, create_tables
from hera.infrastructure.persistence.sqlalchemy.repositories import (
    SQLAlchemyRepositoryFactory,
)
from hera.presentation.api.config import build_posting_policy, load_account_mapping
from hera_auth import JWTService
from hera_config.settings import get_settings

app = typer.Typer(
    name="hera",
    help="HERA - auto-posting engine CLI",
    no_args_is_help=True,
)
console = Console()


# Create secrets subcommand group
secrets_app = typer.Typer(
    name="secrets",
    help="Secret generation utilities",
    no_args_is_help=True,
)
app.add_typer(secrets_app)

token_app = typer.Typer(
    name="token",
    help="Bearer tokens for integrations",
    no_args_is_help=True,
)
app.add_typer(token_app)

batches_app = typer.Typer(
    name="batches",
    help="Batch group maintenance",
    no_args_is_help=True,
)
app.add_typer(batches_app)

db_app = typer.Typer(
    name="db",
    help="Database utilities",
    no_args_is_help=True,
)
app.add_typer(db_app)


@secrets_app.command("generate")
def generate_secrets() -> None:
    """Generate secure secrets for HERA configuration.

    Generates two required secrets:
    - JWT_SECRET_KEY: Secret for signing and verifying bearer tokens
    - POSTGRES_PASSWORD: Database password

    Copy the output to your .env file.
    """
    console.print("\n[bold green]HERA Secret Generation[/bold green]")
    console.print("=" * 60)
    console.print(
        "\nGenerated secrets for your [bold].env[/bold] configuration file:\n"
    )

    # 64 bytes = 86 url-safe chars, strong for HS256
    jwt_secret = secrets.token_urlsafe(64)
    console.print(f"[cyan]JWT_SECRET_KEY[/cyan]={jwt_secret}")

    db_password = secrets.token_urlsafe(32)
    console.print(f"[cyan]POSTGRES_PASSWORD[/cyan]={db_password}")

    console.print("\n" + "=" * 60)
    console.print(
        "[yellow]Keep these secrets secure and never commit them "
        "to version control![/yellow]"
    )
    console.print(
        "[dim]Copy the above values to your config/.env (Docker) or "
        "config/.env.dev (local) file.[/dim]\n"
    )


@token_app.command("issue")
def issue_token(
    organization_id: UUID = typer.Option(
        ...,
        "--organization-id",
        help="Tenant the token may post for",
    ),
    user_id: str = typer.Option(
        ...,
        "--user-id",
        help="Calling user or integration (token subject)",
    ),
    expires_hours: Optional[int] = typer.Option(
        None,
        "--expires-hours",
        min=1,
        help="Lifetime in hours (default: JWT_ACCESS_TOKEN_EXPIRE_HOURS)",
    ),
) -> None:
    """Mint a bearer token bound to one organization."""
    settings = get_settings()
    service = JWTService(
        secret_key=settings.jwt_secret_key.get_secret_value(),
        access_token_expire_hours=(
            expires_hours or settings.jwt_access_token_expire_hours
        ),
    )
    token = service.create_access_token(subject=user_id, organization_id=organization_id)
    # Plain output so the token can be piped
    typer.echo(token)


@db_app.command("init")
def init_db() -> None:
    """Create missing database tables (existing tables are left untouched)."""
    asyncio.run(_init_db())
    console.print("[green]Database schema is up to date.[/green]")


async def _init_db() -> None:
    engine = create_engine(get_settings().database_url)
    try:
        await create_tables(engine)
    finally:
        await engine.dispose()


@batches_app.command("sweep")
def sweep_batches(
    organization_id: UUID = typer.Option(
        ...,
        "--organization-id",
        help="Tenant whose batch groups are flushed",
    ),
    before: Optional[datetime] = typer.Option(
        None,
        "--before",
        formats=["%Y-%m-%d"],
        help="Only flush groups dated strictly before this day (YYYY-MM-DD)",
    ),
) -> None:
    """Post a summary journal for every open batch group of a tenant."""
    cutoff = before.date() if before else None
    try:
        results = asyncio.run(_sweep(organization_id, cutoff))
    except DomainException as e:
        console.print(f"[red]Sweep failed:[/red] {e.message} ({e.code.value})")
        raise typer.Exit(code=1) from e

    if not results:
        console.print("[dim]No open batch groups.[/dim]")
        return

    table = Table(title=f"Flushed batch groups ({organization_id})")
    table.add_column("Type")
    table.add_column("Date")
    table.add_column("Members", justify="right")
    table.add_column("Total", justify="right")
    table.add_column("Journal")
    for result in results:
        table.add_row(
            result.transaction_type,
            result.batch_date.isoformat(),
            str(result.member_count),
            f"{result.total_amount:.2f}",
            str(result.journal_entry_id),
        )
    console.print(table)


async def _sweep(organization_id: UUID, before: Optional[date]) -> list[SweepResult]:
    settings = get_settings()
    engine = create_engine(settings.database_url)
    session_maker = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    context = OrganizationContext.from_values(
        organization_id=organization_id,
        subject="cli",
    )

    try:
        async with session_maker() as session:
            factory = SQLAlchemyRepositoryFactory(session, context, session_maker)
            command = SweepBatchGroupsCommand.from_factory(
                factory,
                load_account_mapping(settings),
                build_posting_policy(settings),
            )
            try:
                results = await command.execute(organization_id, before=before)
                await session.commit()
            except Exception:
                await session.rollback()
                raise
            finally:
                await factory.flush_audit_log()
        return results
    finally:
        await engine.dispose()


def cli() -> None:
    """Entry point for the CLI application."""
    app()


if __name__ == "__main__":
    cli()
