"""Tests for the hera command-line interface."""

import asyncio
from uuid import UUID

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from typer.testing import CliRunner

from hera.domain.posting.value_objects import AccountMappingTable, PostingPolicy
from hera.infrastructure.persistence.sqlalchemy import create_engine
from hera.presentation.cli.app import app
from hera_auth import JWTService
from hera_config.settings import clear_settings_cache
from tests.shared.fixtures.factories import TestOrganizationFactory, event_payload
from tests.shared.fixtures.pipeline import PipelineHarness

CLI_SECRET = "cli-test-secret"

runner = CliRunner()


@pytest.fixture
def cli_env(monkeypatch, tmp_path):
    """Settings for the CLI: fixed secret and a SQLite file database."""
    url = f"sqlite+aiosqlite:///{tmp_path / 'cli.db'}"
    monkeypatch.setenv("JWT_SECRET_KEY", CLI_SECRET)
    monkeypatch.setenv("DATABASE_URL_OVERRIDE", url)
    monkeypatch.delenv("ACCOUNT_MAPPING_FILE", raising=False)
    clear_settings_cache()
    yield url
    clear_settings_cache()


def _seed_sales(url: str, *amounts: str) -> None:
    async def _seed():
        engine = create_engine(url)
        try:
            harness = PipelineHarness(
                async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False),
                AccountMappingTable.default(),
                PostingPolicy(),
            )
            for amount in amounts:
                await harness.ingest(
                    event_payload(transaction_type="sale", total_amount=amount),
                )
        finally:
            await engine.dispose()

    asyncio.run(_seed())


def test_secrets_generate():
    result = runner.invoke(app, ["secrets", "generate"])

    assert result.exit_code == 0
    assert "JWT_SECRET_KEY=" in result.stdout
    assert "POSTGRES_PASSWORD=" in result.stdout


def test_token_issue(cli_env):
    result = runner.invoke(
        app,
        [
            "token",
            "issue",
            "--organization-id",
            str(TestOrganizationFactory.SALON_ID),
            "--user-id",
            "pos-gateway",
        ],
    )

    assert result.exit_code == 0
    payload = JWTService(CLI_SECRET).verify_token(result.stdout.strip())
    assert payload.organization_id == TestOrganizationFactory.SALON_ID
    assert payload.subject == "pos-gateway"


def test_token_issue_requires_valid_organization(cli_env):
    result = runner.invoke(
        app,
        ["token", "issue", "--organization-id", "nope", "--user-id", "x"],
    )

    assert result.exit_code != 0


def test_db_init_then_empty_sweep(cli_env):
    init = runner.invoke(app, ["db", "init"])
    sweep = runner.invoke(
        app,
        [
            "batches",
            "sweep",
            "--organization-id",
            str(TestOrganizationFactory.DEFAULT_ID),
        ],
    )

    assert init.exit_code == 0
    assert "up to date" in init.stdout
    assert sweep.exit_code == 0
    assert "No open batch groups" in sweep.stdout


def test_sweep_prints_flushed_groups(cli_env):
    assert runner.invoke(app, ["db", "init"]).exit_code == 0
    _seed_sales(cli_env, "12.50", "7.50")

    result = runner.invoke(
        app,
        [
            "batches",
            "sweep",
            "--organization-id",
            str(TestOrganizationFactory.DEFAULT_ID),
            "--before",
            "2024-06-16",
        ],
    )

    assert result.exit_code == 0
    assert "sale" in result.stdout
    assert "20.00" in result.stdout


def test_sweep_rejects_bad_date(cli_env):
    result = runner.invoke(
        app,
        [
            "batches",
            "sweep",
            "--organization-id",
            str(UUID(int=1)),
            "--before",
            "16/06/2024",
        ],
    )

    assert result.exit_code != 0
