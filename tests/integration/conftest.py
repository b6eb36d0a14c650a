import os
import uuid
from collections.abc import Generator
from pathlib import Path
from typing import Any

import psycopg
import pytest

from contract_pipeline.config.settings import Settings
from contract_pipeline.database.connection import (
    build_conninfo,
    close_pool,
    get_connection,
    init_pool,
)

SCHEMA = Path(__file__).with_name("schema.sql")


def _test_settings() -> Settings:
    os.environ.setdefault("DB_DATABASE", "contracts_test")
    return Settings(persistence_backend="postgres")


def _probe(settings: Settings) -> None:
    with psycopg.connect(build_conninfo(settings), connect_timeout=3) as conn:
        conn.execute(SCHEMA.read_text())


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    return _test_settings()


@pytest.fixture(scope="session")
def integration_pool(test_settings: Settings) -> Generator[None, None, None]:
    try:
        _probe(test_settings)
        init_pool(test_settings)
    except Exception as e:
        pytest.skip(f"PostgreSQL test DB not available: {e}. Set DB_* env to point at it")
    try:
        yield
    finally:
        close_pool()


@pytest.fixture
def db_conn(integration_pool: None) -> Generator[psycopg.Connection[Any], None, None]:
    with get_connection() as conn:
        yield conn


@pytest.fixture
def integration_cleanup(
    integration_pool: None,
) -> Generator[list[tuple[str, str]], None, None]:
    cleanup: list[tuple[str, str]] = []
    yield cleanup
    if not cleanup:
        return
    with get_connection() as conn:
        with conn.cursor() as cur:
            for table, ref in cleanup:
                if table == "analyses":
                    cur.execute("DELETE FROM analyses WHERE account_ref = %s", (ref,))
                elif table == "accounts":
                    cur.execute("DELETE FROM accounts WHERE id = %s", (ref,))
                elif table == "guest_quotas":
                    cur.execute("DELETE FROM guest_quotas WHERE id = %s", (ref,))
                elif table == "idempotency":
                    cur.execute("DELETE FROM idempotency WHERE key = %s", (ref,))
        conn.commit()


@pytest.fixture
def seed_account(
    db_conn: psycopg.Connection[Any],
    integration_cleanup: list[tuple[str, str]],
) -> str:
    """An account with two credits. Its analyses are removed afterwards."""
    account_ref = f"acc-{uuid.uuid4()}"
    with db_conn.cursor() as cur:
        cur.execute("INSERT INTO accounts (id, credits) VALUES (%s, 2)", (account_ref,))
    db_conn.commit()
    integration_cleanup.append(("analyses", account_ref))
    integration_cleanup.append(("accounts", account_ref))
    return account_ref


@pytest.fixture
def guest_ref(integration_cleanup: list[tuple[str, str]]) -> str:
    ref = f"guest-{uuid.uuid4()}"
    integration_cleanup.append(("analyses", ref))
    integration_cleanup.append(("guest_quotas", ref))
    return ref
