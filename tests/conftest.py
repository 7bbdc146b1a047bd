"""
Pytest configuration for recordstore.

Provides fixtures for:
- Database connection management
- Schema bootstrap and table cleanup
- Sync and async pools wired to repositories
- Test data seeding
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Generator

import psycopg
import pytest
from psycopg_pool import ConnectionPool

from recordstore.config import Settings
from recordstore.repositories import Repositories

INIT_SQL_PATH = Path(__file__).parent.parent / "db" / "init.sql"


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """
    Settings fixture with test-specific overrides.

    Can be overridden via environment variables in CI or local testing.
    """
    return Settings(
        db_host=os.getenv("DB_HOST", "localhost"),
        db_port=int(os.getenv("DB_PORT", "5432")),
        db_user=os.getenv("DB_USER", "postgres"),
        db_password=os.getenv("DB_PASSWORD", "postgres"),
        db_name=os.getenv("DB_NAME", "recordstore"),
        log_level="DEBUG",
    )


@pytest.fixture(scope="session")
def test_dsn(test_settings: Settings) -> str:
    """
    Database connection string for tests.
    """
    return (
        f"postgresql://{test_settings.db_user}:{test_settings.db_password}"
        f"@{test_settings.db_host}:{test_settings.db_port}/{test_settings.db_name}"
    )


@pytest.fixture(scope="session")
def db_connection_available(test_dsn: str) -> bool:
    """
    Check if database is reachable.

    Used to conditionally skip integration tests when DB is not available.
    """
    try:
        with psycopg.connect(test_dsn, connect_timeout=5) as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT 1;")
                cur.fetchone()
        return True
    except psycopg.Error:
        return False


@pytest.fixture(scope="session")
def db_connection(
    test_dsn: str, db_connection_available: bool
) -> Generator[psycopg.Connection, None, None]:
    """
    Provide a session-scoped autocommit connection for fixtures.

    Skips tests if database is not available.
    """
    if not db_connection_available:
        pytest.skip("Database not available for integration tests")

    conn = psycopg.connect(test_dsn, autocommit=True)
    try:
        yield conn
    finally:
        conn.close()


@pytest.fixture(scope="session")
def db_schema_initialized(db_connection: psycopg.Connection) -> bool:
    """
    Ensure the movies and users tables exist (``db/init.sql`` is idempotent).
    """
    with db_connection.cursor() as cur:
        cur.execute(INIT_SQL_PATH.read_text(encoding="utf-8"))
    return True


@pytest.fixture(scope="function")
def clean_tables(db_connection: psycopg.Connection, db_schema_initialized: bool):
    """
    Empty both tables before and after each test function.
    """
    with db_connection.cursor() as cur:
        cur.execute("TRUNCATE TABLE public.movies, public.users RESTART IDENTITY CASCADE;")
    yield
    with db_connection.cursor() as cur:
        cur.execute("TRUNCATE TABLE public.movies, public.users RESTART IDENTITY CASCADE;")


@pytest.fixture(scope="session")
def sync_pool(test_dsn: str, db_schema_initialized: bool) -> Generator[ConnectionPool, None, None]:
    pool = ConnectionPool(conninfo=test_dsn, min_size=1, max_size=4, open=False)
    pool.open(wait=True, timeout=10)
    try:
        yield pool
    finally:
        pool.close()


@pytest.fixture(scope="function")
def repos(sync_pool: ConnectionPool, clean_tables) -> Repositories:
    return Repositories.from_pool(sync_pool, timeout=3.0)


@pytest.fixture(scope="function")
def seeded_movies(test_dsn: str, clean_tables) -> int:
    """
    Seed 45 movies via the CSV + COPY path and return the count.
    """
    rows_to_seed = 45

    with tempfile.TemporaryDirectory() as tmpdir:
        csv_path = Path(tmpdir) / "movies.csv"

        from scripts.seed_movies import _copy_into_db, _generate_movies_csv

        _generate_movies_csv(csv_path, rows=rows_to_seed, seed=42)
        _copy_into_db(test_dsn, csv_path)

    return rows_to_seed
