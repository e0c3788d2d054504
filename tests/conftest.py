"""
Shared test fixtures for integration tests.

This file provides fixtures that span multiple components,
unlike component-specific fixtures in src/arbitrage_hub/{component}/tests/conftest.py
"""

import os

import pytest
import pytest_asyncio

# Integration tests only run when a test database is configured
TEST_DATABASE_URL = os.environ.get("ARBHUB_TEST_DATABASE_URL")


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture(scope="session")
def database_url():
    """Get the test database URL, skipping when none is configured."""
    if not TEST_DATABASE_URL:
        pytest.skip("ARBHUB_TEST_DATABASE_URL not set")
    return TEST_DATABASE_URL


@pytest_asyncio.fixture
async def db(database_url):
    """
    Fresh database connection for each test.

    This fixture:
    1. Creates a new pool and applies the schema
    2. Empties every table
    3. Yields the database for the test
    4. Closes the pool after the test
    """
    from arbitrage_hub.storage import Database, DatabaseConfig, apply_schema

    database = Database(DatabaseConfig(url=database_url, min_connections=1, max_connections=4))
    await database.initialize()
    await apply_schema(database)
    await database.execute(
        "TRUNCATE arbitrage_strategies, market_pairs, assets, exchanges"
    )

    yield database

    await database.close()
