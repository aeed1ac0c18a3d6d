"""
Core pytest configuration for the entire test suite.

Only the database setup and logging setup shared by every kind of test live
here. Domain fixtures are kept in `tests/test_fixtures/` and imported at the
bottom of this module so they are available everywhere without imports:

- tests/test_fixtures/repository_fixtures.py
- tests/test_fixtures/api_fixtures.py
"""

from __future__ import annotations

import os
import logging
from pathlib import Path
from urllib.parse import urlparse
from typing import AsyncGenerator

# Silence chatty third-party loggers before anything else configures logging.
NOISY_LOGGERS = (
    "sqlalchemy",
    "sqlalchemy.engine",
    "sqlalchemy.engine.Engine",
    "aiosqlite",
    "asyncio",
    "httpx",
    "httpcore",
    "multipart",
    "python_multipart",
)
for _name in NOISY_LOGGERS:
    logging.getLogger(_name).setLevel(logging.WARNING)


import pytest
from pytest import FixtureRequest
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    create_async_engine,
    async_sessionmaker,
    AsyncEngine,
)

from cattery.database.base import Base
from cattery import models  # noqa: F401 – registers models with Base.metadata
from cattery.core.logging.builder import setup_logging

from .test_fixtures.settings import make_test_settings

logger = logging.getLogger(__name__)


@pytest.fixture(scope="session", autouse=True)
def configure_logging(request: FixtureRequest):
    """
    Install application logging for the whole session, then re-attach pytest's
    capture handler, which dictConfig removes from the root logger.
    """
    setup_logging(make_test_settings())

    caplog_plugin = request.config.pluginmanager.getplugin("logging-plugin")
    handler = getattr(caplog_plugin, "log_cli_handler", None)
    if handler is not None:
        logging.getLogger().addHandler(handler)

    yield


def safe_log_db_url(db_url: str) -> str:
    """
    Return the database URL without credentials, for logging.
    """
    parsed = urlparse(db_url)
    if parsed.scheme.startswith("sqlite"):
        return db_url
    return f"{parsed.scheme}://{parsed.hostname}:{parsed.port or ''}/{parsed.path.lstrip('/')}"


def get_test_database_url(tmp_path: Path) -> str:
    """
    Determine the test database URL.

    1. `TEST_DATABASE_URL` environment variable (CI override, e.g. Postgres)
    2. otherwise a fresh SQLite file in the test's tmp_path
    """
    if test_url := os.getenv("TEST_DATABASE_URL"):
        return test_url
    return f"sqlite+aiosqlite:///{tmp_path / 'test_cattery.db'}"


@pytest.fixture()
async def async_engine(tmp_path: Path) -> AsyncGenerator[AsyncEngine, None]:
    """
    A per-test engine with freshly created tables, so database-assigned ids
    start at 1 in every test.
    """
    url = get_test_database_url(tmp_path)
    logger.debug(f"Using test DB: {safe_log_db_url(url)}")

    engine = create_async_engine(url, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture()
async def db_session(async_engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """
    A session bound to the per-test engine. `expire_on_commit=False` mirrors
    the application's session factory.
    """
    maker = async_sessionmaker(bind=async_engine, class_=AsyncSession, expire_on_commit=False)
    async with maker() as session:
        yield session


# Register domain fixtures globally (see module docstring).
from .test_fixtures.repository_fixtures import (  # noqa: E402
    cat_repository,
    sample_cat_data,
    create_cat,
    created_cat,
    multiple_cats,
)
from .test_fixtures.api_fixtures import (  # noqa: E402
    app_settings,
    app,
    client,
    strict_client,
)
