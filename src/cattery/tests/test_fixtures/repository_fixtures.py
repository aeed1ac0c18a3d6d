"""Fixtures for repository tests."""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from cattery.models.cat import Cat
from cattery.repositories.cat_repository import CatRepository

# NOTE: All fixtures in this file depend on the `db_session` fixture defined in conftest.py.
# Every test gets its own freshly created database, so ids start at 1.


@pytest.fixture
async def cat_repository(db_session: AsyncSession) -> CatRepository:
    """
    Return a CatRepository bound to the test session.

    Usage:
        - Injected into tests that exercise the generic repository operations
          (create, get_by_id, get_all, update_entity) on Cat entities.
    """
    return CatRepository(db_session)


@pytest.fixture
def sample_cat_data() -> dict[str, str]:
    """
    Simple, deterministic payload used by many tests.
    Kept synchronous because it does not touch the DB.
    """
    return {"name": "Tom", "color": "gray"}


@pytest.fixture
async def create_cat(cat_repository: CatRepository):
    """
    A small factory helper that tests can call to create cats with optional overrides.

    Usage:
        cat = await create_cat(name="Felix")
    """
    async def _create(**overrides) -> Cat:
        data = {"name": "Whiskers", "color": None}
        data.update(overrides)
        return await cat_repository.create(**data)

    return _create


@pytest.fixture
async def created_cat(create_cat, sample_cat_data, db_session: AsyncSession) -> Cat:
    """
    Create, commit and return a single cat (Tom, gray; id 1).
    """
    cat = await create_cat(**sample_cat_data)
    await db_session.commit()
    return cat


@pytest.fixture
async def multiple_cats(create_cat, db_session: AsyncSession) -> list[Cat]:
    """
    Create and commit three cats, returned in creation order.
    """
    cats = [
        await create_cat(name="Tom", color="gray"),
        await create_cat(name="Felix", color="black"),
        await create_cat(name="Garfield", color="orange"),
    ]
    await db_session.commit()
    return cats
