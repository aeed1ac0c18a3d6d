"""
Cat repository: persistence operations for the Cat resource.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from cattery.models.cat import Cat
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class CatRepository(BaseRepository[Cat]):
    """
    Repository for Cat entity operations.

    Inherits the generic find/create/save/update operations from `BaseRepository`.
    """

    def __init__(self, db: AsyncSession):
        super().__init__(Cat, db)

    async def create_cat(self, name: str | None = None, color: str | None = None) -> Cat:
        """
        Create a new cat with surrounding whitespace removed from its values.

        Raises:
            ValidationFailedError: If the name is missing or blank, or a value is too long.
        """
        logger.debug("Creating new cat", extra={"cat_name": name})

        return await self.create(
            name=name.strip() if isinstance(name, str) else name,
            color=color.strip() if isinstance(color, str) else color,
        )

    async def list_cats(self) -> list[Cat]:
        """Return every cat, oldest first."""
        return await self.get_all(order_by="id")
