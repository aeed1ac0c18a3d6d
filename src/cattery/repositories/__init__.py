"""
Repository layer: a thin, testable boundary between the controllers and SQLAlchemy.

Usage:
    from cattery.repositories import CatRepository
"""

from .base_repository import BaseRepository
from .cat_repository import CatRepository

__all__ = [
    "BaseRepository",
    "CatRepository",
]
