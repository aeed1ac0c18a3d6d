"""
Single import point for the ORM models, so every model is registered on
Base.metadata as soon as `cattery.models` is imported:

    from cattery.models import Cat
"""

from .cat import Cat

__all__ = [
    "Cat",
]
