from .cats_controller import CatsController, cat_path

__all__ = ["CatsController", "cat_path"]
