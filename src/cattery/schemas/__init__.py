from .cat import PermittedParams, CatCreateParams, CatUpdateParams

__all__ = ["PermittedParams", "CatCreateParams", "CatUpdateParams"]
