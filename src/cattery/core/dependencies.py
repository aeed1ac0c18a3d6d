from functools import lru_cache
from pathlib import Path

from fastapi import Depends
from fastapi.templating import Jinja2Templates
from sqlalchemy.ext.asyncio import AsyncSession

from cattery.config import Settings, get_settings
from cattery.controllers.cats_controller import CatsController
from cattery.database.session import get_async_session

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"


@lru_cache()
def get_templates() -> Jinja2Templates:
    # One Jinja2 environment per process; templates are compiled once and cached.
    return Jinja2Templates(directory=str(TEMPLATES_DIR))


def get_cats_controller(
    db: AsyncSession = Depends(get_async_session),
    templates: Jinja2Templates = Depends(get_templates),
    settings: Settings = Depends(get_settings),
) -> CatsController:
    # Builds a per-request controller bound to the request's DB session
    return CatsController(db, templates, unpermitted_params=settings.UNPERMITTED_PARAMS)
