"""
Explicit route table for the Cat resource.

Every (method, path) pair the application serves is listed in `ROUTES`, in
registration order. `/cats/new` must come before `/cats/{cat_id}` so "new" is
never taken for an id.

HTML forms can only GET and POST, so the edit form posts to `/cats/{cat_id}`
with a hidden `_method=patch` field; that POST is dispatched to `update`.
"""

import logging
from typing import Callable, NamedTuple

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import RedirectResponse
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from cattery.controllers.cats_controller import CatsController
from cattery.core.dependencies import get_cats_controller
from cattery.database.session import get_async_session
from cattery.utils.params import method_override, read_request_params

logger = logging.getLogger(__name__)


class Route(NamedTuple):
    method: str
    path: str
    endpoint: Callable
    name: str


# --------------------------------------------------------------------------
# Endpoints: unpack the HTTP request, delegate to the controller
# --------------------------------------------------------------------------

async def index(request: Request, controller: CatsController = Depends(get_cats_controller)):
    return await controller.index(request)


async def new_form(request: Request, controller: CatsController = Depends(get_cats_controller)):
    return await controller.new_form(request)


async def show(request: Request, cat_id: str, controller: CatsController = Depends(get_cats_controller)):
    return await controller.show(request, cat_id)


async def edit_form(request: Request, cat_id: str, controller: CatsController = Depends(get_cats_controller)):
    return await controller.edit_form(request, cat_id)


async def create(request: Request, controller: CatsController = Depends(get_cats_controller)):
    params = await read_request_params(request)
    return await controller.create(request, params)


async def update(request: Request, cat_id: str, controller: CatsController = Depends(get_cats_controller)):
    params = await read_request_params(request)
    return await controller.update(request, cat_id, params)


async def update_from_form(request: Request, cat_id: str, controller: CatsController = Depends(get_cats_controller)):
    params = await read_request_params(request)
    override = method_override(params)
    if override not in ("PATCH", "PUT"):
        logger.info("routes.method_not_allowed", extra={"path": request.url.path, "override": override})
        raise HTTPException(status_code=405, detail="Method Not Allowed", headers={"Allow": "GET, PATCH, PUT"})
    return await controller.update(request, cat_id, params)


async def root():
    return RedirectResponse("/cats", status_code=303)


async def health(db: AsyncSession = Depends(get_async_session)) -> dict:
    await db.execute(text("SELECT 1"))
    return {"status": "ok"}


ROUTES: tuple[Route, ...] = (
    Route("GET", "/", root, "root"),
    Route("GET", "/health", health, "health"),
    Route("GET", "/cats", index, "cats.index"),
    Route("GET", "/cats/new", new_form, "cats.new"),
    Route("GET", "/cats/{cat_id}", show, "cats.show"),
    Route("GET", "/cats/{cat_id}/edit", edit_form, "cats.edit"),
    Route("POST", "/cats", create, "cats.create"),
    Route("PATCH", "/cats/{cat_id}", update, "cats.update"),
    Route("PUT", "/cats/{cat_id}", update, "cats.replace"),
    Route("POST", "/cats/{cat_id}", update_from_form, "cats.update_from_form"),
)


def build_router(routes: tuple[Route, ...] = ROUTES) -> APIRouter:
    """Register `routes` on a new APIRouter, preserving table order."""
    router = APIRouter()
    for route in routes:
        # Page routes return ready-made responses (templates, redirects)
        router.add_api_route(
            route.path,
            route.endpoint,
            methods=[route.method],
            name=route.name,
            include_in_schema=route.name == "health",
        )
    return router
