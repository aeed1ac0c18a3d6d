"""
Resource handler for cats.

Each public coroutine is one HTTP action. Reads render a template; successful
writes commit the session and redirect (303 See Other) to the cat's page.
A write rejected by validation is not committed: the form is rendered again
with the submitted values and the error messages, with status 422.

Lookups that miss raise `NotFoundError`, which the application's exception
handlers turn into a 404 response.
"""

import logging
from typing import Any, Literal, Mapping

from fastapi.templating import Jinja2Templates
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.requests import Request
from starlette.responses import RedirectResponse, Response

from cattery.exceptions.base import ValidationFailedError
from cattery.models.cat import Cat
from cattery.repositories.cat_repository import CatRepository
from cattery.schemas.cat import CatCreateParams, CatUpdateParams
from cattery.utils.params import require_param
from cattery.validators.model_validators import column_values

logger = logging.getLogger(__name__)


def cat_path(cat: Cat) -> str:
    """Canonical URL of a persisted cat."""
    return f"/cats/{cat.id}"


class CatsController:
    """
    Handles the index/show/new/create/edit/update actions for the Cat resource.

    A controller is built per request; it holds no state between requests.
    """

    def __init__(
        self,
        db: AsyncSession,
        templates: Jinja2Templates,
        *,
        unpermitted_params: Literal["drop", "raise"] = "drop",
    ) -> None:
        """
        Args:
            db: The request's async database session.
            templates: Jinja2 template renderer.
            unpermitted_params: "drop" silently discards keys outside an action's
                allow-list; "raise" rejects the request with a 422.
        """
        self.db = db
        self.cats = CatRepository(db)
        self.templates = templates
        self.unpermitted_params = unpermitted_params

    def _render(self, request: Request, template: str, status_code: int = 200, **context) -> Response:
        return self.templates.TemplateResponse(request, template, context, status_code=status_code)

    def _redirect_to(self, cat: Cat) -> RedirectResponse:
        return RedirectResponse(cat_path(cat), status_code=303)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def index(self, request: Request) -> Response:
        cats = await self.cats.list_cats()
        return self._render(request, "cats/index.html", cats=cats)

    async def show(self, request: Request, cat_id: Any) -> Response:
        cat = await self.cats.get_by_id_or_raise(cat_id)
        return self._render(request, "cats/show.html", cat=cat)

    async def new_form(self, request: Request) -> Response:
        return self._render(request, "cats/new.html", cat=Cat(), errors=[])

    async def edit_form(self, request: Request, cat_id: Any) -> Response:
        cat = await self.cats.get_by_id_or_raise(cat_id)
        return self._render(request, "cats/edit.html", cat=cat, errors=[])

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def create(self, request: Request, raw_params: Mapping[str, Any]) -> Response:
        """
        Create a cat from `raw_params["cat"]`, accepting only `name` and `color`.

        Raises:
            ParameterMissingError: if `cat` is absent or empty (400).
            InvalidFieldError: if unpermitted keys are sent in "raise" mode (422).
        """
        cat_params = require_param(raw_params, "cat")

        try:
            fields = CatCreateParams.from_params(
                cat_params, on_unpermitted=self.unpermitted_params).to_fields()
            cat = await self.cats.create_cat(**fields)
        except ValidationFailedError as exc:
            logger.info("cats.create.rejected", extra={"invalid_fields": exc.fields})
            submitted = {k: v for k, v in cat_params.items() if k in CatCreateParams.model_fields}
            return self._render(
                request,
                "cats/new.html",
                status_code=422,
                cat=Cat(**{k: v for k, v in submitted.items() if isinstance(v, str)}),
                errors=exc.messages(),
            )

        await self.db.commit()
        logger.info("cats.create.success", extra={"cat_id": cat.id})
        return self._redirect_to(cat)

    async def update(self, request: Request, cat_id: Any, raw_params: Mapping[str, Any]) -> Response:
        """
        Change a cat's color from `raw_params["cat"]`; any other key is never applied.

        The cat is looked up first, so an unknown id is a 404 whatever the body holds.

        Raises:
            NotFoundError: if no cat has this id (404).
            ParameterMissingError: if `cat` is absent or empty (400).
            InvalidFieldError: if unpermitted keys are sent in "raise" mode (422).
        """
        cat = await self.cats.get_by_id_or_raise(cat_id)
        cat_params = require_param(raw_params, "cat")
        stored = column_values(cat)

        try:
            fields = CatUpdateParams.from_params(
                cat_params, on_unpermitted=self.unpermitted_params).to_fields()
            cat = await self.cats.update_entity(cat, **fields)
        except ValidationFailedError as exc:
            logger.info("cats.update.rejected", extra={"cat_id": stored["id"], "invalid_fields": exc.fields})
            submitted = cat_params.get("color")
            if isinstance(submitted, str):
                stored["color"] = submitted
            return self._render(
                request,
                "cats/edit.html",
                status_code=422,
                cat=Cat(**stored),
                errors=exc.messages(),
            )

        await self.db.commit()
        logger.info("cats.update.success", extra={"cat_id": cat.id})
        return self._redirect_to(cat)
