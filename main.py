"""
Main API module for GoLinks.

Responsibilities:
    - Redirect short codes to their target URLs (301) and count clicks
    - Expose the link management API under /api (create, list, delete)
    - Provide a public summary of all links at /

Architecture:
    - App Factory pattern (create_app) for test isolation and DI.
    - In-memory store by default; Postgres selected via GOLINKS_STORAGE_BACKEND.
    - LinkDirectory owns the business rules; RedirectDispatcher owns the
      redirect and the fire-and-forget click update.
    - Routes only translate directory errors into HTTP status codes.
"""

import logging
import re
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, FastAPI, HTTPException, Path
from fastapi.responses import PlainTextResponse, RedirectResponse, Response

from golinks.config import SHORT_CODE_MAX_LENGTH, settings
from golinks.directory.generator import BaseCodeGenerator
from golinks.directory.link_directory import LinkDirectory
from golinks.dispatch.dispatcher import RedirectDispatcher
from golinks.errors import AlreadyExists, GenerationExhausted, NotFound, StoreUnavailable
from golinks.schemas import SHORT_CODE_PATTERN, CreateLinkRequest, LinkOut, MessageOut
from golinks.storage.base import BaseLinkStore
from golinks.storage.storage_factory import get_storage


def _short_code_param(description: str = "The short code."):
    return Path(
        ...,
        min_length=1,
        max_length=SHORT_CODE_MAX_LENGTH,
        pattern=SHORT_CODE_PATTERN,
        description=description,
    )


def create_app(
    store: Optional[BaseLinkStore] = None,
    generator: Optional[BaseCodeGenerator] = None,
) -> FastAPI:
    """
    Factory function to build and configure a new FastAPI app instance.

    Args:
        store (Optional[BaseLinkStore]): Link store to use. Defaults to the
            backend chosen by get_storage().
        generator (Optional[BaseCodeGenerator]): Code generator override (tests).

    Returns:
        FastAPI: A fully configured application with its own directory and
                 dispatcher, exposed on `app.state` for tests.
    """
    log = logging.getLogger("golinks")

    # basic console logging (optional)
    if not logging.getLogger().handlers:
        logging.basicConfig(level=settings.LOG_LEVEL)

    # ----------------------------------------------------------------
    # Per-app instances (isolated for tests, swappable for production)
    # ----------------------------------------------------------------
    store = store if store is not None else get_storage()
    directory = LinkDirectory(store=store, generator=generator)
    dispatcher = RedirectDispatcher(directory)
    log.info("GoLinks storage backend: %s", type(store).__name__)

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        yield
        # Let queued click updates land before the process exits.
        dispatcher.shutdown(wait=True)

    app = FastAPI(
        title="golinks API",
        version="1.0.0",
        description="Short code to URL directory with click counting",
        docs_url="/api/ui",
        openapi_url="/api/openapi.json",
        redoc_url=None,
        lifespan=lifespan,
    )
    app.state.store = store
    app.state.directory = directory
    app.state.dispatcher = dispatcher

    api = APIRouter(prefix="/api", tags=["API Links"])

    # ----------------------------------------------------------------
    # Management API
    # ----------------------------------------------------------------
    @api.get("/links", response_model=List[LinkOut], summary="List all short links.")
    def list_links() -> List[LinkOut]:
        try:
            links = directory.list_all()
        except StoreUnavailable:
            raise HTTPException(status_code=500, detail="Failed to retrieve links")
        return [LinkOut.model_validate(link) for link in links]

    @api.post("/links", response_model=LinkOut, status_code=201, summary="Create a new short link.")
    def create_link(req: CreateLinkRequest) -> LinkOut:
        """
        Create a short link for `target_url`.

        Raises:
            HTTPException: 409 if the custom code is taken, 500 if no unique
                code could be generated or the store failed.
        """
        try:
            link = directory.create(req.target_url, req.short_code)
        except AlreadyExists as exc:
            raise HTTPException(status_code=409, detail=str(exc))
        except GenerationExhausted:
            raise HTTPException(status_code=500, detail="Failed to generate a unique short code.")
        except StoreUnavailable:
            raise HTTPException(status_code=500, detail="Failed to create link")
        return LinkOut.model_validate(link)

    @api.delete("/links/{short_code}", response_model=MessageOut, summary="Delete a short link.")
    def delete_link(short_code: str = _short_code_param()) -> MessageOut:
        try:
            directory.remove(short_code)
        except NotFound:
            raise HTTPException(status_code=404, detail="Short code not found")
        except StoreUnavailable:
            raise HTTPException(status_code=500, detail="Failed to delete link")
        return MessageOut(message=f"Link '{short_code}' deleted successfully")

    app.include_router(api)

    # ----------------------------------------------------------------
    # Public routes
    # ----------------------------------------------------------------
    @app.get("/health")
    def health():
        return {"status": "ok"}

    @app.get("/")
    def index() -> Dict[str, Any]:
        """Public summary of every link with its click count."""
        try:
            links = directory.list_all()
        except StoreUnavailable:
            raise HTTPException(status_code=500, detail="Failed to retrieve links")

        if not links:
            return {
                "message": "Welcome to GoLinks! No links created yet. "
                           "Use the API (POST to /api/links) to create one or manage links."
            }
        return {
            "message": "Available GoLinks:",
            "links": [
                {"short": f"/{link.short_code}", "long": link.target_url, "clicks": link.click_count}
                for link in links
            ],
            "api_documentation": app.docs_url,
        }

    # Registered last so /health and /api/* take precedence over the catch-all.
    @app.get("/{short_code}", name="redirect_link")
    def redirect_link(short_code: str) -> Response:
        # Anything that cannot be a short code (e.g. /favicon.ico) is just a miss.
        if len(short_code) > SHORT_CODE_MAX_LENGTH or not re.fullmatch(SHORT_CODE_PATTERN, short_code):
            return PlainTextResponse("Link not found.", status_code=404)
        try:
            target = dispatcher.resolve(short_code)
        except StoreUnavailable:
            return PlainTextResponse("Error redirecting link.", status_code=500)
        if target is None:
            return PlainTextResponse("Link not found.", status_code=404)
        return RedirectResponse(url=target.target, status_code=target.status_code)

    return app


# `uvicorn main:app --reload` and `from main import app` continue to work.
app = create_app()
