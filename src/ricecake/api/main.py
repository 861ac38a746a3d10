"""RiceCake — FastAPI Application.

This module defines the FastAPI application, all REST API routes, and the
``main()`` CLI function that launches the uvicorn server.

Architecture
------------
- **Configuration** comes from :data:`ricecake.core.config.config`.
- **All work** is delegated to :class:`~ricecake.core.tray_service.TrayService`,
  created in the lifespan handler and stored on ``app.state``.
- **Generated images** are served by FastAPI's ``StaticFiles`` under
  ``/uploads``.
- **Errors** from the core are mapped to JSON bodies of the form
  ``{"success": false, "error": "<message>"}``.

Route handlers are plain ``def`` functions: tray generation blocks on the
image provider, so FastAPI runs them in its worker threadpool.

Endpoints
---------
========  ================================  ================================
Method    Path                              Purpose
========  ================================  ================================
GET       ``/health``                       Liveness check
POST      ``/api/menu/validate``            Validate and normalise items
GET       ``/api/menu/templates``           Tray layout templates
GET       ``/api/menu/history``             Recent trays (in-process only)
POST      ``/api/image/generate``           Generate (or fetch cached) tray
POST      ``/api/image/preview``            Generate a single dish photo
GET       ``/api/image/download/{id}``      Download ``<id>.png``
POST      ``/api/image/enhance``            Apply an enhancement filter
GET       ``/api/image/stats``              Match cache statistics
========  ================================  ================================

Usage
-----
CLI (installed entry point)::

    ricecake

Direct invocation::

    python -m ricecake.api.main
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from ricecake import __version__
from ricecake.api.models import (
    EnhanceRequest,
    GenerateTrayRequest,
    PreviewRequest,
    ValidateMenuRequest,
)
from ricecake.core.compositor import TRAY_TEMPLATES
from ricecake.core.config import RiceCakeConfig, config
from ricecake.core.errors import (
    ImageNotFoundError,
    ImageProcessingError,
    ProviderError,
    RiceCakeError,
    TrayGenerationError,
)
from ricecake.core.models import MENU_CATEGORIES
from ricecake.core.tray_service import TrayService

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Core exception type → HTTP status.  Checked in order, so
# subclasses must come before their bases.
# ---------------------------------------------------------------------------
_ERROR_STATUS: tuple[tuple[type[RiceCakeError], int], ...] = (
    (ImageNotFoundError, 404),
    (ImageProcessingError, 422),
    (ProviderError, 503),
    (TrayGenerationError, 500),
)


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


def _service(request: Request) -> TrayService:
    return request.app.state.tray_service


def create_app(
    app_config: RiceCakeConfig | None = None,
    service: TrayService | None = None,
) -> FastAPI:
    """Build the FastAPI application.

    Args:
        app_config: Configuration; defaults to the global instance.
        service: Pre-built service (tests); built from *app_config* at
            startup when omitted.

    Returns:
        Configured :class:`FastAPI` instance.
    """
    app_config = app_config if app_config is not None else config

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Create the tray service on startup."""
        app.state.tray_service = (
            service if service is not None else TrayService.from_config(app_config)
        )
        logger.info("TrayService initialised (uploads=%s).", app_config.uploads_dir)

        yield

        logger.info("RiceCake shutting down.")

    app = FastAPI(
        title="RiceCake",
        description="Cafeteria tray image generation from menu items.",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.mount(
        "/uploads",
        StaticFiles(directory=str(app_config.uploads_dir)),
        name="uploads",
    )

    # -----------------------------------------------------------------------
    # Exception handlers.
    # -----------------------------------------------------------------------

    @app.exception_handler(RiceCakeError)
    async def handle_core_error(request: Request, exc: RiceCakeError) -> JSONResponse:
        status_code = next(
            (status for error_type, status in _ERROR_STATUS if isinstance(exc, error_type)),
            500,
        )
        logger.error("%s %s failed (%d): %s", request.method, request.url.path, status_code, exc)
        return _error_response(status_code, str(exc))

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return _error_response(exc.status_code, str(exc.detail))

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        first = exc.errors()[0] if exc.errors() else {}
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = first.get("msg", "Invalid request")
        return _error_response(400, f"{location}: {message}" if location else message)

    # -----------------------------------------------------------------------
    # Routes.
    # -----------------------------------------------------------------------

    @app.get("/health")
    def health() -> dict:
        """Liveness check."""
        return {"status": "OK", "timestamp": datetime.now(timezone.utc).isoformat()}

    @app.post("/api/menu/validate")
    def validate_menu(req: ValidateMenuRequest) -> dict:
        """Validate and normalise menu items.

        Missing ids are generated as ``item_<ms>_<index>``; names and
        descriptions are trimmed.

        Raises:
            HTTPException: 400 for an empty list, a missing name/category, or
                an unknown category.
        """
        if not req.items:
            raise HTTPException(status_code=400, detail="Menu items are required.")

        stamp = int(time.time() * 1000)
        validated: list[dict] = []
        for index, item in enumerate(req.items):
            name = (item.name or "").strip()
            if not name or not item.category:
                raise HTTPException(
                    status_code=400,
                    detail=f"Item {index + 1}: name and category are required.",
                )
            if item.category not in MENU_CATEGORIES:
                raise HTTPException(
                    status_code=400,
                    detail=f"Item {index + 1}: invalid category '{item.category}'.",
                )
            validated.append(
                {
                    "id": item.id or f"item_{stamp}_{index}",
                    "name": name,
                    "category": item.category,
                    "description": item.description.strip() if item.description else None,
                }
            )

        return {
            "success": True,
            "data": {
                "items": validated,
                "total_items": len(validated),
                "categories": {
                    category: sum(1 for item in validated if item["category"] == category)
                    for category in MENU_CATEGORIES
                },
            },
        }

    @app.get("/api/menu/templates")
    def list_templates() -> dict:
        """Return the available tray layouts."""
        data = [
            {
                "id": template.id,
                "name": template.name,
                "description": template.description,
                "sections": [
                    {
                        "id": section.id,
                        "name": section.name,
                        "category": section.category,
                        "max_items": section.max_items,
                        "position": {
                            "x": section.rect.x,
                            "y": section.rect.y,
                            "width": section.rect.width,
                            "height": section.rect.height,
                        },
                    }
                    for section in template.sections
                ],
            }
            for template in TRAY_TEMPLATES.values()
        ]
        return {"success": True, "data": data}

    @app.get("/api/menu/history")
    def menu_history(request: Request) -> dict:
        """Return recent trays, newest first (lost on restart)."""
        return {"success": True, "data": _service(request).recent_history()}

    @app.post("/api/image/generate")
    def generate_tray(req: GenerateTrayRequest, request: Request) -> dict:
        """Generate a tray image, or return the cached one.

        Raises:
            HTTPException: 400 if no items are given.
            TrayGenerationError: Mapped to 500 when even the mock tray fails.
        """
        if not req.items:
            raise HTTPException(status_code=400, detail="Menu items are required.")

        result = _service(request).generate_tray(req.items, req.template_id)
        message = (
            "Found a cached tray image." if result.cached else "Generated a new tray image."
        )
        return {
            "success": result.success,
            "data": {
                "image_url": result.image_url,
                "cached": result.cached,
                "mock": result.mock,
                "confidence": result.confidence,
                "message": message,
            },
        }

    @app.post("/api/image/preview")
    def preview_food(req: PreviewRequest, request: Request) -> dict:
        """Generate a single dish photo.

        Raises:
            HTTPException: 400 if the name or category is missing.
        """
        if not req.item_name.strip() or not req.category.strip():
            raise HTTPException(status_code=400, detail="item_name and category are required.")

        result = _service(request).preview_food(req.item_name.strip(), req.category.strip())
        return {
            "success": result.success,
            "data": {
                "image_url": result.image_url,
                "item_name": req.item_name,
                "category": req.category,
            },
        }

    @app.get("/api/image/download/{image_id}")
    def download_image(image_id: str, request: Request) -> FileResponse:
        """Download a stored image as ``ricecake_<image_id>.png``.

        Raises:
            HTTPException: 404 if the image does not exist.
        """
        path = _service(request).find_cached_path(image_id)
        if path is None:
            raise HTTPException(status_code=404, detail="Image not found.")
        return FileResponse(path, media_type="image/png", filename=f"ricecake_{image_id}.png")

    @app.post("/api/image/enhance")
    def enhance_image(req: EnhanceRequest, request: Request) -> dict:
        """Apply an enhancement filter to a stored image.

        Raises:
            HTTPException: 400 if ``image_url`` is missing.
        """
        if not req.image_url:
            raise HTTPException(status_code=400, detail="image_url is required.")

        result = _service(request).enhance(req.image_url, req.enhancement_type)
        return {
            "success": result.success,
            "data": {
                "original_url": req.image_url,
                "enhanced_url": result.image_url,
                "enhancement_type": req.enhancement_type,
            },
        }

    @app.get("/api/image/stats")
    def cache_stats(request: Request) -> dict:
        """Return match cache statistics."""
        return {"success": True, "data": _service(request).get_stats()}

    return app


app = create_app()


# ---------------------------------------------------------------------------
# CLI entry point.
# ---------------------------------------------------------------------------


def main() -> None:
    """Launch the uvicorn ASGI server.

    Reads host and port from :data:`~ricecake.core.config.config`
    (``RICECAKE_SERVER_HOST`` / ``RICECAKE_SERVER_PORT``).  Registered as the
    ``ricecake`` console script in ``pyproject.toml``.
    """
    import uvicorn

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(
        "ricecake.api.main:app",
        host=config.server_host,
        port=config.server_port,
        reload=False,
    )


if __name__ == "__main__":
    main()
