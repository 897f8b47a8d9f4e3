"""Live Gallery — FastAPI Application.

This module is the single entry point for the web application.  It defines
the :func:`create_app` factory, the module-level ``app`` instance used by
uvicorn, all REST and WebSocket routes, and the ``main()`` CLI function that
launches the server.

Architecture
------------
- **Images** live in an external asset store (Cloudinary).  The app only
  keeps their display order, in memory.
- **State** (display order, parameter record, subscribers, sessions) is owned
  by one :class:`~livegallery.core.gallery.GalleryService` created per app and
  stored on ``app.state.gallery``.
- **Live updates**: viewers keep a WebSocket open on ``/ws`` and receive the
  text ``refresh`` after every successful mutation.
- **Management** endpoints require a session unlocked with the shared
  password via ``POST /authenticate``.  :class:`~livegallery.api.auth.SessionAuthMiddleware`
  rejects other sessions before the request body is read.

Endpoints
---------
========  ============================  ====================================
Method    Path                          Purpose
========  ============================  ====================================
GET       ``/images``                   Ordered gallery listing
POST      ``/upload``                   Upload an image (auth)
DELETE    ``/images/{public_id}``       Delete an image (auth)
POST      ``/images/move``              Reorder an image (auth)
POST      ``/update-params``            Replace pID/wnr (auth)
GET       ``/params``                   Current pID/wnr
POST      ``/authenticate``             Unlock the session
GET       ``/check-auth``               Session status
POST      ``/logout``                   Lock the session
GET       ``/health``                   Liveness
WS        ``/ws``                       Refresh notifications
========  ============================  ====================================

Usage
-----
CLI (installed entry point)::

    livegallery

Direct invocation::

    python -m livegallery.api.main
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import APIRouter, Depends, FastAPI, File, Path, Request, UploadFile, WebSocket
from fastapi.responses import JSONResponse
from starlette.middleware.sessions import SessionMiddleware

from livegallery import __version__
from livegallery.api.auth import SessionAuthMiddleware
from livegallery.api.errors import setup_exception_handlers
from livegallery.api.models import (
    PUBLIC_ID_PATTERN,
    AuthenticateRequest,
    AuthStatus,
    GalleryParams,
    HealthResponse,
    ImageOut,
    LogoutResponse,
    MoveRequest,
)
from livegallery.api.rate_limit import RateLimitMiddleware
from livegallery.core.asset_store import AssetStore, CloudinaryAssetStore
from livegallery.core.config import GalleryConfig, config
from livegallery.core.gallery import GalleryService

logger = logging.getLogger(__name__)

SESSION_COOKIE = "livegallery_session"

router = APIRouter()


# ---------------------------------------------------------------------------
# Dependencies.
# ---------------------------------------------------------------------------


def get_service(request: Request) -> GalleryService:
    return request.app.state.gallery


# ---------------------------------------------------------------------------
# Gallery routes.
# ---------------------------------------------------------------------------


@router.get("/images", response_model=list[ImageOut])
async def list_images(service: GalleryService = Depends(get_service)) -> list[dict]:
    """Return every image in display order."""
    return [asset.to_dict() for asset in await service.list_images()]


@router.post("/upload", response_model=ImageOut)
async def upload_image(
    image: UploadFile = File(...),
    service: GalleryService = Depends(get_service),
) -> dict:
    """Upload one image from the multipart field ``image``.

    At most ``max_upload_bytes + 1`` bytes are read, which is enough to tell
    an oversize upload apart without buffering all of it.

    Raises:
        InputValidationError: 400 for a missing, empty, non-image, or
            undecodable upload.
        PayloadTooLargeError: 413 for an upload over the size limit.
        UpstreamError: 500 if the asset store rejects the upload.
    """
    data = await image.read(service.settings.max_upload_bytes + 1)
    asset = await service.upload_image(data, image.content_type)
    return asset.to_dict()


@router.delete("/images/{public_id}", response_model=list[ImageOut])
async def delete_image(
    public_id: str = Path(..., pattern=PUBLIC_ID_PATTERN),
    service: GalleryService = Depends(get_service),
) -> list[dict]:
    """Delete an image and return the refreshed listing."""
    return [asset.to_dict() for asset in await service.delete_image(public_id)]


@router.post("/images/move", response_model=list[ImageOut])
async def move_image(req: MoveRequest, service: GalleryService = Depends(get_service)) -> list[dict]:
    """Move the image at ``fromIndex`` to ``toIndex`` and return the listing.

    Raises:
        OrderIndexError: 400 if either index is out of range.
    """
    assets = await service.move_image(req.fromIndex, req.toIndex)
    return [asset.to_dict() for asset in assets]


@router.post("/update-params", response_model=GalleryParams)
async def update_params(req: GalleryParams, service: GalleryService = Depends(get_service)) -> dict:
    return await service.update_params(req.pID, req.wnr)


@router.get("/params", response_model=GalleryParams)
async def get_params(service: GalleryService = Depends(get_service)) -> dict:
    return service.get_params()


# ---------------------------------------------------------------------------
# Session routes.
# ---------------------------------------------------------------------------


@router.post("/authenticate", response_model=AuthStatus)
async def authenticate(
    req: AuthenticateRequest,
    request: Request,
    service: GalleryService = Depends(get_service),
):
    """Unlock the caller's session with the shared password.

    Returns ``{"authenticated": true}``, or the same envelope with ``false``
    and status 401 on a wrong password.
    """
    if service.gate.authenticate(request.session, req.password):
        return {"authenticated": True}
    return JSONResponse(status_code=401, content={"authenticated": False})


@router.get("/check-auth", response_model=AuthStatus)
async def check_auth(request: Request, service: GalleryService = Depends(get_service)) -> dict:
    return {"authenticated": service.gate.is_authenticated(request.session)}


@router.post("/logout", response_model=LogoutResponse)
async def logout(request: Request, service: GalleryService = Depends(get_service)) -> dict:
    service.gate.logout(request.session)
    return {"success": True}


@router.get("/health", response_model=HealthResponse)
async def health(request: Request, service: GalleryService = Depends(get_service)) -> dict:
    return {
        "status": "ok",
        "version": __version__,
        "subscribers": service.broadcaster.subscriber_count,
        "uptime_seconds": round(time.monotonic() - request.app.state.started_at, 3),
    }


# ---------------------------------------------------------------------------
# Live updates.
# ---------------------------------------------------------------------------


@router.websocket("/ws")
async def live_updates(websocket: WebSocket) -> None:
    """Hold a viewer connection open and register it for refresh pushes.

    Incoming messages carry no meaning and are discarded.
    """
    service: GalleryService = websocket.app.state.gallery
    await websocket.accept()
    await service.broadcaster.subscribe(websocket)
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
    finally:
        await service.broadcaster.unsubscribe(websocket)


# ---------------------------------------------------------------------------
# Application factory.
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Log startup and shutdown of the gallery service."""
    service: GalleryService = app.state.gallery
    logger.info(
        f"Live Gallery {__version__} ready "
        f"(max upload {service.settings.max_upload_bytes} bytes, "
        f"listing cap {service.settings.list_max_results})"
    )

    yield  # Application runs here.

    logger.info(
        f"Live Gallery shutting down with {service.broadcaster.subscriber_count} "
        f"live subscriber(s); display order is not persisted."
    )


def create_app(settings: GalleryConfig | None = None, store: AssetStore | None = None) -> FastAPI:
    """Build a fully wired application.

    Args:
        settings: Configuration; defaults to the global ``config``.
        store: Asset store; defaults to a :class:`CloudinaryAssetStore`
            built from *settings*.

    Returns:
        The FastAPI application with its own :class:`GalleryService`.
    """
    settings = settings or config
    store = store or CloudinaryAssetStore(settings)

    app = FastAPI(
        title="Live Gallery",
        description="Image gallery management with live-updating viewers.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.gallery = GalleryService(settings, store)
    app.state.started_at = time.monotonic()

    # Last added is outermost: rate limiting, then sessions, then the
    # management gate, all before routing reads the body.
    app.add_middleware(SessionAuthMiddleware)
    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.session_secret,
        session_cookie=SESSION_COOKIE,
        max_age=settings.session_ttl_seconds,
        same_site="lax",
    )
    if settings.rate_limit_enabled:
        app.add_middleware(
            RateLimitMiddleware,
            window_seconds=settings.rate_limit_window_seconds,
            general_limit=settings.rate_limit_requests,
            upload_limit=settings.upload_rate_limit_requests,
        )

    setup_exception_handlers(app)
    app.include_router(router)
    return app


app = create_app()


# ---------------------------------------------------------------------------
# CLI entry point.
# ---------------------------------------------------------------------------


def main() -> None:
    """Launch the uvicorn ASGI server.

    Reads host, port and log level from :data:`~livegallery.core.config.config`
    (``LIVEGALLERY_SERVER_HOST``, ``LIVEGALLERY_SERVER_PORT``,
    ``LIVEGALLERY_LOG_LEVEL``).  Defaults to ``0.0.0.0:3000``.

    This function is registered as the ``livegallery`` console script in
    ``pyproject.toml``.
    """
    import uvicorn

    logging.basicConfig(
        level=config.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(
        "livegallery.api.main:app",
        host=config.server_host,
        port=config.server_port,
        log_level=config.log_level,
        reload=False,
    )


if __name__ == "__main__":
    main()
