"""
assettrack/application.py

Application factory: one FastAPI app per call, each with its own registry,
session table and encoder. Importing this module has no side effects;
main.py builds the served instance and configures logging.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Union

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles

try:
    from assettrack import config
    from assettrack.errors import AdminRequired, AssetNotFound, AssetTrackError
    from assettrack.qr import QRCodeEncoder
    from assettrack.routes_admin import router as admin_router
    from assettrack.routes_assets import router as assets_router
    from assettrack.schemas_assets import HealthResponse
    from assettrack.state import build_state
    from assettrack.templating import STATIC_DIR, render
except ModuleNotFoundError:
    import config
    from errors import AdminRequired, AssetNotFound, AssetTrackError
    from qr import QRCodeEncoder
    from routes_admin import router as admin_router
    from routes_assets import router as assets_router
    from schemas_assets import HealthResponse
    from state import build_state
    from templating import STATIC_DIR, render

logger = logging.getLogger(__name__)


# ---------------------------------------------------------
# Error handlers
# ---------------------------------------------------------
async def handle_admin_required(request: Request, exc: AdminRequired):
    return RedirectResponse(url="/", status_code=303)


async def handle_asset_error(request: Request, exc: AssetTrackError):
    if exc.status_code >= 500:
        logger.error(f"[ERROR] {request.method} {request.url.path}: {exc.message}")
    else:
        logger.info(f"[ERROR] {request.method} {request.url.path}: {exc.status_code} {exc.message}")

    if request.url.path.startswith("/api/"):
        if isinstance(exc, AssetNotFound):
            body = {"error": "Asset not found", "id": exc.asset_name}
        else:
            body = {"error": exc.title, "detail": exc.message}
        return JSONResponse(body, status_code=exc.status_code)

    return render(request, "error.html", {"error": exc}, status_code=exc.status_code)


# ---------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------
def create_app(
    data_file: Union[str, Path] = config.DATA_FILE,
    admin_id: str = config.ADMIN_ID,
    admin_password: str = config.ADMIN_PASSWORD,
    base_url: Optional[str] = config.BASE_URL,
    bcrypt_rounds: int = config.BCRYPT_ROUNDS,
    asset_session_ttl: int = config.ASSET_SESSION_TTL_SECONDS,
    encoder: Optional[QRCodeEncoder] = None,
) -> FastAPI:
    """
    Build an application with its own registry, session table and encoder.

    The registry snapshot is loaded here, before the app can serve anything.
    """
    app = FastAPI(title="Asset QR Tracker", version="0.1")

    # CORS open for handheld scanners fetching /api/asset from other origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    app.state.tracker = build_state(
        data_file=data_file,
        admin_id=admin_id,
        admin_password=admin_password,
        base_url=base_url,
        bcrypt_rounds=bcrypt_rounds,
        asset_session_ttl=asset_session_ttl,
        encoder=encoder,
    )

    app.add_exception_handler(AdminRequired, handle_admin_required)
    app.add_exception_handler(AssetTrackError, handle_asset_error)

    app.include_router(admin_router)
    app.include_router(assets_router)
    app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")

    @app.get("/health", response_model=HealthResponse)
    def health(request: Request) -> HealthResponse:
        registry = request.app.state.tracker.registry
        status = "degraded" if registry.persistence_degraded else "ok"
        return HealthResponse(status=status, assets=len(registry))

    return app
