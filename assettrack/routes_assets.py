"""
assettrack/routes_assets.py

Asset-facing endpoints: the detail view reached by scanning a code, the
secret challenge, per-asset QR pages and the JSON record API.

Security guarantees:
- Detail views with ?scan=true challenge anonymous callers for the asset's
  secret; admins and callers holding a session verified for THIS asset
  pass straight through and a scan event is recorded
- Detail views without the flag are informational and never record
- A successful verification only issues an asset-scoped session and
  redirects; the redirected view is what records the scan
- Per-asset QR pages and PNGs are public; they only encode the public
  scan URL. The bulk export (/qr/all) stays admin-only
- Responses never include the secret hash
"""

from __future__ import annotations

import logging
from typing import Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, Form, Query, Request, Response
from fastapi.responses import FileResponse, HTMLResponse, RedirectResponse

try:
    from assettrack.auth_context import get_access_context, get_tracker, set_asset_cookie
    from assettrack.authz import AccessContext, Decision, Operation, decide, detail_operation
    from assettrack.errors import Unauthorized
    from assettrack.qr import asset_path, asset_scan_url
    from assettrack.routes_admin import base_url_for
    from assettrack.schemas_assets import AssetNotFoundResponse, AssetResponse
    from assettrack.state import TrackerState
    from assettrack.templating import STATIC_DIR, render
except ModuleNotFoundError:
    from auth_context import get_access_context, get_tracker, set_asset_cookie
    from authz import AccessContext, Decision, Operation, decide, detail_operation
    from errors import Unauthorized
    from qr import asset_path, asset_scan_url
    from routes_admin import base_url_for
    from schemas_assets import AssetNotFoundResponse, AssetResponse
    from state import TrackerState
    from templating import STATIC_DIR, render

logger = logging.getLogger(__name__)

router = APIRouter(tags=["assets"])


# ---------------------------------------------------------
# Detail view + secret challenge
# ---------------------------------------------------------
@router.get("/asset/{name}", response_class=HTMLResponse)
def view_asset(
    request: Request,
    name: str,
    scan: Optional[str] = Query(None, description="'true' when the view comes from a scanned code"),
    ctx: AccessContext = Depends(get_access_context),
    tracker: TrackerState = Depends(get_tracker),
):
    """
    Asset detail page.

    Raises:
        AssetNotFound (404): unknown asset
    """
    scan_flag = scan == "true"
    logger.info(f"[ASSETS] Accessing asset '{name}', scan={scan_flag}, state={ctx.state.value}")

    asset = tracker.registry.require(name)
    decision = decide(ctx, detail_operation(scan_flag))

    if decision is Decision.CHALLENGE:
        logger.info(f"[ASSETS] Asset '{name}' requires secret verification")
        return render(request, "challenge.html", {"asset": asset})

    if tracker.recorder.record_if_qualified(request, name, decision) is not None:
        asset = tracker.registry.require(name)

    return render(request, "asset.html", {"asset": asset, "ctx": ctx, "scan": scan_flag})


@router.post("/asset/verify/{name}", response_class=HTMLResponse)
def verify_asset(
    request: Request,
    name: str,
    password: str = Form(""),
    ctx: AccessContext = Depends(get_access_context),
    tracker: TrackerState = Depends(get_tracker),
):
    """
    Check a submitted asset secret.

    Success: issue an asset-verified session scoped to this asset and
    redirect (303) to the scan-flagged detail view.
    Failure: re-render the challenge (400 when blank, 401 when wrong).

    Raises:
        AssetNotFound (404): unknown asset
    """
    asset = tracker.registry.require(name)
    if decide(ctx, Operation.VERIFY_SECRET) is not Decision.VERIFY:
        raise Unauthorized("Secret verification is not available")

    if not password:
        return render(request, "challenge.html", {"asset": asset, "error": "Please enter the asset password"}, status_code=400)

    if not tracker.credentials.verify_secret(password, asset.secret_hash):
        logger.info(f"[AUTH] Asset verification failed for '{name}': incorrect password")
        return render(request, "challenge.html", {"asset": asset, "error": "Incorrect password"}, status_code=401)

    logger.info(f"[AUTH] Asset '{name}' verified successfully")
    token = tracker.sessions.create_asset_session(name)
    response = RedirectResponse(url=f"{asset_path(name)}?scan=true", status_code=303)
    set_asset_cookie(response, name, token)
    return response


# ---------------------------------------------------------
# QR codes (public: a code only encodes the public scan URL)
# ---------------------------------------------------------
@router.get("/qr/{name}", response_class=HTMLResponse)
async def qr_page(
    request: Request,
    name: str,
    ctx: AccessContext = Depends(get_access_context),
    tracker: TrackerState = Depends(get_tracker),
):
    """
    Printable QR page for one asset.

    Raises:
        AssetNotFound (404): unknown asset
        EncodingFailure (500): QR rendering failed
    """
    asset = tracker.registry.require(name)
    url = asset_scan_url(base_url_for(request, tracker), asset.name)
    qr_data_uri = await tracker.encoder.encode_data_uri(url)
    return render(request, "qr.html", {"asset": asset, "url": url, "qr_data_uri": qr_data_uri, "ctx": ctx})


@router.get("/qr/{name}/download")
async def qr_download(request: Request, name: str, tracker: TrackerState = Depends(get_tracker)):
    asset = tracker.registry.require(name)
    url = asset_scan_url(base_url_for(request, tracker), asset.name)
    png = await tracker.encoder.encode_png(url)
    logger.info(f"[QR] Downloading QR for asset '{name}', URL: {url}")
    return Response(
        content=png,
        media_type="image/png",
        headers={"Content-Disposition": f'attachment; filename="qr-{quote(asset.name, safe="")}.png"'},
    )


# ---------------------------------------------------------
# Browser scanner
# ---------------------------------------------------------
@router.get("/scan", response_class=HTMLResponse)
def scan_page(request: Request):
    """Camera scanner page; decoding happens client-side."""
    return render(request, "scan.html")


@router.get("/sw.js", include_in_schema=False)
def service_worker():
    # Served from the root so the worker's scope covers /scan
    return FileResponse(STATIC_DIR / "sw.js", media_type="application/javascript")


# ---------------------------------------------------------
# JSON API
# ---------------------------------------------------------
@router.get(
    "/api/asset/{name}",
    response_model=AssetResponse,
    responses={404: {"model": AssetNotFoundResponse}},
)
def api_asset(name: str, tracker: TrackerState = Depends(get_tracker)) -> AssetResponse:
    """Machine-readable asset record (no secret hash)."""
    return AssetResponse.from_record(tracker.registry.require(name))
