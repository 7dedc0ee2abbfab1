"""
assettrack/routes_admin.py

Administrator surface: login/logout, asset list, create, delete, secret
change and bulk QR export.

Security guarantees:
- Every registry-mutating route depends on require_admin
  (Operation.MANAGE_ASSETS); anyone else is redirected to the login page
- The admin pair is checked by the Credential Store, never here
- Deleting an asset or changing its secret revokes the asset-verified
  sessions scoped to it
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool

try:
    from assettrack.auth_context import (
        CredentialCarrier,
        clear_admin_cookie,
        get_access_context,
        get_tracker,
        set_admin_cookie,
    )
    from assettrack.authz import AccessContext
    from assettrack.dependencies import require_admin
    from assettrack.errors import AssetConflict, EncodingFailure, InvalidInput
    from assettrack.qr import asset_scan_url, resolve_base_url
    from assettrack.schemas_assets import AssetCreateRequest
    from assettrack.state import TrackerState
    from assettrack.templating import render
except ModuleNotFoundError:
    from auth_context import (
        CredentialCarrier,
        clear_admin_cookie,
        get_access_context,
        get_tracker,
        set_admin_cookie,
    )
    from authz import AccessContext
    from dependencies import require_admin
    from errors import AssetConflict, EncodingFailure, InvalidInput
    from qr import asset_scan_url, resolve_base_url
    from schemas_assets import AssetCreateRequest
    from state import TrackerState
    from templating import render

logger = logging.getLogger(__name__)

router = APIRouter(tags=["admin"])


def base_url_for(request: Request, tracker: TrackerState) -> str:
    return resolve_base_url(tracker.base_url, str(request.base_url))


# ---------------------------------------------------------
# Login surface
# ---------------------------------------------------------
@router.get("/", response_class=HTMLResponse)
def home(
    request: Request,
    ctx: AccessContext = Depends(get_access_context),
    tracker: TrackerState = Depends(get_tracker),
):
    """Dashboard for administrators, login form for everyone else."""
    if not ctx.is_admin:
        return render(request, "login.html")
    return render(
        request,
        "home.html",
        {"base_url": base_url_for(request, tracker), "asset_count": len(tracker.registry)},
    )


@router.post("/login", response_class=HTMLResponse)
def login(
    request: Request,
    id: str = Form(""),
    password: str = Form(""),
    tracker: TrackerState = Depends(get_tracker),
):
    logger.info(f"[LOGIN] Login attempt: id={id}")

    if not tracker.credentials.check_admin(id, password):
        logger.info(f"[LOGIN] Login failed for id={id}")
        return render(request, "login.html", {"error": "Invalid ID or password"}, status_code=401)

    token = tracker.sessions.create_admin_session()
    response = RedirectResponse(url="/", status_code=303)
    set_admin_cookie(response, token)
    logger.info(f"[LOGIN] Admin session started for id={id}")
    return response


@router.get("/logout")
def logout(request: Request, tracker: TrackerState = Depends(get_tracker)):
    """Revoke the admin session (idempotent)."""
    if tracker.sessions.destroy(CredentialCarrier.from_request(request).admin_token()):
        logger.info("[LOGIN] Admin session ended")
    response = RedirectResponse(url="/", status_code=303)
    clear_admin_cookie(response)
    return response


# ---------------------------------------------------------
# Registry management
# ---------------------------------------------------------
@router.get("/list", response_class=HTMLResponse, dependencies=[Depends(require_admin)])
def list_assets(request: Request, tracker: TrackerState = Depends(get_tracker)):
    assets = tracker.registry.list()
    return render(
        request,
        "list.html",
        {"assets": assets, "base_url": base_url_for(request, tracker)},
    )


@router.get("/delete/{name}", dependencies=[Depends(require_admin)])
def delete_asset(name: str, tracker: TrackerState = Depends(get_tracker)):
    """
    Delete an asset and everything recorded for it.

    Raises:
        AssetNotFound (404): unknown asset; registry unchanged
    """
    tracker.registry.delete(name)
    tracker.sessions.destroy_asset_sessions(name)
    return RedirectResponse(url="/list", status_code=303)


@router.get("/change-password/{name}", response_class=HTMLResponse, dependencies=[Depends(require_admin)])
def change_password_form(request: Request, name: str, tracker: TrackerState = Depends(get_tracker)):
    asset = tracker.registry.require(name)
    return render(request, "change_password.html", {"asset": asset})


@router.post("/change-password/{name}", response_class=HTMLResponse, dependencies=[Depends(require_admin)])
def change_password(
    request: Request,
    name: str,
    newPassword: str = Form(""),
    tracker: TrackerState = Depends(get_tracker),
):
    """
    Replace an asset's viewing secret.

    Raises:
        AssetNotFound (404): unknown asset
        InvalidInput (400): blank secret
    """
    tracker.registry.change_secret(name, newPassword)
    tracker.sessions.destroy_asset_sessions(name)
    asset = tracker.registry.require(name)
    return render(request, "password_changed.html", {"asset": asset})


@router.post("/generate", response_class=HTMLResponse, dependencies=[Depends(require_admin)])
async def generate(
    request: Request,
    id: str = Form(""),
    name: str = Form(""),
    location: str = Form(""),
    department: str = Form(""),
    desktopSetupDate: str = Form(""),
    assetPassword: str = Form(""),
    tracker: TrackerState = Depends(get_tracker),
):
    """
    Create an asset and show its QR code.

    The code is rendered before the asset is inserted, so an encoding
    failure leaves the registry untouched.

    Raises:
        InvalidInput (400): missing id/name/location/secret or oversized field
        AssetConflict (409): name already registered
        EncodingFailure (500): QR rendering failed
    """
    logger.info(f"[ASSETS] Generating asset: id={id}, name={name}, location={location}")
    try:
        req = AssetCreateRequest.model_validate(
            {
                "id": id,
                "name": name,
                "location": location,
                "department": department,
                "desktopSetupDate": desktopSetupDate,
                "assetPassword": assetPassword,
            }
        )
    except ValidationError as e:
        raise InvalidInput(f"Invalid asset fields: {e.error_count()} error(s)") from e

    missing = req.missing_fields()
    if missing:
        logger.info(f"[ASSETS] Asset creation failed: missing {missing}")
        raise InvalidInput(f"Missing required fields: {', '.join(missing)}")

    if req.name in tracker.registry:
        logger.info(f"[ASSETS] Asset creation failed: '{req.name}' already exists")
        raise AssetConflict(req.name)

    url = asset_scan_url(base_url_for(request, tracker), req.name)
    qr_data_uri = await tracker.encoder.encode_data_uri(url)

    asset = await run_in_threadpool(tracker.registry.create, req.name, req.record_fields(), req.secret)
    return render(request, "created.html", {"asset": asset, "qr_data_uri": qr_data_uri, "url": url})


@router.get("/qr/all", response_class=HTMLResponse, dependencies=[Depends(require_admin)])
async def qr_all(request: Request, tracker: TrackerState = Depends(get_tracker)):
    """QR codes for every asset; one failed code does not fail the page."""
    base_url = base_url_for(request, tracker)
    entries: List[Dict[str, Any]] = []
    for asset in tracker.registry.list():
        url = asset_scan_url(base_url, asset.name)
        try:
            entries.append({"asset": asset, "url": url, "qr_data_uri": await tracker.encoder.encode_data_uri(url)})
        except EncodingFailure as e:
            entries.append({"asset": asset, "url": url, "error": e.message})
    return render(request, "qr_all.html", {"entries": entries})
