"""
assettrack/auth_context.py

Request classification primitives for FastAPI dependency injection.

Contains:
- CredentialCarrier: typed view of the two bearer tokens a request carries
- set_admin_cookie / set_asset_cookie / clear_admin_cookie: the wire side of it
- classify: resolve tokens against the Session Table into an AccessContext
- get_tracker: fetch the application state container from the request
- get_access_context: FastAPI dependency for routes that need the caller's state

This module MUST NOT import assettrack.application or assettrack.main to avoid
circular dependencies.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from fastapi import Request, Response

try:
    from assettrack import config
    from assettrack.authz import ANONYMOUS, AccessContext, AccessState
    from assettrack.models import AdminSession, AssetVerifiedSession
    from assettrack.qr import asset_path
    from assettrack.sessions import SessionTable
except ModuleNotFoundError:
    import config
    from authz import ANONYMOUS, AccessContext, AccessState
    from models import AdminSession, AssetVerifiedSession
    from qr import asset_path
    from sessions import SessionTable

if TYPE_CHECKING:
    from assettrack.state import TrackerState

logger = logging.getLogger(__name__)


# ---------------------------------------------------------
# Credential carrier
# ---------------------------------------------------------
@dataclass(frozen=True)
class CredentialCarrier:
    """
    The session evidence attached to one request.

    Two independently scoped tokens: the admin token (cookie sessionId,
    Path=/) and the asset token (cookie assetSessionId, Path=/asset/<name>).
    """
    admin: Optional[str] = None
    asset: Optional[str] = None

    @classmethod
    def from_request(cls, request: Request) -> "CredentialCarrier":
        return cls(
            admin=request.cookies.get(config.ADMIN_COOKIE) or None,
            asset=request.cookies.get(config.ASSET_COOKIE) or None,
        )

    def admin_token(self) -> Optional[str]:
        return self.admin

    def asset_token(self) -> Optional[str]:
        return self.asset


def set_admin_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        config.ADMIN_COOKIE, token, path="/", httponly=True, samesite="lax", secure=config.COOKIE_SECURE
    )


def clear_admin_cookie(response: Response) -> None:
    response.delete_cookie(config.ADMIN_COOKIE, path="/")


def set_asset_cookie(response: Response, asset_name: str, token: str) -> None:
    # Scoped to the asset's own detail path; never sent for other assets
    response.set_cookie(
        config.ASSET_COOKIE,
        token,
        path=asset_path(asset_name),
        httponly=True,
        samesite="lax",
        secure=config.COOKIE_SECURE,
    )


# ---------------------------------------------------------
# Classification
# ---------------------------------------------------------
def classify(
    carrier: CredentialCarrier,
    sessions: SessionTable,
    asset_name: Optional[str] = None,
) -> AccessContext:
    """
    Classify a request as ADMIN, ASSET_VERIFIED(asset_name) or ANONYMOUS.

    Process:
    1. Admin token resolving to an AdminSession -> ADMIN
    2. Asset token resolving to an AssetVerifiedSession scoped to exactly
       asset_name -> ASSET_VERIFIED
    3. Anything else (no token, unknown token, wrong payload type, session
       for a different asset) -> ANONYMOUS
    """
    admin_payload = sessions.lookup(carrier.admin_token())
    if isinstance(admin_payload, AdminSession):
        return AccessContext(AccessState.ADMIN)

    if asset_name is not None:
        asset_payload = sessions.lookup(carrier.asset_token())
        if isinstance(asset_payload, AssetVerifiedSession) and asset_payload.grants(asset_name):
            return AccessContext(AccessState.ASSET_VERIFIED, asset_name=asset_name)
        if isinstance(asset_payload, AssetVerifiedSession):
            logger.info(
                f"[AUTH] Asset session for '{asset_payload.asset_name}' presented for '{asset_name}', ignored"
            )

    return ANONYMOUS


# ---------------------------------------------------------
# FastAPI dependencies
# ---------------------------------------------------------
def get_tracker(request: Request) -> "TrackerState":
    """Return the state container create_app() attached to the application."""
    return request.app.state.tracker


def get_access_context(request: Request) -> AccessContext:
    """
    Classify the caller for the asset named in the path (if any).

    Usage:
        @router.get("/asset/{name}")
        def view(name: str, ctx: AccessContext = Depends(get_access_context)):
            ...
    """
    tracker = get_tracker(request)
    asset_name = request.path_params.get("name")
    ctx = classify(CredentialCarrier.from_request(request), tracker.sessions, asset_name)
    logger.debug(f"[AUTH] {request.method} {request.url.path}: state={ctx.state.value}")
    return ctx
