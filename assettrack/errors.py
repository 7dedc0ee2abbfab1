"""
assettrack/errors.py

Error taxonomy for registry, access control and QR encoding failures.

Route handlers raise these; main.py maps them to HTTP responses
(JSON for /api/* paths, an HTML error page otherwise).
"""

from __future__ import annotations

from typing import Optional


class AssetTrackError(Exception):
    """Base class. status_code is the HTTP status the error surfaces as."""

    status_code = 500
    title = "Something went wrong"

    def __init__(self, message: str, asset_name: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.asset_name = asset_name


class AssetNotFound(AssetTrackError):
    status_code = 404
    title = "Asset not found"

    def __init__(self, asset_name: str):
        super().__init__(f"Asset '{asset_name}' not found", asset_name=asset_name)


class AssetConflict(AssetTrackError):
    status_code = 409
    title = "Asset already exists"

    def __init__(self, asset_name: str):
        super().__init__(f"Asset '{asset_name}' already exists", asset_name=asset_name)


class InvalidInput(AssetTrackError):
    status_code = 400
    title = "Invalid input"


class Unauthorized(AssetTrackError):
    status_code = 401
    title = "Unauthorized"


class AdminRequired(Unauthorized):
    """Raised by admin-gated routes; surfaces as a redirect to the login page."""

    def __init__(self, message: str = "Administrator login required"):
        super().__init__(message)


class EncodingFailure(AssetTrackError):
    status_code = 500
    title = "QR code generation failed"


class PersistenceFailure(AssetTrackError):
    """Snapshot write failed. Logged by the registry, never surfaced to callers."""
