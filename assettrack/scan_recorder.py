"""
assettrack/scan_recorder.py

Scan Recorder: turns a qualifying detail view into exactly one audit entry.

A view qualifies only when the access decision is RECORD, i.e. the request
carries the scan-origin flag and the caller is an administrator or holds an
asset-verified session for this asset. Challenges, failed verifications and
plain (unflagged) views never record.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import Request

try:
    from assettrack.authz import Decision
    from assettrack.models import ScanEvent
    from assettrack.registry import AssetRegistry
except ModuleNotFoundError:
    from authz import Decision
    from models import ScanEvent
    from registry import AssetRegistry

logger = logging.getLogger(__name__)

UNKNOWN_DEVICE = "Unknown Device"


def device_descriptor(request: Request) -> str:
    return request.headers.get("user-agent") or UNKNOWN_DEVICE


class ScanRecorder:
    def __init__(self, registry: AssetRegistry):
        self._registry = registry

    def record_if_qualified(self, request: Request, asset_name: str, decision: Decision) -> Optional[ScanEvent]:
        """
        Record a scan for this request if it qualifies and has not recorded yet.

        Returns the appended ScanEvent, or None when nothing was recorded.
        """
        if decision is not Decision.RECORD:
            return None

        # One event per request, however many code paths reach the render
        if getattr(request.state, "scan_recorded", False):
            logger.debug(f"[SCAN] Scan for '{asset_name}' already recorded for this request")
            return None
        request.state.scan_recorded = True

        return self._registry.record_scan(asset_name, device_descriptor(request))
