"""
assettrack/sessions.py

Session Table: process-lifetime map of opaque bearer token -> session payload.

Expired asset sessions are swept whenever a new token is issued.

Tokens combine 256 bits from the OS CSPRNG with a nanosecond timestamp, and
are re-drawn if they ever collide with a live token. Nothing here is
persisted; a restart logs everyone out.
"""

from __future__ import annotations

import logging
import secrets
import threading
import time
from typing import Dict, Optional

try:
    from assettrack.models import AdminSession, AssetVerifiedSession, SessionPayload
except ModuleNotFoundError:
    from models import AdminSession, AssetVerifiedSession, SessionPayload

logger = logging.getLogger(__name__)

TOKEN_BYTES = 32
_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


def _base36(n: int) -> str:
    out = ""
    while n:
        n, r = divmod(n, 36)
        out = _BASE36[r] + out
    return out or "0"


def generate_token() -> str:
    """Generate a high-entropy session token (not logged)."""
    return f"{secrets.token_urlsafe(TOKEN_BYTES)}.{_base36(time.time_ns())}"


class SessionTable:
    def __init__(self, asset_session_ttl: int = 0):
        self._sessions: Dict[str, SessionPayload] = {}
        self._lock = threading.Lock()
        self.asset_session_ttl = asset_session_ttl

    def _issue(self, payload: SessionPayload) -> str:
        with self._lock:
            self._sweep_expired()
            token = generate_token()
            while token in self._sessions:
                token = generate_token()
            self._sessions[token] = payload
            return token

    def _sweep_expired(self) -> None:
        # Caller holds self._lock
        if self.asset_session_ttl <= 0:
            return
        stale = [
            token for token, payload in self._sessions.items()
            if isinstance(payload, AssetVerifiedSession) and self._expired(payload)
        ]
        for token in stale:
            del self._sessions[token]
        if stale:
            logger.debug(f"[SESSION] Swept {len(stale)} expired asset session(s)")

    def create_admin_session(self) -> str:
        token = self._issue(AdminSession())
        logger.info("[SESSION] Admin session created")
        return token

    def create_asset_session(self, asset_name: str) -> str:
        token = self._issue(AssetVerifiedSession(asset_name=asset_name))
        logger.info(f"[SESSION] Asset session created for '{asset_name}'")
        return token

    def lookup(self, token: Optional[str]) -> Optional[SessionPayload]:
        if not token:
            return None
        with self._lock:
            payload = self._sessions.get(token)
            if isinstance(payload, AssetVerifiedSession) and self._expired(payload):
                del self._sessions[token]
                logger.debug(f"[SESSION] Asset session for '{payload.asset_name}' expired")
                return None
            return payload

    def destroy(self, token: Optional[str]) -> bool:
        if not token:
            return False
        with self._lock:
            return self._sessions.pop(token, None) is not None

    def destroy_asset_sessions(self, asset_name: str) -> int:
        """Drop every asset-verified session scoped to asset_name."""
        with self._lock:
            stale = [
                token for token, payload in self._sessions.items()
                if isinstance(payload, AssetVerifiedSession) and payload.asset_name == asset_name
            ]
            for token in stale:
                del self._sessions[token]
        if stale:
            logger.info(f"[SESSION] Revoked {len(stale)} session(s) for asset '{asset_name}'")
        return len(stale)

    def _expired(self, payload: AssetVerifiedSession) -> bool:
        if self.asset_session_ttl <= 0:
            return False
        return time.time() - payload.created_at > self.asset_session_ttl

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
