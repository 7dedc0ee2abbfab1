"""
assettrack/state.py

The explicitly owned state container for one application instance.

create_app() builds a TrackerState and stores it on app.state.tracker;
routes reach it through auth_context.get_tracker. Each test builds its own
app, so no state leaks between them.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

try:
    from assettrack import config
    from assettrack.credentials import CredentialStore
    from assettrack.qr import QRCodeEncoder
    from assettrack.registry import AssetRegistry
    from assettrack.scan_recorder import ScanRecorder
    from assettrack.sessions import SessionTable
    from assettrack.store import SnapshotStore
except ModuleNotFoundError:
    import config
    from credentials import CredentialStore
    from qr import QRCodeEncoder
    from registry import AssetRegistry
    from scan_recorder import ScanRecorder
    from sessions import SessionTable
    from store import SnapshotStore


@dataclass
class TrackerState:
    credentials: CredentialStore
    registry: AssetRegistry
    sessions: SessionTable
    recorder: ScanRecorder
    encoder: QRCodeEncoder
    base_url: Optional[str] = None


def build_state(
    data_file: Union[str, Path] = config.DATA_FILE,
    admin_id: str = config.ADMIN_ID,
    admin_password: str = config.ADMIN_PASSWORD,
    base_url: Optional[str] = config.BASE_URL,
    bcrypt_rounds: int = config.BCRYPT_ROUNDS,
    asset_session_ttl: int = config.ASSET_SESSION_TTL_SECONDS,
    encoder: Optional[QRCodeEncoder] = None,
) -> TrackerState:
    """Wire up every component and load the registry snapshot."""
    credentials = CredentialStore(admin_id=admin_id, admin_password=admin_password, rounds=bcrypt_rounds)
    registry = AssetRegistry(SnapshotStore(data_file), credentials)
    registry.load()
    return TrackerState(
        credentials=credentials,
        registry=registry,
        sessions=SessionTable(asset_session_ttl=asset_session_ttl),
        recorder=ScanRecorder(registry),
        encoder=encoder or QRCodeEncoder(),
        base_url=base_url,
    )
