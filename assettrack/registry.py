"""
assettrack/registry.py

Asset Registry: the in-memory mapping of asset name -> AssetRecord and the
sole writer of the durable snapshot.

Concurrency:
- Every mutation (create, delete, change_secret, record_scan) and its
  snapshot write run under one re-entrant lock, so concurrent requests
  serialize and scan appends are never lost or duplicated.
- Reads take the same lock and hand out deep copies; callers never hold
  a reference into registry state.

Durability is best-effort: a failed snapshot write is logged, flips
persistence_degraded, and the in-memory change is kept.
"""

from __future__ import annotations

import logging
import threading
from typing import Dict, List, Optional

try:
    from assettrack.credentials import CredentialStore
    from assettrack.errors import AssetConflict, AssetNotFound, InvalidInput, PersistenceFailure
    from assettrack.models import AssetRecord, ScanEvent, now_utc
    from assettrack.store import SnapshotStore
except ModuleNotFoundError:
    from credentials import CredentialStore
    from errors import AssetConflict, AssetNotFound, InvalidInput, PersistenceFailure
    from models import AssetRecord, ScanEvent, now_utc
    from store import SnapshotStore

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("id", "location")


class AssetRegistry:
    """Ordered asset registry backed by a JSON snapshot"""

    def __init__(self, store: SnapshotStore, credentials: CredentialStore):
        self._store = store
        self._credentials = credentials
        self._lock = threading.RLock()
        self._assets: Dict[str, AssetRecord] = {}
        self.persistence_degraded = False

    # ------------------------------------------------------------------
    # Load / persist
    # ------------------------------------------------------------------
    def load(self) -> int:
        """Replace in-memory state with the snapshot on disk. Returns asset count."""
        snapshot = self._store.load()
        with self._lock:
            self._assets = {name: record for name, record in snapshot}
            count = len(self._assets)
        logger.info(f"[REGISTRY] Loaded {count} assets from storage: {list(self._assets)}")
        return count

    def _persist(self) -> None:
        # Caller holds self._lock
        try:
            self._store.save(list(self._assets.items()))
        except PersistenceFailure as e:
            self.persistence_degraded = True
            logger.error(f"[REGISTRY] {e.message} (in-memory state kept)")
            return
        if self.persistence_degraded:
            logger.info("[REGISTRY] Snapshot writes recovered")
        self.persistence_degraded = False
        logger.debug(f"[REGISTRY] Snapshot saved ({len(self._assets)} assets)")

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def get(self, name: str) -> Optional[AssetRecord]:
        with self._lock:
            record = self._assets.get(name)
            return record.model_copy(deep=True) if record else None

    def require(self, name: str) -> AssetRecord:
        record = self.get(name)
        if record is None:
            raise AssetNotFound(name)
        return record

    def list(self) -> List[AssetRecord]:
        with self._lock:
            return [record.model_copy(deep=True) for record in self._assets.values()]

    def names(self) -> List[str]:
        with self._lock:
            return list(self._assets)

    def __contains__(self, name: str) -> bool:
        with self._lock:
            return name in self._assets

    def __len__(self) -> int:
        with self._lock:
            return len(self._assets)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------
    def create(self, name: str, fields: Dict[str, Optional[str]], secret_plaintext: str) -> AssetRecord:
        """
        Register a new asset.

        Args:
            name: Unique registry key (also the code's URL path segment)
            fields: id, location, and optionally department / setup_date
            secret_plaintext: Viewing secret, hashed before storage

        Raises:
            InvalidInput: a required field or the secret is blank
            AssetConflict: name already registered (existing record untouched)
        """
        name = (name or "").strip()
        missing = [f for f in REQUIRED_FIELDS if not (fields.get(f) or "").strip()]
        if not name:
            missing.insert(0, "name")
        if not secret_plaintext:
            missing.append("secret")
        if missing:
            raise InvalidInput(f"Missing required fields: {', '.join(missing)}")
        if "/" in name:
            raise InvalidInput("Asset name must not contain '/'")

        # Hash outside the lock; bcrypt is deliberately slow
        secret_hash = self._credentials.hash_secret(secret_plaintext)

        with self._lock:
            if name in self._assets:
                logger.info(f"[REGISTRY] Create rejected: '{name}' already exists")
                raise AssetConflict(name)

            record = AssetRecord(
                id=fields["id"].strip(),
                name=name,
                location=fields["location"].strip(),
                department=(fields.get("department") or "").strip(),
                setup_date=(fields.get("setup_date") or "").strip(),
                secret_hash=secret_hash,
                scan_history=[],
            )
            self._assets[name] = record
            self._persist()
            logger.info(f"[REGISTRY] Created asset '{name}', current assets: {list(self._assets)}")
            return record.model_copy(deep=True)

    def delete(self, name: str) -> None:
        with self._lock:
            if name not in self._assets:
                logger.info(f"[REGISTRY] Delete failed: '{name}' not found")
                raise AssetNotFound(name)
            del self._assets[name]
            self._persist()
            logger.info(f"[REGISTRY] Deleted asset '{name}', remaining: {list(self._assets)}")

    def change_secret(self, name: str, new_plaintext: str) -> None:
        if name not in self:
            raise AssetNotFound(name)
        if not new_plaintext:
            raise InvalidInput("New secret must not be empty")

        secret_hash = self._credentials.hash_secret(new_plaintext)

        with self._lock:
            record = self._assets.get(name)
            # Deleted while we were hashing
            if record is None:
                raise AssetNotFound(name)
            self._assets[name] = record.model_copy(update={"secret_hash": secret_hash})
            self._persist()
            logger.info(f"[REGISTRY] Secret updated for asset '{name}'")

    def record_scan(self, name: str, device: str) -> ScanEvent:
        """Append one ScanEvent. Timestamped under the lock so history stays ordered."""
        with self._lock:
            record = self._assets.get(name)
            if record is None:
                raise AssetNotFound(name)
            event = ScanEvent(timestamp=now_utc(), device=device or "Unknown Device")
            record.scan_history.append(event)
            self._persist()
            logger.info(f"[SCAN] Recorded scan for asset '{name}': {event.timestamp.isoformat()}, device={event.device}")
            return event
