# assettrack/store.py
# Snapshot persistence for the asset registry
#
# Format: a JSON list of [name, record] pairs in registry order, e.g.
#   [["desk-1", {"id": "A-001", "name": "desk-1", ..., "scanHistory": [...]}]]

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import List, Tuple, Union

from pydantic import ValidationError

try:
    from assettrack.errors import PersistenceFailure
    from assettrack.models import AssetRecord
except ModuleNotFoundError:
    from errors import PersistenceFailure
    from models import AssetRecord

logger = logging.getLogger(__name__)

Snapshot = List[Tuple[str, AssetRecord]]


class SnapshotStore:
    """Loads and saves the whole registry as one JSON document."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def load(self) -> Snapshot:
        """
        Read the snapshot from disk.

        A missing, unreadable or malformed file is not fatal: it is logged
        and an empty snapshot is returned.
        """
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.info(f"[REGISTRY] No snapshot at {self.path}, starting fresh")
            return []
        except OSError as e:
            logger.warning(f"[REGISTRY] Could not read snapshot {self.path}: {e}; starting fresh")
            return []

        try:
            pairs = json.loads(raw)
            if not isinstance(pairs, list):
                raise ValueError("snapshot root must be a list")
            snapshot: Snapshot = []
            for pair in pairs:
                name, data = pair
                snapshot.append((str(name), AssetRecord.model_validate(data)))
        except (ValueError, TypeError, ValidationError) as e:
            logger.warning(f"[REGISTRY] Corrupt snapshot {self.path} ({e}); starting fresh")
            return []

        return snapshot

    def save(self, snapshot: Snapshot) -> None:
        """
        Write the snapshot via a temp file + rename.

        Raises:
            PersistenceFailure: if the file could not be written
        """
        payload = [
            [name, record.model_dump(mode="json", by_alias=True)]
            for name, record in snapshot
        ]
        data = json.dumps(payload, indent=2)

        tmp_name = None
        try:
            directory = self.path.parent
            directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=".assets-", suffix=".tmp", dir=directory)
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(data)
            os.replace(tmp_name, self.path)
            tmp_name = None
        except OSError as e:
            raise PersistenceFailure(f"Could not write snapshot {self.path}: {e}") from e
        finally:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
