"""
assettrack/credentials.py

Credential Store: the fixed administrator pair and per-asset secret hashing.

Admin credentials are configured values compared as plain strings.
Asset secrets are always bcrypt-hashed with a fresh salt per call; the
plaintext never leaves this module.
"""

from __future__ import annotations

import hmac
import logging

import bcrypt

try:
    from assettrack import config
    from assettrack.errors import InvalidInput
except ModuleNotFoundError:
    import config
    from errors import InvalidInput

logger = logging.getLogger(__name__)

# bcrypt only looks at the first 72 bytes
MAX_SECRET_BYTES = 72


class CredentialStore:
    def __init__(
        self,
        admin_id: str = config.ADMIN_ID,
        admin_password: str = config.ADMIN_PASSWORD,
        rounds: int = config.BCRYPT_ROUNDS,
    ):
        self._admin_id = admin_id
        self._admin_password = admin_password
        self._rounds = rounds

    def check_admin(self, admin_id: str, password: str) -> bool:
        """Exact match against the configured pair (constant-time compare)."""
        id_ok = hmac.compare_digest((admin_id or "").encode(), self._admin_id.encode())
        pw_ok = hmac.compare_digest((password or "").encode(), self._admin_password.encode())
        return id_ok and pw_ok

    def hash_secret(self, plaintext: str) -> str:
        if len(plaintext.encode("utf-8")) > MAX_SECRET_BYTES:
            raise InvalidInput(f"Secret must be at most {MAX_SECRET_BYTES} bytes")
        digest = bcrypt.hashpw(plaintext.encode("utf-8"), bcrypt.gensalt(rounds=self._rounds))
        return digest.decode("ascii")

    def verify_secret(self, plaintext: str, digest: str) -> bool:
        """
        Check a plaintext secret against a stored bcrypt digest.

        Never raises: an empty or malformed digest simply fails verification.
        """
        if not plaintext or not digest:
            return False
        try:
            return bcrypt.checkpw(plaintext.encode("utf-8"), digest.encode("ascii"))
        except (ValueError, TypeError, UnicodeEncodeError) as e:
            logger.warning(f"[AUTH] Unusable secret digest: {type(e).__name__}")
            return False
