# assettrack/config.py
# Environment-aware configuration for the asset QR tracker

import logging
import os
from typing import Literal, Optional

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

# Environment detection
ENV: Literal["dev", "staging", "prod"] = os.environ.get("ENV", "dev")  # type: ignore
IS_DEV = (ENV == "dev")
IS_STAGING = (ENV == "staging")
IS_PROD = (ENV == "prod")

# Administrator credential pair (compared as plain strings, never hashed)
ADMIN_ID = os.environ.get("ADMIN_ID", "admin")
ADMIN_PASSWORD = os.environ.get("ADMIN_PASSWORD", "password")

# Server binding
HOST = os.environ.get("HOST", "0.0.0.0")
PORT = int(os.environ.get("PORT", "3000"))

# Externally reachable address encoded into every QR code.
# Empty means "derive from the incoming request".
BASE_URL: Optional[str] = os.environ.get("BASE_URL", "").strip().rstrip("/") or None

# Registry snapshot location
DATA_FILE = os.environ.get("DATA_FILE", "assets.json")

# Per-asset secret hashing cost
BCRYPT_ROUNDS = int(os.environ.get("BCRYPT_ROUNDS", "10"))

# Asset-verified session lifetime; 0 keeps them for the process lifetime
ASSET_SESSION_TTL_SECONDS = int(os.environ.get("ASSET_SESSION_TTL_SECONDS", "0"))

# Cookies
ADMIN_COOKIE = "sessionId"
ASSET_COOKIE = "assetSessionId"
COOKIE_SECURE = os.environ.get("COOKIE_SECURE", "false").lower() in ("1", "true", "yes")

LOG_LEVEL = os.environ.get("LOG_LEVEL", "DEBUG" if IS_DEV else "INFO").upper()


def log_config_summary() -> None:
    logger.info(f"[CONFIG] Environment: {ENV}")
    logger.info(f"[CONFIG] Base URL: {BASE_URL or '(derived from request)'}")
    logger.info(f"[CONFIG] Data file: {DATA_FILE}")
    logger.info(f"[CONFIG] Admin login id: {ADMIN_ID}")
    if ASSET_SESSION_TTL_SECONDS > 0:
        logger.info(f"[CONFIG] Asset sessions expire after {ASSET_SESSION_TTL_SECONDS}s")
    else:
        logger.info("[CONFIG] Asset sessions live until restart")
    if ADMIN_PASSWORD == "password" and not IS_DEV:
        logger.warning("[CONFIG] ADMIN_PASSWORD is still the default value")
