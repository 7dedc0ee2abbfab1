"""
assettrack/authz.py

Access decisions for every operation the service exposes.

Single source of truth for who may do what. Route handlers classify the
caller (auth_context.classify) and then ask decide() what to do with the
request; they never compare session types themselves.

Pure Python logic - no FastAPI imports, no registry access.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple


# ============================================================================
# Caller states
# ============================================================================

class AccessState(str, Enum):
    """Recomputed on every request from the session evidence it carries."""

    ANONYMOUS = "anonymous"
    ADMIN = "admin"
    ASSET_VERIFIED = "asset_verified"


@dataclass(frozen=True)
class AccessContext:
    """
    Result of classifying a request.

    asset_name is set only for ASSET_VERIFIED and is always the asset the
    request targets (a session scoped to another asset classifies as ANONYMOUS).
    """
    state: AccessState
    asset_name: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.state is AccessState.ADMIN

    @property
    def is_verified_for_asset(self) -> bool:
        return self.state is AccessState.ASSET_VERIFIED


ANONYMOUS = AccessContext(AccessState.ANONYMOUS)


# ============================================================================
# Operations and decisions
# ============================================================================

class Operation(str, Enum):
    MANAGE_ASSETS = "assets:manage"      # list / create / delete / change secret / bulk QR export
    VIEW_ASSET = "asset:view"            # detail page reached by direct link
    VIEW_ASSET_SCAN = "asset:view_scan"  # detail page reached via a scanned code (?scan=true)
    VERIFY_SECRET = "asset:verify"       # submit the per-asset secret


class Decision(str, Enum):
    ALLOW = "allow"
    RECORD = "allow_and_record"  # allow, and log a scan event
    DENY = "deny"                # redirect to the login surface
    CHALLENGE = "challenge"      # render the secret-entry form
    VERIFY = "verify"            # check the submitted secret


DECISION_TABLE: Dict[Tuple[Operation, AccessState], Decision] = {
    (Operation.MANAGE_ASSETS, AccessState.ANONYMOUS): Decision.DENY,
    (Operation.MANAGE_ASSETS, AccessState.ASSET_VERIFIED): Decision.DENY,
    (Operation.MANAGE_ASSETS, AccessState.ADMIN): Decision.ALLOW,

    (Operation.VIEW_ASSET, AccessState.ANONYMOUS): Decision.ALLOW,
    (Operation.VIEW_ASSET, AccessState.ASSET_VERIFIED): Decision.ALLOW,
    (Operation.VIEW_ASSET, AccessState.ADMIN): Decision.ALLOW,

    (Operation.VIEW_ASSET_SCAN, AccessState.ANONYMOUS): Decision.CHALLENGE,
    (Operation.VIEW_ASSET_SCAN, AccessState.ASSET_VERIFIED): Decision.RECORD,
    (Operation.VIEW_ASSET_SCAN, AccessState.ADMIN): Decision.RECORD,

    (Operation.VERIFY_SECRET, AccessState.ANONYMOUS): Decision.VERIFY,
    (Operation.VERIFY_SECRET, AccessState.ASSET_VERIFIED): Decision.VERIFY,
    (Operation.VERIFY_SECRET, AccessState.ADMIN): Decision.VERIFY,
}


def decide(ctx: AccessContext, operation: Operation) -> Decision:
    """
    Look up the decision for a classified caller and an operation.

    The table covers every (operation, state) pair; unknown pairs deny.

    Example:
        decide(ANONYMOUS, Operation.VIEW_ASSET_SCAN) -> Decision.CHALLENGE
    """
    return DECISION_TABLE.get((operation, ctx.state), Decision.DENY)


def detail_operation(scan_flag: bool) -> Operation:
    return Operation.VIEW_ASSET_SCAN if scan_flag else Operation.VIEW_ASSET
