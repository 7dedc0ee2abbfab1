"""
assettrack/dependencies.py

Reusable FastAPI dependencies for operation-level access enforcement.
"""

from __future__ import annotations

import logging
from typing import Callable

from fastapi import Depends, Request

try:
    from assettrack.auth_context import get_access_context
    from assettrack.authz import AccessContext, Decision, Operation, decide
    from assettrack.errors import AdminRequired
except ModuleNotFoundError:
    from auth_context import get_access_context
    from authz import AccessContext, Decision, Operation, decide
    from errors import AdminRequired

logger = logging.getLogger(__name__)


def require_operation(operation: Operation) -> Callable:
    """
    FastAPI dependency factory enforcing the decision table for one operation.

    Only meaningful for operations whose outcome is allow/deny (the admin
    operations); asset views handle CHALLENGE/RECORD in the route itself.

    Usage in routes:
        @router.get("/list", dependencies=[Depends(require_operation(Operation.MANAGE_ASSETS))])
        def list_assets(...):
            ...

    Raises:
        AdminRequired: caller is not allowed (rendered as a redirect to /)
    """
    def _check_operation(
        request: Request,
        ctx: AccessContext = Depends(get_access_context),
    ) -> AccessContext:
        decision = decide(ctx, operation)
        if decision is not Decision.ALLOW:
            logger.info(
                f"[AUTHZ] Access to {request.url.path} denied: "
                f"operation={operation.value}, state={ctx.state.value}"
            )
            raise AdminRequired()
        return ctx

    return _check_operation


require_admin = require_operation(Operation.MANAGE_ASSETS)
