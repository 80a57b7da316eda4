# backend/app/api/dependencies/auth.py
"""
Actor resolution for booking endpoints.

Authentication happens upstream; the gateway forwards the authenticated
user as ``X-Actor-Id`` and ``X-Actor-Role``. Requests without a usable
identity are rejected with 401.
"""

import logging
from typing import Optional

from fastapi import Depends, Header, HTTPException, status

from ...core.enums import RoleName
from ...core.ulid_helper import is_valid_ulid
from ...principal import Actor

logger = logging.getLogger(__name__)


def _unauthorized(message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"message": message, "code": "UNAUTHORIZED", "details": {}},
    )


def get_current_actor(
    x_actor_id: Optional[str] = Header(None, alias="X-Actor-Id"),
    x_actor_role: Optional[str] = Header(None, alias="X-Actor-Role"),
) -> Actor:
    """
    Build the acting principal from the forwarded identity headers.

    Raises:
        HTTPException: 401 if either header is missing or malformed
    """
    if not x_actor_id or not x_actor_role:
        raise _unauthorized("Authentication required")

    actor_id = x_actor_id.strip()
    if not is_valid_ulid(actor_id):
        logger.warning("Rejected request with malformed actor id")
        raise _unauthorized("Invalid actor identity")

    try:
        role = RoleName(x_actor_role.strip().lower())
    except ValueError:
        logger.warning(f"Rejected request with unknown actor role {x_actor_role!r}")
        raise _unauthorized("Invalid actor role")

    return Actor(user_id=actor_id, role=role)


def require_owner(actor: Actor = Depends(get_current_actor)) -> Actor:
    """Require the actor to be a vehicle owner."""
    if actor.role != RoleName.OWNER:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={
                "message": "Only vehicle owners can create bookings",
                "code": "FORBIDDEN",
                "details": {},
            },
        )
    return actor
