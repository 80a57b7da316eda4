# backend/app/domain/booking_state_machine.py
"""
Booking state machine.

The whole authorization matrix lives in ``TRANSITIONS``: for every source
status, the target statuses each actor role may move a booking to. The
lifecycle service never branches on roles itself; it asks
``authorize_transition`` and acts on the answer.

Terminal statuses (completed, cancelled, no_show) have no outgoing edges.
``rescheduled`` behaves like ``pending`` for subsequent transitions.
"""

from typing import Dict, FrozenSet, Mapping, Optional

from ..core.enums import RoleName
from ..core.exceptions import ForbiddenException, InvalidTransitionException
from ..models.booking import ACTIVE_STATUSES, TERMINAL_STATUSES, BookingStatus

S = BookingStatus
_NONE: FrozenSet[BookingStatus] = frozenset()

_STAFF_FROM_PENDING = frozenset({S.CONFIRMED, S.CANCELLED, S.NO_SHOW})
_STAFF_FROM_CONFIRMED = frozenset({S.IN_PROGRESS, S.COMPLETED, S.CANCELLED, S.NO_SHOW})
_STAFF_FROM_IN_PROGRESS = frozenset({S.COMPLETED, S.CANCELLED})
_OWNER_CANCEL = frozenset({S.CANCELLED})

TRANSITIONS: Mapping[BookingStatus, Mapping[RoleName, FrozenSet[BookingStatus]]] = {
    S.PENDING: {
        RoleName.ADMIN: _STAFF_FROM_PENDING,
        RoleName.MECHANIC: _STAFF_FROM_PENDING,
        RoleName.OWNER: _OWNER_CANCEL,
    },
    S.CONFIRMED: {
        RoleName.ADMIN: _STAFF_FROM_CONFIRMED,
        RoleName.MECHANIC: _STAFF_FROM_CONFIRMED,
        RoleName.OWNER: _OWNER_CANCEL,
    },
    S.IN_PROGRESS: {
        RoleName.ADMIN: _STAFF_FROM_IN_PROGRESS,
        RoleName.MECHANIC: _STAFF_FROM_IN_PROGRESS,
        RoleName.OWNER: _NONE,
    },
    S.RESCHEDULED: {
        RoleName.ADMIN: _STAFF_FROM_PENDING,
        RoleName.MECHANIC: _STAFF_FROM_PENDING,
        RoleName.OWNER: _OWNER_CANCEL,
    },
    S.COMPLETED: {},
    S.CANCELLED: {},
    S.NO_SHOW: {},
}

# Statuses from which the slot may be moved to a new date/time
RESCHEDULABLE_STATUSES = frozenset({S.PENDING, S.CONFIRMED, S.RESCHEDULED})

# Notification event fired after a committed transition into the key status
NOTIFICATION_EVENTS: Dict[BookingStatus, str] = {
    S.CONFIRMED: "booking.confirmed",
    S.CANCELLED: "booking.cancelled",
    S.COMPLETED: "booking.completed",
    S.NO_SHOW: "booking.no_show",
}


def allowed_targets(source: BookingStatus, role: RoleName) -> FrozenSet[BookingStatus]:
    return TRANSITIONS.get(source, {}).get(role, _NONE)


def authorize_transition(
    source: BookingStatus,
    target: BookingStatus,
    relation: Optional[RoleName],
) -> None:
    """
    Validate that an actor standing in ``relation`` to a booking may move it.

    ``relation`` is ADMIN for administrators, MECHANIC/OWNER only for the
    mechanic/owner assigned to the booking, and None for anyone else.

    Raises:
        ForbiddenException: Actor unrelated to the booking, owner asking for
            anything but cancellation, or a move reserved to another role
        InvalidTransitionException: Terminal source, or no role may make the move
    """
    if relation is None:
        raise ForbiddenException("You do not have access to this booking")

    if source in TERMINAL_STATUSES:
        raise InvalidTransitionException(
            source.value,
            target.value,
            message=f"Booking is already {source.value} and can no longer change status",
        )

    if relation == RoleName.OWNER and target != S.CANCELLED:
        raise ForbiddenException("Owners can only cancel their bookings")

    if target in allowed_targets(source, relation):
        return

    if any(target in targets for targets in TRANSITIONS[source].values()):
        raise ForbiddenException(
            f"A {relation.value} cannot change a {source.value} booking to {target.value}"
        )
    raise InvalidTransitionException(source.value, target.value)


def ensure_reschedulable(source: BookingStatus, relation: Optional[RoleName]) -> None:
    """
    Validate that a booking in ``source`` may be moved to a new slot.

    Raises:
        ForbiddenException: Actor unrelated to the booking
        InvalidTransitionException: Booking is terminal or already in progress
    """
    if relation is None:
        raise ForbiddenException("You do not have access to this booking")
    if source not in RESCHEDULABLE_STATUSES:
        raise InvalidTransitionException(
            source.value,
            S.RESCHEDULED.value,
            message=f"A {source.value} booking cannot be rescheduled",
        )


def occupies_new_slot(source: BookingStatus, target: BookingStatus) -> bool:
    """True when the move makes the booking start blocking the mechanic's slot."""
    return target in ACTIVE_STATUSES and source not in ACTIVE_STATUSES
