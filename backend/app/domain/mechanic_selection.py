"""Mechanic selection policy for new bookings."""

from typing import Optional

from ..core.exceptions import ValidationException


def select_mechanic(requested_mechanic_id: Optional[str], service_default_id: Optional[str]) -> str:
    """
    Pick the mechanic for a new booking.

    Policy: an explicit choice wins, then the service's default mechanic;
    with neither, the request is rejected.
    """
    if requested_mechanic_id:
        return requested_mechanic_id
    if service_default_id:
        return service_default_id
    raise ValidationException(
        "No mechanic selected and the service has no default mechanic",
        code="MECHANIC_REQUIRED",
    )
