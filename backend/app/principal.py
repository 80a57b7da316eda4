"""Principal abstractions for callers of the booking API."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from .core.enums import RoleName

if TYPE_CHECKING:
    from .models.booking import Booking


@dataclass(frozen=True)
class Actor:
    """Authenticated user acting on bookings, as asserted by the auth layer."""

    user_id: str
    role: RoleName

    @property
    def id(self) -> str:
        return self.user_id

    def relation_to(self, booking: "Booking") -> Optional[RoleName]:
        """
        How this actor stands towards ``booking``.

        ADMIN for administrators, MECHANIC/OWNER only when the actor is the
        booking's assigned mechanic/owner, otherwise None.
        """
        if self.role == RoleName.ADMIN:
            return RoleName.ADMIN
        if self.role == RoleName.MECHANIC and booking.mechanic_id == self.user_id:
            return RoleName.MECHANIC
        if self.role == RoleName.OWNER and booking.owner_id == self.user_id:
            return RoleName.OWNER
        return None
