# backend/app/core/enums.py
"""
Core enums for the GarageBook platform.

Role names double as the actor roles recognised by the booking
state machine, so they are shared between models, services and routes.
"""

from enum import Enum


class RoleName(str, Enum):
    """
    Standard role names.

    Every user carries exactly one of these roles.
    """

    ADMIN = "admin"
    MECHANIC = "mechanic"
    OWNER = "owner"


class AccountStatus(str, Enum):
    """Lifecycle status of a user account."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"
