# backend/app/routes/v1/bookings.py
"""
Booking routes - API v1

Versioned booking endpoints under /api/v1/bookings.
All business logic delegated to BookingService and MechanicCalendarService.

Endpoints:
    GET / - List bookings visible to the actor (status/date filters, pagination)
    POST / - Create a booking request (owners)
    GET /calendar/{mechanic_id} - Mechanic's active bookings, optionally per month
    GET /{booking_id} - Booking details
    PUT /{booking_id}/status - Move a booking through its lifecycle
    PUT /{booking_id}/reschedule - Move a booking to a new date/time
"""

import asyncio
from datetime import date
import logging
from typing import NoReturn, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status
from fastapi.params import Path

from ...api.dependencies import (
    get_booking_service,
    get_current_actor,
    get_mechanic_calendar_service,
    require_owner,
)
from ...core.config import settings
from ...core.exceptions import DomainException
from ...models.booking import BookingStatus
from ...principal import Actor
from ...schemas.base_responses import PaginatedResponse
from ...schemas.booking import (
    BookingCreate,
    BookingRescheduleRequest,
    BookingResponse,
    BookingStatusUpdate,
    MechanicCalendarResponse,
)
from ...services.booking_service import BookingService
from ...services.mechanic_calendar_service import MechanicCalendarService

logger = logging.getLogger(__name__)

# V1 router - no prefix here, will be added when mounting in main.py
router = APIRouter(tags=["bookings-v1"])

ULID_PATH_PATTERN = r"^[0-9A-HJKMNP-TV-Z]{26}$"


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


# ============================================================================
# SECTION 1: Collection routes
# ============================================================================


@router.get("", response_model=PaginatedResponse[BookingResponse])
async def list_bookings(
    status_filter: Optional[BookingStatus] = Query(None, alias="status"),
    on_date: Optional[date] = Query(None, alias="date"),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_limit, ge=1, le=settings.max_page_limit),
    actor: Actor = Depends(get_current_actor),
    booking_service: BookingService = Depends(get_booking_service),
) -> PaginatedResponse[BookingResponse]:
    """
    List bookings for the current actor.

    Owners see their own bookings, mechanics the ones assigned to them and
    administrators all bookings, ordered by date and time.
    """
    try:
        bookings, total = await asyncio.to_thread(
            booking_service.list_bookings_for_actor,
            actor,
            status=status_filter,
            on_date=on_date,
            page=page,
            limit=limit,
        )
        return PaginatedResponse(
            items=[BookingResponse.from_booking(booking) for booking in bookings],
            total=total,
            page=page,
            per_page=limit,
            has_next=page * limit < total,
            has_prev=page > 1,
        )
    except DomainException as e:
        handle_domain_exception(e)


@router.post("", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
async def create_booking(
    booking_data: BookingCreate = Body(...),
    actor: Actor = Depends(require_owner),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    """Create a booking request; it starts as ``pending``."""
    try:
        booking = await asyncio.to_thread(booking_service.create_booking, actor.id, booking_data)
        return BookingResponse.from_booking(booking)
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/calendar/{mechanic_id}", response_model=MechanicCalendarResponse)
async def get_mechanic_calendar(
    mechanic_id: str = Path(..., description="Mechanic ULID", pattern=ULID_PATH_PATTERN),
    month: Optional[int] = Query(None),
    year: Optional[int] = Query(None),
    actor: Actor = Depends(get_current_actor),
    calendar_service: MechanicCalendarService = Depends(get_mechanic_calendar_service),
) -> MechanicCalendarResponse:
    """Active (confirmed or in-progress) bookings of a mechanic."""
    try:
        bookings = await asyncio.to_thread(
            calendar_service.get_calendar, mechanic_id, actor, month=month, year=year
        )
        grouped = calendar_service.group_by_date(bookings)
        return MechanicCalendarResponse(
            mechanic_id=mechanic_id,
            month=month,
            year=year,
            total=len(bookings),
            bookings=[BookingResponse.from_booking(booking) for booking in bookings],
            by_date={day: [b.id for b in items] for day, items in grouped.items()},
        )
    except DomainException as e:
        handle_domain_exception(e)


# ============================================================================
# SECTION 2: Dynamic routes (with path parameters - placed last)
# ============================================================================


@router.get(
    "/{booking_id}",
    response_model=BookingResponse,
    responses={404: {"description": "Booking not found"}},
)
async def get_booking(
    booking_id: str = Path(..., description="Booking ULID", pattern=ULID_PATH_PATTERN),
    actor: Actor = Depends(get_current_actor),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    """Get one booking the actor participates in."""
    try:
        booking = await asyncio.to_thread(booking_service.get_booking_for_actor, booking_id, actor)
        return BookingResponse.from_booking(booking)
    except DomainException as e:
        handle_domain_exception(e)


@router.put("/{booking_id}/status", response_model=BookingResponse)
async def update_booking_status(
    booking_id: str = Path(..., description="Booking ULID", pattern=ULID_PATH_PATTERN),
    update: BookingStatusUpdate = Body(...),
    actor: Actor = Depends(get_current_actor),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    """
    Change a booking's status.

    Owners may only cancel; the assigned mechanic and administrators drive
    the rest of the lifecycle. Cancelling requires ``cancellation_reason``.
    """
    try:
        booking = await asyncio.to_thread(
            booking_service.transition_status,
            booking_id,
            actor,
            update.status,
            notes=update.notes,
            cancellation_reason=update.cancellation_reason,
            actual_cost=update.actual_cost,
        )
        return BookingResponse.from_booking(booking)
    except DomainException as e:
        handle_domain_exception(e)


@router.put("/{booking_id}/reschedule", response_model=BookingResponse)
async def reschedule_booking(
    booking_id: str = Path(..., description="Booking ULID", pattern=ULID_PATH_PATTERN),
    payload: BookingRescheduleRequest = Body(...),
    actor: Actor = Depends(get_current_actor),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    """Move a booking to a new slot; it must be confirmed again afterwards."""
    try:
        booking = await asyncio.to_thread(
            booking_service.reschedule_booking,
            booking_id,
            actor,
            payload.booking_date,
            payload.booking_time,
            reason=payload.reason,
        )
        return BookingResponse.from_booking(booking)
    except DomainException as e:
        handle_domain_exception(e)
