# backend/app/services/booking_service.py
"""
Booking Service for GarageBook Platform

Handles the booking lifecycle:
- Creating booking requests (mechanic selection, snapshot of cost/duration)
- Status transitions driven by the booking state machine
- Rescheduling with an append-only history
- Role-scoped reads and listings

Every write that can make a booking occupy a slot runs under the
mechanic's scheduling lock, takes the mechanic row lock inside the
transaction, and re-runs the conflict check before committing.
Notifications are published only after the commit succeeds.
"""

from __future__ import annotations

from contextlib import contextmanager
from datetime import date, datetime, timezone
from decimal import Decimal
import logging
from typing import TYPE_CHECKING, Any, Iterator, List, NoReturn, Optional, Tuple, Union

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.booking_lock import mechanic_schedule_lock
from ..core.config import settings
from ..core.constants import (
    DEFAULT_RESCHEDULE_REASON,
    ERROR_BOOKING_ACCESS_DENIED,
    ERROR_BOOKING_NOT_FOUND,
    ERROR_SLOT_UNAVAILABLE,
    MAX_RESCHEDULE_REASON_LENGTH,
)
from ..core.enums import RoleName
from ..core.exceptions import (
    BookingConflictException,
    DependencyException,
    ForbiddenException,
    MechanicUnavailableException,
    NotFoundException,
    ValidationException,
)
from ..domain.booking_state_machine import (
    NOTIFICATION_EVENTS,
    authorize_transition,
    ensure_reschedulable,
    occupies_new_slot,
)
from ..domain.mechanic_selection import select_mechanic
from ..domain.time_window import (
    Clock,
    TimeWindow,
    business_now,
    ensure_not_in_past,
    normalize_time_of_day,
    resolve,
)
from ..events import (
    BookingCancelled,
    BookingCompleted,
    BookingConfirmed,
    BookingCreated,
    BookingNoShow,
    BookingRescheduled,
    EventPublisher,
)
from ..models.booking import Booking, BookingStatus
from ..models.service import Service
from ..models.user import User
from ..models.vehicle import Vehicle
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..principal import Actor
from ..repositories.factory import RepositoryFactory
from ..schemas.booking import BookingCreate
from .base import BaseService
from .conflict_checker import ConflictChecker
from .notification_service import get_notification_sender

if TYPE_CHECKING:
    from ..repositories.booking_repository import BookingRepository

logger = logging.getLogger(__name__)

OVERLAP_CONSTRAINT = "bookings_no_overlap_per_mechanic"
LOCK_BUSY_MESSAGE = "Another change to this mechanic's schedule is in progress. Please retry."

# How the acting party is named in cancelled/rescheduled notifications
ACTOR_TAG = {
    RoleName.OWNER: "customer",
    RoleName.MECHANIC: "mechanic",
    RoleName.ADMIN: "admin",
}


class BookingService(BaseService):
    """
    Service layer for booking operations.

    Role rules live in the state machine; this class loads data, enforces
    the scheduling guards and persists the result.
    """

    repository: "BookingRepository"
    conflict_checker: ConflictChecker
    event_publisher: EventPublisher

    def __init__(
        self,
        db: Session,
        conflict_checker: Optional[ConflictChecker] = None,
        event_publisher: Optional[EventPublisher] = None,
        clock: Optional[Clock] = None,
        repository: Optional["BookingRepository"] = None,
    ):
        """
        Initialize booking service.

        Args:
            db: Database session
            conflict_checker: Optional ConflictChecker instance
            event_publisher: Optional publisher for post-commit notifications
            clock: Returns "now" in business wall-clock time (defaults to
                the configured business timezone)
            repository: Optional BookingRepository instance
        """
        super().__init__(db)
        self.repository = repository or RepositoryFactory.create_booking_repository(db)
        self.conflict_checker = conflict_checker or ConflictChecker(db)
        self.event_publisher = event_publisher or EventPublisher(get_notification_sender())
        self.clock: Clock = clock or business_now
        self.user_repository = RepositoryFactory.create_user_repository(db)
        self.vehicle_repository = RepositoryFactory.create_vehicle_repository(db)
        self.service_repository = RepositoryFactory.create_service_repository(db)

    # Create

    @BaseService.measure_operation("create_booking")
    def create_booking(self, owner_id: str, data: BookingCreate) -> Booking:
        """
        Create a booking request for one of the owner's vehicles.

        Args:
            owner_id: The owner making the request
            data: Booking creation data

        Returns:
            The new booking, in ``pending`` status

        Raises:
            NotFoundException: Owner, vehicle, service or mechanic missing
            ForbiddenException: Requester is not an owner, or the vehicle is not theirs
            ValidationException: Service unavailable or no mechanic can be selected
            MechanicUnavailableException: Mechanic inactive or not a mechanic
            InvalidTimeFormatException: Malformed booking time
            PastDateTimeException: Slot starts in the past
            BookingConflictException: Slot overlaps an active booking
            DependencyException: Scheduling lock busy or database unavailable
        """
        self.log_operation(
            "create_booking",
            owner_id=owner_id,
            vehicle_id=data.vehicle_id,
            service_id=data.service_id,
            date=data.booking_date.isoformat(),
            time=data.booking_time,
        )
        booking_time = normalize_time_of_day(data.booking_time)

        # 1. Validate and load directory records
        vehicle, service = self._validate_booking_prerequisites(owner_id, data)
        mechanic = self._resolve_mechanic(data.mechanic_id, service)

        # 2. Resolve the slot with the service's duration
        window = resolve(data.booking_date, booking_time, service.estimated_duration)
        ensure_not_in_past(window, self.clock)

        # 3. Check and write under the mechanic's scheduling guards
        with self._scheduling_guard(mechanic.id, "create"):
            try:
                with self.transaction():
                    self.user_repository.lock_for_scheduling(mechanic.id)
                    self._ensure_slot_available(mechanic.id, window, None, "create")
                    booking = self.repository.create(
                        owner_id=owner_id,
                        mechanic_id=mechanic.id,
                        vehicle_id=vehicle.id,
                        service_id=service.id,
                        booking_date=data.booking_date,
                        booking_time=booking_time,
                        estimated_duration=service.estimated_duration,
                        estimated_cost=service.base_cost,
                        status=BookingStatus.PENDING.value,
                        service_location=data.service_location.value,
                        priority=data.priority.value,
                        special_instructions=data.special_instructions,
                        customer_note=data.notes,
                    )
                    self.service_repository.increment_total_bookings(service.id)
            except IntegrityError as exc:
                self._raise_from_integrity_error(exc, mechanic.id, window, "create")

        self.logger.info(f"Created booking {booking.id} for mechanic {mechanic.id} at {window}")

        # 4. Tell both parties a request was made
        self._publish(
            BookingCreated(
                booking_id=booking.id,
                owner_id=booking.owner_id,
                mechanic_id=booking.mechanic_id,
                booking_date=booking.booking_date,
                booking_time=booking.booking_time,
                created_at=booking.created_at or datetime.now(timezone.utc),
            ),
            booking,
        )
        return booking

    def _validate_booking_prerequisites(
        self, owner_id: str, data: BookingCreate
    ) -> Tuple[Vehicle, Service]:
        owner = self.user_repository.get_by_id(owner_id, load_relationships=False)
        if not owner:
            raise NotFoundException("Owner not found", code="OWNER_NOT_FOUND")
        if owner.role != RoleName.OWNER.value:
            raise ForbiddenException("Only vehicle owners can create bookings")

        vehicle = self.vehicle_repository.get_by_id(data.vehicle_id, load_relationships=False)
        if not vehicle:
            raise NotFoundException("Vehicle not found", code="VEHICLE_NOT_FOUND")
        if vehicle.owner_id != owner_id:
            raise ForbiddenException("You can only book services for your own vehicles")
        if not vehicle.is_active:
            raise ValidationException(
                "Vehicle is no longer active", details={"vehicle_id": vehicle.id}
            )

        service = self.service_repository.get_by_id(data.service_id, load_relationships=False)
        if not service:
            raise NotFoundException("Service not found", code="SERVICE_NOT_FOUND")
        if not service.is_available:
            raise ValidationException(
                "Service is not currently available", details={"service_id": service.id}
            )
        return vehicle, service

    def _resolve_mechanic(self, requested_id: Optional[str], service: Service) -> User:
        mechanic_id = select_mechanic(requested_id, service.mechanic_id)
        mechanic = self.user_repository.get_by_id(mechanic_id, load_relationships=False)
        if not mechanic:
            raise NotFoundException("Mechanic not found", code="MECHANIC_NOT_FOUND")
        if mechanic.role != RoleName.MECHANIC.value:
            raise MechanicUnavailableException(mechanic_id, "not_a_mechanic")
        if not mechanic.is_active:
            raise MechanicUnavailableException(mechanic_id, mechanic.account_status)
        return mechanic

    # Transitions

    @BaseService.measure_operation("transition_status")
    def transition_status(
        self,
        booking_id: str,
        actor: Actor,
        target: Union[BookingStatus, str],
        notes: Optional[str] = None,
        cancellation_reason: Optional[str] = None,
        actual_cost: Optional[Decimal] = None,
    ) -> Booking:
        """
        Move a booking to ``target`` on behalf of ``actor``.

        Moving a booking into an active status from a non-active one
        re-checks the slot, so confirming a second overlapping request fails.

        Raises:
            NotFoundException: Booking missing
            ForbiddenException: Actor may not make this move
            InvalidTransitionException: No role may make this move
            ValidationException: Missing/oversized cancellation reason, or a
                final cost outside completion
            BookingConflictException: Slot taken by another active booking
            DependencyException: Scheduling lock busy or database unavailable
        """
        target = self._parse_status(target)
        booking = self._get_booking_or_404(booking_id)
        source = booking.status_enum
        relation = actor.relation_to(booking)

        self.log_operation(
            "transition_status",
            booking_id=booking_id,
            actor_id=actor.id,
            from_status=source.value,
            to_status=target.value,
        )
        authorize_transition(source, target, relation)

        reason = (
            self._validate_cancellation_reason(cancellation_reason)
            if target == BookingStatus.CANCELLED
            else None
        )
        if actual_cost is not None and target != BookingStatus.COMPLETED:
            raise ValidationException("actual_cost can only be set when completing a booking")

        if occupies_new_slot(source, target):
            with self._scheduling_guard(booking.mechanic_id, "transition"):
                source = self._apply_transition(
                    booking, actor, relation, target, notes, reason, actual_cost, check_slot=True
                )
        else:
            source = self._apply_transition(
                booking, actor, relation, target, notes, reason, actual_cost, check_slot=False
            )

        prometheus_metrics.record_booking_transition(source.value, target.value)
        self.logger.info(f"Booking {booking.id} moved from {source.value} to {target.value}")

        event = self._transition_event(booking, target, relation)
        if event is not None:
            self._publish(event, booking)
        return booking

    def _apply_transition(
        self,
        booking: Booking,
        actor: Actor,
        relation: RoleName,
        target: BookingStatus,
        notes: Optional[str],
        reason: Optional[str],
        actual_cost: Optional[Decimal],
        *,
        check_slot: bool,
    ) -> BookingStatus:
        """
        Write status, stamps and notes in one transaction.

        The booking row is re-read under a row lock and the move authorized
        again against that status. Returns the status the move started from.
        """
        try:
            with self.transaction():
                if check_slot:
                    self.user_repository.lock_for_scheduling(booking.mechanic_id)
                # Status may have changed since the first read
                self.repository.refresh(booking, lock=True)
                source = booking.status_enum
                authorize_transition(source, target, relation)
                if check_slot:
                    self._ensure_slot_available(
                        booking.mechanic_id, booking.time_window, booking.id, "transition"
                    )

                now = datetime.now(timezone.utc)
                if target == BookingStatus.CONFIRMED:
                    booking.confirm(now)
                elif target == BookingStatus.IN_PROGRESS:
                    booking.start(now)
                elif target == BookingStatus.COMPLETED:
                    booking.complete(now, actual_cost)
                elif target == BookingStatus.CANCELLED:
                    booking.cancel(actor.id, reason or "", now)
                elif target == BookingStatus.NO_SHOW:
                    booking.mark_no_show()

                if notes:
                    booking.append_note(relation, notes)
                self.repository.flush()
        except IntegrityError as exc:
            self._raise_from_integrity_error(
                exc, booking.mechanic_id, booking.time_window, "transition"
            )
        return source

    def _validate_cancellation_reason(self, reason: Optional[str]) -> str:
        cleaned = (reason or "").strip()
        if not cleaned:
            raise ValidationException(
                "A cancellation reason is required", code="CANCELLATION_REASON_REQUIRED"
            )
        limit = settings.max_cancellation_reason_length
        if len(cleaned) > limit:
            raise ValidationException(
                f"Cancellation reason must be at most {limit} characters",
                details={"length": len(cleaned), "max_length": limit},
            )
        return cleaned

    def _transition_event(
        self, booking: Booking, target: BookingStatus, relation: RoleName
    ) -> Optional[Any]:
        if target not in NOTIFICATION_EVENTS:
            return None
        if target == BookingStatus.CONFIRMED:
            return BookingConfirmed(booking_id=booking.id, confirmed_at=booking.confirmed_at)
        if target == BookingStatus.CANCELLED:
            return BookingCancelled(
                booking_id=booking.id,
                cancelled_by=ACTOR_TAG[relation],
                cancelled_at=booking.cancelled_at,
                reason=booking.cancellation_reason,
            )
        if target == BookingStatus.COMPLETED:
            return BookingCompleted(booking_id=booking.id, completed_at=booking.completed_at)
        return BookingNoShow(booking_id=booking.id, marked_at=datetime.now(timezone.utc))

    # Reschedule

    @BaseService.measure_operation("reschedule_booking")
    def reschedule_booking(
        self,
        booking_id: str,
        actor: Actor,
        new_date: date,
        new_time: str,
        reason: Optional[str] = None,
    ) -> Booking:
        """
        Move a booking to a new date/time and record the previous slot.

        The booking ends up ``rescheduled`` and has to be confirmed again.

        Raises:
            NotFoundException: Booking missing
            ForbiddenException: Actor unrelated to the booking
            InvalidTransitionException: Booking is in progress or terminal
            InvalidTimeFormatException: Malformed new time
            PastDateTimeException: A changed start time lies in the past
            BookingConflictException: New slot overlaps an active booking
            DependencyException: Scheduling lock busy or database unavailable
        """
        booking = self._get_booking_or_404(booking_id)
        relation = actor.relation_to(booking)
        ensure_reschedulable(booking.status_enum, relation)

        self.log_operation(
            "reschedule_booking",
            booking_id=booking_id,
            actor_id=actor.id,
            new_date=new_date.isoformat(),
            new_time=new_time,
        )
        new_time = normalize_time_of_day(new_time)
        window = resolve(new_date, new_time, booking.estimated_duration)
        current_slot = (booking.booking_date, normalize_time_of_day(booking.booking_time))
        if (new_date, new_time) != current_slot:
            ensure_not_in_past(window, self.clock)

        reason = (reason or "").strip() or DEFAULT_RESCHEDULE_REASON
        if len(reason) > MAX_RESCHEDULE_REASON_LENGTH:
            raise ValidationException(
                f"Reschedule reason must be at most {MAX_RESCHEDULE_REASON_LENGTH} characters"
            )

        with self._scheduling_guard(booking.mechanic_id, "reschedule"):
            try:
                with self.transaction():
                    self.user_repository.lock_for_scheduling(booking.mechanic_id)
                    self.repository.refresh(booking, lock=True)
                    ensure_reschedulable(booking.status_enum, relation)
                    self._ensure_slot_available(booking.mechanic_id, window, booking.id, "reschedule")

                    source = booking.status_enum
                    previous_date, previous_time = booking.booking_date, booking.booking_time
                    self.repository.add_reschedule_entry(
                        booking,
                        original_date=previous_date,
                        original_time=previous_time,
                        new_date=new_date,
                        new_time=new_time,
                        reason=reason,
                        changed_by_id=actor.id,
                        changed_at=datetime.now(timezone.utc),
                    )
                    booking.booking_date = new_date
                    booking.booking_time = new_time
                    booking.status = BookingStatus.RESCHEDULED.value
                    self.repository.flush()
            except IntegrityError as exc:
                self._raise_from_integrity_error(exc, booking.mechanic_id, window, "reschedule")

        prometheus_metrics.record_booking_transition(source.value, BookingStatus.RESCHEDULED.value)
        self.logger.info(
            f"Booking {booking.id} rescheduled from {previous_date} {previous_time} to {window}"
        )

        self._publish(
            BookingRescheduled(
                booking_id=booking.id,
                previous_date=previous_date,
                previous_time=previous_time,
                new_date=new_date,
                new_time=new_time,
                rescheduled_by=ACTOR_TAG.get(relation, actor.role.value),
            ),
            booking,
        )
        return booking

    # Reads

    def get_booking_for_actor(self, booking_id: str, actor: Actor) -> Booking:
        """
        Load a booking the actor is allowed to see.

        Raises:
            NotFoundException: Booking missing
            ForbiddenException: Actor is not admin, its owner or its mechanic
        """
        booking = self._get_booking_or_404(booking_id)
        if actor.relation_to(booking) is None:
            raise ForbiddenException(ERROR_BOOKING_ACCESS_DENIED)
        return booking

    @BaseService.measure_operation("list_bookings")
    def list_bookings_for_actor(
        self,
        actor: Actor,
        status: Optional[Union[BookingStatus, str]] = None,
        on_date: Optional[date] = None,
        page: int = 1,
        limit: int = 100,
    ) -> Tuple[List[Booking], int]:
        """
        List bookings visible to the actor, ordered by date and time.

        Owners see their own bookings, mechanics the ones assigned to them
        and administrators every booking.

        Returns:
            (page of bookings, total matching count)
        """
        if page < 1:
            raise ValidationException("page must be at least 1", details={"page": page})
        if limit < 1 or limit > settings.max_page_limit:
            raise ValidationException(
                f"limit must be between 1 and {settings.max_page_limit}",
                details={"limit": limit},
            )
        status_value = self._parse_status(status).value if status is not None else None

        scope: dict[str, str] = {}
        if actor.role == RoleName.OWNER:
            scope["owner_id"] = actor.id
        elif actor.role == RoleName.MECHANIC:
            scope["mechanic_id"] = actor.id

        return self.repository.list_bookings(
            status=status_value,
            on_date=on_date,
            offset=(page - 1) * limit,
            limit=limit,
            **scope,
        )

    # Helpers

    def _get_booking_or_404(self, booking_id: str) -> Booking:
        booking = self.repository.get_by_id(booking_id)
        if not booking:
            raise NotFoundException(ERROR_BOOKING_NOT_FOUND, code="BOOKING_NOT_FOUND")
        return booking

    @staticmethod
    def _parse_status(value: Union[BookingStatus, str]) -> BookingStatus:
        try:
            return BookingStatus(value)
        except ValueError as exc:
            raise ValidationException(
                f"Unknown booking status: {value}",
                details={"allowed": [status.value for status in BookingStatus]},
            ) from exc

    @contextmanager
    def _scheduling_guard(self, mechanic_id: str, operation: str) -> Iterator[None]:
        """Hold the mechanic's scheduling lock or fail with a retryable error."""
        with mechanic_schedule_lock(mechanic_id) as acquired:
            if not acquired:
                self.logger.warning(
                    f"Scheduling lock busy for mechanic {mechanic_id} during {operation}"
                )
                raise DependencyException(
                    LOCK_BUSY_MESSAGE,
                    details={"mechanic_id": mechanic_id, "operation": operation},
                )
            yield

    def _ensure_slot_available(
        self,
        mechanic_id: str,
        window: TimeWindow,
        exclude_booking_id: Optional[str],
        operation: str,
    ) -> None:
        try:
            self.conflict_checker.ensure_slot_available(mechanic_id, window, exclude_booking_id)
        except BookingConflictException:
            prometheus_metrics.record_booking_conflict(operation, "check")
            raise

    @staticmethod
    def _is_overlap_violation(exc: IntegrityError) -> bool:
        orig = getattr(exc, "orig", None)
        diag = getattr(orig, "diag", None)
        constraint_name = getattr(diag, "constraint_name", None) if diag is not None else None
        if constraint_name:
            return constraint_name == OVERLAP_CONSTRAINT
        return OVERLAP_CONSTRAINT in str(orig if orig is not None else exc)

    def _raise_from_integrity_error(
        self,
        exc: IntegrityError,
        mechanic_id: str,
        window: TimeWindow,
        operation: str,
    ) -> NoReturn:
        """Map the storage overlap constraint onto a booking conflict."""
        if self._is_overlap_violation(exc):
            prometheus_metrics.record_booking_conflict(operation, "constraint")
            self.logger.warning(
                f"Overlap constraint rejected {operation} for mechanic {mechanic_id} at {window}"
            )
            raise BookingConflictException(
                message=ERROR_SLOT_UNAVAILABLE,
                details={
                    "mechanic_id": mechanic_id,
                    "requested_start": window.start.isoformat(timespec="minutes"),
                    "requested_end": window.end.isoformat(timespec="minutes"),
                    "conflict_scope": "mechanic",
                },
            ) from exc
        self.logger.error(f"Integrity error during {operation}: {exc}")
        raise self.translate_persistence_error(exc) from exc

    def _publish(self, event: Any, booking: Booking) -> None:
        self.event_publisher.publish(event, booking.to_dict())
