import logging
from typing import Optional

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from skilllink.errors import (
    Conflict, DomainError, Forbidden, InvalidInput, InvalidTransition, NotFound,
    SlotNotFound,
)
from skilllink.models import (
    BOOKING_STATUSES, PAYMENT_STATUSES, AvailabilitySlot, Booking, Skill, User, utcnow,
)
from skilllink.slots import SlotAvailabilityManager

logger = logging.getLogger(__name__)

# completed and cancelled are terminal
TRANSITIONS = {
    "pending": {"confirmed", "cancelled"},
    "confirmed": {"completed", "cancelled"},
    "completed": set(),
    "cancelled": set(),
}


class BookingService:
    """Creates bookings against provider slots and drives their status."""

    def __init__(self, db: Session):
        self.db = db
        self.slots = SlotAvailabilityManager(db)

    def create(
        self,
        seeker: User,
        provider_id: str,
        slot_id: str,
        service_name: str,
        notes: Optional[str] = None,
        payment_amount: Optional[float] = None,
        is_skill_swap: bool = False,
        offered_skill_id: Optional[str] = None,
    ) -> Booking:
        """
        Claim the slot and insert a pending booking in one transaction.

        If anything fails after the claim the transaction is rolled back, so a
        slot is never left unavailable without a booking pointing at it.
        """
        if seeker.id == provider_id:
            raise Forbidden("You cannot book your own slot")

        slot = self.db.get(AvailabilitySlot, slot_id)
        if slot is None or slot.provider_id != provider_id:
            self.db.rollback()
            raise SlotNotFound("Failed to fetch slot details")

        if is_skill_swap:
            self._check_offered_skill(seeker, offered_skill_id)
        elif offered_skill_id:
            raise InvalidInput("offered_skill_id is only valid for a skill swap")

        try:
            self.slots.claim(slot_id)
            booking = Booking(
                seeker_id=seeker.id,
                provider_id=provider_id,
                slot_id=slot_id,
                service_name=service_name,
                notes=notes,
                status="pending",
                payment_status="pending",
                payment_amount=payment_amount,
                is_skill_swap=is_skill_swap,
                offered_skill_id=offered_skill_id,
            )
            self.db.add(booking)
            self.db.commit()
        except DomainError:
            self.db.rollback()
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception(f"Failed to create booking on slot {slot_id}: {e}")
            raise InvalidInput("Failed to create booking") from e

        self.db.refresh(booking)
        logger.info(f"Booking {booking.id} created: seeker={seeker.id} provider={provider_id} slot={slot_id}")
        return booking

    def get(self, booking_id: str, actor: User) -> Booking:
        booking = self.db.get(Booking, booking_id)
        if booking is None:
            raise NotFound("Booking not found")
        if not booking.involves(actor.id):
            logger.warning(f"User {actor.id} denied access to booking {booking_id}")
            raise Forbidden("Unauthorized")
        return booking

    def update_status(self, booking_id: str, actor: User, new_status: str) -> Booking:
        """
        Move a booking along its lifecycle.

        Asking for the status the booking already has is a no-op, which is
        what makes a retried cancellation safe: the slot is released only by
        the call that actually flipped the status.
        """
        return self._apply(self.get(booking_id, actor), actor, status=new_status)

    def update_payment_status(self, booking_id: str, actor: User, new_status: str) -> Booking:
        return self._apply(self.get(booking_id, actor), actor, payment_status=new_status)

    def update(
        self,
        booking_id: str,
        actor: User,
        status: Optional[str] = None,
        payment_status: Optional[str] = None,
    ) -> Booking:
        """Apply a PATCH body. Both values are validated first and written in one commit."""
        if payment_status is not None:
            self._check_payment_status(payment_status)
        booking = self.get(booking_id, actor)
        return self._apply(booking, actor, status=status, payment_status=payment_status)

    def _apply(
        self,
        booking: Booking,
        actor: User,
        status: Optional[str] = None,
        payment_status: Optional[str] = None,
    ) -> Booking:
        if status is not None and status not in BOOKING_STATUSES:
            raise InvalidInput(f"Unknown booking status '{status}'")
        if payment_status is not None:
            self._check_payment_status(payment_status)

        booking_id = booking.id
        previous = booking.status
        move = status is not None and status != previous
        pay = payment_status is not None and payment_status != booking.payment_status
        if move and status not in TRANSITIONS[previous]:
            raise InvalidTransition(f"Cannot move booking from {previous} to {status}")
        if not move and not pay:
            return booking

        try:
            if move:
                # Compare-and-swap on the status we validated against
                res = self.db.execute(
                    update(Booking)
                    .where(Booking.id == booking_id, Booking.status == previous)
                    .values(status=status, updated_at=utcnow())
                    .execution_options(synchronize_session=False)
                )
                if res.rowcount != 1:
                    self.db.rollback()
                    self.db.refresh(booking)
                    if booking.status != status:
                        raise Conflict("Booking was modified by another request")
                    move = False
                    pay = payment_status is not None and payment_status != booking.payment_status
                    if not pay:
                        return booking
                elif status == "cancelled":
                    self.slots.release(booking.slot_id)

            if pay:
                self.db.execute(
                    update(Booking)
                    .where(Booking.id == booking_id)
                    .values(payment_status=payment_status, updated_at=utcnow())
                    .execution_options(synchronize_session=False)
                )
            self.db.commit()
        except DomainError:
            self.db.rollback()
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception(f"Failed to update booking {booking_id}: {e}")
            raise InvalidInput("Failed to update booking") from e

        self.db.refresh(booking)
        if move:
            logger.info(f"Booking {booking_id} {previous} -> {status} by {actor.id}")
        if pay:
            logger.info(f"Booking {booking_id} payment set to {payment_status} by {actor.id}")
        return booking

    def list(self, actor: User, role: Optional[str] = None) -> list[Booking]:
        query = self.db.query(Booking).join(AvailabilitySlot, Booking.slot_id == AvailabilitySlot.id)
        if role == "provider":
            query = query.filter(Booking.provider_id == actor.id)
        elif role == "seeker":
            query = query.filter(Booking.seeker_id == actor.id)
        elif role is None:
            query = query.filter((Booking.provider_id == actor.id) | (Booking.seeker_id == actor.id))
        else:
            raise InvalidInput("role must be 'provider' or 'seeker'")
        return query.order_by(
            AvailabilitySlot.date.desc(), AvailabilitySlot.start_time.desc(), Booking.created_at.desc()
        ).all()

    def _check_payment_status(self, value: str) -> None:
        if value not in PAYMENT_STATUSES:
            raise InvalidInput(f"Unknown payment status '{value}'")

    def _check_offered_skill(self, seeker: User, skill_id: Optional[str]) -> None:
        if not skill_id:
            raise InvalidInput("A skill swap needs offered_skill_id")
        skill = self.db.get(Skill, skill_id)
        if skill is None or skill.user_id != seeker.id or skill.intent != "provider":
            raise InvalidInput("Offered skill must be one of your own offered skills")
