import logging
from datetime import date as date_type, time as time_type
from typing import Optional

from sqlalchemy import text
from sqlalchemy.orm import Session

from skilllink.errors import Conflict, Forbidden, InvalidInput, NotFound, SlotNotFound, SlotUnavailable
from skilllink.models import AvailabilitySlot, User

logger = logging.getLogger(__name__)


class SlotAvailabilityManager:
    """
    Owns the is_available flag of availability slots.

    claim() and release() are single conditional UPDATE statements checked by
    row count, so the database decides which of two racing claims wins. They
    run inside the caller's transaction and never commit on their own: the
    booking service commits the claim together with the booking row.
    """

    def __init__(self, db: Session):
        self.db = db

    def claim(self, slot_id: str) -> None:
        res = self.db.execute(
            text("""
                UPDATE availability_slots SET is_available = :no
                WHERE id = :slot_id AND is_available = :yes
            """),
            {"slot_id": slot_id, "yes": True, "no": False},
        )
        if res.rowcount != 1:
            if self.db.get(AvailabilitySlot, slot_id) is None:
                raise SlotNotFound()
            logger.warning(f"Claim rejected, slot {slot_id} already taken")
            raise SlotUnavailable()
        # ORM copies of the slot are stale after the raw UPDATE
        self.db.expire_all()

    def release(self, slot_id: str) -> bool:
        """Make the slot bookable again. Returns False when it already was."""
        res = self.db.execute(
            text("""
                UPDATE availability_slots SET is_available = :yes
                WHERE id = :slot_id AND is_available = :no
            """),
            {"slot_id": slot_id, "yes": True, "no": False},
        )
        if res.rowcount != 1:
            if self.db.get(AvailabilitySlot, slot_id) is None:
                raise SlotNotFound()
            return False
        self.db.expire_all()
        logger.info(f"Slot {slot_id} released")
        return True

    # -- provider calendar ---------------------------------------------------

    def create_slot(
        self, provider: User, date: date_type, start_time: time_type, end_time: time_type
    ) -> AvailabilitySlot:
        if not provider.can_provide:
            raise Forbidden("Only providers can publish availability")
        if end_time <= start_time:
            raise InvalidInput("end_time must be after start_time")

        duplicate = (
            self.db.query(AvailabilitySlot)
            .filter(
                AvailabilitySlot.provider_id == provider.id,
                AvailabilitySlot.date == date,
                AvailabilitySlot.start_time == start_time,
                AvailabilitySlot.end_time == end_time,
            )
            .first()
        )
        if duplicate:
            raise Conflict("Slot already exists for this time window")

        slot = AvailabilitySlot(
            provider_id=provider.id, date=date, start_time=start_time, end_time=end_time, is_available=True
        )
        self.db.add(slot)
        self.db.commit()
        self.db.refresh(slot)
        logger.info(f"Provider {provider.id} added slot {slot.id} on {date}")
        return slot

    def list_slots(
        self,
        provider_id: Optional[str] = None,
        date: Optional[date_type] = None,
        available: Optional[bool] = None,
    ) -> list[AvailabilitySlot]:
        query = self.db.query(AvailabilitySlot)
        if provider_id:
            query = query.filter(AvailabilitySlot.provider_id == provider_id)
        if date:
            query = query.filter(AvailabilitySlot.date == date)
        if available is not None:
            query = query.filter(AvailabilitySlot.is_available == available)
        return query.order_by(AvailabilitySlot.date.asc(), AvailabilitySlot.start_time.asc()).all()

    def delete_slot(self, provider: User, slot_id: str) -> None:
        slot = self.db.get(AvailabilitySlot, slot_id)
        if slot is None:
            raise NotFound("Slot not found")
        if slot.provider_id != provider.id:
            raise Forbidden("Only the owning provider can delete a slot")

        # Only an open slot that no booking, past or present, points at
        res = self.db.execute(
            text("""
                DELETE FROM availability_slots
                WHERE id = :slot_id AND is_available = :yes
                AND NOT EXISTS (SELECT 1 FROM bookings WHERE slot_id = :slot_id)
            """),
            {"slot_id": slot_id, "yes": True},
        )
        if res.rowcount != 1:
            self.db.rollback()
            slot = self.db.get(AvailabilitySlot, slot_id)
            if slot is None:
                raise NotFound("Slot not found")
            if not slot.is_available:
                raise Conflict("Slot is booked and cannot be deleted")
            raise Conflict("Slot has booking history")
        self.db.commit()
        logger.info(f"Provider {provider.id} deleted slot {slot_id}")
