from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from skilllink.auth import get_current_user
from skilllink.bookings import BookingService
from skilllink.db import get_db
from skilllink.models import User
from skilllink.schemas import BookingOut

router = APIRouter()


class CreateBookingBody(BaseModel):
    provider_id: str
    slot_id: str
    service_name: str
    notes: Optional[str] = None
    payment_amount: Optional[float] = None
    is_skill_swap: bool = False
    offered_skill_id: Optional[str] = None


class UpdateBookingBody(BaseModel):
    status: Optional[str] = None
    payment_status: Optional[str] = None


@router.post("")
def create_booking(
    body: CreateBookingBody,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Book a provider's slot as the calling seeker.

    The slot is claimed with a conditional update in the same transaction as
    the booking insert: of two requests racing for one slot exactly one gets
    a booking, the other a 409.
    """
    booking = BookingService(db).create(
        user,
        provider_id=body.provider_id,
        slot_id=body.slot_id,
        service_name=body.service_name,
        notes=body.notes,
        payment_amount=body.payment_amount,
        is_skill_swap=body.is_skill_swap,
        offered_skill_id=body.offered_skill_id,
    )
    return {"booking": BookingOut.model_validate(booking)}


@router.get("")
def list_bookings(
    role: Optional[str] = Query(default=None),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    bookings = BookingService(db).list(user, role)
    return {"bookings": [BookingOut.model_validate(b) for b in bookings]}


@router.get("/{booking_id}")
def get_booking(booking_id: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return {"booking": BookingOut.model_validate(BookingService(db).get(booking_id, user))}


@router.patch("/{booking_id}")
def update_booking(
    booking_id: str,
    body: UpdateBookingBody,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    # status=cancelled frees the slot
    booking = BookingService(db).update(
        booking_id, user, status=body.status, payment_status=body.payment_status
    )
    return {"booking": BookingOut.model_validate(booking)}
