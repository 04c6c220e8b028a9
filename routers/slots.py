from datetime import date as date_type, time as time_type

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from skilllink.auth import get_current_user
from skilllink.db import get_db
from skilllink.models import User
from skilllink.schemas import SlotOut
from skilllink.slots import SlotAvailabilityManager

router = APIRouter()


class CreateSlotBody(BaseModel):
    date: date_type
    start_time: time_type
    end_time: time_type


@router.get("")
def list_slots(
    provider_id: str | None = Query(default=None),
    date: date_type | None = Query(default=None),
    available: bool | None = Query(default=None),
    db: Session = Depends(get_db)
):
    """
    List availability slots ordered by date and start time.

    Filters:
      - provider_id: one provider's calendar
      - date: a single day
      - available: true for open slots only, false for booked ones
    """
    slots = SlotAvailabilityManager(db).list_slots(provider_id=provider_id, date=date, available=available)
    return {"slots": [SlotOut.model_validate(s) for s in slots]}


@router.post("", status_code=201)
def create_slot(body: CreateSlotBody, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    slot = SlotAvailabilityManager(db).create_slot(user, body.date, body.start_time, body.end_time)
    return {"slot": SlotOut.model_validate(slot)}


@router.delete("/{slot_id}")
def delete_slot(slot_id: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    SlotAvailabilityManager(db).delete_slot(user, slot_id)
    return {"ok": True, "slot_id": slot_id}
