from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from skilllink.auth import get_current_user
from skilllink.db import get_db
from skilllink.models import User
from skilllink.moderation import ModerationService
from skilllink.schemas import FlagOut, UserOut

# Flag raising is open to every user; the admin router holds the rest
flags_router = APIRouter()
router = APIRouter()


class RaiseFlagBody(BaseModel):
    type: str
    item_id: str
    reason: str


class SettleFlagBody(BaseModel):
    status: str


@flags_router.post("", status_code=201)
def raise_flag(body: RaiseFlagBody, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    flag = ModerationService(db).raise_flag(user, body.type, body.item_id, body.reason)
    return {"flag": FlagOut.model_validate(flag)}


@router.get("/flags")
def list_flags(
    status: Optional[str] = Query(default=None),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    flags = ModerationService(db).list_flags(user, status)
    return {"flags": [FlagOut.model_validate(f) for f in flags]}


@router.patch("/flags/{flag_id}")
def settle_flag(
    flag_id: str,
    body: SettleFlagBody,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    flag = ModerationService(db).settle_flag(user, flag_id, body.status)
    return {"flag": FlagOut.model_validate(flag)}


@router.post("/users/{user_id}/suspend")
def suspend_user(user_id: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return {"user": UserOut.model_validate(ModerationService(db).suspend_user(user, user_id))}
